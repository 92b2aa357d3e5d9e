# -*- coding: utf-8 -*-
"""
utils.py
通用辅助函数：
- 时间解析与 ISO 格式化（解析失败一律回退为“现在”）
- 关键词匹配（英文按词根匹配单复数/时态，中文按子串）
- 链接规范化、HTML 去标签、统一构造 Record
"""

from __future__ import annotations

import re
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Iterable, List, Optional, Sequence, Tuple
from urllib.parse import parse_qsl, urlencode, urljoin, urlparse, urlunparse

from bs4 import BeautifulSoup

from .models import DataSource, Record


def now_ms() -> int:
    return int(time.time() * 1000)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# -------------------- 时间 --------------------

def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    尽力把上游的各种时间格式解析为带时区的 datetime：
    ISO 字符串、RFC 822（RSS pubDate）、秒/毫秒时间戳、struct_time。
    无法解析返回 None，由调用方决定回退值。
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, time.struct_time):
        try:
            dt = datetime(*value[:6], tzinfo=timezone.utc)
        except (TypeError, ValueError):
            return None
    elif isinstance(value, (int, float)):
        ts = float(value)
        # 毫秒时间戳
        if ts > 1e12:
            ts /= 1000.0
        try:
            dt = datetime.fromtimestamp(ts, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        if re.fullmatch(r"\d{9,13}(\.\d+)?", s):
            return parse_timestamp(float(s))
        try:
            dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
        except ValueError:
            try:
                dt = parsedate_to_datetime(s)
            except (TypeError, ValueError, IndexError):
                return None
            if dt is None:
                return None
    else:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def to_iso(value: Any) -> str:
    dt = parse_timestamp(value)
    if dt is None:
        return now_iso()
    return dt.isoformat()


def timestamp_sort_key(value: Any) -> float:
    """排序用：无法解析的时间按“现在”处理。"""
    dt = parse_timestamp(value)
    if dt is None:
        return time.time()
    return dt.timestamp()


# -------------------- 关键词匹配 --------------------

def compile_english_stem(stem: str) -> re.Pattern:
    """
    为英文词根编译正则，支持词形变化匹配（s/es/ed/ing）。
    用前后“非单词字符”断言代替 \\b，这样 "#hiring"、"$40k"、"three.js" 也能正确匹配。
    """
    pattern = rf"(?<!\w){re.escape(stem)}(?:s|es|ed|ing)?(?!\w)"
    return re.compile(pattern, re.IGNORECASE)


def compile_number_keyword(kw: str) -> re.Pattern:
    """
    以数字开头的中文关键词（如 "5万"）：前面不能紧跟数字、小数点或区间符号，
    否则 "1.5万"、"15万"、"2-5万" 都会误命中。
    """
    return re.compile(rf"(?<![\d.\-~～－]){re.escape(kw)}")


def norm_text_for_match(s: str) -> str:
    lower = re.sub(r"\s+", " ", (s or "").lower())
    # 避免 ray-ban 命中 ban
    return lower.replace("ray-ban", "rayban")


class KeywordMatcher:
    """一组关键词：英文走词根正则，中文（非 ASCII）走子串匹配，数字开头的中文词锚定数字边界。"""

    def __init__(self, keywords: Iterable[str]):
        self.keywords: List[str] = []
        self._patterns: List[Tuple[str, Optional[re.Pattern]]] = []
        for kw in keywords or []:
            if not isinstance(kw, str):
                continue
            kw = kw.strip().lower()
            if not kw or kw in self.keywords:
                continue
            self.keywords.append(kw)
            if kw.isascii():
                pattern = compile_english_stem(kw)
            elif kw[0].isdigit():
                pattern = compile_number_keyword(kw)
            else:
                pattern = None
            self._patterns.append((kw, pattern))

    def __len__(self) -> int:
        return len(self.keywords)

    def hits(self, text: str) -> List[str]:
        lower = norm_text_for_match(text)
        found = []
        for kw, pattern in self._patterns:
            if pattern is not None:
                if pattern.search(lower):
                    found.append(kw)
            elif kw in lower:
                found.append(kw)
        return found

    def matches(self, text: str) -> bool:
        lower = norm_text_for_match(text)
        for kw, pattern in self._patterns:
            if pattern is not None:
                if pattern.search(lower):
                    return True
            elif kw in lower:
                return True
        return False


def name_in(source_name: str, platforms: Sequence[str]) -> bool:
    """数据源名是否包含列表中任一平台名（大小写不敏感）。"""
    lower = (source_name or "").lower()
    return any(p and p.lower() in lower for p in platforms)


# -------------------- 文本 / 链接 --------------------

def normalize_link(url: Optional[str]) -> str:
    """
    规范化链接：去掉 utm_*、ref/ref_src 等统计参数，去掉 fragment。
    让“同文不同链”更容易被识别为同一条。
    """
    if not url:
        return ""
    url = url.strip()
    try:
        u = urlparse(url)
        qs = [
            (k, v)
            for (k, v) in parse_qsl(u.query, keep_blank_values=True)
            if not k.lower().startswith("utm_") and k.lower() not in {"ref", "ref_src"}
        ]
        return urlunparse((u.scheme, u.netloc, u.path, u.params, urlencode(qs, doseq=True), ""))
    except ValueError:
        return url


def absolute_link(href: Optional[str], base_url: str) -> str:
    if not href:
        return ""
    href = href.strip()
    if href.startswith(("http://", "https://")):
        return href
    if href.startswith(("javascript:", "mailto:", "#")):
        return ""
    return urljoin(base_url, href)


def strip_html(text: Optional[str]) -> str:
    if not text:
        return ""
    if "<" not in text:
        return re.sub(r"\s+", " ", text).strip()
    return BeautifulSoup(text, "html.parser").get_text(" ", strip=True)


def shorten(text: str, limit: int) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def combine_text(record: Record) -> str:
    """分类用的合并文本：标题 + 摘要 + meta + 薪资字段。"""
    return " ".join(p for p in (record.title, record.summary, record.meta, record.salary_text) if p)


def make_record(
    source: DataSource,
    *,
    title: Any,
    link: Any,
    summary: Any = "",
    author: Any = "",
    meta: Any = "",
    timestamp: Any = None,
    salary_text: Any = "",
    tags: Any = None,
) -> Optional[Record]:
    """
    所有适配器统一经由这里构造 Record。
    标题或链接为空时返回 None（调用方直接丢弃这一条，同批其余条目照常处理）。
    """
    title_s = re.sub(r"\s+", " ", str(title or "")).strip()
    link_s = normalize_link(str(link or ""))
    if not title_s or not link_s:
        return None

    tag_list: List[str] = []
    if isinstance(tags, str):
        tags = [tags]
    for t in tags or []:
        t = str(t or "").strip()
        if t and t not in tag_list:
            tag_list.append(t)

    return Record(
        title=title_s,
        link=link_s,
        source_name=source.name,
        type=source.type,
        region=source.region,
        timestamp=to_iso(timestamp),
        summary=str(summary or "").strip(),
        author=str(author or "").strip() or "Unknown",
        meta=re.sub(r"\s+", " ", str(meta or "")).strip(),
        salary_text=str(salary_text or "").strip(),
        tags=tuple(tag_list),
    )
