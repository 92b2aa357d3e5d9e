# -*- coding: utf-8 -*-
"""
rss_default.py
RSS/Atom 解析（feedparser）：标题、链接、摘要、作者、标签、发布时间。
摘要里出现的美元薪资会顺带填进 salary_text。
"""

from __future__ import annotations

import re
from typing import List

import feedparser

from ..models import DataSource, Record
from ..utils import make_record, shorten, strip_html

SALARY_IN_TEXT_RE = re.compile(r"\$[\d,]+(?:k)?(?:\s*-\s*\$[\d,]+(?:k)?)?(?:\s*/\s*(?:year|month|hour))?", re.I)


def parse_rss(text: str, source: DataSource) -> List[Record]:
    """
    解析RSS/Atom内容。
    完全无法解析（bozo 且没有任何条目）视为格式错误并抛出，由适配器边界折叠为失败结果。
    """
    feed = feedparser.parse(text)
    entries = feed.get("entries", [])
    if not entries and feed.get("bozo"):
        raise ValueError(f"unparseable feed: {feed.get('bozo_exception')!r}")

    events: List[Record] = []
    for entry in entries:
        # 优先用 summary，其次 content:encoded
        description = entry.get("summary") or ""
        if not description and entry.get("content"):
            description = entry["content"][0].get("value", "")
        description = strip_html(description)

        m = SALARY_IN_TEXT_RE.search(description)
        salary = m.group(0) if m else ""

        # 发布时间：published_parsed，其次 updated_parsed；都没有则 make_record 回退为现在
        published = entry.get("published_parsed") or entry.get("updated_parsed")

        tags = [t.get("term") for t in entry.get("tags", []) if t.get("term")]

        rec = make_record(
            source,
            title=entry.get("title", ""),
            link=entry.get("link") or "",
            summary=shorten(description, 200),
            author=entry.get("author") or entry.get("dc_creator") or "Unknown",
            meta=" ".join(p for p in (entry.get("published", ""), salary) if p),
            timestamp=published,
            salary_text=salary,
            tags=tags,
        )
        if rec is not None:
            events.append(rec)

    return events
