# -*- coding: utf-8 -*-
"""
json_default.py
通用 JSON 解析。上游结构五花八门，这里先识别几种已知形状，再按常见字段名兜底：

    [ {...}, {...} ]                       直接是数组
    {"jobs": [...]}                        招聘站常见
    {"data": {"children": [{"data": {}}]}} Reddit 风格
    {"data": [...]} / {"results": [...]} / {"listings": [...]}

标题：title / position / job_title
链接：url / link / apply_url / job_url（Reddit 用 permalink）
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional

from ..models import DataSource, Record
from ..utils import absolute_link, make_record, shorten, strip_html

TITLE_FIELDS = ("title", "position", "job_title", "name")
LINK_FIELDS = ("url", "link", "apply_url", "job_url", "href")
AUTHOR_FIELDS = ("company", "company_name", "employer", "author")
DESCRIPTION_FIELDS = ("description", "summary", "selftext", "excerpt", "content")
TIME_FIELDS = ("created_at", "published", "published_at", "publication_date", "date_posted", "posted_at", "date")
SALARY_FIELDS = ("salary", "salary_range", "compensation")

REDDIT_BASE = "https://www.reddit.com"


def first_value(item: Dict[str, Any], fields) -> Any:
    for f in fields:
        v = item.get(f)
        if v not in (None, "", [], {}):
            return v
    return None


def text_of(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, dict):
        # 例如 {"name": "Acme"}、{"nickname": "..."}
        value = value.get("name") or value.get("nickname") or value.get("username") or ""
    return str(value).strip()


def tag_list(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [t.strip() for t in re.split(r"[,;]", value) if t.strip()]
    if isinstance(value, list):
        return [text_of(v) for v in value if text_of(v)]
    return []


def salary_of(item: Dict[str, Any]) -> str:
    """薪资：直接字段，或 salary_min/salary_max 拼成区间。"""
    raw = first_value(item, SALARY_FIELDS)
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return f"${int(raw)}"
    if isinstance(raw, str) and raw.strip():
        return raw.strip()
    lo, hi = item.get("salary_min"), item.get("salary_max")
    if isinstance(lo, (int, float)) and isinstance(hi, (int, float)) and lo and hi:
        return f"${int(lo)}-{int(hi)}"
    return ""


def locate_items(data: Any) -> Optional[List[Any]]:
    """识别列表所在位置；识别不出返回 None。"""
    if isinstance(data, list):
        return data
    if not isinstance(data, dict):
        return None
    if isinstance(data.get("jobs"), list):
        return data["jobs"]
    inner = data.get("data")
    if isinstance(inner, dict) and isinstance(inner.get("children"), list):
        return [c.get("data") if isinstance(c, dict) else None for c in inner["children"]]
    if isinstance(inner, list):
        return inner
    for key in ("results", "listings", "items", "posts"):
        if isinstance(data.get(key), list):
            return data[key]
    return None


def load_items(text: str) -> List[Any]:
    items = locate_items(json.loads(text))
    if items is None:
        raise ValueError("unrecognized JSON shape")
    return items


def _is_reddit(source: DataSource, item: Dict[str, Any]) -> bool:
    return "reddit" in source.name.lower() or "reddit.com" in source.url or "subreddit" in item


def parse_json(text: str, source: DataSource) -> List[Record]:
    events: List[Record] = []
    for item in load_items(text):
        if not isinstance(item, dict):
            continue

        reddit = _is_reddit(source, item)

        link = text_of(first_value(item, LINK_FIELDS))
        if reddit and item.get("permalink"):
            link = REDDIT_BASE + str(item["permalink"])
        link = absolute_link(link, source.url)

        if reddit:
            author = text_of(item.get("author"))
        else:
            author = text_of(first_value(item, AUTHOR_FIELDS))

        # Reddit 用 created_utc（秒级时间戳）
        timestamp = first_value(item, TIME_FIELDS)
        if timestamp is None and item.get("created_utc"):
            timestamp = item["created_utc"]

        salary = salary_of(item)
        company = text_of(first_value(item, ("company", "company_name", "employer")))

        rec = make_record(
            source,
            title=text_of(first_value(item, TITLE_FIELDS)),
            link=link,
            summary=shorten(strip_html(text_of(first_value(item, DESCRIPTION_FIELDS))), 200),
            author=author,
            meta=" ".join(p for p in (company, salary) if p),
            timestamp=timestamp,
            salary_text=salary,
            tags=tag_list(item.get("tags") or item.get("categories") or item.get("link_flair_text")),
        )
        if rec is not None:
            events.append(rec)

    return events


def parse_job_board(text: str, source: DataSource) -> List[Record]:
    """
    远程招聘站的 JSON（Remotive / JustRemote 一类）。
    薪资：salary 字段；没有时看 candidate_required_location 里是否写了 $ 金额。
    """
    events: List[Record] = []
    for job in load_items(text):
        if not isinstance(job, dict):
            continue

        company = text_of(first_value(job, ("company_name", "company", "employer")))
        location = text_of(first_value(job, ("candidate_required_location", "location"))) or "Remote"

        salary = salary_of(job)
        extra = salary
        if not salary and "$" in location:
            # 金额已经在 location 里，meta 不再重复
            salary = location
            extra = ""

        tags = tag_list(job.get("tags") or job.get("categories")) or tag_list(job.get("category"))

        rec = make_record(
            source,
            title=text_of(first_value(job, ("title", "position", "job_title"))),
            link=absolute_link(text_of(first_value(job, ("url", "link", "apply_url"))), source.url),
            summary=shorten(strip_html(text_of(job.get("description"))), 200),
            author=company,
            meta=" ".join(p for p in (f"{company} • {location}", extra) if p),
            timestamp=first_value(job, ("publication_date", "published_at", "created_at", "posted_at")),
            salary_text=salary,
            tags=tags,
        )
        if rec is not None:
            events.append(rec)

    return events
