# -*- coding: utf-8 -*-
"""
remote_board.py
远程招聘看板 API（RemoteOK 风格）：
- 返回一个数组，第一个元素是法律声明，跳过
- API 不支持 tag 参数：数据源 URL 里的 tag=a,b 只用于本地过滤
- 年薪 salary_min/salary_max 换算成月薪展示：$A-B/month
"""

from __future__ import annotations

import json
from typing import List, Optional
from urllib.parse import parse_qs, urlparse, urlunparse

from ..models import DataSource, Record
from ..utils import make_record, shorten, strip_html

DEFAULT_TAGS = ["frontend", "react", "vue", "javascript"]
JOB_PAGE = "https://remoteok.com/remote-jobs/{slug}"


def api_url(source: DataSource) -> Optional[str]:
    """去掉查询串后的地址才是真正的 API。"""
    u = urlparse(source.url)
    return urlunparse((u.scheme, u.netloc, u.path, "", "", ""))


def wanted_tags(url: str) -> List[str]:
    raw = parse_qs(urlparse(url).query).get("tag")
    if not raw:
        return list(DEFAULT_TAGS)
    tags = [t.strip().lower() for t in ",".join(raw).split(",") if t.strip()]
    return tags or list(DEFAULT_TAGS)


def monthly_salary(job: dict) -> str:
    lo, hi = job.get("salary_min"), job.get("salary_max")
    try:
        lo, hi = float(lo or 0), float(hi or 0)
    except (TypeError, ValueError):
        return ""
    if lo <= 0 or hi <= 0:
        return ""
    return f"${round(lo / 12)}-{round(hi / 12)}/month"


def parse_remote_board(text: str, source: DataSource) -> List[Record]:
    data = json.loads(text)
    if not isinstance(data, list):
        raise ValueError("remote board API should return a JSON array")

    tags = wanted_tags(source.url)

    events: List[Record] = []
    for job in data[1:]:
        if not isinstance(job, dict) or not job.get("position"):
            continue

        job_tags = [str(t) for t in job.get("tags") or []]
        haystack = f"{job['position']} {' '.join(job_tags)}".lower()
        if not any(t in haystack for t in tags):
            continue

        company = str(job.get("company") or "").strip()
        location = str(job.get("location") or "").strip() or "Remote"
        salary = monthly_salary(job)

        link = job.get("url") or (JOB_PAGE.format(slug=job["slug"]) if job.get("slug") else "")

        rec = make_record(
            source,
            title=job["position"],
            link=link,
            summary=shorten(strip_html(job.get("description") or ""), 200),
            author=company,
            meta=f"{company} • {location} {salary}",
            timestamp=job.get("date") or job.get("epoch"),
            salary_text=salary,
            tags=job_tags,
        )
        if rec is not None:
            events.append(rec)

    return events
