# -*- coding: utf-8 -*-
"""
html_default.py
通用招聘列表页解析。按顺序尝试常见的列表选择器，第一个命中的生效。
"""

from __future__ import annotations

from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from ..models import DataSource, Record
from ..utils import absolute_link, make_record

LISTING_SELECTORS = [
    ".job-listing",
    ".job-item",
    ".job-card",
    ".listing-item",
    "article.job",
    "li.feature",
    "section.jobs article",
    ".opportunity",
    ".position",
    ".job_listing",
    ".card-job",
]

TITLE_SELECTOR = "h2, h3, .title, .job-title, .position"
COMPANY_SELECTOR = ".company, .company-name, .employer"
LOCATION_SELECTOR = ".location, .region"
SALARY_SELECTOR = ".salary, .compensation"
TAG_SELECTOR = ".job-tag, .tag"


def _text(el: Tag, selector: str) -> str:
    found: Optional[Tag] = el.select_one(selector)
    return found.get_text(" ", strip=True) if found else ""


def parse_html(text: str, source: DataSource) -> List[Record]:
    soup = BeautifulSoup(text, "html.parser")

    entries: List[Tag] = []
    for selector in LISTING_SELECTORS:
        entries = soup.select(selector)
        if entries:
            break

    events: List[Record] = []
    for el in entries:
        anchor = el.select_one("a[href]")
        href = anchor.get("href") if anchor else None

        company = _text(el, COMPANY_SELECTOR)
        location = _text(el, LOCATION_SELECTOR)
        salary = _text(el, SALARY_SELECTOR)
        tags = [t.get_text(strip=True) for t in el.select(TAG_SELECTOR)]

        meta = " • ".join(p for p in (company, location) if p)

        rec = make_record(
            source,
            title=_text(el, TITLE_SELECTOR),
            link=absolute_link(href, source.url),
            author=company,
            meta=" ".join(p for p in (meta, salary) if p),
            salary_text=salary,
            tags=tags,
        )
        if rec is not None:
            events.append(rec)

    return events
