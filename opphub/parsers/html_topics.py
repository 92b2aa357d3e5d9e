# -*- coding: utf-8 -*-
"""
html_topics.py
论坛话题列表（V2EX 风格）解析：每个 .cell 是一个话题，标题链接是相对路径。
"""

from __future__ import annotations

from typing import List

from bs4 import BeautifulSoup

from ..models import DataSource, Record
from ..utils import absolute_link, make_record

# 按顺序尝试，第一个有结果的选择器生效
TOPIC_SELECTORS = ["#TopicsNode .cell", "#Main .cell.item", ".cell.item"]


def parse_topic_list(text: str, source: DataSource) -> List[Record]:
    soup = BeautifulSoup(text, "html.parser")

    cells = []
    for selector in TOPIC_SELECTORS:
        cells = soup.select(selector)
        if cells:
            break

    events: List[Record] = []
    for cell in cells:
        title_el = cell.select_one(".item_title a") or cell.select_one("a.topic-link")
        if title_el is None:
            continue

        author_el = cell.select_one(".topic_info strong a")
        author = author_el.get_text(strip=True) if author_el else "Unknown"
        count_el = cell.select_one(".count_livid")
        replies = count_el.get_text(strip=True) if count_el else "0"

        rec = make_record(
            source,
            title=title_el.get_text(strip=True),
            link=absolute_link(title_el.get("href"), source.url),
            author=author,
            meta=f"{author} • {replies} 回复",
        )
        if rec is not None:
            events.append(rec)

    return events
