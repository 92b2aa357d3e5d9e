# -*- coding: utf-8 -*-
"""
json_feeds.py
两种固定结构的 JSON：新闻聚合搜索（hits 数组）和社区帖子（data.posts 数组）。
"""

from __future__ import annotations

import json
from typing import List

from ..models import DataSource, Record
from ..utils import make_record

NEWS_ITEM = "https://news.ycombinator.com/item?id={id}"
COMMUNITY_POST = "https://eleduck.com/posts/{id}"


def parse_news_hits(text: str, source: DataSource) -> List[Record]:
    data = json.loads(text)
    hits = data.get("hits") if isinstance(data, dict) else None
    if not isinstance(hits, list):
        raise ValueError("expected an object with a 'hits' array")

    events: List[Record] = []
    for h in hits:
        if not isinstance(h, dict):
            continue
        # 讨论帖没有外链，退回到站内条目页
        link = h.get("url") or (NEWS_ITEM.format(id=h["objectID"]) if h.get("objectID") else "")
        rec = make_record(
            source,
            title=h.get("title") or h.get("story_title") or "",
            link=link,
            summary=h.get("story_text") or "",
            author=h.get("author") or "",
            meta=f"{h.get('points') or 0} points • {h.get('num_comments') or 0} comments",
            timestamp=h.get("created_at") or h.get("created_at_i"),
        )
        if rec is not None:
            events.append(rec)
    return events


def parse_community_posts(text: str, source: DataSource) -> List[Record]:
    data = json.loads(text)
    inner = data.get("data") if isinstance(data, dict) else None
    posts = inner.get("posts") if isinstance(inner, dict) else None
    if posts is None:
        # 结构对但没有帖子，按零条处理
        return []

    events: List[Record] = []
    for p in posts:
        if not isinstance(p, dict) or p.get("id") is None:
            continue
        nick = (p.get("user") or {}).get("nickname") or "Unknown"
        rec = make_record(
            source,
            title=p.get("title") or "",
            link=COMMUNITY_POST.format(id=p["id"]),
            summary=p.get("summary") or "",
            author=nick,
            meta=f"{nick} • {p.get('comments_count') or 0} 评论",
            timestamp=p.get("published_at"),
        )
        if rec is not None:
            events.append(rec)
    return events
