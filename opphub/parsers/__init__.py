# -*- coding: utf-8 -*-
"""
parsers
适配器集合：每种 format 对应一个 Adapter（目标 URL + Accept 头 + 纯解析函数）。
按 format 做分派（一个封闭的字典），不走继承。

Adapter.fetch 可能抛异常；Adapter.run 永远不抛，任何失败都变成 FetchOutcome.failed。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional

from ..http import HttpFetcher
from ..models import DataSource, FetchOutcome, Record
from . import html_default, html_topics, json_default, json_feeds, remote_board, rss_default, social

logger = logging.getLogger(__name__)

MAX_ITEMS_PER_SOURCE = 50

ParseFn = Callable[[str, DataSource], List[Record]]
LocateFn = Callable[[DataSource], Optional[str]]
HeadersFn = Callable[[DataSource], Mapping[str, str]]

ACCEPT_JSON = "application/json"
ACCEPT_FEED = "application/rss+xml, application/atom+xml, application/xml;q=0.9, */*;q=0.8"


def _source_url(source: DataSource) -> Optional[str]:
    return source.url


def _no_headers(source: DataSource) -> Mapping[str, str]:
    return {}


@dataclass(frozen=True)
class Adapter:
    format: str
    parse: ParseFn
    accept: Optional[str] = None
    locate: LocateFn = _source_url
    headers: HeadersFn = field(default=_no_headers)
    max_items: int = MAX_ITEMS_PER_SOURCE

    async def fetch(self, source: DataSource, http: HttpFetcher) -> List[Record]:
        url = self.locate(source)
        if not url:
            # 例如 Discord 非 webhook 地址：无从抓取，视为零条
            return []
        resp = await http.get_text(url, accept=self.accept, headers=self.headers(source))
        return list(self.parse(resp.text, source))[: self.max_items]

    async def run(self, source: DataSource, http: HttpFetcher) -> FetchOutcome:
        try:
            records = await self.fetch(source, http)
        except Exception as e:
            logger.info("[adapter] %s (%s) 抓取失败: %r", source.name, self.format, e)
            return FetchOutcome.failed(source.name, f"{type(e).__name__}: {e}")
        return FetchOutcome.succeeded(source.name, records)


def build_adapters(social_keywords: Optional[Mapping[str, List[str]]] = None) -> Dict[str, Adapter]:
    """构造 format -> Adapter 的分派表。社交平台的招聘关键词可以从配置注入。"""
    kw = {**social.DEFAULT_SOCIAL_KEYWORDS, **(social_keywords or {})}

    adapters = [
        Adapter("html-topic-list", html_topics.parse_topic_list),
        Adapter("generic-rss", rss_default.parse_rss, accept=ACCEPT_FEED),
        Adapter("json-board-generic", json_default.parse_job_board, accept=ACCEPT_JSON),
        Adapter(
            "remote-board-json",
            remote_board.parse_remote_board,
            accept=ACCEPT_JSON,
            locate=remote_board.api_url,
        ),
        Adapter("aggregator-news-json", json_feeds.parse_news_hits, accept=ACCEPT_JSON),
        Adapter("community-json", json_feeds.parse_community_posts, accept=ACCEPT_JSON),
        Adapter("generic-json", json_default.parse_json, accept=ACCEPT_JSON),
        Adapter("generic-html", html_default.parse_html),
        # 社交平台
        Adapter("linkedin", social.parse_linkedin),
        Adapter("twitter", social.twitter_parser(kw.get("twitter")), locate=social.twitter_url),
        Adapter("facebook", social.facebook_parser(kw.get("facebook"))),
        Adapter("instagram", social.instagram_parser(kw.get("instagram")), locate=social.instagram_url),
        Adapter(
            "discord",
            social.discord_parser(kw.get("channels")),
            accept=ACCEPT_JSON,
            locate=social.discord_url,
            headers=social.discord_headers,
        ),
        Adapter("telegram", social.parse_telegram, locate=social.telegram_url),
        Adapter("medium", rss_default.parse_rss, accept=ACCEPT_FEED, locate=social.medium_url),
        Adapter("social", social.parse_generic_social, max_items=social.GENERIC_SOCIAL_LIMIT),
    ]
    return {a.format: a for a in adapters}


ADAPTERS: Dict[str, Adapter] = build_adapters()


def resolve_adapter(source: DataSource, adapters: Mapping[str, Adapter] = ADAPTERS) -> Optional[Adapter]:
    """
    先看是不是社交平台（按 category 或名称），再按 format 分派。
    找不到返回 None。
    """
    platform = social.detect_platform(source)
    if platform is not None:
        return adapters.get(platform) or adapters.get("social")
    return adapters.get((source.format or "").strip().lower())


__all__ = ["ADAPTERS", "Adapter", "MAX_ITEMS_PER_SOURCE", "build_adapters", "resolve_adapter"]
