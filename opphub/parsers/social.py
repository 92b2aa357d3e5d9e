# -*- coding: utf-8 -*-
"""
social.py
社交平台来源。多数平台不能直接抓，走公开镜像：
- twitter  -> nitter.net
- instagram -> picuki 标签页
- telegram -> t.me/s/<channel> 网页预览
- medium   -> /latest 换成 /feed，按 RSS 解析
- discord  -> 只支持 webhook 地址，带 DISCORD_BOT_TOKEN

时间线类平台（twitter/facebook/instagram）只保留命中招聘关键词的帖子；
discord 只保留指定频道名的消息。关键词来自 keywords.yml 的 social_keywords。
"""

from __future__ import annotations

import json
import os
import re
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from bs4 import BeautifulSoup

from ..models import DataSource, Record
from ..utils import absolute_link, make_record, shorten

ParseFn = Callable[[str, DataSource], List[Record]]

TITLE_LIMIT = 100
GENERIC_SOCIAL_LIMIT = 20

SOCIAL_PLATFORMS = ["linkedin", "twitter", "facebook", "instagram", "discord", "telegram", "medium"]

DEFAULT_SOCIAL_KEYWORDS: Dict[str, List[str]] = {
    "linkedin": [
        "we are hiring", "join our team", "open position", "looking for", "opportunity",
        "apply now", "#hiring", "#remotework", "#techjobs", "competitive salary", "great benefits",
    ],
    "twitter": [
        "#hiring", "#remotework", "#techjobs", "#frontend", "#javascript", "#react", "#vue",
        "#typescript", "#100kclub", "#sixfigures", "#startup", "#web3jobs",
    ],
    "instagram": [
        "#remotework", "#digitalnomad", "#workfromanywhere", "#techjobs", "#hiring",
        "#frontenddeveloper", "#startuplife", "#entrepreneurship",
    ],
    "facebook": [
        "hiring", "looking for", "remote position", "frontend developer needed",
        "react developer", "competitive pay", "immediate start",
    ],
    "channels": ["jobs", "job-board", "hiring", "opportunities", "gigs", "freelance", "remote-work", "career"],
}


def detect_platform(source: DataSource) -> Optional[str]:
    """
    返回社交平台标识；普通来源返回 None。
    依据：category，其次 format，最后看名称里是否带平台名。
    category 写了但不在已知平台里（例如 "Social"），走通用卡片解析。
    """
    category = (source.category or "").strip().lower()
    if category in SOCIAL_PLATFORMS:
        return category

    fmt = (source.format or "").strip().lower()
    if fmt in SOCIAL_PLATFORMS or fmt == "social":
        return fmt

    name = source.name.lower()
    for p in SOCIAL_PLATFORMS:
        if p in name:
            return p

    if category == "social":
        return "social"
    return None


def has_keyword(content: str, keywords: Optional[Sequence[str]]) -> bool:
    lower = content.lower()
    return any(k.lower() in lower for k in keywords or [])


def post_title(content: str) -> str:
    return shorten(content, TITLE_LIMIT)


def _text(el, selector: str) -> str:
    found = el.select_one(selector)
    return found.get_text(" ", strip=True) if found else ""


# -------------------- URL / 请求头 --------------------

def twitter_url(source: DataSource) -> Optional[str]:
    return source.url.replace("twitter.com", "nitter.net").replace("://x.com", "://nitter.net")


def instagram_url(source: DataSource) -> Optional[str]:
    m = re.search(r"tags/([^/?#]+)", source.url)
    if not m:
        return None
    return f"https://www.picuki.com/tag/{m.group(1)}"


def telegram_url(source: DataSource) -> Optional[str]:
    m = re.search(r"t\.me/(?:s/)?([^/?#]+)", source.url)
    if not m:
        return None
    return f"https://t.me/s/{m.group(1)}"


def medium_url(source: DataSource) -> Optional[str]:
    return source.url.replace("/latest", "/feed")


def discord_url(source: DataSource) -> Optional[str]:
    # 没有 webhook 地址就无从抓取
    if "discord.com/api/webhooks" not in source.url:
        return None
    return source.url


def discord_headers(source: DataSource) -> Mapping[str, str]:
    token = os.getenv("DISCORD_BOT_TOKEN", "")
    return {"Authorization": f"Bot {token}"} if token else {}


# -------------------- 解析 --------------------

def parse_linkedin(text: str, source: DataSource) -> List[Record]:
    soup = BeautifulSoup(text, "html.parser")
    events: List[Record] = []
    for el in soup.select(".jobs-search__results-list li, .job-card-container"):
        title = _text(el, ".base-search-card__title, .job-card-container__link")
        company = _text(el, ".base-search-card__subtitle, .job-card-container__company-name")
        location = _text(el, ".job-search-card__location, .job-card-container__metadata-item")
        salary = _text(el, ".job-card-container__salary-info")
        anchor = el.select_one("a[href]")

        rec = make_record(
            source,
            title=f"{company} - {title}" if company and title else title,
            link=absolute_link(anchor.get("href") if anchor else "", "https://www.linkedin.com"),
            summary=_text(el, ".base-search-card__snippet"),
            author=company,
            meta=" ".join(p for p in (location, salary) if p),
            salary_text=salary,
        )
        if rec is not None:
            events.append(rec)
    return events


def twitter_parser(keywords: Optional[Sequence[str]]) -> ParseFn:
    def parse_twitter(text: str, source: DataSource) -> List[Record]:
        soup = BeautifulSoup(text, "html.parser")
        events: List[Record] = []
        for el in soup.select(".timeline-item"):
            content = _text(el, ".tweet-content")
            if not content or not has_keyword(content, keywords):
                continue
            author = _text(el, ".username")
            link_el = el.select_one(".tweet-link")
            date_el = el.select_one(".tweet-date a") or el.select_one(".tweet-date")
            posted = date_el.get("title", "") if date_el else ""

            rec = make_record(
                source,
                title=post_title(content),
                link=absolute_link(link_el.get("href") if link_el else "", "https://twitter.com"),
                summary=content,
                author=author,
                meta=f"{author} • {posted}",
                timestamp=posted or None,
            )
            if rec is not None:
                events.append(rec)
        return events

    return parse_twitter


def facebook_parser(keywords: Optional[Sequence[str]]) -> ParseFn:
    def parse_facebook(text: str, source: DataSource) -> List[Record]:
        soup = BeautifulSoup(text, "html.parser")
        events: List[Record] = []
        for el in soup.select(".userContentWrapper, div[role=article]"):
            content = _text(el, ".userContent, div[data-ad-preview=message]")
            if not content or not has_keyword(content, keywords):
                continue
            author = _text(el, "h5 a, strong")
            link_el = el.select_one('a[href*="/groups/"]')

            rec = make_record(
                source,
                title=post_title(content),
                link=absolute_link(link_el.get("href") if link_el else "", "https://www.facebook.com"),
                summary=content,
                author=author,
                meta=f"{author} • Facebook Group",
            )
            if rec is not None:
                events.append(rec)
        return events

    return parse_facebook


def instagram_parser(keywords: Optional[Sequence[str]]) -> ParseFn:
    def parse_instagram(text: str, source: DataSource) -> List[Record]:
        soup = BeautifulSoup(text, "html.parser")
        events: List[Record] = []
        for el in soup.select(".box-photo"):
            content = _text(el, ".photo-description")
            if not content or not has_keyword(content, keywords):
                continue
            author = _text(el, ".photo-username")
            link_el = el.select_one("a[href]")

            rec = make_record(
                source,
                title=post_title(content),
                link=(link_el.get("href") if link_el else "") or source.url,
                summary=content,
                author=author,
                meta=f"@{author} • Instagram",
            )
            if rec is not None:
                events.append(rec)
        return events

    return parse_instagram


def discord_parser(channels: Optional[Sequence[str]]) -> ParseFn:
    def parse_discord(text: str, source: DataSource) -> List[Record]:
        messages = json.loads(text)
        if not isinstance(messages, list):
            raise ValueError("expected a JSON array of messages")

        events: List[Record] = []
        for msg in messages:
            if not isinstance(msg, dict) or not msg.get("content"):
                continue
            channel = str(msg.get("channel_name") or "")
            if not any(ch in channel for ch in channels or []):
                continue
            username = (msg.get("author") or {}).get("username") or "Unknown"

            rec = make_record(
                source,
                title=post_title(msg["content"]),
                link=source.url,
                summary=msg["content"],
                author=username,
                meta=f"{username} • Discord",
                timestamp=msg.get("timestamp"),
            )
            if rec is not None:
                events.append(rec)
        return events

    return parse_discord


def parse_telegram(text: str, source: DataSource) -> List[Record]:
    soup = BeautifulSoup(text, "html.parser")
    m = re.search(r"t\.me/(?:s/)?([^/?#]+)", source.url)
    channel = m.group(1) if m else ""

    events: List[Record] = []
    for el in soup.select(".tgme_widget_message"):
        content = _text(el, ".tgme_widget_message_text")
        if not content:
            continue
        author = _text(el, ".tgme_widget_message_owner_name") or channel
        date_el = el.select_one(".tgme_widget_message_date")
        time_el = el.select_one(".tgme_widget_message_date time")

        rec = make_record(
            source,
            title=post_title(content),
            link=(date_el.get("href") if date_el else "") or source.url,
            summary=content,
            author=author,
            meta=f"{author} • Telegram",
            timestamp=time_el.get("datetime") if time_el else None,
        )
        if rec is not None:
            events.append(rec)
    return events


def parse_generic_social(text: str, source: DataSource) -> List[Record]:
    """无专用解析的社交来源：按常见卡片结构兜底，链接缺失时用来源地址。"""
    soup = BeautifulSoup(text, "html.parser")
    events: List[Record] = []
    for el in soup.select("article, .post, .item, .card"):
        title = _text(el, "h1, h2, h3, .title")
        content = _text(el, "p, .content, .description")
        if not title and not content:
            continue
        anchor = el.select_one("a[href]")

        rec = make_record(
            source,
            title=title or post_title(content),
            link=absolute_link(anchor.get("href") if anchor else "", source.url) or source.url,
            summary=content,
            meta=source.name,
        )
        if rec is not None:
            events.append(rec)
    return events
