# -*- coding: utf-8 -*-
"""
http.py
HTTP 抓取边界：只提供“GET 一个 URL，拿回状态码和正文，遵守超时”这一件事。
适配器只依赖 HttpFetcher.get_text，不直接碰 httpx 的 API。
"""

from __future__ import annotations

from dataclasses import dataclass
from types import TracebackType
from typing import Mapping, Optional

import httpx

from .config import FetchProfile
from .errors import FetchError


@dataclass(frozen=True)
class FetchResponse:
    url: str
    status_code: int
    text: str
    content_type: Optional[str] = None


class HttpFetcher:
    """
    一个抓取策略对应一个 HttpFetcher（复用同一个 AsyncClient，避免频繁建连）。
    enhanced 策略的重试放在传输层（httpx.AsyncHTTPTransport(retries=N)），
    只对连接失败生效，不跨适配器重试。
    """

    def __init__(self, profile: FetchProfile, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.profile = profile
        if transport is None:
            transport = httpx.AsyncHTTPTransport(retries=profile.retries)
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(profile.timeout_sec),
            headers=dict(profile.headers),
            follow_redirects=True,
            transport=transport,
        )

    async def get_text(
        self,
        url: str,
        *,
        accept: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> FetchResponse:
        req_headers = dict(headers or {})
        if accept:
            req_headers["Accept"] = accept

        try:
            resp = await self._client.get(url, headers=req_headers)
        except httpx.TimeoutException as e:
            raise FetchError(url, None, f"timeout fetching {url}: {e!r}") from e
        except httpx.HTTPError as e:
            raise FetchError(url, None, f"HTTP transport error for {url}: {e!r}") from e

        if not 200 <= resp.status_code < 300:
            raise FetchError(url, resp.status_code, f"HTTP {resp.status_code} for {url}")

        return FetchResponse(
            url=str(resp.url),
            status_code=resp.status_code,
            text=resp.text,
            content_type=resp.headers.get("Content-Type"),
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpFetcher":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()
