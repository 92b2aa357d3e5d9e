# -*- coding: utf-8 -*-
"""
tests/test_http.py
HttpFetcher：返回正文；非 2xx、连接失败都抛 FetchError；Accept 和自定义头会带上。
"""

import asyncio

import httpx
import pytest

from opphub.config import FetchProfile
from opphub.errors import FetchError
from opphub.http import HttpFetcher

PROFILE = FetchProfile(name="test", timeout_sec=2.0, retries=0, batch_size=5, headers={"User-Agent": "opphub-test"})


def fetch(handler, url, **kw):
    async def run():
        async with HttpFetcher(PROFILE, httpx.MockTransport(handler)) as http:
            return await http.get_text(url, **kw)

    return asyncio.run(run())


def test_get_text_sends_headers():
    seen = {}

    def handler(request):
        seen.update(request.headers)
        return httpx.Response(200, text="ok", headers={"Content-Type": "text/plain"})

    resp = fetch(handler, "https://x.example/feed", accept="application/json", headers={"Authorization": "Bot t"})
    assert resp.status_code == 200
    assert resp.text == "ok"
    assert resp.content_type == "text/plain"
    assert seen["accept"] == "application/json"
    assert seen["authorization"] == "Bot t"
    assert seen["user-agent"] == "opphub-test"


def test_non_2xx_raises_fetch_error():
    def handler(request):
        return httpx.Response(503, text="busy")

    with pytest.raises(FetchError) as exc:
        fetch(handler, "https://x.example/down")
    assert exc.value.status_code == 503
    assert exc.value.url == "https://x.example/down"


def test_transport_error_raises_fetch_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(FetchError) as exc:
        fetch(handler, "https://x.example/refused")
    assert exc.value.status_code is None


def test_redirects_are_followed():
    def handler(request):
        if request.url.path == "/old":
            return httpx.Response(301, headers={"Location": "https://x.example/new"})
        return httpx.Response(200, text="moved here")

    resp = fetch(handler, "https://x.example/old")
    assert resp.text == "moved here"
    assert resp.url == "https://x.example/new"
