# -*- coding: utf-8 -*-
"""
tests/test_cache.py
缓存网关：TTL 内命中原样返回、过期后重新抓取、只缓存成功且非空的结果、
存储层出错按未命中处理。
"""

import asyncio

from opphub.cache import CacheGateway, MemoryCacheStore
from opphub.models import FetchOutcome


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class BrokenStore:
    async def get(self, key):
        raise ConnectionError("store down")

    async def set(self, key, value, ttl_sec):
        raise ConnectionError("store down")


class CountingLoader:
    def __init__(self, outcome):
        self.outcome = outcome
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        return self.outcome


def test_cache_key_format(make_source):
    gw = CacheGateway(MemoryCacheStore(), schema_version="v3")
    assert gw.cache_key(make_source(name="Remotive"), "enhanced") == "opportunity:enhanced:Remotive:v3"


def test_hit_within_ttl_returns_identical_records(make_source, make_record):
    clock = FakeClock()
    gw = CacheGateway(MemoryCacheStore(clock), ttl_sec=600)
    src = make_source()
    records = [make_record("A"), make_record("B")]
    loader = CountingLoader(FetchOutcome.succeeded(src.name, records))

    async def run():
        first = await gw.fetch(src, "baseline", loader)
        clock.now += 599
        second = await gw.fetch(src, "baseline", loader)
        return first, second

    first, second = asyncio.run(run())
    assert loader.calls == 1
    assert not first.from_cache
    assert second.from_cache
    assert list(second.records) == records


def test_expired_entry_is_refetched(make_source, make_record):
    clock = FakeClock()
    gw = CacheGateway(MemoryCacheStore(clock), ttl_sec=600)
    src = make_source()
    loader = CountingLoader(FetchOutcome.succeeded(src.name, [make_record("A")]))

    async def run():
        await gw.fetch(src, "baseline", loader)
        clock.now += 601
        return await gw.fetch(src, "baseline", loader)

    again = asyncio.run(run())
    assert loader.calls == 2
    assert not again.from_cache


def test_profiles_do_not_share_entries(make_source, make_record):
    gw = CacheGateway(MemoryCacheStore())
    src = make_source()
    loader = CountingLoader(FetchOutcome.succeeded(src.name, [make_record("A")]))

    async def run():
        await gw.fetch(src, "baseline", loader)
        await gw.fetch(src, "enhanced", loader)

    asyncio.run(run())
    assert loader.calls == 2


def test_empty_and_failed_results_are_not_cached(make_source):
    store = MemoryCacheStore()
    gw = CacheGateway(store)
    src = make_source()
    empty = CountingLoader(FetchOutcome.succeeded(src.name, []))
    failed = CountingLoader(FetchOutcome.failed(src.name, "HTTP 503"))

    async def run():
        await gw.fetch(src, "baseline", empty)
        await gw.fetch(src, "baseline", empty)
        await gw.fetch(src, "enhanced", failed)
        return await gw.fetch(src, "enhanced", failed)

    last = asyncio.run(run())
    assert empty.calls == 2
    assert failed.calls == 2
    assert not last.ok
    assert len(store) == 0


def test_store_errors_degrade_to_miss(make_source, make_record):
    gw = CacheGateway(BrokenStore())
    src = make_source()
    loader = CountingLoader(FetchOutcome.succeeded(src.name, [make_record("A")]))

    outcome = asyncio.run(gw.fetch(src, "baseline", loader))
    assert outcome.ok
    assert loader.calls == 1
    assert [r.title for r in outcome.records] == ["A"]


def test_refetch_after_expiry_with_empty_upstream(make_source, make_record):
    clock = FakeClock()
    store = MemoryCacheStore(clock)
    gw = CacheGateway(store, ttl_sec=600)
    src = make_source()
    loader = CountingLoader(FetchOutcome.succeeded(src.name, [make_record("A")]))

    async def run():
        await gw.fetch(src, "baseline", loader)
        clock.now += 601
        loader.outcome = FetchOutcome.succeeded(src.name, [])
        return await gw.fetch(src, "baseline", loader)

    again = asyncio.run(run())
    assert loader.calls == 2
    assert again.ok
    assert not again.from_cache
    assert list(again.records) == []


class HangingStore:
    """读写都永远不返回。"""

    async def get(self, key):
        await asyncio.Event().wait()

    async def set(self, key, value, ttl_sec):
        await asyncio.Event().wait()


def test_hanging_store_degrades_to_miss(make_source, make_record):
    gw = CacheGateway(HangingStore(), op_timeout_sec=0.1)
    src = make_source()
    loader = CountingLoader(FetchOutcome.succeeded(src.name, [make_record("A")]))

    async def run():
        return await asyncio.wait_for(gw.fetch(src, "baseline", loader), timeout=2)

    outcome = asyncio.run(run())
    assert outcome.ok
    assert not outcome.from_cache
    assert loader.calls == 1
    assert [r.title for r in outcome.records] == ["A"]
