# -*- coding: utf-8 -*-
"""
collector.py
批量抓取：把一组数据源按 batch_size 分组，组与组并发、组内成员也并发。
每个数据源独立超时、独立失败，互不影响；这里不做重试（重试在传输层）。
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence

from .cache import CacheGateway
from .config import FetchProfile
from .http import HttpFetcher
from .models import DataSource, FetchOutcome, Record
from .parsers import ADAPTERS, Adapter, resolve_adapter


@dataclass(frozen=True)
class CollectStats:
    sources: int
    ok: int
    failed: int
    cached: int
    records: int

    @classmethod
    def from_outcomes(cls, outcomes: Sequence[FetchOutcome]) -> "CollectStats":
        return cls(
            sources=len(outcomes),
            ok=sum(1 for o in outcomes if o.ok),
            failed=sum(1 for o in outcomes if not o.ok),
            cached=sum(1 for o in outcomes if o.from_cache),
            records=sum(len(o.records) for o in outcomes),
        )


def chunked(items: Sequence[DataSource], size: int) -> List[List[DataSource]]:
    size = max(1, int(size))
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


class BatchCollector:
    def __init__(
        self,
        http: HttpFetcher,
        gateway: CacheGateway,
        profile: FetchProfile,
        adapters: Mapping[str, Adapter] = ADAPTERS,
        logger: Optional[logging.Logger] = None,
    ):
        self.http = http
        self.gateway = gateway
        self.profile = profile
        self.adapters = adapters
        self.log = logger or logging.getLogger(__name__)

    async def _fetch_one(self, source: DataSource) -> FetchOutcome:
        adapter = resolve_adapter(source, self.adapters)
        if adapter is None:
            self.log.warning("[collector] %s: unsupported format %r", source.name, source.format)
            return FetchOutcome.failed(source.name, f"unsupported format: {source.format}")

        async def load() -> FetchOutcome:
            try:
                return await asyncio.wait_for(adapter.run(source, self.http), timeout=self.profile.timeout_sec)
            except asyncio.TimeoutError:
                self.log.info("[collector] %s 超时 (%ss)", source.name, self.profile.timeout_sec)
                return FetchOutcome.failed(source.name, f"timeout after {self.profile.timeout_sec}s")

        try:
            return await self.gateway.fetch(source, self.profile.name, load)
        except Exception as e:
            self.log.error("[collector] %s 异常: %r", source.name, e)
            return FetchOutcome.failed(source.name, f"{type(e).__name__}: {e}")

    async def _run_group(self, group: List[DataSource]) -> List[FetchOutcome]:
        return list(await asyncio.gather(*(self._fetch_one(s) for s in group)))

    async def collect_outcomes(self, sources: Sequence[DataSource]) -> List[FetchOutcome]:
        if not sources:
            return []
        groups = chunked(sources, self.profile.batch_size)
        results = await asyncio.gather(*(self._run_group(g) for g in groups))

        outcomes = [o for group in results for o in group]
        stats = CollectStats.from_outcomes(outcomes)
        self.log.info(
            "[collector] %s: %d 个数据源，成功 %d，失败 %d，缓存命中 %d，共 %d 条",
            self.profile.name,
            stats.sources,
            stats.ok,
            stats.failed,
            stats.cached,
            stats.records,
        )
        return outcomes

    async def collect(self, sources: Sequence[DataSource]) -> List[Record]:
        outcomes = await self.collect_outcomes(sources)
        return [r for o in outcomes if o.ok for r in o.records]
