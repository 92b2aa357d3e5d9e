# -*- coding: utf-8 -*-
"""
cache.py
按数据源缓存抓取结果，避免短时间内重复打上游。

键：opportunity:<抓取策略>:<数据源名>:<schema 版本>
- 命中：原样返回缓存的记录，不再调用适配器
- 未命中：调用适配器；只有“成功且非空”的结果才写回（空结果和失败都不缓存）
- 存储层出错或超时：记日志，按未命中处理（写入出错则跳过写入）；缓存永远不会无限期卡住一次抓取
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Tuple

from .models import DataSource, FetchOutcome, Record

DEFAULT_TTL_SEC = 600
DEFAULT_OP_TIMEOUT_SEC = 1.0
KEY_PREFIX = "opportunity"

Loader = Callable[[], Awaitable[FetchOutcome]]


class CacheStore(Protocol):
    async def get(self, key: str) -> Optional[List[Dict[str, Any]]]:
        ...

    async def set(self, key: str, value: List[Dict[str, Any]], ttl_sec: int) -> None:
        ...


class MemoryCacheStore:
    """进程内缓存。clock 可注入，测试里用假时钟验证过期。"""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._data: Dict[str, Tuple[float, List[Dict[str, Any]]]] = {}

    async def get(self, key: str) -> Optional[List[Dict[str, Any]]]:
        hit = self._data.get(key)
        if hit is None:
            return None
        expires_at, value = hit
        if self._clock() >= expires_at:
            self._data.pop(key, None)
            return None
        return value

    async def set(self, key: str, value: List[Dict[str, Any]], ttl_sec: int) -> None:
        self._data[key] = (self._clock() + ttl_sec, list(value))

    def __len__(self) -> int:
        return len(self._data)


class CacheGateway:
    def __init__(
        self,
        store: CacheStore,
        ttl_sec: int = DEFAULT_TTL_SEC,
        schema_version: str = "v3",
        logger: Optional[logging.Logger] = None,
        op_timeout_sec: float = DEFAULT_OP_TIMEOUT_SEC,
    ):
        self.store = store
        self.ttl_sec = int(ttl_sec)
        self.op_timeout_sec = float(op_timeout_sec)
        self.schema_version = schema_version
        self.log = logger or logging.getLogger(__name__)

    def cache_key(self, source: DataSource, profile: str) -> str:
        return f"{KEY_PREFIX}:{profile}:{source.name}:{self.schema_version}"

    async def fetch(self, source: DataSource, profile: str, loader: Loader) -> FetchOutcome:
        key = self.cache_key(source, profile)

        cached = None
        try:
            cached = await asyncio.wait_for(self.store.get(key), timeout=self.op_timeout_sec)
        except asyncio.TimeoutError:
            self.log.warning("[cache] 读取超时 %s (%ss)，按未命中处理", key, self.op_timeout_sec)
        except Exception as e:
            self.log.warning("[cache] 读取失败 %s: %r，按未命中处理", key, e)

        if cached is not None:
            try:
                records = [Record.from_dict(d) for d in cached]
            except (KeyError, TypeError) as e:
                self.log.warning("[cache] 缓存内容损坏 %s: %r，重新抓取", key, e)
            else:
                self.log.debug("[cache] 命中 %s (%d 条)", key, len(records))
                return FetchOutcome.succeeded(source.name, records, from_cache=True)

        outcome = await loader()

        if outcome.ok and outcome.records:
            try:
                await asyncio.wait_for(
                    self.store.set(key, [r.as_dict() for r in outcome.records], self.ttl_sec),
                    timeout=self.op_timeout_sec,
                )
            except asyncio.TimeoutError:
                self.log.warning("[cache] 写入超时 %s (%ss)，跳过写入", key, self.op_timeout_sec)
            except Exception as e:
                self.log.warning("[cache] 写入失败 %s: %r", key, e)

        return outcome
