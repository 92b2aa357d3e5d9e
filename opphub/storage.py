# -*- coding: utf-8 -*-
"""
storage.py
SQLite（aiosqlite）缓存存储，实现 CacheStore 的 get/set：
- 初始化/建表
- 写入（upsert，同键覆盖）
- 读取时忽略已过期的条目
- 清理过期
值是 Record 字典列表，按 JSON 存。
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import aiosqlite

from .utils import now_ms

SCHEMA_CACHE = """
CREATE TABLE IF NOT EXISTS source_cache (
    cache_key       TEXT PRIMARY KEY,
    payload         TEXT NOT NULL,
    stored_at_ms    INTEGER NOT NULL,
    expires_at_ms   INTEGER NOT NULL
);
"""

SCHEMA_IDX = "CREATE INDEX IF NOT EXISTS idx_cache_expires ON source_cache(expires_at_ms);"


async def init_db(db_path: Union[str, Path]) -> aiosqlite.Connection:
    p = Path(db_path)
    p.parent.mkdir(parents=True, exist_ok=True)
    db = await aiosqlite.connect(str(p))
    await db.execute("PRAGMA journal_mode=WAL;")
    await db.execute("PRAGMA synchronous=NORMAL;")
    await db.execute(SCHEMA_CACHE)
    await db.execute(SCHEMA_IDX)
    await db.commit()
    return db


class SqliteCacheStore:
    """
    连接在第一次 get/set 时懒加载（并发首次使用也只建一个连接）；用完调用 close()。
    clock 返回毫秒时间戳，可注入。
    """

    def __init__(self, db_path: Union[str, Path], clock=now_ms):
        self.db_path = db_path
        self._clock = clock
        self._db: Optional[aiosqlite.Connection] = None
        self._lock: Optional[asyncio.Lock] = None

    async def _conn(self) -> aiosqlite.Connection:
        if self._db is not None:
            return self._db
        # 锁在当前运行的事件循环里创建
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            if self._db is None:
                self._db = await init_db(self.db_path)
        return self._db

    async def get(self, key: str) -> Optional[List[Dict[str, Any]]]:
        db = await self._conn()
        sql = "SELECT payload FROM source_cache WHERE cache_key = ? AND expires_at_ms > ?;"
        async with db.execute(sql, (key, int(self._clock()))) as cur:
            row = await cur.fetchone()
        if row is None:
            return None
        return json.loads(row[0])

    async def set(self, key: str, value: List[Dict[str, Any]], ttl_sec: int) -> None:
        db = await self._conn()
        now = int(self._clock())
        sql = """
        INSERT INTO source_cache(cache_key, payload, stored_at_ms, expires_at_ms)
        VALUES(?,?,?,?)
        ON CONFLICT(cache_key) DO UPDATE SET
            payload       = excluded.payload,
            stored_at_ms  = excluded.stored_at_ms,
            expires_at_ms = excluded.expires_at_ms
        """
        payload = json.dumps(value, ensure_ascii=False)
        await db.execute(sql, (key, payload, now, now + int(ttl_sec) * 1000))
        await db.commit()

    async def purge_expired(self) -> int:
        """删除已过期的条目，返回删除条数。"""
        db = await self._conn()
        cur = await db.execute("DELETE FROM source_cache WHERE expires_at_ms <= ?;", (int(self._clock()),))
        await db.commit()
        return cur.rowcount

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None
        self._lock = None
