# -*- coding: utf-8 -*-
"""
main.py
串起一次完整的抓取周期：
    选源 -> 分流（baseline / enhanced 并发）-> 去重 -> 分类 -> 排序 -> 截断

命令行：
    python -m opphub.main --kind all --limit 200 --region CN --out result.json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import httpx

from .cache import CacheGateway, CacheStore, MemoryCacheStore
from .collector import BatchCollector
from .config import ROOT, ClassifierConfig, FetchProfile, load_cfg, load_classifier_config, load_sources
from .errors import OpportunityHubError
from .http import HttpFetcher
from .models import DataSource, Record, records_to_dicts
from .parsers import build_adapters
from .scorer import classify, deduplicate, sort_by_date
from .storage import SqliteCacheStore
from .utils import name_in, now_iso

logger = logging.getLogger("opphub")

KINDS = ("all", "jobs", "ideas")


@dataclass
class CycleResult:
    jobs: List[Record] = field(default_factory=list)
    ideas: List[Record] = field(default_factory=list)
    total: int = 0
    sources_used: int = 0
    failed_sources: List[str] = field(default_factory=list)

    def as_dict(self, kind: str = "all", region: Optional[str] = None) -> Dict[str, Any]:
        return {
            "count": self.total,
            "jobs": records_to_dicts(self.jobs),
            "ideas": records_to_dicts(self.ideas),
            "metadata": {
                "total_sources": self.sources_used,
                "failed_sources": list(self.failed_sources),
                "kind": kind,
                "region": region or "all",
                "timestamp": now_iso(),
            },
        }


# -------------------- 选源 / 分流 --------------------

def select_sources(
    sources: Sequence[DataSource],
    cfg: Mapping[str, Any],
    kind: str = "all",
    region: Optional[str] = None,
) -> List[DataSource]:
    """按类型、地区筛选；优先源排在前面；总数不超过 max_sources。"""
    routing = cfg["routing"]
    picked = list(sources)
    if kind == "jobs":
        picked = [s for s in picked if s.type == "job"]
    elif kind == "ideas":
        picked = [s for s in picked if s.type == "idea"]
    if region:
        picked = [s for s in picked if s.region == region]

    priority = routing.get("priority_sources") or []
    first = [s for s in picked if name_in(s.name, priority)]
    rest = [s for s in picked if not name_in(s.name, priority)]
    return (first + rest)[: int(routing.get("max_sources", 100))]


def split_by_profile(
    sources: Sequence[DataSource], cfg: Mapping[str, Any]
) -> Tuple[List[DataSource], List[DataSource]]:
    """返回 (baseline, enhanced)。国内地区和带特定名称的源走 baseline。"""
    routing = cfg["routing"]
    regions = set(routing.get("baseline_regions") or [])
    markers = routing.get("baseline_markers") or []

    baseline, enhanced = [], []
    for s in sources:
        if s.region in regions or name_in(s.name, markers):
            baseline.append(s)
        else:
            enhanced.append(s)
    return baseline, enhanced


def build_store(cfg: Mapping[str, Any]) -> CacheStore:
    cache_cfg = cfg["cache"]
    backend = str(cache_cfg.get("backend") or "memory").lower()
    if backend == "sqlite":
        p = Path(cache_cfg.get("path") or "cache.db")
        if not p.is_absolute():
            p = ROOT / p
        return SqliteCacheStore(p)
    if backend != "memory":
        logger.warning("[main] 未知缓存后端 %r，改用 memory", backend)
    return MemoryCacheStore()


# -------------------- 一次周期 --------------------

def _pick_results(
    unique: List[Record], jobs: List[Record], ideas: List[Record], kind: str, fallback: bool
) -> List[Record]:
    if kind == "jobs":
        items = jobs
        if not items and fallback:
            items = [r for r in unique if r.type == "job"]
    elif kind == "ideas":
        items = ideas
        if not items and fallback:
            items = [r for r in unique if r.type == "idea"]
    else:
        items = jobs + ideas
        # 筛完太少时退回未筛选的全部记录
        if fallback and len(items) <= 5:
            items = unique
    return items


async def run_cycle(
    sources: Sequence[DataSource],
    classifier: ClassifierConfig,
    *,
    kind: str = "all",
    region: Optional[str] = None,
    limit: Optional[int] = None,
    cfg: Optional[Dict[str, Any]] = None,
    store: Optional[CacheStore] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> CycleResult:
    if kind not in KINDS:
        raise ValueError(f"kind must be one of {KINDS}, got {kind!r}")
    cfg = cfg or load_cfg()
    out_cfg = cfg["output"]

    max_limit = int(out_cfg.get("max_limit", 500))
    if limit is None:
        limit = int(out_cfg.get("default_limit", 200))
    limit = max(0, min(int(limit), max_limit))

    chosen = select_sources(sources, cfg, kind, region)
    baseline_sources, enhanced_sources = split_by_profile(chosen, cfg)
    logger.info(
        "[main] 数据源 %d 个（baseline %d / enhanced %d）",
        len(chosen), len(baseline_sources), len(enhanced_sources),
    )

    gateway = CacheGateway(
        store if store is not None else MemoryCacheStore(),
        ttl_sec=int(cfg["cache"]["ttl_seconds"]),
        schema_version=str(cfg.get("schema_version", "v3")),
        logger=logging.getLogger("opphub.cache"),
        op_timeout_sec=float(cfg["cache"].get("op_timeout_sec", 1.0)),
    )
    adapters = build_adapters(classifier.social_keywords)

    baseline = FetchProfile.from_cfg("baseline", cfg)
    enhanced = FetchProfile.from_cfg("enhanced", cfg)

    async with HttpFetcher(baseline, transport) as http_b, HttpFetcher(enhanced, transport) as http_e:
        col_b = BatchCollector(http_b, gateway, baseline, adapters)
        col_e = BatchCollector(http_e, gateway, enhanced, adapters)
        outcomes_b, outcomes_e = await asyncio.gather(
            col_b.collect_outcomes(baseline_sources),
            col_e.collect_outcomes(enhanced_sources),
        )

    outcomes = list(outcomes_b) + list(outcomes_e)
    failed = [o.source_name for o in outcomes if not o.ok]
    records = [r for o in outcomes if o.ok for r in o.records]

    unique = deduplicate(records)
    result = classify(unique, classifier)
    items = _pick_results(unique, result.jobs, result.ideas, kind, bool(out_cfg.get("fallback_when_empty")))
    items = sort_by_date(items, desc=True)[:limit]

    return CycleResult(
        jobs=[r for r in items if r.type == "job"],
        ideas=[r for r in items if r.type == "idea"],
        total=len(items),
        sources_used=len(chosen),
        failed_sources=failed,
    )


# -------------------- 命令行 --------------------

async def main(args: argparse.Namespace) -> Dict[str, Any]:
    cfg = load_cfg()
    classifier = load_classifier_config()
    sources = load_sources()

    store = build_store(cfg)
    try:
        result = await run_cycle(
            sources,
            classifier,
            kind=args.kind,
            region=args.region,
            limit=args.limit,
            cfg=cfg,
            store=store,
        )
    finally:
        if isinstance(store, SqliteCacheStore):
            await store.purge_expired()
            await store.close()

    logger.info(
        "[main] 完成：职位 %d，点子 %d，失败源 %d", len(result.jobs), len(result.ideas), len(result.failed_sources)
    )
    return result.as_dict(kind=args.kind, region=args.region)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="opphub", description="抓取并筛选远程职位和产品点子")
    parser.add_argument("--kind", choices=KINDS, default="all")
    parser.add_argument("--limit", type=int, default=None)
    parser.add_argument("--region", default=None)
    parser.add_argument("--out", default=None, help="输出 JSON 文件；缺省打印到 stdout")
    parser.add_argument("--log-level", default="INFO")
    return parser


def cli(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    try:
        payload = asyncio.run(main(args))
    except OpportunityHubError as e:
        logger.error("[main] %s", e)
        return 1

    text = json.dumps(payload, ensure_ascii=False, indent=2)
    if args.out:
        Path(args.out).write_text(text, encoding="utf-8")
        logger.info("[main] 已写入 %s", args.out)
    else:
        print(text)
    return 0


if __name__ == "__main__":
    sys.exit(cli())
