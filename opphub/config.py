# -*- coding: utf-8 -*-
"""
config.py
配置加载：
- ops/config.yml   运行参数（缓存、抓取策略、批大小、路由）
- ops/keywords.yml 分类策略（关键词、权重、薪资下限、阈值、平台名单）
- ops/sources.yml  数据源清单
所有数值都可以被环境变量覆盖，方便调参和测试。
"""

from __future__ import annotations

import copy
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .errors import ConfigError
from .models import DataSource
from .utils import KeywordMatcher

logger = logging.getLogger(__name__)

ROOT = Path(__file__).resolve().parents[1]


def config_dir() -> Path:
    override = os.getenv("OPPHUB_CONFIG_DIR")
    return Path(override) if override else ROOT / "ops"


# -------------------- 环境变量 --------------------

def int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("[config] %s=%r 不是整数，使用默认值 %s", name, raw, default)
        return default


def float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("[config] %s=%r 不是数字，使用默认值 %s", name, raw, default)
        return default


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping at top level")
    return data


# -------------------- 运行参数 --------------------

BROWSER_UA = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_CFG: Dict[str, Any] = {
    "schema_version": "v3",
    "cache": {
        "backend": "memory",  # memory / sqlite
        "path": "cache.db",
        "ttl_seconds": 600,
        "op_timeout_sec": 1.0,  # 单次读写缓存的超时，超时按未命中处理
    },
    "fetch": {
        "baseline": {
            "timeout_sec": 10.0,
            "retries": 0,
            "batch_size": 10,
            "headers": {"User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"},
        },
        "enhanced": {
            "timeout_sec": 20.0,
            "retries": 3,
            "batch_size": 5,
            "headers": {
                "User-Agent": BROWSER_UA,
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                "Accept-Language": "en-US,en;q=0.9,zh-CN;q=0.8,zh;q=0.7",
                "Cache-Control": "no-cache",
                "Pragma": "no-cache",
                "Sec-Fetch-Dest": "document",
                "Sec-Fetch-Mode": "navigate",
                "Sec-Fetch-Site": "none",
                "Upgrade-Insecure-Requests": "1",
                "Referer": "https://www.google.com/",
            },
        },
    },
    "routing": {
        # 这些地区/名称走 baseline，其余走 enhanced
        "baseline_regions": ["CN"],
        "baseline_markers": ["V2EX", "电鸭"],
        "priority_sources": [
            "V2EX", "RemoteOK", "Reddit", "Working Nomads",
            "HackerNews", "Product Hunt", "Dev.to", "Indie",
        ],
        "max_sources": 100,
    },
    "output": {
        "default_limit": 200,
        "max_limit": 500,
        "fallback_when_empty": False,
    },
}


def _merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in (override or {}).items():
        if isinstance(v, Mapping) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def load_cfg(path: Optional[Path] = None) -> Dict[str, Any]:
    """ops/config.yml 可选；不存在就用默认。环境变量最后覆盖。"""
    cfg_path = path or config_dir() / "config.yml"
    cfg = DEFAULT_CFG
    if cfg_path.exists():
        cfg = _merge(DEFAULT_CFG, _read_yaml(cfg_path))
    else:
        logger.info("[config] 未找到 %s，使用默认配置", cfg_path)

    cfg = copy.deepcopy(cfg)
    cfg["cache"]["ttl_seconds"] = int_env("OPPHUB_CACHE_TTL", int(cfg["cache"]["ttl_seconds"]))
    cfg["cache"]["op_timeout_sec"] = float_env(
        "OPPHUB_CACHE_OP_TIMEOUT", float(cfg["cache"]["op_timeout_sec"])
    )
    cfg["cache"]["backend"] = os.getenv("OPPHUB_CACHE_BACKEND", cfg["cache"]["backend"])
    cfg["cache"]["path"] = os.getenv("OPPHUB_CACHE_PATH", cfg["cache"]["path"])
    cfg["fetch"]["baseline"]["batch_size"] = int_env(
        "OPPHUB_BASELINE_BATCH_SIZE", int(cfg["fetch"]["baseline"]["batch_size"])
    )
    cfg["fetch"]["enhanced"]["batch_size"] = int_env(
        "OPPHUB_ENHANCED_BATCH_SIZE", int(cfg["fetch"]["enhanced"]["batch_size"])
    )
    return cfg


@dataclass(frozen=True)
class FetchProfile:
    """一种抓取策略。baseline 与 enhanced 对编排器来说可以互换。"""

    name: str
    timeout_sec: float
    retries: int
    batch_size: int
    headers: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_cfg(cls, name: str, cfg: Mapping[str, Any]) -> "FetchProfile":
        section = (cfg.get("fetch") or {}).get(name)
        if not section:
            raise ConfigError(f"fetch profile {name!r} is not configured")
        return cls(
            name=name,
            timeout_sec=float(section.get("timeout_sec", 10.0)),
            retries=max(0, int(section.get("retries", 0))),
            batch_size=max(1, int(section.get("batch_size", 5))),
            headers=dict(section.get("headers") or {}),
        )


BASELINE = FetchProfile.from_cfg("baseline", DEFAULT_CFG)
ENHANCED = FetchProfile.from_cfg("enhanced", DEFAULT_CFG)


# -------------------- 分类策略 --------------------

DEFAULT_WEIGHTS: Dict[str, float] = {
    "frontend": 2,
    "tech": 1,
    "remote": 2,
    "good_salary": 3,
    "high_salary_keyword": 2,
    "high_salary_platform": 2,
    "seniority": 1,
    "developer_role": 1,
}


@dataclass
class ClassifierConfig:
    """分类器的全部可调策略。关键词和平台名单都不写死在代码里。"""

    frontend_keywords: List[str] = field(default_factory=list)
    tech_keywords: List[str] = field(default_factory=list)
    remote_keywords: List[str] = field(default_factory=list)
    high_salary_keywords: List[str] = field(default_factory=list)
    seniority_keywords: List[str] = field(default_factory=list)
    developer_role_keywords: List[str] = field(default_factory=list)
    exclude_keywords: List[str] = field(default_factory=list)
    pain_point_keywords: List[str] = field(default_factory=list)

    salary_floor: float = 40000
    score_threshold: float = 1
    weights: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))

    # 默认远程的平台（整站都是远程职位）
    remote_platforms: List[str] = field(default_factory=list)
    # 薪资普遍较高的平台
    high_salary_platforms: List[str] = field(default_factory=list)
    # 无条件放行的平台
    trusted_platforms: List[str] = field(default_factory=list)
    # 只要有任一相关信号（远程/前端/技术）就放行的平台
    conditional_platforms: List[str] = field(default_factory=list)
    # 本身就是征集点子/痛点的版块
    idea_platforms: List[str] = field(default_factory=list)

    # 社交平台招聘关键词：平台名 -> 关键词列表
    social_keywords: Dict[str, List[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.weights = {**DEFAULT_WEIGHTS, **(self.weights or {})}
        self._matchers: Dict[str, KeywordMatcher] = {}

    def matcher(self, name: str) -> KeywordMatcher:
        """按字段名取编译好的关键词匹配器（首次使用时编译）。"""
        m = self._matchers.get(name)
        if m is None:
            m = KeywordMatcher(getattr(self, name))
            self._matchers[name] = m
        return m

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ClassifierConfig":
        kw = data.get("keywords") or {}
        platforms = data.get("platforms") or {}
        return cls(
            frontend_keywords=list(kw.get("frontend") or []),
            tech_keywords=list(kw.get("tech") or []),
            remote_keywords=list(kw.get("remote") or []),
            high_salary_keywords=list(kw.get("high_salary") or []),
            seniority_keywords=list(kw.get("seniority") or []),
            developer_role_keywords=list(kw.get("developer_role") or []),
            exclude_keywords=list(kw.get("exclude") or []),
            pain_point_keywords=list(kw.get("pain_point") or []),
            salary_floor=float(data.get("salary_floor", 40000)),
            score_threshold=float(data.get("score_threshold", 1)),
            weights=dict(data.get("weights") or {}),
            remote_platforms=list(platforms.get("remote") or []),
            high_salary_platforms=list(platforms.get("high_salary") or []),
            trusted_platforms=list(platforms.get("trusted") or []),
            conditional_platforms=list(platforms.get("conditional") or []),
            idea_platforms=list(platforms.get("idea") or []),
            social_keywords={k: list(v or []) for k, v in (data.get("social_keywords") or {}).items()},
        )


def load_classifier_config(path: Optional[Path] = None) -> ClassifierConfig:
    kw_path = path or config_dir() / "keywords.yml"
    if not kw_path.exists():
        raise ConfigError(f"keyword config not found: {kw_path}")
    cfg = ClassifierConfig.from_dict(_read_yaml(kw_path))
    cfg.salary_floor = float_env("OPPHUB_SALARY_FLOOR", cfg.salary_floor)
    cfg.score_threshold = float_env("OPPHUB_SCORE_THRESHOLD", cfg.score_threshold)
    logger.info(
        "[config] 分类配置加载完成 floor=%s threshold=%s", cfg.salary_floor, cfg.score_threshold
    )
    return cfg


# -------------------- 数据源 --------------------

def parse_sources(entries: List[Mapping[str, Any]]) -> List[DataSource]:
    """跳过禁用项、非法项和重名项（先出现的优先）。"""
    out: List[DataSource] = []
    seen: set = set()
    for entry in entries or []:
        if not isinstance(entry, Mapping):
            logger.warning("[config] 忽略非法数据源条目: %r", entry)
            continue
        if not entry.get("enabled", True):
            continue
        try:
            src = DataSource.from_dict(dict(entry))
        except ValueError as e:
            logger.warning("[config] 忽略数据源: %s", e)
            continue
        if src.name in seen:
            logger.warning("[config] 数据源重名，忽略后者: %s", src.name)
            continue
        seen.add(src.name)
        out.append(src)
    return out


def load_sources(path: Optional[Path] = None) -> List[DataSource]:
    src_path = path or config_dir() / "sources.yml"
    if not src_path.exists():
        logger.warning("[config] 未找到 %s，数据源为空", src_path)
        return []
    return parse_sources(_read_yaml(src_path).get("sources") or [])
