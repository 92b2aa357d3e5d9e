# -*- coding: utf-8 -*-
"""
scorer.py
分类与打分：
- 去重（标题 + 链接）
- 高价值职位判断：排除词 -> 直通组合 -> 加权打分
- 点子/痛点判断
- 按时间、按薪资排序；高级筛选

所有关键词、权重、平台名单都来自 ClassifierConfig（ops/keywords.yml）。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .config import ClassifierConfig
from .models import Record
from .salary import extract_salary
from .utils import KeywordMatcher, combine_text, name_in, parse_timestamp, timestamp_sort_key

logger = logging.getLogger(__name__)


@dataclass
class Classification:
    jobs: List[Record] = field(default_factory=list)
    ideas: List[Record] = field(default_factory=list)


@dataclass(frozen=True)
class JobSignals:
    """一条职位记录上检测到的各项信号，打分和直通规则都基于它。"""

    frontend: bool
    tech: bool
    remote: bool
    remote_platform: bool
    good_salary: bool
    high_salary_keyword: bool
    high_salary_platform: bool
    seniority: bool
    developer_role: bool

    def score(self, weights: Dict[str, float]) -> float:
        total = 0.0
        for name in ("frontend", "tech", "remote", "good_salary", "high_salary_keyword",
                     "high_salary_platform", "seniority", "developer_role"):
            if getattr(self, name):
                total += weights.get(name, 0)
        return total


# -------------------- 去重 --------------------

def deduplicate(records: Iterable[Record]) -> List[Record]:
    """按 (title, link) 去重，保留第一次出现的顺序。"""
    seen: set = set()
    out: List[Record] = []
    for r in records:
        key = (r.title, r.link)
        if key in seen:
            continue
        seen.add(key)
        out.append(r)
    return out


# -------------------- 职位 --------------------

def detect_signals(record: Record, config: ClassifierConfig) -> JobSignals:
    text = combine_text(record)
    source = record.source_name or ""

    remote_platform = name_in(source, config.remote_platforms)
    return JobSignals(
        frontend=config.matcher("frontend_keywords").matches(text),
        tech=config.matcher("tech_keywords").matches(text),
        remote=remote_platform or config.matcher("remote_keywords").matches(text),
        remote_platform=remote_platform,
        good_salary=extract_salary(text) >= config.salary_floor,
        high_salary_keyword=config.matcher("high_salary_keywords").matches(text),
        high_salary_platform=name_in(source, config.high_salary_platforms),
        seniority=config.matcher("seniority_keywords").matches(text),
        developer_role=config.matcher("developer_role_keywords").matches(text),
    )


def is_excluded(record: Record, config: ClassifierConfig) -> bool:
    """排除词只看标题。"""
    return config.matcher("exclude_keywords").matches(record.title or "")


def is_high_value_job(record: Record, config: ClassifierConfig) -> bool:
    if record.type != "job":
        return False

    # 排除词优先于一切
    if is_excluded(record, config):
        return False

    s = detect_signals(record, config)

    # 直通组合
    if s.remote and s.good_salary:
        return True
    if s.frontend and s.good_salary:
        return True
    if s.high_salary_platform and s.remote:
        return True
    if s.remote_platform and (s.frontend or s.tech or s.developer_role):
        return True
    if name_in(record.source_name, config.conditional_platforms) and (s.remote or s.frontend or s.tech):
        return True
    if name_in(record.source_name, config.trusted_platforms):
        return True

    return s.score(config.weights) >= config.score_threshold


# -------------------- 点子 --------------------

def is_potential_idea(record: Record, config: ClassifierConfig) -> bool:
    if record.type != "idea":
        return False
    if name_in(record.source_name, config.idea_platforms):
        return True
    return config.matcher("pain_point_keywords").matches(combine_text(record))


def classify(records: Sequence[Record], config: ClassifierConfig) -> Classification:
    result = Classification()
    for r in records:
        if is_high_value_job(r, config):
            result.jobs.append(r)
        elif is_potential_idea(r, config):
            result.ideas.append(r)
    logger.info("[scorer] 分类完成：输入 %d，职位 %d，点子 %d", len(records), len(result.jobs), len(result.ideas))
    return result


# -------------------- 排序 --------------------

def sort_by_date(records: Iterable[Record], desc: bool = True) -> List[Record]:
    """按时间排序（稳定）；解析不了的时间按“现在”处理。"""
    return sorted(records, key=lambda r: timestamp_sort_key(r.timestamp), reverse=desc)


def sort_by_salary(records: Iterable[Record], desc: bool = True) -> List[Record]:
    """按提取出的年薪排序；没有薪资的记为 0。"""
    return sorted(records, key=lambda r: extract_salary(combine_text(r)), reverse=desc)


# -------------------- 高级筛选 --------------------

@dataclass
class FilterOptions:
    min_salary: Optional[float] = None
    max_salary: Optional[float] = None
    regions: List[str] = field(default_factory=list)
    sources: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    exclude_keywords: List[str] = field(default_factory=list)
    date_range: Optional[Tuple[datetime, datetime]] = None


def _passes(
    record: Record,
    opts: FilterOptions,
    include: KeywordMatcher,
    exclude: KeywordMatcher,
    window: Optional[Tuple[datetime, datetime]],
) -> bool:
    text = combine_text(record)

    if opts.min_salary or opts.max_salary:
        salary = extract_salary(text)
        if opts.min_salary and salary < opts.min_salary:
            return False
        if opts.max_salary and salary > opts.max_salary:
            return False

    if opts.regions and record.region not in opts.regions:
        return False

    if opts.sources and not name_in(record.source_name, opts.sources):
        return False

    if len(include) and not include.matches(text):
        return False

    if len(exclude) and exclude.matches(text):
        return False

    if window is not None:
        start, end = window
        ts = parse_timestamp(record.timestamp)
        if ts is None or ts < start or ts > end:
            return False

    return True


def advanced_filter(records: Iterable[Record], opts: FilterOptions) -> List[Record]:
    """
    叠加筛选条件：薪资区间、地区、来源、包含/排除关键词、时间范围。
    未设置的条件不生效。date_range 两端不带时区时按 UTC 处理。
    """
    include = KeywordMatcher(opts.keywords)
    exclude = KeywordMatcher(opts.exclude_keywords)
    window = None
    if opts.date_range is not None:
        start, end = (parse_timestamp(b) for b in opts.date_range)
        window = (start, end)
    return [r for r in records if _passes(r, opts, include, exclude, window)]
