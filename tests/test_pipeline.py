# -*- coding: utf-8 -*-
"""
tests/test_pipeline.py
端到端：选源 -> 分流 -> 抓取 -> 去重 -> 分类 -> 排序 -> 截断。
HTTP 全部走 httpx.MockTransport。
"""

import asyncio
import json

import httpx
import pytest

from opphub.cache import MemoryCacheStore
from opphub.config import FetchProfile, load_cfg
from opphub.http import HttpFetcher
from opphub.main import _pick_results, build_parser, run_cycle, select_sources, split_by_profile
from opphub.models import DataSource
from opphub.parsers import ADAPTERS
from opphub.parsers.html_default import parse_html

DATES = ["2024-03-03", "2024-03-05", "2024-03-01", "2024-03-04", "2024-03-02"]

JOBS = [
    {
        "title": f"Senior Frontend Engineer {i}",
        "url": f"https://jobs.example.com/job/{i}",
        "company": "Acme",
        "salary": "$150k",
        "description": "Remote React role.",
        "created_at": f"{d}T09:00:00Z",
    }
    for i, d in enumerate(DATES, start=1)
]


BROKEN_HTML = "<html><div class='job-card'><h2>Unclosed title"


async def handler(request):
    host = request.url.host
    if host == "jobs.example.com":
        return httpx.Response(200, text=json.dumps(JOBS))
    if host == "slow.example.com":
        await asyncio.sleep(5)
        return httpx.Response(200, text="[]")
    if host == "broken.example.com":
        return httpx.Response(200, text=BROKEN_HTML)
    return httpx.Response(404)


SOURCES = [
    DataSource(name="Acme Jobs API", url="https://jobs.example.com/api", type="job", format="generic-json"),
    DataSource(name="Slow Board", url="https://slow.example.com/api", type="job", format="generic-json"),
    DataSource(name="Broken Page", url="https://broken.example.com/jobs", type="job", format="generic-html"),
]


@pytest.fixture
def cfg(tmp_path):
    cfg = load_cfg(tmp_path / "missing.yml")
    cfg["fetch"]["baseline"]["timeout_sec"] = 0.5
    cfg["fetch"]["enhanced"]["timeout_sec"] = 0.5
    return cfg


def cycle(cfg, classifier, sources=SOURCES, **kw):
    return asyncio.run(
        run_cycle(
            sources,
            classifier,
            cfg=cfg,
            store=MemoryCacheStore(),
            transport=httpx.MockTransport(handler),
            **kw,
        )
    )


def test_three_sources_end_to_end(cfg, classifier):
    result = cycle(cfg, classifier)

    assert result.total == 5
    assert result.ideas == []
    assert [r.title for r in result.jobs] == [
        "Senior Frontend Engineer 2",
        "Senior Frontend Engineer 4",
        "Senior Frontend Engineer 1",
        "Senior Frontend Engineer 5",
        "Senior Frontend Engineer 3",
    ]
    assert result.failed_sources == ["Slow Board"]
    assert "Broken Page" not in result.failed_sources
    assert {r.source_name for r in result.jobs} == {"Acme Jobs API"}
    assert result.sources_used == 3


def test_malformed_page_is_an_empty_success(cfg):
    # 残缺的列表项没有链接，整页解析为零条，但不算失败
    assert parse_html(BROKEN_HTML, SOURCES[2]) == []

    async def run():
        async with HttpFetcher(FetchProfile.from_cfg("enhanced", cfg), httpx.MockTransport(handler)) as http:
            return await ADAPTERS["generic-html"].run(SOURCES[2], http)

    outcome = asyncio.run(run())
    assert outcome.ok
    assert list(outcome.records) == []


def test_limit_truncates_after_sorting(cfg, classifier):
    result = cycle(cfg, classifier, limit=2)
    assert [r.title for r in result.jobs] == ["Senior Frontend Engineer 2", "Senior Frontend Engineer 4"]


def test_limit_is_capped(cfg, classifier):
    cfg["output"]["max_limit"] = 3
    assert cycle(cfg, classifier, limit=1000).total == 3


def test_ideas_only_skips_job_sources(cfg, classifier):
    result = cycle(cfg, classifier, kind="ideas")
    assert result.total == 0
    assert result.sources_used == 0


def test_invalid_kind(cfg, classifier):
    with pytest.raises(ValueError):
        cycle(cfg, classifier, kind="gigs")


def test_result_as_dict(cfg, classifier):
    payload = cycle(cfg, classifier).as_dict(kind="all", region=None)
    assert payload["count"] == 5
    assert len(payload["jobs"]) == 5
    assert payload["metadata"]["region"] == "all"
    assert payload["metadata"]["failed_sources"] == ["Slow Board"]
    assert isinstance(payload["jobs"][0]["tags"], list)


def test_select_sources_priority_and_cap(cfg):
    sources = [
        DataSource(name="Zeta Board", url="https://z.example", type="job", format="generic-rss"),
        DataSource(name="V2EX 酷工作", url="https://v.example", type="job", format="html-topic-list", region="CN"),
        DataSource(name="Ideas Hub", url="https://i.example", type="idea", format="generic-rss"),
        DataSource(name="RemoteOK Frontend", url="https://r.example", type="job", format="remote-board-json"),
    ]
    picked = select_sources(sources, cfg)
    assert [s.name for s in picked] == ["V2EX 酷工作", "RemoteOK Frontend", "Zeta Board", "Ideas Hub"]

    assert [s.name for s in select_sources(sources, cfg, kind="ideas")] == ["Ideas Hub"]
    assert [s.name for s in select_sources(sources, cfg, region="CN")] == ["V2EX 酷工作"]

    cfg["routing"]["max_sources"] = 1
    assert len(select_sources(sources, cfg)) == 1


def test_split_by_profile(cfg):
    sources = [
        DataSource(name="V2EX 酷工作", url="https://v.example", type="job", format="html-topic-list"),
        DataSource(name="电鸭社区", url="https://e.example", type="job", format="community-json"),
        DataSource(name="Boss 直聘", url="https://b.example", type="job", format="generic-html", region="CN"),
        DataSource(name="Remotive", url="https://r.example", type="job", format="json-board-generic"),
    ]
    baseline, enhanced = split_by_profile(sources, cfg)
    assert [s.name for s in baseline] == ["V2EX 酷工作", "电鸭社区", "Boss 直聘"]
    assert [s.name for s in enhanced] == ["Remotive"]


def test_fallback_when_empty(make_record):
    job = make_record("Office manager")
    idea = make_record("Cat pictures", type="idea")
    unique = [job, idea]
    assert _pick_results(unique, [], [], "jobs", fallback=False) == []
    assert _pick_results(unique, [], [], "jobs", fallback=True) == [job]
    assert _pick_results(unique, [], [], "ideas", fallback=True) == [idea]
    assert _pick_results(unique, [], [], "all", fallback=True) == unique


def test_cli_defaults():
    args = build_parser().parse_args([])
    assert args.kind == "all"
    assert args.limit is None
    assert args.out is None
