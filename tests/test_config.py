# -*- coding: utf-8 -*-
"""
tests/test_config.py
配置加载：默认值、部分覆盖、环境变量、数据源清单校验、关键词文件。
"""

import pytest

from opphub.config import (
    DEFAULT_CFG,
    ROOT,
    ClassifierConfig,
    FetchProfile,
    load_cfg,
    load_classifier_config,
    load_sources,
    parse_sources,
)
from opphub.errors import ConfigError
from opphub.models import DataSource


def test_missing_config_file_uses_defaults(tmp_path):
    cfg = load_cfg(tmp_path / "nope.yml")
    assert cfg["cache"]["ttl_seconds"] == 600
    assert cfg["schema_version"] == "v3"
    assert cfg is not DEFAULT_CFG


def test_partial_override_keeps_nested_defaults(tmp_path):
    p = tmp_path / "config.yml"
    p.write_text("fetch:\n  baseline:\n    timeout_sec: 3\n", encoding="utf-8")
    cfg = load_cfg(p)
    baseline = FetchProfile.from_cfg("baseline", cfg)
    assert baseline.timeout_sec == 3.0
    assert baseline.retries == 0
    assert "User-Agent" in baseline.headers
    assert FetchProfile.from_cfg("enhanced", cfg).retries == 3


def test_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("OPPHUB_CACHE_TTL", "30")
    monkeypatch.setenv("OPPHUB_CACHE_OP_TIMEOUT", "0.25")
    monkeypatch.setenv("OPPHUB_ENHANCED_BATCH_SIZE", "7")
    monkeypatch.setenv("OPPHUB_BASELINE_BATCH_SIZE", "not-a-number")
    cfg = load_cfg(tmp_path / "nope.yml")
    assert cfg["cache"]["ttl_seconds"] == 30
    assert cfg["cache"]["op_timeout_sec"] == 0.25
    assert cfg["fetch"]["enhanced"]["batch_size"] == 7
    assert cfg["fetch"]["baseline"]["batch_size"] == 10
    assert DEFAULT_CFG["cache"]["ttl_seconds"] == 600


def test_invalid_yaml_raises_config_error(tmp_path):
    p = tmp_path / "config.yml"
    p.write_text("cache: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_cfg(p)


def test_unknown_fetch_profile():
    with pytest.raises(ConfigError):
        FetchProfile.from_cfg("turbo", DEFAULT_CFG)


def test_shipped_config_files_load():
    cfg = load_cfg(ROOT / "ops" / "config.yml")
    assert cfg["routing"]["baseline_regions"] == ["CN"]
    assert cfg["output"]["fallback_when_empty"] is False
    sources = load_sources(ROOT / "ops" / "sources.yml")
    assert sources
    assert len({s.name for s in sources}) == len(sources)
    assert "Landing.jobs" not in {s.name for s in sources}


def test_parse_sources_skips_disabled_invalid_and_duplicates():
    entries = [
        {"name": "A", "url": "https://a.example", "type": "job", "format": "generic-rss"},
        {"name": "B", "url": "https://b.example", "type": "job", "format": "generic-rss", "enabled": False},
        {"name": "C", "url": "https://c.example", "type": "gig", "format": "generic-rss"},
        {"name": "D", "url": "https://d.example", "type": "idea", "format": "generic-rss", "region": "Mars"},
        {"name": "A", "url": "https://a2.example", "type": "idea", "format": "generic-json"},
        {"name": "E", "url": "https://e.example", "type": "idea", "dataType": "generic-json", "region": "CN"},
        "not a mapping",
    ]
    sources = parse_sources(entries)
    assert [s.name for s in sources] == ["A", "E"]
    assert sources[0].url == "https://a.example"
    assert sources[1].format == "generic-json"
    assert sources[1].region == "CN"


def test_data_source_requires_name_url_format():
    with pytest.raises(ValueError):
        DataSource.from_dict({"name": "X", "type": "job", "format": "generic-rss"})


def test_classifier_config_from_shipped_keywords(classifier):
    assert classifier.salary_floor == 40000
    assert classifier.score_threshold == 1
    assert "V2EX" in classifier.trusted_platforms
    assert "Reddit" in classifier.conditional_platforms
    assert "junior" in classifier.exclude_keywords
    assert classifier.weights["good_salary"] == 3
    assert "#hiring" in classifier.social_keywords["twitter"]


def test_classifier_env_overrides(monkeypatch):
    monkeypatch.setenv("OPPHUB_SALARY_FLOOR", "90000")
    monkeypatch.setenv("OPPHUB_SCORE_THRESHOLD", "4")
    cfg = load_classifier_config(ROOT / "ops" / "keywords.yml")
    assert cfg.salary_floor == 90000
    assert cfg.score_threshold == 4


def test_missing_keywords_file_raises(tmp_path):
    with pytest.raises(ConfigError):
        load_classifier_config(tmp_path / "keywords.yml")


def test_weights_merge_with_defaults():
    cfg = ClassifierConfig.from_dict({"weights": {"remote": 5}})
    assert cfg.weights["remote"] == 5
    assert cfg.weights["frontend"] == 2
