# -*- coding: utf-8 -*-
"""公共 fixture：分类配置、测试数据文件、记录/数据源构造。"""

from pathlib import Path

import pytest

from opphub.config import ROOT, load_classifier_config
from opphub.models import DataSource, Record

FIXTURES = Path(__file__).resolve().parent / "fixtures"


@pytest.fixture(scope="session")
def classifier():
    return load_classifier_config(ROOT / "ops" / "keywords.yml")


@pytest.fixture
def fixture_text():
    def read(name: str) -> str:
        return (FIXTURES / name).read_text(encoding="utf-8")

    return read


@pytest.fixture
def make_source():
    def make(name="Acme Jobs", url="https://jobs.example.com/api", type="job", format="generic-json", **kw):
        return DataSource(name=name, url=url, type=type, format=format, **kw)

    return make


@pytest.fixture
def make_record():
    def make(
        title,
        source_name="Acme Jobs",
        type="job",
        summary="",
        meta="",
        salary_text="",
        region="Global",
        timestamp="2024-03-01T00:00:00+00:00",
        link=None,
    ):
        return Record(
            title=title,
            link=link or f"https://jobs.example.com/{abs(hash(title))}",
            source_name=source_name,
            type=type,
            region=region,
            timestamp=timestamp,
            summary=summary,
            meta=meta,
            salary_text=salary_text,
        )

    return make
