# -*- coding: utf-8 -*-
"""
models.py
数据模型：
- DataSource：数据源描述（外部配置提供）
- Record：适配器产出的统一记录，分类器和下游只认这一种结构
- FetchOutcome：单个数据源一次抓取的结果（成功带记录 / 失败带原因）
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Literal, Optional, Sequence, Tuple

SourceType = Literal["job", "idea"]

SOURCE_TYPES = ("job", "idea")
REGIONS = ("Global", "CN", "US", "EU", "UK", "APAC")


@dataclass(frozen=True)
class DataSource:
    # 唯一显示名，同时用作缓存键、打分规则和数据源去重的关联键
    name: str
    url: str

    # 声明类别：这个源产出的所有记录都继承该类别
    type: SourceType

    # 适配器选择器，如 "generic-rss" / "remote-board-json" / "linkedin"
    format: str

    region: str = "Global"

    # 平台分组（自由文本），如 "LinkedIn"
    category: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DataSource":
        """从 sources.yml 的一项构造；兼容旧字段名 dataType。"""
        name = str(data.get("name") or "").strip()
        url = str(data.get("url") or "").strip()
        fmt = str(data.get("format") or data.get("dataType") or "").strip()
        if not name or not url or not fmt:
            raise ValueError(f"data source needs name/url/format: {data!r}")

        type_ = data.get("type")
        if type_ not in SOURCE_TYPES:
            raise ValueError(f"{name}: type must be one of {SOURCE_TYPES}, got {type_!r}")

        region = data.get("region") or "Global"
        if region not in REGIONS:
            raise ValueError(f"{name}: region must be one of {REGIONS}, got {region!r}")

        category = data.get("category")
        return cls(
            name=name,
            url=url,
            type=type_,
            format=fmt,
            region=region,
            category=str(category) if category else None,
        )


@dataclass(frozen=True)
class Record:
    # 标题与链接：(title, link) 是去重的唯一标识，二者都不能为空
    title: str
    link: str

    # 来源名（对应 DataSource.name）、类别、地区都继承自数据源
    source_name: str
    type: SourceType
    region: str

    # ISO-8601；上游没有或解析失败时为抓取时间
    timestamp: str

    summary: str = ""
    author: str = "Unknown"

    # 展示用的一行附加信息，如 "公司 • 地点"，分类时会参与文本匹配
    meta: str = ""

    salary_text: str = ""
    tags: Tuple[str, ...] = field(default_factory=tuple)

    def as_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["tags"] = list(self.tags)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Record":
        return cls(
            title=data["title"],
            link=data["link"],
            source_name=data["source_name"],
            type=data["type"],
            region=data["region"],
            timestamp=data["timestamp"],
            summary=data.get("summary") or "",
            author=data.get("author") or "Unknown",
            meta=data.get("meta") or "",
            salary_text=data.get("salary_text") or "",
            tags=tuple(data.get("tags") or ()),
        )


@dataclass(frozen=True)
class FetchOutcome:
    """单个数据源的抓取结果。只有在编排器对外边界才折叠成记录列表。"""

    source_name: str
    records: Tuple[Record, ...] = ()
    error: Optional[str] = None
    from_cache: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def succeeded(cls, source_name: str, records: Sequence[Record], from_cache: bool = False) -> "FetchOutcome":
        return cls(source_name=source_name, records=tuple(records), from_cache=from_cache)

    @classmethod
    def failed(cls, source_name: str, reason: str) -> "FetchOutcome":
        return cls(source_name=source_name, error=reason or "unknown error")


def records_to_dicts(records: Sequence[Record]) -> List[Dict[str, Any]]:
    return [r.as_dict() for r in records]
