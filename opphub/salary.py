# -*- coding: utf-8 -*-
"""
salary.py
从自由文本里提取薪资，统一折算为“年薪数值”。

按优先级依次尝试以下模式，命中第一个就返回，后面的不再看：
  1. $120k / €100k / £90k（可带区间 $120k-$150k，或 120k USD）
  2. $120,000 / $120000（可带区间）
  3. 时薪：$60/hour、$60/hr、$60/h、60 per hour、100 USD/hr、时薪 30
  4. 美元区间：$100 - $150
  5. 带币种后缀的区间：100-150 USD / 美元 / 美金
  6. 中文“万”：1.5万、2-3万

单位换算：时薪 ×2000；“万”按月薪 ×10000×12；带 /month、月 后缀 ×12；
其余小于 1000 的数字视为“千”简写 ×1000。区间且第二个数更大时取平均。
没有命中返回 0，表示“未知”，不是“零薪资”。
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

_NUM = r"(\d+(?:\.\d+)?)"
_BIG = r"(\d{1,3}(?:,\d{3})+|\d{4,})(?:\.\d+)?"
_DASH = r"\s*(?:-|–|~|to)\s*"

# (单位, 正则)
_PATTERNS: List[Tuple[str, re.Pattern]] = [
    ("k", re.compile(rf"[$€£]\s?{_NUM}\s?k(?:{_DASH}[$€£]?\s?{_NUM}\s?k)?(?![a-z])", re.I)),
    ("k", re.compile(rf"{_NUM}\s?k(?:{_DASH}{_NUM}\s?k)?\s*(?:usd|eur|gbp)\b", re.I)),
    ("plain", re.compile(rf"\$\s?{_BIG}(?:{_DASH}\$?\s?{_BIG})?", re.I)),
    (
        "hour",
        re.compile(
            rf"\$\s?{_NUM}(?:{_DASH}\$?\s?{_NUM})?\s*(?:/\s*(?:hour|hr|h)\b|per\s+hour|an\s+hour|/\s*小时)",
            re.I,
        ),
    ),
    ("hour", re.compile(rf"{_NUM}(?:{_DASH}{_NUM})?\s*(?:usd|eur|gbp)?\s*(?:per\s+|/\s*)(?:hour|hr)\b", re.I)),
    ("hour", re.compile(rf"时薪\s*[$¥￥]?\s*{_NUM}(?:{_DASH}{_NUM})?")),
    ("plain", re.compile(rf"\$\s?{_NUM}{_DASH}\$\s?{_NUM}", re.I)),
    ("plain", re.compile(rf"{_NUM}{_DASH}{_NUM}\s*k?\s*(?:usd|eur|gbp|美元|美金)", re.I)),
    ("wan", re.compile(rf"{_NUM}(?:{_DASH}{_NUM})?\s*万")),
]

_MONTHLY_SUFFIX = re.compile(r"^\s*(?:/\s*(?:month|mo)\b|per\s+month|a\s+month|monthly|/?\s*月)", re.I)

HOURS_PER_YEAR = 2000


def _to_number(raw: Optional[str]) -> Optional[float]:
    if not raw:
        return None
    try:
        return float(raw.replace(",", ""))
    except ValueError:
        return None


def _multiplier(unit: str, first: float, suffix: str) -> float:
    if unit == "hour":
        return HOURS_PER_YEAR
    if unit == "wan":
        return 10000 * 12
    monthly = bool(_MONTHLY_SUFFIX.match(suffix))
    if unit == "k":
        return 1000 * (12 if monthly else 1)
    if monthly:
        return 12
    if first < 1000:
        return 1000
    return 1


def extract_salary(text: str) -> float:
    """返回年化薪资；未识别返回 0。纯函数，同样的输入总是同样的输出。"""
    if not text:
        return 0
    for unit, pattern in _PATTERNS:
        m = pattern.search(text)
        if not m:
            continue
        first = _to_number(m.group(1))
        if first is None:
            continue
        second = _to_number(m.group(2)) if m.lastindex and m.lastindex >= 2 else None

        factor = _multiplier(unit, first, text[m.end():m.end() + 16])
        amount = first * factor
        if second is not None:
            amount2 = second * factor
            if amount2 > amount:
                amount = (amount + amount2) / 2
        return amount
    return 0


def format_salary(amount: float) -> str:
    if not amount:
        return ""
    if amount >= 1000:
        return f"${amount / 1000:g}k"
    return f"${amount:g}"
