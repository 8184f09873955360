"""Heuristics applied to OCR text of scanned contracts."""

from __future__ import annotations

import re
from typing import Dict, List, Optional

from pydantic import Field

from .models import CamelModel

CONTRACT_KEYWORDS = (
    "契約書",
    "契約",
    "甲",
    "乙",
    "第1条",
    "第一条",
    "契約期間",
    "契約条件",
    "業務委託",
    "秘密保持",
    "売買",
    "賃貸借",
    "雇用",
    "Agreement",
    "Contract",
    "Terms",
)
MIN_KEYWORD_HITS = 3

_TITLE_RE = re.compile(r"^(.{1,100}契約書.*?)[\n\r]", re.M)
_PARTY_RE = re.compile(r"[甲乙]\s*[:：]\s*(.+?)[\n\r]")
_DATE_RE = re.compile(r"(\d{4}年\d{1,2}月\d{1,2}日)")
_ARTICLE_RE = re.compile(r"第\d+条\s*[（(](.+?)[）)]")
_KEY_VALUE_RE = re.compile(r"^(.+?)[：:]\s*(.+)$")


class ContractInfo(CamelModel):
    title: Optional[str] = None
    parties: List[str] = Field(default_factory=list)
    date: Optional[str] = None
    articles: List[str] = Field(default_factory=list)


def is_contract_document(text: str) -> bool:
    lowered = text.lower()
    hits = sum(1 for k in CONTRACT_KEYWORDS if k.lower() in lowered)
    return hits >= MIN_KEYWORD_HITS


def extract_contract_info(text: str) -> ContractInfo:
    info = ContractInfo()
    m = _TITLE_RE.search(text)
    if m:
        info.title = m.group(1).strip()
    info.parties = [p.strip() for p in _PARTY_RE.findall(text)]
    m = _DATE_RE.search(text)
    if m:
        info.date = m.group(1)
    info.articles = [a.strip() for a in _ARTICLE_RE.findall(text)]
    return info


def key_value_pairs(text: str) -> Dict[str, str]:
    pairs: Dict[str, str] = {}
    for line in text.split("\n"):
        m = _KEY_VALUE_RE.match(line)
        if m:
            pairs[m.group(1).strip()] = m.group(2).strip()
    return pairs


__all__ = [
    "CONTRACT_KEYWORDS",
    "ContractInfo",
    "is_contract_document",
    "extract_contract_info",
    "key_value_pairs",
]
