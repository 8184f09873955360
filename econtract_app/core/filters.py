"""Search and ordering for contract listings."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Union

from .models import Contract

__all__ = [
    "FilterSpec",
    "SortSpec",
    "SORT_KEYS",
    "PRIORITY_RANK",
    "matches",
    "filter_contracts",
    "sort_contracts",
    "filter_and_sort",
]

PRIORITY_RANK: Dict[str, int] = {"low": 1, "medium": 2, "high": 3}

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _as_set(value: Union[str, Iterable[str], None]) -> Optional[frozenset]:
    if value is None:
        return None
    if isinstance(value, str):
        return frozenset([value])
    values = frozenset(value)
    return values or None


@dataclass(frozen=True)
class FilterSpec:
    query: Optional[str] = None
    status: Union[str, Sequence[str], None] = None
    type: Union[str, Sequence[str], None] = None
    category: Optional[str] = None
    priority: Optional[str] = None
    tag: Optional[str] = None

    @property
    def statuses(self) -> Optional[frozenset]:
        return _as_set(self.status)

    @property
    def types(self) -> Optional[frozenset]:
        return _as_set(self.type)


@dataclass(frozen=True)
class SortSpec:
    key: str = "updatedAt"
    direction: str = "desc"

    def __post_init__(self) -> None:
        if self.key not in SORT_KEYS:
            raise ValueError(f"unknown sort key: {self.key}")
        if self.direction not in ("asc", "desc"):
            raise ValueError(f"unknown sort direction: {self.direction}")


def _haystack(contract: Contract) -> List[str]:
    parts = [contract.title, contract.description or "", contract.contract_id]
    for p in contract.parties:
        parts.extend([p.name, p.email, p.company or ""])
    return parts


def matches(contract: Contract, spec: FilterSpec) -> bool:
    if spec.query:
        needle = spec.query.casefold()
        if not any(needle in s.casefold() for s in _haystack(contract)):
            return False
    statuses = spec.statuses
    if statuses is not None and contract.status not in statuses:
        return False
    types = spec.types
    if types is not None and contract.type not in types:
        return False
    if spec.category and contract.category != spec.category:
        return False
    if spec.priority and contract.priority != spec.priority:
        return False
    if spec.tag and spec.tag not in contract.tags:
        return False
    return True


def _company(contract: Contract) -> str:
    client = contract.first_client()
    if client is None:
        return ""
    return (client.company or "").casefold()


SORT_KEYS: Dict[str, Callable[[Contract], object]] = {
    "createdAt": lambda c: c.created_at or _EPOCH,
    "updatedAt": lambda c: c.updated_at or _EPOCH,
    "title": lambda c: c.title.casefold(),
    "company": _company,
    "priority": lambda c: PRIORITY_RANK.get(c.priority or "", 0),
    "amount": lambda c: c.transaction_amount or 0,
}


def filter_contracts(contracts: Iterable[Contract], spec: Optional[FilterSpec]) -> List[Contract]:
    if spec is None:
        return list(contracts)
    return [c for c in contracts if matches(c, spec)]


def sort_contracts(contracts: Iterable[Contract], sort: Optional[SortSpec]) -> List[Contract]:
    # sorted() is stable in both directions; equal keys keep input order
    sort = sort or SortSpec()
    return sorted(contracts, key=SORT_KEYS[sort.key], reverse=sort.direction == "desc")


def filter_and_sort(
    contracts: Iterable[Contract],
    spec: Optional[FilterSpec] = None,
    sort: Optional[SortSpec] = None,
) -> List[Contract]:
    return sort_contracts(filter_contracts(contracts, spec), sort)
