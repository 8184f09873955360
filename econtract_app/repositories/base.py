from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, Optional

from econtract_app.core.filters import FilterSpec, SortSpec, filter_and_sort
from econtract_app.core.models import AuditEntry, Contract, Page, Pagination


def paginate(items: List[Contract], page: int, limit: int) -> Page:
    page = max(1, int(page))
    limit = max(1, int(limit))
    total = len(items)
    total_pages = math.ceil(total / limit) if total else 0
    start = (page - 1) * limit
    return Page(
        items=items[start : start + limit],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        ),
    )


class ContractRepository(ABC):
    """Storage contract shared by the demo and persistent backends.

    ``changes`` passed to :meth:`update` are keyed by snake_case attribute
    names and merged over the stored contract at the top level.
    """

    @abstractmethod
    def get_all(self) -> List[Contract]: ...

    @abstractmethod
    def get(self, contract_id: str) -> Optional[Contract]: ...

    @abstractmethod
    def create(self, contract: Contract) -> Contract: ...

    @abstractmethod
    def modify(self, contract_id: str, fn: Callable[[Contract], Optional[Dict[str, Any]]]) -> Optional[Contract]:
        """Read, check and write one contract without interleaving writers.

        ``fn`` receives a private copy of the stored contract and returns the
        changes to merge, or ``None`` to leave it untouched.  Exceptions raised
        by ``fn`` abort the write and propagate.  ``None`` if unknown.
        """

    def update(self, contract_id: str, changes: Dict[str, Any]) -> Optional[Contract]:
        """Merge ``changes`` and stamp ``updated_at``; ``None`` if unknown."""
        return self.modify(contract_id, lambda _current: changes)

    @abstractmethod
    def delete(self, contract_id: str) -> bool: ...

    @abstractmethod
    def append_audit_entry(self, contract_id: str, entry: AuditEntry) -> bool:
        """Append one entry to the contract's audit log atomically."""

    def search(self, spec: Optional[FilterSpec] = None, sort: Optional[SortSpec] = None) -> List[Contract]:
        return filter_and_sort(self.get_all(), spec, sort)

    def get_paginated(
        self,
        page: int = 1,
        limit: int = 20,
        spec: Optional[FilterSpec] = None,
        sort: Optional[SortSpec] = None,
    ) -> Page:
        return paginate(self.search(spec, sort), page, limit)

    def exists(self, contract_id: str) -> bool:
        return self.get(contract_id) is not None

    def count(self, spec: Optional[FilterSpec] = None) -> int:
        return len(self.search(spec))

    def create_many(self, contracts: Iterable[Contract]) -> List[Contract]:
        return [self.create(c) for c in contracts]

    def update_many(self, updates: Dict[str, Dict[str, Any]]) -> int:
        return sum(1 for cid, changes in updates.items() if self.update(cid, changes) is not None)

    def delete_many(self, contract_ids: Iterable[str]) -> int:
        return sum(1 for cid in contract_ids if self.delete(cid))


__all__ = ["ContractRepository", "paginate"]
