from __future__ import annotations

import logging
from threading import RLock
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import delete as sa_delete
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from econtract_app.core.errors import StoreUnavailableError, ValidationError
from econtract_app.core.filters import FilterSpec, SortSpec, filter_and_sort
from econtract_app.core.models import AuditEntry, Contract, Page, apply_changes, utcnow

from .base import ContractRepository, paginate
from .tables import ContractRow

log = logging.getLogger(__name__)


def _to_row(contract: Contract, row: Optional[ContractRow] = None) -> ContractRow:
    row = row or ContractRow(contract_id=contract.contract_id)
    row.title = contract.title
    row.status = contract.status
    row.type = contract.type
    row.category = contract.category
    row.priority = contract.priority
    row.transaction_amount = contract.transaction_amount
    row.created_at = contract.created_at
    row.updated_at = contract.updated_at
    row.document = contract.to_json()
    return row


def _from_row(row: ContractRow) -> Contract:
    return Contract.model_validate(row.document)


class SqlContractRepository(ContractRepository):
    """Contracts stored as JSON documents with indexed summary columns.

    Listing reads degrade to empty results when the database fails; single
    document operations raise :class:`StoreUnavailableError`.
    """

    def __init__(self, Session: sessionmaker) -> None:
        self.Session = Session
        self._write_lock = RLock()

    # ------------------------------------------------------------------ reads
    def _load(self, spec: Optional[FilterSpec] = None) -> List[Contract]:
        stmt = select(ContractRow)
        if spec is not None:
            if spec.statuses:
                stmt = stmt.where(ContractRow.status.in_(sorted(spec.statuses)))
            if spec.types:
                stmt = stmt.where(ContractRow.type.in_(sorted(spec.types)))
        stmt = stmt.order_by(ContractRow.created_at)
        with self.Session() as session:
            return [_from_row(r) for r in session.execute(stmt).scalars()]

    def get_all(self) -> List[Contract]:
        try:
            return self._load()
        except SQLAlchemyError as exc:
            log.error("contract listing failed: %s", exc)
            return []

    def search(self, spec: Optional[FilterSpec] = None, sort: Optional[SortSpec] = None) -> List[Contract]:
        try:
            return filter_and_sort(self._load(spec), spec, sort)
        except SQLAlchemyError as exc:
            log.error("contract search failed: %s", exc)
            return []

    def get_paginated(
        self,
        page: int = 1,
        limit: int = 20,
        spec: Optional[FilterSpec] = None,
        sort: Optional[SortSpec] = None,
    ) -> Page:
        return paginate(self.search(spec, sort), page, limit)

    def count(self, spec: Optional[FilterSpec] = None) -> int:
        try:
            if spec is None:
                with self.Session() as session:
                    return session.execute(select(func.count()).select_from(ContractRow)).scalar_one()
            return len(filter_and_sort(self._load(spec), spec))
        except SQLAlchemyError as exc:
            log.error("contract count failed: %s", exc)
            return 0

    def get(self, contract_id: str) -> Optional[Contract]:
        try:
            with self.Session() as session:
                row = session.get(ContractRow, contract_id)
                return _from_row(row) if row is not None else None
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(details=str(exc)) from exc

    # ----------------------------------------------------------------- writes
    def create(self, contract: Contract) -> Contract:
        try:
            with self._write_lock, self.Session() as session:
                with session.begin():
                    if session.get(ContractRow, contract.contract_id) is not None:
                        raise ValidationError(details=f"duplicate contract id {contract.contract_id}")
                    session.add(_to_row(contract))
            return contract
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(details=str(exc)) from exc

    def modify(self, contract_id: str, fn: Callable[[Contract], Optional[Dict[str, Any]]]) -> Optional[Contract]:
        # row lock for other processes, local lock for threads sharing a sqlite connection
        try:
            with self._write_lock, self.Session() as session:
                with session.begin():
                    row = session.get(ContractRow, contract_id, with_for_update=True)
                    if row is None:
                        return None
                    current = _from_row(row)
                    changes = fn(current.model_copy(deep=True))
                    if changes is None:
                        return current
                    changes = {k: v for k, v in changes.items() if k != "contract_id"}
                    merged = apply_changes(current, {**changes, "updated_at": utcnow()})
                    _to_row(merged, row)
            return merged
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(details=str(exc)) from exc

    def delete(self, contract_id: str) -> bool:
        try:
            with self._write_lock, self.Session() as session:
                with session.begin():
                    result = session.execute(
                        sa_delete(ContractRow).where(ContractRow.contract_id == contract_id)
                    )
                    return result.rowcount > 0
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(details=str(exc)) from exc

    def append_audit_entry(self, contract_id: str, entry: AuditEntry) -> bool:
        try:
            with self._write_lock, self.Session() as session:
                with session.begin():
                    row = session.get(ContractRow, contract_id, with_for_update=True)
                    if row is None:
                        return False
                    document = dict(row.document)
                    document["auditLog"] = list(document.get("auditLog") or []) + [entry.to_json()]
                    row.document = document
            return True
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(details=str(exc)) from exc


__all__ = ["SqlContractRepository"]
