from __future__ import annotations

from threading import RLock
from typing import Any, Callable, Dict, Iterable, List, Optional

from econtract_app.core.errors import ValidationError
from econtract_app.core.models import AuditEntry, Contract, apply_changes, utcnow

from .base import ContractRepository


class InMemoryContractRepository(ContractRepository):
    """Process-local store used in demo mode; writes are serialised."""

    def __init__(self, seed: Optional[Iterable[Contract]] = None) -> None:
        self._data: Dict[str, Contract] = {}
        self._lock = RLock()
        if seed:
            self.load(seed)

    def load(self, contracts: Iterable[Contract]) -> int:
        """Replace the whole dataset."""
        with self._lock:
            self._data = {c.contract_id: c.model_copy(deep=True) for c in contracts}
            return len(self._data)

    def get_all(self) -> List[Contract]:
        with self._lock:
            return [c.model_copy(deep=True) for c in self._data.values()]

    def get(self, contract_id: str) -> Optional[Contract]:
        with self._lock:
            found = self._data.get(contract_id)
            return found.model_copy(deep=True) if found is not None else None

    def create(self, contract: Contract) -> Contract:
        with self._lock:
            if contract.contract_id in self._data:
                raise ValidationError(details=f"duplicate contract id {contract.contract_id}")
            self._data[contract.contract_id] = contract.model_copy(deep=True)
            return contract

    def modify(self, contract_id: str, fn: Callable[[Contract], Optional[Dict[str, Any]]]) -> Optional[Contract]:
        with self._lock:
            current = self._data.get(contract_id)
            if current is None:
                return None
            changes = fn(current.model_copy(deep=True))
            if changes is None:
                return current.model_copy(deep=True)
            changes = {k: v for k, v in changes.items() if k != "contract_id"}
            merged = apply_changes(current, {**changes, "updated_at": utcnow()})
            self._data[contract_id] = merged
            return merged.model_copy(deep=True)

    def delete(self, contract_id: str) -> bool:
        with self._lock:
            return self._data.pop(contract_id, None) is not None

    def append_audit_entry(self, contract_id: str, entry: AuditEntry) -> bool:
        with self._lock:
            current = self._data.get(contract_id)
            if current is None:
                return False
            current.audit_log.append(entry)
            return True

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


__all__ = ["InMemoryContractRepository"]
