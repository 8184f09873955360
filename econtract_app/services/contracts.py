from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from econtract_app.core.audit import AuditLog, CancelledDetails, CreatedDetails, UpdatedDetails, ViewedDetails
from econtract_app.core.errors import NotFoundError, ValidationError
from econtract_app.core.filters import FilterSpec, SortSpec
from econtract_app.core.lifecycle import (
    check_parties_change,
    check_transition,
    ensure_deletable,
    ensure_editable,
)
from econtract_app.core.messages import ERROR_MESSAGES
from econtract_app.core.models import Contract, Page, Party
from econtract_app.repositories.base import ContractRepository

log = logging.getLogger(__name__)

# Written only by the signing and audit paths.
PROTECTED_FIELDS = frozenset(
    {
        "contract_id",
        "signatures",
        "audit_log",
        "created_at",
        "created_by",
        "completed_at",
        "certificate",
        "signature_request_token",
        "signature_expires_at",
        "ai_analysis",
        "ai_tags",
    }
)


def require_contract(repository: ContractRepository, contract_id: str) -> Contract:
    if not contract_id:
        raise ValidationError(ERROR_MESSAGES["contract_id_required"])
    contract = repository.get(contract_id)
    if contract is None:
        raise NotFoundError(ERROR_MESSAGES["contract_not_found"], details=contract_id)
    return contract


class ContractService:
    """Contract CRUD with lifecycle checks and audit entries."""

    def __init__(self, repository: ContractRepository, audit: AuditLog) -> None:
        self.repository = repository
        self.audit = audit

    def list(
        self,
        spec: Optional[FilterSpec] = None,
        sort: Optional[SortSpec] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page:
        return self.repository.get_paginated(page, limit, spec, sort)

    def get(self, contract_id: str, actor: str = "anonymous", ip_address: Optional[str] = None) -> Contract:
        contract = require_contract(self.repository, contract_id)
        self.audit.append(contract_id, "viewed", actor, ViewedDetails(contract_id=contract_id), ip_address)
        return contract

    def create(
        self,
        contract: Contract,
        actor: str = "system",
        ip_address: Optional[str] = None,
        source: str = "api",
        template_id: Optional[str] = None,
    ) -> Contract:
        created = self.repository.create(contract)
        self.audit.append(
            created.contract_id,
            "created",
            actor,
            CreatedDetails(
                contract_id=created.contract_id,
                title=created.title,
                type=created.type,
                source=source,
                template_id=template_id,
            ),
            ip_address,
        )
        log.info("contract %s created (%s)", created.contract_id, source)
        # re-read so the response carries the audit entry
        return self.repository.get(created.contract_id) or created

    def update(
        self,
        contract_id: str,
        changes: Mapping[str, Any],
        actor: str = "system",
        ip_address: Optional[str] = None,
    ) -> Contract:
        require_contract(self.repository, contract_id)
        data: Dict[str, Any] = {k: v for k, v in changes.items() if k not in PROTECTED_FIELDS}
        if data.get("parties") is not None:
            data["parties"] = [p if isinstance(p, Party) else Party.model_validate(p) for p in data["parties"]]
        previous: Dict[str, Any] = {}

        # checks run against the stored state under the write lock
        def edit(current: Contract) -> Dict[str, Any]:
            ensure_editable(current)
            if "status" in data and data["status"] is not None:
                check_transition(current.status, data["status"])
            if data.get("parties") is not None:
                check_parties_change(current, data["parties"])
            previous["status"] = current.status
            return data

        updated = self.repository.modify(contract_id, edit)
        if updated is None:
            raise NotFoundError(ERROR_MESSAGES["contract_not_found"], details=contract_id)
        self.audit.append(
            contract_id,
            "updated",
            actor,
            UpdatedDetails(
                contract_id=contract_id,
                updated_fields=sorted(data),
                previous_status=previous["status"],
                new_status=updated.status,
            ),
            ip_address,
        )
        return updated

    def cancel(self, contract_id: str, actor: str = "system", ip_address: Optional[str] = None) -> Contract:
        """Soft delete: the contract stays stored with status ``cancelled``."""
        require_contract(self.repository, contract_id)
        previous: Dict[str, Any] = {}

        def soft_delete(current: Contract) -> Dict[str, Any]:
            ensure_deletable(current)
            check_transition(current.status, "cancelled")
            previous["status"] = current.status
            return {"status": "cancelled"}

        updated = self.repository.modify(contract_id, soft_delete)
        if updated is None:
            raise NotFoundError(ERROR_MESSAGES["contract_not_found"], details=contract_id)
        self.audit.append(
            contract_id,
            "cancelled",
            actor,
            CancelledDetails(contract_id=contract_id, previous_status=previous["status"]),
            ip_address,
        )
        log.info("contract %s cancelled", contract_id)
        return updated


__all__ = ["ContractService", "PROTECTED_FIELDS", "require_contract"]
