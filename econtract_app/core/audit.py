from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Literal, Mapping, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field

from econtract_app.security.secure_store import secure_write

from .models import AuditAction, AuditEntry, CamelModel, utcnow

log = logging.getLogger(__name__)


class _Details(CamelModel):
    model_config = ConfigDict(extra="forbid")

    contract_id: str


class CreatedDetails(_Details):
    title: str
    type: str
    source: Literal["api", "template", "ocr", "seed"] = "api"
    template_id: Optional[str] = None


class UpdatedDetails(_Details):
    updated_fields: List[str] = Field(default_factory=list)
    previous_status: Optional[str] = None
    new_status: Optional[str] = None


class ViewedDetails(_Details):
    pass


class DownloadedDetails(_Details):
    document: Literal["contract", "certificate"] = "contract"
    format: Literal["pdf", "html"] = "pdf"


class SignedDetails(_Details):
    party_id: str
    certificate_id: str
    ip_address: str
    user_agent: str


class SentForSignatureDetails(_Details):
    party_id: str
    expires_at: datetime
    email_sent: bool = False


class CancelledDetails(_Details):
    previous_status: str


class CompletedDetails(_Details):
    certificate_id: Optional[str] = None
    signatures: int = 0


class DeletedDetails(_Details):
    pass


class AIAnalyzedDetails(_Details):
    analysis_type: Literal["full"] = "full"
    risks_found: int = Field(ge=0)


class EnhancedAIAnalyzedDetails(_Details):
    analysis_type: Literal["enhanced"] = "enhanced"
    risks_found: int = Field(ge=0)
    legal_references_found: int = Field(0, ge=0)
    stamp_tax_amount: int = Field(0, ge=0)


class LegalChatDetails(_Details):
    message_length: int = Field(ge=0)
    response_length: int = Field(ge=0)
    confidence: float = Field(ge=0.0, le=1.0)
    references_count: int = Field(ge=0)
    is_contract_specific: bool = False


class OCRProcessedDetails(_Details):
    file_name: str
    file_size: int = Field(ge=0)
    text_length: int = Field(ge=0)
    confidence: float = Field(ge=0.0, le=1.0)
    is_contract: bool = False


DETAILS_MODELS: Dict[str, Type[_Details]] = {
    "created": CreatedDetails,
    "updated": UpdatedDetails,
    "viewed": ViewedDetails,
    "downloaded": DownloadedDetails,
    "signed": SignedDetails,
    "sent_for_signature": SentForSignatureDetails,
    "cancelled": CancelledDetails,
    "completed": CompletedDetails,
    "deleted": DeletedDetails,
    "ai_analyzed": AIAnalyzedDetails,
    "enhanced_ai_analyzed": EnhancedAIAnalyzedDetails,
    "legal_chat": LegalChatDetails,
    "ocr_processed": OCRProcessedDetails,
}


def build_details(
    action: str, contract_id: str, details: Union[Mapping[str, Any], BaseModel, None]
) -> Dict[str, Any]:
    """Validate ``details`` against the model registered for ``action``."""
    model = DETAILS_MODELS[action]
    if isinstance(details, BaseModel):
        details = details.model_dump()
    data = dict(details or {})
    if "contractId" not in data:
        data.setdefault("contract_id", contract_id)
    return model.model_validate(data).to_json()


class AuditLog:
    """Appends audit entries to contracts.

    Appending is best-effort: every failure is logged and ``append`` returns
    ``None`` instead of raising, so an audit problem never fails the request
    that triggered it.  When ``trail_path`` is set each entry is also written
    to an encrypted JSON-lines file.
    """

    def __init__(self, repository, trail_path: Optional[str] = None, cipher=None) -> None:
        self.repository = repository
        self.trail_path = trail_path
        self.cipher = cipher

    def append(
        self,
        contract_id: str,
        action: AuditAction,
        actor: str,
        details: Union[Mapping[str, Any], BaseModel, None] = None,
        ip_address: Optional[str] = None,
    ) -> Optional[AuditEntry]:
        try:
            entry = AuditEntry(
                id=f"audit-{uuid.uuid4().hex}",
                action=action,
                performed_by=actor or "anonymous",
                performed_at=utcnow(),
                details=build_details(action, contract_id, details),
                ip_address=ip_address,
            )
            if not self.repository.append_audit_entry(contract_id, entry):
                log.warning("audit %s skipped: contract %s not found", action, contract_id)
                return None
        except Exception as exc:
            log.warning("failed to append audit entry %s for %s: %s", action, contract_id, exc)
            return None
        if self.trail_path:
            self._mirror(contract_id, entry)
        return entry

    def _mirror(self, contract_id: str, entry: AuditEntry) -> None:
        record = {"contractId": contract_id, **entry.to_json()}
        try:
            secure_write(
                self.trail_path,
                json.dumps(record, sort_keys=True, ensure_ascii=False),
                append=True,
                cipher=self.cipher,
            )
        except Exception as exc:  # pragma: no cover - rare
            log.warning("failed to write audit trail: %s", exc)


__all__ = [
    "AuditLog",
    "DETAILS_MODELS",
    "build_details",
    "CreatedDetails",
    "UpdatedDetails",
    "SignedDetails",
    "SentForSignatureDetails",
    "AIAnalyzedDetails",
    "EnhancedAIAnalyzedDetails",
    "LegalChatDetails",
    "OCRProcessedDetails",
]
