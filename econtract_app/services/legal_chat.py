from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

from econtract_app.core import legal_kb
from econtract_app.core.audit import AuditLog, LegalChatDetails
from econtract_app.core.errors import UpstreamServiceError, ValidationError
from econtract_app.core.messages import CHAT_FALLBACK_RESPONSE, ERROR_MESSAGES
from econtract_app.core.models import utcnow
from econtract_app.llm.provider import AnalysisProvider, ProviderError
from econtract_app.repositories.base import ContractRepository

from .contracts import require_contract

log = logging.getLogger(__name__)

MAX_MESSAGE_CHARS = 4000


class LegalChatError(UpstreamServiceError):
    """Chat failure; the body still carries a safe fallback answer."""

    def __init__(self, details: Optional[str] = None) -> None:
        super().__init__("ai", details=details, message=ERROR_MESSAGES["chat_failed"])

    def to_body(self, include_details: bool = True) -> dict:
        body = super().to_body(include_details)
        body.update(
            success=False,
            response=CHAT_FALLBACK_RESPONSE,
            references=[],
            confidence=0,
            metadata={"errorOccurredAt": utcnow().isoformat()},
        )
        return body


class LegalChatService:
    def __init__(self, repository: ContractRepository, provider: AnalysisProvider, audit: AuditLog) -> None:
        self.repository = repository
        self.provider = provider
        self.audit = audit

    def ask(
        self,
        contract_id: str,
        message: str,
        history: Sequence[Dict[str, str]] = (),
        contract_specific: bool = False,
        actor: str = "anonymous",
        ip_address: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not contract_id or message is None:
            raise ValidationError(ERROR_MESSAGES["chat_input_required"])
        message = message.strip()
        if not message or len(message) > MAX_MESSAGE_CHARS:
            raise ValidationError(ERROR_MESSAGES["chat_invalid_message"])

        contract = require_contract(self.repository, contract_id)
        topics = legal_kb.topics_from_query(message) + legal_kb.topics_from_contract(contract)
        references = legal_kb.search_provisions(topics)
        context = legal_kb.chat_context(contract, references, message, contract_specific)

        try:
            response = self.provider.chat(message, context, history, contract)
        except ProviderError as exc:
            log.error("legal chat for %s failed: %s", contract_id, exc)
            raise LegalChatError(str(exc)) from exc

        confidence = legal_kb.response_confidence(response, len(references))
        self.audit.append(
            contract_id,
            "legal_chat",
            actor,
            LegalChatDetails(
                contract_id=contract_id,
                message_length=len(message),
                response_length=len(response),
                confidence=confidence,
                references_count=len(references),
                is_contract_specific=contract_specific,
            ),
            ip_address,
        )
        return {
            "success": True,
            "response": response,
            "references": [r.to_json() for r in references],
            "confidence": confidence,
            "metadata": {
                "contractId": contract_id,
                "messageProcessedAt": utcnow().isoformat(),
                "legalReferencesCount": len(references),
                "responseLength": len(response),
                "isContractSpecific": contract_specific,
            },
        }


__all__ = ["LegalChatError", "LegalChatService", "MAX_MESSAGE_CHARS"]
