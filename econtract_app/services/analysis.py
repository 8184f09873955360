"""AI analysis of stored contracts.

The orchestrator resolves the contract, asks the configured provider for an
:class:`AIAnalysis`, merges it back into the contract and records an audit
entry.  Provider failures surface as ``UpstreamServiceError("ai")`` and are
never reported as a missing contract.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from econtract_app.core import legal_kb
from econtract_app.core.audit import AIAnalyzedDetails, AuditLog, EnhancedAIAnalyzedDetails
from econtract_app.core.cache import TTLCache
from econtract_app.core.errors import UpstreamServiceError, UpstreamTimeoutError
from econtract_app.core.models import AIAnalysis, Contract, utcnow
from econtract_app.llm.provider import AnalysisProvider, ProviderError, ProviderTimeout
from econtract_app.repositories.base import ContractRepository

from .contracts import require_contract

log = logging.getLogger(__name__)


class AnalysisOrchestrator:
    def __init__(
        self,
        repository: ContractRepository,
        provider: AnalysisProvider,
        audit: AuditLog,
        cache: Optional[TTLCache] = None,
    ) -> None:
        self.repository = repository
        self.provider = provider
        self.audit = audit
        self.cache = cache

    def _run_provider(self, contract: Contract, context: Optional[str] = None) -> AIAnalysis:
        key = (contract.contract_id, contract.updated_at.isoformat(), bool(context))
        if self.cache is not None:
            hit = self.cache.get(key)
            if hit is not None:
                return hit.model_copy(deep=True)
        try:
            analysis = self.provider.analyze(contract, context)
        except ProviderTimeout as exc:
            log.error("analysis of %s timed out: %s", contract.contract_id, exc)
            raise UpstreamTimeoutError("ai", str(exc)) from exc
        except ProviderError as exc:
            log.error("analysis of %s failed: %s", contract.contract_id, exc)
            raise UpstreamServiceError("ai", str(exc)) from exc
        if self.cache is not None:
            self.cache.set(key, analysis.model_copy(deep=True))
        return analysis

    def _merge(self, contract_id: str, analysis: AIAnalysis) -> None:
        updated = self.repository.update(
            contract_id,
            {
                "ai_analysis": analysis,
                "ai_tags": list(analysis.key_terms),
                "updated_at": utcnow(),
            },
        )
        if updated is None:
            # deleted between read and write
            require_contract(self.repository, contract_id)

    def analyze(self, contract_id: str, actor: str = "system", ip_address: Optional[str] = None) -> AIAnalysis:
        contract = require_contract(self.repository, contract_id)
        analysis = self._run_provider(contract)
        self._merge(contract_id, analysis)
        self.audit.append(
            contract_id,
            "ai_analyzed",
            actor,
            AIAnalyzedDetails(contract_id=contract_id, risks_found=len(analysis.risks)),
            ip_address=ip_address,
        )
        log.info("contract %s analyzed (%d risks)", contract_id, len(analysis.risks))
        return analysis

    def enhanced_analyze(
        self, contract_id: str, actor: str = "system", ip_address: Optional[str] = None
    ) -> Dict[str, Any]:
        """Analysis enriched with legal references, compliance checks and stamp tax."""
        contract = require_contract(self.repository, contract_id)
        references = legal_kb.search_provisions(legal_kb.topics_from_contract(contract))
        updates = legal_kb.legal_updates([contract.type])
        context = legal_kb.analysis_context(contract, references, updates)

        analysis = self._run_provider(contract, context)
        self._merge(contract_id, analysis)

        tax = legal_kb.stamp_tax(contract.type, contract.transaction_amount)
        result = {
            **analysis.to_json(),
            "legalReferences": [r.to_json() for r in references],
            "complianceChecks": [c.to_json() for c in legal_kb.compliance_checks(contract, references)],
            "legalUpdates": [u.to_json() for u in updates],
            "recommendedClauses": legal_kb.recommended_clauses(contract),
            "stampTax": tax.to_json(),
        }
        self.audit.append(
            contract_id,
            "enhanced_ai_analyzed",
            actor,
            EnhancedAIAnalyzedDetails(
                contract_id=contract_id,
                risks_found=len(analysis.risks),
                legal_references_found=len(references),
                stamp_tax_amount=tax.tax_amount,
            ),
            ip_address=ip_address,
        )
        return result


__all__ = ["AnalysisOrchestrator"]
