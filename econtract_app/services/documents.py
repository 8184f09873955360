from __future__ import annotations

import logging
from typing import Callable, Optional

from econtract_app.core.audit import AuditLog, DownloadedDetails
from econtract_app.core.errors import NotFoundError, UpstreamServiceError
from econtract_app.core.messages import ERROR_MESSAGES
from econtract_app.report.pdf import PDFError, html_to_pdf_bytes
from econtract_app.report.renderer import render_certificate_html, render_contract_html
from econtract_app.repositories.base import ContractRepository

from .contracts import require_contract

log = logging.getLogger(__name__)

PDFConverter = Callable[[str, str], bytes]


class DocumentService:
    """HTML and PDF renditions of contracts and completion certificates."""

    def __init__(
        self,
        repository: ContractRepository,
        audit: AuditLog,
        backend: str = "auto",
        converter: PDFConverter = html_to_pdf_bytes,
    ) -> None:
        self.repository = repository
        self.audit = audit
        self.backend = backend
        self.converter = converter

    def _convert(self, html: str) -> bytes:
        try:
            return self.converter(html, self.backend)
        except (PDFError, OSError) as exc:
            log.error("pdf conversion failed: %s", exc)
            raise UpstreamServiceError("pdf", str(exc)) from exc

    def contract_pdf(self, contract_id: str, actor: str = "anonymous", ip_address: Optional[str] = None) -> bytes:
        contract = require_contract(self.repository, contract_id)
        data = self._convert(render_contract_html(contract))
        self.audit.append(
            contract_id,
            "downloaded",
            actor,
            DownloadedDetails(contract_id=contract_id, document="contract", format="pdf"),
            ip_address,
        )
        return data

    def certificate_pdf(self, contract_id: str, actor: str = "anonymous", ip_address: Optional[str] = None) -> bytes:
        contract = require_contract(self.repository, contract_id)
        if contract.certificate is None:
            raise NotFoundError(ERROR_MESSAGES["certificate_not_issued"], details=contract_id)
        data = self._convert(render_certificate_html(contract.certificate, contract))
        self.audit.append(
            contract_id,
            "downloaded",
            actor,
            DownloadedDetails(contract_id=contract_id, document="certificate", format="pdf"),
            ip_address,
        )
        return data


__all__ = ["DocumentService"]
