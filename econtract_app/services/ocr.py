from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from econtract_app.api.limits import MAX_UPLOAD_BYTES
from econtract_app.core.audit import AuditLog, OCRProcessedDetails
from econtract_app.core.errors import UpstreamServiceError, UpstreamTimeoutError, ValidationError
from econtract_app.core.messages import ERROR_MESSAGES, SUCCESS_MESSAGES
from econtract_app.core.ocr_fields import extract_contract_info, is_contract_document
from econtract_app.integrations.ocr import OCRError, OCRTimeout
from econtract_app.repositories.base import ContractRepository

from .contracts import require_contract

log = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "image/tiff", "image/bmp"})


def check_upload(content_type: Optional[str], size: int) -> None:
    if size <= 0:
        raise ValidationError(ERROR_MESSAGES["file_missing"])
    if (content_type or "").lower() not in ALLOWED_IMAGE_TYPES:
        raise ValidationError(ERROR_MESSAGES["invalid_image_type"], details=content_type)
    if size > MAX_UPLOAD_BYTES:
        raise ValidationError(
            ERROR_MESSAGES["file_too_large"],
            details=f"{size} bytes > {MAX_UPLOAD_BYTES}",
        )


class OCRService:
    def __init__(self, client, repository: ContractRepository, audit: AuditLog) -> None:
        self.client = client
        self.repository = repository
        self.audit = audit

    def process(
        self,
        data: bytes,
        filename: str,
        content_type: Optional[str],
        contract_id: Optional[str] = None,
        actor: str = "anonymous",
        ip_address: Optional[str] = None,
    ) -> Dict[str, Any]:
        check_upload(content_type, len(data))
        if contract_id:
            require_contract(self.repository, contract_id)

        try:
            result = self.client.read_image(data)
        except OCRTimeout as exc:
            log.error("ocr of %s timed out: %s", filename, exc)
            raise UpstreamTimeoutError("ocr", str(exc)) from exc
        except OCRError as exc:
            log.error("ocr of %s failed: %s", filename, exc)
            raise UpstreamServiceError("ocr", str(exc)) from exc

        is_contract = is_contract_document(result.text)
        info = extract_contract_info(result.text) if is_contract else None
        if contract_id:
            self.audit.append(
                contract_id,
                "ocr_processed",
                actor,
                OCRProcessedDetails(
                    contract_id=contract_id,
                    file_name=filename,
                    file_size=len(data),
                    text_length=len(result.text),
                    confidence=result.confidence,
                    is_contract=is_contract,
                ),
                ip_address,
            )
        return {
            "success": True,
            "text": result.text,
            "confidence": result.confidence,
            "language": result.language,
            "lineCount": len(result.lines),
            "isContract": is_contract,
            "contractInfo": info.to_json() if info is not None else None,
            "message": SUCCESS_MESSAGES["ocr_complete"],
        }


__all__ = ["ALLOWED_IMAGE_TYPES", "OCRService", "check_upload"]
