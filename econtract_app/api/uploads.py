from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile

from econtract_app.core.errors import ValidationError
from econtract_app.core.messages import ERROR_MESSAGES

from .deps import client_ip, get_state, rate_limit
from .limits import MAX_UPLOAD_BYTES, UPLOAD_RATE_LIMIT, UPLOAD_RATE_WINDOW_S

router = APIRouter(
    prefix="/api/upload",
    dependencies=[Depends(rate_limit("upload", UPLOAD_RATE_LIMIT, UPLOAD_RATE_WINDOW_S))],
)


@router.post("/ocr")
def upload_ocr(
    request: Request,
    file: Optional[UploadFile] = File(None),
    contract_id: Optional[str] = Form(None, alias="contractId"),
):
    if file is None:
        raise ValidationError(ERROR_MESSAGES["file_missing"])
    # read one byte past the limit so oversized files are detected without loading them whole
    data = file.file.read(MAX_UPLOAD_BYTES + 1)
    return get_state(request).ocr.process(
        data,
        file.filename or "upload",
        file.content_type,
        contract_id=(contract_id or "").strip() or None,
        ip_address=client_ip(request),
    )


__all__ = ["router"]
