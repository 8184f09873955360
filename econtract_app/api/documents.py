from fastapi import APIRouter, Depends, Request, Response

from .deps import client_ip, get_state, rate_limit
from .limits import API_RATE_LIMIT, API_RATE_WINDOW_S

router = APIRouter(
    prefix="/api/contracts",
    dependencies=[Depends(rate_limit("api", API_RATE_LIMIT, API_RATE_WINDOW_S))],
)


def _pdf(data: bytes, filename: str) -> Response:
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    return Response(content=data, media_type="application/pdf", headers=headers)


@router.get("/{contract_id}/pdf")
def contract_pdf(contract_id: str, request: Request):
    data = get_state(request).documents.contract_pdf(contract_id, "system", client_ip(request))
    return _pdf(data, f"{contract_id}.pdf")


@router.get("/{contract_id}/certificate/pdf")
def certificate_pdf(contract_id: str, request: Request):
    data = get_state(request).documents.certificate_pdf(contract_id, "system", client_ip(request))
    return _pdf(data, f"{contract_id}-certificate.pdf")


__all__ = ["router"]
