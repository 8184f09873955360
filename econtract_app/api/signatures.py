from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from econtract_app.core.messages import SUCCESS_MESSAGES

from .deps import client_ip, get_state, rate_limit, user_agent
from .limits import SIGN_RATE_LIMIT, SIGN_RATE_WINDOW_S, SIGN_SUBMIT_RATE_LIMIT
from .models import SignatureRequestBody, SignatureSubmitBody

router = APIRouter(prefix="/api/contracts")


@router.post(
    "/{contract_id}/sign",
    dependencies=[Depends(rate_limit("sign", SIGN_RATE_LIMIT, SIGN_RATE_WINDOW_S))],
)
def request_signature(contract_id: str, body: SignatureRequestBody, request: Request):
    return get_state(request).signing.request_signature(
        contract_id, body.party_id.strip(), "system", client_ip(request)
    )


@router.put(
    "/{contract_id}/sign",
    dependencies=[Depends(rate_limit("sign_submit", SIGN_SUBMIT_RATE_LIMIT, SIGN_RATE_WINDOW_S))],
)
def submit_signature(contract_id: str, body: SignatureSubmitBody, request: Request):
    return get_state(request).signing.submit_signature(
        contract_id,
        body.token.strip(),
        ip_address=client_ip(request),
        user_agent=user_agent(request),
        signature_data_url=body.signature_data_url,
    )


@router.get("/{contract_id}/signatures/verify")
def verify_signatures(contract_id: str, request: Request):
    return get_state(request).signing.verify(contract_id)


@router.post("/{contract_id}/certificate")
def issue_certificate(contract_id: str, request: Request):
    certificate, created = get_state(request).signing.issue_certificate(contract_id)
    key = "certificate_issued" if created else "certificate_exists"
    return {
        "success": True,
        "certificate": certificate.to_json(),
        "message": SUCCESS_MESSAGES[key],
    }


__all__ = ["router"]
