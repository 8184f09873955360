from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from econtract_app.core.errors import ValidationError
from econtract_app.core.messages import ERROR_MESSAGES, SUCCESS_MESSAGES

from .deps import client_ip, get_state, rate_limit
from .limits import AI_RATE_LIMIT, AI_RATE_WINDOW_S, CHAT_RATE_LIMIT, CHAT_RATE_WINDOW_S
from .models import ContractIdRequest, LegalChatRequest

router = APIRouter(prefix="/api/ai")

_ai_limit = Depends(rate_limit("ai", AI_RATE_LIMIT, AI_RATE_WINDOW_S))


def _contract_id(body: ContractIdRequest) -> str:
    contract_id = body.contract_id.strip()
    if not contract_id:
        raise ValidationError(ERROR_MESSAGES["contract_id_required"])
    return contract_id


@router.post("/analyze", dependencies=[_ai_limit])
def analyze(body: ContractIdRequest, request: Request):
    analysis = get_state(request).analysis.analyze(_contract_id(body), "system", client_ip(request))
    return {"message": SUCCESS_MESSAGES["ai_analysis_complete"], "analysis": analysis.to_json()}


@router.post("/enhanced-analyze", dependencies=[_ai_limit])
def enhanced_analyze(body: ContractIdRequest, request: Request):
    analysis = get_state(request).analysis.enhanced_analyze(_contract_id(body), "system", client_ip(request))
    return {"message": SUCCESS_MESSAGES["ai_analysis_complete"], "analysis": analysis}


@router.post(
    "/legal-chat",
    dependencies=[Depends(rate_limit("legal_chat", CHAT_RATE_LIMIT, CHAT_RATE_WINDOW_S))],
)
def legal_chat(body: LegalChatRequest, request: Request):
    history = [t.model_dump() for t in body.conversation_history if t.role != "system"]
    return get_state(request).chat.ask(
        body.contract_id.strip(),
        body.message,
        history=history,
        contract_specific=body.is_contract_specific,
        ip_address=client_ip(request),
    )


__all__ = ["router"]
