from fastapi import APIRouter, Request

from econtract_app.core.demo_data import demo_contracts
from econtract_app.core.errors import ValidationError
from econtract_app.core.messages import ERROR_MESSAGES, SUCCESS_MESSAGES

from .deps import get_state

router = APIRouter(prefix="/api/demo")


@router.post("/seed")
def seed(request: Request):
    """Reset the in-memory store to the demo dataset."""
    state = get_state(request)
    if not state.config.is_demo:
        raise ValidationError(ERROR_MESSAGES["demo_only"])
    contracts = demo_contracts()
    state.repository.load(contracts)
    return {"success": True, "count": len(contracts), "message": SUCCESS_MESSAGES["demo_seeded"]}


__all__ = ["router"]
