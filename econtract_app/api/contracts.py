from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request

from econtract_app.core.errors import ValidationError
from econtract_app.core.filters import FilterSpec, SortSpec
from econtract_app.core.messages import SUCCESS_MESSAGES
from econtract_app.services.analytics import contract_analytics

from .deps import client_ip, get_state, rate_limit
from .limits import API_RATE_LIMIT, API_RATE_WINDOW_S, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from .models import ContractCreateRequest, ContractUpdateRequest

ACTOR = "system"

router = APIRouter(
    prefix="/api/contracts",
    dependencies=[Depends(rate_limit("api", API_RATE_LIMIT, API_RATE_WINDOW_S))],
)


def _multi(values: Optional[List[str]]) -> Optional[List[str]]:
    """Accept ``?status=a&status=b`` as well as ``?status=a,b``."""
    if not values:
        return None
    out = [v.strip() for raw in values for v in raw.split(",") if v.strip()]
    return out or None


@router.get("")
def list_contracts(
    request: Request,
    q: Optional[str] = None,
    status: Optional[List[str]] = Query(None),
    type: Optional[List[str]] = Query(None),
    category: Optional[str] = None,
    priority: Optional[str] = None,
    tag: Optional[str] = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    sort_by: str = Query("updatedAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
):
    spec = FilterSpec(
        query=(q or "").strip() or None,
        status=_multi(status),
        type=_multi(type),
        category=category or None,
        priority=priority or None,
        tag=tag or None,
    )
    try:
        sort = SortSpec(sort_by, sort_order.lower())
    except ValueError as exc:
        raise ValidationError(details=str(exc)) from exc
    limit = min(max(1, limit), MAX_PAGE_SIZE)
    result = get_state(request).contracts.list(spec, sort, page=max(1, page), limit=limit)
    return {
        "data": [c.to_json() for c in result.items],
        "pagination": result.pagination.to_json(),
    }


@router.get("/analytics")
def analytics(request: Request):
    return contract_analytics(get_state(request).repository.get_all())


@router.get("/{contract_id}")
def get_contract(contract_id: str, request: Request):
    contract = get_state(request).contracts.get(contract_id, ACTOR, client_ip(request))
    return contract.to_json()


@router.post("", status_code=201)
def create_contract(body: ContractCreateRequest, request: Request):
    state = get_state(request)
    contract = state.contracts.create(body.to_contract(created_by=ACTOR), ACTOR, client_ip(request))
    return contract.to_json()


@router.api_route("/{contract_id}", methods=["PUT", "PATCH"])
def update_contract(contract_id: str, body: ContractUpdateRequest, request: Request):
    state = get_state(request)
    contract = state.contracts.update(contract_id, body.changes(), ACTOR, client_ip(request))
    return {
        "success": True,
        "message": SUCCESS_MESSAGES["contract_updated"],
        "contract": contract.to_json(),
    }


@router.delete("/{contract_id}")
def delete_contract(contract_id: str, request: Request):
    get_state(request).contracts.cancel(contract_id, ACTOR, client_ip(request))
    return {"success": True, "message": SUCCESS_MESSAGES["contract_cancelled"]}


__all__ = ["router"]
