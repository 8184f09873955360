from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request

from econtract_app.core.messages import SUCCESS_MESSAGES
from econtract_app.core.models import Template
from econtract_app.core.templates import instantiate

from .deps import client_ip, get_state, rate_limit
from .limits import API_RATE_LIMIT, API_RATE_WINDOW_S
from .models import TemplateCreateRequest, TemplateInstantiateRequest, TemplateUpdateRequest

router = APIRouter(
    prefix="/api/templates",
    dependencies=[Depends(rate_limit("api", API_RATE_LIMIT, API_RATE_WINDOW_S))],
)


@router.get("")
def list_templates(request: Request, category: Optional[str] = None, include_inactive: bool = False):
    items = get_state(request).templates.list(category=category, include_inactive=include_inactive)
    return {"data": [t.to_json() for t in items]}


@router.post("", status_code=201)
def create_template(body: TemplateCreateRequest, request: Request):
    data = body.model_dump(exclude_none=True)
    template = get_state(request).templates.create(Template.model_validate(data))
    return template.to_json()


@router.get("/{template_id}")
def get_template(template_id: str, request: Request):
    return get_state(request).templates.get(template_id).to_json()


@router.put("/{template_id}")
def update_template(template_id: str, body: TemplateUpdateRequest, request: Request):
    return get_state(request).templates.update(template_id, body.changes()).to_json()


@router.delete("/{template_id}")
def delete_template(template_id: str, request: Request):
    templates = get_state(request).templates
    templates.get(template_id)
    templates.delete(template_id)
    return {"success": True}


@router.post("/{template_id}/instantiate", status_code=201)
def instantiate_template(template_id: str, body: TemplateInstantiateRequest, request: Request):
    state = get_state(request)
    template = state.templates.get(template_id)
    contract = instantiate(
        template,
        body.values,
        title=body.title,
        contract_type=body.type,
        excluded_clauses=body.excluded_clauses,
        parties=[p.to_party() for p in body.parties],
        created_by="system",
    )
    created = state.contracts.create(
        contract, "system", client_ip(request), source="template", template_id=template.template_id
    )
    return {
        "success": True,
        "message": SUCCESS_MESSAGES["contract_created"],
        "contract": created.to_json(),
    }


__all__ = ["router"]
