"""Request bodies accepted by the HTTP API.

Bodies are validated once here; services receive plain values or core
models.  JSON keys are camelCase, Python attributes snake_case.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from econtract_app.core.models import (
    Attachment,
    Contract,
    ContractStatus,
    ContractType,
    Party,
    PartyType,
    Priority,
    TemplateClause,
    TemplateVariable,
    new_id,
)


class _DTOBase(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True, alias_generator=to_camel)


def _strip_required(v: Any) -> Any:
    if isinstance(v, str):
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
    return v


class PartyIn(_DTOBase):
    id: str = Field(default_factory=lambda: new_id("party"))
    type: PartyType
    name: str
    email: str
    company: Optional[str] = None
    role: Optional[str] = None
    signature_required: bool = True
    address: Optional[str] = None
    signed_at: Optional[datetime] = None

    @field_validator("name", "email", mode="before")
    @classmethod
    def _required(cls, v):
        return _strip_required(v)

    def to_party(self) -> Party:
        return Party.model_validate(self.model_dump())


# ============================================================================
# Contracts
# ============================================================================
class ContractCreateRequest(_DTOBase):
    title: str
    content: str
    type: ContractType
    description: Optional[str] = None
    parties: List[PartyIn] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    priority: Optional[Priority] = None
    category: Optional[str] = None
    transaction_amount: Optional[float] = Field(None, ge=0)
    transaction_date: Optional[datetime] = None
    counterparty_tax_id: Optional[str] = None
    retention_period: int = Field(7, ge=1)

    @field_validator("title", "content", mode="before")
    @classmethod
    def _required(cls, v):
        return _strip_required(v)

    def to_contract(self, created_by: str = "system") -> Contract:
        data = self.model_dump(exclude={"parties"})
        return Contract(
            **data,
            parties=[p.to_party() for p in self.parties],
            created_by=created_by,
        )


class ContractUpdateRequest(_DTOBase):
    """Partial update; only the fields present in the body change.

    Clients usually send back the whole document they fetched, so unknown and
    read-only keys are ignored rather than rejected.
    """

    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    content: Optional[str] = None
    description: Optional[str] = None
    type: Optional[ContractType] = None
    status: Optional[ContractStatus] = None
    parties: Optional[List[PartyIn]] = None
    tags: Optional[List[str]] = None
    priority: Optional[Priority] = None
    category: Optional[str] = None
    pdf_url: Optional[str] = None
    attachments: Optional[List[Attachment]] = None
    transaction_amount: Optional[float] = Field(None, ge=0)
    transaction_date: Optional[datetime] = None
    counterparty_tax_id: Optional[str] = None
    retention_period: Optional[int] = Field(None, ge=1)

    @field_validator("title", "content", mode="before")
    @classmethod
    def _not_blank(cls, v):
        return v if v is None else _strip_required(v)

    def changes(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            if name in ("title", "content", "type", "status", "retention_period") and value is None:
                continue
            if name == "parties" and value is not None:
                value = [p.to_party() for p in value]
            data[name] = value
        return data


class ContractIdRequest(_DTOBase):
    model_config = ConfigDict(extra="ignore")

    contract_id: str = ""


# ============================================================================
# AI
# ============================================================================
class ChatTurn(_DTOBase):
    model_config = ConfigDict(extra="ignore")

    role: Literal["user", "assistant", "system"]
    content: str


class LegalChatRequest(_DTOBase):
    model_config = ConfigDict(extra="ignore")

    contract_id: str = ""
    message: Optional[str] = None
    conversation_history: List[ChatTurn] = Field(default_factory=list)
    is_contract_specific: bool = False


# ============================================================================
# Signatures
# ============================================================================
class SignatureRequestBody(_DTOBase):
    party_id: str = ""


class SignatureSubmitBody(_DTOBase):
    token: str = ""
    signature_data_url: Optional[str] = Field(None, max_length=2_000_000)


# ============================================================================
# Templates
# ============================================================================
class TemplateCreateRequest(_DTOBase):
    template_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    category: str = "general"
    title: str
    clauses: List[TemplateClause] = Field(default_factory=list)
    variables: List[TemplateVariable] = Field(default_factory=list)
    contract_type: ContractType = "other"
    is_active: bool = True
    tags: List[str] = Field(default_factory=list)

    @field_validator("name", "title", mode="before")
    @classmethod
    def _required(cls, v):
        return _strip_required(v)


class TemplateUpdateRequest(_DTOBase):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    title: Optional[str] = None
    clauses: Optional[List[TemplateClause]] = None
    variables: Optional[List[TemplateVariable]] = None
    contract_type: Optional[ContractType] = None
    is_active: Optional[bool] = None
    tags: Optional[List[str]] = None

    def changes(self) -> Dict[str, Any]:
        return {k: getattr(self, k) for k in self.model_fields_set if getattr(self, k) is not None}


class TemplateInstantiateRequest(_DTOBase):
    values: Dict[str, Any] = Field(default_factory=dict)
    title: Optional[str] = None
    type: Optional[ContractType] = None
    excluded_clauses: List[str] = Field(default_factory=list)
    parties: List[PartyIn] = Field(default_factory=list)


__all__ = [
    "ChatTurn",
    "ContractCreateRequest",
    "ContractIdRequest",
    "ContractUpdateRequest",
    "LegalChatRequest",
    "PartyIn",
    "SignatureRequestBody",
    "SignatureSubmitBody",
    "TemplateCreateRequest",
    "TemplateInstantiateRequest",
    "TemplateUpdateRequest",
]
