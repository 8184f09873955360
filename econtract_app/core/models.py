from __future__ import annotations

import re
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional, get_args

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

__all__ = [
    "ContractStatus",
    "ContractType",
    "AuditAction",
    "PartyType",
    "Priority",
    "RiskLevel",
    "CONTRACT_STATUSES",
    "CONTRACT_TYPES",
    "AUDIT_ACTIONS",
    "PRIORITIES",
    "CamelModel",
    "Party",
    "Signature",
    "Attachment",
    "AuditEntry",
    "Risk",
    "AIAnalysis",
    "CertificateSignature",
    "CompletionCertificate",
    "Contract",
    "Pagination",
    "Page",
    "TemplateVariableValidation",
    "TemplateVariable",
    "TemplateClause",
    "Template",
    "utcnow",
    "as_utc",
    "new_contract_id",
    "new_id",
    "apply_changes",
]


# ============================================================================
# Enumerations
# ============================================================================
ContractStatus = Literal[
    "draft",
    "pending_review",
    "pending_signature",
    "partially_signed",
    "completed",
    "cancelled",
    "expired",
]

ContractType = Literal[
    "service_agreement",
    "design_agreement",
    "nda",
    "employment",
    "sales",
    "lease",
    "partnership",
    "other",
]

AuditAction = Literal[
    "created",
    "updated",
    "viewed",
    "downloaded",
    "signed",
    "sent_for_signature",
    "cancelled",
    "completed",
    "deleted",
    "ai_analyzed",
    "enhanced_ai_analyzed",
    "legal_chat",
    "ocr_processed",
]

PartyType = Literal["contractor", "client"]
Priority = Literal["low", "medium", "high"]
RiskLevel = Literal["low", "medium", "high"]
VariableType = Literal["text", "number", "date", "select", "boolean"]

CONTRACT_STATUSES = get_args(ContractStatus)
CONTRACT_TYPES = get_args(ContractType)
AUDIT_ACTIONS = get_args(AuditAction)
PRIORITIES = get_args(Priority)


# ============================================================================
# Time / id helpers
# ============================================================================
def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]

_ID_ALPHABET = string.ascii_uppercase + string.digits


def new_contract_id(now_ms: Optional[int] = None) -> str:
    """``CNT-<epoch ms>-<9 random uppercase alphanumerics>``"""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"CNT-{now_ms}-{suffix}"


def new_id(prefix: str) -> str:
    return f"{prefix}-{int(time.time() * 1000)}-{secrets.token_hex(4)}"


# ============================================================================
# Base config
# ============================================================================
class CamelModel(BaseModel):
    """snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ============================================================================
# Contract parts
# ============================================================================
class Party(CamelModel):
    id: str
    type: PartyType
    name: str
    email: str
    company: Optional[str] = None
    role: Optional[str] = None
    signature_required: bool = True
    address: Optional[str] = None
    signed_at: Optional[UtcDatetime] = None


class Signature(CamelModel):
    model_config = ConfigDict(frozen=True)

    party_id: str
    signature_data: Optional[str] = None
    signed_at: UtcDatetime
    ip_address: str
    user_agent: str
    verification_hash: str
    certificate_id: str


class Attachment(CamelModel):
    id: str
    filename: str
    file_url: str
    file_type: str
    file_size: int = Field(0, ge=0)
    uploaded_at: UtcDatetime = Field(default_factory=utcnow)
    uploaded_by: str = "system"


class AuditEntry(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: str
    action: AuditAction
    performed_by: str
    performed_at: UtcDatetime
    details: Dict[str, Any] = Field(default_factory=dict)
    ip_address: Optional[str] = None


class Risk(CamelModel):
    level: RiskLevel
    description: str
    mitigation: Optional[str] = None


class AIAnalysis(CamelModel):
    summary: str = ""
    key_terms: List[str] = Field(default_factory=list)
    risks: List[Risk] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    contract_type: Optional[str] = None
    estimated_value: Optional[float] = None
    analyzed_at: UtcDatetime = Field(default_factory=utcnow)


class CertificateSignature(CamelModel):
    party_id: str
    party_name: str
    party_email: str
    signed_at: UtcDatetime
    verification_hash: str
    certificate_id: str
    ip_address: str


class CompletionCertificate(CamelModel):
    certificate_id: str
    contract_id: str
    contract_title: str
    content_hash: str
    issued_at: UtcDatetime
    completed_at: Optional[UtcDatetime] = None
    signatures: List[CertificateSignature] = Field(default_factory=list)


# ============================================================================
# Contract
# ============================================================================
class Contract(CamelModel):
    contract_id: str = Field(default_factory=new_contract_id)
    title: str
    description: Optional[str] = None
    content: str
    parties: List[Party] = Field(default_factory=list)
    status: ContractStatus = "draft"
    type: ContractType
    signatures: List[Signature] = Field(default_factory=list)
    signature_request_token: Optional[str] = None
    signature_expires_at: Optional[UtcDatetime] = None
    pdf_url: Optional[str] = None
    attachments: List[Attachment] = Field(default_factory=list)
    retention_period: int = Field(7, ge=1)
    audit_log: List[AuditEntry] = Field(default_factory=list)
    ai_analysis: Optional[AIAnalysis] = None
    ai_tags: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    priority: Optional[Priority] = None
    category: Optional[str] = None
    created_by: str = "system"
    created_at: UtcDatetime = Field(default_factory=utcnow)
    updated_at: UtcDatetime = Field(default_factory=utcnow)
    completed_at: Optional[UtcDatetime] = None
    transaction_date: Optional[UtcDatetime] = None
    transaction_amount: Optional[float] = Field(None, ge=0)
    counterparty_tax_id: Optional[str] = None
    certificate: Optional[CompletionCertificate] = None

    def party(self, party_id: str) -> Optional[Party]:
        for p in self.parties:
            if p.id == party_id:
                return p
        return None

    def signature_for(self, party_id: str) -> Optional[Signature]:
        for s in self.signatures:
            if s.party_id == party_id:
                return s
        return None

    def first_client(self) -> Optional[Party]:
        for p in self.parties:
            if p.type == "client":
                return p
        return None


def apply_changes(contract: Contract, changes: Dict[str, Any]) -> Contract:
    """Merge top-level ``changes`` (snake_case keys) and re-validate."""
    data = contract.model_dump()
    data.update(changes)
    return Contract.model_validate(data)


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class Page(CamelModel):
    items: List[Contract] = Field(default_factory=list)
    pagination: Pagination


# ============================================================================
# Templates
# ============================================================================
class TemplateVariableValidation(CamelModel):
    pattern: Optional[str] = None
    min: Optional[float] = None
    max: Optional[float] = None
    min_length: Optional[int] = Field(None, ge=0)
    max_length: Optional[int] = Field(None, ge=0)

    @field_validator("pattern")
    @classmethod
    def _compiles(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            try:
                re.compile(v)
            except re.error as exc:
                raise ValueError(f"invalid pattern: {exc}") from exc
        return v


class TemplateVariable(CamelModel):
    name: str
    display_name: str
    type: VariableType = "text"
    required: bool = False
    default_value: Any = None
    options: List[str] = Field(default_factory=list)
    validation: Optional[TemplateVariableValidation] = None


class TemplateClause(CamelModel):
    id: str
    title: str
    content: str
    is_required: bool = True
    order: int = 0
    variables: List[str] = Field(default_factory=list)


class Template(CamelModel):
    template_id: str = Field(default_factory=lambda: new_id("TPL"))
    name: str
    description: Optional[str] = None
    category: str = "general"
    title: str
    clauses: List[TemplateClause] = Field(default_factory=list)
    variables: List[TemplateVariable] = Field(default_factory=list)
    contract_type: ContractType = "other"
    is_active: bool = True
    tags: List[str] = Field(default_factory=list)
    created_at: UtcDatetime = Field(default_factory=utcnow)
    updated_at: UtcDatetime = Field(default_factory=utcnow)
