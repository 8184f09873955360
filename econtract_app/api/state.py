"""Process-wide service container.

Everything a request handler needs is built once from the resolved
:class:`AppConfig` and carried on ``app.state.services``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import Engine

from econtract_app.config import AppConfig
from econtract_app.core.audit import AuditLog
from econtract_app.core.cache import TTLCache
from econtract_app.core.demo_data import demo_templates
from econtract_app.core.ratelimit import CounterStore, MemoryCounterStore, RateLimiter, SqlCounterStore
from econtract_app.core.signing import ElectronicSignature
from econtract_app.core.templates import TemplateStore
from econtract_app.integrations.email import LoggingEmailSender, ResendEmailSender
from econtract_app.integrations.ocr import AzureReadClient, UnconfiguredOCRClient
from econtract_app.llm.provider import AnalysisProvider, provider_from_config
from econtract_app.report.pdf import html_to_pdf_bytes
from econtract_app.repositories import ContractRepository, create_contract_repository
from econtract_app.repositories.db import get_engine, init_db, make_session_factory
from econtract_app.services.analysis import AnalysisOrchestrator
from econtract_app.services.contracts import ContractService
from econtract_app.services.documents import DocumentService
from econtract_app.services.legal_chat import LegalChatService
from econtract_app.services.ocr import OCRService
from econtract_app.services.signing import SigningService

from .limits import AI_CACHE_TTL_S

log = logging.getLogger(__name__)


@dataclass
class AppState:
    config: AppConfig
    repository: ContractRepository
    templates: TemplateStore
    audit: AuditLog
    limiter: RateLimiter
    provider: AnalysisProvider
    contracts: ContractService
    analysis: AnalysisOrchestrator
    chat: LegalChatService
    signing: SigningService
    ocr: OCRService
    documents: DocumentService


def build_state(
    config: AppConfig,
    *,
    engine: Optional[Engine] = None,
    provider: Optional[AnalysisProvider] = None,
    ocr_client=None,
    email_sender=None,
    pdf_converter=None,
    counter_store: Optional[CounterStore] = None,
) -> AppState:
    """Wire repositories, integrations and services for ``config``.

    Keyword arguments replace individual collaborators (used by tests and
    the CLI).
    """
    if not config.is_demo and engine is None:
        engine = init_db(get_engine(config.contracts_dsn))
    repository = create_contract_repository(config, engine=engine)

    if counter_store is None:
        if engine is not None:
            counter_store = SqlCounterStore(make_session_factory(engine))
        else:
            counter_store = MemoryCounterStore()
    limiter = RateLimiter(counter_store, fail_open=config.rate_limit_fail_open)

    audit = AuditLog(repository, trail_path=config.audit_trail_path)
    provider = provider or provider_from_config(config)

    if ocr_client is None:
        if config.ocr_configured:
            ocr_client = AzureReadClient(config.ocr_endpoint, config.ocr_api_key)
        else:
            ocr_client = UnconfiguredOCRClient()
    if email_sender is None:
        if config.email_configured:
            email_sender = ResendEmailSender(config.resend_api_key, config.email_from)
        else:
            email_sender = LoggingEmailSender()

    signer = ElectronicSignature(config.signing_secret)
    state = AppState(
        config=config,
        repository=repository,
        templates=TemplateStore(seed=demo_templates()),
        audit=audit,
        limiter=limiter,
        provider=provider,
        contracts=ContractService(repository, audit),
        analysis=AnalysisOrchestrator(repository, provider, audit, TTLCache(ttl_s=AI_CACHE_TTL_S)),
        chat=LegalChatService(repository, provider, audit),
        signing=SigningService(repository, signer, audit, email_sender, config.contract_domain),
        ocr=OCRService(ocr_client, repository, audit),
        documents=DocumentService(
            repository,
            audit,
            backend=config.pdf_backend,
            converter=pdf_converter or html_to_pdf_bytes,
        ),
    )
    log.info(
        "services ready: mode=%s provider=%s ocr=%s email=%s",
        config.mode,
        provider.name,
        type(ocr_client).__name__,
        type(email_sender).__name__,
    )
    return state


__all__ = ["AppState", "build_state"]
