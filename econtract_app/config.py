"""Process-wide configuration, resolved once at start-up."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Literal, Mapping, Optional

from dotenv import load_dotenv

load_dotenv()

log = logging.getLogger("econtract")

_TRUTHY = {"1", "true", "yes", "on", "enabled"}

# DSN values shipped in sample env files; they never point at a real store.
_PLACEHOLDER_DSNS = ("demo-mode", "your-cluster")

ALLOWED_AI_PROVIDERS = {"mock", "deepseek"}

Mode = Literal["demo", "persistent"]


def _truthy(value: Optional[str], default: bool = False) -> bool:
    if value is None or not str(value).strip():
        return default
    return str(value).strip().lower() in _TRUTHY


@dataclass(frozen=True)
class AppConfig:
    mode: Mode = "demo"
    contracts_dsn: Optional[str] = None
    demo_seed: bool = True

    ai_provider: str = "mock"
    ai_api_key: Optional[str] = None
    ai_base_url: str = "https://api.deepseek.com/v1"
    ai_model: str = "deepseek-chat"

    ocr_endpoint: Optional[str] = None
    ocr_api_key: Optional[str] = None

    resend_api_key: Optional[str] = None
    email_from: str = "contracts@example.com"
    contract_domain: str = "http://localhost:8000"

    signing_secret: str = "default-secret-key"
    rate_limit_fail_open: bool = True
    audit_trail_path: Optional[str] = None
    pdf_backend: str = "auto"
    expose_error_details: bool = False

    @property
    def is_demo(self) -> bool:
        return self.mode == "demo"

    @property
    def ocr_configured(self) -> bool:
        return bool(self.ocr_endpoint and self.ocr_api_key)

    @property
    def email_configured(self) -> bool:
        return bool(self.resend_api_key)


def resolve_mode(dsn: Optional[str]) -> Mode:
    """Demo mode unless ``dsn`` names a real store."""
    if not dsn or not dsn.strip():
        return "demo"
    if any(marker in dsn for marker in _PLACEHOLDER_DSNS):
        return "demo"
    return "persistent"


def load_config(env: Optional[Mapping[str, str]] = None) -> AppConfig:
    env = os.environ if env is None else env

    dsn = (env.get("CONTRACTS_DSN") or "").strip() or None
    mode = resolve_mode(dsn)

    provider = (env.get("AI_PROVIDER") or "").strip().lower()
    api_key = (env.get("DEEPSEEK_API_KEY") or "").strip() or None
    if not provider:
        provider = "deepseek" if api_key else "mock"
    if provider not in ALLOWED_AI_PROVIDERS:
        log.warning("unknown AI_PROVIDER %r; using mock", provider)
        provider = "mock"
    if provider == "deepseek" and not api_key:
        log.warning("AI_PROVIDER=deepseek without DEEPSEEK_API_KEY; using mock")
        provider = "mock"

    secret = env.get("CONTRACT_SIGNING_SECRET") or "default-secret-key"
    if mode == "persistent" and secret == "default-secret-key":
        log.warning("CONTRACT_SIGNING_SECRET not set; signature tokens use the default key")

    cfg = AppConfig(
        mode=mode,
        contracts_dsn=dsn if mode == "persistent" else None,
        demo_seed=_truthy(env.get("DEMO_SEED"), default=True),
        ai_provider=provider,
        ai_api_key=api_key,
        ai_base_url=(env.get("DEEPSEEK_BASE_URL") or "https://api.deepseek.com/v1").rstrip("/"),
        ai_model=env.get("DEEPSEEK_MODEL") or "deepseek-chat",
        ocr_endpoint=(env.get("AZURE_COMPUTER_VISION_ENDPOINT") or "").rstrip("/") or None,
        ocr_api_key=env.get("AZURE_COMPUTER_VISION_KEY") or None,
        resend_api_key=env.get("RESEND_API_KEY") or None,
        email_from=env.get("EMAIL_FROM") or "contracts@example.com",
        contract_domain=(env.get("CONTRACT_DOMAIN") or "http://localhost:8000").rstrip("/"),
        signing_secret=secret,
        rate_limit_fail_open=_truthy(env.get("RATE_LIMIT_FAIL_OPEN"), default=True),
        audit_trail_path=env.get("AUDIT_TRAIL_PATH") or None,
        pdf_backend=(env.get("PDF_BACKEND") or "auto").strip().lower(),
        expose_error_details=_truthy(env.get("EXPOSE_ERROR_DETAILS")),
    )
    log.info("config resolved: mode=%s ai_provider=%s", cfg.mode, cfg.ai_provider)
    return cfg


__all__ = ["AppConfig", "Mode", "load_config", "resolve_mode"]
