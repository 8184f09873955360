"""Outbound email for signature requests."""

from __future__ import annotations

import html as _html
import logging
from typing import Protocol

import httpx

from econtract_app.api.limits import EMAIL_TIMEOUT_S

log = logging.getLogger(__name__)

RESEND_URL = "https://api.resend.com/emails"


class EmailError(Exception):
    pass


class EmailSender(Protocol):
    def send(self, to: str, subject: str, html: str) -> str:
        """Deliver a message and return the provider's message id."""
        ...


class ResendEmailSender:
    def __init__(self, api_key: str, sender: str, timeout: float = EMAIL_TIMEOUT_S, url: str = RESEND_URL) -> None:
        self.api_key = api_key
        self.sender = sender
        self.timeout = timeout
        self.url = url

    def send(self, to: str, subject: str, html: str) -> str:
        try:
            resp = httpx.post(
                self.url,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={"from": self.sender, "to": [to], "subject": subject, "html": html},
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise EmailError(f"resend request failed: {exc}") from exc
        return str(resp.json().get("id", ""))


class LoggingEmailSender:
    """Records messages in the log instead of sending them."""

    def __init__(self) -> None:
        self.outbox: list[dict] = []

    def send(self, to: str, subject: str, html: str) -> str:
        self.outbox.append({"to": to, "subject": subject, "html": html})
        log.info("email not configured; would send %r to %s", subject, to)
        return f"local-{len(self.outbox)}"


def signature_request_email(contract_title: str, party_name: str, url: str, expires_at: str) -> tuple[str, str]:
    subject = f"【署名依頼】{contract_title}"
    contract_title, party_name, url = (_html.escape(v) for v in (contract_title, party_name, url))
    html = (
        f"<p>{party_name} 様</p>"
        f"<p>「{contract_title}」への電子署名をお願いいたします。</p>"
        f'<p><a href="{url}">署名ページを開く</a></p>'
        f"<p>このリンクの有効期限: {expires_at}</p>"
    )
    return subject, html


__all__ = [
    "EmailError",
    "EmailSender",
    "ResendEmailSender",
    "LoggingEmailSender",
    "signature_request_email",
]
