import json

import httpx
import pytest
import respx

from econtract_app.integrations.email import (
    RESEND_URL,
    EmailError,
    LoggingEmailSender,
    ResendEmailSender,
    signature_request_email,
)


@respx.mock
def test_resend_send():
    route = respx.post(RESEND_URL).respond(json={"id": "msg_1"})
    sender = ResendEmailSender("re_key", "contracts@example.com")
    assert sender.send("a@example.com", "件名", "<p>本文</p>") == "msg_1"
    request = route.calls[0].request
    assert request.headers["Authorization"] == "Bearer re_key"
    assert json.loads(request.content) == {
        "from": "contracts@example.com",
        "to": ["a@example.com"],
        "subject": "件名",
        "html": "<p>本文</p>",
    }


@respx.mock
@pytest.mark.parametrize("response", [httpx.Response(500), httpx.ConnectError("down")])
def test_resend_failure(response):
    if isinstance(response, Exception):
        respx.post(RESEND_URL).mock(side_effect=response)
    else:
        respx.post(RESEND_URL).mock(return_value=response)
    with pytest.raises(EmailError):
        ResendEmailSender("re_key", "contracts@example.com").send("a@example.com", "s", "h")


def test_logging_sender_records_outbox():
    sender = LoggingEmailSender()
    assert sender.send("a@example.com", "s1", "h") == "local-1"
    assert sender.send("b@example.com", "s2", "h") == "local-2"
    assert [m["to"] for m in sender.outbox] == ["a@example.com", "b@example.com"]


def test_signature_email_escapes_values():
    subject, html = signature_request_email("<契約>", "山田 & 佐藤", "https://x/?a=1&b=2", "2024-01-01")
    assert subject == "【署名依頼】<契約>"
    assert "&lt;契約&gt;" in html
    assert "山田 &amp; 佐藤" in html
    assert 'href="https://x/?a=1&amp;b=2"' in html
