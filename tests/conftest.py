import httpcore
import pytest
from fastapi.testclient import TestClient

from econtract_app.config import AppConfig
from econtract_app.integrations.email import LoggingEmailSender
from econtract_app.llm.provider import MockAnalysisProvider
from econtract_app.security.secure_store import reset_cipher

SECRET = "test-signing-secret"


@pytest.fixture(autouse=True)
def _test_env(monkeypatch):
    for name in ("CONTRACTS_DSN", "DEEPSEEK_API_KEY", "AI_PROVIDER", "RESEND_API_KEY", "ECONTRACT_ATREST_KEY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ECONTRACT_ENV", "test")
    reset_cipher()
    yield
    reset_cipher()


@pytest.fixture(autouse=True)
def _no_network(monkeypatch):
    """Block real outbound HTTP; respx patches over this when a test mocks a route."""

    def block(self, request):
        raise RuntimeError(f"External HTTP blocked: {request.url}")

    # respx only patches over callables named like the method it targets
    block.__name__ = "handle_request"
    monkeypatch.setattr(httpcore.ConnectionPool, "handle_request", block)
    yield


class FakePDF:
    def __init__(self):
        self.rendered = []

    def __call__(self, html, backend):
        self.rendered.append(html)
        return b"%PDF-1.4 fake"


@pytest.fixture
def config():
    return AppConfig(signing_secret=SECRET, contract_domain="https://sign.example.com")


@pytest.fixture
def outbox():
    return LoggingEmailSender()


@pytest.fixture
def fake_pdf():
    return FakePDF()


@pytest.fixture
def app(config, outbox, fake_pdf):
    from econtract_app.api.app import create_app

    return create_app(
        config,
        provider=MockAnalysisProvider(),
        email_sender=outbox,
        pdf_converter=fake_pdf,
    )


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def services(app):
    return app.state.services


@pytest.fixture
def new_contract_body():
    return {
        "title": "テスト業務委託契約書",
        "content": "第1条（目的）\n本契約は業務委託について定める。",
        "type": "service_agreement",
        "priority": "medium",
        "tags": ["テスト"],
        "transactionAmount": 100000,
        "parties": [
            {"id": "p1", "type": "contractor", "name": "受託 太郎", "email": "taro@example.com"},
            {
                "id": "p2",
                "type": "client",
                "name": "委託 花子",
                "email": "hanako@example.com",
                "company": "委託株式会社",
            },
        ],
    }
