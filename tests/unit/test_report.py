from datetime import datetime, timezone

import pytest

from econtract_app.core.models import CertificateSignature, CompletionCertificate, Contract, Party
from econtract_app.report.pdf import PDFError, html_to_pdf_bytes
from econtract_app.report.renderer import render_certificate_html, render_contract_html

SIGNED = datetime(2024, 3, 5, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def contract():
    return Contract(
        contract_id="CNT-1",
        title="秘密保持契約書 <改訂版>",
        content="第1条 目的\n\n第2条 秘密情報",
        type="nda",
        status="completed",
        transaction_amount=1200000,
        created_at=SIGNED,
        parties=[Party(id="1", type="client", name="山田", email="y@example.com", company="甲社", signed_at=SIGNED)],
    )


def test_contract_html(contract):
    html = render_contract_html(contract)
    assert "秘密保持契約書 &lt;改訂版&gt;" in html
    assert "秘密保持契約" in html
    assert "1,200,000円" in html
    assert html.count("<p>") == 2
    assert "2024年3月5日 09:30:00 UTC" in html


def test_certificate_html(contract):
    cert = CompletionCertificate(
        certificate_id="CERT-ABC",
        contract_id=contract.contract_id,
        contract_title=contract.title,
        content_hash="f" * 64,
        issued_at=SIGNED,
        completed_at=SIGNED,
        signatures=[
            CertificateSignature(
                party_id="1",
                party_name="山田",
                party_email="y@example.com",
                signed_at=SIGNED,
                verification_hash="e" * 64,
                certificate_id="CERT-SIG",
                ip_address="203.0.113.5",
            )
        ],
    )
    html = render_certificate_html(cert, contract)
    assert "CERT-ABC" in html
    assert "山田 &lt;y@example.com&gt;" in html
    assert "203.0.113.5" in html


def test_disabled_backend_raises():
    with pytest.raises(PDFError):
        html_to_pdf_bytes("<p>x</p>", backend="none")
