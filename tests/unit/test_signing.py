from datetime import datetime, timedelta, timezone

import pytest
from hypothesis import given, strategies as st

from econtract_app.core.errors import ValidationError
from econtract_app.core.models import Contract, Party
from econtract_app.core.signing import ElectronicSignature, iso_ms

SECRET = "unit-secret"
T0 = datetime(2024, 1, 5, 9, 30, 0, 123456, tzinfo=timezone.utc)


class Clock:
    def __init__(self, now=T0):
        self.now = now

    def __call__(self):
        return self.now


def test_iso_ms_format():
    assert iso_ms(T0) == "2024-01-05T09:30:00.123Z"
    assert iso_ms(datetime(2024, 1, 5)) == "2024-01-05T00:00:00.000Z"


def test_signature_hash_and_certificate():
    signer = ElectronicSignature(SECRET, clock=Clock())
    sig = signer.create_signature("CNT-1", "p1", "1.2.3.4", "pytest", "data:image/png;base64,AAAA")
    assert sig.signature_data == "AAAA"
    assert sig.signed_at == T0
    assert len(sig.verification_hash) == 64
    assert sig.certificate_id.startswith("CERT-")
    assert len(sig.certificate_id) == 21
    assert sig.certificate_id[5:] == sig.certificate_id[5:].upper()
    assert signer.verify_signature(sig, "CNT-1")
    assert not signer.verify_signature(sig, "CNT-2")
    assert not ElectronicSignature("other", clock=Clock()).verify_signature(sig, "CNT-1")


def test_tampered_signature_fails_verification():
    signer = ElectronicSignature(SECRET, clock=Clock())
    sig = signer.create_signature("CNT-1", "p1", "1.2.3.4", "pytest")
    forged = sig.model_copy(update={"ip_address": "9.9.9.9"})
    contract = Contract(contract_id="CNT-1", title="t", content="c", type="nda", signatures=[sig, forged])
    report = signer.verify_contract(contract)
    assert report["valid"] is False
    assert [s["valid"] for s in report["signatures"]] == [True, False]
    assert report["signatures"][1]["error"] == "Invalid signature hash"


def test_contract_hash_tracks_agreed_fields():
    party = Party(id="1", type="client", name="a", email="a@example.com")
    base = Contract(contract_id="CNT-1", title="t", content="c", type="nda", parties=[party], created_at=T0)
    same = base.model_copy(update={"status": "completed", "tags": ["x"]})
    changed = base.model_copy(update={"content": "c2"})
    h = ElectronicSignature.contract_hash(base)
    assert h == ElectronicSignature.contract_hash(same)
    assert h != ElectronicSignature.contract_hash(changed)


def test_token_roundtrip_and_expiry():
    clock = Clock()
    signer = ElectronicSignature(SECRET, token_ttl_s=3600, clock=clock)
    token, expires_at = signer.issue_token("CNT-1", "p1")
    assert expires_at == T0 + timedelta(hours=1)
    claims = signer.read_token(token)
    assert (claims.contract_id, claims.party_id) == ("CNT-1", "p1")

    clock.now = T0 + timedelta(hours=1, seconds=1)
    with pytest.raises(ValidationError) as exc:
        signer.read_token(token)
    assert "期限" in exc.value.message


def test_tokens_are_unique_per_issue():
    signer = ElectronicSignature(SECRET, clock=Clock())
    assert signer.issue_token("CNT-1", "p1")[0] != signer.issue_token("CNT-1", "p1")[0]


@given(garbage=st.text(max_size=80))
def test_garbage_token_rejected(garbage):
    signer = ElectronicSignature(SECRET, clock=Clock())
    with pytest.raises(ValidationError):
        signer.read_token(garbage)


def test_token_from_other_secret_rejected():
    token, _ = ElectronicSignature("a", clock=Clock()).issue_token("CNT-1", "p1")
    with pytest.raises(ValidationError):
        ElectronicSignature("b", clock=Clock()).read_token(token)
