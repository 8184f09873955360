import json

import pytest
from cryptography.fernet import Fernet
from pydantic import ValidationError as PydanticValidationError

from econtract_app.core.audit import AIAnalyzedDetails, AuditLog, build_details
from econtract_app.core.models import Contract
from econtract_app.repositories.memory import InMemoryContractRepository
from econtract_app.security.secure_store import secure_read_lines


@pytest.fixture
def repo():
    return InMemoryContractRepository(
        seed=[Contract(contract_id="CNT-A", title="t", content="c", type="nda")]
    )


def test_append_records_validated_entry(repo):
    audit = AuditLog(repo)
    entry = audit.append("CNT-A", "ai_analyzed", "system", AIAnalyzedDetails(contract_id="CNT-A", risks_found=2), "10.0.0.1")
    assert entry is not None
    log = repo.get("CNT-A").audit_log
    assert len(log) == 1
    assert log[0].action == "ai_analyzed"
    assert log[0].details == {"contractId": "CNT-A", "analysisType": "full", "risksFound": 2}
    assert log[0].ip_address == "10.0.0.1"


def test_details_accept_camel_or_snake_keys():
    assert build_details("signed", "X", {"partyId": "1", "certificateId": "c", "ipAddress": "ip", "userAgent": "ua"})[
        "partyId"
    ] == "1"
    assert build_details("cancelled", "X", {"previous_status": "draft"}) == {
        "contractId": "X",
        "previousStatus": "draft",
    }


def test_details_reject_unknown_keys():
    with pytest.raises(PydanticValidationError):
        build_details("viewed", "X", {"surprise": True})


def test_append_never_raises(repo, caplog):
    audit = AuditLog(repo)
    with caplog.at_level("WARNING"):
        assert audit.append("CNT-A", "ai_analyzed", "system", {"risksFound": -1}) is None
        assert audit.append("CNT-MISSING", "viewed", "system") is None
    assert repo.get("CNT-A").audit_log == []
    assert "failed to append audit entry" in caplog.text


class ExplodingRepo:
    def append_audit_entry(self, contract_id, entry):
        raise ConnectionError("store down")


def test_store_failure_is_swallowed():
    assert AuditLog(ExplodingRepo()).append("CNT-A", "viewed", "system") is None


def test_anonymous_actor(repo):
    entry = AuditLog(repo).append("CNT-A", "viewed", "")
    assert entry.performed_by == "anonymous"


def test_encrypted_trail_mirror(repo, tmp_path):
    cipher = Fernet(Fernet.generate_key())
    trail = tmp_path / "audit" / "trail.jsonl"
    audit = AuditLog(repo, trail_path=str(trail), cipher=cipher)
    audit.append("CNT-A", "viewed", "system")
    audit.append("CNT-A", "downloaded", "system", {"document": "certificate"})

    raw = trail.read_bytes()
    assert b"CNT-A" not in raw
    records = [json.loads(line) for line in secure_read_lines(trail, cipher=cipher)]
    assert [r["action"] for r in records] == ["viewed", "downloaded"]
    assert records[1]["details"]["document"] == "certificate"
    assert all(r["contractId"] == "CNT-A" for r in records)
