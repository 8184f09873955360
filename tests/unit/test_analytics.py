from datetime import datetime, timedelta, timezone

from econtract_app.core.models import Contract, Party
from econtract_app.services.analytics import contract_analytics

NOW = datetime(2024, 5, 10, tzinfo=timezone.utc)


def _contract(n, status="draft", amount=None, company="甲社", **kw):
    created = kw.pop("created_at", datetime(2024, 4, 1, tzinfo=timezone.utc))
    return Contract(
        contract_id=f"CNT-{n}",
        title=f"契約{n}",
        content="本文",
        type="nda",
        status=status,
        transaction_amount=amount,
        created_at=created,
        updated_at=created,
        parties=[Party(id="1", type="client", name=f"担当{n}", email="a@example.com", company=company)],
        **kw,
    )


def test_empty_portfolio():
    stats = contract_analytics([], now=NOW)
    assert stats["totalContracts"] == 0
    assert stats["signingRate"] == 0.0
    assert stats["averageCompletionTime"] == 0.0
    assert stats["monthlyTrends"] == []
    assert stats["contractsByStatus"]["draft"] == 0


def test_counts_rates_and_revenue():
    created = datetime(2024, 4, 1, tzinfo=timezone.utc)
    items = [
        _contract(1, "completed", 100000, completed_at=created + timedelta(days=4)),
        _contract(2, "completed", 50000, completed_at=created + timedelta(days=2)),
        _contract(3, "pending_signature", 999, signature_expires_at=NOW + timedelta(days=2)),
        _contract(4, "partially_signed", signature_expires_at=NOW + timedelta(days=30)),
        _contract(5, "draft", company="乙社"),
        _contract(6, "cancelled", company="乙社"),
    ]
    stats = contract_analytics(items, now=NOW)
    assert stats["totalContracts"] == 6
    assert stats["completedCount"] == 2
    assert stats["inProgress"] == 3
    assert stats["totalRevenue"] == 150000
    assert stats["averageCompletionTime"] == 3.0
    # drafts and cancelled contracts are left out of the rate
    assert stats["signingRate"] == 0.5
    assert stats["expiringSoon"] == 1
    assert stats["contractsByType"]["nda"] == 6

    april = stats["monthlyTrends"][0]
    assert april == {"month": "2024-04", "created": 6, "completed": 2, "value": 150000}

    top = stats["topCounterparties"]
    assert top[0]["company"] == "甲社"
    assert top[0]["contractCount"] == 4
    assert top[1]["company"] == "乙社"
