"""Portfolio statistics over the stored contracts."""

from __future__ import annotations

from collections import Counter, defaultdict
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from econtract_app.core.models import CONTRACT_STATUSES, CONTRACT_TYPES, Contract, utcnow

EXPIRY_WARNING = timedelta(days=7)
TOP_COUNTERPARTIES = 5


def _month(value: datetime) -> str:
    return value.strftime("%Y-%m")


def contract_analytics(contracts: Iterable[Contract], now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or utcnow()
    items = list(contracts)

    by_status = Counter({s: 0 for s in CONTRACT_STATUSES})
    by_type = Counter({t: 0 for t in CONTRACT_TYPES})
    by_status.update(c.status for c in items)
    by_type.update(c.type for c in items)

    completed = [c for c in items if c.status == "completed"]
    # drafts were never sent out, cancelled ones say nothing about signing
    sent = [c for c in items if c.status not in ("draft", "cancelled")]
    signing_rate = round(len(completed) / len(sent), 4) if sent else 0.0

    durations = [
        (c.completed_at - c.created_at).total_seconds() / 86400
        for c in completed
        if c.completed_at is not None
    ]
    average_days = round(sum(durations) / len(durations), 1) if durations else 0.0

    expiring = sum(
        1
        for c in items
        if c.signature_expires_at is not None and now < c.signature_expires_at <= now + EXPIRY_WARNING
    )

    months: Dict[str, Dict[str, Any]] = defaultdict(lambda: {"created": 0, "completed": 0, "value": 0.0})
    for c in items:
        months[_month(c.created_at)]["created"] += 1
        if c.completed_at is not None:
            row = months[_month(c.completed_at)]
            row["completed"] += 1
            row["value"] += c.transaction_amount or 0
    trends = [{"month": m, **months[m]} for m in sorted(months)]

    parties: Dict[str, Dict[str, Any]] = {}
    for c in items:
        client = c.first_client()
        if client is None:
            continue
        key = (client.company or client.name).casefold()
        row = parties.setdefault(
            key,
            {"name": client.name, "company": client.company or "", "contractCount": 0, "totalValue": 0.0},
        )
        row["contractCount"] += 1
        row["totalValue"] += c.transaction_amount or 0
    top: List[Dict[str, Any]] = sorted(
        parties.values(), key=lambda r: (r["contractCount"], r["totalValue"]), reverse=True
    )[:TOP_COUNTERPARTIES]

    return {
        "totalContracts": len(items),
        "contractsByStatus": dict(by_status),
        "contractsByType": dict(by_type),
        "completedCount": len(completed),
        "inProgress": by_status["draft"] + by_status["pending_review"] + by_status["pending_signature"]
        + by_status["partially_signed"],
        "expiringSoon": expiring,
        "totalRevenue": sum(c.transaction_amount or 0 for c in completed),
        "averageCompletionTime": average_days,
        "signingRate": signing_rate,
        "monthlyTrends": trends,
        "topCounterparties": top,
    }


__all__ = ["contract_analytics"]
