"""Contract status rules.

Active statuses advance in one direction only::

    draft -> pending_review -> pending_signature -> partially_signed -> completed

Skipping ahead is allowed.  ``cancelled`` and ``expired`` can be entered from
any non-terminal status and never left.  ``completed`` is set by the
signature workflow alone (``via_signature=True``).
"""

from __future__ import annotations

from typing import Optional, Sequence

from .errors import ValidationError
from .messages import ERROR_MESSAGES
from .models import Contract, Party

FORWARD_ORDER = (
    "draft",
    "pending_review",
    "pending_signature",
    "partially_signed",
    "completed",
)
ABSORBING = ("cancelled", "expired")
TERMINAL = ("completed",) + ABSORBING


def is_terminal(status: str) -> bool:
    return status in TERMINAL


def can_transition(current: str, target: str, via_signature: bool = False) -> bool:
    if current == target:
        return True
    if is_terminal(current):
        return False
    if target in ABSORBING:
        return True
    if target == "completed" and not via_signature:
        return False
    try:
        return FORWARD_ORDER.index(target) > FORWARD_ORDER.index(current)
    except ValueError:
        return False


def check_transition(current: str, target: str, via_signature: bool = False) -> None:
    if not can_transition(current, target, via_signature=via_signature):
        raise ValidationError(
            ERROR_MESSAGES["invalid_transition"],
            details=f"{current} -> {target}",
        )


def ensure_editable(contract: Contract) -> None:
    if contract.status == "completed":
        raise ValidationError(ERROR_MESSAGES["completed_not_editable"])


def ensure_deletable(contract: Contract) -> None:
    if contract.status == "completed":
        raise ValidationError(ERROR_MESSAGES["completed_not_deletable"])


def _comparable(party: Party) -> dict:
    return party.model_dump(exclude={"signed_at"})


def check_parties_change(contract: Contract, parties: Optional[Sequence[Party]]) -> None:
    """Once anybody has signed, only ``signed_at`` may differ."""
    if parties is None or not contract.signatures:
        return
    before = [_comparable(p) for p in contract.parties]
    after = [_comparable(p) for p in parties]
    if before != after:
        raise ValidationError(ERROR_MESSAGES["parties_locked"])


__all__ = [
    "FORWARD_ORDER",
    "ABSORBING",
    "TERMINAL",
    "is_terminal",
    "can_transition",
    "check_transition",
    "ensure_editable",
    "ensure_deletable",
    "check_parties_change",
]
