"""Electronic signature primitives.

Verification hashes are HMAC-SHA256 over
``contractId|partyId|signedAt|ipAddress|userAgent``.  Signature request
tokens are Fernet tokens keyed from the same secret and carry their own
expiry.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import re
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Tuple

from cryptography.fernet import Fernet, InvalidToken

from econtract_app.api.limits import SIGNATURE_TOKEN_TTL_S

from .errors import ValidationError
from .messages import ERROR_MESSAGES
from .models import Contract, Signature, as_utc, utcnow

_DATA_URL_PREFIX = re.compile(r"^data:image/\w+;base64,")


def iso_ms(value: datetime) -> str:
    """``2024-01-05T00:00:00.000Z``"""
    value = as_utc(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


@dataclass(frozen=True)
class TokenClaims:
    contract_id: str
    party_id: str
    expires_at: datetime


class ElectronicSignature:
    def __init__(
        self,
        secret: str,
        token_ttl_s: int = SIGNATURE_TOKEN_TTL_S,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._secret = secret.encode("utf-8")
        self._fernet = Fernet(base64.urlsafe_b64encode(hashlib.sha256(self._secret).digest()))
        self.token_ttl_s = token_ttl_s
        self.clock = clock

    # -------------------------------------------------------------- hashes
    def verification_hash(
        self,
        contract_id: str,
        party_id: str,
        signed_at: datetime,
        ip_address: str,
        user_agent: str,
    ) -> str:
        message = "|".join([contract_id, party_id, iso_ms(signed_at), ip_address, user_agent])
        return hmac.new(self._secret, message.encode("utf-8"), hashlib.sha256).hexdigest()

    def verify_signature(self, signature: Signature, contract_id: str) -> bool:
        expected = self.verification_hash(
            contract_id,
            signature.party_id,
            signature.signed_at,
            signature.ip_address,
            signature.user_agent,
        )
        return hmac.compare_digest(expected, signature.verification_hash)

    @staticmethod
    def certificate_id(party_id: str, signed_at: datetime, verification_hash: str) -> str:
        data = f"{party_id}|{iso_ms(signed_at)}|{verification_hash}"
        return "CERT-" + hashlib.sha256(data.encode("utf-8")).hexdigest()[:16].upper()

    @staticmethod
    def contract_hash(contract: Contract) -> str:
        """SHA-256 over the fields a signer agreed to."""
        data = {
            "contractId": contract.contract_id,
            "title": contract.title,
            "content": contract.content,
            "parties": [{"id": p.id, "name": p.name, "email": p.email} for p in contract.parties],
            "createdAt": iso_ms(contract.created_at),
        }
        message = json.dumps(data, ensure_ascii=False, separators=(",", ":"))
        return hashlib.sha256(message.encode("utf-8")).hexdigest()

    # -------------------------------------------------------------- tokens
    def issue_token(self, contract_id: str, party_id: str) -> Tuple[str, datetime]:
        expires_at = self.clock() + timedelta(seconds=self.token_ttl_s)
        payload = {
            "contractId": contract_id,
            "partyId": party_id,
            "expiresAt": iso_ms(expires_at),
            "nonce": secrets.token_hex(16),
        }
        token = self._fernet.encrypt(json.dumps(payload).encode("utf-8")).decode("ascii")
        return token, expires_at

    def read_token(self, token: str) -> TokenClaims:
        """Decode ``token``; raises :class:`ValidationError` when bad or expired."""
        try:
            payload = json.loads(self._fernet.decrypt(token.encode("ascii")))
            claims = TokenClaims(
                contract_id=payload["contractId"],
                party_id=payload["partyId"],
                expires_at=as_utc(datetime.fromisoformat(payload["expiresAt"].replace("Z", "+00:00"))),
            )
        except (InvalidToken, UnicodeError, ValueError, KeyError, TypeError) as exc:
            raise ValidationError(ERROR_MESSAGES["token_invalid"], details=type(exc).__name__) from exc
        if self.clock() > claims.expires_at:
            raise ValidationError(ERROR_MESSAGES["signature_expired"])
        return claims

    # ---------------------------------------------------------- signatures
    @staticmethod
    def strip_data_url(data_url: Optional[str]) -> Optional[str]:
        if not data_url:
            return None
        return _DATA_URL_PREFIX.sub("", data_url)

    def create_signature(
        self,
        contract_id: str,
        party_id: str,
        ip_address: str,
        user_agent: str,
        signature_data_url: Optional[str] = None,
    ) -> Signature:
        signed_at = self.clock()
        vhash = self.verification_hash(contract_id, party_id, signed_at, ip_address, user_agent)
        return Signature(
            party_id=party_id,
            signature_data=self.strip_data_url(signature_data_url),
            signed_at=signed_at,
            ip_address=ip_address,
            user_agent=user_agent,
            verification_hash=vhash,
            certificate_id=self.certificate_id(party_id, signed_at, vhash),
        )

    def verify_contract(self, contract: Contract) -> Dict[str, object]:
        results: List[Dict[str, object]] = []
        for sig in contract.signatures:
            ok = self.verify_signature(sig, contract.contract_id)
            item: Dict[str, object] = {
                "partyId": sig.party_id,
                "certificateId": sig.certificate_id,
                "valid": ok,
            }
            if not ok:
                item["error"] = "Invalid signature hash"
            results.append(item)
        return {"valid": all(r["valid"] for r in results), "signatures": results}


__all__ = ["ElectronicSignature", "TokenClaims", "iso_ms"]
