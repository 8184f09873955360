"""Signature workflow.

request -> token -> submit -> ``partially_signed`` / ``completed``.  When the
last required party signs, the completion certificate is issued in the same
request.  Email delivery of the signing link is best-effort.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Any, Dict, Optional, Tuple

from econtract_app.core.audit import (
    AuditLog,
    CompletedDetails,
    SentForSignatureDetails,
    SignedDetails,
)
from econtract_app.core.errors import NotFoundError, ValidationError
from econtract_app.core.lifecycle import check_transition, is_terminal
from econtract_app.core.messages import ERROR_MESSAGES, SUCCESS_MESSAGES
from econtract_app.core.models import (
    CertificateSignature,
    CompletionCertificate,
    Contract,
    Party,
    utcnow,
)
from econtract_app.core.signing import ElectronicSignature, iso_ms
from econtract_app.integrations.email import EmailError, signature_request_email
from econtract_app.repositories.base import ContractRepository

from .contracts import require_contract

log = logging.getLogger(__name__)


def _signable_party(contract: Contract, party_id: str) -> Party:
    party = contract.party(party_id)
    if party is None:
        raise ValidationError(ERROR_MESSAGES["party_not_in_contract"], details=party_id)
    if contract.signature_for(party_id) is not None:
        raise ValidationError(ERROR_MESSAGES["party_already_signed"], details=party_id)
    if not party.signature_required:
        raise ValidationError(ERROR_MESSAGES["party_signature_not_required"], details=party_id)
    if is_terminal(contract.status):
        raise ValidationError(ERROR_MESSAGES["invalid_transition"], details=contract.status)
    return party


def all_required_signed(contract: Contract) -> bool:
    signed = {s.party_id for s in contract.signatures}
    return all(p.id in signed for p in contract.parties if p.signature_required)


class SigningService:
    def __init__(
        self,
        repository: ContractRepository,
        signer: ElectronicSignature,
        audit: AuditLog,
        email_sender,
        contract_domain: str,
    ) -> None:
        self.repository = repository
        self.signer = signer
        self.audit = audit
        self.email_sender = email_sender
        self.contract_domain = contract_domain.rstrip("/")

    def signature_url(self, contract_id: str, token: str) -> str:
        return f"{self.contract_domain}/contracts/{contract_id}/sign/{token}"

    # ------------------------------------------------------------- request
    def request_signature(
        self,
        contract_id: str,
        party_id: str,
        actor: str = "system",
        ip_address: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not party_id:
            raise ValidationError(ERROR_MESSAGES["party_required"])
        require_contract(self.repository, contract_id)
        token, expires_at = self.signer.issue_token(contract_id, party_id)

        def send_out(current: Contract) -> Dict[str, Any]:
            _signable_party(current, party_id)
            # partially signed contracts keep their status
            target = "partially_signed" if current.status == "partially_signed" else "pending_signature"
            check_transition(current.status, target)
            return {"signature_request_token": token, "signature_expires_at": expires_at, "status": target}

        contract = self.repository.modify(contract_id, send_out)
        if contract is None:
            raise NotFoundError(ERROR_MESSAGES["contract_not_found"], details=contract_id)
        party = contract.party(party_id)

        url = self.signature_url(contract_id, token)
        email_sent = self._notify(contract, party, url, expires_at)
        self.audit.append(
            contract_id,
            "sent_for_signature",
            actor,
            SentForSignatureDetails(
                contract_id=contract_id,
                party_id=party_id,
                expires_at=expires_at,
                email_sent=email_sent,
            ),
            ip_address,
        )
        return {
            "message": SUCCESS_MESSAGES["contract_sent"],
            "signatureUrl": url,
            "token": token,
            "expiresAt": iso_ms(expires_at),
            "emailSent": email_sent,
        }

    def _notify(self, contract: Contract, party: Party, url: str, expires_at) -> bool:
        subject, html = signature_request_email(contract.title, party.name, url, iso_ms(expires_at))
        try:
            self.email_sender.send(party.email, subject, html)
        except EmailError as exc:
            log.warning("signature request email to %s failed: %s", party.email, exc)
            return False
        return True

    # -------------------------------------------------------------- submit
    def submit_signature(
        self,
        contract_id: str,
        token: str,
        ip_address: str,
        user_agent: str,
        signature_data_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not token:
            raise ValidationError(ERROR_MESSAGES["token_required"])
        claims = self.signer.read_token(token)
        if claims.contract_id != contract_id:
            raise ValidationError(ERROR_MESSAGES["token_invalid"], details="contract mismatch")

        require_contract(self.repository, contract_id)
        party_id = claims.party_id
        outcome: Dict[str, Any] = {}

        def sign(contract: Contract) -> Dict[str, Any]:
            _signable_party(contract, party_id)
            signature = self.signer.create_signature(
                contract_id, party_id, ip_address, user_agent, signature_data_url
            )
            signatures = list(contract.signatures) + [signature]
            parties = [
                p.model_copy(update={"signed_at": signature.signed_at}) if p.id == party_id else p
                for p in contract.parties
            ]
            signed = contract.model_copy(update={"signatures": signatures, "parties": parties})
            all_signed = all_required_signed(signed)
            new_status = "completed" if all_signed else "partially_signed"
            check_transition(contract.status, new_status, via_signature=True)
            outcome.update(signature=signature, all_signed=all_signed, status=new_status)

            changes: Dict[str, Any] = {
                "signatures": signatures,
                "parties": parties,
                "status": new_status,
                "signature_request_token": None,
                "signature_expires_at": None,
            }
            if all_signed:
                changes["completed_at"] = signature.signed_at
            return changes

        if self.repository.modify(contract_id, sign) is None:
            raise NotFoundError(ERROR_MESSAGES["contract_not_found"], details=contract_id)
        signature = outcome["signature"]
        all_signed = outcome["all_signed"]
        new_status = outcome["status"]

        self.audit.append(
            contract_id,
            "signed",
            party_id,
            SignedDetails(
                contract_id=contract_id,
                party_id=party_id,
                certificate_id=signature.certificate_id,
                ip_address=ip_address,
                user_agent=user_agent,
            ),
            ip_address,
        )
        log.info("contract %s signed by %s (%s)", contract_id, party_id, new_status)

        certificate_generated = False
        if all_signed:
            try:
                self.issue_certificate(contract_id)
                certificate_generated = True
            except ValidationError as exc:
                # the signature itself is already stored
                log.error("certificate for %s not issued: %s", contract_id, exc.details or exc.message)

        return {
            "message": SUCCESS_MESSAGES["contract_signed"],
            "signature": {
                "certificateId": signature.certificate_id,
                "signedAt": iso_ms(signature.signed_at),
            },
            "contractStatus": new_status,
            "allSigned": all_signed,
            "certificateGenerated": certificate_generated,
        }

    # -------------------------------------------------------------- verify
    def verify(self, contract_id: str) -> Dict[str, Any]:
        contract = require_contract(self.repository, contract_id)
        return {"contractId": contract_id, **self.signer.verify_contract(contract)}

    # --------------------------------------------------------- certificate
    def build_certificate(self, contract: Contract) -> CompletionCertificate:
        issued_at = utcnow()
        content_hash = self.signer.contract_hash(contract)
        seed = f"{contract.contract_id}|{content_hash}|{iso_ms(issued_at)}"
        rows = []
        for sig in contract.signatures:
            party = contract.party(sig.party_id)
            rows.append(
                CertificateSignature(
                    party_id=sig.party_id,
                    party_name=party.name if party else "",
                    party_email=party.email if party else "",
                    signed_at=sig.signed_at,
                    verification_hash=sig.verification_hash,
                    certificate_id=sig.certificate_id,
                    ip_address=sig.ip_address,
                )
            )
        return CompletionCertificate(
            certificate_id="CERT-" + hashlib.sha256(seed.encode("utf-8")).hexdigest()[:16].upper(),
            contract_id=contract.contract_id,
            contract_title=contract.title,
            content_hash=content_hash,
            issued_at=issued_at,
            completed_at=contract.completed_at,
            signatures=rows,
        )

    def issue_certificate(self, contract_id: str, actor: str = "system") -> Tuple[CompletionCertificate, bool]:
        """Return ``(certificate, created)``; issuing twice returns the stored one."""
        require_contract(self.repository, contract_id)
        issued: Dict[str, CompletionCertificate] = {}

        def attach(contract: Contract) -> Optional[Dict[str, Any]]:
            if contract.status != "completed":
                raise ValidationError(ERROR_MESSAGES["certificate_not_ready"], details=contract.status)
            if contract.certificate is not None:
                return None
            issued["certificate"] = self.build_certificate(contract)
            return {"certificate": issued["certificate"]}

        stored = self.repository.modify(contract_id, attach)
        if stored is None:
            raise NotFoundError(ERROR_MESSAGES["contract_not_found"], details=contract_id)
        if "certificate" not in issued:
            return stored.certificate, False

        certificate = issued["certificate"]
        self.audit.append(
            contract_id,
            "completed",
            actor,
            CompletedDetails(
                contract_id=contract_id,
                certificate_id=certificate.certificate_id,
                signatures=len(certificate.signatures),
            ),
        )
        log.info("certificate %s issued for %s", certificate.certificate_id, contract_id)
        return certificate, True


__all__ = ["SigningService", "all_required_signed"]
