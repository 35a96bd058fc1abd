"""Completion certificate domain model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from assent.domain.hashing import to_iso


@dataclass(frozen=True)
class CertifiedSignature:
    """Summary of one signature on a completion certificate."""

    name: str
    email: str
    method: str
    signed_at: datetime
    ip: str
    integrity_hash: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "email": self.email,
            "method": self.method,
            "signed_at": to_iso(self.signed_at),
            "ip": self.ip,
            "integrity_hash": self.integrity_hash,
        }


@dataclass(frozen=True)
class CompletionCertificate:
    """Signed summary of a completed signing workflow.

    certificate_signature is an HMAC over signable_content(); it proves
    the certificate was issued by the holder of the signing secret.
    """

    certificate_id: str
    agreement_id: str
    document_hash: str
    title: str
    signatures: tuple[CertifiedSignature, ...]
    declined_parties: tuple[str, ...]
    issued_at: datetime
    hash_algorithm: str
    signature_algorithm: str
    certificate_signature: str

    def signable_content(self) -> dict[str, Any]:
        """Every field except the signature itself."""
        return {
            "certificate_id": self.certificate_id,
            "agreement_id": self.agreement_id,
            "document_hash": self.document_hash,
            "title": self.title,
            "signatures": [s.to_dict() for s in self.signatures],
            "declined_parties": list(self.declined_parties),
            "issued_at": to_iso(self.issued_at),
            "hash_algorithm": self.hash_algorithm,
            "signature_algorithm": self.signature_algorithm,
        }

    def to_dict(self) -> dict[str, Any]:
        return {**self.signable_content(), "certificate_signature": self.certificate_signature}


@dataclass(frozen=True)
class DocumentIntegrityReport:
    """Whether an agreement's current content still matches its stored hash."""

    agreement_id: str
    original_hash: str
    current_hash: str
    is_intact: bool
    checked_at: datetime

    @property
    def status(self) -> str:
        if self.is_intact:
            return "VERIFIED - Document has not been tampered with"
        return "FAILED - Document has been modified since creation"

    def to_dict(self) -> dict[str, Any]:
        return {
            "agreement_id": self.agreement_id,
            "original_hash": self.original_hash,
            "current_hash": self.current_hash,
            "is_intact": self.is_intact,
            "status": self.status,
            "checked_at": to_iso(self.checked_at),
        }
