"""Signature record domain models.

This module defines the proof of assent a signer leaves behind:
- SignatureMethod: closed set of capture methods
- DrawnSignature / TypedSignature / UploadedSignature / WalletSignature /
  ClickSignature: method-specific proof payloads produced by the capture
  surface and consumed unchanged by the record builder
- SignerInfo: identity, provenance and consent of the acting party
- SignatureRecord: the immutable attestation with its integrity hash

Records are never mutated after creation. Method-specific fields that do
not apply to the record's method are None, never absent, so every record
serializes to the same shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Optional, Union

from assent.domain.hashing import to_iso

LEGAL_NOTICE: str = (
    "By applying this electronic signature, the signer acknowledges that: "
    "(1) they have read, understood, and agree to be bound by the terms of this "
    "agreement; (2) they consent to conduct this transaction electronically under "
    "the ESIGN Act (15 U.S.C. § 7001) and UETA; (3) this electronic signature "
    "carries the same legal weight as a handwritten signature."
)

UNKNOWN_PROVENANCE: str = "unknown"


class SignatureMethod(str, Enum):
    """How the signer expressed assent."""

    DRAW = "draw"
    TYPE = "type"
    UPLOAD = "upload"
    WALLET = "wallet"
    CLICK = "click"


@dataclass(frozen=True)
class SignatureFont:
    """A cursive font offered for typed signatures."""

    font_id: str
    name: str
    css: str


SIGNATURE_FONTS: tuple[SignatureFont, ...] = (
    SignatureFont("dancing", "Dancing Script", "'Dancing Script', cursive"),
    SignatureFont("allura", "Allura", "'Allura', cursive"),
    SignatureFont("parisienne", "Parisienne", "'Parisienne', cursive"),
    SignatureFont("greatvibes", "Great Vibes", "'Great Vibes', cursive"),
    SignatureFont("sacramento", "Sacramento", "'Sacramento', cursive"),
    SignatureFont("alex", "Alex Brush", "'Alex Brush', cursive"),
)

SIGNATURE_FONT_IDS: frozenset[str] = frozenset(f.font_id for f in SIGNATURE_FONTS)


@dataclass(frozen=True)
class DrawnSignature:
    """Hand-drawn signature captured as an image data URI."""

    method: ClassVar[SignatureMethod] = SignatureMethod.DRAW

    signature_image: str


@dataclass(frozen=True)
class TypedSignature:
    """Name typed by the signer and rendered in a signature font."""

    method: ClassVar[SignatureMethod] = SignatureMethod.TYPE

    typed_text: str
    font_id: str


@dataclass(frozen=True)
class UploadedSignature:
    """Uploaded scan of a wet-ink signature as an image data URI."""

    method: ClassVar[SignatureMethod] = SignatureMethod.UPLOAD

    signature_image: str


@dataclass(frozen=True)
class WalletSignature:
    """Personal-message signature produced by the signer's wallet.

    Attributes:
        wallet_address: Address the signature was verified against.
        crypto_signature: Hex-encoded 65-byte signature.
    """

    method: ClassVar[SignatureMethod] = SignatureMethod.WALLET

    wallet_address: str
    crypto_signature: str


@dataclass(frozen=True)
class ClickSignature:
    """Click-to-sign with name and email only."""

    method: ClassVar[SignatureMethod] = SignatureMethod.CLICK


SignatureProof = Union[
    DrawnSignature, TypedSignature, UploadedSignature, WalletSignature, ClickSignature
]


@dataclass(frozen=True)
class GeoLocation:
    """Optional coarse location reported by the signing client."""

    lat: float
    lng: float

    def to_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class SignerInfo:
    """Identity, provenance and consent of the acting party.

    Attributes:
        name: Signer display name.
        email: Signer email.
        ip: Client IP address, if known.
        user_agent: Client user agent, if known.
        geo_location: Client-reported location, if any.
        consent_to_e_records: Explicit consent to electronic records.
            Only the literal True counts as consent.
    """

    name: str
    email: str
    ip: Optional[str] = None
    user_agent: Optional[str] = None
    geo_location: Optional[GeoLocation] = None
    consent_to_e_records: bool = False


@dataclass(frozen=True)
class SignatureRecord:
    """Immutable signed attestation of one party's assent.

    The integrity hash is an HMAC-SHA-256 over canonical_payload(), keyed
    with the server signing secret; nobody without the secret can produce
    a matching hash for altered content.

    Attributes:
        agreement_id: Agreement the record attests to.
        document_hash: Content hash of the agreement at signing time.
        name: Signer name.
        email: Signer email.
        method: Capture method.
        signed_at: When the record was built (UTC).
        ip: Client IP ("unknown" when not supplied).
        user_agent: Client user agent ("unknown" when not supplied).
        integrity_hash: Keyed hash over the canonical payload.
        signature_image: Image data URI (draw/upload only).
        typed_text: Typed name (type only).
        font_id: Font used for the typed name (type only).
        wallet_address: Signing address (wallet only).
        crypto_signature: Wallet signature (wallet only).
        geo_location: Client-reported location, if any.
        consent_to_e_records: Whether explicit consent was given.
        consent_timestamp: signed_at when consent was given, else None.
        legal_notice: Notice the signer acknowledged.
        status: Always "SIGNED".
    """

    agreement_id: str
    document_hash: str
    name: str
    email: str
    method: SignatureMethod
    signed_at: datetime
    ip: str
    user_agent: str
    integrity_hash: str
    signature_image: Optional[str] = field(default=None, repr=False)
    typed_text: Optional[str] = field(default=None)
    font_id: Optional[str] = field(default=None)
    wallet_address: Optional[str] = field(default=None)
    crypto_signature: Optional[str] = field(default=None)
    geo_location: Optional[GeoLocation] = field(default=None)
    consent_to_e_records: bool = field(default=False)
    consent_timestamp: Optional[datetime] = field(default=None)
    legal_notice: str = field(default=LEGAL_NOTICE, repr=False)
    status: str = field(default="SIGNED")

    def __post_init__(self) -> None:
        if self.signed_at.tzinfo is None:
            raise ValueError("signed_at must be timezone-aware (UTC)")
        if self.consent_timestamp is not None and not self.consent_to_e_records:
            raise ValueError("consent_timestamp requires consent_to_e_records")

    def canonical_payload(self) -> dict[str, Any]:
        """Return the payload the integrity hash is computed over."""
        return build_canonical_payload(
            agreement_id=self.agreement_id,
            document_hash=self.document_hash,
            signer_name=self.name,
            signer_email=self.email,
            signed_at=self.signed_at,
            ip=self.ip,
            user_agent=self.user_agent,
            method=self.method,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary with a stable key set."""
        return {
            "agreement_id": self.agreement_id,
            "document_hash": self.document_hash,
            "name": self.name,
            "email": self.email,
            "method": self.method.value,
            "signed_at": to_iso(self.signed_at),
            "ip": self.ip,
            "user_agent": self.user_agent,
            "integrity_hash": self.integrity_hash,
            "signature_image": self.signature_image,
            "typed_text": self.typed_text,
            "font_id": self.font_id,
            "wallet_address": self.wallet_address,
            "crypto_signature": self.crypto_signature,
            "geo_location": self.geo_location.to_dict() if self.geo_location else None,
            "consent_to_e_records": self.consent_to_e_records,
            "consent_timestamp": (
                to_iso(self.consent_timestamp) if self.consent_timestamp else None
            ),
            "legal_notice": self.legal_notice,
            "status": self.status,
        }


def build_canonical_payload(
    agreement_id: str,
    document_hash: str,
    signer_name: str,
    signer_email: str,
    signed_at: datetime,
    ip: str,
    user_agent: str,
    method: SignatureMethod,
) -> dict[str, Any]:
    """Build the canonical payload covered by a record's integrity hash.

    Exposed so an external verifier holding the secret can recompute the
    hash from a stored record's visible fields.
    """
    return {
        "agreement_id": agreement_id,
        "document_hash": document_hash,
        "signer_name": signer_name,
        "signer_email": signer_email,
        "signed_at": to_iso(signed_at),
        "ip": ip,
        "user_agent": user_agent,
        "method": method.value,
    }
