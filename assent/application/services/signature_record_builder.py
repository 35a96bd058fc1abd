"""SignatureRecordBuilder service: canonical, integrity-protected records.

A record binds who signed (name, email), what they signed (agreement id
and content hash), when, from where (ip, user agent) and how (method) in
a canonical payload, and seals that payload with HMAC-SHA-256 under the
server signing secret.

Method-specific fields are filled only for the proof's own method; every
other method-specific field is None.
"""

from __future__ import annotations

from eth_utils import is_address, to_checksum_address
from structlog import get_logger

from assent.application.ports.time_authority import TimeAuthorityProtocol
from assent.domain.errors.validation import InputInvalidError
from assent.domain.hashing import compute_hmac, verify_hmac
from assent.domain.models.agreement import Agreement
from assent.domain.models.signature_record import (
    LEGAL_NOTICE,
    SIGNATURE_FONT_IDS,
    UNKNOWN_PROVENANCE,
    ClickSignature,
    DrawnSignature,
    SignatureProof,
    SignatureRecord,
    SignerInfo,
    TypedSignature,
    UploadedSignature,
    WalletSignature,
    build_canonical_payload,
)

logger = get_logger()


def _require(value: str | None, field: str, message: str) -> str:
    if value is None or not str(value).strip():
        raise InputInvalidError(message, field=field)
    return value


class SignatureRecordBuilder:
    """Builds and verifies signature records.

    Example:
        >>> builder = SignatureRecordBuilder("a-long-server-secret", SystemTimeAuthority())
        >>> record = builder.build(
        ...     agreement,
        ...     SignerInfo(name="Ana", email="ana@example.com", consent_to_e_records=True),
        ...     TypedSignature(typed_text="Ana", font_id="dancing"),
        ... )
        >>> builder.verify(record)
        True
    """

    def __init__(self, signing_secret: str, time_authority: TimeAuthorityProtocol) -> None:
        """Initialize the builder.

        Args:
            signing_secret: Server-held HMAC key. Never logged.
            time_authority: Clock for signed_at.
        """
        if not signing_secret:
            raise ValueError("signing_secret is required")
        self._secret = signing_secret
        self._time = time_authority

    def build(
        self,
        agreement: Agreement,
        signer_info: SignerInfo,
        proof: SignatureProof,
    ) -> SignatureRecord:
        """Build the record for one party's assent.

        Args:
            agreement: The agreement being signed.
            signer_info: Identity, provenance and consent of the signer.
            proof: Method-specific proof payload.

        Returns:
            A sealed SignatureRecord.

        Raises:
            InputInvalidError: If the signer identity or proof fields are
                missing, the font is unknown or the wallet address is malformed.
        """
        name = _require(signer_info.name, "name", "Signer name is required.").strip()
        email = _require(signer_info.email, "email", "Signer email is required.").strip()
        method_fields = self._method_fields(proof)

        signed_at = self._time.now()
        ip = signer_info.ip or UNKNOWN_PROVENANCE
        user_agent = signer_info.user_agent or UNKNOWN_PROVENANCE
        consented = signer_info.consent_to_e_records is True

        payload = build_canonical_payload(
            agreement_id=agreement.agreement_id,
            document_hash=agreement.content_hash,
            signer_name=name,
            signer_email=email,
            signed_at=signed_at,
            ip=ip,
            user_agent=user_agent,
            method=proof.method,
        )

        record = SignatureRecord(
            agreement_id=agreement.agreement_id,
            document_hash=agreement.content_hash,
            name=name,
            email=email,
            method=proof.method,
            signed_at=signed_at,
            ip=ip,
            user_agent=user_agent,
            integrity_hash=self.compute_integrity_hash(payload),
            geo_location=signer_info.geo_location,
            consent_to_e_records=consented,
            consent_timestamp=signed_at if consented else None,
            legal_notice=LEGAL_NOTICE,
            **method_fields,
        )

        logger.info(
            "signature_record_built",
            agreement_id=agreement.agreement_id,
            email=email,
            method=proof.method.value,
            consent=consented,
        )
        return record

    def compute_integrity_hash(self, payload: dict[str, object]) -> str:
        """HMAC-SHA-256 over the canonical JSON of a payload."""
        return compute_hmac(self._secret, payload)

    def verify(self, record: SignatureRecord) -> bool:
        """Recompute a record's integrity hash and compare in constant time."""
        valid = verify_hmac(self._secret, record.canonical_payload(), record.integrity_hash)
        if not valid:
            logger.warning(
                "signature_record_integrity_mismatch",
                agreement_id=record.agreement_id,
                email=record.email,
            )
        return valid

    @staticmethod
    def _method_fields(proof: SignatureProof) -> dict[str, str]:
        """Validate a proof and return its record fields."""
        if isinstance(proof, (DrawnSignature, UploadedSignature)):
            image = _require(
                proof.signature_image, "signature_image", "A signature image is required."
            )
            return {"signature_image": image}

        if isinstance(proof, TypedSignature):
            text = _require(proof.typed_text, "typed_text", "Typed signature text is required.")
            if proof.font_id not in SIGNATURE_FONT_IDS:
                raise InputInvalidError(
                    f"Unknown signature font: {proof.font_id!r}.", field="font_id"
                )
            return {"typed_text": text.strip(), "font_id": proof.font_id}

        if isinstance(proof, WalletSignature):
            address = _require(
                proof.wallet_address, "wallet_address", "A wallet address is required."
            )
            signature = _require(
                proof.crypto_signature, "crypto_signature", "A wallet signature is required."
            )
            if not is_address(address):
                raise InputInvalidError(
                    f"Invalid wallet address: {address!r}.", field="wallet_address"
                )
            return {
                "wallet_address": to_checksum_address(address),
                "crypto_signature": signature,
            }

        if isinstance(proof, ClickSignature):
            return {}

        raise InputInvalidError(
            f"Unsupported signature proof: {type(proof).__name__}.", field="method"
        )
