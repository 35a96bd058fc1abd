"""Unit tests for SignatureRecordBuilder.

Tests canonical payload construction, method-specific fields, consent
handling and integrity hash verification.
"""

from __future__ import annotations

import dataclasses

import pytest

from assent.application.services.signature_record_builder import SignatureRecordBuilder
from assent.domain.errors import InputInvalidError
from assent.domain.hashing import canonical_json, compute_hmac
from assent.domain.models import (
    LEGAL_NOTICE,
    Agreement,
    ClickSignature,
    DrawnSignature,
    GeoLocation,
    SignatureMethod,
    SignerInfo,
    TypedSignature,
    UploadedSignature,
    WalletSignature,
)
from tests.helpers import FakeTimeAuthority

SIGNER = SignerInfo(
    name="Ana Lima",
    email="ana@example.com",
    ip="203.0.113.7",
    user_agent="Mozilla/5.0",
    consent_to_e_records=True,
)
IMAGE = "data:image/png;base64,iVBORw0KGgo="
WALLET = "0xab5801a7d398351b8be11c439e05c5b3259aec9b"

METHOD_FIELDS = ("signature_image", "typed_text", "font_id", "wallet_address", "crypto_signature")


class TestBuild:
    """Tests for SignatureRecordBuilder.build()."""

    def test_record_binds_agreement_signer_and_time(
        self,
        record_builder: SignatureRecordBuilder,
        agreement: Agreement,
        fake_time: FakeTimeAuthority,
    ) -> None:
        record = record_builder.build(agreement, SIGNER, ClickSignature())
        assert record.agreement_id == agreement.agreement_id
        assert record.document_hash == agreement.content_hash
        assert (record.name, record.email) == ("Ana Lima", "ana@example.com")
        assert record.signed_at == fake_time.now()
        assert record.method is SignatureMethod.CLICK
        assert record.legal_notice == LEGAL_NOTICE
        assert record.status == "SIGNED"

    @pytest.mark.parametrize(
        ("proof", "expected"),
        [
            (DrawnSignature(IMAGE), {"signature_image": IMAGE}),
            (UploadedSignature(IMAGE), {"signature_image": IMAGE}),
            (TypedSignature("Ana Lima", "allura"), {"typed_text": "Ana Lima", "font_id": "allura"}),
            (
                WalletSignature(WALLET, "0x" + "ab" * 65),
                {
                    "wallet_address": "0xAb5801a7D398351b8bE11C439e05C5B3259aeC9B",
                    "crypto_signature": "0x" + "ab" * 65,
                },
            ),
            (ClickSignature(), {}),
        ],
    )
    def test_only_the_proofs_method_fields_are_set(
        self,
        record_builder: SignatureRecordBuilder,
        agreement: Agreement,
        proof: object,
        expected: dict[str, str],
    ) -> None:
        record = record_builder.build(agreement, SIGNER, proof)  # type: ignore[arg-type]
        for field in METHOD_FIELDS:
            assert getattr(record, field) == expected.get(field)

    def test_missing_provenance_becomes_unknown(
        self, record_builder: SignatureRecordBuilder, agreement: Agreement
    ) -> None:
        signer = SignerInfo(name="Ana", email="ana@example.com")
        record = record_builder.build(agreement, signer, ClickSignature())
        assert record.ip == "unknown"
        assert record.user_agent == "unknown"

    def test_consent_timestamp_only_with_consent(
        self,
        record_builder: SignatureRecordBuilder,
        agreement: Agreement,
        fake_time: FakeTimeAuthority,
    ) -> None:
        consented = record_builder.build(agreement, SIGNER, ClickSignature())
        assert consented.consent_to_e_records is True
        assert consented.consent_timestamp == fake_time.now()

        declined = record_builder.build(
            agreement, dataclasses.replace(SIGNER, consent_to_e_records=False), ClickSignature()
        )
        assert declined.consent_to_e_records is False
        assert declined.consent_timestamp is None

    def test_truthy_non_bool_consent_is_not_consent(
        self, record_builder: SignatureRecordBuilder, agreement: Agreement
    ) -> None:
        signer = dataclasses.replace(SIGNER, consent_to_e_records="yes")  # type: ignore[arg-type]
        record = record_builder.build(agreement, signer, ClickSignature())
        assert record.consent_timestamp is None

    def test_geo_location_is_kept(
        self, record_builder: SignatureRecordBuilder, agreement: Agreement
    ) -> None:
        signer = dataclasses.replace(SIGNER, geo_location=GeoLocation(38.7, -9.1))
        record = record_builder.build(agreement, signer, ClickSignature())
        assert record.geo_location == GeoLocation(38.7, -9.1)


class TestValidation:
    """Tests for rejected inputs."""

    @pytest.mark.parametrize(
        ("signer", "field"),
        [
            (SignerInfo(name="", email="ana@example.com"), "name"),
            (SignerInfo(name="Ana", email=" "), "email"),
        ],
    )
    def test_signer_identity_required(
        self,
        record_builder: SignatureRecordBuilder,
        agreement: Agreement,
        signer: SignerInfo,
        field: str,
    ) -> None:
        with pytest.raises(InputInvalidError) as exc_info:
            record_builder.build(agreement, signer, ClickSignature())
        assert exc_info.value.field == field

    @pytest.mark.parametrize(
        ("proof", "field"),
        [
            (DrawnSignature(""), "signature_image"),
            (UploadedSignature(" "), "signature_image"),
            (TypedSignature("", "dancing"), "typed_text"),
            (TypedSignature("Ana", "comic-sans"), "font_id"),
            (WalletSignature("", "0x00"), "wallet_address"),
            (WalletSignature(WALLET, ""), "crypto_signature"),
            (WalletSignature("0x1234", "0x00"), "wallet_address"),
        ],
    )
    def test_incomplete_proofs_rejected(
        self,
        record_builder: SignatureRecordBuilder,
        agreement: Agreement,
        proof: object,
        field: str,
    ) -> None:
        with pytest.raises(InputInvalidError) as exc_info:
            record_builder.build(agreement, SIGNER, proof)  # type: ignore[arg-type]
        assert exc_info.value.field == field

    def test_unknown_proof_type_rejected(
        self, record_builder: SignatureRecordBuilder, agreement: Agreement
    ) -> None:
        with pytest.raises(InputInvalidError, match="Unsupported signature proof"):
            record_builder.build(agreement, SIGNER, object())  # type: ignore[arg-type]


class TestIntegrityHash:
    """Tests for integrity hash computation and verification."""

    def test_hash_is_hmac_of_canonical_payload(
        self,
        record_builder: SignatureRecordBuilder,
        agreement: Agreement,
        signing_config: object,
    ) -> None:
        record = record_builder.build(agreement, SIGNER, ClickSignature())
        payload = record.canonical_payload()
        assert set(payload) == {
            "agreement_id",
            "document_hash",
            "signer_name",
            "signer_email",
            "signed_at",
            "ip",
            "user_agent",
            "method",
        }
        secret = signing_config.signing_secret  # type: ignore[attr-defined]
        assert record.integrity_hash == compute_hmac(secret, payload)
        assert record_builder.compute_integrity_hash(payload) == record.integrity_hash
        assert canonical_json(payload) == canonical_json(dict(reversed(payload.items())))

    def test_verify_accepts_untouched_record(
        self, record_builder: SignatureRecordBuilder, agreement: Agreement
    ) -> None:
        record = record_builder.build(agreement, SIGNER, TypedSignature("Ana Lima", "dancing"))
        assert record_builder.verify(record) is True

    @pytest.mark.parametrize(
        "change",
        [
            {"ip": "198.51.100.1"},
            {"user_agent": "curl/8.0"},
            {"name": "Mallory"},
            {"email": "mallory@example.com"},
            {"document_hash": "0" * 64},
            {"method": SignatureMethod.DRAW},
        ],
    )
    def test_changing_any_hashed_field_breaks_verification(
        self,
        record_builder: SignatureRecordBuilder,
        agreement: Agreement,
        change: dict[str, object],
    ) -> None:
        record = record_builder.build(agreement, SIGNER, ClickSignature())
        tampered = dataclasses.replace(record, **change)
        assert record_builder.verify(tampered) is False

    def test_other_secret_cannot_verify(
        self,
        record_builder: SignatureRecordBuilder,
        agreement: Agreement,
        fake_time: FakeTimeAuthority,
    ) -> None:
        record = record_builder.build(agreement, SIGNER, ClickSignature())
        other = SignatureRecordBuilder("a-completely-different-secret", fake_time)
        assert other.verify(record) is False

    def test_verification_survives_serialization_at_ms_precision(
        self,
        record_builder: SignatureRecordBuilder,
        agreement: Agreement,
        fake_time: FakeTimeAuthority,
    ) -> None:
        from assent.domain.hashing import parse_iso

        fake_time.advance(seconds=0.0004)
        record = record_builder.build(agreement, SIGNER, ClickSignature())
        restored = dataclasses.replace(
            record, signed_at=parse_iso(record.to_dict()["signed_at"])
        )
        assert record_builder.verify(restored) is True
