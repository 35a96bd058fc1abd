"""Unit tests for signing domain models.

Tests construction-time validation and serialization of the immutable
domain records.
"""

from __future__ import annotations

import dataclasses
from datetime import datetime, timedelta, timezone

import pytest

from assent.domain.hashing import GENESIS_HASH, hash_document
from assent.domain.models import (
    ALL_CONCURRENT,
    Agreement,
    AuditEntry,
    IdentityVerification,
    Party,
    SignatureMethod,
    SignatureRecord,
    SigningAuditAction,
    SigningStep,
    SigningWorkflow,
    StepStatus,
    TransactionDescriptor,
    TransactionPlan,
    TransactionStep,
    WalletLink,
    WorkflowMode,
    chain_name,
    get_chain,
)

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _workflow(**overrides: object) -> SigningWorkflow:
    fields: dict[str, object] = {
        "agreement_id": "agr-1",
        "mode": WorkflowMode.SEQUENTIAL,
        "steps": (
            SigningStep(index=0, name="Ana", email="Ana@Example.com", role="Buyer"),
            SigningStep(index=1, name="Bo", email="bo@example.com", role="Seller"),
        ),
        "order": (0, 1),
        "groups": ((0,), (1,)),
        "current_step": 0,
        "created_at": NOW,
    }
    fields.update(overrides)
    return SigningWorkflow(**fields)  # type: ignore[arg-type]


class TestAgreement:
    """Tests for Agreement and Party."""

    def test_create_hashes_content(self) -> None:
        agreement = Agreement.create(
            agreement_id="agr-1",
            title="NDA",
            content="text",
            parties=[Party("Ana", "ana@example.com")],
        )
        assert agreement.content_hash == hash_document("text")
        assert agreement.parties == (Party("Ana", "ana@example.com"),)

    def test_party_requires_email(self) -> None:
        with pytest.raises(ValueError, match="email"):
            Party(name="Ana", email="  ")

    def test_to_dict_excludes_content(self) -> None:
        agreement = Agreement.create("agr-1", "NDA", "secret text", [])
        assert "content" not in agreement.to_dict()
        assert agreement.to_dict()["jurisdiction"] is None


class TestStepStatus:
    """Tests for StepStatus terminal classification."""

    @pytest.mark.parametrize(
        ("status", "terminal"),
        [
            (StepStatus.PENDING, False),
            (StepStatus.NOTIFIED, False),
            (StepStatus.SIGNED, True),
            (StepStatus.DECLINED, True),
            (StepStatus.EXPIRED, True),
        ],
    )
    def test_is_terminal(self, status: StepStatus, terminal: bool) -> None:
        assert status.is_terminal is terminal


class TestSigningWorkflow:
    """Tests for the SigningWorkflow aggregate."""

    def test_find_step_is_case_insensitive(self) -> None:
        workflow = _workflow()
        step = workflow.find_step("  ana@example.COM ")
        assert step is not None and step.index == 0
        assert workflow.find_step("nobody@example.com") is None

    def test_with_step_returns_new_instance(self) -> None:
        workflow = _workflow()
        updated = workflow.with_step(
            dataclasses.replace(workflow.steps[1], status=StepStatus.SIGNED)
        )
        assert updated is not workflow
        assert workflow.steps[1].status is StepStatus.PENDING
        assert updated.steps[1].status is StepStatus.SIGNED

    def test_is_frozen(self) -> None:
        workflow = _workflow()
        with pytest.raises(dataclasses.FrozenInstanceError):
            workflow.current_step = 1  # type: ignore[misc]

    def test_parallel_requires_all_concurrent_sentinel(self) -> None:
        with pytest.raises(ValueError, match="ALL_CONCURRENT"):
            _workflow(mode=WorkflowMode.PARALLEL, order=(), groups=(), current_step=0)
        assert _workflow(
            mode=WorkflowMode.PARALLEL, order=(), groups=(), current_step=ALL_CONCURRENT
        ).current_group == (0, 1)

    def test_current_group_empty_once_exhausted(self) -> None:
        assert _workflow(current_step=2).current_group == ()

    def test_to_dict_shape(self) -> None:
        data = _workflow().to_dict()
        assert data["mode"] == "sequential"
        assert data["groups"] == [[0], [1]]
        assert data["completed_at"] is None
        assert data["steps"][0]["status"] == "pending"


class TestIdentityVerification:
    """Tests for IdentityVerification validation."""

    def test_remaining_attempts(self) -> None:
        verification = IdentityVerification(
            email="ana@example.com",
            code="123456",
            created_at=NOW,
            expires_at=NOW + timedelta(minutes=10),
            attempts=2,
        )
        assert verification.remaining_attempts == 3

    def test_expiry_must_follow_creation(self) -> None:
        with pytest.raises(ValueError, match="expires_at"):
            IdentityVerification(
                email="ana@example.com", code="123456", created_at=NOW, expires_at=NOW
            )

    def test_code_not_in_repr(self) -> None:
        verification = IdentityVerification(
            email="ana@example.com",
            code="654321",
            created_at=NOW,
            expires_at=NOW + timedelta(minutes=10),
        )
        assert "654321" not in repr(verification)


class TestSignatureRecord:
    """Tests for SignatureRecord invariants."""

    def test_consent_timestamp_requires_consent(self) -> None:
        with pytest.raises(ValueError, match="consent"):
            SignatureRecord(
                agreement_id="agr-1",
                document_hash="h",
                name="Ana",
                email="ana@example.com",
                method=SignatureMethod.CLICK,
                signed_at=NOW,
                ip="unknown",
                user_agent="unknown",
                integrity_hash="x",
                consent_to_e_records=False,
                consent_timestamp=NOW,
            )

    def test_to_dict_always_has_every_method_field(self) -> None:
        record = SignatureRecord(
            agreement_id="agr-1",
            document_hash="h",
            name="Ana",
            email="ana@example.com",
            method=SignatureMethod.CLICK,
            signed_at=NOW,
            ip="unknown",
            user_agent="unknown",
            integrity_hash="x",
        )
        data = record.to_dict()
        for key in ("signature_image", "typed_text", "font_id", "wallet_address", "crypto_signature"):
            assert key in data
            assert data[key] is None
        assert data["status"] == "SIGNED"


class TestAuditEntry:
    """Tests for AuditEntry validation and round trip."""

    def _entry(self) -> AuditEntry:
        from assent.domain.hashing import compute_entry_hash

        details = {"email": "ana@example.com"}
        return AuditEntry(
            entry_id="e-1",
            action=SigningAuditAction.AGREEMENT_VIEWED,
            details=details,
            timestamp=NOW,
            prev_hash=GENESIS_HASH,
            entry_hash=compute_entry_hash("e-1", "agreement_viewed", NOW, details, GENESIS_HASH),
        )

    def test_rejects_string_action(self) -> None:
        with pytest.raises(ValueError, match="unknown audit action"):
            dataclasses.replace(self._entry(), action="agreement_viewed")

    def test_recompute_hash_matches(self) -> None:
        entry = self._entry()
        assert entry.recompute_hash() == entry.entry_hash

    def test_dict_round_trip(self) -> None:
        entry = self._entry()
        assert AuditEntry.from_dict(entry.to_dict()) == entry

    def test_from_dict_rejects_unknown_action(self) -> None:
        data = self._entry().to_dict()
        data["action"] = "agreement_shredded"
        with pytest.raises(ValueError):
            AuditEntry.from_dict(data)


class TestTransactionModels:
    """Tests for transaction descriptors and plans."""

    def _descriptor(self) -> TransactionDescriptor:
        return TransactionDescriptor(
            to="0x0000000000000000000000000000000000000001",
            data="0x",
            value="0",
            chain_id=8453,
            description="noop",
            function_name="noop",
        )

    def test_plan_steps_must_be_numbered_in_order(self) -> None:
        with pytest.raises(ValueError, match="numbered"):
            TransactionPlan(
                steps=(TransactionStep(2, self._descriptor()),), description="bad"
            )

    def test_plan_needs_a_step(self) -> None:
        with pytest.raises(ValueError, match="at least one"):
            TransactionPlan(steps=(), description="empty")

    def test_descriptor_to_dict_omits_missing_gas(self) -> None:
        assert "gas_estimate" not in self._descriptor().to_dict()


class TestWalletLinkAndChains:
    """Tests for WalletLink and the chain registry."""

    def test_wallet_link_must_be_verified(self) -> None:
        with pytest.raises(ValueError, match="verification"):
            WalletLink(
                link_id="l-1",
                user_id="u-1",
                address="0x0000000000000000000000000000000000000001",
                chain_id=8453,
                chain_name="Base",
                provider="injected",
                linked_at=NOW,
                verified=False,
            )

    def test_chain_lookup(self) -> None:
        chain = get_chain(1516)
        assert chain is not None and chain.name == "Story Odyssey"
        assert chain_name(8453) == "Base"
        assert chain_name(999) == "Chain 999"
