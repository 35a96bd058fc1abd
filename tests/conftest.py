"""
Pytest configuration and shared fixtures for Assent tests.

Testing Standards:
- Unit tests go in tests/unit/, mirroring the assent package
- Integration tests go in tests/integration/
- Time-dependent tests use the fake_time fixture, never the system clock
"""

from __future__ import annotations

import pytest

from assent.application.services.audit_trail import AuditTrail
from assent.application.services.challenge_authenticator import ChallengeAuthenticator
from assent.application.services.identity_verifier import IdentityVerifier
from assent.application.services.signature_record_builder import SignatureRecordBuilder
from assent.application.services.signing_workflow_engine import SigningWorkflowEngine
from assent.config.signing_config import TEST_SIGNING_CONFIG, SigningConfig
from assent.domain.models.agreement import Agreement, Party
from assent.infrastructure.locking import InMemoryNonceRegistry
from tests.helpers import AGREEMENT_CONTENT, FakeTimeAuthority


@pytest.fixture
def project_version() -> str:
    """Provide the current project version for tests."""
    from assent import __version__

    return __version__


@pytest.fixture
def fake_time() -> FakeTimeAuthority:
    """A clock frozen at 2026-01-01T00:00:00Z."""
    return FakeTimeAuthority()


@pytest.fixture
def signing_config() -> SigningConfig:
    return TEST_SIGNING_CONFIG


@pytest.fixture
def parties() -> tuple[Party, ...]:
    return (
        Party(name="Ana Lima", email="ana@example.com", role="Discloser"),
        Party(name="Bo Chen", email="bo@example.com", role="Recipient"),
        Party(name="Cy Okafor", email="cy@example.com", role="Witness"),
    )


@pytest.fixture
def agreement(parties: tuple[Party, ...]) -> Agreement:
    """A three-party NDA."""
    return Agreement.create(
        agreement_id="agr-001",
        title="Mutual NDA",
        content=AGREEMENT_CONTENT,
        parties=parties,
        agreement_type="nda",
        jurisdiction="Delaware",
    )


@pytest.fixture
def audit_trail(fake_time: FakeTimeAuthority) -> AuditTrail:
    return AuditTrail(fake_time)


@pytest.fixture
def identity_verifier(fake_time: FakeTimeAuthority) -> IdentityVerifier:
    return IdentityVerifier(fake_time)


@pytest.fixture
def record_builder(
    fake_time: FakeTimeAuthority, signing_config: SigningConfig
) -> SignatureRecordBuilder:
    return SignatureRecordBuilder(signing_config.signing_secret, fake_time)


@pytest.fixture
def engine(
    fake_time: FakeTimeAuthority,
    record_builder: SignatureRecordBuilder,
    identity_verifier: IdentityVerifier,
) -> SigningWorkflowEngine:
    return SigningWorkflowEngine(fake_time, record_builder, identity_verifier)


@pytest.fixture
def nonce_registry() -> InMemoryNonceRegistry:
    return InMemoryNonceRegistry()


@pytest.fixture
def challenge_authenticator(
    fake_time: FakeTimeAuthority, signing_config: SigningConfig
) -> ChallengeAuthenticator:
    """Authenticator without nonce tracking."""
    return ChallengeAuthenticator(
        fake_time,
        domain=signing_config.siwe_domain,
        uri=signing_config.siwe_uri,
    )
