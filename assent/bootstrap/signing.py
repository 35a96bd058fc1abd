"""Bootstrap wiring for signing services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from assent.application.ports.nonce_registry import NonceRegistryProtocol
from assent.application.ports.time_authority import TimeAuthorityProtocol
from assent.application.services.audit_trail import AuditTrail
from assent.application.services.challenge_authenticator import ChallengeAuthenticator
from assent.application.services.completion_certificate import CompletionCertificateIssuer
from assent.application.services.identity_verifier import IdentityVerifier
from assent.application.services.signature_record_builder import SignatureRecordBuilder
from assent.application.services.signing_workflow_engine import SigningWorkflowEngine
from assent.application.services.transaction_preparer import TransactionPreparer
from assent.config.signing_config import SigningConfig
from assent.infrastructure.locking import InMemoryNonceRegistry, WorkflowLockRegistry
from assent.infrastructure.time import SystemTimeAuthority


@dataclass(frozen=True)
class SigningServices:
    """Every signing service, wired to one config and one clock."""

    config: SigningConfig
    time_authority: TimeAuthorityProtocol
    identity_verifier: IdentityVerifier
    record_builder: SignatureRecordBuilder
    engine: SigningWorkflowEngine
    challenge_authenticator: ChallengeAuthenticator
    transaction_preparer: TransactionPreparer
    certificate_issuer: CompletionCertificateIssuer
    workflow_locks: WorkflowLockRegistry

    def new_audit_trail(self) -> AuditTrail:
        """Create an empty audit trail on the shared clock."""
        return AuditTrail(self.time_authority)


def build_signing_services(
    config: Optional[SigningConfig] = None,
    time_authority: Optional[TimeAuthorityProtocol] = None,
    nonce_registry: Optional[NonceRegistryProtocol] = None,
) -> SigningServices:
    """Wire the signing services.

    Args:
        config: Settings; read from the environment when omitted.
        time_authority: Clock; the system clock when omitted.
        nonce_registry: Challenge nonce tracking; process-local when omitted.
    """
    config = config or SigningConfig.from_environment()
    time_authority = time_authority or SystemTimeAuthority()

    identity_verifier = IdentityVerifier(
        time_authority,
        code_ttl_minutes=config.code_ttl_minutes,
        max_attempts=config.code_max_attempts,
    )
    record_builder = SignatureRecordBuilder(config.signing_secret, time_authority)
    return SigningServices(
        config=config,
        time_authority=time_authority,
        identity_verifier=identity_verifier,
        record_builder=record_builder,
        engine=SigningWorkflowEngine(time_authority, record_builder, identity_verifier),
        challenge_authenticator=ChallengeAuthenticator(
            time_authority,
            domain=config.siwe_domain,
            uri=config.siwe_uri,
            statement=config.siwe_statement,
            platform_name=config.platform_name,
            challenge_ttl_minutes=config.challenge_ttl_minutes,
            default_chain_id=config.default_chain_id,
            nonce_registry=nonce_registry or InMemoryNonceRegistry(),
        ),
        transaction_preparer=TransactionPreparer(default_chain_id=config.default_chain_id),
        certificate_issuer=CompletionCertificateIssuer(config.signing_secret, time_authority),
        workflow_locks=WorkflowLockRegistry(),
    )


_signing_services: SigningServices | None = None


def get_signing_services() -> SigningServices:
    """Get the process-wide signing services, built from the environment."""
    global _signing_services
    if _signing_services is None:
        _signing_services = build_signing_services()
    return _signing_services


def reset_signing_services() -> None:
    """Drop the process-wide services (for tests)."""
    global _signing_services
    _signing_services = None
