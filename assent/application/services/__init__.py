"""Application services for Assent.

Services hold no workflow state of their own; they take and return
immutable domain values and record every state change in an AuditTrail.
"""

from assent.application.services.audit_trail import AuditTrail
from assent.application.services.challenge_authenticator import ChallengeAuthenticator
from assent.application.services.completion_certificate import CompletionCertificateIssuer
from assent.application.services.identity_verifier import IdentityVerifier
from assent.application.services.signature_record_builder import SignatureRecordBuilder
from assent.application.services.signing_workflow_engine import SigningWorkflowEngine
from assent.application.services.transaction_preparer import (
    TransactionPreparer,
    encode_call,
)

__all__: list[str] = [
    "AuditTrail",
    "ChallengeAuthenticator",
    "CompletionCertificateIssuer",
    "IdentityVerifier",
    "SignatureRecordBuilder",
    "SigningWorkflowEngine",
    "TransactionPreparer",
    "encode_call",
]
