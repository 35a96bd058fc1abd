"""Domain models for Assent.

All models are frozen dataclasses; transitions return new instances.
"""

from assent.domain.models.agreement import Agreement, Party
from assent.domain.models.audit_entry import AuditEntry, SigningAuditAction
from assent.domain.models.certificate import (
    CertifiedSignature,
    CompletionCertificate,
    DocumentIntegrityReport,
)
from assent.domain.models.chain import SUPPORTED_CHAINS, SupportedChain, chain_name, get_chain
from assent.domain.models.identity_verification import (
    IdentityVerification,
    VerificationCheck,
)
from assent.domain.models.signature_record import (
    LEGAL_NOTICE,
    SIGNATURE_FONTS,
    ClickSignature,
    DrawnSignature,
    GeoLocation,
    SignatureMethod,
    SignatureProof,
    SignatureRecord,
    SignerInfo,
    TypedSignature,
    UploadedSignature,
    WalletSignature,
)
from assent.domain.models.signing_workflow import (
    ALL_CONCURRENT,
    Reminder,
    SigningStep,
    SigningWorkflow,
    StepStatus,
    WorkflowMode,
)
from assent.domain.models.transaction import (
    TransactionDescriptor,
    TransactionPlan,
    TransactionStep,
    TypedDataRequest,
)
from assent.domain.models.wallet import (
    AgreementSignatureVerification,
    AgreementSigningMessage,
    SIWEChallenge,
    WalletLink,
    WalletLinkRequest,
)

__all__: list[str] = [
    "ALL_CONCURRENT",
    "Agreement",
    "AgreementSignatureVerification",
    "AgreementSigningMessage",
    "AuditEntry",
    "CertifiedSignature",
    "ClickSignature",
    "CompletionCertificate",
    "DocumentIntegrityReport",
    "DrawnSignature",
    "GeoLocation",
    "IdentityVerification",
    "LEGAL_NOTICE",
    "Party",
    "Reminder",
    "SIGNATURE_FONTS",
    "SIWEChallenge",
    "SUPPORTED_CHAINS",
    "SignatureMethod",
    "SignatureProof",
    "SignatureRecord",
    "SignerInfo",
    "SigningAuditAction",
    "SigningStep",
    "SigningWorkflow",
    "StepStatus",
    "SupportedChain",
    "TransactionDescriptor",
    "TransactionPlan",
    "TransactionStep",
    "TypedDataRequest",
    "TypedSignature",
    "UploadedSignature",
    "VerificationCheck",
    "WalletLink",
    "WalletLinkRequest",
    "WalletSignature",
    "chain_name",
    "get_chain",
]
