"""Completion certificates for finished signing workflows."""

from __future__ import annotations

from dataclasses import replace

from structlog import get_logger
from uuid6 import uuid7

from assent.application.ports.time_authority import TimeAuthorityProtocol
from assent.domain.errors.validation import InputInvalidError
from assent.domain.hashing import (
    HASH_ALG_NAME,
    HMAC_ALG_NAME,
    compute_hmac,
    hash_document,
    verify_hmac,
)
from assent.domain.models.agreement import Agreement
from assent.domain.models.certificate import (
    CertifiedSignature,
    CompletionCertificate,
    DocumentIntegrityReport,
)
from assent.domain.models.signing_workflow import SigningWorkflow, StepStatus

logger = get_logger()


class CompletionCertificateIssuer:
    """Issues and verifies HMAC-signed completion certificates."""

    def __init__(self, signing_secret: str, time_authority: TimeAuthorityProtocol) -> None:
        if not signing_secret:
            raise ValueError("signing_secret is required")
        self._secret = signing_secret
        self._time = time_authority

    def issue(self, agreement: Agreement, workflow: SigningWorkflow) -> CompletionCertificate:
        """Summarize a completed workflow in a signed certificate.

        Raises:
            InputInvalidError: If the workflow belongs to another agreement
                or is not complete.
        """
        if workflow.agreement_id != agreement.agreement_id:
            raise InputInvalidError(
                "Workflow does not belong to this agreement.", field="agreement_id"
            )
        if not workflow.is_complete:
            raise InputInvalidError(
                "A certificate can only be issued once every party has acted.",
                field="workflow",
            )

        signatures = tuple(
            CertifiedSignature(
                name=step.signature_record.name,
                email=step.signature_record.email,
                method=step.signature_record.method.value,
                signed_at=step.signature_record.signed_at,
                ip=step.signature_record.ip,
                integrity_hash=step.signature_record.integrity_hash,
            )
            for step in workflow.steps
            if step.status is StepStatus.SIGNED and step.signature_record is not None
        )
        declined = tuple(s.email for s in workflow.steps if s.status is StepStatus.DECLINED)

        unsigned = CompletionCertificate(
            certificate_id=str(uuid7()),
            agreement_id=agreement.agreement_id,
            document_hash=agreement.content_hash,
            title=agreement.title,
            signatures=signatures,
            declined_parties=declined,
            issued_at=self._time.now(),
            hash_algorithm=HASH_ALG_NAME,
            signature_algorithm=HMAC_ALG_NAME,
            certificate_signature="",
        )
        certificate = replace(
            unsigned,
            certificate_signature=compute_hmac(self._secret, unsigned.signable_content()),
        )
        logger.info(
            "completion_certificate_issued",
            agreement_id=agreement.agreement_id,
            certificate_id=certificate.certificate_id,
            signatures=len(signatures),
            declined=len(declined),
        )
        return certificate

    def verify(self, certificate: CompletionCertificate) -> bool:
        """Check a certificate's signature in constant time."""
        return verify_hmac(
            self._secret, certificate.signable_content(), certificate.certificate_signature
        )

    def verify_document_integrity(
        self, agreement: Agreement, current_content: str
    ) -> DocumentIntegrityReport:
        """Compare current document content with the agreement's stored hash."""
        current_hash = hash_document(current_content)
        report = DocumentIntegrityReport(
            agreement_id=agreement.agreement_id,
            original_hash=agreement.content_hash,
            current_hash=current_hash,
            is_intact=current_hash == agreement.content_hash,
            checked_at=self._time.now(),
        )
        if not report.is_intact:
            logger.warning(
                "document_integrity_failed",
                agreement_id=agreement.agreement_id,
                original_hash=agreement.content_hash,
                current_hash=current_hash,
            )
        return report
