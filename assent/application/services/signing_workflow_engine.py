"""SigningWorkflowEngine: turn-taking state machine for multi-party signing.

The engine owns the rules for who may act on an agreement and when:

- parallel: every party may act at any time, in any order
- sequential: parties act one at a time in a fixed order
- custom: parties act group by group; members of a group act in any order

Every operation takes a SigningWorkflow and returns a new one; a rejected
action raises and leaves the caller's instance untouched. The engine is
not synchronized: hosts serialize mutating calls per agreement (see
assent.infrastructure.locking.WorkflowLockRegistry).

Every state change is recorded in the AuditTrail passed to the call.

Usage:
    engine = SigningWorkflowEngine(time_authority, record_builder, identity_verifier)
    workflow = engine.create(agreement, WorkflowMode.SEQUENTIAL)

    workflow = engine.sign(workflow, agreement, signer_info, proof, trail)
    workflow = engine.decline(workflow, "bo@example.com", "terms unacceptable", trail)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime
from typing import Any, Optional, Union

from uuid6 import uuid7

from assent.application.ports.time_authority import TimeAuthorityProtocol
from assent.application.services.audit_trail import AuditTrail
from assent.application.services.base import LoggingMixin
from assent.application.services.identity_verifier import IdentityVerifier
from assent.application.services.signature_record_builder import SignatureRecordBuilder
from assent.domain.errors.identity import AttemptsExceededError, ExpiredError
from assent.domain.errors.signing import (
    AlreadyTerminalError,
    NotSignersTurnError,
    UnknownSignerError,
)
from assent.domain.errors.validation import InputInvalidError
from assent.domain.models.agreement import Agreement
from assent.domain.models.audit_entry import SigningAuditAction
from assent.domain.models.identity_verification import (
    IdentityVerification,
    VerificationCheck,
)
from assent.domain.models.signature_record import (
    SignatureMethod,
    SignatureProof,
    SignatureRecord,
    SignerInfo,
)
from assent.domain.models.signing_workflow import (
    ALL_CONCURRENT,
    DEFAULT_DECLINE_REASON,
    Reminder,
    SigningStep,
    SigningWorkflow,
    StepStatus,
    WorkflowMode,
    normalize_email,
)

# Custom order: groups of step indices, or bare indices for singleton groups
CustomOrder = Sequence[Union[int, Sequence[int]]]

CAPTURE_ACTIONS: dict[SignatureMethod, SigningAuditAction] = {
    SignatureMethod.DRAW: SigningAuditAction.SIGNATURE_DRAWN,
    SignatureMethod.TYPE: SigningAuditAction.SIGNATURE_TYPED,
    SignatureMethod.UPLOAD: SigningAuditAction.SIGNATURE_UPLOADED,
    SignatureMethod.WALLET: SigningAuditAction.SIGNATURE_WALLET,
    SignatureMethod.CLICK: SigningAuditAction.SIGNATURE_CLICK,
}


class SigningWorkflowEngine(LoggingMixin):
    """Creates and advances signing workflows.

    Check order for every signer action:
    1. the email must belong to a party (UnknownSignerError)
    2. the party's step must not be terminal (AlreadyTerminalError)
    3. for signing, it must be the party's turn (NotSignersTurnError)
    """

    def __init__(
        self,
        time_authority: TimeAuthorityProtocol,
        record_builder: SignatureRecordBuilder,
        identity_verifier: IdentityVerifier,
    ) -> None:
        """Initialize the engine.

        Args:
            time_authority: Clock for step and workflow timestamps.
            record_builder: Builds the record for sign().
            identity_verifier: Issues and checks one-time codes.
        """
        self._time = time_authority
        self._record_builder = record_builder
        self._identity_verifier = identity_verifier
        self._init_logger()

    # ------------------------------------------------------------------
    # Creation and advancement
    # ------------------------------------------------------------------

    def create(
        self,
        agreement: Agreement,
        mode: WorkflowMode | str,
        order: Optional[Sequence[int] | CustomOrder] = None,
        audit_trail: Optional[AuditTrail] = None,
    ) -> SigningWorkflow:
        """Create the workflow for an agreement.

        Args:
            agreement: Agreement whose parties must sign.
            mode: Turn-taking policy.
            order: Sequential: a permutation of party indices (default:
                party order). Custom: a sequence of index groups (default:
                one group with every party). Ignored in parallel mode.
            audit_trail: Trail to record AGREEMENT_OPENED in, if given.

        Returns:
            The new workflow, with the first eligible parties notified.

        Raises:
            InputInvalidError: If the mode is unknown, the agreement has no
                parties, two parties share an email, or the order does not
                cover every party exactly once.
        """
        try:
            workflow_mode = WorkflowMode(mode)
        except ValueError as exc:
            raise InputInvalidError(f"Unknown signing mode: {mode!r}.", field="mode") from exc

        log = self._log_operation(
            "create", agreement_id=agreement.agreement_id, mode=workflow_mode.value
        )

        party_count = len(agreement.parties)
        if party_count == 0:
            raise InputInvalidError("An agreement needs at least one party to sign.", field="parties")

        emails = [normalize_email(p.email) for p in agreement.parties]
        if len(set(emails)) != len(emails):
            raise InputInvalidError("Every party must have a distinct email.", field="parties")

        if workflow_mode is WorkflowMode.PARALLEL:
            if order is not None:
                log.warning("workflow_order_ignored")
            flat_order: tuple[int, ...] = ()
            groups: tuple[tuple[int, ...], ...] = ()
            eligible = set(range(party_count))
            current_step = ALL_CONCURRENT
        elif workflow_mode is WorkflowMode.SEQUENTIAL:
            flat_order = self._sequential_order(order, party_count)
            groups = tuple((index,) for index in flat_order)
            eligible = {flat_order[0]}
            current_step = 0
        else:
            groups = self._custom_groups(order, party_count)
            flat_order = tuple(index for group in groups for index in group)
            eligible = set(groups[0])
            current_step = 0

        now = self._time.now()
        steps = tuple(
            SigningStep(
                index=index,
                name=party.name,
                email=party.email,
                role=party.role,
                status=StepStatus.NOTIFIED if index in eligible else StepStatus.PENDING,
                can_sign=index in eligible,
                notified_at=now if index in eligible else None,
            )
            for index, party in enumerate(agreement.parties)
        )

        workflow = SigningWorkflow(
            agreement_id=agreement.agreement_id,
            mode=workflow_mode,
            steps=steps,
            order=flat_order,
            groups=groups,
            current_step=current_step,
            created_at=now,
        )

        if audit_trail is not None:
            audit_trail.append(
                SigningAuditAction.AGREEMENT_OPENED,
                {
                    "agreement_id": agreement.agreement_id,
                    "mode": workflow_mode.value,
                    "signers": [p.email for p in agreement.parties],
                    "order": list(flat_order),
                },
            )

        log.info(
            "workflow_created",
            parties=party_count,
            notified=sorted(eligible),
        )
        return workflow

    def advance(
        self,
        workflow: SigningWorkflow,
        audit_trail: Optional[AuditTrail] = None,
    ) -> SigningWorkflow:
        """Move past every finished turn group.

        While every step of the current group is terminal, moves to the
        next group and notifies its open steps. Once no group is left,
        marks the workflow complete. Idempotent while the current group
        still has open steps. Parallel workflows only check completion.

        Args:
            workflow: Workflow to advance.
            audit_trail: Trail to record WORKFLOW_ADVANCED and completion in.

        Returns:
            The advanced workflow (the same instance if nothing changed).
        """
        if workflow.is_complete:
            return workflow
        if workflow.mode is WorkflowMode.PARALLEL:
            return self._complete_if_done(workflow, audit_trail)

        steps = {step.index: step for step in workflow.steps}
        position = workflow.current_step
        while position < len(workflow.groups) and all(
            steps[index].is_terminal for index in workflow.groups[position]
        ):
            position += 1

        if position == workflow.current_step:
            return workflow

        log = self._log_operation("advance", agreement_id=workflow.agreement_id)
        now = self._time.now()
        notified: list[str] = []
        if position < len(workflow.groups):
            for index in workflow.groups[position]:
                step = steps[index]
                if step.is_terminal:
                    continue
                steps[index] = replace(
                    step,
                    status=StepStatus.NOTIFIED,
                    can_sign=True,
                    notified_at=now,
                )
                notified.append(step.email)

        advanced = replace(
            workflow,
            steps=tuple(steps[step.index] for step in workflow.steps),
            current_step=position,
        )

        if position < len(workflow.groups):
            if audit_trail is not None:
                audit_trail.append(
                    SigningAuditAction.WORKFLOW_ADVANCED,
                    {
                        "from_step": workflow.current_step,
                        "to_step": position,
                        "notified": notified,
                    },
                )
            log.info(
                "workflow_advanced",
                from_step=workflow.current_step,
                to_step=position,
                notified=notified,
            )
            return advanced

        return self._complete_if_done(advanced, audit_trail)

    # ------------------------------------------------------------------
    # Signer actions
    # ------------------------------------------------------------------

    def record_sign(
        self,
        workflow: SigningWorkflow,
        email: str,
        signature_record: SignatureRecord,
        audit_trail: AuditTrail,
    ) -> SigningWorkflow:
        """Record a built signature for a party and advance.

        Raises:
            UnknownSignerError: If the email is not a party.
            AlreadyTerminalError: If the party already signed, declined or expired.
            NotSignersTurnError: If it is not the party's turn.
            InputInvalidError: If the record belongs to another agreement or signer.
        """
        log = self._log_operation("record_sign", agreement_id=workflow.agreement_id, email=email)
        step = self._require_open_step(workflow, email)
        self._require_turn(workflow, step, email)

        if signature_record.agreement_id != workflow.agreement_id:
            raise InputInvalidError(
                "Signature record belongs to a different agreement.", field="agreement_id"
            )
        if not step.matches(signature_record.email):
            raise InputInvalidError(
                "Signature record belongs to a different signer.", field="email"
            )

        signed_step = replace(
            step,
            status=StepStatus.SIGNED,
            can_sign=False,
            signed_at=signature_record.signed_at,
            signature_record=signature_record,
        )
        audit_trail.append(
            SigningAuditAction.AGREEMENT_SIGNED,
            {
                "email": step.email,
                "name": signature_record.name,
                "step": step.index,
                "method": signature_record.method.value,
                "integrity_hash": signature_record.integrity_hash,
                "ip": signature_record.ip,
            },
        )
        log.info("signature_recorded", step=step.index, method=signature_record.method.value)

        return self.advance(workflow.with_step(signed_step), audit_trail)

    def sign(
        self,
        workflow: SigningWorkflow,
        agreement: Agreement,
        signer_info: SignerInfo,
        proof: SignatureProof,
        audit_trail: AuditTrail,
    ) -> SigningWorkflow:
        """Build a signature record from a captured proof and record it.

        Eligibility is checked before anything is built or logged, so a
        rejected attempt leaves no trace in the trail.

        Raises:
            UnknownSignerError, AlreadyTerminalError, NotSignersTurnError:
                As for record_sign().
            InputInvalidError: If the agreement does not match the workflow
                or the proof is incomplete.
        """
        if agreement.agreement_id != workflow.agreement_id:
            raise InputInvalidError(
                "Agreement does not match the signing workflow.", field="agreement_id"
            )
        step = self._require_open_step(workflow, signer_info.email)
        self._require_turn(workflow, step, signer_info.email)

        record = self._record_builder.build(agreement, signer_info, proof)

        capture_details: dict[str, Any] = {"email": step.email, "method": record.method.value}
        if record.font_id is not None:
            capture_details["font_id"] = record.font_id
        if record.wallet_address is not None:
            capture_details["wallet_address"] = record.wallet_address
        audit_trail.append(CAPTURE_ACTIONS[record.method], capture_details)

        if record.consent_to_e_records:
            audit_trail.append(
                SigningAuditAction.CONSENT_GRANTED,
                {"email": step.email, "consent_timestamp": record.consent_timestamp},
            )

        return self.record_sign(workflow, step.email, record, audit_trail)

    def decline(
        self,
        workflow: SigningWorkflow,
        email: str,
        reason: Optional[str],
        audit_trail: AuditTrail,
    ) -> SigningWorkflow:
        """Record that a party refuses to sign.

        A party may decline before its turn. Other parties' signatures
        stay valid; the workflow continues with the remaining parties.

        Raises:
            UnknownSignerError: If the email is not a party.
            AlreadyTerminalError: If the party already signed, declined or expired.
        """
        log = self._log_operation("decline", agreement_id=workflow.agreement_id, email=email)
        step = self._require_open_step(workflow, email)
        decline_reason = (reason or "").strip() or DEFAULT_DECLINE_REASON

        declined_step = replace(
            step,
            status=StepStatus.DECLINED,
            can_sign=False,
            declined_at=self._time.now(),
            decline_reason=decline_reason,
        )
        audit_trail.append(
            SigningAuditAction.AGREEMENT_DECLINED,
            {"email": step.email, "step": step.index, "reason": decline_reason},
        )
        log.info("signer_declined", step=step.index, reason=decline_reason)

        return self.advance(workflow.with_step(declined_step), audit_trail)

    def expire(
        self,
        workflow: SigningWorkflow,
        email: str,
        audit_trail: AuditTrail,
    ) -> SigningWorkflow:
        """Close a party's step without a signature (deadline passed).

        Raises:
            UnknownSignerError: If the email is not a party.
            AlreadyTerminalError: If the step is already terminal.
        """
        log = self._log_operation("expire", agreement_id=workflow.agreement_id, email=email)
        step = self._require_open_step(workflow, email)

        expired_step = replace(
            step,
            status=StepStatus.EXPIRED,
            can_sign=False,
            expired_at=self._time.now(),
        )
        audit_trail.append(
            SigningAuditAction.SIGNING_EXPIRED,
            {"email": step.email, "step": step.index},
        )
        log.info("signer_expired", step=step.index)

        return self.advance(workflow.with_step(expired_step), audit_trail)

    def remind(
        self,
        workflow: SigningWorkflow,
        email: str,
        audit_trail: AuditTrail,
    ) -> tuple[SigningWorkflow, Optional[Reminder]]:
        """Record a signing reminder for a party.

        Reminding a party whose step is terminal is a no-op: the workflow
        comes back unchanged with no reminder. Repeated reminders are all
        recorded.

        Returns:
            (workflow, reminder) where reminder is None for terminal steps.

        Raises:
            UnknownSignerError: If the email is not a party.
        """
        log = self._log_operation("remind", agreement_id=workflow.agreement_id, email=email)
        step = workflow.find_step(email)
        if step is None:
            log.warning("remind_unknown_signer")
            raise UnknownSignerError(workflow.agreement_id, email)
        if step.is_terminal:
            log.debug("remind_skipped_terminal", status=step.status.value)
            return workflow, None

        reminder = Reminder(
            reminder_id=str(uuid7()),
            email=step.email,
            name=step.name,
            sent_at=self._time.now(),
        )
        audit_trail.append(
            SigningAuditAction.REMINDER_SENT,
            {"email": step.email, "reminder_id": reminder.reminder_id},
        )
        log.info("reminder_recorded", reminder_id=reminder.reminder_id)
        return replace(workflow, reminders=workflow.reminders + (reminder,)), reminder

    def record_view(
        self,
        workflow: SigningWorkflow,
        email: str,
        audit_trail: AuditTrail,
        ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        """Record that a party opened the agreement.

        Raises:
            UnknownSignerError: If the email is not a party.
        """
        step = workflow.find_step(email)
        if step is None:
            raise UnknownSignerError(workflow.agreement_id, email)
        details: dict[str, Any] = {"email": step.email}
        if ip:
            details["ip"] = ip
        if user_agent:
            details["user_agent"] = user_agent
        audit_trail.append(SigningAuditAction.AGREEMENT_VIEWED, details)

    def request_code(
        self,
        workflow: SigningWorkflow,
        email: str,
        audit_trail: AuditTrail,
    ) -> IdentityVerification:
        """Issue a one-time code for a party with an open step.

        The caller delivers the code and stores the verification, replacing
        any earlier one for the same email.

        Raises:
            UnknownSignerError: If the email is not a party.
            AlreadyTerminalError: If the party's step is terminal.
        """
        step = self._require_open_step(workflow, email)
        verification = self._identity_verifier.issue(step.email)
        audit_trail.append(
            SigningAuditAction.OTP_REQUESTED,
            {"email": step.email, "expires_at": verification.expires_at},
        )
        return verification

    def verify_identity(
        self,
        workflow: SigningWorkflow,
        email: str,
        verification: IdentityVerification,
        code: str,
        audit_trail: AuditTrail,
    ) -> VerificationCheck:
        """Check a party's one-time code and record the outcome.

        Returns:
            The check result; persist result.verification.

        Raises:
            UnknownSignerError: If the email is not a party.
            InputInvalidError: If the verification was issued for another email.
            CodeExpiredError: If the code expired.
            AttemptsExceededError: If the code has no attempts left.
        """
        step = workflow.find_step(email)
        if step is None:
            raise UnknownSignerError(workflow.agreement_id, email)
        if not step.matches(verification.email):
            raise InputInvalidError(
                "This code was issued for a different email.", field="email"
            )

        was_verified = verification.verified
        try:
            result = self._identity_verifier.check(verification, code)
        except (ExpiredError, AttemptsExceededError) as exc:
            audit_trail.append(
                SigningAuditAction.OTP_FAILED,
                {"email": step.email, "reason": exc.message},
            )
            raise

        if result.valid and not was_verified:
            audit_trail.append(
                SigningAuditAction.OTP_VERIFIED,
                {"email": step.email, "attempts": result.verification.attempts},
            )
        elif not result.valid:
            audit_trail.append(
                SigningAuditAction.OTP_FAILED,
                {
                    "email": step.email,
                    "reason": result.reason,
                    "remaining_attempts": result.verification.remaining_attempts,
                },
            )
        return result

    # ------------------------------------------------------------------
    # Read-only projections
    # ------------------------------------------------------------------

    def is_signers_turn(self, workflow: SigningWorkflow, email: str) -> bool:
        """Whether the party may sign now.

        Parallel: true for any party on the agreement. Sequential and
        custom: the party's step must currently be eligible.
        """
        step = workflow.find_step(email)
        if step is None:
            return False
        if workflow.mode is WorkflowMode.PARALLEL:
            return True
        return step.can_sign

    def get_next_signers(self, workflow: SigningWorkflow) -> tuple[SigningStep, ...]:
        """Steps that may act now.

        Parallel: every open step. Sequential: the single current step.
        Custom: the open steps of the current group. Empty once complete.
        """
        if workflow.mode is WorkflowMode.PARALLEL:
            return tuple(step for step in workflow.steps if not step.is_terminal)
        by_index = {step.index: step for step in workflow.steps}
        return tuple(
            by_index[index]
            for index in workflow.current_group
            if not by_index[index].is_terminal
        )

    def get_pending_signers(self, workflow: SigningWorkflow) -> tuple[SigningStep, ...]:
        """Every step that still owes an action, in party order."""
        return tuple(step for step in workflow.steps if not step.is_terminal)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_open_step(self, workflow: SigningWorkflow, email: str) -> SigningStep:
        step = workflow.find_step(email)
        if step is None:
            self._log.warning(
                "signer_action_rejected",
                agreement_id=workflow.agreement_id,
                email=email,
                reason="unknown_signer",
            )
            raise UnknownSignerError(workflow.agreement_id, email)
        if step.is_terminal:
            self._log.warning(
                "signer_action_rejected",
                agreement_id=workflow.agreement_id,
                email=email,
                reason="already_terminal",
                status=step.status.value,
            )
            raise AlreadyTerminalError(workflow.agreement_id, email, step.status)
        return step

    def _require_turn(self, workflow: SigningWorkflow, step: SigningStep, email: str) -> None:
        if not self.is_signers_turn(workflow, step.email):
            self._log.warning(
                "signer_action_rejected",
                agreement_id=workflow.agreement_id,
                email=email,
                reason="not_signers_turn",
                current_step=workflow.current_step,
            )
            raise NotSignersTurnError(workflow.agreement_id, email)

    def _complete_if_done(
        self,
        workflow: SigningWorkflow,
        audit_trail: Optional[AuditTrail],
    ) -> SigningWorkflow:
        if workflow.is_complete or not workflow.all_terminal:
            return workflow

        completed_at: datetime = self._time.now()
        completed = replace(workflow, completed_at=completed_at)
        signed = [s.email for s in completed.steps if s.status is StepStatus.SIGNED]
        declined = [s.email for s in completed.steps if s.status is StepStatus.DECLINED]
        expired = [s.email for s in completed.steps if s.status is StepStatus.EXPIRED]

        if audit_trail is not None:
            audit_trail.append(
                SigningAuditAction.WORKFLOW_COMPLETED,
                {"signed": signed, "declined": declined, "expired": expired},
            )
            if completed.all_signed:
                audit_trail.append(
                    SigningAuditAction.ALL_PARTIES_SIGNED,
                    {"signers": signed, "completed_at": completed_at},
                )

        self._log_operation("complete", agreement_id=workflow.agreement_id).info(
            "workflow_completed",
            signed=len(signed),
            declined=len(declined),
            expired=len(expired),
        )
        return completed

    @staticmethod
    def _sequential_order(order: Optional[Sequence[Any]], party_count: int) -> tuple[int, ...]:
        if order is None:
            return tuple(range(party_count))
        malformed = InputInvalidError(
            "Sequential order must be a list of party indices.", field="order"
        )
        if isinstance(order, (str, bytes)):
            raise malformed
        try:
            flat = tuple(order)
        except TypeError as exc:
            raise malformed from exc
        if not all(_is_index(i) for i in flat):
            raise malformed
        _require_permutation(flat, party_count)
        return flat

    @staticmethod
    def _custom_groups(
        order: Optional[CustomOrder], party_count: int
    ) -> tuple[tuple[int, ...], ...]:
        if order is None:
            return (tuple(range(party_count)),)
        malformed = InputInvalidError(
            "Custom order must be a list of party index groups.", field="order"
        )
        groups: list[tuple[int, ...]] = []
        for group in order:
            if _is_index(group):
                groups.append((group,))
                continue
            if isinstance(group, (str, bytes)):
                raise malformed
            try:
                members = tuple(group)
            except TypeError as exc:
                raise malformed from exc
            if not all(_is_index(i) for i in members):
                raise malformed
            if not members:
                raise InputInvalidError("Custom order groups must not be empty.", field="order")
            groups.append(members)
        _require_permutation(tuple(i for g in groups for i in g), party_count)
        return tuple(groups)


def _is_index(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _require_permutation(indices: tuple[int, ...], party_count: int) -> None:
    if sorted(indices) != list(range(party_count)):
        raise InputInvalidError(
            f"Signing order must list each of the {party_count} parties exactly once, "
            f"got {list(indices)}.",
            field="order",
        )
