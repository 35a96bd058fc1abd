"""Signing workflow domain models.

This module defines the per-agreement signing aggregate:
- WorkflowMode: parallel, sequential or custom (grouped) turn-taking
- StepStatus: lifecycle of one party's step
- SigningStep: one party's position in the workflow
- Reminder: a recorded signing reminder
- SigningWorkflow: the aggregate that owns its steps

The workflow is immutable. Every transition produces a new SigningWorkflow,
so a caller holding an older instance can never observe a half-applied
change.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from assent.domain.hashing import to_iso
from assent.domain.models.signature_record import SignatureRecord

# current_step value meaning "every party is eligible at once"
ALL_CONCURRENT: int = -1

DEFAULT_DECLINE_REASON: str = "No reason provided"


def normalize_email(email: str) -> str:
    """Normalize an email for matching (trimmed, case-folded)."""
    return email.strip().lower()


class WorkflowMode(str, Enum):
    """Turn-taking policy of a workflow."""

    PARALLEL = "parallel"
    SEQUENTIAL = "sequential"
    CUSTOM = "custom"


class StepStatus(str, Enum):
    """Status of one party's signing step."""

    PENDING = "pending"
    NOTIFIED = "notified"
    SIGNED = "signed"
    DECLINED = "declined"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        """Signed, declined and expired steps accept no further action."""
        return self in _TERMINAL_STATUSES


_TERMINAL_STATUSES = frozenset({StepStatus.SIGNED, StepStatus.DECLINED, StepStatus.EXPIRED})


@dataclass(frozen=True, eq=True)
class SigningStep:
    """One party's step in a signing workflow.

    Attributes:
        index: Position of the party in Agreement.parties.
        name: Signer name.
        email: Signer email.
        role: Signer role.
        status: Current step status.
        can_sign: Whether the party may act right now.
        notified_at: When the party was told it is their turn.
        signed_at: When the party signed.
        declined_at: When the party declined.
        decline_reason: Reason given for declining.
        expired_at: When the step was expired.
        signature_record: The party's signature record once signed.
    """

    index: int
    name: str
    email: str
    role: str
    status: StepStatus = StepStatus.PENDING
    can_sign: bool = False
    notified_at: Optional[datetime] = None
    signed_at: Optional[datetime] = None
    declined_at: Optional[datetime] = None
    decline_reason: Optional[str] = None
    expired_at: Optional[datetime] = None
    signature_record: Optional[SignatureRecord] = field(default=None, repr=False)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def matches(self, email: str) -> bool:
        """Check whether this step belongs to the given email."""
        return normalize_email(self.email) == normalize_email(email)

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "status": self.status.value,
            "can_sign": self.can_sign,
            "notified_at": to_iso(self.notified_at) if self.notified_at else None,
            "signed_at": to_iso(self.signed_at) if self.signed_at else None,
            "declined_at": to_iso(self.declined_at) if self.declined_at else None,
            "decline_reason": self.decline_reason,
            "expired_at": to_iso(self.expired_at) if self.expired_at else None,
            "signature_record": (
                self.signature_record.to_dict() if self.signature_record else None
            ),
        }


@dataclass(frozen=True, eq=True)
class Reminder:
    """A signing reminder the caller is expected to deliver."""

    reminder_id: str
    email: str
    name: str
    sent_at: datetime
    reminder_type: str = "signing_reminder"

    def to_dict(self) -> dict[str, Any]:
        return {
            "reminder_id": self.reminder_id,
            "email": self.email,
            "name": self.name,
            "sent_at": to_iso(self.sent_at),
            "type": self.reminder_type,
        }


@dataclass(frozen=True, eq=True)
class SigningWorkflow:
    """Signing aggregate for exactly one agreement.

    Invariants:
    - steps are index-aligned with Agreement.parties
    - in sequential mode at most one step has can_sign, and it is
      steps[order[current_step]]
    - completed_at is set iff every step is terminal

    Attributes:
        agreement_id: Agreement this workflow belongs to.
        mode: Turn-taking policy.
        steps: One step per party.
        order: Permutation of step indices (empty in parallel mode).
        groups: Turn groups walked in order; singletons in sequential
            mode, empty in parallel mode.
        current_step: Index into groups, or ALL_CONCURRENT in parallel mode.
        reminders: Reminders recorded so far.
        created_at: Creation time (UTC).
        completed_at: Completion time, None while any step is open.
    """

    agreement_id: str
    mode: WorkflowMode
    steps: tuple[SigningStep, ...]
    order: tuple[int, ...]
    groups: tuple[tuple[int, ...], ...]
    current_step: int
    created_at: datetime
    reminders: tuple[Reminder, ...] = field(default_factory=tuple)
    completed_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.created_at.tzinfo is None:
            raise ValueError("created_at must be timezone-aware (UTC)")
        if self.mode is WorkflowMode.PARALLEL and self.current_step != ALL_CONCURRENT:
            raise ValueError("parallel workflows must use ALL_CONCURRENT as current_step")

    @property
    def is_complete(self) -> bool:
        return self.completed_at is not None

    @property
    def all_terminal(self) -> bool:
        return all(step.is_terminal for step in self.steps)

    @property
    def all_signed(self) -> bool:
        return all(step.status is StepStatus.SIGNED for step in self.steps)

    @property
    def current_group(self) -> tuple[int, ...]:
        """Step indices of the active turn group (empty once exhausted)."""
        if self.mode is WorkflowMode.PARALLEL:
            return tuple(step.index for step in self.steps)
        if 0 <= self.current_step < len(self.groups):
            return self.groups[self.current_step]
        return ()

    def find_step(self, email: str) -> SigningStep | None:
        """Return the step for an email, or None if the email is not a party."""
        for step in self.steps:
            if step.matches(email):
                return step
        return None

    def with_step(self, step: SigningStep) -> SigningWorkflow:
        """Return a new workflow with one step replaced (matched by index)."""
        steps = tuple(step if s.index == step.index else s for s in self.steps)
        return replace(self, steps=steps)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for storage."""
        return {
            "agreement_id": self.agreement_id,
            "mode": self.mode.value,
            "steps": [step.to_dict() for step in self.steps],
            "order": list(self.order),
            "groups": [list(group) for group in self.groups],
            "current_step": self.current_step,
            "reminders": [r.to_dict() for r in self.reminders],
            "created_at": to_iso(self.created_at),
            "completed_at": to_iso(self.completed_at) if self.completed_at else None,
        }
