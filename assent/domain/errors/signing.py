"""Signing workflow errors.

This module provides exception classes for rejected signer actions:
- NotSignersTurnError: the party acted before its turn
- AlreadyTerminalError: the party's step is already signed/declined/expired
- UnknownSignerError: no step matches the given email

A rejected action never changes workflow state.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from assent.domain.exceptions import AssentError

if TYPE_CHECKING:
    from assent.domain.models.signing_workflow import StepStatus


class SigningWorkflowError(AssentError):
    """Base error for signing workflow operations.

    Attributes:
        agreement_id: The agreement whose workflow rejected the action.
        email: The signer email the action was attempted for.
    """

    def __init__(self, agreement_id: str, email: str, message: str) -> None:
        self.agreement_id = agreement_id
        self.email = email
        super().__init__(message)


class NotSignersTurnError(SigningWorkflowError):
    """Raised when a party tries to sign before its turn.

    Only raised in sequential and custom modes; in parallel mode every
    party present on the agreement may act at any time.
    """

    def __init__(self, agreement_id: str, email: str) -> None:
        super().__init__(
            agreement_id,
            email,
            f"It is not {email}'s turn to sign agreement {agreement_id}. "
            "Please wait until the preceding parties have acted.",
        )


class AlreadyTerminalError(SigningWorkflowError):
    """Raised when acting on a step that is already signed, declined or expired.

    Attributes:
        status: The terminal status the step is in.
    """

    def __init__(self, agreement_id: str, email: str, status: StepStatus) -> None:
        self.status = status
        super().__init__(
            agreement_id,
            email,
            f"{email} has already {status.value} agreement {agreement_id}.",
        )


class UnknownSignerError(SigningWorkflowError):
    """Raised when no signing step matches the given email."""

    def __init__(self, agreement_id: str, email: str) -> None:
        super().__init__(
            agreement_id,
            email,
            f"{email} is not a party to agreement {agreement_id}.",
        )
