"""Identity verification and expiry errors.

Expiry is shared by one-time codes and sign-in challenges, so both
concrete errors derive from ExpiredError and callers can catch either
kind with a single clause.
"""

from __future__ import annotations

from datetime import datetime

from assent.domain.exceptions import AssentError


class ExpiredError(AssentError):
    """Base error for anything past its expiry horizon.

    Attributes:
        expired_at: When the code or challenge stopped being valid.
    """

    def __init__(self, expired_at: datetime, message: str) -> None:
        self.expired_at = expired_at
        super().__init__(message)


class CodeExpiredError(ExpiredError):
    """Raised when a one-time code is checked after its expiry."""

    def __init__(self, email: str, expired_at: datetime) -> None:
        self.email = email
        super().__init__(expired_at, "Code expired. Request a new one.")


class ChallengeExpiredError(ExpiredError):
    """Raised when a signed challenge is presented after its expiration time."""

    def __init__(self, expired_at: datetime) -> None:
        super().__init__(
            expired_at,
            f"Signature expired: challenge was valid until {expired_at.isoformat()}.",
        )


class AttemptsExceededError(AssentError):
    """Raised when a verification has used up all of its attempts.

    Once raised for a verification, no later code (correct or not) is
    accepted for it. The party must request a new code.

    Attributes:
        email: Email the verification is bound to.
        max_attempts: The attempt ceiling that was reached.
    """

    def __init__(self, email: str, max_attempts: int) -> None:
        self.email = email
        self.max_attempts = max_attempts
        super().__init__(
            f"Too many attempts ({max_attempts}). Request a new code."
        )
