"""Identity verification domain models.

- IdentityVerification: a one-time code bound to one email
- VerificationCheck: outcome of checking a submitted code
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from assent.domain.hashing import to_iso


@dataclass(frozen=True, eq=True)
class IdentityVerification:
    """A short-lived numeric code bound to one email.

    A new code replaces the previous verification entirely; nothing is
    ever reset in place. verified only moves from False to True.

    Attributes:
        email: Email the code was sent to.
        code: The generated code.
        created_at: Issue time (UTC).
        expires_at: Fixed expiry horizon from created_at.
        max_attempts: Ceiling on checked submissions.
        attempts: Submissions checked so far.
        verified: Whether the correct code has been submitted.
        verified_at: When it was submitted.
    """

    email: str
    code: str = field(repr=False)
    created_at: datetime
    expires_at: datetime
    max_attempts: int = 5
    attempts: int = 0
    verified: bool = False
    verified_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.created_at.tzinfo is None or self.expires_at.tzinfo is None:
            raise ValueError("verification timestamps must be timezone-aware (UTC)")
        if self.expires_at <= self.created_at:
            raise ValueError("expires_at must be after created_at")
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be positive, got {self.max_attempts}")
        if self.attempts < 0:
            raise ValueError(f"attempts must be non-negative, got {self.attempts}")

    @property
    def remaining_attempts(self) -> int:
        return max(self.max_attempts - self.attempts, 0)

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def to_dict(self) -> dict[str, Any]:
        """Serialize for storage. Includes the code; never send this to clients."""
        return {
            "email": self.email,
            "code": self.code,
            "created_at": to_iso(self.created_at),
            "expires_at": to_iso(self.expires_at),
            "max_attempts": self.max_attempts,
            "attempts": self.attempts,
            "verified": self.verified,
            "verified_at": to_iso(self.verified_at) if self.verified_at else None,
        }


@dataclass(frozen=True)
class VerificationCheck:
    """Result of checking a submitted code.

    Attributes:
        valid: Whether the code was accepted.
        reason: Human-readable outcome, suitable for display.
        verification: The verification after the check; persist it.
    """

    valid: bool
    reason: str
    verification: IdentityVerification
