"""Domain errors for Assent.

Provides specific exception classes for different failure scenarios.
All exceptions inherit from AssentError.
"""

from assent.domain.errors.audit import AuditTrailTamperedError
from assent.domain.errors.identity import (
    AttemptsExceededError,
    ChallengeExpiredError,
    CodeExpiredError,
    ExpiredError,
)
from assent.domain.errors.signing import (
    AlreadyTerminalError,
    NotSignersTurnError,
    SigningWorkflowError,
    UnknownSignerError,
)
from assent.domain.errors.validation import InputInvalidError
from assent.domain.errors.wallet import AddressMismatchError, VerificationFailedError

__all__: list[str] = [
    "AddressMismatchError",
    "AlreadyTerminalError",
    "AttemptsExceededError",
    "AuditTrailTamperedError",
    "ChallengeExpiredError",
    "CodeExpiredError",
    "ExpiredError",
    "InputInvalidError",
    "NotSignersTurnError",
    "SigningWorkflowError",
    "UnknownSignerError",
    "VerificationFailedError",
]
