"""IdentityVerifier service: one-time codes bound to an email.

Codes are six random digits drawn from the OS CSPRNG, valid for a fixed
horizon and a bounded number of checks. Verifications are immutable;
check() returns the updated verification for the caller to persist in
the same exclusive section it read it in, which keeps the
increment-then-compare sequence atomic.
"""

from __future__ import annotations

import hmac
import secrets
from dataclasses import replace
from datetime import timedelta

from structlog import get_logger

from assent.application.ports.time_authority import TimeAuthorityProtocol
from assent.domain.errors.identity import AttemptsExceededError, CodeExpiredError
from assent.domain.errors.validation import InputInvalidError
from assent.domain.models.identity_verification import (
    IdentityVerification,
    VerificationCheck,
)

logger = get_logger()

CODE_DIGITS: int = 6
DEFAULT_CODE_TTL_MINUTES: int = 10
DEFAULT_MAX_ATTEMPTS: int = 5


def generate_code() -> str:
    """Return a uniformly random six-digit code (100000-999999)."""
    low = 10 ** (CODE_DIGITS - 1)
    return str(low + secrets.randbelow(9 * low))


def _codes_match(submitted: str, code: str) -> bool:
    # compare_digest rejects non-ASCII str, so compare the encoded bytes
    return hmac.compare_digest(submitted.encode("utf-8"), code.encode("utf-8"))


class IdentityVerifier:
    """Issues and checks short-lived numeric codes.

    Example:
        >>> verifier = IdentityVerifier(time_authority=SystemTimeAuthority())
        >>> verification = verifier.issue("ana@example.com")
        >>> result = verifier.check(verification, "123456")
        >>> result.valid, result.reason  # doctest: +SKIP
        (False, 'Incorrect code. 4 attempts remaining.')
    """

    def __init__(
        self,
        time_authority: TimeAuthorityProtocol,
        code_ttl_minutes: int = DEFAULT_CODE_TTL_MINUTES,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        """Initialize the verifier.

        Args:
            time_authority: Clock for issue and expiry times.
            code_ttl_minutes: Lifetime of each code.
            max_attempts: Checks allowed per code.
        """
        self._time = time_authority
        self._ttl = timedelta(minutes=code_ttl_minutes)
        self._max_attempts = max_attempts

    def issue(self, email: str) -> IdentityVerification:
        """Issue a fresh code for an email.

        Any earlier verification for the same email is superseded; the
        caller replaces it in storage.

        Raises:
            InputInvalidError: If email is empty.
        """
        if not email or not email.strip():
            raise InputInvalidError("An email address is required to send a code.", field="email")

        created_at, expires_at = self._time.expiry(self._ttl)
        verification = IdentityVerification(
            email=email.strip(),
            code=generate_code(),
            created_at=created_at,
            expires_at=expires_at,
            max_attempts=self._max_attempts,
        )
        logger.info(
            "verification_code_issued",
            email=verification.email,
            expires_at=verification.expires_at.isoformat(),
        )
        return verification

    def check(
        self, verification: IdentityVerification, submitted_code: str
    ) -> VerificationCheck:
        """Check a submitted code against a verification.

        Args:
            verification: The verification previously issued.
            submitted_code: Code typed by the party.

        Returns:
            VerificationCheck with the updated verification. A mismatch is
            reported as valid=False with the remaining attempts in reason.

        Raises:
            CodeExpiredError: If the code is past its expiry.
            AttemptsExceededError: If no attempts remain.
        """
        submitted = (submitted_code or "").strip()

        if verification.verified:
            # Re-entrant for the same code only
            if _codes_match(submitted, verification.code):
                return VerificationCheck(True, "Already verified", verification)
            logger.warning("verification_code_reuse_rejected", email=verification.email)
            return VerificationCheck(
                False,
                "This code has already been used. Request a new one.",
                verification,
            )

        now = self._time.now()
        if verification.is_expired(now):
            logger.warning(
                "verification_code_expired",
                email=verification.email,
                expires_at=verification.expires_at.isoformat(),
            )
            raise CodeExpiredError(verification.email, verification.expires_at)

        if verification.attempts >= verification.max_attempts:
            logger.warning(
                "verification_attempts_exceeded",
                email=verification.email,
                attempts=verification.attempts,
            )
            raise AttemptsExceededError(verification.email, verification.max_attempts)

        attempted = replace(verification, attempts=verification.attempts + 1)

        if _codes_match(submitted, verification.code):
            verified = replace(attempted, verified=True, verified_at=now)
            logger.info(
                "verification_code_accepted",
                email=verification.email,
                attempts=verified.attempts,
            )
            return VerificationCheck(True, "Verified", verified)

        logger.info(
            "verification_code_rejected",
            email=verification.email,
            attempts=attempted.attempts,
            remaining=attempted.remaining_attempts,
        )
        return VerificationCheck(
            False,
            f"Incorrect code. {attempted.remaining_attempts} attempts remaining.",
            attempted,
        )
