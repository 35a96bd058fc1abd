"""Wallet signature errors.

Raised by challenge verification, agreement signature verification and
wallet linking when a cryptographic proof does not hold.
"""

from __future__ import annotations

from assent.domain.exceptions import AssentError


class AddressMismatchError(AssentError):
    """Raised when a recovered signer differs from the claimed address.

    Comparison is case-insensitive so checksum casing never matters.

    Attributes:
        expected_address: The address the message or caller claimed.
        recovered_address: The address recovered from the signature.
    """

    def __init__(
        self,
        expected_address: str,
        recovered_address: str,
        message: str | None = None,
    ) -> None:
        self.expected_address = expected_address
        self.recovered_address = recovered_address
        super().__init__(
            message
            or (
                f"Address mismatch: signature was produced by {recovered_address}, "
                f"not {expected_address}."
            )
        )


class VerificationFailedError(AssentError):
    """Raised when a signature cannot be verified at all.

    Covers malformed signatures, malformed messages, failed recovery and
    replayed nonces. When wrapping a more specific failure, the original
    error is kept as ``reason`` so callers can inspect it.

    Attributes:
        reason: Underlying error, if this one wraps another.
    """

    def __init__(self, message: str, reason: Exception | None = None) -> None:
        self.reason = reason
        super().__init__(message)
