"""Nonce registry protocol for single-use sign-in challenges.

A challenge struct cannot enforce its own single use; whoever verifies
it must remember which nonces were issued and which were spent.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol


class NonceRegistryProtocol(Protocol):
    """Protocol for tracking issued and consumed challenge nonces.

    Implementations must guarantee:
    1. A nonce can be consumed at most once
    2. consume() is atomic with respect to concurrent callers
    3. Nonces that were never issued cannot be consumed
    """

    def register(self, nonce: str, expires_at: datetime) -> None:
        """Record a freshly issued nonce.

        Args:
            nonce: The nonce embedded in the challenge.
            expires_at: When the challenge stops being valid.

        Raises:
            ValueError: If the nonce is already registered.
        """
        ...

    def consume(self, nonce: str, now: datetime) -> bool:
        """Mark a nonce as spent.

        Args:
            nonce: Nonce taken from the signed challenge.
            now: Current time, used to discard expired entries.

        Returns:
            True if the nonce was issued and not yet consumed,
            False otherwise (unknown, replayed or expired).
        """
        ...
