"""In-memory challenge nonce registry.

Issued and consumed nonces are both kept only until their challenge
expires; an expired challenge is rejected before its nonce is looked up.

WARNING: Process-local. A multi-process deployment needs a shared
implementation of NonceRegistryProtocol (e.g. a database table with a
unique constraint on the nonce).
"""

from __future__ import annotations

import threading
from datetime import datetime

from structlog import get_logger

from assent.application.ports.nonce_registry import NonceRegistryProtocol

logger = get_logger()


class InMemoryNonceRegistry(NonceRegistryProtocol):
    """Thread-safe, process-local nonce registry."""

    def __init__(self) -> None:
        # nonce -> expires_at
        self._issued: dict[str, datetime] = {}
        self._consumed: dict[str, datetime] = {}
        self._lock = threading.Lock()

    def register(self, nonce: str, expires_at: datetime) -> None:
        with self._lock:
            if nonce in self._issued or nonce in self._consumed:
                raise ValueError(f"nonce already registered: {nonce}")
            self._issued[nonce] = expires_at

    def consume(self, nonce: str, now: datetime) -> bool:
        with self._lock:
            self._purge_expired(now)
            if nonce in self._consumed:
                logger.warning("nonce_replay_rejected", nonce=nonce)
                return False
            expires_at = self._issued.pop(nonce, None)
            if expires_at is None:
                logger.warning("nonce_unknown_rejected", nonce=nonce)
                return False
            self._consumed[nonce] = expires_at
            return True

    def _purge_expired(self, now: datetime) -> None:
        # Caller holds the lock
        for entries in (self._issued, self._consumed):
            expired = [n for n, expires_at in entries.items() if expires_at < now]
            for nonce in expired:
                del entries[nonce]

    @property
    def outstanding(self) -> int:
        """Number of issued, unconsumed nonces."""
        with self._lock:
            return len(self._issued)

    @property
    def tracked(self) -> int:
        """Number of nonces held in memory, issued or consumed."""
        with self._lock:
            return len(self._issued) + len(self._consumed)
