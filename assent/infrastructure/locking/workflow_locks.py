"""Per-agreement exclusive sections for mutating workflow calls.

The engine itself is not synchronized. Mutating calls on the same
workflow (record_sign, decline, advance, verify_identity) must run one
at a time; calls for different agreements may run in parallel.

Usage:
    locks = WorkflowLockRegistry()

    with locks.hold(agreement_id):
        workflow = repository.load(agreement_id)
        workflow = engine.record_sign(workflow, email, record, trail)
        repository.save(workflow)
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from structlog import get_logger

logger = get_logger()


class WorkflowLockRegistry:
    """One lock per agreement id, created on first use.

    A lock is dropped once no caller holds or waits on it, so the
    registry only tracks agreements with calls in flight.

    WARNING: Process-local. Hosts running several processes must use a
    storage-level lock (row lock, advisory lock) instead.
    """

    def __init__(self, timeout_seconds: float | None = None) -> None:
        """Initialize the registry.

        Args:
            timeout_seconds: How long hold() waits before giving up.
                None waits indefinitely.
        """
        self._timeout = timeout_seconds
        # agreement_id -> (lock, callers holding or waiting)
        self._locks: dict[str, tuple[threading.Lock, int]] = {}
        self._guard = threading.Lock()

    def _checkout(self, agreement_id: str) -> threading.Lock:
        with self._guard:
            lock, users = self._locks.get(agreement_id, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[agreement_id] = (lock, users + 1)
            return lock

    def _checkin(self, agreement_id: str) -> None:
        with self._guard:
            lock, users = self._locks[agreement_id]
            if users <= 1:
                del self._locks[agreement_id]
            else:
                self._locks[agreement_id] = (lock, users - 1)

    @contextmanager
    def hold(self, agreement_id: str) -> Iterator[None]:
        """Hold the exclusive section for one agreement.

        Raises:
            TimeoutError: If the lock was not acquired within the timeout.
        """
        lock = self._checkout(agreement_id)
        acquired = lock.acquire(timeout=-1 if self._timeout is None else self._timeout)
        if not acquired:
            self._checkin(agreement_id)
            logger.warning(
                "workflow_lock_timeout",
                agreement_id=agreement_id,
                timeout_seconds=self._timeout,
            )
            raise TimeoutError(f"Timed out waiting for workflow lock on {agreement_id}")
        try:
            yield
        finally:
            lock.release()
            self._checkin(agreement_id)

    def is_held(self, agreement_id: str) -> bool:
        """Check whether the section for an agreement is currently held."""
        with self._guard:
            entry = self._locks.get(agreement_id)
        return entry is not None and entry[0].locked()

    @property
    def tracked(self) -> int:
        """Number of agreements with a lock currently in memory."""
        with self._guard:
            return len(self._locks)
