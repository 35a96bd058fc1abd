"""Concurrency helpers for hosts of the signing engine.

- WorkflowLockRegistry: per-agreement exclusive sections
- InMemoryNonceRegistry: single-use tracking for sign-in nonces
"""

from assent.infrastructure.locking.nonce_registry import InMemoryNonceRegistry
from assent.infrastructure.locking.workflow_locks import WorkflowLockRegistry

__all__: list[str] = ["InMemoryNonceRegistry", "WorkflowLockRegistry"]
