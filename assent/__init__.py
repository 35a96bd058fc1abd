"""
Assent - Signing Workflow & Proof-of-Assent Engine

Coordinates legally-binding multi-party approval of a document:
who may sign and when, how each party proves assent, and a
tamper-evident record of every action taken.

Core guarantees:
- Turn order is enforced by an explicit state machine
- Every signature record carries a keyed integrity hash
- Every lifecycle event is appended to a hash-chained audit trail
- Wallet signatures are recovered and matched, never trusted
- Private keys are never held by the engine
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
