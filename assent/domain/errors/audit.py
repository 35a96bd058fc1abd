"""Audit trail integrity errors."""

from __future__ import annotations

from assent.domain.exceptions import AssentError


class AuditTrailTamperedError(AssentError):
    """Raised when an audit trail fails hash verification.

    Attributes:
        position: Zero-based position of the first broken entry.
        entry_id: Identifier of that entry.
        reason: Which check failed ("entry_hash" or "prev_hash").
    """

    def __init__(self, position: int, entry_id: str, reason: str) -> None:
        self.position = position
        self.entry_id = entry_id
        self.reason = reason
        super().__init__(
            f"Audit trail tampered at entry {position} ({entry_id}): {reason} mismatch."
        )
