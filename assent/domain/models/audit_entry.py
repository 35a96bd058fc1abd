"""Audit entry domain models.

- SigningAuditAction: closed enumeration of signing lifecycle events
- AuditEntry: one immutable, self-hashed and chained entry
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from assent.domain.hashing import compute_entry_hash, parse_iso, to_iso


class SigningAuditAction(str, Enum):
    """Every event the audit trail can record.

    Values are the strings written to exported trails; they must never
    change once released.
    """

    AGREEMENT_OPENED = "agreement_opened"
    AGREEMENT_VIEWED = "agreement_viewed"
    OTP_REQUESTED = "otp_requested"
    OTP_VERIFIED = "otp_verified"
    OTP_FAILED = "otp_failed"
    SIGNATURE_DRAWN = "signature_drawn"
    SIGNATURE_TYPED = "signature_typed"
    SIGNATURE_UPLOADED = "signature_uploaded"
    SIGNATURE_WALLET = "signature_wallet"
    SIGNATURE_CLICK = "signature_click"
    CONSENT_GRANTED = "consent_granted"
    AGREEMENT_SIGNED = "agreement_signed"
    AGREEMENT_DECLINED = "agreement_declined"
    REMINDER_SENT = "reminder_sent"
    WORKFLOW_ADVANCED = "workflow_advanced"
    ALL_PARTIES_SIGNED = "all_parties_signed"
    SIGNING_EXPIRED = "signing_expired"
    WORKFLOW_COMPLETED = "workflow_completed"


@dataclass(frozen=True)
class AuditEntry:
    """An append-only audit trail entry.

    entry_hash is SHA-256 over (entry_id, action, timestamp, details,
    prev_hash), so both edits to this entry and changes to its position
    in the trail are detectable.

    Attributes:
        entry_id: Unique identifier (UUIDv7 string, time-ordered).
        action: What happened.
        details: Event-specific fields (JSON-serializable).
        timestamp: When it happened (UTC).
        prev_hash: entry_hash of the preceding entry, GENESIS_HASH if first.
        entry_hash: Self-hash over the fields above.
    """

    entry_id: str
    action: SigningAuditAction
    details: dict[str, Any] = field(hash=False)
    timestamp: datetime
    prev_hash: str
    entry_hash: str

    def __post_init__(self) -> None:
        if not isinstance(self.action, SigningAuditAction):
            raise ValueError(f"unknown audit action: {self.action!r}")
        if self.timestamp.tzinfo is None:
            raise ValueError("timestamp must be timezone-aware (UTC)")

    def recompute_hash(self) -> str:
        """Recompute entry_hash from the visible fields."""
        return compute_entry_hash(
            entry_id=self.entry_id,
            action=self.action.value,
            timestamp=self.timestamp,
            details=self.details,
            prev_hash=self.prev_hash,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for compliance export."""
        return {
            "id": self.entry_id,
            "action": self.action.value,
            "details": dict(self.details),
            "timestamp": to_iso(self.timestamp),
            "prev_hash": self.prev_hash,
            "entry_hash": self.entry_hash,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuditEntry:
        """Deserialize an exported entry.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If the action is not a known SigningAuditAction.
        """
        return cls(
            entry_id=data["id"],
            action=SigningAuditAction(data["action"]),
            details=dict(data.get("details") or {}),
            timestamp=parse_iso(data["timestamp"]),
            prev_hash=data["prev_hash"],
            entry_hash=data["entry_hash"],
        )
