"""AuditTrail service: append-only, hash-chained signing audit log.

Every entry carries a SHA-256 self-hash over (id, action, timestamp,
details, prev_hash), and prev_hash is the previous entry's hash
(GENESIS_HASH for the first). Editing an entry breaks its own hash;
removing, inserting or reordering entries breaks the chain. Anyone can
re-run verify() from an export without secrets.

Usage:
    trail = AuditTrail(time_authority=SystemTimeAuthority())
    trail.append(SigningAuditAction.AGREEMENT_VIEWED, {"email": "ana@example.com"})
    trail.verify()
    exported = trail.export()

    restored = AuditTrail.from_export(exported, time_authority=SystemTimeAuthority())
"""

from __future__ import annotations

import json
import threading
from collections.abc import Iterable
from typing import Any

from structlog import get_logger
from uuid6 import uuid7

from assent.application.ports.time_authority import TimeAuthorityProtocol
from assent.domain.errors.audit import AuditTrailTamperedError
from assent.domain.errors.validation import InputInvalidError
from assent.domain.hashing import GENESIS_HASH, canonical_json, compute_entry_hash
from assent.domain.models.audit_entry import AuditEntry, SigningAuditAction

logger = get_logger()


class AuditTrail:
    """Ordered, append-only list of audit entries for one agreement.

    Entries can only be added through append(); there is no update or
    delete. The entries property returns an immutable snapshot.
    """

    def __init__(
        self,
        time_authority: TimeAuthorityProtocol,
        entries: Iterable[AuditEntry] = (),
    ) -> None:
        """Initialize the trail.

        Args:
            time_authority: Clock for entry timestamps.
            entries: Previously stored entries, oldest first. They are
                taken as-is; call verify() to check them.
        """
        self._time = time_authority
        self._entries: list[AuditEntry] = list(entries)
        self._lock = threading.Lock()

    @classmethod
    def from_export(
        cls,
        exported: Iterable[dict[str, Any]],
        time_authority: TimeAuthorityProtocol,
        verify: bool = True,
    ) -> AuditTrail:
        """Restore a trail from the output of export().

        Raises:
            AuditTrailTamperedError: If verify is set and the chain is broken.
            KeyError: If an exported entry misses a field.
            ValueError: If an exported action is unknown.
        """
        trail = cls(time_authority, (AuditEntry.from_dict(item) for item in exported))
        if verify:
            trail.verify()
        return trail

    @property
    def entries(self) -> tuple[AuditEntry, ...]:
        """Snapshot of all entries, oldest first."""
        with self._lock:
            return tuple(self._entries)

    @property
    def head_hash(self) -> str:
        """Hash the next entry will chain to."""
        with self._lock:
            return self._entries[-1].entry_hash if self._entries else GENESIS_HASH

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def append(
        self,
        action: SigningAuditAction | str,
        details: dict[str, Any] | None = None,
    ) -> AuditEntry:
        """Record an action.

        Args:
            action: A SigningAuditAction, or its string value.
            details: JSON-serializable event fields.

        Returns:
            The appended entry.

        Raises:
            InputInvalidError: If the action is not a known audit action,
                or details cannot be serialized.
        """
        try:
            audit_action = SigningAuditAction(action)
        except ValueError as exc:
            raise InputInvalidError(
                f"Unknown audit action: {action!r}.", field="action"
            ) from exc

        try:
            # Stored exactly as hashed, so exports verify after a JSON round trip
            entry_details = json.loads(canonical_json(details or {}))
        except (TypeError, ValueError) as exc:
            raise InputInvalidError(
                f"Audit details are not serializable: {exc}", field="details"
            ) from exc

        now = self._time.now()
        # Stored and hashed at millisecond precision so exports round-trip
        timestamp = now.replace(microsecond=(now.microsecond // 1000) * 1000)
        entry_id = str(uuid7())

        with self._lock:
            prev_hash = self._entries[-1].entry_hash if self._entries else GENESIS_HASH
            entry = AuditEntry(
                entry_id=entry_id,
                action=audit_action,
                details=entry_details,
                timestamp=timestamp,
                prev_hash=prev_hash,
                entry_hash=compute_entry_hash(
                    entry_id=entry_id,
                    action=audit_action.value,
                    timestamp=timestamp,
                    details=entry_details,
                    prev_hash=prev_hash,
                ),
            )
            self._entries.append(entry)
            position = len(self._entries) - 1

        logger.debug(
            "audit_entry_appended",
            entry_id=entry_id,
            action=audit_action.value,
            position=position,
        )
        return entry

    def verify(self) -> bool:
        """Check every self-hash and chain link.

        Returns:
            True when the whole trail is intact.

        Raises:
            AuditTrailTamperedError: At the first broken entry.
        """
        expected_prev = GENESIS_HASH
        for position, entry in enumerate(self.entries):
            if entry.prev_hash != expected_prev:
                logger.error(
                    "audit_trail_chain_broken",
                    position=position,
                    entry_id=entry.entry_id,
                )
                raise AuditTrailTamperedError(position, entry.entry_id, "prev_hash")
            if entry.recompute_hash() != entry.entry_hash:
                logger.error(
                    "audit_trail_entry_altered",
                    position=position,
                    entry_id=entry.entry_id,
                )
                raise AuditTrailTamperedError(position, entry.entry_id, "entry_hash")
            expected_prev = entry.entry_hash
        return True

    def export(self) -> list[dict[str, Any]]:
        """Export all entries as plain dictionaries, oldest first."""
        return [entry.to_dict() for entry in self.entries]

    def filter(self, action: SigningAuditAction) -> tuple[AuditEntry, ...]:
        """Entries recorded for one action, oldest first."""
        return tuple(entry for entry in self.entries if entry.action is action)
