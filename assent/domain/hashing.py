"""Hash utilities for signature records and the audit trail.

This module provides the deterministic serialization and hashing used
everywhere integrity is claimed:

- canonical_json: one byte-exact representation per value
- hash_document: SHA-256 of agreement content
- compute_entry_hash: self-hash of an audit entry (hash-chained)
- compute_hmac / verify_hmac: keyed integrity hashes for records

External verifiers must be able to recompute every hash from visible
fields alone, so nothing here depends on process state.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import math
import unicodedata
from datetime import datetime, timezone
from typing import Any

# prev_hash of the first entry in any audit trail
GENESIS_HASH: str = "0" * 64

HASH_ALG_NAME: str = "SHA-256"
HMAC_ALG_NAME: str = "HMAC-SHA-256"


def _sanitize_for_json(data: Any) -> Any:
    """Recursively sanitize data for deterministic JSON serialization.

    This function:
    - Normalizes Unicode strings using NFKC form
    - Rejects NaN, Infinity, and -Infinity float values
    - Renders datetimes with to_iso()
    - Converts tuples to lists

    Args:
        data: Any JSON-serializable data.

    Returns:
        Sanitized data safe for deterministic JSON serialization.

    Raises:
        ValueError: If data contains NaN, Infinity, or -Infinity values.
    """
    if isinstance(data, str):
        return unicodedata.normalize("NFKC", data)
    elif isinstance(data, datetime):
        return to_iso(data)
    elif isinstance(data, float):
        if math.isnan(data) or math.isinf(data):
            raise ValueError(
                f"Cannot serialize non-finite float value: {data!r}. "
                "NaN and Infinity are not valid JSON."
            )
        return data
    elif isinstance(data, dict):
        return {_sanitize_for_json(k): _sanitize_for_json(v) for k, v in data.items()}
    elif isinstance(data, (list, tuple)):
        return [_sanitize_for_json(item) for item in data]
    else:
        return data


def canonical_json(data: Any) -> str:
    """Produce deterministic JSON representation for hashing.

    Keys are sorted recursively, separators carry no whitespace, non-ASCII
    characters are kept as-is and strings are NFKC normalized.

    Args:
        data: Any JSON-serializable data (dict, list, str, number, bool, None)

    Returns:
        Canonical JSON string suitable for hashing.

    Raises:
        ValueError: If data contains NaN, Infinity, or -Infinity values.

    Example:
        >>> canonical_json({"b": 1, "a": 2})
        '{"a":2,"b":1}'
    """
    sanitized = _sanitize_for_json(data)

    return json.dumps(
        sanitized,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def to_iso(value: datetime) -> str:
    """Render a timezone-aware datetime as a UTC ISO 8601 string.

    Millisecond precision with a trailing ``Z``, so every timestamp that
    ends up inside a hash or a signed message has one representation.

    Raises:
        ValueError: If value is timezone-naive.

    Example:
        >>> to_iso(datetime(2026, 1, 15, 10, 0, tzinfo=timezone.utc))
        '2026-01-15T10:00:00.000Z'
    """
    if value.tzinfo is None:
        raise ValueError("timestamps must be timezone-aware (UTC)")
    utc_value = value.astimezone(timezone.utc)
    return utc_value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(value: str) -> datetime:
    """Parse a timestamp produced by to_iso() (or any ISO 8601 string).

    Naive inputs are taken to be UTC.
    """
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def hash_document(content: str) -> str:
    """Compute the SHA-256 hex digest of agreement content.

    Args:
        content: Document text.

    Returns:
        Lowercase hexadecimal SHA-256 hash (64 characters).
    """
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def compute_entry_hash(
    entry_id: str,
    action: str,
    timestamp: datetime | str,
    details: dict[str, Any],
    prev_hash: str,
) -> str:
    """Compute the SHA-256 self-hash of an audit entry.

    The hash covers every visible field of the entry except the hash
    itself. prev_hash binds the entry to its position in the trail, so
    removing or reordering entries breaks every later hash.

    Args:
        entry_id: Entry identifier.
        action: Audit action value (e.g. "agreement_signed").
        timestamp: Entry timestamp (datetime or its to_iso() string).
        details: Event-specific detail fields.
        prev_hash: entry_hash of the preceding entry, GENESIS_HASH for the first.

    Returns:
        Lowercase hexadecimal SHA-256 hash (64 characters).
    """
    timestamp_str = to_iso(timestamp) if isinstance(timestamp, datetime) else timestamp
    hashable: dict[str, Any] = {
        "id": entry_id,
        "action": action,
        "timestamp": timestamp_str,
        "details": details,
        "prev_hash": prev_hash,
    }
    canonical = canonical_json(hashable)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def compute_hmac(secret: str | bytes, data: Any) -> str:
    """Compute a keyed HMAC-SHA-256 over the canonical JSON of data.

    Args:
        secret: Server-held signing secret.
        data: JSON-serializable payload.

    Returns:
        Lowercase hexadecimal HMAC digest (64 characters).
    """
    key = secret.encode("utf-8") if isinstance(secret, str) else secret
    message = canonical_json(data).encode("utf-8")
    return hmac.new(key, message, hashlib.sha256).hexdigest()


def verify_hmac(secret: str | bytes, data: Any, expected: str) -> bool:
    """Check an HMAC produced by compute_hmac() in constant time."""
    return hmac.compare_digest(compute_hmac(secret, data), expected)


def is_valid_sha256_hex(value: str) -> bool:
    """Check if a string is a 64-character lowercase hexadecimal hash."""
    if len(value) != 64:
        return False
    try:
        int(value, 16)
        return value == value.lower()
    except ValueError:
        return False
