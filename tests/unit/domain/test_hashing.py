"""Unit tests for hashing primitives.

Tests for canonical JSON serialization, timestamp rendering, audit entry
hashes and keyed integrity hashes.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from assent.domain.hashing import (
    GENESIS_HASH,
    canonical_json,
    compute_entry_hash,
    compute_hmac,
    hash_document,
    is_valid_sha256_hex,
    parse_iso,
    to_iso,
    verify_hmac,
)

TS = datetime(2026, 1, 15, 10, 0, 0, 123456, tzinfo=timezone.utc)


class TestCanonicalJson:
    """Tests for canonical_json()."""

    def test_sorts_keys_recursively(self) -> None:
        """Nested objects should have sorted keys."""
        data = {"outer": {"zebra": 1, "apple": 2}, "inner": {"beta": 3, "alpha": 4}}
        assert canonical_json(data) == '{"inner":{"alpha":4,"beta":3},"outer":{"apple":2,"zebra":1}}'

    def test_no_whitespace(self) -> None:
        """Output should have no whitespace between elements."""
        result = canonical_json({"key": "value", "number": 42})
        assert " " not in result

    def test_arrays_keep_order(self) -> None:
        assert canonical_json({"items": [3, 1, 2]}) == '{"items":[3,1,2]}'

    def test_tuples_render_as_arrays(self) -> None:
        assert canonical_json({"items": (1, 2)}) == '{"items":[1,2]}'

    def test_datetimes_render_as_iso(self) -> None:
        assert canonical_json({"at": TS}) == '{"at":"2026-01-15T10:00:00.123Z"}'

    def test_unicode_kept_and_normalized(self) -> None:
        """NFKC normalization maps compatibility forms to one representation."""
        assert canonical_json({"name": "ﬁle"}) == '{"name":"file"}'
        assert canonical_json({"name": "Zoë"}) == '{"name":"Zoë"}'

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_rejects_non_finite_floats(self, value: float) -> None:
        with pytest.raises(ValueError, match="non-finite"):
            canonical_json({"value": value})


class TestTimestamps:
    """Tests for to_iso() and parse_iso()."""

    def test_to_iso_renders_milliseconds_with_z(self) -> None:
        assert to_iso(TS) == "2026-01-15T10:00:00.123Z"

    def test_to_iso_converts_to_utc(self) -> None:
        plus_two = timezone(timedelta(hours=2))
        assert to_iso(datetime(2026, 1, 15, 12, 0, tzinfo=plus_two)) == "2026-01-15T10:00:00.000Z"

    def test_to_iso_rejects_naive(self) -> None:
        with pytest.raises(ValueError, match="timezone-aware"):
            to_iso(datetime(2026, 1, 15, 10, 0))

    def test_parse_iso_reads_z_suffix(self) -> None:
        parsed = parse_iso("2026-01-15T10:00:00.123Z")
        assert parsed == datetime(2026, 1, 15, 10, 0, 0, 123000, tzinfo=timezone.utc)

    def test_parse_iso_assumes_utc_for_naive(self) -> None:
        assert parse_iso("2026-01-15T10:00:00").tzinfo is not None


class TestDocumentHash:
    """Tests for hash_document()."""

    def test_known_vector(self) -> None:
        assert hash_document("abc") == (
            "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
        )

    def test_is_valid_sha256_hex(self) -> None:
        assert is_valid_sha256_hex(hash_document("anything"))
        assert not is_valid_sha256_hex("abc")
        assert not is_valid_sha256_hex("G" * 64)
        assert not is_valid_sha256_hex(hash_document("x").upper())


class TestEntryHash:
    """Tests for compute_entry_hash()."""

    def _hash(self, **overrides: object) -> str:
        fields: dict[str, object] = {
            "entry_id": "entry-1",
            "action": "agreement_viewed",
            "timestamp": TS,
            "details": {"email": "ana@example.com"},
            "prev_hash": GENESIS_HASH,
        }
        fields.update(overrides)
        return compute_entry_hash(**fields)  # type: ignore[arg-type]

    def test_deterministic(self) -> None:
        assert self._hash() == self._hash()
        assert is_valid_sha256_hex(self._hash())

    def test_datetime_and_iso_string_agree(self) -> None:
        assert self._hash() == self._hash(timestamp="2026-01-15T10:00:00.123Z")

    @pytest.mark.parametrize(
        "overrides",
        [
            {"entry_id": "entry-2"},
            {"action": "agreement_signed"},
            {"timestamp": TS + timedelta(milliseconds=1)},
            {"details": {"email": "bo@example.com"}},
            {"prev_hash": "f" * 64},
        ],
    )
    def test_every_field_is_covered(self, overrides: dict[str, object]) -> None:
        """Changing any hashed field changes the hash."""
        assert self._hash(**overrides) != self._hash()

    def test_genesis_hash_is_64_zeros(self) -> None:
        assert GENESIS_HASH == "0" * 64


class TestHmac:
    """Tests for compute_hmac() and verify_hmac()."""

    def test_same_payload_and_secret_match(self) -> None:
        payload = {"a": 1, "b": "two"}
        digest = compute_hmac("secret-key-0123456789", payload)
        assert verify_hmac("secret-key-0123456789", {"b": "two", "a": 1}, digest)

    def test_different_secret_does_not_match(self) -> None:
        digest = compute_hmac("secret-key-0123456789", {"a": 1})
        assert not verify_hmac("another-secret-0123456789", {"a": 1}, digest)

    def test_bytes_and_str_secret_agree(self) -> None:
        assert compute_hmac("k" * 20, {"a": 1}) == compute_hmac(b"k" * 20, {"a": 1})
