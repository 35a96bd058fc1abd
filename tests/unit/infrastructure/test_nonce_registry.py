"""Unit tests for InMemoryNonceRegistry."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

import pytest

from assent.infrastructure.locking import InMemoryNonceRegistry

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


class TestRegister:
    """Tests for InMemoryNonceRegistry.register()."""

    def test_registered_nonce_is_outstanding(self) -> None:
        registry = InMemoryNonceRegistry()
        registry.register("n1", NOW + timedelta(minutes=10))
        assert registry.outstanding == 1

    def test_duplicate_rejected(self) -> None:
        registry = InMemoryNonceRegistry()
        registry.register("n1", NOW + timedelta(minutes=10))
        with pytest.raises(ValueError, match="already registered"):
            registry.register("n1", NOW + timedelta(minutes=10))

    def test_consumed_nonce_cannot_be_reissued(self) -> None:
        registry = InMemoryNonceRegistry()
        registry.register("n1", NOW + timedelta(minutes=10))
        assert registry.consume("n1", NOW)
        with pytest.raises(ValueError):
            registry.register("n1", NOW + timedelta(minutes=10))


class TestConsume:
    """Tests for InMemoryNonceRegistry.consume()."""

    def test_consumed_once(self) -> None:
        registry = InMemoryNonceRegistry()
        registry.register("n1", NOW + timedelta(minutes=10))

        assert registry.consume("n1", NOW) is True
        assert registry.consume("n1", NOW) is False
        assert registry.outstanding == 0

    def test_unknown_nonce_rejected(self) -> None:
        assert InMemoryNonceRegistry().consume("never", NOW) is False

    def test_expired_nonce_purged(self) -> None:
        registry = InMemoryNonceRegistry()
        registry.register("n1", NOW + timedelta(minutes=10))
        assert registry.consume("n1", NOW + timedelta(minutes=11)) is False
        assert registry.outstanding == 0

    def test_concurrent_consumers_win_once(self) -> None:
        registry = InMemoryNonceRegistry()
        registry.register("n1", NOW + timedelta(minutes=10))
        results: list[bool] = []
        barrier = threading.Barrier(8)

        def consume() -> None:
            barrier.wait()
            results.append(registry.consume("n1", NOW))

        threads = [threading.Thread(target=consume) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(True) == 1


class TestRetention:
    """Nonces are forgotten once their challenge has expired."""

    def test_consumed_nonces_released_after_expiry(self) -> None:
        registry = InMemoryNonceRegistry()
        for i in range(1000):
            registry.register(f"n{i}", NOW + timedelta(minutes=10))
            assert registry.consume(f"n{i}", NOW)
        assert registry.tracked == 1000

        later = NOW + timedelta(hours=1)
        registry.register("fresh", later + timedelta(minutes=10))
        assert registry.consume("fresh", later)
        assert registry.tracked == 1

    def test_consumed_nonce_still_rejected_before_expiry(self) -> None:
        registry = InMemoryNonceRegistry()
        registry.register("n1", NOW + timedelta(minutes=10))
        assert registry.consume("n1", NOW)
        assert registry.consume("n1", NOW + timedelta(minutes=9)) is False
        assert registry.tracked == 1
