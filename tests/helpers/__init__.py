"""Test helpers for Assent tests.

This package contains reusable test utilities and fake implementations
for dependency injection in unit tests.

Helpers:
    FakeTimeAuthority: Controllable time authority for deterministic tests
    TEST_PRIVATE_KEY / OTHER_PRIVATE_KEY: Throwaway keys for wallet tests
    AGREEMENT_CONTENT: Text of the shared test agreement

Usage:
    from tests.helpers import FakeTimeAuthority
"""

from tests.helpers.documents import AGREEMENT_CONTENT
from tests.helpers.fake_time_authority import FakeTimeAuthority
from tests.helpers.wallets import (
    OTHER_PRIVATE_KEY,
    TEST_PRIVATE_KEY,
    address_of,
    sign_text,
)

__all__ = [
    "AGREEMENT_CONTENT",
    "FakeTimeAuthority",
    "OTHER_PRIVATE_KEY",
    "TEST_PRIVATE_KEY",
    "address_of",
    "sign_text",
]
