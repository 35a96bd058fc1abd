"""Signing engine configuration.

This module defines configuration for one-time codes, sign-in challenges,
integrity hashing and transaction defaults, with environment variable
overrides for production tuning.

Environment Variables:
- ASSENT_CODE_TTL_MINUTES: One-time code lifetime (default: 10)
- ASSENT_CODE_MAX_ATTEMPTS: Checks allowed per code (default: 5)
- ASSENT_CHALLENGE_TTL_MINUTES: Sign-in challenge lifetime (default: 10)
- ASSENT_SIWE_DOMAIN: Domain shown in sign-in challenges (default: localhost)
- ASSENT_SIWE_URI: URI shown in sign-in challenges (default: https://localhost)
- ASSENT_SIWE_STATEMENT: Statement line of sign-in challenges
- ASSENT_PLATFORM_NAME: Platform line of agreement signing messages
- ASSENT_DEFAULT_CHAIN_ID: Chain for challenges and transactions (default: 8453)
- SIGNING_SECRET: Key for record integrity hashes (required in production)
"""

from __future__ import annotations

import os
import secrets
from dataclasses import dataclass, field

from structlog import get_logger

logger = get_logger()

SIGNING_SECRET_ENV = "SIGNING_SECRET"
MIN_SECRET_LENGTH = 16


def _get_int_env(key: str, default: int) -> int:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed integer value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_str_env(key: str, default: str) -> str:
    """Get non-empty string environment variable with default."""
    value = os.environ.get(key)
    if value is None or not value.strip():
        return default
    return value.strip()


@dataclass(frozen=True)
class SigningConfig:
    """Configuration for the signing engine.

    All values can be overridden via environment variables.

    Attributes:
        signing_secret: Key for HMAC integrity hashes. Never logged.
        code_ttl_minutes: How long a one-time code stays valid.
        code_max_attempts: How many checks a code allows.
        challenge_ttl_minutes: How long a sign-in challenge stays valid.
        siwe_domain: Domain rendered into sign-in challenges.
        siwe_uri: URI rendered into sign-in challenges.
        siwe_statement: Statement line of sign-in challenges.
        platform_name: Platform line of agreement signing messages.
        default_chain_id: Chain used when a caller gives none.
    """

    signing_secret: str = field(repr=False)
    code_ttl_minutes: int = 10
    code_max_attempts: int = 5
    challenge_ttl_minutes: int = 10
    siwe_domain: str = "localhost"
    siwe_uri: str = "https://localhost"
    siwe_statement: str = "Sign in to Assent"
    platform_name: str = "Assent"
    default_chain_id: int = 8453

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if len(self.signing_secret) < MIN_SECRET_LENGTH:
            raise ValueError(
                f"signing_secret must be at least {MIN_SECRET_LENGTH} characters"
            )
        if self.code_ttl_minutes < 1:
            raise ValueError(
                f"code_ttl_minutes must be positive, got {self.code_ttl_minutes}"
            )
        if self.code_max_attempts < 1:
            raise ValueError(
                f"code_max_attempts must be positive, got {self.code_max_attempts}"
            )
        if self.challenge_ttl_minutes < 1:
            raise ValueError(
                f"challenge_ttl_minutes must be positive, got {self.challenge_ttl_minutes}"
            )
        if self.default_chain_id < 1:
            raise ValueError(
                f"default_chain_id must be positive, got {self.default_chain_id}"
            )
        if not self.siwe_domain:
            raise ValueError("siwe_domain must not be empty")

    @classmethod
    def from_environment(cls) -> SigningConfig:
        """Create config from environment variables with defaults.

        When SIGNING_SECRET is unset a random per-process secret is used
        and a warning is logged: records hashed with it cannot be
        verified after a restart.

        Returns:
            SigningConfig with values from environment or defaults.
        """
        secret = os.environ.get(SIGNING_SECRET_ENV)
        if not secret:
            logger.warning(
                "signing_secret_not_configured",
                env_var=SIGNING_SECRET_ENV,
                consequence="ephemeral secret; integrity hashes will not survive restart",
            )
            secret = secrets.token_hex(32)

        return cls(
            signing_secret=secret,
            code_ttl_minutes=_get_int_env("ASSENT_CODE_TTL_MINUTES", 10),
            code_max_attempts=_get_int_env("ASSENT_CODE_MAX_ATTEMPTS", 5),
            challenge_ttl_minutes=_get_int_env("ASSENT_CHALLENGE_TTL_MINUTES", 10),
            siwe_domain=_get_str_env("ASSENT_SIWE_DOMAIN", "localhost"),
            siwe_uri=_get_str_env("ASSENT_SIWE_URI", "https://localhost"),
            siwe_statement=_get_str_env("ASSENT_SIWE_STATEMENT", "Sign in to Assent"),
            platform_name=_get_str_env("ASSENT_PLATFORM_NAME", "Assent"),
            default_chain_id=_get_int_env("ASSENT_DEFAULT_CHAIN_ID", 8453),
        )


# Testing config with a fixed, non-secret key
TEST_SIGNING_CONFIG = SigningConfig(
    signing_secret="test-signing-secret-not-for-production",
    siwe_domain="test.assent.local",
    siwe_uri="https://test.assent.local",
)
