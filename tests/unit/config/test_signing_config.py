"""Unit tests for SigningConfig.

Tests for signing configuration including:
- Default value validation
- Environment variable loading
- Input validation
"""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from assent.config.signing_config import TEST_SIGNING_CONFIG, SigningConfig

SECRET = "0123456789abcdef0123"


class TestSigningConfig:
    """Tests for SigningConfig dataclass."""

    class TestDefaults:
        """Tests for default configuration values."""

        def test_default_code_settings(self) -> None:
            """Codes last 10 minutes and allow 5 checks."""
            config = SigningConfig(signing_secret=SECRET)
            assert config.code_ttl_minutes == 10
            assert config.code_max_attempts == 5

        def test_default_chain_is_base(self) -> None:
            assert SigningConfig(signing_secret=SECRET).default_chain_id == 8453

        def test_secret_not_in_repr(self) -> None:
            assert SECRET not in repr(SigningConfig(signing_secret=SECRET))

    class TestValidation:
        """Tests for configuration validation."""

        def test_short_secret_rejected(self) -> None:
            with pytest.raises(ValueError, match="signing_secret must be at least"):
                SigningConfig(signing_secret="short")

        @pytest.mark.parametrize(
            ("field", "message"),
            [
                ("code_ttl_minutes", "code_ttl_minutes must be positive"),
                ("code_max_attempts", "code_max_attempts must be positive"),
                ("challenge_ttl_minutes", "challenge_ttl_minutes must be positive"),
                ("default_chain_id", "default_chain_id must be positive"),
            ],
        )
        def test_non_positive_values_rejected(self, field: str, message: str) -> None:
            with pytest.raises(ValueError, match=message):
                SigningConfig(signing_secret=SECRET, **{field: 0})

        def test_empty_domain_rejected(self) -> None:
            with pytest.raises(ValueError, match="siwe_domain"):
                SigningConfig(signing_secret=SECRET, siwe_domain="")

    class TestFromEnvironment:
        """Tests for environment variable loading."""

        @patch.dict(
            os.environ,
            {
                "SIGNING_SECRET": SECRET,
                "ASSENT_CODE_TTL_MINUTES": "15",
                "ASSENT_CODE_MAX_ATTEMPTS": "3",
                "ASSENT_SIWE_DOMAIN": "sign.example.com",
                "ASSENT_PLATFORM_NAME": "Example Sign",
                "ASSENT_DEFAULT_CHAIN_ID": "84532",
            },
            clear=True,
        )
        def test_reads_overrides(self) -> None:
            config = SigningConfig.from_environment()
            assert config.signing_secret == SECRET
            assert config.code_ttl_minutes == 15
            assert config.code_max_attempts == 3
            assert config.siwe_domain == "sign.example.com"
            assert config.platform_name == "Example Sign"
            assert config.default_chain_id == 84532

        @patch.dict(
            os.environ,
            {"SIGNING_SECRET": SECRET, "ASSENT_CODE_TTL_MINUTES": "ten", "ASSENT_SIWE_URI": "  "},
            clear=True,
        )
        def test_invalid_values_fall_back_to_defaults(self) -> None:
            config = SigningConfig.from_environment()
            assert config.code_ttl_minutes == 10
            assert config.siwe_uri == "https://localhost"

        @patch.dict(os.environ, {}, clear=True)
        def test_missing_secret_uses_ephemeral_one(self) -> None:
            first = SigningConfig.from_environment()
            second = SigningConfig.from_environment()
            assert len(first.signing_secret) == 64
            assert first.signing_secret != second.signing_secret


class TestPredefinedConfigs:
    """Tests for predefined configurations."""

    def test_test_config_uses_test_domain(self) -> None:
        assert TEST_SIGNING_CONFIG.siwe_domain == "test.assent.local"
        assert TEST_SIGNING_CONFIG.signing_secret
