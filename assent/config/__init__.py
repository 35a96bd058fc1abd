"""Configuration module for Assent.

Available Configurations:
- SigningConfig: codes, challenges, integrity secret, chain defaults
"""

from assent.config.signing_config import TEST_SIGNING_CONFIG, SigningConfig

__all__ = [
    "SigningConfig",
    "TEST_SIGNING_CONFIG",
]
