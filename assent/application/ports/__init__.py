"""Ports (interfaces) the application services depend on."""

from assent.application.ports.nonce_registry import NonceRegistryProtocol
from assent.application.ports.time_authority import TimeAuthorityProtocol

__all__: list[str] = ["NonceRegistryProtocol", "TimeAuthorityProtocol"]
