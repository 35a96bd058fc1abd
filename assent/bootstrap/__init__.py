"""Composition root for wiring dependencies.

Hosts call into this package at startup; application services only
depend on ports and never import infrastructure directly.
"""

from assent.bootstrap.logging import configure_logging
from assent.bootstrap.signing import (
    SigningServices,
    build_signing_services,
    get_signing_services,
    reset_signing_services,
)

__all__: list[str] = [
    "SigningServices",
    "build_signing_services",
    "configure_logging",
    "get_signing_services",
    "reset_signing_services",
]
