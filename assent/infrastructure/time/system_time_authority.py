"""System clock implementation of TimeAuthorityProtocol."""

from __future__ import annotations

from datetime import datetime, timezone

from assent.application.ports.time_authority import TimeAuthorityProtocol


class SystemTimeAuthority(TimeAuthorityProtocol):
    """Time authority backed by the host clock (always UTC)."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)
