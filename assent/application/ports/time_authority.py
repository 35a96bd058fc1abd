"""Clock port for signing workflows.

Every timestamp that ends up in a signature record, an audit entry, a
verification code or a wallet challenge is read from one injected
TimeAuthorityProtocol. Services never call datetime.now() themselves.

Returned values must be timezone-aware UTC: record hashes and challenge
texts embed them as ISO-8601 strings, and a naive or offset value would
hash differently for the same instant.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta


class TimeAuthorityProtocol(ABC):
    """Source of the current instant for signing services.

    Implementations:
        SystemTimeAuthority (assent.infrastructure.time) for hosts.
        FakeTimeAuthority (tests.helpers) to freeze and step the clock.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Return the current instant as an aware UTC datetime."""
        ...

    def expiry(self, ttl: timedelta) -> tuple[datetime, datetime]:
        """Return (issued_at, expires_at) for something valid for ttl.

        Both values come from a single clock read.
        """
        issued_at = self.now()
        return issued_at, issued_at + ttl
