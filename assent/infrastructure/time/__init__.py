"""Clock adapters."""

from assent.infrastructure.time.system_time_authority import SystemTimeAuthority

__all__: list[str] = ["SystemTimeAuthority"]
