"""Injectable wall clock.

Every time-dependent service takes a ``clock`` argument so expiry and
timestamp rules can be exercised deterministically.
"""

from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        """Return the current time as an aware UTC datetime."""
        ...


class SystemClock:
    """Clock backed by the system time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


system_clock = SystemClock()
