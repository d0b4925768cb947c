"""
Injectable time source.

Ledger timestamps and HTTP call-context dates come from a ``Clock`` handed
to each service, so tests can pin them.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Current time, always UTC-aware."""


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """Frozen clock for tests; moves only when ``tick()`` is called."""

    def __init__(self, start: datetime | None = None):
        start = start or datetime(2024, 1, 1, 12, 0, 0)
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        self._now = start.astimezone(timezone.utc)

    def now(self) -> datetime:
        return self._now

    def tick(self, seconds: int = 1) -> datetime:
        self._now += timedelta(seconds=seconds)
        return self._now
