"""
Clock

Injectable time source for retry backoff and transaction polling.

- RealClock: wall time, real sleeps
- VirtualClock: time only moves when the code under test sleeps

Everything that waits goes through Clock.sleep, so tests can drive
timeouts and backoff schedules without waiting.
"""

from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol


class Clock(Protocol):
    """
    Protocol for time source.

    Can be real time or virtual for deterministic testing.
    """

    def now(self) -> datetime:
        """Get current UTC time."""
        ...

    def monotonic(self) -> float:
        """Seconds from an arbitrary origin; never goes backwards."""
        ...

    def sleep(self, seconds: float) -> None:
        """Suspend for the given number of seconds."""
        ...


class RealClock:
    """Real-time clock implementation."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)


class VirtualClock:
    """
    Virtual clock for deterministic testing.

    Sleeping advances the clock instantly and records the requested
    duration in ``sleeps``.
    """

    def __init__(self, start: Optional[datetime] = None) -> None:
        self._start = start or datetime(2026, 1, 1, 0, 0, 0, tzinfo=timezone.utc)
        self._elapsed = 0.0
        self.sleeps: list[float] = []

    def now(self) -> datetime:
        return self._start + timedelta(seconds=self._elapsed)

    def monotonic(self) -> float:
        return self._elapsed

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        if seconds > 0:
            self._elapsed += seconds

    def advance(self, seconds: float) -> None:
        """Move time forward without recording a sleep."""
        self._elapsed += seconds


__all__ = [
    "Clock",
    "RealClock",
    "VirtualClock",
]
