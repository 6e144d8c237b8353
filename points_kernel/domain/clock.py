"""
Clock -- injectable source of "now" for the ledger.

Every timestamp the ledger writes (ledger rows, posts, request settlement)
and every allowance month comparison is taken from a Clock passed in by the
caller.  Services never call ``datetime.now()`` themselves, so a test can
pin the time, cross a month boundary, and replay an operation exactly.

Architecture position:
    Kernel > Domain.  SystemClock is the one place the kernel reads the
    wall clock.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from threading import Lock


def _require_aware(moment: datetime) -> datetime:
    if moment.tzinfo is None or moment.utcoffset() is None:
        raise ValueError(f"Clock times must be timezone-aware, got {moment!r}")
    return moment


class Clock(ABC):
    """Returns timezone-aware datetimes; month tokens depend on it."""

    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock pinned to a fixed instant, moved only by the test.

    Shared safely between the worker threads of a concurrency test: reads
    and moves are serialized by an internal lock.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._lock = Lock()
        self._current = _require_aware(
            fixed_time or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        )

    def now(self) -> datetime:
        with self._lock:
            return self._current

    def set_time(self, time: datetime) -> None:
        """Jump to ``time``, e.g. the first second of the next month."""
        with self._lock:
            self._current = _require_aware(time)

    def advance(self, seconds: int = 1) -> None:
        with self._lock:
            self._current += timedelta(seconds=seconds)
