"""
Ledger settings schema.

Frozen dataclasses that the loader parses YAML into.  The runtime allowance
base is NOT configured here: it lives in the ``points_config`` table and is
served by ``PointsConfigProvider``.  ``default_allowance_base`` is only the
fallback used before that row exists.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RetrySettings:
    """Bounds for optimistic-concurrency retries."""

    max_attempts: int = 5
    base_delay: float = 0.02
    max_delay: float = 1.0
    attempt_timeout: float = 10.0
    jitter: float = 0.5


@dataclass(frozen=True)
class DatabaseSettings:
    url: str
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800
    sqlite_busy_timeout: float = 15.0


@dataclass(frozen=True)
class LedgerSettings:
    """Complete, validated settings for one ledger deployment."""

    database: DatabaseSettings
    timezone: str = "UTC"
    default_allowance_base: int = 1000
    log_level: str = "INFO"
    retry: RetrySettings = field(default_factory=RetrySettings)
    checksum: str = ""
