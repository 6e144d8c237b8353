"""
points_services.bootstrap -- build a ready PointsLedger from settings.

Usage:
    from points_services.bootstrap import create_points_ledger
    ledger = create_points_ledger()    # uses points_config.get_active_settings()
"""

from __future__ import annotations

from zoneinfo import ZoneInfo

from points_config import LedgerSettings, get_active_settings
from points_kernel.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
)
from points_kernel.domain.clock import Clock
from points_kernel.logging_config import configure_logging
from points_kernel.services.config_service import PointsConfigProvider
from points_kernel.services.transaction_runner import RetryPolicy
from points_services.ledger import PointsLedger


def retry_policy_from_settings(settings: LedgerSettings) -> RetryPolicy:
    retry = settings.retry
    return RetryPolicy(
        max_attempts=retry.max_attempts,
        base_delay=retry.base_delay,
        max_delay=retry.max_delay,
        attempt_timeout=retry.attempt_timeout,
        jitter=retry.jitter,
    )


def create_points_ledger(
    settings: LedgerSettings | None = None,
    clock: Clock | None = None,
    create_schema: bool = True,
) -> PointsLedger:
    """Initialize the engine, optionally create tables, and wire the facade."""
    settings = settings or get_active_settings()

    configure_logging(level=settings.log_level)

    db = settings.database
    init_engine_from_url(
        db.url,
        echo=db.echo,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_timeout=db.pool_timeout,
        pool_recycle=db.pool_recycle,
        sqlite_busy_timeout=db.sqlite_busy_timeout,
    )
    if create_schema:
        create_tables()

    return PointsLedger(
        session_factory=get_session_factory(),
        clock=clock,
        config_provider=PointsConfigProvider(settings.default_allowance_base),
        retry_policy=retry_policy_from_settings(settings),
        tz=ZoneInfo(settings.timezone),
    )
