"""Tests for create_points_ledger -- wiring the facade from settings."""

from datetime import datetime, timezone

from points_config.loader import parse_settings
from points_kernel.db.engine import reset_engine
from points_kernel.db.immutability import unregister_immutability_listeners
from points_kernel.domain.clock import DeterministicClock
from points_services import create_points_ledger, retry_policy_from_settings


def test_builds_working_ledger(tmp_path):
    settings = parse_settings({
        "database": {"url": f"sqlite:///{tmp_path / 'boot.db'}"},
        "timezone": "Asia/Ulaanbaatar",
        "default_allowance_base": 300,
        "retry": {"max_attempts": 7},
    })
    clock = DeterministicClock(datetime(2026, 3, 31, 20, 0, tzinfo=timezone.utc))

    try:
        ledger = create_points_ledger(settings, clock=clock)
        state = ledger.check_and_reset_allowance("boot-user")
    finally:
        unregister_immutability_listeners()
        reset_engine()

    assert state.monthly_allowance == 300
    # 20:00 UTC on March 31st is April in UTC+8
    assert state.month == "2026-04"


def test_retry_policy_from_settings():
    settings = parse_settings({"database": {"url": "sqlite://"}, "retry": {"max_attempts": 9, "jitter": 0}})
    policy = retry_policy_from_settings(settings)
    assert policy.max_attempts == 9
    assert policy.jitter == 0.0
