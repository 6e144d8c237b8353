"""Tests for the monthly allowance rules (points_kernel/domain/allowance.py)."""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from points_kernel.domain.allowance import (
    DEFAULT_MONTHLY_ALLOWANCE_BASE,
    evaluate_allowance,
    month_token,
)


class TestMonthToken:
    def test_formats_year_and_month(self):
        assert month_token(datetime(2026, 3, 15, tzinfo=timezone.utc)) == "2026-03"

    def test_naive_datetime_is_utc(self):
        assert month_token(datetime(2026, 12, 31, 23, 59)) == "2026-12"

    def test_service_timezone_decides_the_month(self):
        # 2026-03-31 20:00 UTC is already April 1st in Ulaanbaatar (UTC+8)
        moment = datetime(2026, 3, 31, 20, 0, tzinfo=timezone.utc)
        assert month_token(moment) == "2026-03"
        assert month_token(moment, ZoneInfo("Asia/Ulaanbaatar")) == "2026-04"

    def test_negative_offset_keeps_previous_month(self):
        moment = datetime(2026, 4, 1, 2, 0, tzinfo=timezone.utc)
        assert month_token(moment, timezone(timedelta(hours=-5))) == "2026-03"


class TestEvaluateAllowance:
    def test_same_month_keeps_leftover(self):
        decision = evaluate_allowance(120, "2026-03", "2026-03", 1000)
        assert decision.allowance == 120
        assert decision.month == "2026-03"
        assert not decision.was_reset

    def test_new_month_resets_to_base(self):
        decision = evaluate_allowance(40, "2026-02", "2026-03", 1000)
        assert decision.allowance == 1000
        assert decision.month == "2026-03"
        assert decision.was_reset

    def test_reset_replaces_rather_than_adds(self):
        decision = evaluate_allowance(900, "2026-02", "2026-03", 1000)
        assert decision.allowance == 1000

    def test_missing_month_is_stale(self):
        decision = evaluate_allowance(0, None, "2026-03", 500)
        assert decision.was_reset
        assert decision.allowance == 500

    def test_reset_uses_base_in_force(self):
        decision = evaluate_allowance(1000, "2026-02", "2026-03", 250)
        assert decision.allowance == 250

    def test_default_base(self):
        assert DEFAULT_MONTHLY_ALLOWANCE_BASE == 1000
