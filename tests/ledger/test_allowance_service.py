"""Tests for check_and_reset_allowance -- the eager, idempotent reset path."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from points_services.ledger import PointsLedger


class TestCheckAndResetAllowance:
    def test_creates_missing_account(self, ledger, user_id):
        user = user_id("u")

        state = ledger.check_and_reset_allowance(user)

        assert state.created
        assert not state.was_reset
        assert state.monthly_allowance == 1000
        assert state.month == "2026-03"
        acct = ledger.get_account(user)
        assert acct.balance == 0
        assert acct.monthly_allowance == 1000

    def test_second_call_is_noop(self, ledger, user_id):
        user = user_id("u")
        ledger.check_and_reset_allowance(user)

        state = ledger.check_and_reset_allowance(user)

        assert not state.created
        assert not state.was_reset
        assert state.monthly_allowance == 1000

    def test_keeps_spent_allowance_within_month(self, ledger, user_id):
        user, r = user_id("u"), user_id("r")
        ledger.send_recognition(user, [r], 300, "v", "m")

        state = ledger.check_and_reset_allowance(user)

        assert state.monthly_allowance == 700
        assert not state.was_reset

    def test_resets_in_new_month(self, ledger, clock, user_id):
        user, r = user_id("u"), user_id("r")
        ledger.send_recognition(user, [r], 300, "v", "m")
        clock.set_time(datetime(2026, 4, 1, 8, 0, tzinfo=timezone.utc))

        first = ledger.check_and_reset_allowance(user)
        second = ledger.check_and_reset_allowance(user)

        assert first.was_reset
        assert first.monthly_allowance == 1000
        assert first.month == "2026-04"
        assert not second.was_reset
        assert second.monthly_allowance == 1000

    def test_service_timezone(self, session_factory, clock, config_provider, retry_policy, user_id):
        ledger = PointsLedger(
            session_factory,
            clock=clock,
            config_provider=config_provider,
            retry_policy=retry_policy,
            tz=ZoneInfo("Asia/Ulaanbaatar"),
        )
        clock.set_time(datetime(2026, 3, 31, 20, 0, tzinfo=timezone.utc))

        state = ledger.check_and_reset_allowance(user_id("u"))

        assert state.month == "2026-04"
