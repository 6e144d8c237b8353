"""
Tests for send_recognition -- peer-to-peer point transfers.

Covers:
- simple transfer: allowance debited, balances credited, three ledger rows
- insufficient allowance: nothing written
- lazy monthly reset before the sufficiency check
- validation errors raised before any transaction
- structured log events
"""

from datetime import datetime, timezone

import pytest

from points_kernel.domain.types import TransactionType, Visibility
from points_kernel.exceptions import (
    DuplicateRecipientError,
    EmptyRecipientsError,
    InsufficientAllowanceError,
    InvalidAmountError,
    InvalidRecipientsError,
    InvalidVisibilityError,
    SelfRecognitionError,
)


class TestSimpleTransfer:
    def test_two_recipients(self, ledger, user_id):
        sender, a, b = user_id("sender"), user_id("a"), user_id("b")

        result = ledger.send_recognition(sender, [a, b], 50, "teamwork", "Great job")

        assert result.total_points == 100
        assert result.sender_remaining_allowance == 900

        sender_acct = ledger.get_account(sender)
        assert sender_acct.monthly_allowance == 900
        assert sender_acct.total_given == 100
        assert sender_acct.balance == 0
        assert sender_acct.last_allowance_reset_month == "2026-03"

        for recipient in (a, b):
            acct = ledger.get_account(recipient)
            assert acct.balance == 50
            assert acct.total_earned == 50

    def test_writes_three_ledger_rows(self, ledger, user_id):
        sender, a, b = user_id("sender"), user_id("a"), user_id("b")

        result = ledger.send_recognition(sender, [a, b], 50, "teamwork", "Great job")

        given = ledger.get_history(sender)
        assert len(given) == 1
        assert given[0].type == TransactionType.GIVEN
        assert given[0].amount == -100
        assert given[0].ref_id == str(result.post_id)

        for recipient in (a, b):
            rows = ledger.get_history(recipient)
            assert len(rows) == 1
            assert rows[0].type == TransactionType.RECEIVED
            assert rows[0].amount == 50
            assert rows[0].from_user_id == sender
            assert rows[0].ref_id == str(result.post_id)

    def test_post_published(self, ledger, user_id):
        sender, a = user_id("sender"), user_id("a")

        result = ledger.send_recognition(sender, [a], 25, "ownership", "Thanks", visibility="TEAM")

        feed = ledger.get_feed()
        assert len(feed) == 1
        post = feed[0]
        assert post.id == result.post_id
        assert post.from_user_id == sender
        assert post.to_user_ids == (a,)
        assert post.point_amount == 25
        assert post.visibility == Visibility.TEAM
        assert post.comment_count == 0

    def test_existing_recipient_accumulates(self, ledger, user_id):
        s1, s2, r = user_id("s1"), user_id("s2"), user_id("r")

        ledger.send_recognition(s1, [r], 30, "v", "m")
        ledger.send_recognition(s2, [r], 20, "v", "m")

        acct = ledger.get_account(r)
        assert acct.balance == 50
        assert acct.total_earned == 50
        # Receiving never touches the recipient's own allowance
        assert acct.monthly_allowance == 1000

    def test_receiver_can_give_in_same_month(self, ledger, user_id):
        s, r, other = user_id("s"), user_id("r"), user_id("other")
        ledger.send_recognition(s, [r], 10, "v", "m")

        result = ledger.send_recognition(r, [other], 100, "v", "m")

        assert result.sender_remaining_allowance == 900

    def test_exact_allowance_can_be_spent(self, ledger, user_id):
        s, r = user_id("s"), user_id("r")
        result = ledger.send_recognition(s, [r], 1000, "v", "m")
        assert result.sender_remaining_allowance == 0


class TestInsufficientAllowance:
    def test_rejected_without_writes(self, ledger, user_id):
        sender, first, late = user_id("sender"), user_id("first"), user_id("late")
        ledger.send_recognition(sender, [first], 970, "v", "m")

        with pytest.raises(InsufficientAllowanceError) as exc_info:
            ledger.send_recognition(sender, [late], 50, "v", "m")

        assert exc_info.value.available == 30
        assert exc_info.value.required == 50
        assert exc_info.value.user_id == sender

        assert ledger.get_account(late) is None
        assert ledger.get_account(sender).monthly_allowance == 30
        assert len(ledger.get_history(sender)) == 1
        assert len(ledger.get_feed()) == 1

    def test_total_across_recipients_counts(self, ledger, user_id):
        sender = user_id("sender")
        recipients = [user_id("r") for _ in range(3)]

        with pytest.raises(InsufficientAllowanceError) as exc_info:
            ledger.send_recognition(sender, recipients, 400, "v", "m")

        assert exc_info.value.available == 1000
        assert exc_info.value.required == 1200
        # The failed attempt must not leave a half-created sender behind
        assert ledger.get_account(sender) is None


class TestMonthlyReset:
    def test_new_month_resets_before_check(self, ledger, clock, user_id):
        sender, a, b = user_id("sender"), user_id("a"), user_id("b")
        ledger.send_recognition(sender, [a], 900, "v", "m")
        assert ledger.get_account(sender).monthly_allowance == 100

        clock.set_time(datetime(2026, 4, 2, 9, 0, tzinfo=timezone.utc))
        result = ledger.send_recognition(sender, [b], 50, "v", "m")

        assert result.sender_remaining_allowance == 950
        acct = ledger.get_account(sender)
        assert acct.last_allowance_reset_month == "2026-04"

    def test_leftover_does_not_roll_over(self, ledger, clock, user_id):
        sender, a = user_id("sender"), user_id("a")
        ledger.send_recognition(sender, [a], 10, "v", "m")

        clock.set_time(datetime(2026, 4, 1, 0, 0, 1, tzinfo=timezone.utc))
        result = ledger.send_recognition(sender, [a], 10, "v", "m")

        assert result.sender_remaining_allowance == 990

    def test_reset_is_logged(self, ledger, clock, user_id, captured_logs):
        sender, a = user_id("sender"), user_id("a")
        ledger.send_recognition(sender, [a], 10, "v", "m")
        clock.set_time(datetime(2026, 5, 1, tzinfo=timezone.utc))

        ledger.send_recognition(sender, [a], 10, "v", "m")

        resets = [r for r in captured_logs() if r["message"] == "allowance_reset"]
        assert len(resets) == 1
        assert resets[0]["previous_month"] == "2026-03"
        assert resets[0]["month"] == "2026-05"


class TestValidation:
    @pytest.mark.parametrize("amount", [0, -10])
    def test_non_positive_amount(self, ledger, user_id, amount):
        with pytest.raises(InvalidAmountError):
            ledger.send_recognition(user_id(), [user_id()], amount, "v", "m")

    def test_empty_recipients(self, ledger, user_id):
        with pytest.raises(EmptyRecipientsError):
            ledger.send_recognition(user_id(), [], 10, "v", "m")

    def test_duplicate_recipients(self, ledger, user_id):
        r = user_id("r")
        with pytest.raises(DuplicateRecipientError):
            ledger.send_recognition(user_id(), [r, r], 10, "v", "m")

    def test_self_recognition(self, ledger, user_id):
        me = user_id("me")
        with pytest.raises(SelfRecognitionError):
            ledger.send_recognition(me, [me], 10, "v", "m")

    def test_bad_visibility(self, ledger, user_id):
        with pytest.raises(InvalidVisibilityError):
            ledger.send_recognition(user_id(), [user_id()], 10, "v", "m", visibility="WORLD")

    def test_validation_happens_before_transaction(self, ledger, user_id, captured_logs):
        with pytest.raises(EmptyRecipientsError):
            ledger.send_recognition(user_id(), [], 10, "v", "m")
        assert not [r for r in captured_logs() if r.get("operation")]

    def test_bare_string_recipient_rejected(self, ledger, user_id):
        sender, recipient = user_id("sender"), user_id("bob")

        with pytest.raises(InvalidRecipientsError):
            ledger.send_recognition(sender, recipient, 10, "v", "m")

        assert ledger.get_account(sender) is None
        assert ledger.get_feed() == []


class TestLogging:
    def test_recognition_sent_event(self, ledger, user_id, captured_logs):
        sender, a = user_id("sender"), user_id("a")

        ledger.send_recognition(sender, [a], 40, "v", "m")

        events = [r for r in captured_logs() if r["message"] == "recognition_sent"]
        assert len(events) == 1
        event = events[0]
        assert event["from_user_id"] == sender
        assert event["total"] == 40
        assert event["actor_id"] == sender
        assert event["operation"] == "send_recognition"
