"""
Property-based tests for the ledger invariants.

Each example uses fresh user ids, so examples share one database without
interfering with each other.

Properties:
- conservation: a recognition moves exactly amount * N from the sender's
  allowance to the recipients' balances, or moves nothing
- non-negativity: no random sequence of operations drives a balance or an
  allowance below zero
- reconciliation: replaying ledger rows always reproduces the counters
"""

from uuid import uuid4

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from points_kernel.domain.dtos import Reward
from points_kernel.exceptions import (
    InsufficientAllowanceError,
    InsufficientBalanceError,
)

pytestmark = pytest.mark.slow

_SETTINGS = settings(
    max_examples=25,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture, HealthCheck.too_slow],
)


def _balance(ledger, user):
    acct = ledger.get_account(user)
    return acct.balance if acct else 0


class TestConservation:
    @_SETTINGS
    @given(
        spent_first=st.integers(min_value=0, max_value=1000),
        amount=st.integers(min_value=1, max_value=600),
        n=st.integers(min_value=1, max_value=4),
    )
    def test_recognition_conserves_points(self, ledger, spent_first, amount, n):
        tag = uuid4().hex[:8]
        sender = f"s-{tag}"
        sink = f"sink-{tag}"
        recipients = [f"r{i}-{tag}" for i in range(n)]
        if spent_first:
            ledger.send_recognition(sender, [sink], spent_first, "v", "m")
        before = ledger.get_account(sender)
        allowance_before = before.monthly_allowance if before else 1000

        try:
            result = ledger.send_recognition(sender, recipients, amount, "v", "m")
        except InsufficientAllowanceError as exc:
            assert amount * n > allowance_before
            assert exc.available == allowance_before
            assert all(ledger.get_account(r) is None for r in recipients)
            return

        assert amount * n <= allowance_before
        assert result.sender_remaining_allowance == allowance_before - amount * n
        assert sum(_balance(ledger, r) for r in recipients) == amount * n


_operation = st.one_of(
    st.tuples(st.just("give"), st.integers(0, 3), st.integers(0, 3), st.integers(1, 400)),
    st.tuples(st.just("redeem"), st.integers(0, 3), st.integers(0, 3), st.integers(0, 300)),
)


class TestRandomWorkloads:
    @_SETTINGS
    @given(operations=st.lists(_operation, min_size=1, max_size=12))
    def test_counters_stay_non_negative_and_reconcile(self, ledger, operations):
        tag = uuid4().hex[:8]
        users = [f"u{i}-{tag}" for i in range(4)]
        given_total = 0
        redeemed_total = 0

        for kind, a, b, amount in operations:
            if kind == "give":
                if a == b:
                    continue
                try:
                    ledger.send_recognition(users[a], [users[b]], amount, "v", "m")
                    given_total += amount
                except InsufficientAllowanceError:
                    pass
            else:
                if ledger.get_account(users[a]) is None:
                    continue
                try:
                    ledger.redeem_reward(users[a], Reward(id=f"rw-{b}", title="Reward", cost=amount))
                    redeemed_total += amount
                except InsufficientBalanceError:
                    pass

        total_balance = 0
        for user in users:
            acct = ledger.get_account(user)
            if acct is None:
                continue
            assert acct.balance >= 0
            assert 0 <= acct.monthly_allowance <= 1000
            assert acct.monthly_allowance + acct.total_given == 1000
            assert ledger.reconcile_account(user).is_consistent
            total_balance += acct.balance

        assert total_balance == given_total - redeemed_total
