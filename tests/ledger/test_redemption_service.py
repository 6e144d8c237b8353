"""Tests for redeem_reward -- spending balance on rewards."""

import pytest

from points_kernel.domain.dtos import Reward
from points_kernel.domain.types import RedemptionStatus, TransactionType
from points_kernel.exceptions import (
    AccountNotFoundError,
    InsufficientBalanceError,
    InvalidRewardError,
)

MUG = Reward(id="reward-mug", title="Company Mug", cost=200)


class TestRedeemReward:
    def test_debits_balance_and_records_request(self, ledger, fund, user_id):
        user = user_id("u")
        fund(user, 300)

        result = ledger.redeem_reward(user, MUG)

        assert result.remaining_balance == 100
        acct = ledger.get_account(user)
        assert acct.balance == 100
        # Lifetime earnings are not reduced by spending
        assert acct.total_earned == 300

        redemptions = ledger.list_redemptions(user)
        assert len(redemptions) == 1
        assert redemptions[0].id == result.redemption_id
        assert redemptions[0].status == RedemptionStatus.PENDING
        assert redemptions[0].reward_title == "Company Mug"
        assert redemptions[0].reward_cost == 200

    def test_writes_redeemed_row(self, ledger, fund, user_id, clock):
        user = user_id("u")
        fund(user, 300)
        clock.advance(5)

        result = ledger.redeem_reward(user, MUG)

        latest = ledger.get_history(user)[0]
        assert latest.type == TransactionType.REDEEMED
        assert latest.amount == -200
        assert latest.ref_id == str(result.redemption_id)
        assert "Company Mug" in latest.description

    def test_exact_balance(self, ledger, fund, user_id):
        user = user_id("u")
        fund(user, 200)
        assert ledger.redeem_reward(user, MUG).remaining_balance == 0

    def test_insufficient_balance(self, ledger, fund, user_id):
        user = user_id("u")
        fund(user, 150)

        with pytest.raises(InsufficientBalanceError) as exc_info:
            ledger.redeem_reward(user, MUG)

        assert exc_info.value.balance == 150
        assert exc_info.value.required == 200
        assert ledger.get_account(user).balance == 150
        assert ledger.list_redemptions(user) == []

    def test_no_account(self, ledger, user_id):
        with pytest.raises(AccountNotFoundError):
            ledger.redeem_reward(user_id("ghost"), MUG)

    def test_free_reward(self, ledger, fund, user_id):
        user = user_id("u")
        fund(user, 10)
        result = ledger.redeem_reward(user, Reward(id="r-free", title="Sticker", cost=0))
        assert result.remaining_balance == 10

    def test_invalid_reward(self, ledger, user_id):
        with pytest.raises(InvalidRewardError):
            ledger.redeem_reward(user_id(), Reward(id="r", title="Bad", cost=-1))
