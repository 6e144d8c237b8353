"""
RedemptionService -- spend balance on a catalog reward.

Responsibility:
    Debits the user's balance by the reward cost, records a PENDING
    redemption request with a frozen reward snapshot and writes one
    REDEEMED ledger row, in the caller's transaction.

Invariants enforced:
    - Balance never goes negative: checked before any write; the versioned
      account row makes a concurrent spend fail the flush and retry.
    - The snapshot keeps title and cost as they were at redemption time.

Failure modes:
    - AccountNotFoundError: the user has never held points.
    - InsufficientBalanceError: balance below the reward cost.
"""

from __future__ import annotations

from datetime import timezone, tzinfo
from uuid import uuid4

from sqlalchemy.orm import Session

from points_kernel.domain.clock import Clock
from points_kernel.domain.dtos import RedemptionResult, Reward
from points_kernel.domain.types import RedemptionStatus, TransactionType
from points_kernel.exceptions import AccountNotFoundError, InsufficientBalanceError
from points_kernel.logging_config import get_logger
from points_kernel.models.ledger import PointTransaction
from points_kernel.models.redemption import RedemptionRequest
from points_kernel.services.account_service import AccountService
from points_kernel.services.base import BaseService

logger = get_logger("services.redemption")


class RedemptionService(BaseService):
    def __init__(self, session: Session, clock: Clock, tz: tzinfo = timezone.utc):
        super().__init__(session)
        self._clock = clock
        self._accounts = AccountService(session, clock, tz)

    def redeem_reward(self, user_id: str, reward: Reward) -> RedemptionResult:
        account = self._accounts.get_account(user_id)
        if account is None:
            raise AccountNotFoundError(user_id)

        if account.balance < reward.cost:
            logger.info(
                "redemption_rejected_insufficient_balance",
                extra={
                    "user_id": user_id,
                    "reward_id": reward.id,
                    "balance": account.balance,
                    "cost": reward.cost,
                },
            )
            raise InsufficientBalanceError(user_id, account.balance, reward.cost)

        now = self._clock.now()
        account.balance -= reward.cost
        account.updated_at = now

        redemption = RedemptionRequest(
            id=uuid4(),
            user_id=user_id,
            reward_id=reward.id,
            reward_snapshot={"title": reward.title, "cost": reward.cost},
            status=RedemptionStatus.PENDING.value,
            created_at=now,
        )
        self.session.add(redemption)

        self.session.add(PointTransaction(
            user_id=user_id,
            amount=-reward.cost,
            type=TransactionType.REDEEMED.value,
            ref_id=str(redemption.id),
            description=f"Redeemed: {reward.title}",
            created_at=now,
        ))
        self.session.flush()

        logger.info(
            "reward_redeemed",
            extra={
                "redemption_id": str(redemption.id),
                "user_id": user_id,
                "reward_id": reward.id,
                "cost": reward.cost,
                "remaining_balance": account.balance,
            },
        )
        return RedemptionResult(
            redemption_id=redemption.id,
            remaining_balance=account.balance,
        )
