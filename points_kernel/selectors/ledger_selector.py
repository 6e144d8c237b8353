"""
Module: points_kernel.selectors.ledger_selector
Responsibility: Read-only queries over accounts, the ledger, the recognition
    feed, budget requests and redemptions, plus ledger reconciliation.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Reconciliation replays PointTransaction rows only; it never trusts the
      stored counters it is checking.
        balance      == sum(RECEIVED) + sum(REDEEMED)
        total_earned == sum(RECEIVED)
        total_given  == -sum(GIVEN)

Failure modes:
    - AccountNotFoundError from reconcile_account() for an unknown user.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select

from points_kernel.domain.dtos import (
    AccountSnapshot,
    BudgetRequestView,
    PositionBudgetView,
    ReconciliationReport,
    RecognitionPostView,
    RedemptionView,
    TransactionView,
)
from points_kernel.domain.types import (
    BALANCE_TRANSACTION_TYPES,
    BudgetRequestStatus,
    TransactionType,
)
from points_kernel.exceptions import AccountNotFoundError
from points_kernel.models.account import PointAccount
from points_kernel.models.budget import BudgetPointRequest, PositionBudget
from points_kernel.models.ledger import PointTransaction
from points_kernel.models.recognition import RecognitionPost
from points_kernel.models.redemption import RedemptionRequest
from points_kernel.selectors.base import BaseSelector

DEFAULT_FEED_LIMIT = 20
DEFAULT_HISTORY_LIMIT = 50


class LedgerSelector(BaseSelector):
    """Read side of the points ledger."""

    def get_account(self, user_id: str) -> AccountSnapshot | None:
        account = self.session.execute(
            select(PointAccount).where(PointAccount.user_id == user_id)
        ).scalar_one_or_none()
        if account is None:
            return None
        return AccountSnapshot.from_model(account)

    def get_history(
        self,
        user_id: str,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> list[TransactionView]:
        """A user's ledger rows, newest first."""
        rows = self.session.execute(
            select(PointTransaction)
            .where(PointTransaction.user_id == user_id)
            .order_by(PointTransaction.created_at.desc(), PointTransaction.id.desc())
            .limit(limit)
        ).scalars()
        return [TransactionView.from_model(row) for row in rows]

    def get_feed(self, limit: int = DEFAULT_FEED_LIMIT) -> list[RecognitionPostView]:
        """Most recent recognition posts, newest first."""
        rows = self.session.execute(
            select(RecognitionPost)
            .order_by(RecognitionPost.created_at.desc(), RecognitionPost.id.desc())
            .limit(limit)
        ).scalars()
        return [RecognitionPostView.from_model(row) for row in rows]

    def get_budget_request(self, request_id: UUID) -> BudgetRequestView | None:
        request = self.session.get(BudgetPointRequest, request_id)
        if request is None:
            return None
        return BudgetRequestView.from_model(request)

    def list_budget_requests(
        self,
        status: BudgetRequestStatus | None = None,
    ) -> list[BudgetRequestView]:
        """Budget requests, newest first, optionally filtered by status."""
        stmt = select(BudgetPointRequest)
        if status is not None:
            stmt = stmt.where(BudgetPointRequest.status == BudgetRequestStatus(status).value)
        stmt = stmt.order_by(BudgetPointRequest.created_at.desc(), BudgetPointRequest.id.desc())
        return [BudgetRequestView.from_model(row) for row in self.session.execute(stmt).scalars()]

    def get_position_budget(self, position_id: str) -> PositionBudgetView | None:
        budget = self.session.execute(
            select(PositionBudget).where(PositionBudget.position_id == position_id)
        ).scalar_one_or_none()
        if budget is None:
            return None
        return PositionBudgetView.from_model(budget)

    def list_redemptions(self, user_id: str) -> list[RedemptionView]:
        rows = self.session.execute(
            select(RedemptionRequest)
            .where(RedemptionRequest.user_id == user_id)
            .order_by(RedemptionRequest.created_at.desc(), RedemptionRequest.id.desc())
        ).scalars()
        return [RedemptionView.from_model(row) for row in rows]

    def reconcile_account(self, user_id: str) -> ReconciliationReport:
        """Replay the user's ledger rows and compare with the stored counters."""
        account = self.session.execute(
            select(PointAccount).where(PointAccount.user_id == user_id)
        ).scalar_one_or_none()
        if account is None:
            raise AccountNotFoundError(user_id)

        sums: dict[str, int] = {}
        count = 0
        rows = self.session.execute(
            select(
                PointTransaction.type,
                func.coalesce(func.sum(PointTransaction.amount), 0),
                func.count(PointTransaction.id),
            )
            .where(PointTransaction.user_id == user_id)
            .group_by(PointTransaction.type)
        ).all()
        for tx_type, total, n in rows:
            sums[tx_type] = int(total)
            count += n

        replayed_balance = sum(sums.get(t.value, 0) for t in BALANCE_TRANSACTION_TYPES)
        return ReconciliationReport(
            user_id=user_id,
            balance=account.balance,
            replayed_balance=replayed_balance,
            total_earned=account.total_earned,
            replayed_earned=sums.get(TransactionType.RECEIVED.value, 0),
            total_given=account.total_given,
            replayed_given=-sums.get(TransactionType.GIVEN.value, 0),
            transaction_count=count,
        )
