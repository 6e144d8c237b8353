"""
BudgetGrantService -- budget-backed recognition with an approval step.

Responsibility:
    Queues requests to distribute points from a position's yearly budget and
    settles them.  Approval decrements the budget, credits every recipient,
    publishes a recognition post attributed to the requester and closes the
    request, all in one transaction.

Architecture position:
    Kernel > Services.  Runs inside a TransactionRunner attempt.

State machine:
    PENDING --approve--> APPROVED  (terminal)
    PENDING --reject---> REJECTED  (terminal)

Invariants enforced:
    - A request moves funds at most once: the status check and the budget
      decrement share one transaction, and both rows are versioned, so two
      concurrent approvals cannot both commit.
    - remaining_point_budget never goes negative.
    - The requested ``amount`` is kept; ``adjusted_amount`` records what
      actually moved.

Failure modes:
    - RequestNotFoundError, AlreadyProcessedError (approve and reject).
    - PositionNotFoundError, NoBudgetConfiguredError, InsufficientBudgetError.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import timezone, tzinfo
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from points_kernel.domain.clock import Clock
from points_kernel.domain.dtos import BudgetApprovalResult
from points_kernel.domain.types import (
    BUDGET_REQUEST_TRANSITIONS,
    BudgetRequestStatus,
    TransactionType,
    Visibility,
)
from points_kernel.exceptions import (
    AlreadyProcessedError,
    InsufficientBudgetError,
    NoBudgetConfiguredError,
    PositionNotFoundError,
    RequestNotFoundError,
)
from points_kernel.logging_config import get_logger
from points_kernel.models.budget import BudgetPointRequest, PositionBudget
from points_kernel.models.ledger import PointTransaction
from points_kernel.models.recognition import RecognitionPost
from points_kernel.services.account_service import AccountService
from points_kernel.services.base import BaseService
from points_kernel.services.config_service import PointsConfigProvider

logger = get_logger("services.budget_grant")


class BudgetGrantService(BaseService):
    def __init__(
        self,
        session: Session,
        clock: Clock,
        config: PointsConfigProvider,
        tz: tzinfo = timezone.utc,
    ):
        super().__init__(session)
        self._clock = clock
        self._config = config
        self._accounts = AccountService(session, clock, tz)

    # =========================================================================
    # Request
    # =========================================================================

    def request_budget_points(
        self,
        from_user_id: str,
        position_id: str,
        to_user_ids: Sequence[str],
        amount: int,
        value_id: str,
        message: str,
    ) -> UUID:
        """Enqueue a PENDING request; no funds move."""
        request = BudgetPointRequest(
            id=uuid4(),
            from_user_id=from_user_id,
            position_id=position_id,
            to_user_ids=list(to_user_ids),
            amount=amount,
            value_id=value_id,
            message=message,
            status=BudgetRequestStatus.PENDING.value,
            created_at=self._clock.now(),
        )
        self.session.add(request)
        self.session.flush()

        logger.info(
            "budget_request_created",
            extra={
                "request_id": str(request.id),
                "from_user_id": from_user_id,
                "position_id": position_id,
                "recipient_count": len(to_user_ids),
                "amount": amount,
            },
        )
        return request.id

    # =========================================================================
    # Settlement
    # =========================================================================

    def approve_budget_request(
        self,
        request_id: UUID,
        adjusted_amount: int | None = None,
        admin_note: str | None = None,
    ) -> BudgetApprovalResult:
        """Approve a pending request and distribute its points.

        ``adjusted_amount`` overrides the per-recipient amount; when omitted
        the requested amount is distributed.
        """
        request = self._load_pending(request_id, BudgetRequestStatus.APPROVED)

        budget = self.session.execute(
            select(PositionBudget)
            .where(PositionBudget.position_id == request.position_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if budget is None:
            raise PositionNotFoundError(request.position_id)
        if not budget.has_point_budget:
            raise NoBudgetConfiguredError(request.position_id)

        final_amount = adjusted_amount if adjusted_amount is not None else request.amount
        recipients = list(request.to_user_ids)
        total = final_amount * len(recipients)
        remaining = budget.effective_remaining

        if remaining < total:
            logger.info(
                "budget_request_rejected_insufficient_budget",
                extra={
                    "request_id": str(request.id),
                    "position_id": request.position_id,
                    "remaining": remaining,
                    "required": total,
                },
            )
            raise InsufficientBudgetError(request.position_id, remaining, total)

        policy = self._config.get(self.session)
        accounts = self._accounts.load_accounts(recipients)
        now = self._clock.now()

        # -- writes ---------------------------------------------------------

        budget.remaining_point_budget = remaining - total
        budget.updated_at = now

        post = RecognitionPost(
            id=uuid4(),
            from_user_id=request.from_user_id,
            to_user_ids=recipients,
            point_amount=final_amount,
            value_id=request.value_id,
            message=request.message,
            visibility=Visibility.PUBLIC.value,
            created_at=now,
            comment_count=0,
            reactions={},
        )
        self.session.add(post)

        for to_user_id in recipients:
            self._accounts.credit(accounts, to_user_id, final_amount, policy.monthly_allowance_base)
            self.session.add(PointTransaction(
                user_id=to_user_id,
                amount=final_amount,
                type=TransactionType.RECEIVED.value,
                ref_id=str(post.id),
                from_user_id=request.from_user_id,
                created_at=now,
            ))

        # Request fields last: once APPROVED is flushed the row is frozen.
        request.status = BudgetRequestStatus.APPROVED.value
        request.adjusted_amount = final_amount
        request.admin_note = admin_note
        request.approved_at = now
        request.processed_at = now
        request.recognition_post_id = post.id

        self.session.flush()

        logger.info(
            "budget_request_approved",
            extra={
                "request_id": str(request.id),
                "position_id": request.position_id,
                "post_id": str(post.id),
                "requested_amount": request.amount,
                "final_amount": final_amount,
                "total": total,
                "remaining_budget": budget.remaining_point_budget,
            },
        )
        return BudgetApprovalResult(
            request_id=request.id,
            post_id=post.id,
            final_amount=final_amount,
            total_distributed=total,
            remaining_budget=budget.remaining_point_budget,
        )

    def reject_budget_request(
        self,
        request_id: UUID,
        admin_note: str | None = None,
    ) -> None:
        request = self._load_pending(request_id, BudgetRequestStatus.REJECTED)

        now = self._clock.now()
        request.status = BudgetRequestStatus.REJECTED.value
        request.admin_note = admin_note
        request.processed_at = now
        self.session.flush()

        logger.info(
            "budget_request_rejected",
            extra={"request_id": str(request.id), "position_id": request.position_id},
        )

    def _load_pending(
        self,
        request_id: UUID,
        target: BudgetRequestStatus,
    ) -> BudgetPointRequest:
        request = self.session.execute(
            select(BudgetPointRequest)
            .where(BudgetPointRequest.id == request_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if request is None:
            raise RequestNotFoundError(str(request_id))

        current = request.status_enum
        if target not in BUDGET_REQUEST_TRANSITIONS.get(current, frozenset()):
            logger.warning(
                "budget_request_already_processed",
                extra={"request_id": str(request_id), "status": current.value},
            )
            raise AlreadyProcessedError(str(request_id), current.value)
        return request
