"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Immutable records that cross the kernel boundary: inputs resolved by
    collaborators (Reward, ProjectSnapshot), results returned to callers
    (RecognitionResult, BudgetApprovalResult, ...), and read-side views
    produced by selectors.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  ``from_model`` converters are only
    invoked from services and selectors, never from domain logic.

Invariants enforced:
    - Services return DTOs, never live ORM instances, so callers cannot
      mutate ledger rows outside a transaction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from points_kernel.domain.types import (
    BudgetRequestStatus,
    RedemptionStatus,
    TransactionType,
    Visibility,
)

if TYPE_CHECKING:
    from points_kernel.models.account import PointAccount
    from points_kernel.models.budget import BudgetPointRequest, PositionBudget
    from points_kernel.models.ledger import PointTransaction
    from points_kernel.models.recognition import RecognitionPost
    from points_kernel.models.redemption import RedemptionRequest


# ---------------------------------------------------------------------------
# Inputs resolved by collaborators
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Reward:
    """Catalog entry as resolved by the reward catalog (read-only here)."""

    id: str
    title: str
    cost: int


@dataclass(frozen=True)
class ProjectSnapshot:
    """Project record as resolved by the project module."""

    id: str
    name: str
    point_budget: int
    end_date: date
    team_member_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class PointsPolicy:
    """Snapshot of the process-wide points configuration."""

    monthly_allowance_base: int
    year: int | None = None
    project_points_budget: int = 0
    manager_budget_total: int = 0
    point_to_mnt: int = 0
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Operation results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RecognitionResult:
    post_id: UUID
    total_points: int
    sender_remaining_allowance: int


@dataclass(frozen=True)
class BudgetApprovalResult:
    request_id: UUID
    post_id: UUID
    final_amount: int
    total_distributed: int
    remaining_budget: int


@dataclass(frozen=True)
class RedemptionResult:
    redemption_id: UUID
    remaining_balance: int


@dataclass(frozen=True)
class AllowanceState:
    user_id: str
    monthly_allowance: int
    month: str
    created: bool
    was_reset: bool


@dataclass(frozen=True)
class ProjectDistributionResult:
    project_id: str
    total_budget: int
    actual_points: int
    points_per_member: int
    overdue_days: int
    penalty_percent: int
    member_count: int


# ---------------------------------------------------------------------------
# Read-side views
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AccountSnapshot:
    user_id: str
    balance: int
    monthly_allowance: int
    total_earned: int
    total_given: int
    last_allowance_reset_month: str | None

    @classmethod
    def from_model(cls, model: PointAccount) -> AccountSnapshot:
        return cls(
            user_id=model.user_id,
            balance=model.balance,
            monthly_allowance=model.monthly_allowance,
            total_earned=model.total_earned,
            total_given=model.total_given,
            last_allowance_reset_month=model.last_allowance_reset_month,
        )


@dataclass(frozen=True)
class TransactionView:
    id: UUID
    user_id: str
    amount: int
    type: TransactionType
    ref_id: str
    from_user_id: str | None
    project_id: str | None
    description: str | None
    created_at: datetime

    @classmethod
    def from_model(cls, model: PointTransaction) -> TransactionView:
        return cls(
            id=model.id,
            user_id=model.user_id,
            amount=model.amount,
            type=TransactionType(model.type),
            ref_id=model.ref_id,
            from_user_id=model.from_user_id,
            project_id=model.project_id,
            description=model.description,
            created_at=model.created_at,
        )


@dataclass(frozen=True)
class RecognitionPostView:
    id: UUID
    from_user_id: str
    to_user_ids: tuple[str, ...]
    point_amount: int
    value_id: str
    message: str
    visibility: Visibility
    created_at: datetime
    comment_count: int
    reactions: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_model(cls, model: RecognitionPost) -> RecognitionPostView:
        return cls(
            id=model.id,
            from_user_id=model.from_user_id,
            to_user_ids=tuple(model.to_user_ids),
            point_amount=model.point_amount,
            value_id=model.value_id,
            message=model.message,
            visibility=Visibility(model.visibility),
            created_at=model.created_at,
            comment_count=model.comment_count,
            reactions=dict(model.reactions or {}),
        )


@dataclass(frozen=True)
class BudgetRequestView:
    id: UUID
    from_user_id: str
    position_id: str
    to_user_ids: tuple[str, ...]
    amount: int
    adjusted_amount: int | None
    value_id: str
    message: str
    status: BudgetRequestStatus
    admin_note: str | None
    recognition_post_id: UUID | None
    created_at: datetime
    approved_at: datetime | None
    processed_at: datetime | None

    @classmethod
    def from_model(cls, model: BudgetPointRequest) -> BudgetRequestView:
        return cls(
            id=model.id,
            from_user_id=model.from_user_id,
            position_id=model.position_id,
            to_user_ids=tuple(model.to_user_ids),
            amount=model.amount,
            adjusted_amount=model.adjusted_amount,
            value_id=model.value_id,
            message=model.message,
            status=BudgetRequestStatus(model.status),
            admin_note=model.admin_note,
            recognition_post_id=model.recognition_post_id,
            created_at=model.created_at,
            approved_at=model.approved_at,
            processed_at=model.processed_at,
        )


@dataclass(frozen=True)
class PositionBudgetView:
    position_id: str
    has_point_budget: bool
    yearly_point_budget: int
    remaining_point_budget: int

    @classmethod
    def from_model(cls, model: PositionBudget) -> PositionBudgetView:
        return cls(
            position_id=model.position_id,
            has_point_budget=model.has_point_budget,
            yearly_point_budget=model.yearly_point_budget,
            remaining_point_budget=model.effective_remaining,
        )


@dataclass(frozen=True)
class RedemptionView:
    id: UUID
    user_id: str
    reward_id: str
    reward_title: str
    reward_cost: int
    status: RedemptionStatus
    created_at: datetime

    @classmethod
    def from_model(cls, model: RedemptionRequest) -> RedemptionView:
        snapshot = model.reward_snapshot or {}
        return cls(
            id=model.id,
            user_id=model.user_id,
            reward_id=model.reward_id,
            reward_title=snapshot.get("title", ""),
            reward_cost=int(snapshot.get("cost", 0)),
            status=RedemptionStatus(model.status),
            created_at=model.created_at,
        )


@dataclass(frozen=True)
class ReconciliationReport:
    """Result of replaying a user's ledger rows against the account counters."""

    user_id: str
    balance: int
    replayed_balance: int
    total_earned: int
    replayed_earned: int
    total_given: int
    replayed_given: int
    transaction_count: int

    @property
    def is_consistent(self) -> bool:
        return (
            self.balance == self.replayed_balance
            and self.total_earned == self.replayed_earned
            and self.total_given == self.replayed_given
        )
