"""
Module: points_kernel.models.budget
Responsibility: ORM persistence for position point budgets and the budget
    grant requests that draw on them.
Architecture position: Kernel > Models.

Invariants enforced:
    - remaining_point_budget >= 0 (ck_position_budget_remaining_non_negative).
    - Budget is decremented only by an approved BudgetPointRequest.
    - BudgetPointRequest lifecycle: PENDING -> APPROVED | REJECTED, both
      terminal.  The service checks the transition; db/immutability.py refuses
      any flush that touches a row already persisted in a terminal state.
    - The originally requested ``amount`` never changes; ``adjusted_amount``
      records what actually moved.
    - Both tables carry an optimistic ``version`` column.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Index,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from points_kernel.db.base import Base, TimestampedBase, UUIDString
from points_kernel.domain.types import BudgetRequestStatus


class PositionBudget(TimestampedBase):
    """
    Point budget subset of an HR Position record.

    The Position itself is owned by the HR system; this row mirrors its
    budget fields and is the only part the ledger mutates.
    """

    __tablename__ = "position_budgets"

    __table_args__ = (
        UniqueConstraint("position_id", name="uq_position_budget_position"),
        CheckConstraint(
            "remaining_point_budget IS NULL OR remaining_point_budget >= 0",
            name="ck_position_budget_remaining_non_negative",
        ),
        CheckConstraint(
            "yearly_point_budget >= 0",
            name="ck_position_budget_yearly_non_negative",
        ),
    )

    position_id: Mapped[str] = mapped_column(String(128), nullable=False)
    has_point_budget: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    yearly_point_budget: Mapped[int] = mapped_column(nullable=False, default=0)

    # NULL until the first approval: the full yearly budget is available
    remaining_point_budget: Mapped[int | None] = mapped_column(nullable=True)

    version: Mapped[int] = mapped_column(nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def effective_remaining(self) -> int:
        if self.remaining_point_budget is not None:
            return self.remaining_point_budget
        return self.yearly_point_budget or 0

    def __repr__(self) -> str:
        return f"<PositionBudget {self.position_id} remaining={self.effective_remaining}>"


class BudgetPointRequest(Base):
    """Request to distribute points from a position's budget."""

    __tablename__ = "budget_point_requests"

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'REJECTED')",
            name="ck_budget_request_valid_status",
        ),
        CheckConstraint("amount > 0", name="ck_budget_request_amount_positive"),
        Index("idx_budget_request_status_created", "status", "created_at"),
        Index("idx_budget_request_position", "position_id"),
    )

    from_user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    position_id: Mapped[str] = mapped_column(String(128), nullable=False)
    to_user_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False)

    # Per recipient, as originally requested
    amount: Mapped[int] = mapped_column(nullable=False)

    # Per recipient, as actually distributed
    adjusted_amount: Mapped[int | None] = mapped_column(nullable=True)

    value_id: Mapped[str] = mapped_column(String(128), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[BudgetRequestStatus] = mapped_column(
        String(20),
        nullable=False,
        default=BudgetRequestStatus.PENDING.value,
    )
    admin_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    recognition_post_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    version: Mapped[int] = mapped_column(nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def status_enum(self) -> BudgetRequestStatus:
        return BudgetRequestStatus(self.status)

    def __repr__(self) -> str:
        return f"<BudgetPointRequest {self.id} status={self.status}>"
