"""
Module: points_kernel.models.redemption
Responsibility: ORM persistence for reward redemption requests.
Architecture position: Kernel > Models.

Invariants enforced:
    - reward_snapshot freezes the reward title and cost at redemption time;
      later catalog edits never rewrite history (db/immutability.py).
    - The kernel writes PENDING only.  Fulfillment statuses are set by the
      external fulfillment workflow.
"""

from sqlalchemy import JSON, CheckConstraint, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from points_kernel.db.base import TimestampedBase
from points_kernel.domain.types import RedemptionStatus


class RedemptionRequest(TimestampedBase):
    """Pending fulfillment of a reward paid for with balance."""

    __tablename__ = "redemption_requests"

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'FULFILLED', 'REJECTED')",
            name="ck_redemption_valid_status",
        ),
        Index("idx_redemption_user_created", "user_id", "created_at"),
    )

    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    reward_id: Mapped[str] = mapped_column(String(128), nullable=False)

    # {"title": str, "cost": int}
    reward_snapshot: Mapped[dict] = mapped_column(JSON, nullable=False)

    status: Mapped[RedemptionStatus] = mapped_column(
        String(20),
        nullable=False,
        default=RedemptionStatus.PENDING.value,
    )
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<RedemptionRequest {self.id} {self.user_id} {self.reward_id} {self.status}>"
