"""
Module: points_kernel.models.project
Responsibility: ORM persistence for completed project point payouts.
Architecture position: Kernel > Models.

Invariants enforced:
    - A project is paid out at most once (uq_project_distribution_project).
      A concurrent duplicate payout fails with IntegrityError and is retried,
      after which the service sees the row and raises
      ProjectAlreadyDistributedError.
"""

from datetime import date, datetime

from sqlalchemy import Date, DateTime, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from points_kernel.db.base import Base


class ProjectPointDistribution(Base):
    __tablename__ = "project_point_distributions"

    __table_args__ = (
        UniqueConstraint("project_id", name="uq_project_distribution_project"),
    )

    project_id: Mapped[str] = mapped_column(String(128), nullable=False)
    total_budget: Mapped[int] = mapped_column(nullable=False)
    actual_points: Mapped[int] = mapped_column(nullable=False)
    points_per_member: Mapped[int] = mapped_column(nullable=False)
    overdue_days: Mapped[int] = mapped_column(nullable=False)
    penalty_percent: Mapped[int] = mapped_column(nullable=False)
    member_count: Mapped[int] = mapped_column(nullable=False)
    completion_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
