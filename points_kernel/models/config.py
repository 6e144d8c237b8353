"""
Module: points_kernel.models.config
Responsibility: ORM persistence for the process-wide points configuration
    (a single row keyed ``main``).
Architecture position: Kernel > Models.

Read through PointsConfigProvider, which caches a frozen PointsPolicy and is
invalidated whenever ConfigService writes this row.
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from points_kernel.db.base import Base

MAIN_CONFIG_KEY = "main"


class PointsConfigRecord(Base):
    __tablename__ = "points_config"

    __table_args__ = (
        UniqueConstraint("config_key", name="uq_points_config_key"),
        CheckConstraint(
            "monthly_allowance_base >= 0",
            name="ck_points_config_allowance_non_negative",
        ),
    )

    config_key: Mapped[str] = mapped_column(String(32), nullable=False, default=MAIN_CONFIG_KEY)
    year: Mapped[int | None] = mapped_column(nullable=True)

    # Points every employee may give per month
    monthly_allowance_base: Mapped[int] = mapped_column(nullable=False)

    # Yearly points reserved for project completion payouts
    project_points_budget: Mapped[int] = mapped_column(nullable=False, default=0)

    # Yearly points across all manager position budgets
    manager_budget_total: Mapped[int] = mapped_column(nullable=False, default=0)

    # Currency value of one point (MNT)
    point_to_mnt: Mapped[int] = mapped_column(nullable=False, default=0)

    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
