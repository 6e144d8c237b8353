"""
Module: points_kernel.models.account
Responsibility: ORM persistence for point accounts -- one row per user holding
    the spendable balance, the monthly giving allowance and lifetime counters.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - balance >= 0 and monthly_allowance >= 0 at commit (DB check constraints;
      services check before writing).
    - One account per user (uq_point_account_user).
    - Optimistic concurrency: ``version`` is the mapper's version_id_col.  A
      concurrent writer makes the losing flush raise StaleDataError, which
      TransactionRunner turns into a full retry.

Failure modes:
    - IntegrityError on a second concurrent first-time insert for the same user.
    - StaleDataError when the row changed after it was read.
"""

from sqlalchemy import CheckConstraint, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from points_kernel.db.base import TimestampedBase


class PointAccount(TimestampedBase):
    """
    Point account of a single user.

    Contract:
        Mutated only inside a TransactionRunner attempt.  Never deleted.
    """

    __tablename__ = "point_accounts"

    __table_args__ = (
        UniqueConstraint("user_id", name="uq_point_account_user"),
        CheckConstraint("balance >= 0", name="ck_point_account_balance_non_negative"),
        CheckConstraint(
            "monthly_allowance >= 0",
            name="ck_point_account_allowance_non_negative",
        ),
        CheckConstraint("total_earned >= 0", name="ck_point_account_earned_non_negative"),
        CheckConstraint("total_given >= 0", name="ck_point_account_given_non_negative"),
    )

    user_id: Mapped[str] = mapped_column(String(128), nullable=False)

    # Spendable points, earned from others
    balance: Mapped[int] = mapped_column(default=0, nullable=False)

    # Points available to give this month
    monthly_allowance: Mapped[int] = mapped_column(default=0, nullable=False)

    total_earned: Mapped[int] = mapped_column(default=0, nullable=False)
    total_given: Mapped[int] = mapped_column(default=0, nullable=False)

    # "YYYY-MM"
    last_allowance_reset_month: Mapped[str | None] = mapped_column(
        String(7),
        nullable=True,
    )

    version: Mapped[int] = mapped_column(nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<PointAccount {self.user_id} balance={self.balance} "
            f"allowance={self.monthly_allowance}>"
        )
