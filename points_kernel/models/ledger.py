"""
Module: points_kernel.models.ledger
Responsibility: ORM persistence for the append-only ledger of point movements.
Architecture position: Kernel > Models.  May import from db/base.py and domain/types.py.

Invariants enforced:
    - Append-only: UPDATE and DELETE are refused by ORM listeners
      (db/immutability.py).
    - Sign convention: RECEIVED rows are positive, GIVEN and REDEEMED rows
      are negative (ck_point_transaction_sign).

Audit relevance:
    Replaying a user's RECEIVED and REDEEMED rows must reproduce the account
    balance; RECEIVED alone reproduces total_earned, GIVEN reproduces
    total_given.  See LedgerSelector.reconcile_account().
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from points_kernel.db.base import Base
from points_kernel.domain.types import TransactionType


class PointTransaction(Base):
    """One signed point movement for one user."""

    __tablename__ = "point_transactions"

    __table_args__ = (
        CheckConstraint(
            "type IN ('RECEIVED', 'GIVEN', 'REDEEMED')",
            name="ck_point_transaction_type",
        ),
        CheckConstraint(
            "(type = 'RECEIVED' AND amount >= 0) OR (type <> 'RECEIVED' AND amount <= 0)",
            name="ck_point_transaction_sign",
        ),
        Index("idx_point_transaction_user_created", "user_id", "created_at"),
        Index("idx_point_transaction_ref", "ref_id"),
    )

    user_id: Mapped[str] = mapped_column(String(128), nullable=False)

    # Negative for outgoing, positive for incoming
    amount: Mapped[int] = mapped_column(nullable=False)

    type: Mapped[TransactionType] = mapped_column(String(20), nullable=False)

    # RecognitionPost id, RedemptionRequest id or project id
    ref_id: Mapped[str] = mapped_column(String(128), nullable=False)

    from_user_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    project_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<PointTransaction {self.type} {self.user_id} {self.amount:+d}>"
