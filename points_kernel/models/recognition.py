"""
Module: points_kernel.models.recognition
Responsibility: ORM persistence for recognition posts.
Architecture position: Kernel > Models.

Invariants enforced:
    - Core fields (sender, recipients, amount, value, message, visibility,
      created_at) are immutable once written (db/immutability.py).
    - comment_count and reactions belong to the social layer and stay mutable.
"""

from datetime import datetime

from sqlalchemy import JSON, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from points_kernel.db.base import Base
from points_kernel.domain.types import Visibility

# Fields the social layer may change after creation
MUTABLE_POST_FIELDS: frozenset[str] = frozenset({"comment_count", "reactions"})


class RecognitionPost(Base):
    """Public record of one successful recognition or approved budget grant."""

    __tablename__ = "recognition_posts"

    __table_args__ = (
        Index("idx_recognition_post_created", "created_at"),
    )

    from_user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    to_user_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False)

    # Points per recipient
    point_amount: Mapped[int] = mapped_column(nullable=False)

    value_id: Mapped[str] = mapped_column(String(128), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False, default="")
    visibility: Mapped[Visibility] = mapped_column(
        String(10),
        nullable=False,
        default=Visibility.PUBLIC.value,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    comment_count: Mapped[int] = mapped_column(default=0, nullable=False)
    reactions: Mapped[dict[str, str]] = mapped_column(JSON, nullable=False, default=dict)

    def __repr__(self) -> str:
        return (
            f"<RecognitionPost {self.id} {self.from_user_id} -> "
            f"{len(self.to_user_ids or [])} x {self.point_amount}>"
        )
