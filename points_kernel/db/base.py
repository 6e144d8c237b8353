"""
Module: points_kernel.db.base
Responsibility: Declarative base for every ledger table.
Architecture position: Kernel > DB.  Imported by every model; imports no
    other kernel package.

Conventions:
    - Row ids are uuid4 values stored as 36-character strings, so the same
      schema runs on PostgreSQL and on the SQLite test databases.
    - Python ``int`` columns are BIGINT.  Points are whole numbers.
    - ``datetime`` columns are timezone-aware.  Values come from the
      injected Clock, never from a server default.
"""

from datetime import datetime
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import BigInteger, DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID column stored as its canonical text form.

    Bound values may be ``UUID`` objects or strings; strings are parsed so
    that a malformed id fails before it reaches the database.
    """

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if not isinstance(value, PyUUID):
            value = PyUUID(str(value))
        return str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else PyUUID(value)


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
        PyUUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[PyUUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TimestampedBase(Base):
    """Rows that change after insert: accounts, position budgets, redemptions."""

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(nullable=True)


UUID = PyUUID
