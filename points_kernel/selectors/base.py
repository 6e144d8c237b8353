"""
Module: points_kernel.selectors.base
Responsibility: Abstract base class for all read-only query selectors.
Architecture position: Kernel > Selectors.  May import from models/ and the
    frozen DTOs in domain/dtos.py.  MUST NOT import from services/.

Invariants enforced:
    - Read-only access: selectors accept a Session from the caller and never
      call session.add(), session.delete(), session.flush() or commit().
    - DTO return convention: selectors return frozen dataclasses, not ORM
      instances.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseSelector(ABC):
    """Holds the caller's session; subclasses implement the queries."""

    def __init__(self, session: Session):
        self.session = session
