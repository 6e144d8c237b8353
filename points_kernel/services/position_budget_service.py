"""
PositionBudgetService -- budget subset of HR Position master data.

The ledger does not own positions.  HR pushes a position's budget fields
here; the ledger only decrements ``remaining_point_budget`` on approval.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from points_kernel.domain.clock import Clock
from points_kernel.domain.dtos import PositionBudgetView
from points_kernel.logging_config import get_logger
from points_kernel.models.budget import PositionBudget
from points_kernel.services.base import BaseService

logger = get_logger("services.position_budget")


class PositionBudgetService(BaseService):
    def __init__(self, session: Session, clock: Clock):
        super().__init__(session)
        self._clock = clock

    def configure(
        self,
        position_id: str,
        has_point_budget: bool,
        yearly_point_budget: int,
        remaining_point_budget: int | None = None,
    ) -> PositionBudgetView:
        """Create or overwrite the budget of one position.

        ``remaining_point_budget=None`` means "the full yearly budget is
        still available".
        """
        budget = self.session.execute(
            select(PositionBudget)
            .where(PositionBudget.position_id == position_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

        now = self._clock.now()
        created = budget is None
        if created:
            budget = PositionBudget(position_id=position_id, created_at=now)
            self.session.add(budget)
        else:
            budget.updated_at = now

        budget.has_point_budget = has_point_budget
        budget.yearly_point_budget = yearly_point_budget
        budget.remaining_point_budget = remaining_point_budget
        self.session.flush()

        logger.info(
            "position_budget_configured",
            extra={
                "position_id": position_id,
                "was_created": created,
                "has_point_budget": has_point_budget,
                "yearly_point_budget": yearly_point_budget,
                "remaining_point_budget": remaining_point_budget,
            },
        )
        return PositionBudgetView.from_model(budget)
