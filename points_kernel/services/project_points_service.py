"""
ProjectPointsService -- pays a completed project's points to its team.

Responsibility:
    Applies the overdue penalty from ``domain.project_points``, splits the
    result evenly across the team, credits every member and records the
    payout so it can never happen twice.

Invariants enforced:
    - At most one payout per project (unique ``project_id`` on
      ``project_point_distributions``).
    - Each member receives ``floor(actual / members)``; the remainder is
      not paid.

Failure modes:
    - ProjectAlreadyDistributedError: payout row already exists.
    - ProjectNotEligibleError: no team, or nothing to pay.
"""

from __future__ import annotations

from datetime import date, timezone, tzinfo

from sqlalchemy import select
from sqlalchemy.orm import Session

from points_kernel.domain.clock import Clock
from points_kernel.domain.dtos import ProjectDistributionResult, ProjectSnapshot
from points_kernel.domain.project_points import calculate_project_points, split_evenly
from points_kernel.domain.types import TransactionType
from points_kernel.exceptions import (
    ProjectAlreadyDistributedError,
    ProjectNotEligibleError,
)
from points_kernel.logging_config import get_logger
from points_kernel.models.ledger import PointTransaction
from points_kernel.models.project import ProjectPointDistribution
from points_kernel.services.account_service import AccountService
from points_kernel.services.base import BaseService
from points_kernel.services.config_service import PointsConfigProvider

logger = get_logger("services.project_points")


def _describe(project: ProjectSnapshot, penalty_percent: int) -> str:
    if penalty_percent:
        return f"Project {project.name} completed ({penalty_percent}% overdue penalty)"
    return f"Project {project.name} completed"


class ProjectPointsService(BaseService):
    def __init__(
        self,
        session: Session,
        clock: Clock,
        config: PointsConfigProvider,
        tz: tzinfo = timezone.utc,
    ):
        super().__init__(session)
        self._clock = clock
        self._config = config
        self._accounts = AccountService(session, clock, tz)

    def distribute(
        self,
        project: ProjectSnapshot,
        completion_date: date,
    ) -> ProjectDistributionResult:
        existing = self.session.execute(
            select(ProjectPointDistribution.id).where(
                ProjectPointDistribution.project_id == project.id
            )
        ).first()
        if existing is not None:
            raise ProjectAlreadyDistributedError(project.id)

        members = list(dict.fromkeys(project.team_member_ids))
        if not members:
            raise ProjectNotEligibleError(project.id, "project has no team members")
        if project.point_budget <= 0:
            raise ProjectNotEligibleError(project.id, "project has no point budget")

        calc = calculate_project_points(project.point_budget, project.end_date, completion_date)
        per_member = split_evenly(calc.actual_points, len(members))

        now = self._clock.now()
        self.session.add(ProjectPointDistribution(
            project_id=project.id,
            total_budget=project.point_budget,
            actual_points=calc.actual_points,
            points_per_member=per_member,
            overdue_days=calc.overdue_days,
            penalty_percent=calc.penalty_percent,
            member_count=len(members),
            completion_date=completion_date,
            created_at=now,
        ))

        if per_member > 0:
            base = self._config.get(self.session).monthly_allowance_base
            accounts = self._accounts.load_accounts(members)
            description = _describe(project, calc.penalty_percent)
            for user_id in members:
                self._accounts.credit(accounts, user_id, per_member, base)
                self.session.add(PointTransaction(
                    user_id=user_id,
                    amount=per_member,
                    type=TransactionType.RECEIVED.value,
                    ref_id=project.id,
                    project_id=project.id,
                    description=description,
                    created_at=now,
                ))

        self.session.flush()

        logger.info(
            "project_points_distributed",
            extra={
                "project_id": project.id,
                "total_budget": project.point_budget,
                "actual_points": calc.actual_points,
                "points_per_member": per_member,
                "overdue_days": calc.overdue_days,
                "member_count": len(members),
            },
        )
        return ProjectDistributionResult(
            project_id=project.id,
            total_budget=project.point_budget,
            actual_points=calc.actual_points,
            points_per_member=per_member,
            overdue_days=calc.overdue_days,
            penalty_percent=calc.penalty_percent,
            member_count=len(members),
        )
