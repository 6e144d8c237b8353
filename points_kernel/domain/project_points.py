"""
Project point calculation.

Projects carry a point budget that is paid out to the team on completion.
Late completion costs 1% of the budget per overdue calendar day; at 100 or
more days overdue nothing is paid.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

MAX_OVERDUE_DAYS = 100


@dataclass(frozen=True)
class ProjectPointsCalculation:
    actual_points: int
    overdue_days: int
    penalty_percent: int


def calculate_project_points(
    point_budget: int,
    end_date: date,
    completion_date: date,
) -> ProjectPointsCalculation:
    """Compute the points actually earned for a project.

    Args:
        point_budget: Points promised for on-time completion.
        end_date: Project deadline.
        completion_date: Day the project was completed.
    """
    overdue_days = max(0, (completion_date - end_date).days)

    if overdue_days == 0:
        return ProjectPointsCalculation(point_budget, 0, 0)

    if overdue_days >= MAX_OVERDUE_DAYS:
        return ProjectPointsCalculation(0, overdue_days, 100)

    # Integer arithmetic: floor(budget * (100 - days) / 100)
    actual = point_budget * (MAX_OVERDUE_DAYS - overdue_days) // MAX_OVERDUE_DAYS
    return ProjectPointsCalculation(max(0, actual), overdue_days, overdue_days)


def split_evenly(total: int, member_count: int) -> int:
    """Points per member; the remainder is not paid out."""
    if member_count <= 0:
        return 0
    return total // member_count
