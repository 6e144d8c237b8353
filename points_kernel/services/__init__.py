"""Services for the points kernel (write side)."""

from points_kernel.services.account_service import AccountService
from points_kernel.services.budget_grant_service import BudgetGrantService
from points_kernel.services.config_service import ConfigService, PointsConfigProvider
from points_kernel.services.position_budget_service import PositionBudgetService
from points_kernel.services.project_points_service import ProjectPointsService
from points_kernel.services.recognition_service import RecognitionService
from points_kernel.services.redemption_service import RedemptionService
from points_kernel.services.transaction_runner import (
    RetryPolicy,
    TransactionRunner,
    is_conflict,
)

__all__ = [
    "AccountService",
    "BudgetGrantService",
    "ConfigService",
    "PointsConfigProvider",
    "PositionBudgetService",
    "ProjectPointsService",
    "RecognitionService",
    "RedemptionService",
    "RetryPolicy",
    "TransactionRunner",
    "is_conflict",
]
