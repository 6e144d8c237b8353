"""ORM models for the points ledger."""

from points_kernel.models.account import PointAccount
from points_kernel.models.budget import BudgetPointRequest, PositionBudget
from points_kernel.models.config import MAIN_CONFIG_KEY, PointsConfigRecord
from points_kernel.models.ledger import PointTransaction
from points_kernel.models.project import ProjectPointDistribution
from points_kernel.models.recognition import RecognitionPost
from points_kernel.models.redemption import RedemptionRequest

__all__ = [
    "PointAccount",
    "PointTransaction",
    "RecognitionPost",
    "BudgetPointRequest",
    "PositionBudget",
    "RedemptionRequest",
    "PointsConfigRecord",
    "MAIN_CONFIG_KEY",
    "ProjectPointDistribution",
]
