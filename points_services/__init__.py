"""
points_services -- application-facing layer over the points kernel.

``PointsLedger`` is the facade; ``create_points_ledger`` wires it from
``points_config`` settings.
"""

from points_services.bootstrap import create_points_ledger, retry_policy_from_settings
from points_services.ledger import PointsLedger

__all__ = [
    "PointsLedger",
    "create_points_ledger",
    "retry_policy_from_settings",
]
