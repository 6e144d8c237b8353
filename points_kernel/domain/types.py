"""
Enumerations shared by the domain, the ORM models and the selectors.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  Models import these; these never
    import models.
"""

from enum import Enum


class TransactionType(str, Enum):
    """Kind of signed point movement recorded in the ledger."""

    RECEIVED = "RECEIVED"
    GIVEN = "GIVEN"
    REDEEMED = "REDEEMED"


# Types whose amounts move ``balance`` (GIVEN moves the allowance pool).
BALANCE_TRANSACTION_TYPES: frozenset[TransactionType] = frozenset({
    TransactionType.RECEIVED,
    TransactionType.REDEEMED,
})


class Visibility(str, Enum):
    """Audience of a recognition post."""

    PUBLIC = "PUBLIC"
    TEAM = "TEAM"
    PRIVATE = "PRIVATE"


class BudgetRequestStatus(str, Enum):
    """Budget grant request lifecycle states."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


BUDGET_REQUEST_TRANSITIONS: dict[BudgetRequestStatus, frozenset[BudgetRequestStatus]] = {
    BudgetRequestStatus.PENDING: frozenset({
        BudgetRequestStatus.APPROVED,
        BudgetRequestStatus.REJECTED,
    }),
    BudgetRequestStatus.APPROVED: frozenset(),
    BudgetRequestStatus.REJECTED: frozenset(),
}

TERMINAL_BUDGET_REQUEST_STATUSES: frozenset[BudgetRequestStatus] = frozenset(
    status for status, targets in BUDGET_REQUEST_TRANSITIONS.items() if not targets
)


class RedemptionStatus(str, Enum):
    """Redemption request states.

    The kernel only ever writes PENDING; the fulfillment workflow owns the rest.
    """

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    FULFILLED = "FULFILLED"
    REJECTED = "REJECTED"
