"""
Ledger Invariants Contract.

These invariants are structural law.  No points configuration, setting or
caller flag may switch them off.

This module exists solely to declare them.  Enforcement is distributed
across the services, the ORM versioning and check constraints, the
immutability listeners and TransactionRunner.
"""

from enum import Enum, unique


@unique
class LedgerInvariant(str, Enum):
    """Non-configurable guarantees of the points ledger."""

    CONSERVATION = "conservation"
    """A recognition debits the sender's allowance by exactly the sum
    credited to recipients.  An approval debits the position budget by
    exactly the sum credited.  Enforced by the services, one transaction
    per operation."""

    NON_NEGATIVITY = "non_negativity"
    """balance, monthly_allowance and remaining_point_budget never go below
    zero.  Checked before any write and backed by DB check constraints."""

    AUDIT_COMPLETENESS = "audit_completeness"
    """Every balance or allowance change writes PointTransaction rows in the
    same transaction.  Verified by LedgerSelector.reconcile_account."""

    APPEND_ONLY = "append_only"
    """Ledger rows are never updated or deleted; recognition posts keep
    their core fields; settled budget requests are frozen.  Enforced by
    points_kernel.db.immutability."""

    SINGLE_SETTLEMENT = "single_settlement"
    """A budget request moves funds at most once and a project is paid out
    at most once.  Enforced by version checks and unique constraints."""

    MONTHLY_RESET = "monthly_reset"
    """An allowance is reset to the base at most once per calendar month in
    the service timezone.  Enforced by domain.allowance."""


# All invariants as a frozenset for programmatic checks.
ALL_LEDGER_INVARIANTS: frozenset[LedgerInvariant] = frozenset(LedgerInvariant)

# The kernel package may not import from these packages.
# This is enforced by tests/architecture/test_kernel_boundary.py.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "points_services",
    "points_config",
)
