"""
ORM-Level Immutability Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

The ledger is an audit trail.  Point movements are corrected by new rows,
never by editing old ones, and a budget request that has moved funds (or was
rejected) must never be flipped again.  Services already follow these rules;
this module makes a violation impossible through the ORM as well.

SQLAlchemy fires mapper events before UPDATE/DELETE statements are emitted:

    session.flush()
         |
         v
    [before_update event] --> _check_*() --> ImmutabilityViolationError
         |
         v
    [before_delete event] --> _refuse_delete() --> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity              | When Immutable                  | What stays mutable
--------------------|---------------------------------|-----------------------------
PointTransaction    | ALWAYS                          | nothing
RecognitionPost     | ALWAYS (core fields)            | comment_count, reactions
BudgetPointRequest  | Once status is APPROVED/REJECTED| nothing
RedemptionRequest   | ALWAYS (who, what, snapshot)    | status, note, updated_at
PointAccount        | never deleted                   | all counters (versioned)
PositionBudget      | never deleted                   | budget fields (versioned)

===============================================================================
USAGE
===============================================================================

    from points_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # idempotent, called by create_tables()
"""

from sqlalchemy import event, inspect

from points_kernel.exceptions import ImmutabilityViolationError
from points_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _changed_fields(target) -> set[str]:
    state = inspect(target)
    return {
        attr.key
        for attr in state.attrs
        if attr.history.has_changes()
    }


def _check_transaction_update(mapper, connection, target):
    """Ledger rows are append-only."""
    logger.error(
        "immutability_violation",
        extra={"entity": "PointTransaction", "entity_id": str(target.id)},
    )
    raise ImmutabilityViolationError(
        "PointTransaction", str(target.id), "ledger transactions are append-only"
    )


def _check_post_update(mapper, connection, target):
    """Only social metadata may change on a recognition post."""
    from points_kernel.models.recognition import MUTABLE_POST_FIELDS

    illegal = _changed_fields(target) - MUTABLE_POST_FIELDS
    if illegal:
        logger.error(
            "immutability_violation",
            extra={
                "entity": "RecognitionPost",
                "entity_id": str(target.id),
                "fields": sorted(illegal),
            },
        )
        raise ImmutabilityViolationError(
            "RecognitionPost",
            str(target.id),
            f"core fields are immutable: {', '.join(sorted(illegal))}",
        )


def _check_budget_request_update(mapper, connection, target):
    """A request persisted in a terminal status is frozen."""
    from points_kernel.domain.types import (
        TERMINAL_BUDGET_REQUEST_STATUSES,
        BudgetRequestStatus,
    )

    history = inspect(target).attrs.status.history
    if history.deleted:
        persisted_status = history.deleted[0]
    else:
        persisted_status = target.status

    if BudgetRequestStatus(persisted_status) in TERMINAL_BUDGET_REQUEST_STATUSES:
        logger.error(
            "immutability_violation",
            extra={
                "entity": "BudgetPointRequest",
                "entity_id": str(target.id),
                "status": str(persisted_status),
            },
        )
        raise ImmutabilityViolationError(
            "BudgetPointRequest",
            str(target.id),
            f"request is already {persisted_status}",
        )


def _check_redemption_update(mapper, connection, target):
    """Who redeemed what, and for how much, never changes."""
    illegal = _changed_fields(target) & {"user_id", "reward_id", "reward_snapshot", "created_at"}
    if illegal:
        raise ImmutabilityViolationError(
            "RedemptionRequest",
            str(target.id),
            f"redemption fields are immutable: {', '.join(sorted(illegal))}",
        )


def _refuse_delete(mapper, connection, target):
    entity = type(target).__name__
    logger.error(
        "immutability_violation",
        extra={"entity": entity, "entity_id": str(target.id), "action": "delete"},
    )
    raise ImmutabilityViolationError(entity, str(target.id), "records cannot be deleted")


def _listener_table():
    from points_kernel.models.account import PointAccount
    from points_kernel.models.budget import BudgetPointRequest, PositionBudget
    from points_kernel.models.ledger import PointTransaction
    from points_kernel.models.recognition import RecognitionPost
    from points_kernel.models.redemption import RedemptionRequest

    return [
        (PointTransaction, "before_update", _check_transaction_update),
        (PointTransaction, "before_delete", _refuse_delete),
        (RecognitionPost, "before_update", _check_post_update),
        (RecognitionPost, "before_delete", _refuse_delete),
        (BudgetPointRequest, "before_update", _check_budget_request_update),
        (BudgetPointRequest, "before_delete", _refuse_delete),
        (RedemptionRequest, "before_update", _check_redemption_update),
        (RedemptionRequest, "before_delete", _refuse_delete),
        (PointAccount, "before_delete", _refuse_delete),
        (PositionBudget, "before_delete", _refuse_delete),
    ]


def register_immutability_listeners() -> None:
    """Register all immutability listeners (idempotent)."""
    for target, identifier, fn in _listener_table():
        if not event.contains(target, identifier, fn):
            event.listen(target, identifier, fn)


def unregister_immutability_listeners() -> None:
    """Remove all immutability listeners. FOR TESTING ONLY."""
    for target, identifier, fn in _listener_table():
        if event.contains(target, identifier, fn):
            event.remove(target, identifier, fn)
