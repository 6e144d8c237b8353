"""
Input validation for ledger operations.

Runs before any transaction starts.  Every check raises a
``LedgerValidationError`` subclass; callers must change the input before
trying again.

Architecture position:
    Kernel > Domain -- pure, zero I/O.
"""

from __future__ import annotations

from collections.abc import Sequence

from points_kernel.domain.dtos import ProjectSnapshot, Reward
from points_kernel.domain.types import Visibility
from points_kernel.exceptions import (
    DuplicateRecipientError,
    EmptyRecipientsError,
    InvalidAmountError,
    InvalidRecipientsError,
    InvalidRewardError,
    InvalidVisibilityError,
    SelfRecognitionError,
)


def _is_int(value: object) -> bool:
    # bool is an int subclass; True is not an amount
    return isinstance(value, int) and not isinstance(value, bool)


def require_positive_amount(field: str, value: object) -> int:
    if not _is_int(value) or value <= 0:
        raise InvalidAmountError(field, value)
    return value


def require_recipients(
    to_user_ids: Sequence[str],
    sender_id: str | None = None,
) -> tuple[str, ...]:
    """Non-empty, duplicate-free, and (for recognition) sender-free."""
    # a bare string is a Sequence too; tuple("bob") would be three recipients
    if isinstance(to_user_ids, (str, bytes)):
        raise InvalidRecipientsError(to_user_ids)
    recipients = tuple(to_user_ids or ())
    if not recipients:
        raise EmptyRecipientsError()
    for user_id in recipients:
        if not isinstance(user_id, str) or not user_id:
            raise InvalidRecipientsError(to_user_ids)
    seen: set[str] = set()
    for user_id in recipients:
        if user_id in seen:
            raise DuplicateRecipientError(user_id)
        seen.add(user_id)
    if sender_id is not None and sender_id in seen:
        raise SelfRecognitionError(sender_id)
    return recipients


def require_visibility(visibility: Visibility | str) -> Visibility:
    try:
        return Visibility(visibility)
    except ValueError:
        raise InvalidVisibilityError(visibility) from None


def require_reward(reward: Reward | None) -> Reward:
    if reward is None or not reward.id:
        raise InvalidRewardError(getattr(reward, "id", None), "reward id is required")
    if not _is_int(reward.cost) or reward.cost < 0:
        raise InvalidRewardError(reward.id, f"cost must be a non-negative integer, got {reward.cost!r}")
    return reward


def require_project(project: ProjectSnapshot) -> ProjectSnapshot:
    if not _is_int(project.point_budget) or project.point_budget < 0:
        raise InvalidAmountError("point_budget", project.point_budget)
    return project
