"""
Allowance -- monthly giving allowance rules.

Responsibility:
    Computes the year-month token for "now" in the service timezone and
    decides whether an account's allowance is stale and must be reset to the
    current base before it is spent.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - An allowance is reset at most once per calendar month.
    - A reset always sets the allowance to the base in force at the time of
      the reset, never adds to the leftover amount.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo

DEFAULT_MONTHLY_ALLOWANCE_BASE = 1000


def month_token(moment: datetime, tz: tzinfo = timezone.utc) -> str:
    """Return the ``YYYY-MM`` token of ``moment`` as seen in ``tz``.

    Naive datetimes are taken to be UTC.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(tz).strftime("%Y-%m")


@dataclass(frozen=True)
class AllowanceDecision:
    """Outcome of evaluating an account's allowance against the current month."""

    allowance: int
    month: str
    was_reset: bool


def evaluate_allowance(
    current_allowance: int,
    last_reset_month: str | None,
    current_month: str,
    base: int,
) -> AllowanceDecision:
    """Apply the lazy reset rule.

    A missing or different ``last_reset_month`` means the stored allowance
    belongs to an earlier month and is replaced by ``base``.
    """
    if last_reset_month != current_month:
        return AllowanceDecision(allowance=base, month=current_month, was_reset=True)
    return AllowanceDecision(
        allowance=current_allowance, month=current_month, was_reset=False
    )
