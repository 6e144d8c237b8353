"""
AccountService -- point account reads, lazy creation and allowance resets.

Responsibility:
    The single place that creates PointAccount rows and applies the monthly
    allowance reset.  Engines call it inside their transaction.

Architecture position:
    Kernel > Services.  Runs inside a TransactionRunner attempt.

Invariants enforced:
    - Accounts are created lazily on first use and never deleted.
    - A new account starts with the current allowance base for the current
      month, whether it is created as a sender or a receiver.
    - Allowance reset is decided by domain.allowance and applied in the
      same transaction that spends it.
    - ``ensure_account`` creates with one conditional INSERT ... ON CONFLICT
      DO NOTHING; two concurrent callers cannot both "win" the creation.

Failure modes:
    - StaleDataError at flush if an account changed after it was read.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import timezone, tzinfo
from uuid import uuid4

from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from points_kernel.domain.allowance import (
    AllowanceDecision,
    evaluate_allowance,
    month_token,
)
from points_kernel.domain.clock import Clock
from points_kernel.domain.dtos import AllowanceState
from points_kernel.logging_config import get_logger
from points_kernel.models.account import PointAccount
from points_kernel.services.base import BaseService
from points_kernel.services.transaction_runner import is_unique_violation

logger = get_logger("services.account")


def _insert_if_absent(dialect_name: str):
    """Dialect-specific INSERT construct supporting ON CONFLICT DO NOTHING."""
    if dialect_name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert as pg_insert

        return pg_insert
    if dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert as sqlite_insert

        return sqlite_insert
    return None


class AccountService(BaseService):
    def __init__(self, session: Session, clock: Clock, tz: tzinfo = timezone.utc):
        super().__init__(session)
        self._clock = clock
        self._tz = tz

    def current_month(self) -> str:
        return month_token(self._clock.now(), self._tz)

    def get_account(self, user_id: str) -> PointAccount | None:
        return self.session.execute(
            select(PointAccount)
            .where(PointAccount.user_id == user_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def load_accounts(self, user_ids: Iterable[str]) -> dict[str, PointAccount]:
        """Batch-read accounts; users without an account are absent from the map."""
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return {}
        rows = self.session.execute(
            select(PointAccount)
            .where(PointAccount.user_id.in_(ids))
            .execution_options(populate_existing=True)
        ).scalars()
        return {account.user_id: account for account in rows}

    def new_account(self, user_id: str, allowance_base: int) -> PointAccount:
        """Build (but do not add) a fresh account for the current month."""
        return PointAccount(
            user_id=user_id,
            balance=0,
            monthly_allowance=allowance_base,
            total_earned=0,
            total_given=0,
            last_allowance_reset_month=self.current_month(),
            created_at=self._clock.now(),
        )

    def apply_lazy_reset(self, account: PointAccount, allowance_base: int) -> AllowanceDecision:
        """Reset a stale allowance in memory; written when the transaction flushes."""
        decision = evaluate_allowance(
            account.monthly_allowance,
            account.last_allowance_reset_month,
            self.current_month(),
            allowance_base,
        )
        if decision.was_reset:
            logger.info(
                "allowance_reset",
                extra={
                    "user_id": account.user_id,
                    "previous_month": account.last_allowance_reset_month,
                    "month": decision.month,
                    "previous_allowance": account.monthly_allowance,
                    "allowance": decision.allowance,
                },
            )
            account.monthly_allowance = decision.allowance
            account.last_allowance_reset_month = decision.month
            account.updated_at = self._clock.now()
        return decision

    def credit(
        self,
        accounts: dict[str, PointAccount],
        user_id: str,
        amount: int,
        allowance_base: int,
    ) -> PointAccount:
        """Add ``amount`` to a user's balance and lifetime earnings, creating the account if needed."""
        account = accounts.get(user_id)
        if account is None:
            account = self.new_account(user_id, allowance_base)
            self.session.add(account)
            accounts[user_id] = account
        else:
            account.updated_at = self._clock.now()
        account.balance += amount
        account.total_earned += amount
        return account

    def ensure_account(self, user_id: str, allowance_base: int) -> tuple[PointAccount, bool]:
        """Create the account if absent; return it and whether it was created."""
        values = {
            "id": uuid4(),
            "user_id": user_id,
            "balance": 0,
            "monthly_allowance": allowance_base,
            "total_earned": 0,
            "total_given": 0,
            "last_allowance_reset_month": self.current_month(),
            "version": 1,
            "created_at": self._clock.now(),
        }
        dialect_insert = _insert_if_absent(self.session.get_bind().dialect.name)

        if dialect_insert is not None:
            stmt = dialect_insert(PointAccount.__table__).values(**values).on_conflict_do_nothing(
                index_elements=["user_id"]
            )
            created = self.session.execute(stmt).rowcount == 1
        else:
            savepoint = self.session.begin_nested()
            try:
                self.session.execute(insert(PointAccount.__table__).values(**values))
                savepoint.commit()
                created = True
            except IntegrityError as exc:
                savepoint.rollback()
                if not is_unique_violation(exc):
                    raise
                created = False

        account = self.get_account(user_id)
        if created:
            logger.info("account_created", extra={"user_id": user_id})
        return account, created

    def check_and_reset_allowance(self, user_id: str, allowance_base: int) -> AllowanceState:
        """Eager allowance path: create the account if needed, then reset if stale.

        Idempotent within a month; a second call changes nothing.
        """
        account, created = self.ensure_account(user_id, allowance_base)
        decision = self.apply_lazy_reset(account, allowance_base)
        if decision.was_reset:
            self.session.flush()
        return AllowanceState(
            user_id=user_id,
            monthly_allowance=account.monthly_allowance,
            month=account.last_allowance_reset_month,
            created=created,
            was_reset=decision.was_reset,
        )
