"""
points_services.ledger -- PointsLedger, the caller-facing facade.

Responsibility:
    The single entry point the HR platform's application layer calls.
    Validates inputs, then runs each kernel operation as one atomic
    transaction through TransactionRunner.  Read operations go through
    LedgerSelector in a short read-only session.

Architecture position:
    Services -- imperative shell over the kernel.  This module wires kernel
    services together; kernel services never construct each other outside
    their own helpers.

Invariants enforced:
    - Validation errors are raised before any session is opened.
    - Every write operation is exactly one TransactionRunner.run() call.
    - The config cache is invalidated only after the change committed.

Usage:
    ledger = create_points_ledger()           # see points_services.bootstrap
    result = ledger.send_recognition("u1", ["u2"], 50, "teamwork", "Thanks!")
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, timezone, tzinfo
from uuid import UUID

from sqlalchemy.orm import Session, sessionmaker

from points_kernel.domain.clock import Clock, SystemClock
from points_kernel.domain.dtos import (
    AccountSnapshot,
    AllowanceState,
    BudgetApprovalResult,
    BudgetRequestView,
    PointsPolicy,
    PositionBudgetView,
    ProjectDistributionResult,
    ProjectSnapshot,
    ReconciliationReport,
    RecognitionPostView,
    RecognitionResult,
    RedemptionResult,
    RedemptionView,
    Reward,
    TransactionView,
)
from points_kernel.domain.project_points import (
    ProjectPointsCalculation,
)
from points_kernel.domain.project_points import (
    calculate_project_points as _calculate_project_points,
)
from points_kernel.domain.types import BudgetRequestStatus, Visibility
from points_kernel.domain.validation import (
    require_positive_amount,
    require_project,
    require_recipients,
    require_reward,
    require_visibility,
)
from points_kernel.exceptions import InvalidAmountError
from points_kernel.logging_config import LogContext, get_logger
from points_kernel.selectors.ledger_selector import (
    DEFAULT_FEED_LIMIT,
    DEFAULT_HISTORY_LIMIT,
    LedgerSelector,
)
from points_kernel.services.account_service import AccountService
from points_kernel.services.budget_grant_service import BudgetGrantService
from points_kernel.services.config_service import ConfigService, PointsConfigProvider
from points_kernel.services.position_budget_service import PositionBudgetService
from points_kernel.services.project_points_service import ProjectPointsService
from points_kernel.services.recognition_service import RecognitionService
from points_kernel.services.redemption_service import RedemptionService
from points_kernel.services.transaction_runner import RetryPolicy, TransactionRunner

logger = get_logger("services.ledger")


def _require_non_negative(field: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidAmountError(field, value)
    return value


class PointsLedger:
    """Atomic points operations for recognition, budget grants and rewards.

    Contract:
        Actor ids are opaque strings already authenticated and authorized
        by the caller.  Every write returns a frozen result DTO.

    Guarantees:
        - A failed operation leaves no partial writes.
        - Conflicting concurrent operations are retried up to the policy
          bound, then fail with TransientLedgerError.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Clock | None = None,
        config_provider: PointsConfigProvider | None = None,
        retry_policy: RetryPolicy | None = None,
        tz: tzinfo = timezone.utc,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._config = config_provider or PointsConfigProvider()
        self._runner = TransactionRunner(session_factory, retry_policy)
        self._tz = tz

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def config_provider(self) -> PointsConfigProvider:
        return self._config

    # =========================================================================
    # Recognition
    # =========================================================================

    def send_recognition(
        self,
        from_user_id: str,
        to_user_ids: Sequence[str],
        amount_per_person: int,
        value_id: str,
        message: str,
        visibility: Visibility | str = Visibility.PUBLIC,
    ) -> RecognitionResult:
        require_positive_amount("amount_per_person", amount_per_person)
        recipients = require_recipients(to_user_ids, sender_id=from_user_id)
        visibility = require_visibility(visibility)

        def work(session: Session) -> RecognitionResult:
            return RecognitionService(session, self._clock, self._config, self._tz).send_recognition(
                from_user_id, recipients, amount_per_person, value_id, message, visibility
            )

        with LogContext.bind(actor_id=from_user_id):
            return self._runner.run("send_recognition", work)

    # =========================================================================
    # Budget grants
    # =========================================================================

    def request_budget_points(
        self,
        from_user_id: str,
        position_id: str,
        to_user_ids: Sequence[str],
        amount: int,
        value_id: str,
        message: str,
    ) -> UUID:
        require_positive_amount("amount", amount)
        recipients = require_recipients(to_user_ids)

        def work(session: Session) -> UUID:
            return BudgetGrantService(session, self._clock, self._config, self._tz).request_budget_points(
                from_user_id, position_id, recipients, amount, value_id, message
            )

        with LogContext.bind(actor_id=from_user_id):
            return self._runner.run("request_budget_points", work)

    def approve_budget_request(
        self,
        request_id: UUID,
        adjusted_amount: int | None = None,
        admin_note: str | None = None,
    ) -> BudgetApprovalResult:
        if adjusted_amount is not None:
            require_positive_amount("adjusted_amount", adjusted_amount)

        def work(session: Session) -> BudgetApprovalResult:
            return BudgetGrantService(session, self._clock, self._config, self._tz).approve_budget_request(
                request_id, adjusted_amount, admin_note
            )

        with LogContext.bind(request_id=str(request_id)):
            return self._runner.run("approve_budget_request", work)

    def reject_budget_request(
        self,
        request_id: UUID,
        admin_note: str | None = None,
    ) -> None:
        def work(session: Session) -> None:
            BudgetGrantService(session, self._clock, self._config, self._tz).reject_budget_request(
                request_id, admin_note
            )

        with LogContext.bind(request_id=str(request_id)):
            self._runner.run("reject_budget_request", work)

    def configure_position_budget(
        self,
        position_id: str,
        has_point_budget: bool,
        yearly_point_budget: int,
        remaining_point_budget: int | None = None,
    ) -> PositionBudgetView:
        _require_non_negative("yearly_point_budget", yearly_point_budget)
        if remaining_point_budget is not None:
            _require_non_negative("remaining_point_budget", remaining_point_budget)

        def work(session: Session) -> PositionBudgetView:
            return PositionBudgetService(session, self._clock).configure(
                position_id, has_point_budget, yearly_point_budget, remaining_point_budget
            )

        return self._runner.run("configure_position_budget", work)

    # =========================================================================
    # Redemption
    # =========================================================================

    def redeem_reward(self, user_id: str, reward: Reward) -> RedemptionResult:
        require_reward(reward)

        def work(session: Session) -> RedemptionResult:
            return RedemptionService(session, self._clock, self._tz).redeem_reward(user_id, reward)

        with LogContext.bind(actor_id=user_id):
            return self._runner.run("redeem_reward", work)

    # =========================================================================
    # Allowance
    # =========================================================================

    def check_and_reset_allowance(self, user_id: str) -> AllowanceState:
        """Eager, idempotent allowance reset; creates the account if needed."""

        def work(session: Session) -> AllowanceState:
            base = self._config.get(session).monthly_allowance_base
            return AccountService(session, self._clock, self._tz).check_and_reset_allowance(
                user_id, base
            )

        with LogContext.bind(actor_id=user_id):
            return self._runner.run("check_and_reset_allowance", work)

    # =========================================================================
    # Projects
    # =========================================================================

    @staticmethod
    def calculate_project_points(
        point_budget: int,
        end_date: date,
        completion_date: date,
    ) -> ProjectPointsCalculation:
        _require_non_negative("point_budget", point_budget)
        return _calculate_project_points(point_budget, end_date, completion_date)

    def distribute_project_points(
        self,
        project: ProjectSnapshot,
        completion_date: date,
    ) -> ProjectDistributionResult:
        require_project(project)

        def work(session: Session) -> ProjectDistributionResult:
            return ProjectPointsService(session, self._clock, self._config, self._tz).distribute(
                project, completion_date
            )

        return self._runner.run("distribute_project_points", work)

    # =========================================================================
    # Points configuration
    # =========================================================================

    def update_points_config(
        self,
        *,
        monthly_allowance_base: int,
        year: int | None = None,
        project_points_budget: int = 0,
        manager_budget_total: int = 0,
        point_to_mnt: int = 0,
    ) -> PointsPolicy:
        _require_non_negative("monthly_allowance_base", monthly_allowance_base)
        _require_non_negative("project_points_budget", project_points_budget)
        _require_non_negative("manager_budget_total", manager_budget_total)
        _require_non_negative("point_to_mnt", point_to_mnt)

        def work(session: Session) -> PointsPolicy:
            return ConfigService(session, self._clock).update_config(
                monthly_allowance_base=monthly_allowance_base,
                year=year,
                project_points_budget=project_points_budget,
                manager_budget_total=manager_budget_total,
                point_to_mnt=point_to_mnt,
            )

        policy = self._runner.run("update_points_config", work)
        self._config.invalidate()
        return policy

    def get_points_config(self) -> PointsPolicy:
        with self._read() as session:
            return self._config.get(session)

    # =========================================================================
    # Reads
    # =========================================================================

    def get_account(self, user_id: str) -> AccountSnapshot | None:
        with self._read() as session:
            return LedgerSelector(session).get_account(user_id)

    def get_history(self, user_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> list[TransactionView]:
        with self._read() as session:
            return LedgerSelector(session).get_history(user_id, limit)

    def get_feed(self, limit: int = DEFAULT_FEED_LIMIT) -> list[RecognitionPostView]:
        with self._read() as session:
            return LedgerSelector(session).get_feed(limit)

    def get_budget_request(self, request_id: UUID) -> BudgetRequestView | None:
        with self._read() as session:
            return LedgerSelector(session).get_budget_request(request_id)

    def list_budget_requests(
        self,
        status: BudgetRequestStatus | str | None = None,
    ) -> list[BudgetRequestView]:
        with self._read() as session:
            return LedgerSelector(session).list_budget_requests(status)

    def get_position_budget(self, position_id: str) -> PositionBudgetView | None:
        with self._read() as session:
            return LedgerSelector(session).get_position_budget(position_id)

    def list_redemptions(self, user_id: str) -> list[RedemptionView]:
        with self._read() as session:
            return LedgerSelector(session).list_redemptions(user_id)

    def reconcile_account(self, user_id: str) -> ReconciliationReport:
        with self._read() as session:
            report = LedgerSelector(session).reconcile_account(user_id)
        if not report.is_consistent:
            logger.error(
                "reconciliation_mismatch",
                extra={
                    "user_id": user_id,
                    "balance": report.balance,
                    "replayed_balance": report.replayed_balance,
                    "total_earned": report.total_earned,
                    "replayed_earned": report.replayed_earned,
                    "total_given": report.total_given,
                    "replayed_given": report.replayed_given,
                },
            )
        return report

    def _read(self) -> Session:
        # Session is a context manager; closing it ends the read transaction.
        return self._session_factory()
