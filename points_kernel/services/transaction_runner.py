"""
TransactionRunner -- atomic execution with bounded optimistic retry.

Responsibility:
    Runs one ledger operation as a single database transaction.  Every
    attempt gets a fresh session, performs the complete read-decide-write
    sequence, and commits.  Conflicts roll the attempt back and start over
    from the first read, because every in-memory decision ("is there enough
    allowance?") was made against a snapshot that may now be stale.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.  The only place in
    the kernel that calls ``session.commit()`` or ``session.rollback()``.

Invariants enforced:
    - Atomicity: either every write of an attempt commits, or none does.
    - MAX_ATTEMPTS: retries are bounded; exhaustion raises
      TransientLedgerError, never loops forever.
    - Business-rule and validation errors are never retried.
    - A timed-out attempt is rolled back and treated as a conflict.

Failure modes:
    - TransientLedgerError after ``max_attempts`` conflicting attempts.
    - Any PointsKernelError that is not a ConcurrencyError propagates
      unchanged on the first occurrence.

Conflict classification:
    StaleDataError       -- optimistic version check failed (row changed)
    IntegrityError       -- only a unique-key violation (concurrent first-time
                            insert); NOT NULL and CHECK failures propagate
    OperationalError     -- lock wait timeout, deadlock, "database is locked",
                            dropped connection
    DBAPIError           -- only when SQLAlchemy flagged the connection invalid
    ConcurrencyError     -- raised by kernel code (e.g. attempt timeout)
"""

from __future__ import annotations

import random
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from points_kernel.exceptions import (
    ConcurrencyError,
    TransactionTimeoutError,
    TransientLedgerError,
)
from points_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.transaction_runner")

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Bounds for TransactionRunner.

    Attributes:
        max_attempts: Total attempts including the first one.
        base_delay: Backoff before the second attempt, in seconds.
        max_delay: Upper bound for a single backoff sleep.
        attempt_timeout: Wall-clock budget of one attempt, in seconds.
        jitter: Fraction of the delay randomised to spread out retries.
    """

    max_attempts: int = 5
    base_delay: float = 0.02
    max_delay: float = 1.0
    attempt_timeout: float = 10.0
    jitter: float = 0.5

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be non-negative")
        if self.attempt_timeout <= 0:
            raise ValueError("attempt_timeout must be positive")

    def delay_for(self, attempt: int) -> float:
        """Backoff after the given (1-based) failed attempt."""
        delay = min(self.max_delay, self.base_delay * (2 ** (attempt - 1)))
        if self.jitter:
            delay *= 1 - self.jitter + random.random() * self.jitter
        return delay


_UNIQUE_VIOLATION_PGCODE = "23505"
_UNIQUE_VIOLATION_MESSAGES = (
    "UNIQUE constraint failed",
    "duplicate key value violates unique constraint",
)


def is_unique_violation(exc: IntegrityError) -> bool:
    """True when the driver reports a duplicate key rather than another constraint."""
    orig = exc.orig
    if getattr(orig, "pgcode", None) == _UNIQUE_VIOLATION_PGCODE:
        return True
    if getattr(orig, "sqlite_errorname", None) in (
        "SQLITE_CONSTRAINT_UNIQUE",
        "SQLITE_CONSTRAINT_PRIMARYKEY",
    ):
        return True
    message = str(orig)
    return any(marker in message for marker in _UNIQUE_VIOLATION_MESSAGES)


def is_conflict(exc: BaseException) -> bool:
    """True when ``exc`` means "another transaction got there first"."""
    if isinstance(exc, IntegrityError):
        return is_unique_violation(exc)
    if isinstance(exc, (ConcurrencyError, StaleDataError, OperationalError)):
        return True
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    return False


class TransactionRunner:
    """Executes ``work(session)`` atomically with bounded retry.

    Contract:
        ``work`` receives a new Session per attempt and must do all of its
        reads and writes through it.  It must not commit.  It may be called
        more than once, so it must not have side effects outside the
        session.

    Guarantees:
        - The returned value comes from the attempt that committed.
        - No partial writes are ever visible.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self._session_factory = session_factory
        self._policy = policy or RetryPolicy()
        self._sleep = sleep
        self._monotonic = monotonic

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    def run(self, operation: str, work: Callable[[Session], T]) -> T:
        """Run ``work`` in a transaction, retrying on conflict.

        Raises:
            TransientLedgerError: every attempt conflicted.
            PointsKernelError: business rule or validation failure, unretried.
        """
        policy = self._policy
        last_error: BaseException | None = None

        with LogContext.bind(operation=operation):
            for attempt in range(1, policy.max_attempts + 1):
                try:
                    result = self._attempt(operation, work)
                except Exception as exc:
                    if not is_conflict(exc):
                        raise
                    last_error = exc
                    if attempt == policy.max_attempts:
                        break
                    delay = policy.delay_for(attempt)
                    logger.info(
                        "transaction_conflict_retry",
                        extra={
                            "attempt": attempt,
                            "max_attempts": policy.max_attempts,
                            "delay": round(delay, 4),
                            "conflict_type": type(exc).__name__,
                        },
                    )
                    self._sleep(delay)
                    continue

                if attempt > 1:
                    logger.info(
                        "transaction_committed_after_retry",
                        extra={"attempts": attempt},
                    )
                return result

            logger.error(
                "transaction_retries_exhausted",
                extra={
                    "attempts": policy.max_attempts,
                    "conflict_type": type(last_error).__name__,
                },
            )
            raise TransientLedgerError(
                operation, policy.max_attempts, str(last_error)
            ) from last_error

    def _attempt(self, operation: str, work: Callable[[Session], T]) -> T:
        session = self._session_factory()
        started = self._monotonic()
        try:
            self._apply_statement_timeout(session)
            result = work(session)
            session.flush()
            elapsed = self._monotonic() - started
            if elapsed > self._policy.attempt_timeout:
                raise TransactionTimeoutError(
                    operation, elapsed, self._policy.attempt_timeout
                )
            session.commit()
            return result
        except BaseException:
            session.rollback()
            raise
        finally:
            session.close()

    def _apply_statement_timeout(self, session: Session) -> None:
        bind = session.get_bind()
        if bind.dialect.name == "postgresql":
            millis = int(self._policy.attempt_timeout * 1000)
            session.execute(text(f"SET LOCAL statement_timeout = {millis}"))
