"""
RecognitionService -- peer-to-peer point transfers ("give points").

Responsibility:
    Moves points from the sender's monthly allowance into each recipient's
    balance, writes the recognition post and the ledger rows, all inside the
    caller's transaction.

Architecture position:
    Kernel > Services.  Runs inside a TransactionRunner attempt.

Invariants enforced:
    - Conservation: the sender's allowance drops by exactly
      ``amount_per_person * N`` and the recipients' balances rise by the
      same total.
    - Non-negativity: the sufficiency check runs after the lazy allowance
      reset and before any write.
    - Audit: N RECEIVED rows plus one GIVEN row of ``-total`` per transfer.

Failure modes:
    - InsufficientAllowanceError: allowance (after reset) below the total.
    - StaleDataError at flush: a concurrent transfer touched one of the
      accounts; TransactionRunner retries from the start.

Algorithm (all reads, then the decision, then all writes):
    1. Read the points configuration (allowance base) and the month token.
    2. Batch-read the sender and every recipient account.
    3. Synthesize a missing sender; reset a stale sender allowance.
    4. Check ``sender.monthly_allowance >= total``.
    5. Write sender, post, recipients, ledger rows.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import timezone, tzinfo
from uuid import uuid4

from sqlalchemy.orm import Session

from points_kernel.domain.clock import Clock
from points_kernel.domain.dtos import RecognitionResult
from points_kernel.domain.types import TransactionType, Visibility
from points_kernel.exceptions import InsufficientAllowanceError
from points_kernel.logging_config import get_logger
from points_kernel.models.ledger import PointTransaction
from points_kernel.models.recognition import RecognitionPost
from points_kernel.services.account_service import AccountService
from points_kernel.services.base import BaseService
from points_kernel.services.config_service import PointsConfigProvider

logger = get_logger("services.recognition")


class RecognitionService(BaseService):
    def __init__(
        self,
        session: Session,
        clock: Clock,
        config: PointsConfigProvider,
        tz: tzinfo = timezone.utc,
    ):
        super().__init__(session)
        self._clock = clock
        self._config = config
        self._accounts = AccountService(session, clock, tz)

    def send_recognition(
        self,
        from_user_id: str,
        to_user_ids: Sequence[str],
        amount_per_person: int,
        value_id: str,
        message: str,
        visibility: Visibility = Visibility.PUBLIC,
    ) -> RecognitionResult:
        """Transfer ``amount_per_person`` to every recipient.

        Preconditions:
            Inputs passed ``domain.validation``: positive amount, non-empty
            duplicate-free recipients, sender not among them.
        """
        policy = self._config.get(self.session)
        base = policy.monthly_allowance_base
        total = amount_per_person * len(to_user_ids)

        accounts = self._accounts.load_accounts([from_user_id, *to_user_ids])

        sender = accounts.get(from_user_id)
        sender_is_new = sender is None
        if sender_is_new:
            sender = self._accounts.new_account(from_user_id, base)
        else:
            self._accounts.apply_lazy_reset(sender, base)

        # INVARIANT: allowance never negative -- check before any write
        if sender.monthly_allowance < total:
            logger.info(
                "recognition_rejected_insufficient_allowance",
                extra={
                    "from_user_id": from_user_id,
                    "available": sender.monthly_allowance,
                    "required": total,
                },
            )
            raise InsufficientAllowanceError(from_user_id, sender.monthly_allowance, total)

        now = self._clock.now()

        sender.monthly_allowance -= total
        sender.total_given += total
        sender.updated_at = now
        if sender_is_new:
            self.session.add(sender)
            accounts[from_user_id] = sender

        post = RecognitionPost(
            id=uuid4(),
            from_user_id=from_user_id,
            to_user_ids=list(to_user_ids),
            point_amount=amount_per_person,
            value_id=value_id,
            message=message,
            visibility=Visibility(visibility).value,
            created_at=now,
            comment_count=0,
            reactions={},
        )
        self.session.add(post)

        for to_user_id in to_user_ids:
            self._accounts.credit(accounts, to_user_id, amount_per_person, base)
            self.session.add(PointTransaction(
                user_id=to_user_id,
                amount=amount_per_person,
                type=TransactionType.RECEIVED.value,
                ref_id=str(post.id),
                from_user_id=from_user_id,
                created_at=now,
            ))

        self.session.add(PointTransaction(
            user_id=from_user_id,
            amount=-total,
            type=TransactionType.GIVEN.value,
            ref_id=str(post.id),
            created_at=now,
        ))

        self.session.flush()

        logger.info(
            "recognition_sent",
            extra={
                "post_id": str(post.id),
                "from_user_id": from_user_id,
                "recipient_count": len(to_user_ids),
                "amount_per_person": amount_per_person,
                "total": total,
                "sender_remaining_allowance": sender.monthly_allowance,
            },
        )
        return RecognitionResult(
            post_id=post.id,
            total_points=total,
            sender_remaining_allowance=sender.monthly_allowance,
        )
