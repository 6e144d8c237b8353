"""
Tests for ORM-level immutability (points_kernel/db/immutability.py).

Rows are written through the ledger, then tampered with through a plain
session; every forbidden flush must raise ImmutabilityViolationError.
"""

import pytest
from sqlalchemy import select

from points_kernel.domain.dtos import Reward
from points_kernel.exceptions import ImmutabilityViolationError
from points_kernel.models.account import PointAccount
from points_kernel.models.budget import BudgetPointRequest
from points_kernel.models.ledger import PointTransaction
from points_kernel.models.recognition import RecognitionPost
from points_kernel.models.redemption import RedemptionRequest


@pytest.fixture
def recognition(ledger, user_id):
    sender, recipient = user_id("s"), user_id("r")
    result = ledger.send_recognition(sender, [recipient], 10, "v", "m")
    return result, sender, recipient


class TestLedgerRows:
    def test_update_refused(self, recognition, session):
        _, sender, _ = recognition
        row = session.execute(
            select(PointTransaction).where(PointTransaction.user_id == sender)
        ).scalar_one()

        row.amount = -1
        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()
        assert exc_info.value.entity_type == "PointTransaction"

    def test_delete_refused(self, recognition, session):
        _, sender, _ = recognition
        row = session.execute(
            select(PointTransaction).where(PointTransaction.user_id == sender)
        ).scalar_one()

        session.delete(row)
        with pytest.raises(ImmutabilityViolationError):
            session.flush()


class TestRecognitionPost:
    def test_social_fields_mutable(self, recognition, session):
        result, _, _ = recognition
        post = session.get(RecognitionPost, result.post_id)

        post.comment_count = 3
        post.reactions = {"u9": "clap"}
        session.flush()
        session.commit()

        assert session.get(RecognitionPost, result.post_id).comment_count == 3

    def test_core_fields_immutable(self, recognition, session):
        result, _, _ = recognition
        post = session.get(RecognitionPost, result.post_id)

        post.point_amount = 999
        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()
        assert "point_amount" in exc_info.value.reason


class TestBudgetRequest:
    def test_settled_request_frozen(self, ledger, user_id, session):
        ledger.configure_position_budget("pos", True, 100)
        request_id = ledger.request_budget_points(user_id(), "pos", [user_id()], 10, "v", "m")
        ledger.approve_budget_request(request_id)

        request = session.get(BudgetPointRequest, request_id)
        request.admin_note = "edited later"
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_pending_request_editable(self, ledger, user_id, session):
        request_id = ledger.request_budget_points(user_id(), "pos", [user_id()], 10, "v", "m")

        request = session.get(BudgetPointRequest, request_id)
        request.message = "typo fixed"
        session.flush()


class TestRedemption:
    def test_snapshot_immutable_status_mutable(self, ledger, fund, user_id, session):
        user = user_id("u")
        fund(user, 50)
        result = ledger.redeem_reward(user, Reward(id="r1", title="Socks", cost=20))

        redemption = session.get(RedemptionRequest, result.redemption_id)
        redemption.status = "FULFILLED"
        session.flush()

        redemption.reward_snapshot = {"title": "Socks", "cost": 1}
        with pytest.raises(ImmutabilityViolationError):
            session.flush()


class TestAccounts:
    def test_delete_refused(self, recognition, session):
        _, sender, _ = recognition
        account = session.execute(
            select(PointAccount).where(PointAccount.user_id == sender)
        ).scalar_one()

        session.delete(account)
        with pytest.raises(ImmutabilityViolationError):
            session.flush()
