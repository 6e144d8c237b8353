"""Tests for the typed exception hierarchy (points_kernel/exceptions.py)."""

import pytest

from points_kernel import exceptions as exc


def _all_exception_classes():
    return [
        obj for obj in vars(exc).values()
        if isinstance(obj, type) and issubclass(obj, exc.PointsKernelError)
    ]


class TestHierarchy:
    def test_codes_are_unique(self):
        codes = [cls.code for cls in _all_exception_classes()]
        assert len(codes) == len(set(codes))

    @pytest.mark.parametrize(
        "cls,family",
        [
            (exc.InsufficientAllowanceError, exc.BusinessRuleError),
            (exc.InsufficientBudgetError, exc.BusinessRuleError),
            (exc.AlreadyProcessedError, exc.BusinessRuleError),
            (exc.InvalidAmountError, exc.LedgerValidationError),
            (exc.SelfRecognitionError, exc.LedgerValidationError),
            (exc.InvalidRecipientsError, exc.LedgerValidationError),
            (exc.OptimisticLockError, exc.ConcurrencyError),
            (exc.TransactionTimeoutError, exc.ConcurrencyError),
        ],
    )
    def test_families(self, cls, family):
        assert issubclass(cls, family)

    def test_transient_is_not_business_rule(self):
        assert not issubclass(exc.TransientLedgerError, exc.BusinessRuleError)
        assert not issubclass(exc.TransientLedgerError, exc.ConcurrencyError)


class TestStructuredAttributes:
    def test_insufficient_allowance(self):
        err = exc.InsufficientAllowanceError("u1", 30, 50)
        assert (err.user_id, err.available, err.required) == ("u1", 30, 50)
        assert err.code == "INSUFFICIENT_ALLOWANCE"
        assert "30" in str(err) and "50" in str(err)

    def test_insufficient_budget(self):
        err = exc.InsufficientBudgetError("pos-1", 10, 240)
        assert (err.position_id, err.remaining, err.required) == ("pos-1", 10, 240)

    def test_already_processed(self):
        err = exc.AlreadyProcessedError("req-1", "APPROVED")
        assert err.status == "APPROVED"
        assert err.code == "ALREADY_PROCESSED"

    def test_transient(self):
        err = exc.TransientLedgerError("send_recognition", 5, "stale")
        assert err.attempts == 5
        assert err.code == "TRANSIENT_FAILURE"
