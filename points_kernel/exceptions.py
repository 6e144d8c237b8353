"""
Typed Exception Hierarchy for the Points Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the ledger render user-facing messages ("you only have 30 points
left to give") and decide whether an operation may be retried. Both decisions
must be made by exception TYPE and structured attributes, never by parsing
message strings.

Every exception:
  1. Is a subclass of PointsKernelError (catchable as a group)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries the numeric context needed to render a message

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PointsKernelError (base)
    |
    +-- LedgerValidationError          (rejected before any transaction)
    |   +-- InvalidAmountError
    |   +-- EmptyRecipientsError
    |   +-- DuplicateRecipientError
    |   +-- InvalidRecipientsError
    |   +-- SelfRecognitionError
    |   +-- InvalidRewardError
    |   +-- InvalidVisibilityError
    |
    +-- BusinessRuleError              (raised inside the transaction, never retried)
    |   +-- InsufficientAllowanceError
    |   +-- InsufficientBudgetError
    |   +-- InsufficientBalanceError
    |   +-- NoBudgetConfiguredError
    |   +-- AlreadyProcessedError
    |   +-- RequestNotFoundError
    |   +-- AccountNotFoundError
    |   +-- PositionNotFoundError
    |   +-- ProjectAlreadyDistributedError
    |   +-- ProjectNotEligibleError
    |
    +-- ConcurrencyError               (retried by TransactionRunner)
    |   +-- OptimisticLockError
    |   +-- TransactionTimeoutError
    |
    +-- TransientLedgerError           (retries exhausted -- "try again")
    |
    +-- ImmutabilityViolationError     (append-only / terminal-state breach)

===============================================================================
HANDLING PATTERNS
===============================================================================

    try:
        ledger.send_recognition(sender, [a, b], 50, value_id, message)
    except InsufficientAllowanceError as e:
        show(f"Only {e.available} points left this month")
    except TransientLedgerError:
        show("Busy, please try again")
"""


class PointsKernelError(Exception):
    """Base exception for all points kernel errors."""

    code: str = "POINTS_KERNEL_ERROR"


# Validation errors


class LedgerValidationError(PointsKernelError):
    """Input rejected before any transaction begins."""

    code: str = "LEDGER_VALIDATION_ERROR"


class InvalidAmountError(LedgerValidationError):
    """Amount is not a positive integer."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, field: str, value: object):
        self.field = field
        self.value = value
        super().__init__(f"{field} must be a positive integer, got {value!r}")


class EmptyRecipientsError(LedgerValidationError):
    """Recipient list is empty."""

    code: str = "EMPTY_RECIPIENTS"

    def __init__(self) -> None:
        super().__init__("At least one recipient is required")


class DuplicateRecipientError(LedgerValidationError):
    """The same recipient appears more than once."""

    code: str = "DUPLICATE_RECIPIENT"

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"Recipient listed more than once: {user_id}")


class InvalidRecipientsError(LedgerValidationError):
    """Recipients are not a collection of non-empty user id strings."""

    code: str = "INVALID_RECIPIENTS"

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Recipients must be a list of user ids, got {value!r}")


class SelfRecognitionError(LedgerValidationError):
    """Sender listed among the recipients."""

    code: str = "SELF_RECOGNITION"

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User {user_id} cannot send points to themselves")


class InvalidRewardError(LedgerValidationError):
    """Reward record is incomplete or carries a negative cost."""

    code: str = "INVALID_REWARD"

    def __init__(self, reward_id: str | None, reason: str):
        self.reward_id = reward_id
        self.reason = reason
        super().__init__(f"Invalid reward {reward_id!r}: {reason}")


class InvalidVisibilityError(LedgerValidationError):
    """Visibility is not one of PUBLIC, TEAM, PRIVATE."""

    code: str = "INVALID_VISIBILITY"

    def __init__(self, visibility: object):
        self.visibility = visibility
        super().__init__(f"Invalid visibility: {visibility!r}")


# Business-rule errors


class BusinessRuleError(PointsKernelError):
    """Deterministic rule violation detected inside a transaction."""

    code: str = "BUSINESS_RULE_ERROR"


class InsufficientAllowanceError(BusinessRuleError):
    """Sender's monthly allowance does not cover the transfer."""

    code: str = "INSUFFICIENT_ALLOWANCE"

    def __init__(self, user_id: str, available: int, required: int):
        self.user_id = user_id
        self.available = available
        self.required = required
        super().__init__(
            f"Insufficient allowance for {user_id}: "
            f"required {required}, remaining {available}"
        )


class InsufficientBudgetError(BusinessRuleError):
    """Position budget does not cover the grant."""

    code: str = "INSUFFICIENT_BUDGET"

    def __init__(self, position_id: str, remaining: int, required: int):
        self.position_id = position_id
        self.remaining = remaining
        self.required = required
        super().__init__(
            f"Insufficient budget for position {position_id}: "
            f"required {required}, remaining {remaining}"
        )


class InsufficientBalanceError(BusinessRuleError):
    """User balance does not cover the reward cost."""

    code: str = "INSUFFICIENT_BALANCE"

    def __init__(self, user_id: str, balance: int, required: int):
        self.user_id = user_id
        self.balance = balance
        self.required = required
        super().__init__(
            f"Insufficient balance for {user_id}: "
            f"required {required}, remaining {balance}"
        )


class NoBudgetConfiguredError(BusinessRuleError):
    """Position has no point budget."""

    code: str = "NO_BUDGET_CONFIGURED"

    def __init__(self, position_id: str):
        self.position_id = position_id
        super().__init__(f"Position {position_id} does not have a point budget")


class AlreadyProcessedError(BusinessRuleError):
    """Budget request already reached a terminal status."""

    code: str = "ALREADY_PROCESSED"

    def __init__(self, request_id: str, status: str):
        self.request_id = request_id
        self.status = status
        super().__init__(f"Request {request_id} is already processed ({status})")


class RequestNotFoundError(BusinessRuleError):
    """Budget request does not exist."""

    code: str = "REQUEST_NOT_FOUND"

    def __init__(self, request_id: str):
        self.request_id = request_id
        super().__init__(f"Budget request not found: {request_id}")


class AccountNotFoundError(BusinessRuleError):
    """User has no point account."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"Point account not found for user {user_id}")


class PositionNotFoundError(BusinessRuleError):
    """Position has no budget record."""

    code: str = "POSITION_NOT_FOUND"

    def __init__(self, position_id: str):
        self.position_id = position_id
        super().__init__(f"Position not found: {position_id}")


class ProjectAlreadyDistributedError(BusinessRuleError):
    """Project points were already paid out."""

    code: str = "PROJECT_ALREADY_DISTRIBUTED"

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Points for project {project_id} were already distributed")


class ProjectNotEligibleError(BusinessRuleError):
    """Project has no point budget or no team members."""

    code: str = "PROJECT_NOT_ELIGIBLE"

    def __init__(self, project_id: str, reason: str):
        self.project_id = project_id
        self.reason = reason
        super().__init__(f"Project {project_id} is not eligible: {reason}")


# Concurrency errors


class ConcurrencyError(PointsKernelError):
    """Base exception for transient concurrency conditions."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Row changed under us between read and write."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity: str, detail: str = ""):
        self.entity = entity
        self.detail = detail
        super().__init__(f"Concurrent modification of {entity}: {detail}".rstrip(": "))


class TransactionTimeoutError(ConcurrencyError):
    """Transaction attempt exceeded its wall-clock budget."""

    code: str = "TRANSACTION_TIMEOUT"

    def __init__(self, operation: str, elapsed: float, timeout: float):
        self.operation = operation
        self.elapsed = elapsed
        self.timeout = timeout
        super().__init__(
            f"Attempt of {operation} took {elapsed:.3f}s (limit {timeout:.3f}s)"
        )


class TransientLedgerError(PointsKernelError):
    """Retries exhausted. The caller may try again later."""

    code: str = "TRANSIENT_FAILURE"

    def __init__(self, operation: str, attempts: int, last_error: str):
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"{operation} failed after {attempts} attempt(s), please try again: "
            f"{last_error}"
        )


# Immutability errors


class ImmutabilityViolationError(PointsKernelError):
    """Attempt to modify an append-only or terminal record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify {entity_type} {entity_id}: {reason}"
        )
