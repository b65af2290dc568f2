"""
Ledger error taxonomy.

- Validation errors are raised before any mutation; the operation is rejected whole.
- Authorization errors come from the group membership gate; the core never runs.
- Arithmetic errors mean a broken invariant; nothing in flight may be persisted.
- Payment rail errors are caught inside settle-up and turned into a partial result.
"""

from fastapi import HTTPException, status


class LedgerError(Exception):
    """Base class for every ledger failure."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str | None = None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


# ===== VALIDATION =====

class ExpenseValidationError(LedgerError):
    """Expense rejected before any balance was touched."""
    status_code = status.HTTP_400_BAD_REQUEST


class ExpenseAmountIsZero(ExpenseValidationError):
    pass


class ExpenseWithoutDistributionMembers(ExpenseValidationError):
    pass


class DistributionMemberNotInGroup(ExpenseValidationError):
    def __init__(self, address: str):
        super().__init__(f"Distribution member {address} is not in the group")
        self.address = address


class ExpenseWithoutPayer(ExpenseValidationError):
    pass


class DuplicateDistributionMember(ExpenseValidationError):
    def __init__(self, address: str):
        super().__init__(f"Distribution member {address} appears more than once")
        self.address = address


class WeightedDistributionMismatch(ExpenseValidationError):
    def __init__(self, distributed: int, total_amount: int):
        super().__init__(
            f"Weighted distribution sums to {distributed}, expected {total_amount}"
        )
        self.distributed = distributed
        self.total_amount = total_amount


class SettlementValidationError(LedgerError):
    """Transfer list rejected before the first payment rail call."""
    status_code = status.HTTP_400_BAD_REQUEST


# ===== AUTHORIZATION =====

class AuthorizationError(LedgerError):
    status_code = status.HTTP_403_FORBIDDEN


class GroupDoesNotExist(AuthorizationError):
    status_code = status.HTTP_404_NOT_FOUND


class MemberIsNotInTheGroup(AuthorizationError):
    status_code = status.HTTP_403_FORBIDDEN


class MemberAlreadyInGroup(LedgerError):
    status_code = status.HTTP_409_CONFLICT


# ===== ARITHMETIC =====

class LedgerArithmeticError(LedgerError):
    """Checked balance arithmetic left the storable integer range."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class UnbalancedGroupError(LedgerArithmeticError):
    """Giver debt could not be matched because no takers remain."""


# ===== EXTERNAL =====

class PaymentRailError(LedgerError):
    """Any failure reported by the external payment rail."""
    status_code = status.HTTP_502_BAD_GATEWAY


def to_http_exception(exc: LedgerError) -> HTTPException:
    """Translate a ledger error into the HTTP error returned by the API."""
    return HTTPException(status_code=exc.status_code, detail=exc.message)
