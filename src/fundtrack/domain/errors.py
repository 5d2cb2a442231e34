"""Shared domain error messages and error types."""

from decimal import Decimal
from typing import Optional

from fundtrack.domain.entities import CENT


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class FundMovementError(DomainError):
    """A fund movement was rejected.

    Carries the goal, amount and account involved so callers can reconstruct
    the failed intent.
    """

    def __init__(
        self,
        message: str,
        *,
        goal_id: Optional[int] = None,
        amount: Optional[Decimal] = None,
        account_id: Optional[int] = None,
    ):
        super().__init__(message)
        self.goal_id = goal_id
        self.amount = amount
        self.account_id = account_id


class InsufficientFunds(FundMovementError):
    """Source account balance is lower than the requested amount."""


class InsufficientAllocation(FundMovementError):
    """Goal has less allocated than the requested amount."""


class AccountInactive(FundMovementError):
    """An account taking part in a transfer is deactivated."""


class TransferFailed(FundMovementError):
    """The atomic transfer primitive rejected the movement."""


class RefundAccountRequired(FundMovementError):
    """Abandoning a goal with a remaining balance needs a refund account."""


class DataIntegrityViolation(DomainError):
    """Derived state contradicts the ledger, e.g. a negative goal balance."""


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def goal_not_found(goal_id: int) -> str:
    """Return message for missing goal."""
    return f"Goal {goal_id} not found"


def ledger_transaction_not_found(transaction_id: int) -> str:
    """Return message for missing ledger transaction."""
    return f"Ledger transaction {transaction_id} not found"


def non_positive_amount(amount: Decimal) -> str:
    """Return message for a zero or negative amount."""
    return f"Amount must be greater than zero (got {amount})"


def sub_cent_amount(amount: Decimal) -> str:
    """Return message for an amount finer than one cent."""
    return f"Amount must be in whole cents (got {amount})"


def insufficient_balance(account_name: str, account_id: int, balance: Decimal, amount: Decimal) -> str:
    """Return message when an account cannot cover an amount."""
    return (
        f"Insufficient balance in '{account_name}' (account {account_id}): "
        f"available {balance:.2f}, requested {amount:.2f}"
    )


def insufficient_allocation(goal_id: int, allocated: Decimal, amount: Decimal) -> str:
    """Return message when a goal cannot cover an amount."""
    return (
        f"Insufficient balance allocated to goal {goal_id}: "
        f"available {allocated:.2f}, requested {amount:.2f}"
    )


def account_delete_blocked(account_id: int, transaction_count: int, goal_count: int) -> str:
    """Return message when account has dependent ledger entries or goals."""
    parts = []
    if transaction_count > 0:
        parts.append(
            f"{transaction_count} ledger entr{'ies' if transaction_count != 1 else 'y'}"
        )
    if goal_count > 0:
        parts.append(f"{goal_count} linked goal{'s' if goal_count != 1 else ''}")
    return (
        f"Cannot delete account {account_id}: it has {', '.join(parts)}. "
        "Deactivate it instead."
    )


def goal_delete_blocked(goal_id: int, record_count: int) -> str:
    """Return message when a goal has financial history."""
    return (
        f"Cannot delete goal {goal_id}: it has {record_count} "
        f"contribution record{'s' if record_count != 1 else ''}. "
        "Consider abandoning it instead."
    )


def require_cents(amount: Decimal) -> Decimal:
    """Raise ValidationError when amount has more than two decimal places."""
    if amount != amount.quantize(CENT):
        raise ValidationError(sub_cent_amount(amount))
    return amount


def require_positive_amount(amount: Optional[Decimal]) -> Decimal:
    """Raise ValidationError unless amount is above zero and in whole cents.

    Amount columns hold two decimal places, so anything finer would be
    rounded on write and could be stored as 0.00.
    """
    if amount is None or amount <= 0:
        raise ValidationError(non_positive_amount(amount))
    return require_cents(amount)
