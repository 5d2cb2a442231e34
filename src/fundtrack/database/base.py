"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional, Sequence
from datetime import date
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from fundtrack.domain.entities import (
    Account,
    ContributionKind,
    Goal,
    GoalAllocation,
    GoalContributionRecord,
    GoalStatus,
    LedgerTransaction,
    TransactionKind,
)


class Database(ABC):
    """Abstract database interface for fundtrack.

    Write methods commit immediately unless they run inside
    ``unit_of_work()``, in which case everything commits or rolls back at the
    outermost boundary.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def unit_of_work(self) -> AbstractContextManager[None]:
        """Group writes into a single durable transaction.

        Nested units join the outer one. An exception at any depth rolls back
        every write made since the outermost unit began.
        """
        pass

    # Account operations
    @abstractmethod
    def create_account(self, name: str, institution_name: str, opening_balance: Decimal = Decimal("0")) -> int:
        """Create a new account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def get_account_by_name(self, name: str) -> Optional[Account]:
        """Get account by name."""
        pass

    @abstractmethod
    def list_accounts(self, active_only: bool = False) -> list[Account]:
        """List accounts ordered by name."""
        pass

    @abstractmethod
    def set_account_active(self, account_id: int, is_active: bool) -> None:
        """Activate or deactivate an account."""
        pass

    @abstractmethod
    def delete_account(self, account_id: int) -> None:
        """Delete an account."""
        pass

    @abstractmethod
    def get_account_transaction_count(self, account_id: int) -> int:
        """Count ledger entries touching an account."""
        pass

    @abstractmethod
    def get_account_goal_count(self, account_id: int) -> int:
        """Count goals linked to an account."""
        pass

    # Ledger operations
    @abstractmethod
    def transfer(
        self,
        from_account_id: Optional[int],
        to_account_id: Optional[int],
        amount: Decimal,
        date: date,
        kind: TransactionKind,
        reference_kind: Optional[str] = None,
        reference_id: Optional[str] = None,
        category: Optional[str] = None,
        description: Optional[str] = None,
    ) -> int:
        """Move funds and append the ledger entry as one unit.

        Either account may be None for pure income (no source) or pure
        expense/fee (no destination) entries, but not both.

        Returns:
            ID of the new ledger transaction

        Raises:
            InsufficientFunds: If the source balance is below amount
            AccountInactive: If either account is deactivated
            TransferFailed: If the store rejects the movement
        """
        pass

    @abstractmethod
    def get_ledger_transaction(self, transaction_id: int) -> Optional[LedgerTransaction]:
        """Get ledger transaction by ID."""
        pass

    @abstractmethod
    def query_ledger(
        self,
        kinds: Optional[Sequence[TransactionKind]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
        category: Optional[str] = None,
        reference_kinds: Optional[Sequence[str]] = None,
        reference_id: Optional[str] = None,
    ) -> list[LedgerTransaction]:
        """Query ledger transactions, ordered by date then ID.

        Args:
            kinds: Only these transaction kinds
            start_date: Inclusive lower date bound
            end_date: Inclusive upper date bound
            account_id: Entries where the account is source or destination
            category: Exact category match
            reference_kinds: Only entries with one of these reference kinds
            reference_id: Exact reference ID match
        """
        pass

    # Goal operations
    @abstractmethod
    def create_goal(
        self,
        name: str,
        target_amount: Decimal,
        deadline: Optional[date] = None,
        description: Optional[str] = None,
        category: str = "other",
        linked_account_id: Optional[int] = None,
    ) -> int:
        """Create a goal in active status. Returns goal ID."""
        pass

    @abstractmethod
    def get_goal(self, goal_id: int) -> Optional[Goal]:
        """Get goal by ID."""
        pass

    @abstractmethod
    def list_goals(self, status: Optional[GoalStatus] = None, category: Optional[str] = None) -> list[Goal]:
        """List goals, newest first, optionally filtered."""
        pass

    @abstractmethod
    def update_goal(
        self,
        goal_id: int,
        name: Optional[str] = None,
        target_amount: Optional[Decimal] = None,
        deadline: Optional[date] = None,
        description: Optional[str] = None,
        category: Optional[str] = None,
        linked_account_id: Optional[int] = None,
        clear_deadline: bool = False,
    ) -> None:
        """Update goal fields.

        Args:
            clear_deadline: If True, remove the deadline
        """
        pass

    @abstractmethod
    def set_goal_status(self, goal_id: int, status: GoalStatus, abandonment_reason: Optional[str] = None) -> None:
        """Persist a goal status transition."""
        pass

    @abstractmethod
    def delete_goal(self, goal_id: int) -> None:
        """Delete a goal."""
        pass

    # Allocation operations
    @abstractmethod
    def create_allocation(self, goal_id: int, ledger_transaction_id: int, amount: Decimal) -> int:
        """Insert an allocation row. Returns allocation ID."""
        pass

    @abstractmethod
    def list_allocations(self, goal_id: int) -> list[GoalAllocation]:
        """List a goal's allocations in creation order (oldest first)."""
        pass

    @abstractmethod
    def update_allocation_amount(self, allocation_id: int, amount: Decimal) -> None:
        """Reduce an allocation in place."""
        pass

    @abstractmethod
    def delete_allocations(self, allocation_ids: Sequence[int]) -> None:
        """Delete allocation rows by ID."""
        pass

    @abstractmethod
    def delete_goal_allocations(self, goal_id: int) -> int:
        """Delete every allocation of a goal. Returns number deleted."""
        pass

    # Contribution record operations
    @abstractmethod
    def create_goal_contribution(
        self,
        goal_id: int,
        kind: ContributionKind,
        amount: Decimal,
        date: date,
        notes: Optional[str] = None,
        account_id: Optional[int] = None,
        ledger_transaction_id: Optional[int] = None,
    ) -> int:
        """Append a goal audit record. Returns record ID."""
        pass

    @abstractmethod
    def list_goal_contributions(self, goal_id: int) -> list[GoalContributionRecord]:
        """List a goal's audit records, newest first."""
        pass

    @abstractmethod
    def count_goal_contributions(self, goal_id: int) -> int:
        """Count a goal's audit records."""
        pass
