"""Account domain service."""

import logging
from decimal import Decimal
from typing import Optional

from fundtrack.database.base import Database
from fundtrack.domain import errors
from fundtrack.domain.entities import Account as AccountEntity

logger = logging.getLogger(__name__)


class AccountService:
    """Service for managing accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_account(self, name: str, institution_name: str, opening_balance: Decimal = Decimal("0")) -> int:
        """Create a new account.

        Args:
            name: Account name
            institution_name: Bank or provider name
            opening_balance: Starting balance

        Returns:
            Account ID

        Raises:
            ValidationError: If name is blank or opening balance is negative
            ConflictError: If account name already exists
        """
        if not name or not name.strip():
            raise errors.ValidationError("Account name is required")
        if opening_balance < 0:
            raise errors.ValidationError("Opening balance cannot be negative")
        errors.require_cents(opening_balance)

        name = name.strip()
        if self.db.get_account_by_name(name) is not None:
            raise errors.ConflictError(f"Account with name '{name}' already exists")

        account_id = self.db.create_account(
            name=name, institution_name=institution_name, opening_balance=opening_balance
        )
        logger.info("Created account %s '%s' with balance %s", account_id, name, opening_balance)
        return account_id

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def require_account(self, account_id: int) -> AccountEntity:
        """Get account by ID, raising NotFoundError when missing."""
        account = self.db.get_account(account_id)
        if account is None:
            raise errors.NotFoundError(errors.account_not_found(account_id))
        return account

    def list_accounts(self, active_only: bool = False) -> list[AccountEntity]:
        """List accounts.

        Args:
            active_only: If True, skip deactivated accounts

        Returns:
            List of account entities
        """
        return self.db.list_accounts(active_only=active_only)

    def deactivate_account(self, account_id: int) -> None:
        """Deactivate an account so no further funds move through it."""
        self.require_account(account_id)
        self.db.set_account_active(account_id, False)
        logger.info("Deactivated account %s", account_id)

    def activate_account(self, account_id: int) -> None:
        """Reactivate a deactivated account."""
        self.require_account(account_id)
        self.db.set_account_active(account_id, True)
        logger.info("Activated account %s", account_id)

    def delete_account(self, account_id: int) -> None:
        """Delete an account.

        Args:
            account_id: Account ID to delete

        Raises:
            NotFoundError: If account not found
            DependencyError: If account has ledger entries or linked goals
        """
        self.require_account(account_id)

        transaction_count = self.db.get_account_transaction_count(account_id)
        goal_count = self.db.get_account_goal_count(account_id)
        if transaction_count > 0 or goal_count > 0:
            raise errors.DependencyError(
                errors.account_delete_blocked(account_id, transaction_count, goal_count)
            )

        self.db.delete_account(account_id)
        logger.info("Deleted account %s", account_id)
