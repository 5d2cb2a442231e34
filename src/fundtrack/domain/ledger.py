"""Ledger domain service.

Every balance change goes through the store's atomic transfer. Entries are
never edited or deleted; a correction is a new ``reversal`` entry that moves
the money back and names the voided entry in its reference pair.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence
from uuid import uuid4

from fundtrack.database.base import Database
from fundtrack.domain import errors
from fundtrack.domain.entities import LedgerTransaction, TransactionKind

logger = logging.getLogger(__name__)

GOAL_REFERENCE_KIND = "goal"


class LedgerService:
    """Service for recording and correcting ledger entries."""

    def __init__(self, db: Database):
        """Initialize ledger service.

        Args:
            db: Database instance
        """
        self.db = db

    def record_income(
        self,
        to_account_id: int,
        amount: Decimal,
        date: Optional[date] = None,
        category: Optional[str] = None,
        description: Optional[str] = None,
        reference_id: Optional[str] = None,
    ) -> int:
        """Record money arriving in an account.

        Args:
            to_account_id: Receiving account
            amount: Positive amount
            date: Entry date (defaults to today)
            category: Optional category
            description: Optional description
            reference_id: ID of the income record; generated when omitted

        Returns:
            Ledger transaction ID
        """
        errors.require_positive_amount(amount)
        return self.db.transfer(
            from_account_id=None,
            to_account_id=to_account_id,
            amount=amount,
            date=date or _today(),
            kind=TransactionKind.INCOME,
            reference_kind=TransactionKind.INCOME.value,
            reference_id=reference_id or uuid4().hex,
            category=category,
            description=description,
        )

    def record_expense(
        self,
        from_account_id: int,
        amount: Decimal,
        date: Optional[date] = None,
        category: Optional[str] = None,
        description: Optional[str] = None,
        fee: Decimal = Decimal("0"),
        reference_id: Optional[str] = None,
    ) -> int:
        """Record spending from an account, with an optional separate fee entry.

        The expense and its fee share the same reference ID and are posted in
        one unit of work.

        Returns:
            Ledger transaction ID of the expense entry

        Raises:
            InsufficientFunds: If the account cannot cover amount plus fee
        """
        errors.require_positive_amount(amount)
        if fee < 0:
            raise errors.ValidationError("Fee cannot be negative")
        errors.require_cents(fee)

        account = self.db.get_account(from_account_id)
        if account is None:
            raise errors.NotFoundError(errors.account_not_found(from_account_id))
        if account.balance < amount + fee:
            raise errors.InsufficientFunds(
                errors.insufficient_balance(account.name, account.id, account.balance, amount + fee),
                amount=amount + fee,
                account_id=from_account_id,
            )

        reference_id = reference_id or uuid4().hex
        entry_date = date or _today()
        with self.db.unit_of_work():
            expense_id = self.db.transfer(
                from_account_id=from_account_id,
                to_account_id=None,
                amount=amount,
                date=entry_date,
                kind=TransactionKind.EXPENSE,
                reference_kind=TransactionKind.EXPENSE.value,
                reference_id=reference_id,
                category=category,
                description=description,
            )
            if fee > 0:
                self.db.transfer(
                    from_account_id=from_account_id,
                    to_account_id=None,
                    amount=fee,
                    date=entry_date,
                    kind=TransactionKind.FEE,
                    reference_kind=TransactionKind.EXPENSE.value,
                    reference_id=reference_id,
                    category=category,
                    description=f"Fee{': ' + description if description else ''}",
                )
        return expense_id

    def record_fee(
        self,
        from_account_id: int,
        amount: Decimal,
        date: Optional[date] = None,
        category: Optional[str] = None,
        description: Optional[str] = None,
    ) -> int:
        """Record a standalone charge such as a monthly account fee."""
        errors.require_positive_amount(amount)
        return self.db.transfer(
            from_account_id=from_account_id,
            to_account_id=None,
            amount=amount,
            date=date or _today(),
            kind=TransactionKind.FEE,
            reference_kind=TransactionKind.FEE.value,
            reference_id=uuid4().hex,
            category=category,
            description=description,
        )

    def transfer_between_accounts(
        self,
        from_account_id: int,
        to_account_id: int,
        amount: Decimal,
        date: Optional[date] = None,
        description: Optional[str] = None,
        fee: Decimal = Decimal("0"),
    ) -> int:
        """Move money between two accounts, optionally charging a fee to the source.

        Returns:
            Ledger transaction ID of the transfer entry
        """
        errors.require_positive_amount(amount)
        if fee < 0:
            raise errors.ValidationError("Fee cannot be negative")
        errors.require_cents(fee)

        reference_id = uuid4().hex
        entry_date = date or _today()
        with self.db.unit_of_work():
            transfer_id = self.db.transfer(
                from_account_id=from_account_id,
                to_account_id=to_account_id,
                amount=amount,
                date=entry_date,
                kind=TransactionKind.TRANSFER,
                reference_kind=TransactionKind.TRANSFER.value,
                reference_id=reference_id,
                description=description,
            )
            if fee > 0:
                self.db.transfer(
                    from_account_id=from_account_id,
                    to_account_id=None,
                    amount=fee,
                    date=entry_date,
                    kind=TransactionKind.FEE,
                    reference_kind=TransactionKind.TRANSFER.value,
                    reference_id=reference_id,
                    category="transfer_fee",
                    description=f"Transfer fee{': ' + description if description else ''}",
                )
        return transfer_id

    def get_entry(self, transaction_id: int) -> LedgerTransaction:
        """Get a ledger entry, raising NotFoundError when missing."""
        txn = self.db.get_ledger_transaction(transaction_id)
        if txn is None:
            raise errors.NotFoundError(errors.ledger_transaction_not_found(transaction_id))
        return txn

    def find_reversal(self, txn: LedgerTransaction) -> Optional[LedgerTransaction]:
        """Return the reversal voiding an entry, if any."""
        reversals = self.db.query_ledger(
            kinds=[TransactionKind.REVERSAL],
            reference_kinds=[txn.kind.reversal_reference_kind],
            reference_id=txn.voided_key,
        )
        return reversals[0] if reversals else None

    def reverse(self, transaction_id: int, date: Optional[date] = None, reason: Optional[str] = None) -> int:
        """Void an entry by appending a compensating reversal.

        The reversal moves the amount back (destination to source) and carries
        the reference pair ``(<kind>_reversal, <voided key>)``.

        Returns:
            Ledger transaction ID of the reversal

        Raises:
            NotFoundError: If the entry does not exist
            ConflictError: If the entry is a reversal or is already reversed
        """
        original = self.get_entry(transaction_id)
        if original.kind == TransactionKind.REVERSAL:
            raise errors.ConflictError(f"Ledger transaction {transaction_id} is itself a reversal")
        if original.reference_kind == GOAL_REFERENCE_KIND:
            raise errors.ConflictError(
                f"Ledger transaction {transaction_id} moves goal funds; "
                "withdraw from or abandon the goal instead"
            )
        existing = self.find_reversal(original)
        if existing is not None:
            raise errors.ConflictError(
                f"Ledger transaction {transaction_id} was already reversed by {existing.id}"
            )

        description = f"Reversal of {original.kind.value} {original.id}"
        if reason:
            description = f"{description}: {reason}"

        reversal_id = self.db.transfer(
            from_account_id=original.to_account_id,
            to_account_id=original.from_account_id,
            amount=original.amount,
            date=date or _today(),
            kind=TransactionKind.REVERSAL,
            reference_kind=original.kind.reversal_reference_kind,
            reference_id=original.voided_key,
            category=original.category,
            description=description,
        )
        logger.info("Reversed ledger transaction %s with %s", transaction_id, reversal_id)
        return reversal_id

    def list_entries(
        self,
        kinds: Optional[Sequence[TransactionKind]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
        category: Optional[str] = None,
    ) -> list[LedgerTransaction]:
        """List raw ledger entries, reversals included."""
        return self.db.query_ledger(
            kinds=kinds,
            start_date=start_date,
            end_date=end_date,
            account_id=account_id,
            category=category,
        )


def _today() -> date:
    return date.today()
