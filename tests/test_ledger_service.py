"""Tests for the ledger service and the atomic transfer primitive."""

from datetime import date
from decimal import Decimal

import pytest

from fundtrack.domain import errors
from fundtrack.domain.entities import TransactionKind


def _balance(account_service, account_id):
    return account_service.get_account(account_id).balance


def test_record_income_credits_account(ledger_service, account_service, checking):
    """Test income raises the receiving account's balance."""
    txn_id = ledger_service.record_income(
        checking.id, Decimal("1500"), date=date(2024, 1, 31), category="salary"
    )

    txn = ledger_service.get_entry(txn_id)
    assert txn.kind == TransactionKind.INCOME
    assert txn.from_account_id is None
    assert txn.to_account_id == checking.id
    assert txn.reference_kind == "income"
    assert txn.reference_id
    assert _balance(account_service, checking.id) == Decimal("11500")


def test_record_expense_with_fee(ledger_service, account_service, checking, temp_db):
    """Test an expense and its fee are two entries sharing a reference."""
    expense_id = ledger_service.record_expense(
        checking.id, Decimal("200"), date=date(2024, 2, 1), category="groceries", fee=Decimal("1.50")
    )

    entries = temp_db.query_ledger()
    assert [e.kind for e in entries] == [TransactionKind.EXPENSE, TransactionKind.FEE]
    assert entries[0].id == expense_id
    assert entries[0].reference_id == entries[1].reference_id
    assert _balance(account_service, checking.id) == Decimal("9798.50")


def test_record_expense_insufficient_for_fee(ledger_service, account_service, checking, temp_db):
    """Test an expense whose fee would overdraw the account posts nothing."""
    with pytest.raises(errors.InsufficientFunds):
        ledger_service.record_expense(checking.id, Decimal("10000"), fee=Decimal("1"))

    assert temp_db.query_ledger() == []
    assert _balance(account_service, checking.id) == Decimal("10000")


def test_record_fee(ledger_service, account_service, checking):
    """Test a standalone fee debits the account."""
    txn_id = ledger_service.record_fee(checking.id, Decimal("35"), category="bank_charges")

    assert ledger_service.get_entry(txn_id).kind == TransactionKind.FEE
    assert _balance(account_service, checking.id) == Decimal("9965")


def test_transfer_between_accounts(ledger_service, account_service, checking, savings):
    """Test a transfer with a fee moves money and charges the source."""
    ledger_service.transfer_between_accounts(checking.id, savings.id, Decimal("1000"), fee=Decimal("10"))

    assert _balance(account_service, checking.id) == Decimal("8990")
    assert _balance(account_service, savings.id) == Decimal("1000")
    fees = ledger_service.list_entries(kinds=[TransactionKind.FEE])
    assert fees[0].category == "transfer_fee"


def test_transfer_overdraft_rejected(ledger_service, account_service, checking, savings):
    """Test a transfer larger than the source balance is rejected with no change."""
    with pytest.raises(errors.InsufficientFunds):
        ledger_service.transfer_between_accounts(savings.id, checking.id, Decimal("1"))

    assert _balance(account_service, savings.id) == Decimal("0")
    assert ledger_service.list_entries() == []


def test_transfer_to_same_account_rejected(ledger_service, checking):
    """Test source and destination must differ."""
    with pytest.raises(errors.TransferFailed):
        ledger_service.transfer_between_accounts(checking.id, checking.id, Decimal("1"))


def test_transfer_unknown_account_rejected(ledger_service, checking):
    """Test transfers to a missing account fail."""
    with pytest.raises(errors.TransferFailed):
        ledger_service.transfer_between_accounts(checking.id, 999, Decimal("1"))


def test_transfer_inactive_account_rejected(ledger_service, account_service, checking, savings):
    """Test deactivated accounts cannot receive money."""
    account_service.deactivate_account(savings.id)

    with pytest.raises(errors.AccountInactive):
        ledger_service.transfer_between_accounts(checking.id, savings.id, Decimal("1"))


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-10")])
def test_non_positive_amounts_rejected(ledger_service, checking, amount):
    """Test ledger amounts must be positive."""
    with pytest.raises(errors.ValidationError):
        ledger_service.record_income(checking.id, amount)


def test_sub_cent_amounts_rejected(ledger_service, account_service, checking, savings):
    """Test amounts and fees with more than two decimal places are refused."""
    with pytest.raises(errors.ValidationError, match="whole cents"):
        ledger_service.record_income(checking.id, Decimal("0.004"))
    with pytest.raises(errors.ValidationError, match="whole cents"):
        ledger_service.record_expense(checking.id, Decimal("10"), fee=Decimal("0.125"))
    with pytest.raises(errors.ValidationError, match="whole cents"):
        ledger_service.transfer_between_accounts(checking.id, savings.id, Decimal("5.001"))

    assert account_service.get_account(checking.id).balance == Decimal("10000")
    assert ledger_service.list_entries() == []


def test_reverse_income(ledger_service, account_service, checking):
    """Test reversing income takes the money back out."""
    txn_id = ledger_service.record_income(checking.id, Decimal("500"), date=date(2024, 1, 5))

    reversal_id = ledger_service.reverse(txn_id, date=date(2024, 1, 20), reason="duplicate")

    original = ledger_service.get_entry(txn_id)
    reversal = ledger_service.get_entry(reversal_id)
    assert reversal.kind == TransactionKind.REVERSAL
    assert reversal.from_account_id == checking.id
    assert reversal.to_account_id is None
    assert reversal.reference_kind == "income_reversal"
    assert reversal.reference_id == original.voided_key
    assert "duplicate" in reversal.description
    assert _balance(account_service, checking.id) == Decimal("10000")
    assert ledger_service.find_reversal(original).id == reversal_id


def test_reverse_twice_rejected(ledger_service, checking):
    """Test an entry can only be reversed once."""
    txn_id = ledger_service.record_expense(checking.id, Decimal("50"))
    ledger_service.reverse(txn_id)

    with pytest.raises(errors.ConflictError):
        ledger_service.reverse(txn_id)


def test_reverse_a_reversal_rejected(ledger_service, checking):
    """Test reversals cannot themselves be reversed."""
    txn_id = ledger_service.record_expense(checking.id, Decimal("50"))
    reversal_id = ledger_service.reverse(txn_id)

    with pytest.raises(errors.ConflictError):
        ledger_service.reverse(reversal_id)


def test_reverse_goal_transfer_rejected(ledger_service, goal_service, sample_goal, checking):
    """Test goal transfers must be undone through the goal, not the ledger."""
    goal_service.contribute(sample_goal.id, Decimal("100"), checking.id)
    transfer = ledger_service.list_entries(kinds=[TransactionKind.TRANSFER])[0]

    with pytest.raises(errors.ConflictError):
        ledger_service.reverse(transfer.id)


def test_reverse_income_already_spent_rejected(ledger_service, account_service, savings):
    """Test a reversal that would overdraw the account is refused."""
    txn_id = ledger_service.record_income(savings.id, Decimal("100"))
    ledger_service.record_expense(savings.id, Decimal("80"))

    with pytest.raises(errors.InsufficientFunds):
        ledger_service.reverse(txn_id)
    assert _balance(account_service, savings.id) == Decimal("20")


def test_reverse_missing_entry(ledger_service):
    """Test reversing an unknown entry raises NotFoundError."""
    with pytest.raises(errors.NotFoundError):
        ledger_service.reverse(42)


def test_list_entries_filters(ledger_service, checking, savings):
    """Test listing entries by kind, window and account."""
    ledger_service.record_income(checking.id, Decimal("100"), date=date(2024, 1, 1))
    ledger_service.record_income(savings.id, Decimal("100"), date=date(2024, 2, 1))
    ledger_service.record_expense(checking.id, Decimal("30"), date=date(2024, 2, 2), category="food")

    assert len(ledger_service.list_entries(kinds=[TransactionKind.INCOME])) == 2
    assert len(ledger_service.list_entries(start_date=date(2024, 2, 1))) == 2
    assert len(ledger_service.list_entries(account_id=checking.id)) == 2
    assert [e.category for e in ledger_service.list_entries(category="food")] == ["food"]
