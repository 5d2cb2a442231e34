"""Tests for goal lifecycle and goal fund movements."""

from datetime import date
from decimal import Decimal

import pytest

from fundtrack.domain import errors
from fundtrack.domain.entities import ContributionKind, GoalStatus, TransactionKind


def _balance(account_service, account_id):
    return account_service.get_account(account_id).balance


# Creation and updates
def test_create_goal(goal_service, savings):
    """Test creating a goal."""
    goal_id = goal_service.create_goal(
        name="  Car  ", target_amount=Decimal("5000"), category="car", linked_account_id=savings.id
    )

    goal = goal_service.get_goal(goal_id)
    assert goal.name == "Car"
    assert goal.target_amount == Decimal("5000")
    assert goal.status == GoalStatus.ACTIVE
    assert goal.linked_account_id == savings.id


@pytest.mark.parametrize("name,target", [("", Decimal("10")), ("Car", Decimal("0")), ("Car", Decimal("-1"))])
def test_create_goal_rejects_invalid_input(goal_service, name, target):
    """Test blank names and non-positive targets are rejected."""
    with pytest.raises(errors.ValidationError):
        goal_service.create_goal(name=name, target_amount=target)


def test_create_goal_unknown_account(goal_service):
    """Test linking a goal to a missing account fails."""
    with pytest.raises(errors.NotFoundError):
        goal_service.create_goal(name="Car", target_amount=Decimal("10"), linked_account_id=999)


def test_update_goal_fields(goal_service, sample_goal):
    """Test updating goal details and clearing the deadline."""
    goal_service.update_goal(sample_goal.id, name="Beach", target_amount=Decimal("2000"), clear_deadline=True)

    goal = goal_service.get_goal(sample_goal.id)
    assert goal.name == "Beach"
    assert goal.target_amount == Decimal("2000")
    assert goal.deadline is None


def test_update_goal_relink_blocked_while_funded(goal_service, sample_goal, checking, account_service):
    """Test a goal holding money cannot move to another account."""
    other_id = account_service.create_account(name="Other", institution_name="Bank")
    goal_service.contribute(sample_goal.id, Decimal("100"), checking.id)

    with pytest.raises(errors.ConflictError):
        goal_service.update_goal(sample_goal.id, linked_account_id=other_id)


def test_update_goal_relink_empty_goal(goal_service, sample_goal, account_service):
    """Test an empty goal can be relinked."""
    other_id = account_service.create_account(name="Other", institution_name="Bank")

    goal_service.update_goal(sample_goal.id, linked_account_id=other_id)

    assert goal_service.get_goal(sample_goal.id).linked_account_id == other_id


# Contributions
def test_contribute_moves_money_and_allocates(goal_service, sample_goal, checking, savings, account_service):
    """Test a contribution raises goal and linked account balances by the amount."""
    balance = goal_service.contribute(sample_goal.id, Decimal("250"), checking.id, notes="payday")

    assert balance == Decimal("250")
    assert goal_service.derive_balance(sample_goal.id) == Decimal("250")
    assert _balance(account_service, savings.id) == Decimal("250")
    assert _balance(account_service, checking.id) == Decimal("9750")

    history = goal_service.get_history(sample_goal.id)
    assert len(history) == 1
    assert history[0].kind == ContributionKind.CONTRIBUTION
    assert history[0].notes == "payday"


def test_contribute_records_goal_reference(goal_service, sample_goal, checking, temp_db):
    """Test the contribution transfer names the goal in its reference pair."""
    goal_service.contribute(sample_goal.id, Decimal("100"), checking.id, date=date(2024, 3, 1))

    transfers = temp_db.query_ledger(kinds=[TransactionKind.TRANSFER])
    assert len(transfers) == 1
    assert transfers[0].reference_kind == "goal"
    assert transfers[0].reference_id == str(sample_goal.id)
    assert transfers[0].date == date(2024, 3, 1)


def test_contribute_insufficient_funds_changes_nothing(goal_service, sample_goal, checking, account_service):
    """Test a contribution larger than the source balance fails cleanly."""
    with pytest.raises(errors.InsufficientFunds) as excinfo:
        goal_service.contribute(sample_goal.id, Decimal("10000.01"), checking.id)

    assert excinfo.value.goal_id == sample_goal.id
    assert excinfo.value.account_id == checking.id
    assert goal_service.derive_balance(sample_goal.id) == Decimal("0")
    assert _balance(account_service, checking.id) == Decimal("10000")
    assert goal_service.get_history(sample_goal.id) == []


def test_contribute_sub_cent_amount_rejected(goal_service, sample_goal, checking, savings, account_service):
    """Test an amount finer than a cent is refused before any money moves."""
    with pytest.raises(errors.ValidationError, match="whole cents"):
        goal_service.contribute(sample_goal.id, Decimal("0.004"), checking.id)

    assert goal_service.allocations.list_allocations(sample_goal.id) == []
    assert _balance(account_service, checking.id) == Decimal("10000")
    assert _balance(account_service, savings.id) == Decimal("0")
    assert goal_service.get_history(sample_goal.id) == []


def test_withdraw_sub_cent_amount_rejected(goal_service, sample_goal, checking):
    """Test withdrawals are held to whole cents too."""
    goal_service.contribute(sample_goal.id, Decimal("10"), checking.id)

    with pytest.raises(errors.ValidationError, match="whole cents"):
        goal_service.withdraw(sample_goal.id, Decimal("1.005"), checking.id)

    assert goal_service.derive_balance(sample_goal.id) == Decimal("10")


def test_contribute_to_paused_goal_rejected(goal_service, sample_goal, checking):
    """Test only active goals accept contributions."""
    goal_service.pause(sample_goal.id)

    with pytest.raises(errors.ValidationError):
        goal_service.contribute(sample_goal.id, Decimal("10"), checking.id)


def test_contribute_without_linked_account_rejected(goal_service, checking):
    """Test a goal with no linked account cannot receive money."""
    goal_id = goal_service.create_goal(name="Loose", target_amount=Decimal("100"))

    with pytest.raises(errors.ValidationError):
        goal_service.contribute(goal_id, Decimal("10"), checking.id)


def test_contribute_from_inactive_account_rejected(goal_service, sample_goal, checking, account_service):
    """Test a deactivated source account blocks the transfer."""
    account_service.deactivate_account(checking.id)

    with pytest.raises(errors.AccountInactive) as excinfo:
        goal_service.contribute(sample_goal.id, Decimal("10"), checking.id)

    assert excinfo.value.goal_id == sample_goal.id
    assert goal_service.list_goals()[0].current_amount == Decimal("0")


def test_reaching_target_displays_completed(goal_service, sample_goal, checking):
    """Test a fully funded active goal reads as completed but stays active."""
    goal_service.contribute(sample_goal.id, Decimal("1000"), checking.id)

    progress = goal_service.get_progress(sample_goal.id)
    assert progress.display_status == GoalStatus.COMPLETED
    assert progress.progress_percent == pytest.approx(100.0)
    assert goal_service.get_goal(sample_goal.id).status == GoalStatus.ACTIVE


# Withdrawals
def test_withdraw_consumes_oldest_first(goal_service, sample_goal, checking, account_service):
    """Test withdrawing 120 from [100, 50, 30] leaves [30, 30]."""
    for amount in ("100", "50", "30"):
        goal_service.contribute(sample_goal.id, Decimal(amount), checking.id)

    balance = goal_service.withdraw(sample_goal.id, Decimal("120"), checking.id, reason="repairs")

    assert balance == Decimal("60")
    amounts = [a.amount for a in goal_service.allocations.list_allocations(sample_goal.id)]
    assert amounts == [Decimal("30"), Decimal("30")]
    assert _balance(account_service, checking.id) == Decimal("9940")

    history = goal_service.get_history(sample_goal.id)
    assert history[0].kind == ContributionKind.WITHDRAWAL
    assert history[0].notes == "repairs"


def test_withdraw_more_than_allocated(goal_service, sample_goal, checking, savings, account_service):
    """Test over-withdrawal raises and leaves allocations and balances untouched."""
    goal_service.contribute(sample_goal.id, Decimal("100"), checking.id)

    with pytest.raises(errors.InsufficientAllocation):
        goal_service.withdraw(sample_goal.id, Decimal("100.01"), checking.id)

    assert goal_service.derive_balance(sample_goal.id) == Decimal("100")
    assert _balance(account_service, savings.id) == Decimal("100")
    assert len(goal_service.get_history(sample_goal.id)) == 1


def test_withdraw_from_paused_goal_allowed(goal_service, sample_goal, checking):
    """Test paused goals can still release money."""
    goal_service.contribute(sample_goal.id, Decimal("100"), checking.id)
    goal_service.pause(sample_goal.id)

    assert goal_service.withdraw(sample_goal.id, Decimal("40"), checking.id) == Decimal("60")


def test_withdraw_fails_atomically_when_destination_inactive(
    goal_service, sample_goal, checking, savings, account_service
):
    """Test a rejected transfer leaves allocations and audit trail unchanged."""
    goal_service.contribute(sample_goal.id, Decimal("100"), checking.id)
    account_service.deactivate_account(checking.id)

    with pytest.raises(errors.AccountInactive):
        goal_service.withdraw(sample_goal.id, Decimal("50"), checking.id)

    assert goal_service.derive_balance(sample_goal.id) == Decimal("100")
    assert _balance(account_service, savings.id) == Decimal("100")
    assert len(goal_service.get_history(sample_goal.id)) == 1


# Abandonment
def test_abandon_refunds_remaining(goal_service, sample_goal, checking, savings, account_service):
    """Test abandoning a goal holding 500 refunds 500 and clears allocations."""
    goal_service.contribute(sample_goal.id, Decimal("500"), checking.id)

    refunded = goal_service.abandon(sample_goal.id, "Changed plans", refund_account_id=checking.id)

    assert refunded == Decimal("500")
    assert _balance(account_service, checking.id) == Decimal("10000")
    assert _balance(account_service, savings.id) == Decimal("0")
    assert goal_service.allocations.list_allocations(sample_goal.id) == []

    goal = goal_service.get_goal(sample_goal.id)
    assert goal.status == GoalStatus.ABANDONED
    assert goal.abandonment_reason == "Changed plans"
    assert goal_service.get_history(sample_goal.id)[0].kind == ContributionKind.REFUND


def test_abandon_refund_to_linked_account(goal_service, sample_goal, checking, savings, account_service, temp_db):
    """Test refunding into the linked account releases the funds without a transfer."""
    goal_service.contribute(sample_goal.id, Decimal("200"), checking.id)
    transfers_before = len(temp_db.query_ledger())

    refunded = goal_service.abandon(sample_goal.id, "Keep it in savings", refund_account_id=savings.id)

    assert refunded == Decimal("200")
    assert _balance(account_service, savings.id) == Decimal("200")
    assert len(temp_db.query_ledger()) == transfers_before
    assert goal_service.allocations.list_allocations(sample_goal.id) == []
    assert goal_service.get_goal(sample_goal.id).status == GoalStatus.ABANDONED

    refund = goal_service.get_history(sample_goal.id)[0]
    assert refund.kind == ContributionKind.REFUND
    assert refund.amount == Decimal("200")
    assert refund.account_id == savings.id
    assert refund.ledger_transaction_id is None


def test_abandon_empty_goal_needs_no_refund_account(goal_service, sample_goal, temp_db):
    """Test an empty goal is abandoned without any transfer."""
    refunded = goal_service.abandon(sample_goal.id, "Not needed")

    assert refunded == Decimal("0")
    assert goal_service.get_goal(sample_goal.id).status == GoalStatus.ABANDONED
    assert temp_db.query_ledger() == []


def test_abandon_with_funds_requires_refund_account(goal_service, sample_goal, checking):
    """Test abandoning a funded goal without a refund account is refused."""
    goal_service.contribute(sample_goal.id, Decimal("75"), checking.id)

    with pytest.raises(errors.RefundAccountRequired) as excinfo:
        goal_service.abandon(sample_goal.id, "Not needed")

    assert excinfo.value.amount == Decimal("75")
    assert goal_service.get_goal(sample_goal.id).status == GoalStatus.ACTIVE
    assert goal_service.derive_balance(sample_goal.id) == Decimal("75")


def test_abandon_requires_reason(goal_service, sample_goal):
    """Test a blank reason is rejected."""
    with pytest.raises(errors.ValidationError):
        goal_service.abandon(sample_goal.id, "   ")


def test_abandon_twice_rejected(goal_service, sample_goal):
    """Test an abandoned goal cannot be abandoned again."""
    goal_service.abandon(sample_goal.id, "Not needed")

    with pytest.raises(errors.ValidationError):
        goal_service.abandon(sample_goal.id, "Again")


def test_abandoned_goal_rejects_movements(goal_service, sample_goal, checking):
    """Test abandoned goals accept no contributions or withdrawals."""
    goal_service.abandon(sample_goal.id, "Not needed")

    with pytest.raises(errors.ValidationError):
        goal_service.contribute(sample_goal.id, Decimal("10"), checking.id)
    with pytest.raises(errors.ValidationError):
        goal_service.withdraw(sample_goal.id, Decimal("10"), checking.id)


# Pause / resume
def test_pause_and_resume(goal_service, sample_goal):
    """Test pausing and resuming a goal."""
    goal_service.pause(sample_goal.id)
    assert goal_service.get_goal(sample_goal.id).status == GoalStatus.PAUSED

    goal_service.resume(sample_goal.id)
    assert goal_service.get_goal(sample_goal.id).status == GoalStatus.ACTIVE


def test_invalid_status_transitions(goal_service, sample_goal):
    """Test resume needs a paused goal and pause needs an active one."""
    with pytest.raises(errors.ValidationError):
        goal_service.resume(sample_goal.id)

    goal_service.pause(sample_goal.id)
    with pytest.raises(errors.ValidationError):
        goal_service.pause(sample_goal.id)


def test_status_change_on_missing_goal(goal_service):
    """Test unknown goals raise NotFoundError."""
    with pytest.raises(errors.NotFoundError):
        goal_service.pause(999)


# Deletion and read models
def test_delete_goal_without_history(goal_service, sample_goal):
    """Test deleting a goal that never received money."""
    goal_service.delete_goal(sample_goal.id)

    assert goal_service.get_goal(sample_goal.id) is None


def test_delete_goal_with_history_blocked(goal_service, sample_goal, checking):
    """Test goals with contributions must be abandoned, not deleted."""
    goal_service.contribute(sample_goal.id, Decimal("10"), checking.id)
    goal_service.withdraw(sample_goal.id, Decimal("10"), checking.id)

    with pytest.raises(errors.DependencyError):
        goal_service.delete_goal(sample_goal.id)


def test_list_and_summarize_goals(goal_service, sample_goal, checking, savings):
    """Test listing goals with derived balances and summarizing them."""
    other_id = goal_service.create_goal(name="Laptop", target_amount=Decimal("300"), linked_account_id=savings.id)
    goal_service.contribute(sample_goal.id, Decimal("200"), checking.id)
    goal_service.contribute(other_id, Decimal("300"), checking.id)
    paused_id = goal_service.create_goal(name="Bike", target_amount=Decimal("50"))
    goal_service.pause(paused_id)

    goals = goal_service.list_goals()
    assert [g.goal.name for g in goals] == ["Bike", "Laptop", "Holiday"]

    summary = goal_service.summarize_goals(goals)
    assert summary.total == 3
    assert summary.active == 1
    assert summary.completed == 1
    assert summary.paused == 1
    assert summary.abandoned == 0
    assert summary.total_target_amount == Decimal("1300")
    assert summary.total_saved_amount == Decimal("500")

    assert [g.goal.name for g in goal_service.list_goals(status=GoalStatus.PAUSED)] == ["Bike"]
    assert [g.goal.name for g in goal_service.list_goals(category="vacation")] == ["Holiday"]
