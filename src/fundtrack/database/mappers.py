"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so the domain entities stay free of
ORM state and string columns come back as domain enums.
"""

from decimal import Decimal

from fundtrack.domain import entities as domain
from fundtrack.database.models import (
    Account as ORMAccount,
    LedgerTransaction as ORMLedgerTransaction,
    Goal as ORMGoal,
    GoalAllocation as ORMGoalAllocation,
    GoalContribution as ORMGoalContribution,
)


def _decimal(value) -> Decimal:
    """Normalize numeric column values (SQLite may hand back floats)."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        name=orm_account.name,
        institution_name=orm_account.institution_name,
        balance=_decimal(orm_account.balance),
        is_active=bool(orm_account.is_active),
        created_at=orm_account.created_at,
    )


def ledger_transaction_to_domain(orm_txn: ORMLedgerTransaction) -> domain.LedgerTransaction:
    """Convert SQLAlchemy LedgerTransaction model to domain entity."""
    return domain.LedgerTransaction(
        id=orm_txn.id,
        from_account_id=orm_txn.from_account_id,
        to_account_id=orm_txn.to_account_id,
        kind=domain.TransactionKind(orm_txn.kind),
        amount=_decimal(orm_txn.amount),
        date=orm_txn.date,
        category=orm_txn.category,
        description=orm_txn.description,
        reference_kind=orm_txn.reference_kind,
        reference_id=orm_txn.reference_id,
        created_at=orm_txn.created_at,
    )


def goal_to_domain(orm_goal: ORMGoal) -> domain.Goal:
    """Convert SQLAlchemy Goal model to domain Goal entity."""
    return domain.Goal(
        id=orm_goal.id,
        name=orm_goal.name,
        target_amount=_decimal(orm_goal.target_amount),
        deadline=orm_goal.deadline,
        description=orm_goal.description,
        category=orm_goal.category,
        status=domain.GoalStatus(orm_goal.status),
        linked_account_id=orm_goal.linked_account_id,
        abandonment_reason=orm_goal.abandonment_reason,
        created_at=orm_goal.created_at,
        updated_at=orm_goal.updated_at,
    )


def goal_allocation_to_domain(orm_allocation: ORMGoalAllocation) -> domain.GoalAllocation:
    """Convert SQLAlchemy GoalAllocation model to domain entity."""
    return domain.GoalAllocation(
        id=orm_allocation.id,
        goal_id=orm_allocation.goal_id,
        ledger_transaction_id=orm_allocation.ledger_transaction_id,
        amount=_decimal(orm_allocation.amount),
        created_at=orm_allocation.created_at,
    )


def goal_contribution_to_domain(orm_record: ORMGoalContribution) -> domain.GoalContributionRecord:
    """Convert SQLAlchemy GoalContribution model to domain audit record."""
    return domain.GoalContributionRecord(
        id=orm_record.id,
        goal_id=orm_record.goal_id,
        kind=domain.ContributionKind(orm_record.kind),
        amount=_decimal(orm_record.amount),
        date=orm_record.date,
        notes=orm_record.notes,
        account_id=orm_record.account_id,
        ledger_transaction_id=orm_record.ledger_transaction_id,
        created_at=orm_record.created_at,
    )
