"""Goal domain service.

Goals are virtual sub-accounts. Money saved for a goal sits in the goal's
linked account; what belongs to the goal is tracked by allocations, so every
fund movement here is a ledger transfer plus an allocation change, committed
together.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from fundtrack.database.base import Database
from fundtrack.domain import errors
from fundtrack.domain.allocation import AllocationEngine
from fundtrack.domain.entities import (
    ContributionKind,
    Goal as GoalEntity,
    GoalContributionRecord,
    GoalProgress,
    GoalsSummary,
    GoalStatus,
    TransactionKind,
)
from fundtrack.domain.ledger import GOAL_REFERENCE_KIND

logger = logging.getLogger(__name__)


class GoalService:
    """Service for goal lifecycle and goal fund movements."""

    def __init__(self, db: Database, allocations: Optional[AllocationEngine] = None):
        """Initialize goal service.

        Args:
            db: Database instance
            allocations: Allocation engine (built from db when omitted)
        """
        self.db = db
        self.allocations = allocations or AllocationEngine(db)

    # Lookups
    def get_goal(self, goal_id: int) -> Optional[GoalEntity]:
        """Get goal by ID."""
        return self.db.get_goal(goal_id)

    def require_goal(self, goal_id: int) -> GoalEntity:
        """Get goal by ID, raising NotFoundError when missing."""
        goal = self.db.get_goal(goal_id)
        if goal is None:
            raise errors.NotFoundError(errors.goal_not_found(goal_id))
        return goal

    def derive_balance(self, goal_id: int) -> Decimal:
        """Amount currently saved towards a goal."""
        self.require_goal(goal_id)
        return self.allocations.derive_balance(goal_id)

    def _require_account(self, account_id: int):
        account = self.db.get_account(account_id)
        if account is None:
            raise errors.NotFoundError(errors.account_not_found(account_id))
        return account

    def _require_linked_account(self, goal: GoalEntity) -> int:
        if goal.linked_account_id is None:
            raise errors.ValidationError(
                f"Goal {goal.id} must have a linked savings account before funds can move"
            )
        return goal.linked_account_id

    # CRUD
    def create_goal(
        self,
        name: str,
        target_amount: Decimal,
        deadline: Optional[date] = None,
        description: Optional[str] = None,
        category: str = "other",
        linked_account_id: Optional[int] = None,
    ) -> int:
        """Create a goal.

        Args:
            name: Goal name
            target_amount: Amount to save, must be positive
            deadline: Optional target date
            description: Optional description
            category: Goal type (e.g. "vacation", "emergency-fund")
            linked_account_id: Account holding the goal's funds

        Returns:
            Goal ID

        Raises:
            ValidationError: If name is blank or target is not positive
            NotFoundError: If the linked account does not exist
        """
        if not name or not name.strip():
            raise errors.ValidationError("Goal name is required")
        if target_amount is None or target_amount <= 0:
            raise errors.ValidationError("Target amount must be greater than zero")
        errors.require_cents(target_amount)
        if linked_account_id is not None:
            self._require_account(linked_account_id)

        goal_id = self.db.create_goal(
            name=name.strip(),
            target_amount=target_amount,
            deadline=deadline,
            description=description,
            category=category or "other",
            linked_account_id=linked_account_id,
        )
        logger.info("Created goal %s '%s' targeting %s", goal_id, name.strip(), target_amount)
        return goal_id

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
        """Update goal details.

        Raises:
            ValidationError: If name is blank or target is not positive
            ConflictError: If relinking a goal that still holds funds
        """
        goal = self.require_goal(goal_id)

        if name is not None and not name.strip():
            raise errors.ValidationError("Goal name is required")
        if target_amount is not None and target_amount <= 0:
            raise errors.ValidationError("Target amount must be greater than zero")
        if target_amount is not None:
            errors.require_cents(target_amount)
        if linked_account_id is not None and linked_account_id != goal.linked_account_id:
            self._require_account(linked_account_id)
            balance = self.allocations.derive_balance(goal_id)
            if balance > 0:
                raise errors.ConflictError(
                    f"Cannot relink goal {goal_id} while {balance:.2f} is allocated to it; "
                    "withdraw the funds first"
                )

        self.db.update_goal(
            goal_id,
            name=name.strip() if name is not None else None,
            target_amount=target_amount,
            deadline=deadline,
            description=description,
            category=category,
            linked_account_id=linked_account_id,
            clear_deadline=clear_deadline,
        )

    def delete_goal(self, goal_id: int) -> None:
        """Delete a goal that has no financial history.

        Raises:
            DependencyError: If any contribution was ever made
        """
        self.require_goal(goal_id)
        record_count = self.db.count_goal_contributions(goal_id)
        if record_count > 0 or self.allocations.list_allocations(goal_id):
            raise errors.DependencyError(errors.goal_delete_blocked(goal_id, record_count))
        self.db.delete_goal(goal_id)
        logger.info("Deleted goal %s", goal_id)

    # Status transitions
    def pause(self, goal_id: int) -> None:
        """Pause an active goal."""
        goal = self.require_goal(goal_id)
        if goal.status != GoalStatus.ACTIVE:
            raise errors.ValidationError(f"Only active goals can be paused (goal {goal_id} is {goal.status.value})")
        self.db.set_goal_status(goal_id, GoalStatus.PAUSED)
        logger.info("Paused goal %s", goal_id)

    def resume(self, goal_id: int) -> None:
        """Resume a paused goal."""
        goal = self.require_goal(goal_id)
        if goal.status != GoalStatus.PAUSED:
            raise errors.ValidationError(f"Only paused goals can be resumed (goal {goal_id} is {goal.status.value})")
        self.db.set_goal_status(goal_id, GoalStatus.ACTIVE)
        logger.info("Resumed goal %s", goal_id)

    # Fund movements
    def contribute(
        self,
        goal_id: int,
        amount: Decimal,
        source_account_id: int,
        date: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> Decimal:
        """Move money from an account into a goal.

        The transfer into the linked account, the allocation and the audit
        record are committed together or not at all.

        Returns:
            New derived goal balance

        Raises:
            ValidationError: Non-positive amount, goal not active, or no linked account
            InsufficientFunds: Source account cannot cover the amount
            TransferFailed: The transfer was rejected
        """
        errors.require_positive_amount(amount)
        goal = self.require_goal(goal_id)
        if goal.status != GoalStatus.ACTIVE:
            raise errors.ValidationError(f"Cannot contribute to {goal.status.value} goal {goal_id}")
        linked_account_id = self._require_linked_account(goal)

        source = self._require_account(source_account_id)
        if source.balance < amount:
            logger.warning(
                "Rejected contribution of %s to goal %s: account %s holds %s",
                amount,
                goal_id,
                source_account_id,
                source.balance,
            )
            raise errors.InsufficientFunds(
                errors.insufficient_balance(source.name, source.id, source.balance, amount),
                goal_id=goal_id,
                amount=amount,
                account_id=source_account_id,
            )

        movement_date = date or _today()
        with self.db.unit_of_work():
            ledger_transaction_id = self._transfer(
                goal,
                source_account_id,
                linked_account_id,
                amount,
                movement_date,
                category="goal_contribution",
                description=f"Contribution to goal: {goal.name}",
            )
            self.allocations.record_allocation(goal_id, ledger_transaction_id, amount)
            self.db.create_goal_contribution(
                goal_id=goal_id,
                kind=ContributionKind.CONTRIBUTION,
                amount=amount,
                date=movement_date,
                notes=notes,
                account_id=source_account_id,
                ledger_transaction_id=ledger_transaction_id,
            )

        balance = self.allocations.derive_balance(goal_id)
        logger.info("Contributed %s to goal %s from account %s; balance %s", amount, goal_id, source_account_id, balance)
        return balance

    def withdraw(
        self,
        goal_id: int,
        amount: Decimal,
        destination_account_id: int,
        reason: Optional[str] = None,
        date: Optional[date] = None,
    ) -> Decimal:
        """Move money out of a goal, consuming its oldest allocations first.

        Returns:
            New derived goal balance

        Raises:
            ValidationError: Non-positive amount, abandoned goal, or no linked account
            InsufficientAllocation: Amount exceeds the goal balance
            InsufficientFunds: Linked account holds less than the amount
            TransferFailed: The transfer was rejected
        """
        errors.require_positive_amount(amount)
        goal = self.require_goal(goal_id)
        if goal.status == GoalStatus.ABANDONED:
            raise errors.ValidationError(f"Cannot withdraw from abandoned goal {goal_id}")
        linked_account_id = self._require_linked_account(goal)
        self._require_account(destination_account_id)

        balance = self.allocations.derive_balance(goal_id)
        if amount > balance:
            logger.warning("Rejected withdrawal of %s from goal %s holding %s", amount, goal_id, balance)
            raise errors.InsufficientAllocation(
                errors.insufficient_allocation(goal_id, balance, amount),
                goal_id=goal_id,
                amount=amount,
                account_id=destination_account_id,
            )

        linked = self._require_account(linked_account_id)
        if linked.balance < amount:
            logger.warning(
                "Goal %s allocations (%s) exceed linked account %s balance (%s)",
                goal_id,
                balance,
                linked_account_id,
                linked.balance,
            )
            raise errors.InsufficientFunds(
                errors.insufficient_balance(linked.name, linked.id, linked.balance, amount),
                goal_id=goal_id,
                amount=amount,
                account_id=linked_account_id,
            )

        movement_date = date or _today()
        description = f"Withdrawal from goal: {goal.name}"
        if reason:
            description = f"{description} - {reason}"
        with self.db.unit_of_work():
            ledger_transaction_id = self._transfer(
                goal,
                linked_account_id,
                destination_account_id,
                amount,
                movement_date,
                category="goal_withdrawal",
                description=description,
            )
            self.db.create_goal_contribution(
                goal_id=goal_id,
                kind=ContributionKind.WITHDRAWAL,
                amount=amount,
                date=movement_date,
                notes=reason or "Withdrawal from goal",
                account_id=destination_account_id,
                ledger_transaction_id=ledger_transaction_id,
            )
            new_balance = self.allocations.consume_fifo(goal_id, amount)

        logger.info("Withdrew %s from goal %s to account %s; balance %s", amount, goal_id, destination_account_id, new_balance)
        return new_balance

    def abandon(
        self,
        goal_id: int,
        reason: str,
        refund_account_id: Optional[int] = None,
        date: Optional[date] = None,
    ) -> Decimal:
        """Abandon a goal, refunding whatever is still allocated to it.

        Returns:
            Refunded amount (0 when the goal held nothing)

        Raises:
            ValidationError: Blank reason or goal already abandoned
            RefundAccountRequired: Goal holds funds and no refund account was given
            TransferFailed: The refund transfer was rejected
        """
        goal = self.require_goal(goal_id)
        if not reason or not reason.strip():
            raise errors.ValidationError("An abandonment reason is required")
        if goal.status == GoalStatus.ABANDONED:
            raise errors.ValidationError(f"Goal {goal_id} is already abandoned")

        remaining = self.allocations.derive_balance(goal_id)
        if remaining > 0 and refund_account_id is None:
            raise errors.RefundAccountRequired(
                f"Goal {goal_id} still holds {remaining:.2f}; a refund account is required",
                goal_id=goal_id,
                amount=remaining,
            )

        movement_date = date or _today()
        with self.db.unit_of_work():
            if remaining > 0:
                linked_account_id = self._require_linked_account(goal)
                self._require_account(refund_account_id)
                # Refunding into the linked account only releases the allocations.
                ledger_transaction_id = None
                if refund_account_id != linked_account_id:
                    ledger_transaction_id = self._transfer(
                        goal,
                        linked_account_id,
                        refund_account_id,
                        remaining,
                        movement_date,
                        category="goal_refund",
                        description="abandon-refund",
                    )
                self.db.create_goal_contribution(
                    goal_id=goal_id,
                    kind=ContributionKind.REFUND,
                    amount=remaining,
                    date=movement_date,
                    notes=reason.strip(),
                    account_id=refund_account_id,
                    ledger_transaction_id=ledger_transaction_id,
                )
            self.allocations.clear_allocations(goal_id)
            self.db.set_goal_status(goal_id, GoalStatus.ABANDONED, abandonment_reason=reason.strip())

        logger.info("Abandoned goal %s, refunded %s", goal_id, remaining)
        return remaining

    def _transfer(
        self,
        goal: GoalEntity,
        from_account_id: int,
        to_account_id: int,
        amount: Decimal,
        movement_date: date,
        category: str,
        description: str,
    ) -> int:
        try:
            return self.db.transfer(
                from_account_id=from_account_id,
                to_account_id=to_account_id,
                amount=amount,
                date=movement_date,
                kind=TransactionKind.TRANSFER,
                reference_kind=GOAL_REFERENCE_KIND,
                reference_id=str(goal.id),
                category=category,
                description=description,
            )
        except errors.FundMovementError as e:
            if e.goal_id is None:
                e.goal_id = goal.id
            logger.warning("Transfer for goal %s rejected: %s", goal.id, e)
            raise

    # Read models
    def get_progress(self, goal_id: int) -> GoalProgress:
        """Goal with derived balance and display status."""
        return self._progress(self.require_goal(goal_id))

    def _progress(self, goal: GoalEntity) -> GoalProgress:
        current = self.allocations.derive_balance(goal.id)
        percent = float(current / goal.target_amount * 100) if goal.target_amount > 0 else 0.0
        return GoalProgress(
            goal=goal,
            current_amount=current,
            progress_percent=percent,
            display_status=display_status(goal, current),
        )

    def list_goals(self, status: Optional[GoalStatus] = None, category: Optional[str] = None) -> list[GoalProgress]:
        """List goals with their derived balances, newest first."""
        return [self._progress(goal) for goal in self.db.list_goals(status=status, category=category)]

    def summarize_goals(self, goals: Optional[list[GoalProgress]] = None) -> GoalsSummary:
        """Count goals per displayed status and total the active ones."""
        if goals is None:
            goals = self.list_goals()

        def count(status: GoalStatus) -> int:
            return sum(1 for g in goals if g.display_status == status)

        active = [g for g in goals if g.goal.status == GoalStatus.ACTIVE]
        return GoalsSummary(
            total=len(goals),
            active=count(GoalStatus.ACTIVE),
            paused=count(GoalStatus.PAUSED),
            completed=count(GoalStatus.COMPLETED),
            abandoned=count(GoalStatus.ABANDONED),
            total_target_amount=sum((g.goal.target_amount for g in active), Decimal("0")),
            total_saved_amount=sum((g.current_amount for g in active), Decimal("0")),
        )

    def get_history(self, goal_id: int) -> list[GoalContributionRecord]:
        """Audit trail of a goal, newest first."""
        self.require_goal(goal_id)
        return self.db.list_goal_contributions(goal_id)


def display_status(goal: GoalEntity, current_amount: Decimal) -> GoalStatus:
    """Status to show for a goal.

    An active goal that has reached its target is shown as completed. This
    label is computed on read and never persisted.
    """
    if goal.status == GoalStatus.ACTIVE and current_amount >= goal.target_amount:
        return GoalStatus.COMPLETED
    return goal.status


def _today() -> date:
    return date.today()
