"""Goal allocation engine.

A goal's balance is never stored. It is the sum of its allocation rows, each
of which ties part of a contribution transfer to the goal. Withdrawals consume
allocations oldest first.
"""

import logging
from decimal import Decimal

from fundtrack.database.base import Database
from fundtrack.domain import errors
from fundtrack.domain.entities import GoalAllocation

logger = logging.getLogger(__name__)


class AllocationEngine:
    """Owns the mapping between goals and the ledger transactions funding them."""

    def __init__(self, db: Database):
        """Initialize allocation engine.

        Args:
            db: Database instance
        """
        self.db = db

    def list_allocations(self, goal_id: int) -> list[GoalAllocation]:
        """List a goal's allocations, oldest first."""
        return self.db.list_allocations(goal_id)

    def derive_balance(self, goal_id: int) -> Decimal:
        """Compute the amount currently allocated to a goal.

        Always recomputed from the allocation rows.

        Raises:
            DataIntegrityViolation: If the allocations sum to a negative amount
        """
        return self._fold(goal_id, self.db.list_allocations(goal_id))

    def _fold(self, goal_id: int, allocations: list[GoalAllocation]) -> Decimal:
        balance = sum((a.amount for a in allocations), Decimal("0"))
        if balance < 0:
            logger.error(
                "Goal %s has negative allocated balance %s across %d allocations",
                goal_id,
                balance,
                len(allocations),
            )
            raise errors.DataIntegrityViolation(
                f"Goal {goal_id} has a negative allocated balance ({balance}); "
                "allocations and ledger are out of sync"
            )
        return balance

    def record_allocation(self, goal_id: int, ledger_transaction_id: int, amount: Decimal) -> int:
        """Allocate the funds moved by a contribution transfer to a goal.

        Returns:
            Allocation ID

        Raises:
            ValidationError: If amount is not positive or finer than a cent
        """
        errors.require_positive_amount(amount)
        allocation_id = self.db.create_allocation(goal_id, ledger_transaction_id, amount)
        logger.debug(
            "Allocated %s of ledger transaction %s to goal %s", amount, ledger_transaction_id, goal_id
        )
        return allocation_id

    def plan_fifo(self, allocations: list[GoalAllocation], amount: Decimal) -> tuple[list[int], dict[int, Decimal]]:
        """Work out which allocations a FIFO consumption deletes or shrinks.

        Args:
            allocations: Allocations oldest first
            amount: Amount to remove

        Returns:
            Tuple of (IDs to delete, mapping of ID to reduced amount)
        """
        remaining = amount
        to_delete: list[int] = []
        to_update: dict[int, Decimal] = {}

        for allocation in allocations:
            if remaining <= 0:
                break
            if allocation.amount <= remaining:
                to_delete.append(allocation.id)
                remaining -= allocation.amount
            else:
                to_update[allocation.id] = allocation.amount - remaining
                remaining = Decimal("0")

        return to_delete, to_update

    def consume_fifo(self, goal_id: int, amount: Decimal) -> Decimal:
        """Remove an amount from a goal's allocations, oldest first.

        The whole consumption is applied in one unit of work.

        Returns:
            New derived balance

        Raises:
            ValidationError: If amount is not positive or finer than a cent
            InsufficientAllocation: If amount exceeds the derived balance
        """
        errors.require_positive_amount(amount)

        allocations = self.db.list_allocations(goal_id)
        balance = self._fold(goal_id, allocations)
        if amount > balance:
            raise errors.InsufficientAllocation(
                errors.insufficient_allocation(goal_id, balance, amount),
                goal_id=goal_id,
                amount=amount,
            )

        to_delete, to_update = self.plan_fifo(allocations, amount)
        with self.db.unit_of_work():
            self.db.delete_allocations(to_delete)
            for allocation_id, new_amount in to_update.items():
                self.db.update_allocation_amount(allocation_id, new_amount)

        logger.debug(
            "Consumed %s from goal %s: deleted %s, reduced %s",
            amount,
            goal_id,
            to_delete,
            sorted(to_update),
        )
        return self.derive_balance(goal_id)

    def clear_allocations(self, goal_id: int) -> int:
        """Delete every allocation of a goal. Idempotent.

        Returns:
            Number of allocations deleted
        """
        deleted = self.db.delete_goal_allocations(goal_id)
        if deleted:
            logger.debug("Cleared %d allocations from goal %s", deleted, goal_id)
        return deleted
