"""Utilities for resolving user-supplied names to IDs."""

from fundtrack.domain import errors
from fundtrack.domain.account import AccountService
from fundtrack.domain.goal import GoalService


def resolve_account(account_service: AccountService, account: str | int) -> int:
    """Resolve account name or ID to account ID.

    A value that parses as an integer is treated as an ID; anything else is
    looked up by exact name.

    Raises:
        NotFoundError: If account is not found
    """
    try:
        account_id = int(account)
    except (ValueError, TypeError):
        account_id = None

    if account_id is not None:
        if account_service.get_account(account_id) is None:
            raise errors.NotFoundError(f"Account ID {account_id} not found")
        return account_id

    for acc in account_service.list_accounts():
        if acc.name == account:
            return acc.id

    raise errors.NotFoundError(f"Account '{account}' not found")


def resolve_goal(goal_service: GoalService, goal: str | int) -> int:
    """Resolve goal name or ID to goal ID.

    Raises:
        NotFoundError: If no goal matches, or the name matches more than one
    """
    try:
        goal_id = int(goal)
    except (ValueError, TypeError):
        goal_id = None

    if goal_id is not None:
        goal_service.require_goal(goal_id)
        return goal_id

    matches = [g.goal.id for g in goal_service.list_goals() if g.goal.name == goal]
    if len(matches) > 1:
        raise errors.NotFoundError(f"Goal name '{goal}' is ambiguous; use its ID ({', '.join(map(str, matches))})")
    if not matches:
        raise errors.NotFoundError(f"Goal '{goal}' not found")
    return matches[0]
