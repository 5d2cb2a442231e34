"""CLI helpers for resolving account and goal arguments."""

from __future__ import annotations

import click

from fundtrack.domain.account import AccountService
from fundtrack.domain.errors import DomainError
from fundtrack.domain.goal import GoalService
from fundtrack.cli.error_handling import handle_domain_error
from fundtrack.utils.resolvers import resolve_account, resolve_goal


def resolve_account_or_exit(ctx: click.Context, account_service: AccountService, account: str | int) -> int:
    """Resolve account name or ID, or exit with a CLI error."""
    try:
        return resolve_account(account_service, account)
    except DomainError as exc:
        handle_domain_error(ctx, exc)


def resolve_goal_or_exit(ctx: click.Context, goal_service: GoalService, goal: str | int) -> int:
    """Resolve goal name or ID, or exit with a CLI error."""
    try:
        return resolve_goal(goal_service, goal)
    except DomainError as exc:
        handle_domain_error(ctx, exc)
