"""Savings goal commands."""

import click
from fundtrack.domain.account import AccountService
from fundtrack.domain.entities import GoalStatus
from fundtrack.domain.errors import DomainError
from fundtrack.domain.goal import GoalService
from fundtrack.cli.error_handling import handle_domain_error
from fundtrack.cli.resolution import resolve_account_or_exit, resolve_goal_or_exit
from fundtrack.utils.amount_parser import parse_amount
from fundtrack.utils.date_parser import parse_date

STATUS_CHOICES = [s.value for s in GoalStatus if s != GoalStatus.COMPLETED]


def _parse_amount_or_exit(ctx, amount: str):
    try:
        return parse_amount(amount)
    except ValueError as e:
        handle_domain_error(ctx, e)


def _parse_date_or_exit(ctx, date_str: str | None):
    if not date_str:
        return None
    try:
        return parse_date(date_str)
    except ValueError as e:
        handle_domain_error(ctx, e)


def _format_progress(progress) -> str:
    goal = progress.goal
    return (
        f"ID: {goal.id:3d} | {goal.name:20s} | {progress.current_amount:>12,.2f} / {goal.target_amount:<12,.2f}"
        f" | {progress.progress_percent:5.1f}% | {progress.display_status.value}"
    )


@click.group()
def goal_group():
    """Manage savings goals."""
    pass


@goal_group.command("create")
@click.argument("name", metavar="GOAL_NAME")
@click.argument("target")
@click.option("--account", help="Account that holds the goal's money (name or ID)")
@click.option("--deadline", help="Target date")
@click.option("--category", default="other", help="Goal type, e.g. 'emergency-fund'")
@click.option("--description", help="Free-text description")
@click.pass_context
def create_goal(
    ctx,
    name: str,
    target: str,
    account: str | None,
    deadline: str | None,
    category: str,
    description: str | None,
):
    """Create a goal to save TARGET.

    Examples:
        fundtrack goal create "Emergency fund" 100000 --account "Savings"
    """
    db = ctx.obj["db"]
    service = GoalService(db)
    target_amount = _parse_amount_or_exit(ctx, target)
    deadline_date = _parse_date_or_exit(ctx, deadline)
    account_id = resolve_account_or_exit(ctx, AccountService(db), account) if account else None

    try:
        goal_id = service.create_goal(
            name=name,
            target_amount=target_amount,
            deadline=deadline_date,
            description=description,
            category=category,
            linked_account_id=account_id,
        )
        click.echo(f"Created goal '{name}' (ID: {goal_id}) targeting {target_amount:,.2f}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@goal_group.command("list")
@click.option("--status", type=click.Choice(STATUS_CHOICES), help="Filter by stored status")
@click.option("--category", help="Filter by goal type")
@click.pass_context
def list_goals(ctx, status: str | None, category: str | None):
    """List goals with their progress."""
    service = GoalService(ctx.obj["db"])
    goals = service.list_goals(status=GoalStatus(status) if status else None, category=category)
    if not goals:
        click.echo("No goals found.")
        return

    click.echo("\nGoals:")
    click.echo("-" * 80)
    for progress in goals:
        click.echo(_format_progress(progress))

    summary = service.summarize_goals(goals)
    click.echo("-" * 80)
    click.echo(
        f"{summary.total} goals ({summary.active} active, {summary.paused} paused, "
        f"{summary.completed} completed, {summary.abandoned} abandoned)"
    )
    click.echo(f"Saved {summary.total_saved_amount:,.2f} of {summary.total_target_amount:,.2f}")


@goal_group.command("show")
@click.argument("goal", metavar="GOAL")
@click.pass_context
def show_goal(ctx, goal: str):
    """Show a goal's details and balance.

    GOAL can be a goal name or ID.
    """
    service = GoalService(ctx.obj["db"])
    goal_id = resolve_goal_or_exit(ctx, service, goal)
    progress = service.get_progress(goal_id)
    g = progress.goal

    click.echo(f"Goal:     {g.name} (ID: {g.id})")
    click.echo(f"Status:   {progress.display_status.value}")
    click.echo(f"Saved:    {progress.current_amount:,.2f} of {g.target_amount:,.2f} ({progress.progress_percent:.1f}%)")
    click.echo(f"Category: {g.category}")
    if g.linked_account_id is not None:
        account = AccountService(ctx.obj["db"]).get_account(g.linked_account_id)
        label = account.name if account is not None else "unknown"
        click.echo(f"Account:  {label} (ID: {g.linked_account_id})")
    if g.deadline is not None:
        click.echo(f"Deadline: {g.deadline.isoformat()}")
    if g.description:
        click.echo(f"Notes:    {g.description}")
    if g.abandonment_reason:
        click.echo(f"Abandoned because: {g.abandonment_reason}")


@goal_group.command("contribute")
@click.argument("goal", metavar="GOAL")
@click.argument("amount")
@click.option("--from", "source", required=True, help="Account the money comes from (name or ID)")
@click.option("--date", "date_str", help="Contribution date (default: today)")
@click.option("--notes", help="Free-text notes")
@click.pass_context
def contribute(ctx, goal: str, amount: str, source: str, date_str: str | None, notes: str | None):
    """Move AMOUNT from an account into GOAL."""
    db = ctx.obj["db"]
    service = GoalService(db)
    goal_id = resolve_goal_or_exit(ctx, service, goal)
    source_id = resolve_account_or_exit(ctx, AccountService(db), source)
    parsed_amount = _parse_amount_or_exit(ctx, amount)
    entry_date = _parse_date_or_exit(ctx, date_str)

    try:
        balance = service.contribute(goal_id, parsed_amount, source_id, date=entry_date, notes=notes)
        click.echo(f"Contributed {parsed_amount:,.2f}; goal balance is now {balance:,.2f}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@goal_group.command("withdraw")
@click.argument("goal", metavar="GOAL")
@click.argument("amount")
@click.option("--to", "destination", required=True, help="Account receiving the money (name or ID)")
@click.option("--reason", help="Why the money is being taken out")
@click.option("--date", "date_str", help="Withdrawal date (default: today)")
@click.pass_context
def withdraw(ctx, goal: str, amount: str, destination: str, reason: str | None, date_str: str | None):
    """Move AMOUNT out of GOAL, oldest contributions first."""
    db = ctx.obj["db"]
    service = GoalService(db)
    goal_id = resolve_goal_or_exit(ctx, service, goal)
    destination_id = resolve_account_or_exit(ctx, AccountService(db), destination)
    parsed_amount = _parse_amount_or_exit(ctx, amount)
    entry_date = _parse_date_or_exit(ctx, date_str)

    try:
        balance = service.withdraw(goal_id, parsed_amount, destination_id, reason=reason, date=entry_date)
        click.echo(f"Withdrew {parsed_amount:,.2f}; goal balance is now {balance:,.2f}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@goal_group.command("abandon")
@click.argument("goal", metavar="GOAL")
@click.option("--reason", required=True, help="Why the goal is abandoned")
@click.option("--refund-to", help="Account receiving any remaining funds (name or ID)")
@click.option("--date", "date_str", help="Refund date (default: today)")
@click.pass_context
def abandon(ctx, goal: str, reason: str, refund_to: str | None, date_str: str | None):
    """Abandon GOAL, refunding what it still holds."""
    db = ctx.obj["db"]
    service = GoalService(db)
    goal_id = resolve_goal_or_exit(ctx, service, goal)
    refund_id = resolve_account_or_exit(ctx, AccountService(db), refund_to) if refund_to else None
    entry_date = _parse_date_or_exit(ctx, date_str)

    try:
        refunded = service.abandon(goal_id, reason, refund_account_id=refund_id, date=entry_date)
        click.echo(f"Abandoned goal {goal_id}")
        if refunded > 0:
            click.echo(f"Refunded {refunded:,.2f} to account {refund_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@goal_group.command("pause")
@click.argument("goal", metavar="GOAL")
@click.pass_context
def pause(ctx, goal: str):
    """Pause an active goal."""
    service = GoalService(ctx.obj["db"])
    goal_id = resolve_goal_or_exit(ctx, service, goal)
    try:
        service.pause(goal_id)
        click.echo(f"Paused goal {goal_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@goal_group.command("resume")
@click.argument("goal", metavar="GOAL")
@click.pass_context
def resume(ctx, goal: str):
    """Resume a paused goal."""
    service = GoalService(ctx.obj["db"])
    goal_id = resolve_goal_or_exit(ctx, service, goal)
    try:
        service.resume(goal_id)
        click.echo(f"Resumed goal {goal_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@goal_group.command("delete")
@click.argument("goal", metavar="GOAL")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt")
@click.pass_context
def delete_goal(ctx, goal: str, yes: bool):
    """Delete a goal that never received money.

    Goals with history must be abandoned instead.
    """
    service = GoalService(ctx.obj["db"])
    goal_id = resolve_goal_or_exit(ctx, service, goal)
    if not yes and not click.confirm(f"Are you sure you want to delete goal {goal_id}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_goal(goal_id)
        click.echo(f"Deleted goal {goal_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@goal_group.command("history")
@click.argument("goal", metavar="GOAL")
@click.pass_context
def history(ctx, goal: str):
    """Show contributions, withdrawals and refunds for GOAL, newest first."""
    service = GoalService(ctx.obj["db"])
    goal_id = resolve_goal_or_exit(ctx, service, goal)
    records = service.get_history(goal_id)
    if not records:
        click.echo("No history for this goal.")
        return

    for record in records:
        notes = f"  {record.notes}" if record.notes else ""
        click.echo(f"{record.date.isoformat()}  {record.kind.value:12s} {record.amount:>12,.2f}{notes}")


def register_commands(cli):
    """Register goal commands with main CLI."""
    cli.add_command(goal_group, name="goal")
