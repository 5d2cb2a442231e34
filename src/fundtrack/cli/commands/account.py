"""Account management commands."""

import click
from fundtrack.domain.account import AccountService
from fundtrack.domain.errors import DomainError
from fundtrack.cli.error_handling import handle_domain_error
from fundtrack.cli.resolution import resolve_account_or_exit
from fundtrack.utils.amount_parser import parse_amount


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--institution", help="Bank or provider name (defaults to account name if not provided)")
@click.option("--opening-balance", default="0", help="Starting balance (default: 0)")
@click.pass_context
def create_account(ctx, name: str, institution: str | None, opening_balance: str):
    """Create a new account.

    Examples:
        fundtrack account create "M-Pesa" --opening-balance 2500
        fundtrack account create "Savings" --institution "Equity Bank"
    """
    db = ctx.obj["db"]
    service = AccountService(db)

    try:
        balance = parse_amount(opening_balance, allow_zero=True)
        account_id = service.create_account(
            name=name,
            institution_name=institution if institution is not None else name,
            opening_balance=balance,
        )
        click.echo(f"Created account '{name}' (ID: {account_id}) with balance {balance:,.2f}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.option("--active-only", is_flag=True, help="Hide deactivated accounts")
@click.pass_context
def list_accounts(ctx, active_only: bool):
    """List all accounts."""
    db = ctx.obj["db"]
    service = AccountService(db)

    accounts = service.list_accounts(active_only=active_only)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 72)
    for acc in accounts:
        status = "" if acc.is_active else " (inactive)"
        click.echo(
            f"ID: {acc.id:3d} | {acc.name:20s} | {acc.institution_name:20s} | {acc.balance:>12,.2f}{status}"
        )


@account_group.command("show")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def show_account(ctx, account: str):
    """Show account details.

    ACCOUNT can be an account name or ID.
    """
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)
    acc = service.require_account(account_id)

    click.echo(f"Account:     {acc.name} (ID: {acc.id})")
    click.echo(f"Institution: {acc.institution_name}")
    click.echo(f"Balance:     {acc.balance:,.2f}")
    click.echo(f"Status:      {'active' if acc.is_active else 'inactive'}")
    click.echo(f"Entries:     {db.get_account_transaction_count(account_id)}")
    click.echo(f"Goals:       {db.get_account_goal_count(account_id)}")


@account_group.command("deactivate")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def deactivate_account(ctx, account: str):
    """Deactivate an account so money can no longer move through it."""
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        service.deactivate_account(account_id)
        click.echo(f"Deactivated account {account_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("activate")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def activate_account(ctx, account: str):
    """Reactivate a deactivated account."""
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        service.activate_account(account_id)
        click.echo(f"Activated account {account_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt")
@click.pass_context
def delete_account(ctx, account: str, yes: bool) -> None:
    """Delete an account.

    ACCOUNT can be an account name or ID.

    The account can only be deleted if no ledger entries or goals refer to
    it. Deactivate it instead to keep its history.
    """
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)
    account_obj = service.require_account(account_id)

    if not yes and not click.confirm(
        f"Are you sure you want to delete account '{account_obj.name}' (ID: {account_id})?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_account(account_id)
        click.echo(f"Deleted account '{account_obj.name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
