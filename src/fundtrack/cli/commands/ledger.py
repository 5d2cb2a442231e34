"""Ledger commands: income, expenses, transfers and reversals."""

import click
from fundtrack.domain.account import AccountService
from fundtrack.domain.entities import TransactionKind
from fundtrack.domain.errors import DomainError
from fundtrack.domain.ledger import LedgerService
from fundtrack.cli.date_filters import date_range_options, pop_period_flags, resolve_cli_date_range
from fundtrack.cli.error_handling import handle_domain_error
from fundtrack.cli.resolution import resolve_account_or_exit
from fundtrack.utils.amount_parser import parse_amount
from fundtrack.utils.date_parser import parse_date

KIND_CHOICES = [k.value for k in TransactionKind]


def _parse_inputs(ctx, amount: str, fee: str | None = None, date_str: str | None = None):
    """Parse amount, optional fee and optional date, exiting on bad input."""
    try:
        parsed_amount = parse_amount(amount)
        parsed_fee = parse_amount(fee, allow_zero=True) if fee else None
        parsed_date = parse_date(date_str) if date_str else None
    except ValueError as e:
        handle_domain_error(ctx, e)
    return parsed_amount, parsed_fee, parsed_date


@click.group()
def ledger_group():
    """Record and correct ledger entries."""
    pass


@ledger_group.command("income")
@click.argument("account", metavar="ACCOUNT")
@click.argument("amount")
@click.option("--date", "date_str", help="Entry date (default: today)")
@click.option("--category", help="Category, e.g. 'salary'")
@click.option("--description", help="Free-text description")
@click.pass_context
def record_income(ctx, account: str, amount: str, date_str: str | None, category: str | None, description: str | None):
    """Record money received into ACCOUNT.

    Examples:
        fundtrack ledger income "M-Pesa" 45000 --category salary
    """
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)
    parsed_amount, _, entry_date = _parse_inputs(ctx, amount, date_str=date_str)

    try:
        txn_id = LedgerService(db).record_income(
            account_id, parsed_amount, date=entry_date, category=category, description=description
        )
        click.echo(f"Recorded income of {parsed_amount:,.2f} (entry {txn_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@ledger_group.command("expense")
@click.argument("account", metavar="ACCOUNT")
@click.argument("amount")
@click.option("--date", "date_str", help="Entry date (default: today)")
@click.option("--category", help="Category, e.g. 'groceries'")
@click.option("--description", help="Free-text description")
@click.option("--fee", help="Transaction fee charged on top of the amount")
@click.pass_context
def record_expense(
    ctx,
    account: str,
    amount: str,
    date_str: str | None,
    category: str | None,
    description: str | None,
    fee: str | None,
):
    """Record spending from ACCOUNT, with an optional separate fee."""
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)
    parsed_amount, parsed_fee, entry_date = _parse_inputs(ctx, amount, fee, date_str)

    try:
        kwargs = {"fee": parsed_fee} if parsed_fee is not None else {}
        txn_id = LedgerService(db).record_expense(
            account_id, parsed_amount, date=entry_date, category=category, description=description, **kwargs
        )
        click.echo(f"Recorded expense of {parsed_amount:,.2f} (entry {txn_id})")
        if parsed_fee:
            click.echo(f"Fee: {parsed_fee:,.2f}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@ledger_group.command("transfer")
@click.argument("from_account", metavar="FROM_ACCOUNT")
@click.argument("to_account", metavar="TO_ACCOUNT")
@click.argument("amount")
@click.option("--date", "date_str", help="Entry date (default: today)")
@click.option("--description", help="Free-text description")
@click.option("--fee", help="Fee charged to the source account")
@click.pass_context
def transfer(
    ctx,
    from_account: str,
    to_account: str,
    amount: str,
    date_str: str | None,
    description: str | None,
    fee: str | None,
):
    """Move money from FROM_ACCOUNT to TO_ACCOUNT."""
    db = ctx.obj["db"]
    accounts = AccountService(db)
    from_id = resolve_account_or_exit(ctx, accounts, from_account)
    to_id = resolve_account_or_exit(ctx, accounts, to_account)
    parsed_amount, parsed_fee, entry_date = _parse_inputs(ctx, amount, fee, date_str)

    try:
        kwargs = {"fee": parsed_fee} if parsed_fee is not None else {}
        txn_id = LedgerService(db).transfer_between_accounts(
            from_id, to_id, parsed_amount, date=entry_date, description=description, **kwargs
        )
        click.echo(f"Transferred {parsed_amount:,.2f} (entry {txn_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@ledger_group.command("reverse")
@click.argument("transaction_id", type=int)
@click.option("--date", "date_str", help="Reversal date (default: today)")
@click.option("--reason", help="Why the entry is being voided")
@click.pass_context
def reverse(ctx, transaction_id: int, date_str: str | None, reason: str | None):
    """Void a ledger entry by posting a compensating reversal."""
    db = ctx.obj["db"]
    try:
        entry_date = parse_date(date_str) if date_str else None
        reversal_id = LedgerService(db).reverse(transaction_id, date=entry_date, reason=reason)
        click.echo(f"Reversed entry {transaction_id} (reversal entry {reversal_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@ledger_group.command("list")
@date_range_options
@click.option("--account", help="Only entries touching this account (name or ID)")
@click.option("--kind", "kinds", multiple=True, type=click.Choice(KIND_CHOICES), help="Filter by kind (repeatable)")
@click.option("--category", help="Filter by category")
@click.pass_context
def list_entries(ctx, start_date: str | None, end_date: str | None, account: str | None, kinds, category, **kwargs):
    """List ledger entries, oldest first."""
    db = ctx.obj["db"]
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period_flags=pop_period_flags(kwargs)
    )
    account_id = resolve_account_or_exit(ctx, AccountService(db), account) if account else None

    entries = LedgerService(db).list_entries(
        kinds=[TransactionKind(k) for k in kinds] or None,
        start_date=start,
        end_date=end,
        account_id=account_id,
        category=category,
    )
    if not entries:
        click.echo("No ledger entries found.")
        return

    click.echo(f"{'ID':>5}  {'Date':10}  {'Kind':22}  {'From':>5}  {'To':>5}  {'Amount':>12}  Category")
    click.echo("-" * 80)
    for txn in entries:
        click.echo(
            f"{txn.id:>5}  {txn.date.isoformat():10}  {txn.kind.value:22}  "
            f"{txn.from_account_id or '-':>5}  {txn.to_account_id or '-':>5}  "
            f"{txn.amount:>12,.2f}  {txn.category or ''}"
        )


def register_commands(cli):
    """Register ledger commands with main CLI."""
    cli.add_command(ledger_group, name="ledger")
