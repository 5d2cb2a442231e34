"""Reporting commands."""

import click
from fundtrack.domain.account import AccountService
from fundtrack.domain.entities import TransactionKind
from fundtrack.domain.reporting import ReportingService
from fundtrack.cli.date_filters import date_range_options, pop_period_flags, resolve_cli_date_range
from fundtrack.cli.resolution import resolve_account_or_exit


def _resolve_range(ctx, start_date, end_date, kwargs):
    return resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period_flags=pop_period_flags(kwargs)
    )


def _describe_range(start, end) -> str:
    if start is None and end is None:
        return "all time"
    return f"{start.isoformat() if start else 'beginning'} to {end.isoformat() if end else 'now'}"


@click.group()
def report_group():
    """Report on income, spending and cash flow.

    Reversed entries are left out of every report.
    """
    pass


@report_group.command("kind")
@click.argument("kind", type=click.Choice([k.value for k in TransactionKind if k != TransactionKind.REVERSAL]))
@date_range_options
@click.option("--verbose", "-v", is_flag=True, help="List the matching entries")
@click.pass_context
def kind_report(ctx, kind: str, start_date, end_date, verbose: bool, **kwargs):
    """Total the entries of one KIND in the date range."""
    start, end = _resolve_range(ctx, start_date, end_date, kwargs)
    result = ReportingService(ctx.obj["db"]).by_kind(TransactionKind(kind), start, end)

    click.echo(f"{kind} ({_describe_range(start, end)}): {result.total:,.2f} in {len(result.transactions)} entries")
    if verbose:
        for txn in result.transactions:
            click.echo(f"  {txn.id:>5}  {txn.date.isoformat()}  {txn.amount:>12,.2f}  {txn.description or ''}")


@report_group.command("categories")
@date_range_options
@click.pass_context
def categories_report(ctx, start_date, end_date, **kwargs):
    """Break spending (expenses and fees) down by category."""
    start, end = _resolve_range(ctx, start_date, end_date, kwargs)
    breakdown = ReportingService(ctx.obj["db"]).category_breakdown(start, end)

    if not breakdown.categories:
        click.echo("No spending found.")
        return

    click.echo(f"{'Category':30s} {'Total':>12} {'Count':>6} {'Average':>12} {'Share':>7}")
    click.echo("-" * 72)
    for row in breakdown.categories:
        click.echo(
            f"{row.category:30s} {row.total:>12,.2f} {row.count:>6d} {row.average:>12,.2f} {row.percentage:>6.1f}%"
        )
    click.echo("-" * 72)
    click.echo(f"{'Total':30s} {breakdown.total:>12,.2f}")


@report_group.command("trend")
@date_range_options
@click.option("--yearly", is_flag=True, help="Bucket by year instead of month")
@click.pass_context
def trend_report(ctx, start_date, end_date, yearly: bool, **kwargs):
    """Show income, spending and savings per month (or year)."""
    start, end = _resolve_range(ctx, start_date, end_date, kwargs)
    service = ReportingService(ctx.obj["db"])
    report = service.yearly_trend(start, end) if yearly else service.monthly_trend(start, end)

    if not report.buckets:
        click.echo("No entries found.")
        return

    click.echo(f"{'Period':8s} {'Income':>12} {'Spent':>12} {'Saved':>12} {'Rate':>7} {'Inc chg':>8} {'Exp chg':>8}")
    click.echo("-" * 74)
    for bucket in report.buckets:
        click.echo(
            f"{bucket.period:8s} {bucket.income:>12,.2f} {bucket.total_expenses:>12,.2f} "
            f"{bucket.savings:>12,.2f} {bucket.savings_rate:>6.1f}% "
            f"{bucket.income_change:>7.1f}% {bucket.expense_change:>7.1f}%"
        )
    click.echo("-" * 74)
    click.echo(f"{'Total':8s} {report.income:>12,.2f} {report.total_expenses:>12,.2f} {report.savings:>12,.2f}")


@report_group.command("cashflow")
@date_range_options
@click.option("--daily", is_flag=True, help="Show per-day totals with a running balance")
@click.pass_context
def cashflow_report(ctx, start_date, end_date, daily: bool, **kwargs):
    """Show money coming in against money going out."""
    start, end = _resolve_range(ctx, start_date, end_date, kwargs)
    report = ReportingService(ctx.obj["db"]).cash_flow(start, end)

    click.echo(f"Inflows:  {report.inflows:>12,.2f}")
    click.echo(f"Outflows: {report.outflows:>12,.2f}")
    click.echo(f"Net:      {report.net_flow:>12,.2f}")
    ratio = report.inflow_outflow_ratio
    click.echo(f"Ratio:    {'n/a' if ratio is None else f'{ratio:.2f}':>12}")

    if daily and report.daily:
        click.echo()
        click.echo(f"{'Date':10s} {'In':>12} {'Out':>12} {'Net':>12} {'Running':>12}")
        for day in report.daily:
            click.echo(
                f"{day.date.isoformat():10s} {day.inflow:>12,.2f} {day.outflow:>12,.2f} "
                f"{day.net:>12,.2f} {day.cumulative:>12,.2f}"
            )


@report_group.command("summary")
@date_range_options
@click.pass_context
def summary_report(ctx, start_date, end_date, **kwargs):
    """Summarize income, spending and savings."""
    start, end = _resolve_range(ctx, start_date, end_date, kwargs)
    summary = ReportingService(ctx.obj["db"]).report_summary(start, end)

    click.echo(f"Period:         {_describe_range(start, end)}")
    click.echo(f"Income:         {summary.total_income:>12,.2f}")
    click.echo(f"Spending:       {summary.total_expenses:>12,.2f}")
    click.echo(f"Net savings:    {summary.net_savings:>12,.2f}")
    click.echo(f"Savings rate:   {summary.savings_rate:>11.1f}%")
    click.echo(f"Entries:        {summary.total_transactions:>12d}")
    click.echo(f"Avg daily cost: {summary.avg_daily_expense:>12,.2f}")
    if summary.top_category is not None:
        click.echo(f"Top category:   {summary.top_category.category} ({summary.top_category.total:,.2f})")


@report_group.command("explore")
@date_range_options
@click.option("--account", help="Only entries touching this account (name or ID)")
@click.option("--category", help="Filter by category")
@click.option("--hide-reversals", is_flag=True, help="Leave reversal entries out")
@click.pass_context
def explore(ctx, start_date, end_date, account, category, hide_reversals: bool, **kwargs):
    """List entries newest first, marking the ones that were reversed."""
    db = ctx.obj["db"]
    start, end = _resolve_range(ctx, start_date, end_date, kwargs)
    account_id = resolve_account_or_exit(ctx, AccountService(db), account) if account else None

    rows = ReportingService(db).explore_transactions(
        start, end, account_id=account_id, category=category, include_reversals=not hide_reversals
    )
    if not rows:
        click.echo("No ledger entries found.")
        return

    for row in rows:
        txn = row.transaction
        marker = " [reversed]" if row.is_reversed else ""
        click.echo(
            f"{txn.id:>5}  {txn.date.isoformat()}  {txn.kind.value:22s} {txn.amount:>12,.2f}  "
            f"{txn.category or ''}{marker}"
        )


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
