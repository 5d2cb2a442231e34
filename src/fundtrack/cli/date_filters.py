"""CLI helpers for date range resolution."""

from datetime import date

import click

from fundtrack.utils.date_parser import get_date_range, parse_date

PERIOD_OPTIONS = (
    ("--this-month", "this-month", "Filter to current month"),
    ("--this-year", "this-year", "Filter to current year"),
    ("--this-week", "this-week", "Filter to current week"),
    ("--last-month", "last-month", "Filter to previous month"),
    ("--last-year", "last-year", "Filter to previous year"),
    ("--last-week", "last-week", "Filter to previous week"),
)


def date_range_options(func):
    """Attach --start-date, --end-date and the period flags to a command."""
    for flag, _, help_text in reversed(PERIOD_OPTIONS):
        func = click.option(flag, is_flag=True, help=help_text)(func)
    func = click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")(func)
    func = click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month')")(func)
    return func


def pop_period_flags(kwargs: dict) -> dict[str, bool]:
    """Remove the period flags from click kwargs, keyed by period name."""
    return {period: kwargs.pop(period.replace("-", "_"), False) for _, period, _ in PERIOD_OPTIONS}


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    period_flags: dict[str, bool],
    default_range: tuple[date, date] | None = None,
) -> tuple[date | None, date | None]:
    """Resolve CLI date range from period flags or explicit dates."""
    period_count = sum(1 for is_set in period_flags.values() if is_set)

    if period_count > 1:
        click.echo(
            "Error: Only one period option (--this-month, --this-year, --this-week, --last-month, --last-year, --last-week) can be specified at a time.",
            err=True,
        )
        ctx.exit(1)

    if period_count > 0 and (start_date or end_date):
        click.echo(
            "Error: Period options (--this-month, --this-year, etc.) cannot be combined with --start-date or --end-date.",
            err=True,
        )
        ctx.exit(1)

    if period_count == 1:
        period = next(p for p, is_set in period_flags.items() if is_set)
        return get_date_range(period)

    start = _parse_or_exit(ctx, start_date, "start")
    end = _parse_or_exit(ctx, end_date, "end")

    if start is None and end is None and default_range is not None:
        return default_range

    if start is not None and end is not None and start > end:
        click.echo("Error: Start date must be on or before end date.", err=True)
        ctx.exit(1)

    return start, end


def _parse_or_exit(ctx, value: str | None, label: str) -> date | None:
    if not value:
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label} date: {e}", err=True)
        ctx.exit(1)
