"""CLI helpers for date range resolution."""

from datetime import date

import click

from cashbook.utils.date_parser import PERIODS, get_date_range, parse_date

period_option = click.option(
    "--period",
    type=click.Choice(PERIODS),
    help="Named period (cannot be combined with --start-date/--end-date)",
)


def parse_date_or_exit(ctx: click.Context, value: str, label: str) -> date:
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    period: str | None,
    default_range: tuple[date, date] | None = None,
) -> tuple[date | None, date | None]:
    """Resolve CLI date range from a named period or explicit dates."""
    if period and (start_date or end_date):
        click.echo(
            "Error: --period cannot be combined with --start-date or --end-date.",
            err=True,
        )
        ctx.exit(1)

    if period:
        return get_date_range(period)

    start = parse_date_or_exit(ctx, start_date, "start date") if start_date else None
    end = parse_date_or_exit(ctx, end_date, "end date") if end_date else None

    if start is None and end is None and default_range is not None:
        start, end = default_range

    if start is not None and end is not None and start > end:
        click.echo("Error: Start date must be on or before end date.", err=True)
        ctx.exit(1)

    return start, end
