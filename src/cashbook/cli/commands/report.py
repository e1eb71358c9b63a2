"""Report and export commands."""

from datetime import date
from pathlib import Path

import click

from cashbook.cli.date_filters import parse_date_or_exit, period_option, resolve_cli_date_range
from cashbook.domain.account import AccountService
from cashbook.domain.customer import CustomerService
from cashbook.domain.export import NameLookup, default_export_name, export_csv, export_excel
from cashbook.domain.summary import SummaryService
from cashbook.domain.transaction import TransactionService
from cashbook.utils.amount_parser import format_amount


@click.group()
def report_group():
    """Summaries and exports."""
    pass


def _date_range(ctx, start_date, end_date, period) -> tuple[date, date]:
    today = date.today()
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period=period, default_range=(today, today)
    )
    return start or end or today, end or today


@report_group.command("summary")
@click.option("--start-date", help="Start date (defaults to today)")
@click.option("--end-date", help="End date (defaults to today)")
@period_option
@click.pass_context
def summary(ctx, start_date: str | None, end_date: str | None, period: str | None):
    """Cash in, cash out and fees over a period."""
    start, end = _date_range(ctx, start_date, end_date, period)
    report = SummaryService(ctx.obj["workspace"]).report_summary(start, end)

    click.echo(f"\nSummary {start.isoformat()} to {end.isoformat()}")
    click.echo("-" * 40)
    click.echo(f"Cash in:       {format_amount(report.cash_in):>20s}")
    click.echo(f"Cash out:      {format_amount(report.cash_out):>20s}")
    click.echo(f"Fees earned:   {format_amount(report.fees):>20s}")
    click.echo(f"Transactions:  {report.count:>20d}")


@report_group.command("today")
@click.option("--date", "day", help="Show another day instead of today")
@click.pass_context
def today(ctx, day: str | None):
    """Dashboard totals for a day."""
    workspace = ctx.obj["workspace"]
    when = parse_date_or_exit(ctx, day, "date") if day else date.today()
    service = SummaryService(workspace)
    daily = service.daily_summary(when)
    accounts = AccountService(workspace)

    click.echo(f"\n{when.strftime('%A, %B %d, %Y')}")
    click.echo("-" * 50)
    click.echo(f"Cash received: {format_amount(daily.cash_received):>18s} ({daily.cash_received_count})")
    click.echo(f"Cash given:    {format_amount(daily.cash_given):>18s} ({daily.cash_given_count})")
    click.echo(f"Fees earned:   {format_amount(daily.fees):>18s}")
    click.echo(f"Total balance: {format_amount(service.total_balance()):>18s}")
    click.echo(f"Cash in hand:  {format_amount(accounts.cash_on_hand()):>18s}")

    position = service.cash_position(when)
    if position is not None:
        click.echo(
            f"Cash position: opening {format_amount(position.opening_balance)}, "
            f"closing {format_amount(position.closing_balance)}"
        )

    if daily.totals_by_type:
        click.echo("\nBy type:")
        for txn_type, total in sorted(daily.totals_by_type.items(), key=lambda item: item[0].value):
            click.echo(f"  {txn_type.label:22s} {format_amount(total):>18s}")
    click.echo(f"\n{daily.transaction_count} transaction(s)")


@report_group.command("export")
@click.option("--start-date", help="Start date (defaults to today)")
@click.option("--end-date", help="End date (defaults to today)")
@period_option
@click.option(
    "--format",
    "file_format",
    type=click.Choice(["csv", "xlsx"]),
    default="csv",
    show_default=True,
)
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Output file")
@click.pass_context
def export(ctx, start_date: str | None, end_date: str | None, period: str | None, file_format: str, output: str | None):
    """Export transactions to CSV or Excel.

    Examples:
        cashbook report export --period this-month
        cashbook report export --start-date 2024-01-01 --end-date 2024-01-31 --format xlsx
    """
    workspace = ctx.obj["workspace"]
    start, end = _date_range(ctx, start_date, end_date, period)
    txns = TransactionService(workspace).list_transactions(start_date=start, end_date=end)

    customers = CustomerService(workspace)
    lookup = NameLookup.build(
        accounts=AccountService(workspace).list_accounts(include_inactive=True),
        customers=customers.list_customers(),
        customer_accounts=customers.list_customer_accounts(),
    )

    path = Path(output) if output else Path(default_export_name(start, end, file_format))
    try:
        if file_format == "xlsx":
            count = export_excel(txns, lookup, path)
        else:
            with path.open("w", newline="", encoding="utf-8") as stream:
                count = export_csv(txns, lookup, stream)
    except OSError as e:
        click.echo(f"Error: Could not write {path}: {e}", err=True)
        ctx.exit(1)

    click.echo(f"Exported {count} transaction(s) to {path}")


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
