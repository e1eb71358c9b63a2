"""Account management commands."""

import click

from cashbook.cli.error_handling import handle_domain_error
from cashbook.domain.account import AccountService
from cashbook.domain.entities import AccountType
from cashbook.domain.errors import DomainError
from cashbook.utils.amount_parser import format_amount, parse_amount


@click.group()
def account_group():
    """Manage cash, bank and wallet accounts."""
    pass


def _sync_marker(record_id) -> str:
    return " (not synced)" if record_id.is_local else ""


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option(
    "--type",
    "account_type",
    type=click.Choice([t.value for t in AccountType]),
    default=AccountType.CASH.value,
    show_default=True,
    help="Account type",
)
@click.option("--opening-balance", default="0", help="Opening balance (e.g. 25000 or 'Rs. 25,000')")
@click.option("--number", "account_number", help="Account number")
@click.option("--provider", help="Bank or wallet provider (e.g. 'Meezan', 'JazzCash')")
@click.pass_context
def create_account(
    ctx,
    name: str,
    account_type: str,
    opening_balance: str,
    account_number: str | None,
    provider: str | None,
):
    """Create a new account.

    Examples:
        cashbook account create "Cash Box"
        cashbook account create "Meezan Current" --type bank --opening-balance 50000 --number 0123456789
        cashbook account create "JazzCash" --type wallet --provider JazzCash
    """
    service = AccountService(ctx.obj["workspace"])

    try:
        balance = parse_amount(opening_balance)
    except ValueError as e:
        click.echo(f"Error: Invalid opening balance: {e}", err=True)
        ctx.exit(1)

    try:
        account = service.create_account(
            name=name,
            account_type=account_type,
            opening_balance=balance,
            account_number=account_number,
            provider=provider,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created account '{account.name}' (ID: {account.id}){_sync_marker(account.id)}")
    if account.id.is_local:
        click.echo(
            "Note: accounts created offline stay on this device and are replaced "
            "by the server's list on the next 'cashbook sync pull'."
        )


@account_group.command("list")
@click.option("--all", "include_inactive", is_flag=True, help="Include deactivated accounts")
@click.pass_context
def list_accounts(ctx, include_inactive: bool):
    """List accounts with their current balances."""
    service = AccountService(ctx.obj["workspace"])

    accounts = service.list_accounts(include_inactive=include_inactive)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 80)
    for acc in accounts:
        extra = f" | {acc.provider}" if acc.provider else ""
        inactive = " [inactive]" if not acc.is_active else ""
        click.echo(
            f"{acc.name:20s} | {acc.type.value:6s} | {format_amount(acc.current_balance):>18s}"
            f"{extra}{inactive} | ID: {acc.id}"
        )


@account_group.command("update")
@click.argument("account", metavar="ACCOUNT")
@click.option("--name", help="New account name")
@click.option("--number", "account_number", help="New account number")
@click.option("--provider", help="New provider")
@click.pass_context
def update_account(ctx, account: str, name: str | None, account_number: str | None, provider: str | None):
    """Update an account's name, number or provider.

    ACCOUNT can be an account name or ID.
    """
    service = AccountService(ctx.obj["workspace"])
    try:
        acc = service.find_account(account)
        updated = service.update_account(acc.id, name=name, account_number=account_number, provider=provider)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated account '{updated.name}'")


@account_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_account(ctx, account: str, yes: bool):
    """Deactivate an account.

    ACCOUNT can be an account name or ID. Synced accounts are deactivated
    on the server so their transaction history is kept.
    """
    service = AccountService(ctx.obj["workspace"])
    try:
        acc = service.find_account(account)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not yes and not click.confirm(f"Are you sure you want to delete account '{acc.name}'?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_account(acc.id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted account '{acc.name}'")


@account_group.command("balance")
@click.pass_context
def balance(ctx):
    """Show total balance across accounts and cash in hand."""
    service = AccountService(ctx.obj["workspace"])
    click.echo(f"Total balance: {format_amount(service.total_balance())}")
    click.echo(f"Cash in hand:  {format_amount(service.cash_on_hand())}")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
