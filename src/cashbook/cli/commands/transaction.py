"""Transaction commands."""

import click

from cashbook.cli.date_filters import parse_date_or_exit, period_option, resolve_cli_date_range
from cashbook.cli.error_handling import handle_domain_error
from cashbook.domain.account import AccountService
from cashbook.domain.customer import CustomerService
from cashbook.domain.entities import Subcategory, TransactionType
from cashbook.domain.errors import DomainError
from cashbook.domain.transaction import TransactionService
from cashbook.utils.amount_parser import format_amount, parse_amount

TYPE_CHOICES = [t.value for t in TransactionType]


@click.group()
def transaction_group():
    """Record and review transactions."""
    pass


def _parse_amount_or_exit(ctx, value: str, label: str):
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def _names(workspace) -> tuple[dict[str, str], dict[str, str]]:
    accounts = {str(a.id): a.name for a in AccountService(workspace).list_accounts(include_inactive=True)}
    customers = {str(c.id): c.name for c in CustomerService(workspace).list_customers()}
    return accounts, customers


def _describe(txn, accounts: dict[str, str], customers: dict[str, str]) -> str:
    parties = []
    if txn.customer_id is not None:
        parties.append(customers.get(str(txn.customer_id), str(txn.customer_id)))
    if txn.from_account_id is not None:
        parties.append(f"from {accounts.get(str(txn.from_account_id), str(txn.from_account_id))}")
    if txn.to_account_id is not None:
        parties.append(f"to {accounts.get(str(txn.to_account_id), str(txn.to_account_id))}")
    label = txn.type.label
    if txn.subcategory is not None:
        label = f"{label} ({txn.subcategory.value})"
    return f"{label:28s} | {format_amount(txn.amount):>16s} | fee {txn.fee_amount:>8} | {' '.join(parties)}"


@transaction_group.command("add")
@click.argument("transaction_type", metavar="TYPE", type=click.Choice(TYPE_CHOICES))
@click.option("--amount", required=True, help="Transaction amount (e.g. 5000 or 'Rs. 5,000')")
@click.option("--fee", help="Fee charged (defaults to the customer's fee policy)")
@click.option("--customer", help="Customer name or ID")
@click.option("--from", "from_account", help="Account the money leaves (name or ID)")
@click.option("--to", "to_account", help="Account the money enters (name or ID)")
@click.option("--customer-account", help="Customer account ID")
@click.option("--subcategory", type=click.Choice([s.value for s in Subcategory]), help="For personal types")
@click.option("--description", help="Description")
@click.option("--date", "txn_date", help="Transaction date (YYYY-MM-DD or 'today', 'yesterday')")
@click.pass_context
def add_transaction(
    ctx,
    transaction_type: str,
    amount: str,
    fee: str | None,
    customer: str | None,
    from_account: str | None,
    to_account: str | None,
    customer_account: str | None,
    subcategory: str | None,
    description: str | None,
    txn_date: str | None,
):
    """Record a transaction.

    Works offline: the transaction is kept locally and delivered by
    'cashbook sync push' once the server is reachable.

    Examples:
        cashbook transaction add cash_in --amount 5000 --customer "Ali Khan" --from "Meezan Current"
        cashbook transaction add cash_out --amount 2000 --customer Sara --to JazzCash --fee 50
        cashbook transaction add expense --amount 300 --from "Cash Box" --description "Tea"
    """
    workspace = ctx.obj["workspace"]
    service = TransactionService(workspace)
    accounts = AccountService(workspace)
    customers = CustomerService(workspace)

    txn_amount = _parse_amount_or_exit(ctx, amount, "amount")
    txn_fee = _parse_amount_or_exit(ctx, fee, "fee") if fee else None
    when = parse_date_or_exit(ctx, txn_date, "date") if txn_date else None

    try:
        customer_id = customers.find_customer(customer).id if customer else None
        from_id = accounts.find_account(from_account).id if from_account else None
        to_id = accounts.find_account(to_account).id if to_account else None
        txn = service.create_transaction(
            transaction_type=transaction_type,
            amount=txn_amount,
            fee_amount=txn_fee,
            customer_id=customer_id,
            from_account_id=from_id,
            to_account_id=to_id,
            customer_account_id=customer_account,
            subcategory=subcategory,
            description=description,
            transaction_date=when,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    if txn.is_synced:
        click.echo(f"Recorded {txn.type.label} of {format_amount(txn.amount)} (ID: {txn.id})")
    else:
        click.echo(
            f"Saved {txn.type.label} of {format_amount(txn.amount)} offline (ID: {txn.id}). "
            "It will be synced when you are back online."
        )
    if txn.fee_amount:
        click.echo(f"Fee: {format_amount(txn.fee_amount)}")


@transaction_group.command("list")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'yesterday')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@period_option
@click.option("--type", "transaction_type", type=click.Choice(TYPE_CHOICES), help="Only this type")
@click.option("--limit", type=int, help="Show at most this many transactions")
@click.pass_context
def list_transactions(
    ctx,
    start_date: str | None,
    end_date: str | None,
    period: str | None,
    transaction_type: str | None,
    limit: int | None,
):
    """List transactions, newest first."""
    workspace = ctx.obj["workspace"]
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period=period)
    txns = TransactionService(workspace).list_transactions(
        start_date=start, end_date=end, transaction_type=transaction_type, limit=limit
    )
    if not txns:
        click.echo("No transactions found.")
        return

    accounts, customers = _names(workspace)
    click.echo("-" * 100)
    for txn in txns:
        marker = " *" if not txn.is_synced else ""
        click.echo(f"{txn.transaction_date.isoformat()} | {_describe(txn, accounts, customers)}{marker}")
    if any(not t.is_synced for t in txns):
        click.echo("\n* not synced yet")


@transaction_group.command("pending")
@click.pass_context
def pending_transactions(ctx):
    """Show transactions waiting to be synced."""
    workspace = ctx.obj["workspace"]
    pending = TransactionService(workspace).pending()
    if not pending:
        click.echo("No pending transactions.")
        return

    accounts, customers = _names(workspace)
    for entry in pending:
        txn = entry.transaction
        state = "FAILED" if entry.failed else f"retries {entry.retry_count}"
        click.echo(f"{txn.id} | {txn.transaction_date.isoformat()} | {_describe(txn, accounts, customers)} | {state}")
        if entry.last_error:
            click.echo(f"    last error: {entry.last_error}")


@transaction_group.command("discard")
@click.argument("transaction_id")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def discard_transaction(ctx, transaction_id: str, yes: bool):
    """Discard an unsynced transaction.

    Only transactions that have not reached the server can be discarded.
    """
    service = TransactionService(ctx.obj["workspace"])
    if not yes and not click.confirm(f"Discard unsynced transaction {transaction_id}?"):
        click.echo("Discard cancelled.")
        return
    try:
        service.discard_pending(transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Discarded transaction {transaction_id}")


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
