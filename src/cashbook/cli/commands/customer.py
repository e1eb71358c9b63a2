"""Customer management commands."""

import click

from cashbook.cli.error_handling import handle_domain_error
from cashbook.domain.customer import CustomerAccountInput, CustomerService
from cashbook.domain.entities import CustomerAccountType, FeeType
from cashbook.domain.errors import DomainError


@click.group()
def customer_group():
    """Manage customers and their payout accounts."""
    pass


def _fee_label(customer) -> str:
    if customer.fee_type == FeeType.PERCENTAGE:
        return f"{customer.fee_value}%"
    return f"Rs. {customer.fee_value}"


def _print_customers(customers) -> None:
    click.echo("-" * 80)
    for c in customers:
        phone = c.phone or "-"
        click.echo(f"{c.name:25s} | {phone:15s} | Fee: {_fee_label(c):10s} | ID: {c.id}")


@customer_group.command("create")
@click.argument("name")
@click.option("--phone", help="Phone number")
@click.option(
    "--fee-type",
    type=click.Choice([t.value for t in FeeType]),
    default=FeeType.FIXED.value,
    show_default=True,
)
@click.option("--fee", "fee_value", default="0", show_default=True, help="Percentage or fixed fee amount")
@click.option("--account-number", help="Customer's bank or wallet account number")
@click.option("--account-title", help="Title on the account (defaults to the customer name)")
@click.option("--bank", help="Bank or wallet name")
@click.option(
    "--account-type",
    type=click.Choice([t.value for t in CustomerAccountType]),
    default=CustomerAccountType.BANK.value,
)
@click.pass_context
def create_customer(
    ctx,
    name: str,
    phone: str | None,
    fee_type: str,
    fee_value: str,
    account_number: str | None,
    account_title: str | None,
    bank: str | None,
    account_type: str,
):
    """Create a customer, optionally with a payout account.

    Examples:
        cashbook customer create "Ali Khan" --phone 03001234567 --fee-type percentage --fee 1.5
        cashbook customer create "Sara" --fee 100 --account-number 0300123 --bank JazzCash --account-type wallet
    """
    service = CustomerService(ctx.obj["workspace"])
    account = None
    if account_number:
        account = CustomerAccountInput(
            account_number=account_number,
            account_title=account_title,
            bank_name=bank,
            type=account_type,
        )

    try:
        customer = service.create_customer(
            name=name, phone=phone, fee_type=fee_type, fee_value=fee_value, account=account
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    marker = " (not synced)" if customer.id.is_local else ""
    click.echo(f"Created customer '{customer.name}' (ID: {customer.id}){marker}")


@customer_group.command("list")
@click.pass_context
def list_customers(ctx):
    """List customers alphabetically."""
    customers = CustomerService(ctx.obj["workspace"]).list_customers()
    if not customers:
        click.echo("No customers found.")
        return
    click.echo("\nCustomers:")
    _print_customers(customers)


@customer_group.command("search")
@click.argument("text")
@click.pass_context
def search_customers(ctx, text: str):
    """Find customers by name or phone."""
    service = CustomerService(ctx.obj["workspace"])
    customers = service.search_customers(text)
    if not customers:
        click.echo(f"No customers matching '{text}'.")
        return
    _print_customers(customers)
    for c in customers:
        for acc in service.list_customer_accounts(c.id):
            click.echo(f"    {c.name}: {acc.account_title} | {acc.bank_name} | {acc.account_number}")


@customer_group.command("add-account")
@click.argument("customer", metavar="CUSTOMER")
@click.argument("account_number")
@click.option("--title", help="Title on the account (defaults to the customer name)")
@click.option("--bank", help="Bank or wallet name")
@click.option(
    "--type",
    "account_type",
    type=click.Choice([t.value for t in CustomerAccountType]),
    default=CustomerAccountType.BANK.value,
)
@click.pass_context
def add_account(ctx, customer: str, account_number: str, title: str | None, bank: str | None, account_type: str):
    """Add a bank or wallet account to a customer.

    CUSTOMER can be a customer name or ID.
    """
    service = CustomerService(ctx.obj["workspace"])
    try:
        cust = service.find_customer(customer)
        acc = service.add_customer_account(
            cust.id, account_number, account_title=title, bank_name=bank, account_type=account_type
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Added account {acc.account_number} ({acc.bank_name}) to '{cust.name}' (ID: {acc.id})")


@customer_group.command("delete")
@click.argument("customer", metavar="CUSTOMER")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_customer(ctx, customer: str, yes: bool):
    """Delete a customer and their accounts.

    CUSTOMER can be a customer name or ID.
    """
    service = CustomerService(ctx.obj["workspace"])
    try:
        cust = service.find_customer(customer)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not yes and not click.confirm(f"Are you sure you want to delete customer '{cust.name}'?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_customer(cust.id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted customer '{cust.name}'")


def register_commands(cli):
    """Register customer commands with main CLI."""
    cli.add_command(customer_group, name="customer")
