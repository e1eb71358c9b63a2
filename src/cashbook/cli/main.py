"""Main CLI entry point."""

import click

from cashbook.config import load_settings
from cashbook.logging_config import configure_logging, reset_logging
from cashbook.workspace import create_workspace

# Import and register all commands at module level
from cashbook.cli.commands import (
    account,
    auth,
    customer,
    report,
    sync,
    transaction,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides CASHBOOK_DB_PATH environment variable)",
    envvar="CASHBOOK_DB_PATH",
)
@click.option(
    "--remote-url",
    help="Backend base URL (overrides CASHBOOK_REMOTE_URL environment variable)",
    envvar="CASHBOOK_REMOTE_URL",
)
@click.option("--offline", is_flag=True, help="Work offline; writes are queued for later sync")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging on stderr")
@click.pass_context
def cli(ctx, db_path: str | None, remote_url: str | None, offline: bool, verbose: bool):
    """Cashbook - bookkeeping for money transfer shops.

    Record cash-in, cash-out and transfer transactions with or without a
    connection. Anything recorded offline is queued and delivered by
    'cashbook sync push' once the server is reachable.
    """
    ctx.ensure_object(dict)

    # Build the workspace only when actually running a command (not for --help)
    if ctx.invoked_subcommand is None:
        return

    try:
        settings = load_settings().with_overrides(
            database_path=db_path,
            remote_url=remote_url,
            force_offline=True if offline else None,
        )
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    ctx.obj["settings"] = settings
    configure_logging(verbose=verbose, log_file=settings.log_path)
    ctx.call_on_close(reset_logging)

    if "workspace" not in ctx.obj:
        workspace = create_workspace(settings)
        ctx.obj["workspace"] = workspace
        ctx.call_on_close(workspace.close)


# Register all commands
auth.register_commands(cli)
account.register_commands(cli)
customer.register_commands(cli)
transaction.register_commands(cli)
sync.register_commands(cli)
report.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
