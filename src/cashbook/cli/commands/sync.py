"""Synchronization commands."""

import logging
import time

import click

from cashbook.cli.error_handling import handle_domain_error
from cashbook.domain.account import AccountService
from cashbook.domain.customer import CustomerService
from cashbook.domain.errors import DomainError
from cashbook.domain.summary import SummaryService
from cashbook.domain.transaction import TransactionService
from cashbook.sync.synchronizer import DrainResult

logger = logging.getLogger(__name__)


@click.group()
def sync_group():
    """Synchronize local data with the server."""
    pass


def _report_drain(result: DrainResult) -> None:
    if result.skipped:
        click.echo("A sync is already running; try again shortly.")
        return
    if result.attempted == 0:
        click.echo("Nothing to push.")
        return
    click.echo(f"Pushed {len(result.delivered)} of {result.attempted} pending transactions.")
    for temp_id, error in result.failed.items():
        suffix = " (giving up; use 'cashbook sync retry')" if temp_id in result.exhausted else ""
        click.echo(f"  {temp_id}: {error}{suffix}", err=True)


def pull_all(workspace) -> dict[str, int | None]:
    """Refresh every cached collection for the signed-in user."""
    return {
        "accounts": AccountService(workspace).refresh(),
        "customers": CustomerService(workspace).refresh(),
        "transactions": TransactionService(workspace).refresh(),
        "cash positions": SummaryService(workspace).refresh_cash_positions(),
    }


@sync_group.command("status")
@click.pass_context
def status(ctx):
    """Show connection state and queued transactions."""
    workspace = ctx.obj["workspace"]
    outbox = workspace.outbox
    failed = outbox.failed()

    click.echo(f"Connection: {'online' if workspace.is_online() else 'offline'}")
    click.echo(f"Signed in:  {workspace.owner_id or 'no'}")
    click.echo(f"Pending:    {outbox.count()} transaction(s)")
    if failed:
        click.echo(f"Failed:     {len(failed)} transaction(s) need 'cashbook sync retry'")
    if getattr(workspace.store, "degraded", False):
        click.echo("Warning: local database unavailable; changes are kept in memory only", err=True)


@sync_group.command("push")
@click.pass_context
def push(ctx):
    """Deliver pending transactions to the server."""
    workspace = ctx.obj["workspace"]
    if not workspace.is_online():
        click.echo(f"Offline: {workspace.outbox.count()} transaction(s) waiting.")
        return
    _report_drain(workspace.synchronizer.drain_outbox())


@sync_group.command("pull")
@click.pass_context
def pull(ctx):
    """Refresh local data from the server."""
    workspace = ctx.obj["workspace"]
    if not workspace.is_online():
        click.echo("Offline: showing local data only.")
        return
    local_only = AccountService(workspace).local_only_accounts()
    try:
        counts = pull_all(workspace)
    except DomainError as e:
        handle_domain_error(ctx, e)

    for name, count in counts.items():
        if count is None:
            click.echo(f"{name}: not refreshed (server unreachable); local data kept")
        else:
            click.echo(f"{name}: {count}")
    if local_only and counts["accounts"] is not None:
        names = ", ".join(acc.name for acc in local_only)
        click.echo(f"Warning: removed local-only account(s) not on the server: {names}", err=True)


@sync_group.command("retry")
@click.argument("transaction_id", required=False)
@click.pass_context
def retry(ctx, transaction_id: str | None):
    """Reset failed transactions and push again.

    With TRANSACTION_ID only that entry is reset; otherwise every entry that
    ran out of retries is.
    """
    workspace = ctx.obj["workspace"]
    outbox = workspace.outbox
    try:
        if transaction_id:
            outbox.requeue(transaction_id)
            reset = 1
        else:
            failed = outbox.failed()
            for entry in failed:
                outbox.requeue(entry.id)
            reset = len(failed)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Reset {reset} transaction(s).")
    if workspace.is_online():
        _report_drain(workspace.synchronizer.drain_outbox())
    else:
        click.echo("Offline: they will be pushed on the next sync.")


@sync_group.command("watch")
@click.option("--interval", type=float, help="Seconds between sync cycles (default from CASHBOOK_SYNC_INTERVAL)")
@click.option("--cycles", type=int, help="Stop after this many cycles")
@click.pass_context
def watch(ctx, interval: float | None, cycles: int | None):
    """Push and pull repeatedly whenever the server is reachable.

    Press Ctrl+C to stop.
    """
    workspace = ctx.obj["workspace"]
    settings = ctx.obj.get("settings")
    if interval is None:
        interval = settings.sync_interval if settings is not None else 30.0

    completed = 0
    was_online = None
    try:
        while cycles is None or completed < cycles:
            online = workspace.is_online()
            if online != was_online:
                click.echo("Online: syncing." if online else "Offline: waiting for a connection.")
                was_online = online
            if online:
                result = workspace.synchronizer.drain_outbox()
                if result.attempted:
                    _report_drain(result)
                try:
                    pull_all(workspace)
                except DomainError as e:
                    logger.warning("Pull failed: %s", e)
            completed += 1
            if cycles is None or completed < cycles:
                time.sleep(interval)
    except KeyboardInterrupt:
        click.echo("\nStopped.")


@sync_group.command("reset")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def reset(ctx, yes: bool):
    """Delete all local data, including unsynced transactions."""
    workspace = ctx.obj["workspace"]
    pending = workspace.outbox.count()
    if not yes:
        warning = "Delete all local data?"
        if pending:
            warning = f"{pending} transaction(s) have not been synced and will be lost. {warning}"
        if not click.confirm(warning):
            click.echo("Reset cancelled.")
            return
    workspace.store.clear_all()
    click.echo("Local data cleared.")


def register_commands(cli):
    """Register sync commands with main CLI."""
    cli.add_command(sync_group, name="sync")
