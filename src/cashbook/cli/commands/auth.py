"""Sign-in and account recovery commands."""

import click

from cashbook.cli.error_handling import handle_domain_error
from cashbook.domain.errors import DomainError
from cashbook.remote.auth import AuthClient


@click.group()
def auth_group():
    """Sign in, sign up and manage your password."""
    pass


def _auth_client(ctx) -> AuthClient:
    workspace = ctx.obj["workspace"]
    if workspace.auth is None:
        click.echo(
            "Error: No server configured. Set CASHBOOK_REMOTE_URL or pass --remote-url.",
            err=True,
        )
        ctx.exit(1)
    return workspace.auth


@auth_group.command("login")
@click.option("--email", prompt=True, help="Account email")
@click.option("--password", prompt=True, hide_input=True, help="Account password")
@click.pass_context
def login(ctx, email: str, password: str):
    """Sign in and remember the session on this device.

    Examples:
        cashbook auth login --email owner@example.com
    """
    client = _auth_client(ctx)
    try:
        session = client.sign_in(email, password)
    except DomainError as e:
        handle_domain_error(ctx, e)
    ctx.obj["workspace"].sessions.set(session)
    click.echo(f"Signed in as {session.email}")


@auth_group.command("signup")
@click.option("--name", prompt=True, help="Your name")
@click.option("--email", prompt=True, help="Account email")
@click.option(
    "--password",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="At least 8 characters with upper, lower, digit and symbol",
)
@click.pass_context
def signup(ctx, name: str, email: str, password: str):
    """Create a new account on the server."""
    client = _auth_client(ctx)
    try:
        session = client.sign_up(email, password, name)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if session is None:
        click.echo(f"Account created. Check {email} to confirm it, then run 'cashbook auth login'.")
        return
    ctx.obj["workspace"].sessions.set(session)
    click.echo(f"Account created. Signed in as {session.email}")


@auth_group.command("logout")
@click.pass_context
def logout(ctx):
    """Sign out and forget the stored session.

    Local data stays on this device; use 'cashbook sync reset' to remove it.
    """
    workspace = ctx.obj["workspace"]
    session = workspace.sessions.session if workspace.sessions else None
    if session is None:
        click.echo("Not signed in.")
        return
    if workspace.auth is not None and workspace.is_online():
        try:
            workspace.auth.sign_out(session)
        except DomainError as e:
            click.echo(f"Warning: server sign-out failed: {e}", err=True)
    workspace.sessions.clear()
    click.echo("Signed out.")


@auth_group.command("reset-password")
@click.option("--email", prompt=True, help="Account email")
@click.pass_context
def reset_password(ctx, email: str):
    """Email a password reset code."""
    client = _auth_client(ctx)
    try:
        client.request_password_reset(email)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"If {email} is registered, a reset code has been sent.")
    click.echo("Run 'cashbook auth confirm-reset' with the code to choose a new password.")


@auth_group.command("confirm-reset")
@click.option("--email", prompt=True, help="Account email")
@click.option("--token", prompt="Reset code", help="Code from the reset email")
@click.option("--password", prompt="New password", hide_input=True, confirmation_prompt=True)
@click.pass_context
def confirm_reset(ctx, email: str, token: str, password: str):
    """Set a new password using the emailed reset code."""
    client = _auth_client(ctx)
    try:
        session = client.confirm_password_reset(email, token, password)
    except DomainError as e:
        handle_domain_error(ctx, e)
    ctx.obj["workspace"].sessions.set(session)
    click.echo("Password updated. You are signed in.")


@auth_group.command("whoami")
@click.pass_context
def whoami(ctx):
    """Show the signed-in user."""
    workspace = ctx.obj["workspace"]
    session = workspace.sessions.session if workspace.sessions else None
    if session is not None:
        click.echo(f"{session.email} (user {session.user_id})")
    elif workspace.owner_id:
        click.echo(f"user {workspace.owner_id}")
    else:
        click.echo("Not signed in.")


def register_commands(cli):
    """Register auth commands with main CLI."""
    cli.add_command(auth_group, name="auth")
