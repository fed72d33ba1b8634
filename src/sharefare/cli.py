"""CLI for the ShareFare client."""

import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx
import typer

from .clients.errors import status_error_message
from .config import load_settings
from .context import ClientContext
from .exceptions import ShareFareError
from .models import UserId
from .navigation import LOGIN_ROUTE
from .reconciler import max_settlement_amount, partition_balances
from .ui import console, display_dashboard, display_group, display_groups

app = typer.Typer(
    name="sharefare",
    help="Track shared expenses and settle up with ShareFare",
)

T = TypeVar("T")


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # Downgrade httpx logging to DEBUG (network requests are too noisy at INFO)
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _on_route_change(previous: str, current: str):
    if current == LOGIN_ROUTE and previous != LOGIN_ROUTE:
        console.print(f"[yellow]{status_error_message(401)}[/yellow]")
        console.print("[dim]Run `sharefare login` to continue.[/dim]")


def _run(
    action: Callable[[ClientContext], Awaitable[T]],
    verbose: bool,
    announce_expiry: bool = True,
) -> T:
    """
    Run an async command against a fresh client context.

    Commands that end the session on purpose pass ``announce_expiry=False``
    so the move to login is not reported as an expired session.
    """
    setup_logging(verbose)

    async def runner() -> T:
        async with ClientContext(load_settings()) as ctx:
            if announce_expiry:
                ctx.router.subscribe(_on_route_change)
            return await action(ctx)

    try:
        return asyncio.run(runner())
    except (ShareFareError, httpx.HTTPError) as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)


def _parse_id(value: str) -> UserId:
    return int(value) if value.isdigit() else value


VerboseOption = typer.Option(False, "--verbose", "-v", help="Verbose output")


# ============================================================================
# Session
# ============================================================================


@app.command()
def login(
    email: str = typer.Option(..., prompt=True, help="Account email"),
    password: str = typer.Option(..., prompt=True, hide_input=True),
    verbose: bool = VerboseOption,
):
    """Log in and remember the session on this machine."""

    async def action(ctx: ClientContext):
        await ctx.api.login(email, password)
        console.print("[bold green]✓ Logged in[/bold green]")

    _run(action, verbose)


@app.command()
def signup(
    name: str = typer.Option(..., prompt=True),
    email: str = typer.Option(..., prompt=True),
    password: str = typer.Option(
        ..., prompt=True, hide_input=True, confirmation_prompt=True
    ),
    verbose: bool = VerboseOption,
):
    """Create an account and log in."""
    if len(password) < 6:
        console.print("[bold red]Error:[/bold red] Password must be 6+ characters")
        sys.exit(1)

    async def action(ctx: ClientContext):
        await ctx.api.signup(email, password, name)
        console.print("[bold green]✓ Account created[/bold green]")

    _run(action, verbose)


@app.command()
def logout(verbose: bool = VerboseOption):
    """Log out and forget the stored session."""

    async def action(ctx: ClientContext):
        await ctx.api.logout()
        console.print("[green]Logged out.[/green]")

    _run(action, verbose, announce_expiry=False)


@app.command()
def whoami(
    timeout_ms: int | None = typer.Option(
        None, "--timeout-ms", help="Session probe timeout"
    ),
    verbose: bool = VerboseOption,
):
    """Check the stored session against the server."""

    async def action(ctx: ClientContext):
        if not await ctx.guard.validate(timeout_ms):
            console.print("[yellow]Not logged in.[/yellow]")
            raise typer.Exit(1)
        user = await ctx.api.get_me()
        if user is not None:
            console.print(
                f"Logged in as [cyan]{user.display_name}[/cyan] (id {user.id})"
            )

    _run(action, verbose)


# ============================================================================
# Account
# ============================================================================


@app.command()
def profile(
    name: str | None = typer.Option(None, "--name", help="New display name"),
    email: str | None = typer.Option(None, "--email", help="New email"),
    phone: str | None = typer.Option(None, "--phone", help="New phone number"),
    verbose: bool = VerboseOption,
):
    """Show your profile, or update it when any option is given."""

    async def action(ctx: ClientContext):
        user = await ctx.api.get_me()
        if user is None:
            return

        if name is not None or email is not None or phone is not None:
            new_name = name if name is not None else user.name or ""
            if not new_name.strip():
                console.print("[bold red]Error:[/bold red] Name cannot be empty")
                raise typer.Exit(1)
            user = await ctx.api.update_me(
                new_name,
                email if email is not None else user.email,
                phone if phone is not None else user.phone_number,
            )
            if user is None:
                return
            console.print("[bold green]✓ Profile updated[/bold green]")

        console.print(f"[bold]Name:[/bold]  {user.name or '-'}")
        console.print(f"[bold]Email:[/bold] {user.email or '-'}")
        console.print(f"[bold]Phone:[/bold] {user.phone_number or '-'}")

    _run(action, verbose)


@app.command("verify-email")
def verify_email(
    email: str = typer.Argument(..., help="Email address to verify"),
    code: str | None = typer.Option(
        None, "--code", "-c", help="6-digit code (omit to send a new one)"
    ),
    verbose: bool = VerboseOption,
):
    """Send or confirm an email verification code."""

    async def action(ctx: ClientContext):
        if code is None:
            await ctx.api.send_verification_code(email)
            console.print(f"Verification code sent to [cyan]{email}[/cyan]")
            return
        await ctx.api.verify_code(email, code)
        console.print("[bold green]✓ Email verified successfully![/bold green]")

    _run(action, verbose)


@app.command("delete-account")
def delete_account(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    verbose: bool = VerboseOption,
):
    """Permanently delete your account and log out."""
    if not yes and not typer.confirm(
        "This deletes your account and cannot be undone. Continue?"
    ):
        raise typer.Exit(1)

    async def action(ctx: ClientContext):
        if await ctx.api.delete_account():
            console.print("[green]Your account has been deleted.[/green]")
        else:
            console.print("[yellow]Not logged in.[/yellow]")

    _run(action, verbose, announce_expiry=False)


@app.command()
def invite(
    group_id: str | None = typer.Option(
        None, "--group", "-g", help="Group ID (omit for your personal link)"
    ),
    verbose: bool = VerboseOption,
):
    """Print an invite link for yourself or for one of your groups."""

    async def action(ctx: ClientContext):
        if group_id is None:
            url = await ctx.api.get_personal_invite()
        else:
            url = await ctx.api.create_group_invite(group_id)
        if url:
            console.print(url)
            return
        if ctx.router.is_authenticated_area:
            console.print("[yellow]Could not generate an invite link.[/yellow]")
            if group_id is not None:
                console.print(
                    "[dim]You may need to be a member of this group "
                    "to share invites.[/dim]"
                )
            raise typer.Exit(1)

    _run(action, verbose)


# ============================================================================
# Ledger
# ============================================================================


@app.command()
def dashboard(verbose: bool = VerboseOption):
    """Show what you owe and are owed across all groups."""

    async def action(ctx: ClientContext):
        data = await ctx.api.get_dashboard()
        if data is None:
            return
        user = await ctx.api.get_me()
        display_dashboard(data, user.name if user else None)

    _run(action, verbose)


@app.command()
def groups(verbose: bool = VerboseOption):
    """List your groups."""

    async def action(ctx: ClientContext):
        listing = await ctx.ledger.list_groups()
        if listing is not None:
            display_groups(listing)

    _run(action, verbose)


@app.command()
def group(
    group_id: str = typer.Argument(..., help="Group ID"),
    verbose: bool = VerboseOption,
):
    """Show a group's balances."""

    async def action(ctx: ClientContext):
        me = await ctx.api.get_me()
        if me is None:
            return
        loaded = await ctx.ledger.load_group(group_id)
        if loaded is None:
            return
        display_group(loaded, partition_balances(loaded.member_balances, me.id))

    _run(action, verbose)


@app.command()
def settle(
    group_id: str = typer.Argument(..., help="Group ID"),
    member_id: str = typer.Argument(..., help="User ID of the member to settle with"),
    amount: str | None = typer.Option(
        None, "--amount", "-a", help="Amount (defaults to the full balance)"
    ),
    notes: str | None = typer.Option(None, "--notes", "-n"),
    verbose: bool = VerboseOption,
):
    """Settle up with one member of a group."""

    async def action(ctx: ClientContext):
        loaded = await ctx.ledger.load_group(group_id)
        if loaded is None:
            return

        member = next(
            (mb for mb in loaded.member_balances if str(mb.user.id) == member_id),
            None,
        )
        if member is None:
            console.print(f"[yellow]No balance with member {member_id}.[/yellow]")
            raise typer.Exit(1)

        proposed = amount
        if proposed is None:
            proposed = typer.prompt(
                "Amount", default=f"{max_settlement_amount(member):.2f}"
            )

        settlement = await ctx.ledger.prepare_settlement(member, proposed, notes)
        if settlement is None:
            return

        refreshed = await ctx.ledger.submit_settlement(group_id, settlement)
        if refreshed is None:
            return

        console.print("[bold green]✓ Settled up successfully![/bold green]")
        me = await ctx.api.get_me()
        display_group(
            refreshed,
            partition_balances(refreshed.member_balances, me.id if me else None),
        )

    _run(action, verbose)


@app.command("create-group")
def create_group(
    name: str = typer.Argument(..., help="Group name"),
    member: list[str] = typer.Option(
        ..., "--member", "-m", help="Member email or phone number (repeatable)"
    ),
    description: str | None = typer.Option(None, "--description", "-d"),
    verbose: bool = VerboseOption,
):
    """Create a group. Members already on ShareFare are matched by email or phone."""

    async def action(ctx: ClientContext):
        members = await ctx.ledger.resolve_members(member)
        if members is None:
            return
        listing = await ctx.ledger.create_group(name, members, description)
        if listing is None:
            return
        console.print("[bold green]✓ Group created successfully![/bold green]")
        display_groups(listing)

    _run(action, verbose)


@app.command("add-expense")
def add_expense(
    group_id: str = typer.Argument(..., help="Group ID"),
    description: str = typer.Option(..., "--description", "-d", prompt=True),
    amount: str = typer.Option(..., "--amount", "-a", prompt=True),
    split: list[str] = typer.Option(
        ..., "--split", "-s", help="User ID to split with (repeatable)"
    ),
    paid_by: str | None = typer.Option(
        None, "--paid-by", help="User ID of the payer (defaults to you)"
    ),
    notes: str | None = typer.Option(None, "--notes", "-n"),
    verbose: bool = VerboseOption,
):
    """Record an expense in a group."""

    async def action(ctx: ClientContext):
        payer: UserId | None = _parse_id(paid_by) if paid_by else None
        if payer is None:
            me = await ctx.api.get_me()
            if me is None or me.id is None:
                return
            payer = me.id

        refreshed = await ctx.ledger.create_expense(
            group_id,
            description,
            amount,
            payer,
            [_parse_id(s) for s in split],
            notes,
        )
        if refreshed is None:
            return
        console.print("[bold green]✓ Expense added successfully![/bold green]")

    _run(action, verbose)


# ============================================================================
# Preferences
# ============================================================================


@app.command()
def theme(
    mode: str | None = typer.Argument(None, help="light, dark or system"),
    verbose: bool = VerboseOption,
):
    """Show or change the theme preference."""

    async def action(ctx: ClientContext):
        if mode is None:
            console.print(ctx.preferences.get_theme())
            return
        try:
            ctx.preferences.set_theme(mode)
        except ValueError as e:
            console.print(f"[bold red]Error:[/bold red] {e}")
            raise typer.Exit(1) from None
        console.print(f"Theme set to [cyan]{mode}[/cyan]")

    _run(action, verbose)


if __name__ == "__main__":
    app()
