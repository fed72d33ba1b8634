"""Rich rendering helpers for the ShareFare CLI."""

from decimal import Decimal

from rich.console import Console
from rich.table import Table

from .models import Dashboard, Group, GroupSummary, MemberBalance
from .reconciler import BalancePartition

console = Console()

CURRENCY = "₹"


def format_money(amount: Decimal | float, use_color: bool = True) -> str:
    """
    Format money in accounting style with alignment.

    Negative amounts use parentheses: (₹85.02)
    Positive amounts have spaces:      ₹85.02
    """
    abs_amount = abs(amount)
    if amount < 0:
        if use_color:
            return f"({CURRENCY}[red]{abs_amount:,.2f}[/red])"
        return f"({CURRENCY}{abs_amount:,.2f})"
    if use_color:
        return f" [green]{CURRENCY}{abs_amount:,.2f}[/green] "
    return f" {CURRENCY}{abs_amount:,.2f} "


def _balance_table(title: str, rows: list[MemberBalance], column: str) -> Table:
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", width=8)
    table.add_column("Member", style="cyan")
    table.add_column("Amount", justify="right", width=14)

    for mb in rows:
        amount = mb.owes_you if column == "owes_you" else -mb.you_owe
        table.add_row(str(mb.user.id), mb.user.display_name, format_money(amount))

    return table


def display_group(group: Group, partition: BalancePartition):
    """Show a group's balances split by direction."""
    console.print(f"\n[bold]{group.name}[/bold]")
    if group.description:
        console.print(f"  [dim]{group.description}[/dim]")
    if group.total_expense is not None:
        console.print(f"  Total spent: {format_money(group.total_expense)}")
    console.print()

    if partition.owed_to_user:
        console.print(
            _balance_table("Owes you", partition.owed_to_user, column="owes_you")
        )
    if partition.user_owes:
        console.print(_balance_table("You owe", partition.user_owes, column="you_owe"))
    if partition.settled:
        names = ", ".join(mb.user.display_name for mb in partition.settled)
        console.print(f"[dim]Settled up: {names}[/dim]")
    if not (partition.owed_to_user or partition.user_owes or partition.settled):
        console.print("[dim]No balances yet.[/dim]")


def display_groups(groups: list[GroupSummary]):
    """Show the group listing."""
    if not groups:
        console.print("[yellow]You are not in any groups yet.[/yellow]")
        return

    table = Table(title="Groups", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", width=8)
    table.add_column("Name", style="cyan")
    table.add_column("Members", justify="right", width=8)
    table.add_column("Your balance", justify="right", width=14)

    for group in groups:
        balance = group.balance_for_me
        table.add_row(
            str(group.id),
            group.name,
            str(group.member_count or 0),
            format_money(balance) if balance is not None else "[dim]-[/dim]",
        )

    console.print(table)


def display_dashboard(dashboard: Dashboard, user_name: str | None = None):
    """Show totals and outstanding balances."""
    if user_name:
        console.print(f"\n[bold]Hi {user_name}![/bold]")
    console.print(f"  You are owed: {format_money(dashboard.total_owed_to_me)}")
    console.print(f"  You owe:      {format_money(-dashboard.total_i_owe)}")

    if not dashboard.outstanding_balances:
        console.print("\n[green]You're all settled up.[/green]")
        return

    table = Table(title="Outstanding", show_header=True, header_style="bold magenta")
    table.add_column("Member", style="cyan")
    table.add_column("Amount", justify="right", width=14)
    for ob in dashboard.outstanding_balances:
        signed = ob.amount if ob.direction == "+" else -ob.amount
        table.add_row(ob.user.display_name, format_money(signed))
    console.print(table)
