"""CLI for TripSplit using Typer."""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from decimal import Decimal, InvalidOperation
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from .config import load_settings
from .db import Database
from .engine import describe_split, settlements_involving
from .exceptions import TripSplitError, UnbalancedLedgerError
from .models import (
    EXPENSE_CATEGORIES,
    AmountEntry,
    AmountSplit,
    EqualSplit,
    Member,
    PercentageEntry,
    PercentageSplit,
    Settlement,
)
from .service import TripService
from .ui import select_member_interactive

app = typer.Typer(
    name="tripsplit",
    help="Log shared trip expenses and see who owes whom",
)

console = Console()

logger = logging.getLogger(__name__)

TRIP_OPTION = typer.Option(None, "--trip", "-t", help="Trip id (default from settings)")
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Verbose output")


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@contextmanager
def open_service(trip: str | None, verbose: bool) -> Iterator[TripService]:
    """Yield a TripService, printing errors and exiting with status 1 on failure."""
    setup_logging(verbose)
    try:
        settings = load_settings()
        with Database(settings.database_path) as db:
            yield TripService(settings, db, trip)
    except typer.BadParameter:
        raise
    except UnbalancedLedgerError as e:
        # Invariant violation: always leave a trace in the log
        logger.exception("Ledger invariant broken")
        console.print(f"\n[bold red]Internal error:[/bold red] {e}")
        sys.exit(1)
    except TripSplitError as e:
        console.print(f"\n[bold yellow]⚠️  {e}[/bold yellow]\n")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)


def format_money(amount: Decimal, digits: int = 2, use_color: bool = True) -> str:
    """
    Format money in accounting style with alignment.

    Negative amounts use parentheses: (85.02)
    Positive amounts have spaces:      85.02
    The spaces ensure decimal points align in tables.
    """
    text = f"{abs(amount):,.{digits}f}"
    if amount < 0:
        if use_color:
            return f"([red]{text}[/red])"
        return f"({text})"
    if use_color:
        return f" [green]{text}[/green] "
    return f" {text} "


def parse_split(kind: str, specs: list[str], members: list[Member]):
    """
    Build a split rule from --with options.

    Equal splits take plain member ids (all members when none are given);
    amount and percentage splits take ID=VALUE pairs.
    """
    if kind == "equally":
        valued = [spec for spec in specs if "=" in spec]
        if valued:
            raise typer.BadParameter(
                f"Equal splits take plain member ids, got '{valued[0]}' "
                f"(use --split byAmount or byPercentage for ID=VALUE)"
            )
        ids = specs or [m.id for m in members]
        return EqualSplit(participant_ids=tuple(ids))

    if kind not in ("byAmount", "byPercentage"):
        raise typer.BadParameter(
            f"Unknown split type '{kind}' (use equally, byAmount or byPercentage)"
        )

    pairs: list[tuple[str, Decimal]] = []
    for spec in specs:
        member_id, sep, value = spec.partition("=")
        if not sep:
            raise typer.BadParameter(f"Expected ID=VALUE for {kind} split, got '{spec}'")
        try:
            pairs.append((member_id, Decimal(value)))
        except InvalidOperation as e:
            raise typer.BadParameter(f"Invalid number in '{spec}'") from e

    if kind == "byAmount":
        return AmountSplit(
            entries=tuple(AmountEntry(member_id=m, amount=v) for m, v in pairs)
        )
    return PercentageSplit(
        entries=tuple(PercentageEntry(member_id=m, percentage=v) for m, v in pairs)
    )


# ============================================================================
# Members
# ============================================================================


@app.command("add-member")
def add_member(
    name: str = typer.Argument(..., help="Display name"),
    email: str | None = typer.Option(None, "--email", help="Email address"),
    member_id: str | None = typer.Option(None, "--id", help="Member id (generated if omitted)"),
    trip: str | None = TRIP_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Add a participant to the trip."""
    with open_service(trip, verbose) as service:
        member = service.add_member(name, email=email, member_id=member_id)
        console.print(f"[green]✓ Added {member.name} ({member.id})[/green]")


@app.command("remove-member")
def remove_member(
    member_id: str = typer.Argument(..., help="Member id"),
    trip: str | None = TRIP_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Remove a participant who has no expenses."""
    with open_service(trip, verbose) as service:
        service.remove_member(member_id)
        console.print(f"[green]✓ Removed {member_id}[/green]")


@app.command()
def members(
    trip: str | None = TRIP_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """List the trip's participants."""
    with open_service(trip, verbose) as service:
        roster = service.list_members()
        if not roster:
            console.print("[yellow]No members yet.[/yellow]")
            return

        table = Table(title="Members", show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim")
        table.add_column("Name", style="cyan")
        table.add_column("Email")
        for member in roster:
            table.add_row(member.id, member.name, member.email or "")
        console.print(table)


# ============================================================================
# Expenses
# ============================================================================


@app.command("add-expense")
def add_expense(
    description: str = typer.Argument(..., help="What the expense was for"),
    amount: str = typer.Argument(..., help="Total amount"),
    paid_by: str | None = typer.Option(
        None, "--paid-by", "-p", help="Payer member id (prompted if omitted)"
    ),
    split: str = typer.Option(
        "equally", "--split", "-s", help="equally, byAmount or byPercentage"
    ),
    with_: list[str] = typer.Option(
        [], "--with", "-w", help="Participant id, or ID=VALUE for byAmount/byPercentage"
    ),
    category: str = typer.Option(
        "other", "--category", "-c", help=f"One of: {', '.join(EXPENSE_CATEGORIES)}"
    ),
    trip: str | None = TRIP_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Record an expense paid by one member and shared by others."""
    if category not in EXPENSE_CATEGORIES:
        raise typer.BadParameter(f"Unknown category '{category}'")
    try:
        total = Decimal(amount)
    except InvalidOperation as e:
        raise typer.BadParameter(f"Invalid amount '{amount}'") from e

    with open_service(trip, verbose) as service:
        roster = service.list_members()
        if paid_by is None:
            paid_by = select_member_interactive(roster)
            if paid_by is None:
                console.print("[yellow]No payer selected.[/yellow]")
                return

        expense = service.add_expense(
            description=description,
            amount=total,
            paid_by_id=paid_by,
            split=parse_split(split, with_, roster),
            category=category,
        )
        console.print(
            f"[green]✓ Added expense {expense.id}: {expense.description} "
            f"({service.engine.currency.format(expense.amount)}, "
            f"{describe_split(expense).lower()})[/green]"
        )


@app.command("delete-expense")
def delete_expense(
    expense_id: str = typer.Argument(..., help="Expense id"),
    trip: str | None = TRIP_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Delete an expense."""
    with open_service(trip, verbose) as service:
        service.delete_expense(expense_id)
        console.print(f"[green]✓ Deleted {expense_id}[/green]")


@app.command()
def expenses(
    member: str | None = typer.Option(
        None, "--member", "-m", help="Show this member's share of each expense"
    ),
    trip: str | None = TRIP_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """List the trip's expenses."""
    with open_service(trip, verbose) as service:
        roster = service.list_members()
        names = {m.id: m.name for m in roster}
        items = service.list_expenses()
        digits = service.engine.currency.minor_unit_digits
        if not items:
            console.print("[yellow]No expenses yet.[/yellow]")
            return

        table = Table(title="Expenses", show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim", width=12)
        table.add_column("Date", width=10)
        table.add_column("Description", style="cyan", width=30)
        table.add_column("Category", style="yellow")
        table.add_column("Paid by")
        table.add_column("Amount", justify="right", width=12)
        table.add_column("Split", style="dim")
        if member:
            table.add_column("Share", justify="right", width=12)

        for expense in items:
            row = [
                expense.id,
                expense.date.date().isoformat() if expense.date else "",
                expense.description,
                expense.category,
                names.get(expense.paid_by_id, expense.paid_by_id),
                format_money(expense.amount, digits),
                describe_split(expense),
            ]
            if member:
                row.append(
                    format_money(service.engine.share_for(expense, roster, member), digits)
                )
            table.add_row(*row)

        console.print(table)
        total = sum((expense.amount for expense in items), Decimal("0"))
        console.print(f"  Total: {service.engine.currency.format(total)}")


# ============================================================================
# Balances and settlements
# ============================================================================


@app.command()
def balances(
    trip: str | None = TRIP_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Show what each member paid, owes, and their net balance."""
    with open_service(trip, verbose) as service:
        summary = service.get_summary()
        digits = service.engine.currency.minor_unit_digits

        table = Table(title="Balances", show_header=True, header_style="bold magenta")
        table.add_column("Member", style="cyan")
        table.add_column("Paid", justify="right", width=12)
        table.add_column("Share", justify="right", width=12)
        table.add_column("Net", justify="right", width=12)
        for row in summary.members:
            table.add_row(
                row.name,
                format_money(row.paid, digits, use_color=False),
                format_money(row.share, digits, use_color=False),
                format_money(row.net, digits),
            )
        console.print(table)

        console.print(
            f"  Total spent: {service.engine.currency.format(summary.total_spent)} "
            f"across {summary.expense_count} expenses"
        )
        if summary.is_settled:
            console.print("  [green]✓ Everyone is settled up[/green]")


def display_settlements(title: str, settlements: list[Settlement], digits: int = 2):
    """Display settlements in a table."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("From", style="red")
    table.add_column("To", style="green")
    table.add_column("Amount", justify="right", width=12)
    for settlement in settlements:
        table.add_row(
            settlement.from_name,
            settlement.to_name,
            format_money(settlement.amount, digits, use_color=False),
        )
    console.print(table)


@app.command()
def settle(
    member: str | None = typer.Option(
        None, "--member", "-m", help="Show this member's payments first"
    ),
    trip: str | None = TRIP_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Show the payments that settle the trip."""
    with open_service(trip, verbose) as service:
        settlements = service.get_settlements()
        digits = service.engine.currency.minor_unit_digits
        if not settlements:
            console.print("\n[bold green]✓ All settled up![/bold green]\n")
            return

        if member:
            you = service.find_member(member)
            mine, others = settlements_involving(settlements, you.id)
            if mine:
                display_settlements(f"Payments for {you.name}", mine, digits)
            else:
                console.print(f"[green]{you.name} is settled up.[/green]")
            if others:
                display_settlements("Other payments", others, digits)
        else:
            display_settlements("Settlements", settlements, digits)

        console.print(f"  {len(settlements)} payment(s) settle every balance.")


@app.command("import")
def import_snapshot(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON export"),
    trip: str | None = TRIP_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Import members and expenses from a JSON export."""
    with open_service(trip, verbose) as service:
        member_count, expense_count = service.import_snapshot(path)
        console.print(
            f"[green]✓ Imported {member_count} members and {expense_count} expenses "
            f"into trip {service.trip_id}[/green]"
        )


@app.command("export")
def export_snapshot(
    path: Path = typer.Argument(..., dir_okay=False, help="JSON file to write"),
    trip: str | None = TRIP_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Export the trip's members and expenses as JSON."""
    with open_service(trip, verbose) as service:
        member_count, expense_count = service.export_snapshot(path)
        console.print(
            f"[green]✓ Exported {member_count} members and {expense_count} expenses "
            f"from trip {service.trip_id} to {path}[/green]"
        )


@app.command()
def trips(
    verbose: bool = VERBOSE_OPTION,
):
    """List the trips in the store."""
    with open_service(None, verbose) as service:
        trip_ids = service.list_trips()
        if not trip_ids:
            console.print("[yellow]No trips yet.[/yellow]")
            return
        for trip_id in trip_ids:
            marker = " (default)" if trip_id == service.settings.default_trip else ""
            console.print(f"  {trip_id}{marker}")


if __name__ == "__main__":
    app()
