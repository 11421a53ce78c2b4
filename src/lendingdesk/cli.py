"""Command-line interface for lendingdesk.

Built with Typer for commands and Rich for output.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config import get_config
from .db import get_db
from .lending import BorrowingEngine, Transaction, build_engine
from .logging_config import configure_logging
from .results import Result

# Create the main app
app = typer.Typer(
    name="lendingdesk",
    help="Lend items to borrowers and track returns and fines.",
    no_args_is_help=True,
)

# Rich console for pretty output
console = Console()


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[dim]{message}[/dim]")


def get_engine() -> BorrowingEngine:
    """Engine bound to the configured database."""
    return build_engine(get_db())


def parse_money(value: Optional[str], option: str) -> Optional[Decimal]:
    """Parse a monetary option value."""
    if value is None:
        return None
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise typer.BadParameter(f"not a number: {value}", param_hint=option)
    if amount < 0:
        raise typer.BadParameter(f"cannot be negative: {value}", param_hint=option)
    return amount


def fail_on(result: Result) -> None:
    """Print the failure message and exit when a result is not ok."""
    if not result.ok:
        print_error(result.message)
        raise typer.Exit(1)


def resolve_transaction_id(engine: BorrowingEngine, value: str) -> str:
    """Expand a unique ID prefix, as shown in tables, to the full transaction ID."""
    if engine.get_transaction(value) is not None:
        return value
    matches = [tx.id for tx in engine.list_transactions() if tx.id.startswith(value)]
    return matches[0] if len(matches) == 1 else value


def format_money(amount: Decimal) -> str:
    return f"{amount:.2f}"


def format_instant(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "-"


def format_transaction_table(
    transactions: list[Transaction],
    engine: BorrowingEngine,
    title: str = "Loans",
) -> Table:
    """Create a rich table for displaying loan transactions."""
    now = engine.clock.now()

    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", max_width=8)
    table.add_column("Item", style="cyan")
    table.add_column("Borrower")
    table.add_column("Checked Out")
    table.add_column("Due")
    table.add_column("Returned")
    table.add_column("Status")
    table.add_column("Fine", justify="right")

    names = {b.id: b.name for b in engine.list_borrowers()}

    for tx in transactions:
        if tx.is_overdue(now):
            status_str = f"[bold red]OVERDUE ({tx.days_overdue(now)}d)[/bold red]"
        elif tx.is_active:
            status_str = "[green]active[/green]"
        else:
            status_str = "[dim]returned[/dim]"

        table.add_row(
            tx.id[:8],
            tx.item_id,
            names.get(tx.borrower_id, "Unknown"),
            format_instant(tx.checkout_at),
            format_instant(tx.due_at),
            format_instant(tx.return_at),
            status_str,
            format_money(tx.fine_amount),
        )

    return table


# ============================================================================
# App Callback
# ============================================================================


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level (default: LENDINGDESK_LOG_LEVEL)"
    ),
) -> None:
    """Lend items to borrowers and track returns and fines."""
    config = get_config()
    errors = config.validate()
    if errors:
        for error in errors:
            print_error(error)
        raise typer.Exit(1)
    configure_logging(log_level or config.log_level)


@app.command()
def version() -> None:
    """Show the version."""
    console.print(f"lendingdesk {__version__}")


# ============================================================================
# Borrower Commands
# ============================================================================


@app.command()
def register(
    name: str = typer.Argument(..., help="Borrower name"),
    email: Optional[str] = typer.Option(None, "--email", "-e", help="Contact email"),
    phone: Optional[str] = typer.Option(None, "--phone", "-p", help="Phone number"),
    address: Optional[str] = typer.Option(None, "--address", "-a", help="Postal address"),
) -> None:
    """Register a new borrower."""
    engine = get_engine()
    result = engine.register_borrower(name, email=email, phone=phone, address=address)
    fail_on(result)

    borrower = result.value
    print_success(f"Registered {borrower.name}")
    console.print(f"Borrower ID: {borrower.id}")


@app.command()
def borrowers() -> None:
    """List registered borrowers."""
    engine = get_engine()
    people = engine.list_borrowers()

    if not people:
        print_info("No borrowers registered")
        return

    table = Table(title="Borrowers", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Email")
    table.add_column("Phone")
    table.add_column("Active", justify="right")

    for borrower in people:
        active = sum(1 for tx in engine.get_transactions_for_borrower(borrower.id) if tx.is_active)
        table.add_row(
            borrower.id,
            borrower.name,
            borrower.email or "-",
            borrower.phone or "-",
            str(active),
        )

    console.print(table)


@app.command()
def history(
    borrower_id: str = typer.Argument(..., help="Borrower ID"),
) -> None:
    """Show a borrower's loans, most recent first."""
    engine = get_engine()
    borrower = engine.get_borrower(borrower_id)
    if borrower is None:
        print_error("Borrower not found")
        raise typer.Exit(1)

    transactions = engine.get_transactions_for_borrower(borrower_id)
    if not transactions:
        print_info(f"{borrower.name} has no loans")
        return

    console.print(format_transaction_table(transactions, engine, title=f"Loans for {borrower.name}"))


# ============================================================================
# Loan Commands
# ============================================================================


@app.command()
def checkout(
    item_id: str = typer.Argument(..., help="Item ID to check out"),
    borrower_id: str = typer.Argument(..., help="Borrower ID"),
    days: Optional[int] = typer.Option(
        None, "--days", "-d", min=0, help="Loan period in days (default: LENDINGDESK_LOAN_DAYS)"
    ),
) -> None:
    """Check an item out to a borrower."""
    engine = get_engine()
    result = engine.checkout(item_id, borrower_id, days)
    fail_on(result)

    tx = result.value
    print_success(f"Item {tx.item_id} checked out")
    console.print(f"Transaction ID: {tx.id}")
    print_info(f"Due: {format_instant(tx.due_at)}")


@app.command("return")
def return_(
    transaction_id: str = typer.Argument(..., help="Transaction ID to close"),
    fine: Optional[str] = typer.Option(None, "--fine", "-f", help="Fine to record"),
    assess: bool = typer.Option(False, "--assess", "-a", help="Compute the overdue fine now"),
    rate: Optional[str] = typer.Option(None, "--rate", "-r", help="Daily fine rate for --assess"),
) -> None:
    """Return a checked-out item."""
    fine_amount = parse_money(fine, "--fine")
    daily_rate = parse_money(rate, "--rate")
    if assess and fine_amount is not None:
        print_error("Use either --fine or --assess, not both")
        raise typer.Exit(1)
    if daily_rate is not None and not assess:
        print_error("--rate only applies with --assess")
        raise typer.Exit(1)

    engine = get_engine()
    result = engine.return_item(
        resolve_transaction_id(engine, transaction_id),
        fine_amount,
        assess_fine=assess,
        daily_fine_rate=daily_rate,
    )
    fail_on(result)

    tx = result.value
    print_success(f"Item {tx.item_id} returned")
    if tx.fine_amount > 0:
        console.print(f"Fine recorded: [bold]{format_money(tx.fine_amount)}[/bold]")


@app.command()
def fine(
    transaction_id: str = typer.Argument(..., help="Transaction ID"),
    rate: Optional[str] = typer.Option(
        None, "--rate", "-r", help="Daily fine rate (default: LENDINGDESK_DAILY_FINE)"
    ),
) -> None:
    """Preview the fine an active loan owes right now."""
    engine = get_engine()
    daily_rate = parse_money(rate, "--rate")
    amount = engine.calculate_fine(resolve_transaction_id(engine, transaction_id), daily_rate)
    console.print(f"Fine: [bold]{format_money(amount)}[/bold]")


@app.command()
def overdue(
    rate: Optional[str] = typer.Option(
        None, "--rate", "-r", help="Daily fine rate (default: LENDINGDESK_DAILY_FINE)"
    ),
) -> None:
    """Show overdue loans with their current fines."""
    engine = get_engine()
    daily_rate = parse_money(rate, "--rate")
    now = engine.clock.now()
    transactions = engine.get_overdue_transactions(now)

    if not transactions:
        print_success("No overdue loans!")
        return

    oldest = max(tx.days_overdue(now) for tx in transactions)
    console.print(Panel(
        f"[bold red]Overdue Loans: {len(transactions)}[/bold red]\n"
        f"Oldest: {oldest} days overdue",
        style="red",
    ))

    names = {b.id: b.name for b in engine.list_borrowers()}

    table = Table(show_header=True, header_style="bold red")
    table.add_column("ID", style="dim", max_width=8)
    table.add_column("Item", style="cyan")
    table.add_column("Borrower")
    table.add_column("Due")
    table.add_column("Days Overdue", justify="right")
    table.add_column("Fine", justify="right")

    for tx in transactions:
        table.add_row(
            tx.id[:8],
            tx.item_id,
            names.get(tx.borrower_id, "Unknown"),
            format_instant(tx.due_at),
            f"[bold red]{tx.days_overdue(now)}[/bold red]",
            format_money(engine.calculate_fine(tx.id, daily_rate)),
        )

    console.print(table)


@app.command()
def item(
    item_id: str = typer.Argument(..., help="Item ID"),
) -> None:
    """Show whether an item is available for checkout."""
    engine = get_engine()
    active = engine.get_active_transactions_for_item(item_id)

    if not active:
        console.print(f"Item {item_id}: [green]available[/green]")
        return

    console.print(f"Item {item_id}: [yellow]checked out[/yellow]")
    console.print(format_transaction_table(active, engine, title="Active Loan"))


@app.command()
def ledger(
    active: bool = typer.Option(False, "--active", help="Show only active loans"),
) -> None:
    """List every loan transaction."""
    engine = get_engine()
    transactions = engine.list_active_transactions() if active else engine.list_transactions()

    if not transactions:
        print_info("No loans found")
        return

    console.print(format_transaction_table(transactions, engine))
