import logging
from decimal import Decimal
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from budget_categorizer.database.connection import DatabaseConfig, DatabaseManager, execute_schema
from budget_categorizer.domain.enums import TransactionDirection
from budget_categorizer.parsers.bank_csv import BankCsvParser, LAYOUTS
from budget_categorizer.repositories.sqlite_category_repository import SQLiteCategoryRepository
from budget_categorizer.repositories.sqlite_rule_repository import SQLiteCategoryRuleRepository
from budget_categorizer.repositories.sqlite_transaction_repository import SQLiteTransactionRepository
from budget_categorizer.services.categorization_service import CategorizationService

app = typer.Typer(
    name="budget-categorizer",
    help="Categorize bank transactions with rules, similarity and learning",
    add_completion=False,
)
rules_app = typer.Typer(help="Manage categorization rules")
app.add_typer(rules_app, name="rules")

console = Console()


class State:
    verbose: bool = False
    owner: str = "default"
    db: Optional[DatabaseManager] = None
    service: Optional[CategorizationService] = None


state = State()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=verbose)],
        force=True,
    )


def _fail(error: Exception) -> None:
    console.print(f"[bold red]Error:[/bold red] {escape(str(error))}")
    if state.verbose:
        console.print_exception()
    raise typer.Exit(code=1)


def _category_names() -> dict:
    return {c.id: c.name for c in state.service.categories.get_all(state.owner)}


@app.callback()
def main(
    owner: str = typer.Option(
        "default",
        "--owner", "-o",
        envvar="BUDGET_OWNER",
        help="User whose data is read and written",
    ),
    db_path: Path = typer.Option(
        Path("data/budget.db"),
        "--db",
        envvar="BUDGET_DB",
        help="SQLite database file",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose output",
    ),
):
    """
    Budget Categorizer - suggest, assign and learn transaction categories.
    """
    _configure_logging(verbose)
    state.verbose = verbose
    state.owner = owner

    if state.service is None:
        state.db = DatabaseManager(DatabaseConfig(db_path))
        state.service = CategorizationService(
            transactions=SQLiteTransactionRepository(state.db),
            categories=SQLiteCategoryRepository(state.db),
            rules=SQLiteCategoryRuleRepository(state.db),
        )


@app.command(name="init-db")
def init_db(
    defaults: bool = typer.Option(
        True,
        "--defaults/--no-defaults",
        help="Create the default categories for the owner",
    ),
):
    """
    Create the database schema and, optionally, default categories.
    """
    try:
        execute_schema(state.db.get_connection())
        console.print(f"[green]✓[/green] Database ready at {state.db.config.db_path}")

        if defaults:
            created = state.service.ensure_default_categories(state.owner)
            console.print(f"[green]✓[/green] Created {len(created)} categories for {state.owner}")
    except Exception as e:
        _fail(e)


@rules_app.command(name="list")
def list_rules(
    active_only: bool = typer.Option(False, "--active", help="Only show active rules"),
):
    """List rules in evaluation order."""
    try:
        rules = state.service.list_rules(state.owner, active_only=active_only)
        if not rules:
            console.print(Panel("[yellow]No rules yet[/yellow]", border_style="yellow"))
            return

        names = _category_names()
        table = Table(title=f"Rules for {state.owner}")
        table.add_column("ID", justify="right", style="dim")
        table.add_column("Name", style="cyan")
        table.add_column("Pattern", style="white")
        table.add_column("Account", style="white")
        table.add_column("Category", style="magenta")
        table.add_column("Priority", justify="right")
        table.add_column("Active", justify="center")

        for rule in rules:
            table.add_row(
                str(rule.id),
                escape(rule.name),
                escape(rule.description_pattern),
                escape(rule.account_pattern or ""),
                names.get(rule.category_id, str(rule.category_id)),
                str(rule.priority),
                "[green]✓[/green]" if rule.is_active else "[red]✗[/red]",
            )
        console.print(table)
    except Exception as e:
        _fail(e)


@rules_app.command(name="add")
def add_rule(
    pattern: str = typer.Argument(..., help="Regular expression matched against descriptions"),
    category: str = typer.Argument(..., help="Target category name"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Rule label (defaults to the pattern)"),
    priority: int = typer.Option(0, "--priority", "-p", help="Higher runs first"),
    amount_min: Optional[Decimal] = typer.Option(None, "--min", help="Minimum amount", parser=Decimal),
    amount_max: Optional[Decimal] = typer.Option(None, "--max", help="Maximum amount", parser=Decimal),
    direction: Optional[TransactionDirection] = typer.Option(None, "--direction", help="debit or credit"),
    account_pattern: Optional[str] = typer.Option(None, "--account", help="Regular expression matched against the account name"),
):
    """
    Add a rule.

    Examples:
        budget-categorizer rules add "starbucks|tim hortons" "Dining Out" -p 5
        budget-categorizer rules add "amazon" "Shopping" --account "visa"
    """
    try:
        target = state.service.categories.get_by_name(state.owner, category)
        if target is None:
            raise ValueError(f"Unknown category: {category}")

        rule = state.service.create_rule(
            owner_id=state.owner,
            name=name or pattern,
            description_pattern=pattern,
            category_id=target.id,
            priority=priority,
            amount_min=amount_min,
            amount_max=amount_max,
            direction=direction,
            account_pattern=account_pattern,
        )
        console.print(f"[green]✓[/green] Added rule {rule.id}: /{escape(rule.description_pattern)}/ → {target.name}")
    except Exception as e:
        _fail(e)


@rules_app.command(name="remove")
def remove_rule(rule_id: int = typer.Argument(..., help="Rule ID")):
    """Delete a rule."""
    try:
        state.service.delete_rule(state.owner, rule_id)
        console.print(f"[green]✓[/green] Removed rule {rule_id}")
    except Exception as e:
        _fail(e)


@app.command(name="suggest")
def suggest(
    description: str = typer.Argument(..., help="Transaction description"),
    amount: Optional[Decimal] = typer.Option(None, "--amount", "-a", help="Transaction amount", parser=Decimal),
):
    """
    Show ranked category suggestions for a description.

    Examples:
        budget-categorizer suggest "STARBUCKS #123" --amount 4.50
    """
    try:
        suggestions = state.service.suggest(description, amount, state.owner)
        if not suggestions:
            console.print("[yellow]No suggestions[/yellow]")
            return

        names = _category_names()
        table = Table(title=f"Suggestions for {escape(repr(description))}")
        table.add_column("Category", style="magenta")
        table.add_column("Confidence", justify="right")
        table.add_column("Reason", style="dim")
        for s in suggestions:
            table.add_row(names.get(s.category_id, str(s.category_id)), f"{s.confidence:.2f}", s.reason)
        console.print(table)
    except Exception as e:
        _fail(e)


@app.command(name="assign")
def assign(
    transaction_id: int = typer.Argument(..., help="Transaction ID"),
    category_id: int = typer.Argument(..., help="Category ID"),
    learn: bool = typer.Option(True, "--learn/--no-learn", help="Learn rules from this choice"),
):
    """Set a transaction's category by hand."""
    try:
        txn = state.service.assign_category(state.owner, transaction_id, category_id, learn=learn)
        console.print(f"[green]✓[/green] {escape(txn.description)} → {_category_names().get(category_id, category_id)}")
    except Exception as e:
        _fail(e)


@app.command(name="learn")
def learn(
    transaction_id: int = typer.Argument(..., help="Transaction ID"),
    category_id: int = typer.Argument(..., help="Confirmed category ID"),
):
    """Learn rules from an existing categorization."""
    try:
        promoted = state.service.learn(transaction_id, category_id, state.owner)
        if not promoted:
            console.print("[dim]Nothing recurs often enough to learn yet[/dim]")
        for rule in promoted:
            console.print(f"[green]✓[/green] {escape(rule.name)} (rule {rule.id})")
    except Exception as e:
        _fail(e)


@app.command(name="auto-categorize")
def auto_categorize(
    overwrite: bool = typer.Option(False, "--overwrite", help="Re-evaluate categorized transactions"),
):
    """Apply rules to stored transactions."""
    try:
        result = state.service.auto_categorize(state.owner, overwrite=overwrite)
        console.print(f"[bold green]✓[/bold green] {result}")
    except Exception as e:
        _fail(e)


@app.command(name="import")
def import_transactions(
    filepath: Path = typer.Argument(
        ...,
        help="Bank CSV export",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    bank: str = typer.Option(
        "chase",
        "--bank", "-b",
        help=f"CSV layout ({', '.join(sorted(LAYOUTS))})",
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview without saving to database"),
    classify: bool = typer.Option(True, "--classify/--no-classify", help="Assign keyword categories"),
):
    """
    Import transactions from a bank CSV export.

    Examples:
        budget-categorizer import activity.csv --bank citi --dry-run
    """
    try:
        parser = BankCsvParser(bank, owner_id=state.owner)
        transactions = parser.parse(filepath)

        result = state.service.import_transactions(
            state.owner,
            transactions,
            classify=classify,
            dry_run=dry_run,
            source=str(filepath),
        )

        names = _category_names()
        preview = Table(title="Preview (first 10)")
        preview.add_column("Date", style="cyan")
        preview.add_column("Description", style="white")
        preview.add_column("Category", style="magenta")
        preview.add_column("Amount", justify="right")
        preview.add_column("Status", justify="center")

        new_ids = {id(t) for t in result.imported}
        for txn in (result.imported + result.skipped)[:10]:
            colour = "green" if txn.direction == TransactionDirection.CREDIT else "red"
            preview.add_row(
                str(txn.date),
                escape(txn.description[:40]),
                names.get(txn.category_id, "Uncategorized"),
                f"[{colour}]${txn.amount:,.2f}[/{colour}]",
                "[green]NEW[/green]" if id(txn) in new_ids else "[yellow]DUP[/yellow]",
            )
        console.print(preview)

        if dry_run:
            console.print("[yellow]DRY RUN - No changes made[/yellow]")
        console.print(str(result))
    except Exception as e:
        _fail(e)


def cli_main():
    """Entry point for the CLI"""
    app()


if __name__ == "__main__":
    cli_main()
