"""Command-line interface for the sheet finance dashboard."""

import argparse
import mimetypes
import sys
from datetime import date
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from sheet_finance import __version__
from sheet_finance.config import Config, ConfigError, load_config, load_source_url
from sheet_finance.models.summary import FilterMode, SpendingSummary, TimeFilter
from sheet_finance.models.transaction import Transaction, TransactionType
from sheet_finance.output import CSVExporter
from sheet_finance.processing.ai import (
    AICategorizer,
    InsightAdvisor,
    ReceiptScanError,
    ReceiptScanner,
    client_from_config,
)
from sheet_finance.processing.reconciler import Reconciler
from sheet_finance.processing.report_generator import available_years
from sheet_finance.resources import load_apps_script
from sheet_finance.session import DashboardSession, Notification, NotificationLevel
from sheet_finance.sources import ConnectionMode
from sheet_finance.utils.date_utils import parse_date
from sheet_finance.utils.decimal_utils import format_currency, parse_amount
from sheet_finance.utils.logging_config import get_logger, setup_logging

# Load environment variables from .env file (if it exists)
load_dotenv()

console = Console()
logger = get_logger(__name__)

NOTIFICATION_STYLES = {
    NotificationLevel.SUCCESS: "green",
    NotificationLevel.WARNING: "yellow",
    NotificationLevel.ERROR: "red",
}

# Commands that only make sense when the sheet can be written back
WRITE_COMMANDS = ("add", "delete", "scan")


def _add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    group = parser.add_argument_group("Time filter")
    group.add_argument(
        "--mode",
        choices=[m.value for m in FilterMode],
        default=FilterMode.ALL.value,
        help="Time window (default: all)",
    )
    group.add_argument("--year", type=int, default=None, help="Year for year/month mode")
    group.add_argument("--month", type=int, default=None, help="Month (1-12) for month mode")
    group.add_argument("--day", default=None, help="Day (YYYY-MM-DD) for day mode")


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        prog="sheet-finance",
        description="Personal finance dashboard backed by a Google Sheet",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s connect "https://docs.google.com/spreadsheets/d/e/.../pub?output=csv"
  %(prog)s summary --mode month --year 2024 --month 3
  %(prog)s script > backend.gs
  %(prog)s add --description "Coffee" --amount 4.50 --category "Food & Dining"
  %(prog)s ask "Where can I save money?"
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to settings.yaml (default: config/settings.yaml)",
    )

    parser.add_argument(
        "--config-dir",
        type=Path,
        default=Path("config"),
        help="Base config directory (default: ./config)",
    )

    parser.add_argument(
        "--no-ai",
        action="store_true",
        help="Disable categorization, insights and receipt scanning",
    )

    # Verbosity
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase output verbosity (-v, -vv)",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    connect = subparsers.add_parser("connect", help="Sync from a new sheet URL and remember it")
    connect.add_argument("url", help="Published CSV URL or script endpoint URL")

    subparsers.add_parser("sync", help="Sync again from the saved sheet URL")

    subparsers.add_parser(
        "script", help="Print the spreadsheet script that enables add and delete"
    )

    list_cmd = subparsers.add_parser("list", help="List transactions")
    _add_filter_arguments(list_cmd)

    summary = subparsers.add_parser("summary", help="Show totals, breakdown and trend")
    _add_filter_arguments(summary)

    add = subparsers.add_parser(
        "add", help="Add a transaction to the sheet (script endpoint only)"
    )
    add.add_argument("--description", required=True, help="Description")
    add.add_argument("--amount", required=True, help="Amount (currency symbols allowed)")
    add.add_argument("--date", default=None, help="Date (default: today)")
    add.add_argument(
        "--type",
        choices=[t.value for t in TransactionType],
        default=TransactionType.EXPENSE.value,
        help="INCOME or EXPENSE (default: EXPENSE)",
    )
    add.add_argument("--category", default=None, help="Category (default: first configured)")

    delete = subparsers.add_parser(
        "delete", help="Mark a transaction as Deleted in the sheet (script endpoint only)"
    )
    delete.add_argument("id", help="Transaction id")

    ask = subparsers.add_parser("ask", help="Ask for an analysis of your spending")
    ask.add_argument("query", nargs="?", default=None, help="Question (default: general analysis)")
    _add_filter_arguments(ask)

    scan = subparsers.add_parser(
        "scan", help="Add an expense from a receipt image (script endpoint only)"
    )
    scan.add_argument("image", type=Path, help="Receipt image file")

    export = subparsers.add_parser("export", help="Export transactions to CSV")
    export.add_argument("file", type=Path, help="Output CSV path")
    _add_filter_arguments(export)

    return parser


def get_log_level(verbosity: int) -> str:
    """Convert verbosity count to log level.

    Args:
        verbosity: Number of -v flags.

    Returns:
        Log level string.
    """
    if verbosity >= 2:
        return "DEBUG"
    elif verbosity >= 1:
        return "INFO"
    else:
        return "WARNING"


def time_filter_from_args(args: argparse.Namespace) -> TimeFilter:
    """Build the time filter from --mode/--year/--month/--day.

    Year and month default to the current ones when the mode needs them.

    Raises:
        ValueError: If the month or day is invalid.
    """
    mode = FilterMode(args.mode)
    today = date.today()
    year = args.year
    month = args.month
    day = args.day

    if mode in (FilterMode.YEAR, FilterMode.MONTH) and year is None:
        year = today.year
    if mode is FilterMode.MONTH and month is None:
        month = today.month
    if mode is FilterMode.DAY:
        day = parse_date(day).isoformat() if day else today.isoformat()

    return TimeFilter(mode=mode, year=year, month=month, day=day)


def print_notification(notification: Notification) -> None:
    style = NOTIFICATION_STYLES[notification.level]
    console.print(f"[{style}]{notification.message}[/{style}]")


def build_session(config: Config, use_ai: bool) -> DashboardSession:
    """Wire the session with its collaborators.

    Args:
        config: Application configuration.
        use_ai: Whether the hosted model may be used at all.

    Returns:
        Configured DashboardSession.
    """
    reconciler = Reconciler()
    advisor = None
    scanner = None

    if use_ai and config.ai.enabled:
        client = client_from_config(config.ai)
        if client.is_available:
            reconciler = Reconciler(AICategorizer.create(config.ai, config.categories, client))
            advisor = InsightAdvisor(client)
            scanner = ReceiptScanner(client, config.categories)
        else:
            logger.warning(
                f"{config.ai.api_key_env} not set, AI features disabled"
            )

    return DashboardSession(
        config=config,
        reconciler=reconciler,
        advisor=advisor,
        scanner=scanner,
        notifier=print_notification,
    )


def display_transactions(transactions: list[Transaction], title: str) -> None:
    table = Table(title=title)
    table.add_column("Date")
    table.add_column("Description")
    table.add_column("Category")
    table.add_column("Amount", justify="right")
    table.add_column("Id", style="dim")

    for t in transactions:
        amount = format_currency(t.amount, include_sign=False)
        style = "green" if t.is_income else "red"
        sign = "+" if t.is_income else "-"
        table.add_row(
            t.iso_date,
            t.description,
            t.category,
            f"[{style}]{sign}{amount}[/{style}]",
            t.id,
        )

    console.print(table)
    console.print(f"{len(transactions)} transactions")


def display_summary(summary: SpendingSummary, title: str) -> None:
    """Print totals, category breakdown and trend."""
    console.print(f"\n[bold]Summary: {title}[/bold]")
    console.print(f"  Income:  [green]{format_currency(summary.total_income, include_sign=False)}[/green]")
    console.print(f"  Expense: [red]{format_currency(summary.total_expense, include_sign=False)}[/red]")
    console.print(f"  Balance: {format_currency(summary.balance)}")

    if summary.category_breakdown:
        breakdown = Table(title="Expenses by category")
        breakdown.add_column("Category")
        breakdown.add_column("Amount", justify="right")
        for entry in summary.category_breakdown:
            breakdown.add_row(
                f"[{entry.color}]■[/{entry.color}] {entry.name}",
                format_currency(entry.value, include_sign=False),
            )
        console.print(breakdown)

    if summary.monthly_trend:
        trend = Table(title="Trend")
        trend.add_column("Period")
        trend.add_column("Income", justify="right", style="green")
        trend.add_column("Expense", justify="right", style="red")
        for point in summary.monthly_trend:
            trend.add_row(
                point.bucket_key,
                format_currency(point.income, include_sign=False),
                format_currency(point.expense, include_sign=False),
            )
        console.print(trend)


def _require_data(session: DashboardSession) -> bool:
    if not load_source_url(session.config.state_path):
        console.print("[red]Error: No sheet connected. Run 'connect URL' first.[/red]")
        return False
    return session.load_saved_source()


def _require_writable(session: DashboardSession, command: str) -> bool:
    # Each run starts from a fresh sync, so local-only edits would be lost
    url = load_source_url(session.config.state_path)
    if url and ConnectionMode.from_url(url) is not ConnectionMode.READ_WRITE:
        console.print(
            f"[red]Error: '{command}' needs a script endpoint URL; "
            "a published CSV is read-only. Run 'script' for the setup.[/red]"
        )
        return False
    return True


def run_command(args: argparse.Namespace, session: DashboardSession) -> int:
    """Execute one subcommand.

    Returns:
        Exit code.
    """
    if args.command == "connect":
        return 0 if session.sync(args.url) else 1

    if args.command == "sync":
        url = load_source_url(session.config.state_path)
        if not url:
            console.print("[red]Error: No sheet connected. Run 'connect URL' first.[/red]")
            return 1
        return 0 if session.sync(url) else 1

    if args.command == "script":
        print(load_apps_script())
        return 0

    if args.command in WRITE_COMMANDS and not _require_writable(session, args.command):
        return 1

    if not _require_data(session):
        return 1

    if args.command == "add":
        try:
            amount, _ = parse_amount(args.amount)
            txn_date = parse_date(args.date) if args.date else date.today()
        except ValueError as e:
            console.print(f"[red]Error: {e}[/red]")
            return 1
        txn = session.add(
            description=args.description,
            amount=amount,
            txn_date=txn_date,
            transaction_type=TransactionType(args.type),
            category=args.category or session.config.categories[0],
        )
        console.print(f"Added {txn.id}")
        return 0

    if args.command == "delete":
        return 0 if session.delete(args.id) else 1

    if args.command == "scan":
        if session.scanner is None:
            console.print("[red]Error: Receipt scanning needs an API key.[/red]")
            return 1
        media_type = mimetypes.guess_type(args.image.name)[0] or "image/jpeg"
        try:
            txn = session.add_from_receipt(args.image.read_bytes(), media_type)
        except (OSError, ReceiptScanError) as e:
            console.print(f"[red]Error: Failed to scan receipt: {e}[/red]")
            return 1
        console.print(
            f"Added {txn.description} ({format_currency(txn.amount, include_sign=False)}) "
            f"on {txn.iso_date} as {txn.category}"
        )
        return 0

    try:
        time_filter = time_filter_from_args(args)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    if args.command == "list":
        display_transactions(session.visible(time_filter), time_filter.label)
        years = ", ".join(str(y) for y in available_years(session.transactions))
        console.print(f"[dim]Years: {years}[/dim]")
        return 0

    if args.command == "summary":
        display_summary(session.summary(time_filter), time_filter.label)
        return 0

    if args.command == "ask":
        if session.advisor is None:
            console.print("[red]Error: Insights need an API key.[/red]")
            return 1
        with console.status("Analyzing..."):
            reply = session.ask(args.query, time_filter)
        console.print(Markdown(reply))
        return 0

    if args.command == "export":
        path = CSVExporter().export(args.file, session.visible(time_filter))
        console.print(f"[green]Exported to {path}[/green]")
        return 0

    console.print(f"[red]Error: Unknown command {args.command}[/red]")
    return 1


def main() -> int:
    """Main entry point for the CLI.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    args = parser.parse_args()

    try:
        config = load_config(settings_path=args.config, config_dir=args.config_dir)
    except (FileNotFoundError, ConfigError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    # Set up logging; -v overrides the configured level
    log_level = get_log_level(args.verbose) if args.verbose else config.logging.level
    setup_logging(level=log_level, log_file=config.logging.file, console_output=args.verbose > 0)

    session = build_session(config, use_ai=not args.no_ai)
    exit_code = run_command(args, session)

    if session.advisor is not None and session.advisor.client.usage_stats.total_requests:
        logger.info(session.advisor.client.usage_summary())
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
