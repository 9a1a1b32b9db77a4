"""Command-line interface for the spending insights engine."""

import argparse
import json
import os
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from spending_insights import __version__
from spending_insights.config import Config, ConfigError, load_config
from spending_insights.models.category import Budget
from spending_insights.parsers.base import ParseError, ValidationError
from spending_insights.parsers.csv_parser import PREVIEW_ROWS, ColumnMapping, CSVParser
from spending_insights.storage.yaml_store import YamlTransactionStore
from spending_insights.utils.date_utils import DATE_FORMATS
from spending_insights.utils.decimal_utils import format_amount
from spending_insights.utils.logging_config import get_logger, setup_logging

# Load environment variables from .env file (if it exists)
load_dotenv()

console = Console()
logger = get_logger(__name__)

DEFAULT_STORE = "transactions.yaml"
DEFAULT_USER = "local"


def _parse_date_arg(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', expected YYYY-MM-DD")


def _add_period_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--month", type=int, default=None, help="Target month 1-12 (default: current)")
    parser.add_argument("--year", type=int, default=None, help="Target year (default: current)")


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        prog="spending-insights",
        description="Import bank CSV exports and find subscriptions, anomalies and spending leaks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s preview statement.csv
  %(prog)s import statement.csv --date-col 0 --description-col 1 --amount-col 2
  %(prog)s import ziraat.csv --date-format dd.mm.yyyy --currency TRY --date-col 0 --description-col 2 --amount-col 3
  %(prog)s subscriptions --lookback 6
  %(prog)s leaks --month 3 --year 2024
  %(prog)s insights --json
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-s", "--store",
        type=Path,
        default=None,
        help=f"Transaction store file (default: $SPENDING_INSIGHTS_STORE or {DEFAULT_STORE})",
    )
    parser.add_argument(
        "-u", "--user",
        default=None,
        help=f"User the data belongs to (default: $SPENDING_INSIGHTS_USER or {DEFAULT_USER})",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to settings.yaml (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help="Configuration directory (default: ./config)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for info, -vv for debug)",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    preview = subparsers.add_parser("preview", help="Show the first rows of a CSV file")
    preview.add_argument("file", type=Path, help="CSV file")
    preview.add_argument("--limit", type=int, default=PREVIEW_ROWS, help="Rows to show")

    imp = subparsers.add_parser("import", help="Import a CSV file into the store")
    imp.add_argument("file", type=Path, help="CSV file")
    imp.add_argument("--date-col", type=int, required=True, help="Date column index (0-based)")
    imp.add_argument("--description-col", type=int, required=True, help="Description column index")
    imp.add_argument("--amount-col", type=int, required=True, help="Amount column index")
    imp.add_argument("--type-col", type=int, default=None, help="Income/expense type column index")
    imp.add_argument("--reference-col", type=int, default=None, help="Bank reference/ID column index")
    imp.add_argument("--currency", default=None, help="Currency code (default from settings)")
    imp.add_argument(
        "--date-format",
        choices=sorted(DATE_FORMATS),
        default="iso",
        help="Date format used in the file",
    )
    imp.add_argument("--no-header", action="store_true", help="First row is data, not a header")

    subs = subparsers.add_parser("subscriptions", help="Detect recurring charges")
    subs.add_argument("--lookback", type=int, default=None, help="Months to scan (default from settings)")
    subs.add_argument("--as-of", type=_parse_date_arg, default=None, help="Window end date (default: today)")

    anomalies = subparsers.add_parser("anomalies", help="Flag unusual expenses in a month")
    _add_period_arguments(anomalies)

    leaks = subparsers.add_parser("leaks", help="Rank categories with growing spend")
    _add_period_arguments(leaks)
    leaks.add_argument("--limit", type=int, default=None, help="Maximum leaks (default from settings)")

    budgets = subparsers.add_parser("budgets", help="Show budget progress for a month")
    _add_period_arguments(budgets)

    summary = subparsers.add_parser("summary", help="Monthly totals and spending trend")
    _add_period_arguments(summary)
    summary.add_argument("--trend-months", type=int, default=6, help="Months in the trend")

    insights = subparsers.add_parser("insights", help="Run every detector for a month")
    _add_period_arguments(insights)
    insights.add_argument("--json", action="store_true", help="Print the report as JSON")

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


def resolve_period(month: Optional[int], year: Optional[int], today: Optional[date] = None) -> tuple[int, int]:
    """Fill in a missing month/year from today's date.

    Returns:
        Tuple of (month, year).
    """
    today = today or date.today()
    return (
        today.month if month is None else month,
        today.year if year is None else year,
    )


def open_store(path: Optional[Path]) -> YamlTransactionStore:
    """Open the YAML store named on the command line or in the environment."""
    if path is None:
        path = Path(os.environ.get("SPENDING_INSIGHTS_STORE", DEFAULT_STORE))
    return YamlTransactionStore(path)


def _money(amount: Decimal, currency: str = "") -> str:
    text = format_amount(amount)
    return f"{text} {currency}".strip()


def preview_command(file: Path, limit: int) -> int:
    """Print the header and first rows of a CSV file with column indexes."""
    parser = CSVParser()
    try:
        preview = parser.preview(file, limit)
    except (ParseError, FileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    if not preview.headers:
        console.print("[yellow]File is empty.[/yellow]")
        return 0

    table = Table(title=f"{file.name} (delimiter {preview.delimiter!r})")
    for idx, header in enumerate(preview.headers):
        table.add_column(f"[{idx}] {header}")
    for row in preview.rows:
        table.add_row(*(row + [""] * (len(preview.headers) - len(row)))[: len(preview.headers)])
    console.print(table)
    return 0


def import_command(
    store: YamlTransactionStore,
    config: Config,
    user_id: str,
    file: Path,
    mapping: ColumnMapping,
    currency: Optional[str],
    date_format: str,
    has_header: bool,
) -> int:
    """Import one CSV file and print the outcome."""
    from spending_insights.processing.importer import Importer

    importer = Importer(store, config)
    # Write the store file once per import rather than once per row
    store.autosave = False
    try:
        with console.status(f"[bold green]Importing {file.name}..."):
            result = importer.import_transactions(
                user_id, file, mapping, currency, date_format, has_header=has_header
            )
    finally:
        store.autosave = True
    if result.imported:
        store.save()

    console.print("\n[bold]Import Summary[/bold]")
    console.print(f"  Rows read: {result.total_rows}")
    console.print(f"  Imported: [green]{result.imported}[/green]")
    console.print(f"  Duplicates skipped: {result.skipped}")
    console.print(f"  Malformed rows: {result.malformed}")

    if result.errors:
        console.print(f"\n[yellow]Rejected rows ({len(result.errors)}):[/yellow]")
        for error in result.errors[:10]:
            console.print(f"  - {error}")
        if len(result.errors) > 10:
            console.print(f"  ... and {len(result.errors) - 10} more")
    return 0


def subscriptions_command(
    store: YamlTransactionStore,
    config: Config,
    user_id: str,
    lookback: Optional[int],
    as_of: date,
) -> int:
    """Print detected subscriptions."""
    from spending_insights.processing.subscription_detector import detect_subscriptions

    findings = detect_subscriptions(store, user_id, lookback, as_of, config.subscriptions)
    if not findings:
        console.print("[dim]No subscriptions detected.[/dim]")
        return 0

    table = Table(title=f"Subscriptions (as of {as_of})")
    table.add_column("Merchant")
    table.add_column("Amount", justify="right")
    table.add_column("Frequency")
    table.add_column("Charges", justify="right")
    table.add_column("Last charge")
    for f in findings:
        table.add_row(f.merchant, _money(f.amount, f.currency), f.frequency, str(f.count), f.last_date.isoformat())
    console.print(table)
    return 0


def anomalies_command(store: YamlTransactionStore, config: Config, user_id: str, month: int, year: int) -> int:
    """Print anomalous transactions for a month."""
    from spending_insights.processing.anomaly_detector import detect_anomalies

    findings = detect_anomalies(store, user_id, month, year, config.anomalies)
    if not findings:
        console.print(f"[dim]No anomalies in {month}/{year}.[/dim]")
        return 0

    table = Table(title=f"Anomalies {month}/{year}")
    table.add_column("Date")
    table.add_column("Merchant")
    table.add_column("Amount", justify="right")
    table.add_column("Typical", justify="right")
    table.add_column("Reason")
    for f in findings:
        table.add_row(
            f.date.isoformat() if f.date else "",
            f.merchant,
            _money(f.amount),
            _money(f.baseline),
            f.reason,
        )
    console.print(table)
    return 0


def leaks_command(
    store: YamlTransactionStore,
    config: Config,
    user_id: str,
    month: int,
    year: int,
    limit: Optional[int],
) -> int:
    """Print the top spending leaks for a month."""
    from spending_insights.processing.leak_finder import find_top_leaks

    findings = find_top_leaks(store, user_id, month, year, limit, config.leaks)
    if not findings:
        console.print(f"[dim]No category spent more in {month}/{year} than the month before.[/dim]")
        return 0

    table = Table(title=f"Spending leaks {month}/{year}")
    table.add_column("Category")
    table.add_column("Previous", justify="right")
    table.add_column("Current", justify="right")
    table.add_column("Increase", justify="right")
    table.add_column("Change", justify="right")
    for f in findings:
        change = "new" if f.increase_percent is None else f"+{f.increase_percent:.1f}%"
        table.add_row(f.category, _money(f.previous_month), _money(f.current_month), _money(f.increase), change)
    console.print(table)
    return 0


def budgets_command(store: YamlTransactionStore, user_id: str, month: int, year: int) -> int:
    """Print budget progress for a month."""
    from spending_insights.processing.budget_tracker import track_budgets

    budgets = [Budget.from_dict(data) for data in store.budget_data()]
    progress = track_budgets(store, user_id, budgets, month, year)
    if not progress:
        console.print(f"[dim]No budgets set for {month}/{year}.[/dim]")
        return 0

    table = Table(title=f"Budgets {month}/{year}")
    table.add_column("Category")
    table.add_column("Budget", justify="right")
    table.add_column("Spent", justify="right")
    table.add_column("Remaining", justify="right")
    table.add_column("Used", justify="right")
    for p in progress:
        style = "red" if p.is_over_budget else None
        table.add_row(
            p.category,
            _money(p.budgeted),
            _money(p.spent),
            _money(p.remaining),
            f"{p.percent_used:.1f}%",
            style=style,
        )
    console.print(table)
    return 0


def summary_command(store: YamlTransactionStore, user_id: str, month: int, year: int, trend_months: int) -> int:
    """Print monthly totals, top categories and the expense trend."""
    from spending_insights.processing.report_generator import (
        generate_monthly_summary,
        generate_spending_trend,
    )

    summary = generate_monthly_summary(store, user_id, month, year)
    trend = generate_spending_trend(store, user_id, month, year, trend_months)

    console.print(f"\n[bold]Summary {month}/{year}[/bold]")
    console.print(f"  Income: {_money(summary.income, summary.currency)}")
    console.print(f"  Expenses: {_money(summary.expense, summary.currency)}")
    console.print(f"  Net: {_money(summary.net, summary.currency)}")
    console.print(f"  Savings rate: {summary.savings_rate:.1f}%")

    if summary.top_categories:
        console.print("\n[bold]Top categories[/bold]")
        for name, total in summary.top_categories:
            console.print(f"  {name}: {_money(total, summary.currency)}")

    console.print("\n[bold]Expense trend[/bold]")
    for point in trend:
        console.print(f"  {point.label:>8}  {_money(point.expense)}")
    return 0


def insights_command(
    store: YamlTransactionStore,
    config: Config,
    user_id: str,
    month: int,
    year: int,
    as_json: bool,
) -> int:
    """Run every detector and print the combined report."""
    from spending_insights.processing.insights import build_insights

    with console.status("[bold green]Analyzing transactions..."):
        report = build_insights(store, user_id, month, year, config=config)

    if as_json:
        console.print_json(json.dumps(report.to_dict(), ensure_ascii=False))
        return 0

    console.print(f"[bold]Insights {month}/{year}[/bold]")
    console.print(f"  Subscriptions: {len(report.subscriptions)}")
    for s in report.subscriptions:
        console.print(f"    - {s.merchant}: {_money(s.amount, s.currency)} {s.frequency}")
    console.print(f"  Anomalies: {len(report.anomalies)}")
    for a in report.anomalies:
        console.print(f"    - {a.merchant} {_money(a.amount)}: {a.reason}")
    console.print(f"  Leaks: {len(report.leaks)}")
    for leak in report.leaks:
        change = "new spend" if leak.increase_percent is None else f"+{leak.increase_percent:.1f}%"
        console.print(f"    - {leak.category}: {_money(leak.current_month)} ({change})")
    return 0


def run_command(args: argparse.Namespace, config: Config) -> int:
    """Dispatch a parsed command.

    Args:
        args: Parsed arguments.
        config: Loaded configuration.

    Returns:
        Exit code.
    """
    if args.command == "preview":
        return preview_command(args.file, args.limit)

    user_id = args.user or os.environ.get("SPENDING_INSIGHTS_USER", DEFAULT_USER)
    store = open_store(args.store)

    if args.command == "import":
        mapping = ColumnMapping(
            date=args.date_col,
            description=args.description_col,
            amount=args.amount_col,
            type=args.type_col,
            reference=args.reference_col,
        )
        return import_command(
            store, config, user_id, args.file, mapping, args.currency, args.date_format, not args.no_header
        )

    if args.command == "subscriptions":
        return subscriptions_command(store, config, user_id, args.lookback, args.as_of or date.today())

    month, year = resolve_period(args.month, args.year)
    if args.command == "anomalies":
        return anomalies_command(store, config, user_id, month, year)
    if args.command == "leaks":
        return leaks_command(store, config, user_id, month, year, args.limit)
    if args.command == "budgets":
        return budgets_command(store, user_id, month, year)
    if args.command == "summary":
        return summary_command(store, user_id, month, year, args.trend_months)
    if args.command == "insights":
        return insights_command(store, config, user_id, month, year, args.json)

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    log_level = get_log_level(args.verbose)
    setup_logging(level=log_level, console_output=args.verbose > 0)

    try:
        config = load_config(settings_path=args.config, config_dir=args.config_dir)
    except (ConfigError, FileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    if config.logging.file:
        setup_logging(level=log_level, log_file=config.logging.file, console_output=args.verbose > 0)

    try:
        return run_command(args, config)
    except ValidationError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1
    except ValueError as e:
        # Bad month/year or a malformed store/budget entry
        console.print(f"[red]Error: {e}[/red]")
        logger.debug("Command failed", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
