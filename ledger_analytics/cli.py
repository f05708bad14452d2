"""CLI for the ``ledger_analytics`` package.

A thin Typer wrapper that loads a ledger snapshot from a JSON file and prints
analytics computed by :class:`~ledger_analytics.engine.AnalyticsEngine`.
Environment variables (``LEDGER_ANALYTICS_LOG_LEVEL``,
``LEDGER_ANALYTICS_CACHE_TTL``) may come from a local ``.env`` loaded with
``python-dotenv`` before any command runs.

Snapshot file shape::

    {"transactions": [{"id": "t1", "date": "2025-08-01", "amount": -12.5,
                       "category": "Groceries", "accountId": "chk"}, ...],
     "accounts": [{"id": "chk", "type": "checking", "balance": 1200}, ...]}
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Annotated, Any

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .dates import parse_datetime
from .engine import DEFAULT_TOP_CATEGORIES, AnalyticsEngine
from .logging_setup import configure_logging, get_logger
from .models import TimeRange
from .timeranges import parse_time_range

_logger = get_logger("ledger_analytics.cli")


# ---- Small module-level helpers used by CLI commands -------------------------


def load_snapshot(path: Path) -> tuple[list[Any], list[Any]]:
    """Read ``{"transactions": [...], "accounts": [...]}`` from ``path``.

    A bare JSON list is accepted as a transactions-only snapshot. Raises
    ``ValueError`` for unreadable or malformed files.
    """

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise ValueError(f"cannot read snapshot {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ValueError(f"snapshot {path} is not valid JSON: {e}") from e

    if isinstance(payload, list):
        return payload, []
    if not isinstance(payload, dict):
        raise ValueError(f"snapshot {path} must be a JSON object or list")
    transactions = payload.get("transactions") or []
    accounts = payload.get("accounts") or []
    if not isinstance(transactions, list) or not isinstance(accounts, list):
        raise ValueError(f"snapshot {path}: 'transactions' and 'accounts' must be lists")
    return transactions, accounts


def _resolve_range(token: str) -> TimeRange:
    try:
        return parse_time_range(token, strict=True)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


def _make_engine(now: str | None) -> AnalyticsEngine:
    if now is None:
        return AnalyticsEngine()
    fixed = parse_datetime(now)
    if fixed is None:
        raise typer.BadParameter(f"--now must be an ISO-8601 timestamp, got {now!r}")

    def _fixed_clock() -> datetime:
        return fixed

    return AnalyticsEngine(clock=_fixed_clock)


def _load_or_exit(path: Path) -> tuple[list[Any], list[Any]]:
    try:
        return load_snapshot(path)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="Compute spending, income and trend analytics from a ledger snapshot (JSON).",
)

# Module-level option object shared by every command.
SNAPSHOT_OPTION: OptionInfo = typer.Option(
    ...,
    "--snapshot",
    help="Path to a JSON snapshot with 'transactions' and 'accounts' lists",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files itself
)


@app.command("summary")
def summary_cmd(
    snapshot: Annotated[Path, SNAPSHOT_OPTION],
    time_range: str = typer.Option(
        "month", "--range", help="One of: week, month, quarter, year, all"
    ),
    now: str | None = typer.Option(
        None, "--now", help="Pin 'now' to an ISO-8601 timestamp (default: current time)"
    ),
) -> None:
    """Print every analytic for the range as one JSON document."""

    rng = _resolve_range(time_range)
    engine = _make_engine(now)
    transactions, accounts = _load_or_exit(snapshot)
    result = engine.calculate_all_analytics(transactions, rng, accounts)
    _logger.info(
        "summary:range=%s transactions=%d window=%d",
        rng.value,
        len(transactions),
        result.transaction_count,
    )
    typer.echo(json.dumps(result.to_dict(), indent=2))


@app.command("top-categories")
def top_categories_cmd(
    snapshot: Annotated[Path, SNAPSHOT_OPTION],
    time_range: str = typer.Option(
        "month", "--range", help="One of: week, month, quarter, year, all"
    ),
    now: str | None = typer.Option(
        None, "--now", help="Pin 'now' to an ISO-8601 timestamp (default: current time)"
    ),
    limit: int = typer.Option(DEFAULT_TOP_CATEGORIES, min=1, help="Number of categories"),
) -> None:
    """Print ``<category>\\t<amount>`` for the largest spending categories."""

    rng = _resolve_range(time_range)
    engine = _make_engine(now)
    transactions, _ = _load_or_exit(snapshot)
    for row in engine.get_top_spending_categories(transactions, rng, limit):
        typer.echo(f"{row.category}\t{row.amount:.2f}")


@app.callback()
def _root() -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures package logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
