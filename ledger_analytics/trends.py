"""Period-over-period comparison of headline metrics.

The current window is the rolling window ending "now"; the previous window is
the equally long window immediately before it (``[now - 2L, now - L)``). Both
are cut from the full, unfiltered ledger.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from typing import Any

from .aggregations import income_and_spending, net_worth
from .models import TimeRange, TrendSummary
from .money import ZERO, quantize, to_decimal
from .snapshot import coerce_transactions
from .timeranges import filter_by_range, previous_window_transactions

_HUNDRED = Decimal(100)

type Metric = Callable[[list[Any]], Decimal]


def _as_decimal(value: Any) -> Decimal:
    # Metric sums may exceed the per-amount input bound; only raw input is coerced.
    if isinstance(value, Decimal) and value.is_finite():
        return value
    return to_decimal(value) or ZERO


def trend_percent(current: Any, previous: Any) -> float:
    """Percentage change from ``previous`` to ``current``, rounded to 2 dp.

    With no baseline (``previous == 0``) the change is 100 when ``current`` is
    positive and 0 otherwise. The change is relative to the signed baseline,
    so moving from -60 to -30 reports -50.
    """

    cur = _as_decimal(current)
    prev = _as_decimal(previous)
    if prev == 0:
        return 100.0 if cur > 0 else 0.0
    return float(quantize((cur - prev) / prev * _HUNDRED))


def _income(txs: list[Any]) -> Decimal:
    return income_and_spending(coerce_transactions(txs))[0]


def _spending(txs: list[Any]) -> Decimal:
    return income_and_spending(coerce_transactions(txs))[1]


def _savings(txs: list[Any]) -> Decimal:
    income, spending = income_and_spending(coerce_transactions(txs))
    return income - spending


def compare_windows(
    transactions: Any,
    time_range: TimeRange | str | None,
    metric: Metric,
    *,
    now: datetime,
) -> float:
    """Apply ``metric`` to the current and previous windows and compare them."""

    current = metric(filter_by_range(transactions, time_range, now=now))
    previous = metric(previous_window_transactions(transactions, time_range, now=now))
    return trend_percent(current, previous)


def income_trend(transactions: Any, time_range: TimeRange | str | None, *, now: datetime) -> float:
    return compare_windows(transactions, time_range, _income, now=now)


def spending_trend(
    transactions: Any, time_range: TimeRange | str | None, *, now: datetime
) -> float:
    return compare_windows(transactions, time_range, _spending, now=now)


def savings_trend(transactions: Any, time_range: TimeRange | str | None, *, now: datetime) -> float:
    return compare_windows(transactions, time_range, _savings, now=now)


def net_worth_trend(
    transactions: Any,
    time_range: TimeRange | str | None,
    *,
    now: datetime,
    accounts: Any = None,
) -> float:
    """Net-worth contribution of each window, with account balances added to both sides."""

    return compare_windows(
        transactions, time_range, lambda txs: net_worth(txs, accounts), now=now
    )


def trend_summary(
    transactions: Any,
    time_range: TimeRange | str | None,
    *,
    now: datetime,
    accounts: Any = None,
) -> TrendSummary:
    return TrendSummary(
        net_worth=net_worth_trend(transactions, time_range, now=now, accounts=accounts),
        income=income_trend(transactions, time_range, now=now),
        spending=spending_trend(transactions, time_range, now=now),
        savings=savings_trend(transactions, time_range, now=now),
    )
