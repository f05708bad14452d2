"""Pure aggregations over a transaction snapshot.

Every function here is total: it accepts whatever the caller's store handed
over (see :mod:`ledger_analytics.snapshot`), never mutates it, and returns
zero-valued records for empty or unusable input. Amounts are summed as exact
``Decimal`` values; rounding to cents happens once, when a record is built.

Sign convention: positive amounts are income, negative amounts are spending.
Spending is always reported as a magnitude.
"""

from __future__ import annotations

import calendar
import math
from collections.abc import Iterable
from datetime import UTC, date, datetime, timedelta, tzinfo
from decimal import Decimal
from typing import Any

from .colors import INCOME_COLOR, SPENDING_COLOR, CategoryColorAssigner
from .dates import end_of_day, local_date, start_of_day
from .models import (
    AccountAnalytics,
    CategorySpending,
    CategoryTrendBucket,
    ChartRow,
    IncomeVsSpending,
    MonthlySpending,
    Period,
    QuickAnalytics,
    TimeRange,
    Transaction,
    TrendPoint,
)
from .money import ZERO, quantize, to_money
from .snapshot import as_list, coerce_accounts, coerce_transaction, coerce_transactions
from .timeranges import filter_by_range, parse_time_range, window_start

_ONE_DAY = timedelta(days=1)
_HUNDRED = Decimal(100)

# Trend bucket layout per range: (period unit, number of periods).
_TREND_LAYOUT: dict[TimeRange, tuple[str, int]] = {
    TimeRange.WEEK: ("day", 7),
    TimeRange.MONTH: ("week", 4),
    TimeRange.QUARTER: ("month", 3),
    TimeRange.YEAR: ("month", 12),
}
_DEFAULT_TREND_LAYOUT = ("month", 6)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def income_and_spending(txs: Iterable[Transaction]) -> tuple[Decimal, Decimal]:
    """Return ``(income, spending)`` as unrounded magnitudes."""

    income = ZERO
    spending = ZERO
    for tx in txs:
        if tx.amount > 0:
            income += tx.amount
        elif tx.amount < 0:
            spending += -tx.amount
    return income, spending


def _spending_by_category_raw(txs: Iterable[Transaction]) -> dict[str, Decimal]:
    totals: dict[str, Decimal] = {}
    for tx in txs:
        if tx.amount < 0:
            totals[tx.category] = totals.get(tx.category, ZERO) - tx.amount
    return totals


def _percentage(part: Decimal, whole: Decimal) -> float:
    if whole <= 0:
        return 0.0
    return float(quantize(part / whole * _HUNDRED))


def _category_rows(
    totals: dict[str, Decimal], colors: CategoryColorAssigner
) -> list[CategorySpending]:
    grand_total = sum(totals.values(), ZERO)
    # Sort on exact sums; ties keep first-seen order.
    ordered = sorted(totals.items(), key=lambda kv: kv[1], reverse=True)
    return [
        CategorySpending(
            category=category,
            amount=to_money(amount),
            color=colors.color_for(category),
            percentage=_percentage(amount, grand_total),
        )
        for category, amount in ordered
    ]


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _in_period(tx: Transaction, period: Period, tz: tzinfo) -> bool:
    if tx.date is None:
        return False
    if period.daily:
        # Same calendar day in the engine's timezone; avoids double counting at
        # day boundaries when the source timestamps carry another offset.
        return local_date(tx.date, tz) == period.start.date()
    return period.start <= tx.date <= period.end


# ---------------------------------------------------------------------------
# Breakdown and totals
# ---------------------------------------------------------------------------


def spending_by_category(
    transactions: Any, colors: CategoryColorAssigner
) -> list[CategorySpending]:
    """Spending magnitude per category, largest first.

    Categories are exact strings (``"Food"`` and ``"food"`` are distinct);
    missing categories count as ``"Uncategorized"``.
    """

    txs = coerce_transactions(transactions)
    return _category_rows(_spending_by_category_raw(txs), colors)


def income_vs_spending(transactions: Any) -> IncomeVsSpending:
    income, spending = income_and_spending(coerce_transactions(transactions))
    income_m, spending_m = to_money(income), to_money(spending)
    return IncomeVsSpending(
        income=income_m,
        spending=spending_m,
        net=to_money(income - spending),
        data=(
            ChartRow(name="Income", amount=income_m, color=INCOME_COLOR),
            ChartRow(name="Spending", amount=spending_m, color=SPENDING_COLOR),
        ),
    )


def quick_analytics(transactions: Any) -> QuickAnalytics:
    txs = coerce_transactions(transactions)
    income, spending = income_and_spending(txs)
    return QuickAnalytics(
        transaction_count=len(txs),
        income=to_money(income),
        spending=to_money(spending),
        net_savings=to_money(income - spending),
    )


def monthly_spending(transactions: Any, *, tz: tzinfo = UTC) -> list[MonthlySpending]:
    """Group by calendar month (in ``tz``), oldest month first."""

    buckets: dict[str, list[Decimal]] = {}
    labels: dict[str, str] = {}
    for tx in coerce_transactions(transactions):
        day = None if tx.date is None else local_date(tx.date, tz)
        if day is None:
            continue
        key = f"{day.year:04d}-{day.month:02d}"
        acc = buckets.setdefault(key, [ZERO, ZERO, ZERO])
        labels.setdefault(key, day.strftime("%b"))
        if tx.amount < 0:
            acc[0] += -tx.amount
        else:
            acc[1] += tx.amount
        acc[2] += tx.amount

    return [
        MonthlySpending(
            key=key,
            month=labels[key],
            spending=to_money(spending),
            income=to_money(income),
            net=to_money(net),
        )
        for key, (spending, income, net) in sorted(buckets.items())
    ]


def net_worth(transactions: Any, accounts: Any = None) -> Decimal:
    """All-time sum of transaction amounts plus every account balance as stored.

    No per-type sign handling: liabilities are expected to carry negative
    balances already.
    """

    tx_total = sum((tx.amount for tx in coerce_transactions(transactions)), ZERO)
    balance_total = sum((a.balance for a in coerce_accounts(accounts)), ZERO)
    return to_money(tx_total + balance_total)


# ---------------------------------------------------------------------------
# Trend series
# ---------------------------------------------------------------------------


def build_periods(
    time_range: TimeRange | str | None, *, now: datetime, tz: tzinfo = UTC
) -> list[Period]:
    """Contiguous buckets covering the trailing window, oldest first.

    week → 7 days, month → 4 seven-day weeks, quarter → 3 calendar months,
    year → 12 calendar months, anything else → 6 calendar months. The last
    bucket always contains ``now``.
    """

    unit, count = _TREND_LAYOUT.get(parse_time_range(time_range), _DEFAULT_TREND_LAYOUT)
    today = local_date(now, tz) or now.date()
    periods: list[Period] = []

    if unit == "day":
        for offset in range(count - 1, -1, -1):
            day = today - offset * _ONE_DAY
            periods.append(
                Period(
                    label=day.strftime("%b %d"),
                    start=start_of_day(day, tz),
                    end=end_of_day(day, tz),
                    daily=True,
                )
            )
    elif unit == "week":
        for offset in range(count - 1, -1, -1):
            last = today - 7 * offset * _ONE_DAY
            first = last - 6 * _ONE_DAY
            periods.append(
                Period(
                    label=f"{first:%b %d} - {last:%b %d}",
                    start=start_of_day(first, tz),
                    end=end_of_day(last, tz),
                )
            )
    else:
        for offset in range(count - 1, -1, -1):
            year, month = _shift_month(today.year, today.month, -offset)
            first = date(year, month, 1)
            last = date(year, month, calendar.monthrange(year, month)[1])
            periods.append(
                Period(
                    label=first.strftime("%b %Y"),
                    start=start_of_day(first, tz),
                    end=end_of_day(last, tz),
                )
            )
    return periods


def _partition(
    txs: list[Transaction], periods: list[Period], tz: tzinfo
) -> list[list[Transaction]]:
    buckets: list[list[Transaction]] = [[] for _ in periods]
    for tx in txs:
        for i, period in enumerate(periods):
            if _in_period(tx, period, tz):
                buckets[i].append(tx)
                break
    return buckets


def spending_trends(
    transactions: Any,
    time_range: TimeRange | str | None,
    *,
    now: datetime,
    tz: tzinfo = UTC,
) -> list[TrendPoint]:
    periods = build_periods(time_range, now=now, tz=tz)
    buckets = _partition(coerce_transactions(transactions), periods, tz)
    points: list[TrendPoint] = []
    for period, bucket in zip(periods, buckets, strict=True):
        income, spending = income_and_spending(bucket)
        points.append(
            TrendPoint(
                period=period.label,
                spending=to_money(spending),
                income=to_money(income),
                net=to_money(income - spending),
            )
        )
    return points


def spending_trends_by_category(
    transactions: Any,
    time_range: TimeRange | str | None,
    colors: CategoryColorAssigner,
    *,
    now: datetime,
    tz: tzinfo = UTC,
) -> list[CategoryTrendBucket]:
    periods = build_periods(time_range, now=now, tz=tz)
    buckets = _partition(coerce_transactions(transactions), periods, tz)
    out: list[CategoryTrendBucket] = []
    for period, bucket in zip(periods, buckets, strict=True):
        totals = _spending_by_category_raw(bucket)
        out.append(
            CategoryTrendBucket(
                period=period.label,
                categories=tuple(_category_rows(totals, colors)),
                total_spending=to_money(sum(totals.values(), ZERO)),
            )
        )
    return out


# ---------------------------------------------------------------------------
# Range-aware helpers
# ---------------------------------------------------------------------------


def top_spending_categories(
    transactions: Any,
    time_range: TimeRange | str | None,
    colors: CategoryColorAssigner,
    *,
    now: datetime,
    limit: int = 5,
) -> list[CategorySpending]:
    rows = spending_by_category(filter_by_range(transactions, time_range, now=now), colors)
    return rows[: max(limit, 0)]


def average_daily_spending(
    transactions: Any, time_range: TimeRange | str | None, *, now: datetime
) -> Decimal:
    """Spending in the window divided by the window's length in days.

    For bounded ranges the length is the rolling window (7/30/90/365 days).
    For ``ALL`` it runs from the oldest dated transaction to ``now``. Returns
    zero when the window has no length.
    """

    resolved = parse_time_range(time_range)
    return average_daily_spending_in_window(
        filter_by_range(transactions, resolved, now=now), resolved, now=now
    )


def average_daily_spending_in_window(
    window: Any, time_range: TimeRange | str | None, *, now: datetime
) -> Decimal:
    """Like :func:`average_daily_spending` for a snapshot that is already filtered."""

    txs = coerce_transactions(window)
    start = window_start(parse_time_range(time_range), now)
    if start is None:
        dated = [tx.date for tx in txs if tx.date is not None]
        start = min(dated) if dated else None
    if start is None:
        return to_money(ZERO)

    days = math.ceil((now - start) / _ONE_DAY)
    if days <= 0:
        return to_money(ZERO)
    _, spending = income_and_spending(txs)
    return to_money(spending / days)


def account_transactions(transactions: Any, account_id: Any) -> list[Any]:
    """The caller's records that belong to ``account_id``, in input order."""

    out: list[Any] = []
    for record in as_list(transactions):
        tx = coerce_transaction(record)
        if tx is not None and tx.account_id == account_id:
            out.append(record)
    return out


def account_analytics(
    transactions: Any,
    account_id: Any,
    time_range: TimeRange | str | None,
    colors: CategoryColorAssigner,
    *,
    now: datetime,
) -> AccountAnalytics:
    """Income, spending and category breakdown for one account within the window."""

    own = account_transactions(transactions, account_id)
    txs = coerce_transactions(filter_by_range(own, time_range, now=now))
    income, spending = income_and_spending(txs)
    return AccountAnalytics(
        account_id=account_id,
        income=to_money(income),
        spending=to_money(spending),
        net=to_money(income - spending),
        transaction_count=len(txs),
        category_breakdown=tuple(_category_rows(_spending_by_category_raw(txs), colors)),
    )
