"""Cached analytics over a ledger snapshot.

:class:`AnalyticsEngine` is the public operation surface. It owns (or is
given) an :class:`~ledger_analytics.cache.AnalyticsCache`, a
:class:`~ledger_analytics.colors.CategoryColorAssigner`, a clock, and the
timezone used for calendar bucketing. Nothing is module-global: two engines
never share state, which keeps test runs independent.

Every aggregation method takes the caller's snapshot and an optional
``time_range`` (default ``"all"``). With ``"all"`` the snapshot is used as
given, so callers that already filtered can pass it straight in; with any
other range the snapshot is filtered first. Results are memoized under
``<operation>_<range>_<scope>_<fingerprint of the snapshot used>``.

The store that owns the ledger must call :meth:`AnalyticsEngine.clear_cache`
after any import, edit, or delete and before the next aggregation call.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, tzinfo
from decimal import Decimal
from typing import Any, TypeVar

from . import aggregations as agg
from . import trends
from .cache import AnalyticsCache, build_cache_key
from .colors import CategoryColorAssigner
from .fingerprint import compute_accounts_fingerprint
from .logging_setup import get_logger, log_elapsed
from .models import (
    AccountAnalytics,
    AllAnalytics,
    CategorySpending,
    CategoryTrendBucket,
    IncomeVsSpending,
    MonthlySpending,
    QuickAnalytics,
    TimeRange,
    TrendPoint,
)
from .snapshot import as_list
from .timeranges import filter_by_range, parse_time_range

T = TypeVar("T")

DEFAULT_TOP_CATEGORIES = 5

_logger = get_logger("ledger_analytics.engine")


def _utc_now() -> datetime:
    return datetime.now(UTC)


class AnalyticsEngine:
    """Memoizing front end to the pure aggregations.

    Parameters
    ----------
    cache:
        Memo table; a fresh :class:`AnalyticsCache` when omitted.
    colors:
        Category color assigner; a fresh one when omitted.
    clock:
        Returns "now" as a ``datetime`` (naive values are taken as UTC).
    tz:
        Timezone for calendar bucketing (month keys, daily trend buckets).
    """

    def __init__(
        self,
        *,
        cache: AnalyticsCache | None = None,
        colors: CategoryColorAssigner | None = None,
        clock: Callable[[], datetime] | None = None,
        tz: tzinfo = UTC,
    ) -> None:
        self._cache = cache if cache is not None else AnalyticsCache()
        self._colors = colors if colors is not None else CategoryColorAssigner()
        self._clock = clock or _utc_now
        self._tz = tz

    @property
    def cache(self) -> AnalyticsCache:
        return self._cache

    @property
    def colors(self) -> CategoryColorAssigner:
        return self._colors

    @property
    def tz(self) -> tzinfo:
        return self._tz

    def now(self) -> datetime:
        current = self._clock()
        return current.replace(tzinfo=UTC) if current.tzinfo is None else current

    # ------------------------------------------------------------------
    # Cache plumbing
    # ------------------------------------------------------------------

    def _cached(
        self,
        operation: str,
        time_range: TimeRange,
        snapshot: Any,
        compute: Callable[[], T],
        *,
        scope: Any = None,
    ) -> T:
        key = build_cache_key(operation, time_range, scope)
        return self._cache.get_or_compute(key, compute, snapshot)

    def _window(self, transactions: Any, time_range: TimeRange) -> list[Any]:
        return filter_by_range(transactions, time_range, now=self.now())

    def clear_cache(self) -> None:
        """Forget every memoized result (call on any ledger mutation)."""

        self._cache.clear()

    def force_refresh(self) -> None:
        """Alias of :meth:`clear_cache`."""

        self.clear_cache()

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------

    def filter_by_range(self, transactions: Any, time_range: TimeRange | str | None) -> list[Any]:
        return self._window(transactions, parse_time_range(time_range))

    # ------------------------------------------------------------------
    # Aggregations
    # ------------------------------------------------------------------

    def calculate_net_worth(self, transactions: Any, accounts: Any = None) -> Decimal:
        """All-time transaction total plus account balances (never range-filtered)."""

        transactions, accounts = as_list(transactions), as_list(accounts)
        return self._cached(
            "netWorth",
            TimeRange.ALL,
            transactions,
            lambda: agg.net_worth(transactions, accounts),
            scope=f"accounts-{compute_accounts_fingerprint(accounts)}",
        )

    def calculate_spending_by_category(
        self, transactions: Any, time_range: TimeRange | str | None = TimeRange.ALL
    ) -> list[CategorySpending]:
        rng = parse_time_range(time_range)
        window = self._window(transactions, rng)
        rows = self._cached(
            "spendingByCategory",
            rng,
            window,
            lambda: tuple(agg.spending_by_category(window, self._colors)),
        )
        return list(rows)

    def calculate_income_vs_spending(
        self, transactions: Any, time_range: TimeRange | str | None = TimeRange.ALL
    ) -> IncomeVsSpending:
        rng = parse_time_range(time_range)
        window = self._window(transactions, rng)
        return self._cached(
            "incomeVsSpending", rng, window, lambda: agg.income_vs_spending(window)
        )

    def calculate_monthly_spending(
        self, transactions: Any, time_range: TimeRange | str | None = TimeRange.ALL
    ) -> list[MonthlySpending]:
        rng = parse_time_range(time_range)
        window = self._window(transactions, rng)
        rows = self._cached(
            "monthlySpending",
            rng,
            window,
            lambda: tuple(agg.monthly_spending(window, tz=self._tz)),
        )
        return list(rows)

    def calculate_spending_trends(
        self, transactions: Any, time_range: TimeRange | str | None = TimeRange.ALL
    ) -> list[TrendPoint]:
        rng = parse_time_range(time_range)
        window = self._window(transactions, rng)
        now = self.now()
        rows = self._cached(
            "spendingTrends",
            rng,
            window,
            lambda: tuple(agg.spending_trends(window, rng, now=now, tz=self._tz)),
        )
        return list(rows)

    def calculate_spending_trends_by_category(
        self, transactions: Any, time_range: TimeRange | str | None = TimeRange.ALL
    ) -> list[CategoryTrendBucket]:
        rng = parse_time_range(time_range)
        window = self._window(transactions, rng)
        now = self.now()
        rows = self._cached(
            "spendingTrendsByCategory",
            rng,
            window,
            lambda: tuple(
                agg.spending_trends_by_category(window, rng, self._colors, now=now, tz=self._tz)
            ),
        )
        return list(rows)

    def calculate_quick_analytics(
        self, transactions: Any, time_range: TimeRange | str | None = TimeRange.ALL
    ) -> QuickAnalytics:
        rng = parse_time_range(time_range)
        window = self._window(transactions, rng)
        return self._cached("quickAnalytics", rng, window, lambda: agg.quick_analytics(window))

    def get_top_spending_categories(
        self,
        transactions: Any,
        time_range: TimeRange | str | None = TimeRange.MONTH,
        limit: int = DEFAULT_TOP_CATEGORIES,
    ) -> list[CategorySpending]:
        rng = parse_time_range(time_range)
        transactions = as_list(transactions)
        now = self.now()
        window = filter_by_range(transactions, rng, now=now)
        rows = self._cached(
            "topSpendingCategories",
            rng,
            window,
            lambda: tuple(
                agg.top_spending_categories(transactions, rng, self._colors, now=now, limit=limit)
            ),
            scope=f"top{limit}",
        )
        return list(rows)

    def calculate_average_daily_spending(
        self, transactions: Any, time_range: TimeRange | str | None = TimeRange.MONTH
    ) -> Decimal:
        rng = parse_time_range(time_range)
        transactions = as_list(transactions)
        now = self.now()
        window = filter_by_range(transactions, rng, now=now)
        return self._cached(
            "avgDailySpending",
            rng,
            window,
            lambda: agg.average_daily_spending(transactions, rng, now=now),
        )

    def calculate_account_analytics(
        self,
        transactions: Any,
        account_id: Any,
        time_range: TimeRange | str | None = TimeRange.MONTH,
    ) -> AccountAnalytics:
        """Per-account figures, cached on the account's own window.

        Moving a transaction between accounts changes that window, so the
        result refreshes without a ``clear_cache``.
        """

        rng = parse_time_range(time_range)
        now = self.now()
        window = filter_by_range(agg.account_transactions(transactions, account_id), rng, now=now)
        return self._cached(
            "accountAnalytics",
            rng,
            window,
            lambda: agg.account_analytics(window, account_id, rng, self._colors, now=now),
            scope=account_id,
        )

    # ------------------------------------------------------------------
    # Period-over-period trends (always over the full ledger)
    # ------------------------------------------------------------------

    def _trend(
        self,
        operation: str,
        transactions: Any,
        time_range: TimeRange | str | None,
        fn: Callable[..., float],
    ) -> float:
        transactions = as_list(transactions)
        rng = parse_time_range(time_range)
        now = self.now()
        return self._cached(operation, rng, transactions, lambda: fn(transactions, rng, now=now))

    def calculate_income_trend(
        self, transactions: Any, time_range: TimeRange | str | None = TimeRange.MONTH
    ) -> float:
        return self._trend("incomeTrend", transactions, time_range, trends.income_trend)

    def calculate_spending_trend(
        self, transactions: Any, time_range: TimeRange | str | None = TimeRange.MONTH
    ) -> float:
        return self._trend("spendingTrend", transactions, time_range, trends.spending_trend)

    def calculate_savings_trend(
        self, transactions: Any, time_range: TimeRange | str | None = TimeRange.MONTH
    ) -> float:
        return self._trend("savingsTrend", transactions, time_range, trends.savings_trend)

    def calculate_net_worth_trend(
        self,
        transactions: Any,
        time_range: TimeRange | str | None = TimeRange.MONTH,
        accounts: Any = None,
    ) -> float:
        rng = parse_time_range(time_range)
        now = self.now()
        transactions, accounts = as_list(transactions), as_list(accounts)
        return self._cached(
            "netWorthTrend",
            rng,
            transactions,
            lambda: trends.net_worth_trend(transactions, rng, now=now, accounts=accounts),
            scope=f"accounts-{compute_accounts_fingerprint(accounts)}",
        )

    # ------------------------------------------------------------------
    # Batch orchestration
    # ------------------------------------------------------------------

    def calculate_all_analytics(
        self,
        transactions: Any,
        time_range: TimeRange | str | None = TimeRange.ALL,
        accounts: Any = None,
    ) -> AllAnalytics:
        """Filter once, then run every aggregation against that one snapshot.

        Period-over-period trends and net worth use the unfiltered ledger,
        since they need history outside the window.
        """

        rng = parse_time_range(time_range)
        with log_elapsed(_logger, "all_analytics:done", range=rng.value):
            return self._all_analytics(as_list(transactions), rng, as_list(accounts))

    def _all_analytics(
        self, transactions: list[Any], rng: TimeRange, accounts: list[Any]
    ) -> AllAnalytics:
        now = self.now()
        window = filter_by_range(transactions, rng, now=now)

        def cached(operation: str, compute: Callable[[], T]) -> T:
            return self._cached(operation, rng, window, compute)

        by_category = cached(
            "spendingByCategory", lambda: tuple(agg.spending_by_category(window, self._colors))
        )
        income_vs_spending = cached("incomeVsSpending", lambda: agg.income_vs_spending(window))
        monthly = cached(
            "monthlySpending", lambda: tuple(agg.monthly_spending(window, tz=self._tz))
        )
        trend_points = cached(
            "spendingTrends",
            lambda: tuple(agg.spending_trends(window, rng, now=now, tz=self._tz)),
        )
        trend_by_category = cached(
            "spendingTrendsByCategory",
            lambda: tuple(
                agg.spending_trends_by_category(window, rng, self._colors, now=now, tz=self._tz)
            ),
        )
        quick = cached("quickAnalytics", lambda: agg.quick_analytics(window))
        avg_daily = cached(
            "avgDailySpending",
            lambda: agg.average_daily_spending_in_window(window, rng, now=now),
        )

        return AllAnalytics(
            time_range=rng,
            transaction_count=len(window),
            spending_by_category=by_category,
            income_vs_spending=income_vs_spending,
            monthly_spending=monthly,
            spending_trends=trend_points,
            spending_trends_by_category=trend_by_category,
            quick_analytics=quick,
            top_categories=by_category[:DEFAULT_TOP_CATEGORIES],
            average_daily_spending=avg_daily,
            net_worth=self.calculate_net_worth(transactions, accounts),
            trends=self._cached(
                "trendSummary",
                rng,
                transactions,
                lambda: trends.trend_summary(transactions, rng, now=now, accounts=accounts),
                scope=f"accounts-{compute_accounts_fingerprint(accounts)}",
            ),
        )
