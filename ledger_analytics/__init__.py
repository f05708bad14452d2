"""Public interface for the ``ledger_analytics`` package.

This module re-exports the engine, its collaborators, and the public models
as the stable import surface. There is no runtime logic here, only symbol
re-exports.
"""

from .cache import AnalyticsCache, CacheStats, build_cache_key
from .colors import CATEGORY_PALETTE, CategoryColorAssigner
from .engine import AnalyticsEngine
from .fingerprint import EMPTY_FINGERPRINT, compute_accounts_fingerprint, compute_fingerprint
from .models import (
    UNCATEGORIZED,
    WINDOW_DAYS,
    Account,
    AccountAnalytics,
    AccountType,
    AllAnalytics,
    CacheEntry,
    CategorySpending,
    CategoryTrendBucket,
    ChartRow,
    IncomeVsSpending,
    MonthlySpending,
    Period,
    QuickAnalytics,
    TimeRange,
    Transaction,
    TransactionLike,
    Transactions,
    TrendPoint,
    TrendSummary,
)
from .timeranges import filter_by_range, parse_time_range, previous_window_transactions
from .trends import trend_percent

__all__ = [
    # Engine and collaborators
    "AnalyticsEngine",
    "AnalyticsCache",
    "CacheStats",
    "CategoryColorAssigner",
    "CATEGORY_PALETTE",
    "build_cache_key",
    "compute_fingerprint",
    "compute_accounts_fingerprint",
    "EMPTY_FINGERPRINT",
    # Windows and trends
    "filter_by_range",
    "parse_time_range",
    "previous_window_transactions",
    "trend_percent",
    # Models / types
    "Account",
    "AccountAnalytics",
    "AccountType",
    "AllAnalytics",
    "CacheEntry",
    "CategorySpending",
    "CategoryTrendBucket",
    "ChartRow",
    "IncomeVsSpending",
    "MonthlySpending",
    "Period",
    "QuickAnalytics",
    "TimeRange",
    "Transaction",
    "TransactionLike",
    "Transactions",
    "TrendPoint",
    "TrendSummary",
    "UNCATEGORIZED",
    "WINDOW_DAYS",
]
