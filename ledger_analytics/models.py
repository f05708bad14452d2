"""Data models and type aliases for ``ledger_analytics``.

Inputs (transactions and accounts) are pydantic models with lenient
before-validators: the analytics engine is total, so malformed fields degrade
to neutral values instead of raising. Outputs are frozen dataclasses holding
``Decimal`` money already rounded to cents.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .dates import parse_datetime
from .money import ZERO, to_decimal

UNCATEGORIZED = "Uncategorized"


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class TimeRange(StrEnum):
    """Rolling trailing windows ending "now" (not calendar-aligned)."""

    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"
    ALL = "all"


# Window length in days for each bounded range; ``ALL`` has no window.
WINDOW_DAYS: Mapping[TimeRange, int] = {
    TimeRange.WEEK: 7,
    TimeRange.MONTH: 30,
    TimeRange.QUARTER: 90,
    TimeRange.YEAR: 365,
}


class AccountType(StrEnum):
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT = "credit"
    INVESTMENT = "investment"
    LOAN = "loan"
    OTHER = "other"


# ---------------------------------------------------------------------------
# Input records
# ---------------------------------------------------------------------------


class Transaction(BaseModel):
    """A single ledger entry as seen by the analytics engine.

    ``amount`` is signed: positive is income, negative is spending. ``date`` is
    ``None`` when the source value could not be parsed; such transactions are
    excluded from every date-dependent calculation. Unknown source fields
    (description, merchant, ...) are preserved as extras.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    id: Any = None
    date: datetime | None = None
    amount: Decimal = ZERO
    category: str = UNCATEGORIZED
    account_id: Any = Field(default=None, alias="accountId")

    @field_validator("date", mode="before")
    @classmethod
    def _normalize_date(cls, v: Any) -> datetime | None:
        return parse_datetime(v)

    @field_validator("amount", mode="before")
    @classmethod
    def _lenient_amount(cls, v: Any) -> Decimal:
        d = to_decimal(v)
        return ZERO if d is None else d

    @field_validator("category", mode="before")
    @classmethod
    def _default_category(cls, v: Any) -> str:
        if v is None:
            return UNCATEGORIZED
        s = v if isinstance(v, str) else str(v)
        # Case and inner spacing are significant: "Food" and "food" differ.
        return s if s.strip() else UNCATEGORIZED


class Account(BaseModel):
    """An account snapshot. ``balance`` is summed as stored, whatever the type."""

    model_config = ConfigDict(frozen=True, extra="allow")

    id: Any = None
    type: AccountType = AccountType.OTHER
    balance: Decimal = ZERO

    @field_validator("type", mode="before")
    @classmethod
    def _tolerate_type(cls, v: Any) -> AccountType:
        try:
            return AccountType(str(v).strip().lower())
        except ValueError:
            return AccountType.OTHER

    @field_validator("balance", mode="before")
    @classmethod
    def _lenient_balance(cls, v: Any) -> Decimal:
        d = to_decimal(v)
        return ZERO if d is None else d


type TransactionLike = Transaction | Mapping[str, Any]
"""Anything the engine accepts as a transaction (model, mapping, or attribute object)."""

type Transactions = Iterable[TransactionLike]


# ---------------------------------------------------------------------------
# Output records
# ---------------------------------------------------------------------------


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, StrEnum):
        return value.value
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_jsonable(v) for v in value]
    return value


class _Record:
    __slots__ = ()

    def to_dict(self) -> dict[str, Any]:
        """Plain JSON-friendly mapping; ``Decimal`` money becomes ``float``."""

        return _jsonable(dataclasses.asdict(self))  # type: ignore[call-overload]


@dataclass(frozen=True, slots=True)
class CategorySpending(_Record):
    category: str
    amount: Decimal
    color: str
    percentage: float = 0.0


@dataclass(frozen=True, slots=True)
class ChartRow(_Record):
    name: str
    amount: Decimal
    color: str


@dataclass(frozen=True, slots=True)
class IncomeVsSpending(_Record):
    income: Decimal
    spending: Decimal
    net: Decimal
    data: tuple[ChartRow, ...] = ()


@dataclass(frozen=True, slots=True)
class MonthlySpending(_Record):
    """Totals for one calendar month; ``key`` is ``YYYY-MM`` and sorts chronologically."""

    key: str
    month: str
    spending: Decimal
    income: Decimal
    net: Decimal


@dataclass(frozen=True, slots=True)
class Period:
    """One bucket of a trend series.

    ``daily`` buckets match transactions by calendar day; the others by the
    inclusive ``[start, end]`` interval.
    """

    label: str
    start: datetime
    end: datetime
    daily: bool = False


@dataclass(frozen=True, slots=True)
class TrendPoint(_Record):
    period: str
    spending: Decimal
    income: Decimal
    net: Decimal


@dataclass(frozen=True, slots=True)
class CategoryTrendBucket(_Record):
    period: str
    categories: tuple[CategorySpending, ...]
    total_spending: Decimal


@dataclass(frozen=True, slots=True)
class QuickAnalytics(_Record):
    transaction_count: int
    income: Decimal
    spending: Decimal
    net_savings: Decimal


@dataclass(frozen=True, slots=True)
class AccountAnalytics(_Record):
    account_id: Any
    income: Decimal
    spending: Decimal
    net: Decimal
    transaction_count: int
    category_breakdown: tuple[CategorySpending, ...]


@dataclass(frozen=True, slots=True)
class TrendSummary(_Record):
    """Period-over-period percentage changes."""

    net_worth: float
    income: float
    spending: float
    savings: float


@dataclass(frozen=True, slots=True)
class AllAnalytics(_Record):
    """Everything a dashboard needs for one range, computed off one filtered snapshot."""

    time_range: TimeRange
    transaction_count: int
    spending_by_category: tuple[CategorySpending, ...]
    income_vs_spending: IncomeVsSpending
    monthly_spending: tuple[MonthlySpending, ...]
    spending_trends: tuple[TrendPoint, ...]
    spending_trends_by_category: tuple[CategoryTrendBucket, ...]
    quick_analytics: QuickAnalytics
    top_categories: tuple[CategorySpending, ...]
    average_daily_spending: Decimal
    net_worth: Decimal
    trends: TrendSummary


# ---------------------------------------------------------------------------
# Cache entry
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """A memoized result; valid while fresh and while its fingerprint still matches."""

    key: str
    value: Any
    created_at: float
    fingerprint: str
