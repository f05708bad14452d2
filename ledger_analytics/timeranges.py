"""Rolling time windows: range parsing, filtering, and the previous window.

Each bounded range is a trailing window of fixed length ending at "now"
(week = 7 days, month = 30, quarter = 90, year = 365). They are not
calendar-aligned.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from .logging_setup import get_logger
from .models import WINDOW_DAYS, TimeRange
from .snapshot import as_list, coerce_transaction

_logger = get_logger("ledger_analytics.timeranges")


def parse_time_range(token: TimeRange | str | None, *, strict: bool = False) -> TimeRange:
    """Resolve ``token`` to a :class:`TimeRange`.

    ``None`` means ``ALL``. Unrecognized tokens fall back to ``ALL`` with a
    warning (fail-open keeps dashboards populated); pass ``strict=True`` to
    raise ``ValueError`` instead.
    """

    if isinstance(token, TimeRange):
        return token
    if token is None:
        return TimeRange.ALL
    try:
        return TimeRange(str(token).strip().lower())
    except ValueError:
        if strict:
            raise ValueError(
                f"Unknown time range {token!r}; expected one of "
                f"{', '.join(r.value for r in TimeRange)}"
            ) from None
        _logger.warning("time_range:unrecognized token=%r; falling back to 'all'", token)
        return TimeRange.ALL


def window_length(time_range: TimeRange) -> timedelta | None:
    days = WINDOW_DAYS.get(time_range)
    return None if days is None else timedelta(days=days)


def window_start(time_range: TimeRange, now: datetime) -> datetime | None:
    """Inclusive lower bound of the window ending at ``now``; ``None`` for ``ALL``."""

    length = window_length(time_range)
    return None if length is None else now - length


def _in_interval(record: Any, start: datetime, end: datetime, *, end_inclusive: bool) -> bool:
    tx = coerce_transaction(record)
    if tx is None:
        return False
    if tx.date is None:
        _logger.debug("filter:skip_transaction reason=undated id=%r", tx.id)
        return False
    if end_inclusive:
        return start <= tx.date <= end
    return start <= tx.date < end


def filter_by_range(
    transactions: Any, time_range: TimeRange | str | None, *, now: datetime
) -> list[Any]:
    """Return the transactions dated within the rolling window, in input order.

    The returned items are the caller's own objects, not copies. ``ALL`` (and
    any unrecognized token) returns every item unchanged. Transactions whose
    date cannot be parsed are excluded from bounded windows. Input that is not
    a collection yields ``[]``.
    """

    items = as_list(transactions)
    resolved = parse_time_range(time_range)
    start = window_start(resolved, now)
    if start is None:
        return list(items)

    kept = [t for t in items if _in_interval(t, start, now, end_inclusive=True)]
    _logger.debug(
        "filter:range=%s kept=%d of=%d", resolved.value, len(kept), len(items)
    )
    return kept


def previous_window_transactions(
    transactions: Any, time_range: TimeRange | str | None, *, now: datetime
) -> list[Any]:
    """Transactions in the comparable window just before the current one.

    For a window of length ``L`` ending at ``now`` this is ``[now - 2L, now - L)``.
    ``ALL`` has no previous window and yields ``[]``.
    """

    resolved = parse_time_range(time_range)
    length = window_length(resolved)
    if length is None:
        return []
    start, end = now - 2 * length, now - length
    return [
        t for t in as_list(transactions) if _in_interval(t, start, end, end_inclusive=False)
    ]
