"""Date normalization for transaction timestamps.

Transactions arrive with dates as ISO strings, US-style statement dates,
native ``date``/``datetime`` values, or POSIX timestamps. Everything is
normalized to an aware UTC ``datetime``; values that cannot be interpreted
(including ones that fall outside the representable range once shifted to
UTC) normalize to ``None``.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, time, tzinfo
from typing import Any

# Statement exports that are not ISO-8601; a trailing time part is ignored.
_FALLBACK_FORMATS = ("%m/%d/%Y", "%m/%d/%y")


def _to_utc(moment: datetime) -> datetime | None:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    try:
        return moment.astimezone(UTC)
    except (OverflowError, ValueError):
        return None


def _parse_text(text: str) -> datetime | None:
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    first = text.split()[0]
    for fmt in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(first, fmt)
        except ValueError:
            continue
    return None


def parse_datetime(raw: Any) -> datetime | None:
    """Return an aware UTC ``datetime`` for ``raw`` or ``None`` if unparseable.

    - ``datetime``: naive values are taken as UTC.
    - ``date``: midnight UTC on that day.
    - ``int``/``float``: POSIX timestamp in seconds.
    - ``str``: ISO-8601 (``"2025-08-01"``, ``"2025-08-01T10:00:00Z"``,
      offsets), else ``MM/DD/YYYY`` or ``MM/DD/YY``. Surrounding whitespace is
      ignored.
    """

    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, datetime):
        return _to_utc(raw)
    if isinstance(raw, date):
        return datetime.combine(raw, time.min, tzinfo=UTC)
    if isinstance(raw, int | float):
        try:
            return datetime.fromtimestamp(raw, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        parsed = _parse_text(text)
        return None if parsed is None else _to_utc(parsed)
    return None


def local_date(moment: datetime, tz: tzinfo) -> date | None:
    """Calendar day of ``moment`` as observed in ``tz``; ``None`` if out of range there."""

    try:
        return moment.astimezone(tz).date()
    except (OverflowError, ValueError):
        return None


def start_of_day(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def end_of_day(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.max, tzinfo=tz)
