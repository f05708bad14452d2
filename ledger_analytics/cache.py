"""In-memory memoizing cache for derived analytics.

Results are keyed on ``<operation>_<range>_<scope>_<fingerprint>`` where the
fingerprint is computed from the transaction snapshot the caller passes in
(see :mod:`ledger_analytics.fingerprint`). An entry is served only while it is
younger than the TTL and its stored fingerprint still equals the caller's
current one; anything else (expired, mismatched, missing, or not a
``CacheEntry`` at all) is treated as a miss and recomputed.

Entry lifecycle: absent → valid (first compute) → stale (TTL elapsed or
fingerprint mismatch) → valid again after recompute. :meth:`AnalyticsCache.clear`
drops every entry; the ledger's store calls it after any import, edit or delete.

Concurrent misses on the same key are coalesced: one caller runs the compute
function and the others wait for its value.
"""

from __future__ import annotations

import os
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from .fingerprint import compute_fingerprint
from .logging_setup import get_logger
from .models import CacheEntry, TimeRange

T = TypeVar("T")

DEFAULT_TTL_SECONDS: float = 120.0
_TTL_ENV_VAR = "LEDGER_ANALYTICS_CACHE_TTL"

_logger = get_logger("ledger_analytics.cache")


def _default_ttl() -> float:
    """Return the TTL from ``LEDGER_ANALYTICS_CACHE_TTL`` or the 120 s default."""

    raw = os.getenv(_TTL_ENV_VAR)
    if raw and raw.strip():
        try:
            ttl = float(raw)
        except ValueError:
            _logger.warning("cache:ignoring invalid %s=%r", _TTL_ENV_VAR, raw)
            return DEFAULT_TTL_SECONDS
        if ttl > 0:
            return ttl
        _logger.warning("cache:ignoring non-positive %s=%r", _TTL_ENV_VAR, raw)
    return DEFAULT_TTL_SECONDS


def build_cache_key(
    operation: str,
    time_range: TimeRange | str = TimeRange.ALL,
    account_scope: Any = None,
) -> str:
    """Operation key: ``<operation>_<range>_<account scope or "all">``."""

    range_part = time_range.value if isinstance(time_range, TimeRange) else str(time_range)
    scope = "all" if account_scope is None else str(account_scope)
    return f"{operation}_{range_part}_{scope}"


@dataclass(slots=True)
class _Flight:
    done: threading.Event = field(default_factory=threading.Event)
    value: Any = None
    ok: bool = False


@dataclass(frozen=True, slots=True)
class CacheStats:
    hits: int
    misses: int
    entries: int


class AnalyticsCache:
    """TTL + fingerprint validated memo table.

    Parameters
    ----------
    ttl_seconds:
        Entry lifetime. ``None`` reads ``LEDGER_ANALYTICS_CACHE_TTL`` and
        otherwise uses 120 seconds.
    clock:
        Monotonic seconds source; injectable for tests.
    """

    def __init__(
        self,
        ttl_seconds: float | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        ttl = _default_ttl() if ttl_seconds is None else float(ttl_seconds)
        if ttl <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, Any] = {}
        self._inflight: dict[str, _Flight] = {}
        self._generation = 0
        self._hits = 0
        self._misses = 0

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def _is_valid(self, entry: Any, fingerprint: str, now: float) -> bool:
        if not isinstance(entry, CacheEntry):
            return False
        return entry.fingerprint == fingerprint and (now - entry.created_at) < self._ttl

    def _sweep_expired(self, now: float) -> None:
        stale = [
            k
            for k, e in self._entries.items()
            if not isinstance(e, CacheEntry) or (now - e.created_at) >= self._ttl
        ]
        for k in stale:
            del self._entries[k]

    def get_or_compute(
        self,
        op_key: str,
        compute_fn: Callable[[], T],
        transactions: Any,
    ) -> T:
        """Return the cached value for ``op_key`` over ``transactions``, computing on miss.

        ``compute_fn`` is called at most once per valid entry. If it raises, the
        exception propagates and nothing is stored.
        """

        fingerprint = compute_fingerprint(transactions)
        full_key = f"{op_key}_{fingerprint}"

        while True:
            with self._lock:
                entry = self._entries.get(full_key)
                if self._is_valid(entry, fingerprint, self._clock()):
                    self._hits += 1
                    _logger.debug("cache:hit key=%s", full_key)
                    return entry.value
                flight = self._inflight.get(full_key)
                leader = flight is None
                if leader:
                    flight = _Flight()
                    self._inflight[full_key] = flight
                    self._misses += 1
                    generation = self._generation
            if leader:
                break
            # Another caller is computing this key; reuse its result.
            flight.done.wait()
            if flight.ok:
                return flight.value
            # The leader failed; loop and try again (possibly as the new leader).

        _logger.debug("cache:miss key=%s", full_key)
        try:
            value = compute_fn()
        except BaseException:
            with self._lock:
                if self._inflight.get(full_key) is flight:
                    del self._inflight[full_key]
            flight.done.set()
            raise

        with self._lock:
            # A clear() issued while computing invalidates this result.
            if generation == self._generation:
                now = self._clock()
                self._sweep_expired(now)
                self._entries[full_key] = CacheEntry(
                    key=full_key, value=value, created_at=now, fingerprint=fingerprint
                )
            if self._inflight.get(full_key) is flight:
                del self._inflight[full_key]
        flight.value = value
        flight.ok = True
        flight.done.set()
        return value

    def clear(self) -> None:
        """Drop every entry unconditionally."""

        with self._lock:
            dropped = len(self._entries)
            self._entries.clear()
            self._inflight.clear()
            self._generation += 1
        _logger.debug("cache:clear dropped=%d", dropped)

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(hits=self._hits, misses=self._misses, entries=len(self._entries))

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, full_key: object) -> bool:
        with self._lock:
            return full_key in self._entries
