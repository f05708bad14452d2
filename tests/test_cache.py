from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from ledger_analytics import AnalyticsCache, TimeRange, build_cache_key, compute_fingerprint
from ledger_analytics.cache import DEFAULT_TTL_SECONDS
from tests.helpers.clock import FakeClock
from tests.helpers.counters import CountingCompute, failing_compute

OP = build_cache_key("spendingByCategory", TimeRange.MONTH)


@pytest.fixture
def cache(fake_clock: FakeClock) -> AnalyticsCache:
    return AnalyticsCache(clock=fake_clock)


def test_build_cache_key_includes_range_and_scope():
    assert build_cache_key("spendingByCategory", TimeRange.MONTH) == "spendingByCategory_month_all"
    assert build_cache_key("accountAnalytics", "week", 7) == "accountAnalytics_week_7"
    assert build_cache_key("x", TimeRange.WEEK) != build_cache_key("x", TimeRange.MONTH)


def test_hit_before_ttl_computes_once(cache, fake_clock, sample_transactions):
    compute = CountingCompute({"total": 1})
    first = cache.get_or_compute(OP, compute, sample_transactions)
    fake_clock.advance(DEFAULT_TTL_SECONDS - 1)
    second = cache.get_or_compute(OP, compute, sample_transactions)
    assert first == second == {"total": 1}
    assert second is first
    assert compute.calls == 1
    assert cache.stats().hits == 1
    assert cache.stats().misses == 1


def test_entry_is_stored_under_fingerprinted_key(cache, sample_transactions):
    cache.get_or_compute(OP, CountingCompute(), sample_transactions)
    assert f"{OP}_{compute_fingerprint(sample_transactions)}" in cache
    assert len(cache) == 1


def test_expired_entry_is_recomputed(cache, fake_clock, sample_transactions):
    compute = CountingCompute()
    cache.get_or_compute(OP, compute, sample_transactions)
    fake_clock.advance(DEFAULT_TTL_SECONDS)
    cache.get_or_compute(OP, compute, sample_transactions)
    assert compute.calls == 2


def test_changed_ledger_is_recomputed(cache, sample_transactions):
    compute = CountingCompute()
    cache.get_or_compute(OP, compute, sample_transactions)
    edited = [dict(t) for t in sample_transactions]
    edited[2]["amount"] = -46.0
    cache.get_or_compute(OP, compute, edited)
    assert compute.calls == 2


def test_clear_forces_recompute_within_ttl(cache, sample_transactions):
    compute = CountingCompute()
    cache.get_or_compute(OP, compute, sample_transactions)
    cache.clear()
    assert len(cache) == 0
    cache.get_or_compute(OP, compute, sample_transactions)
    assert compute.calls == 2


def test_different_keys_do_not_collide(cache, sample_transactions):
    week = CountingCompute("week")
    month = CountingCompute("month")
    assert cache.get_or_compute("op_week_all", week, sample_transactions) == "week"
    assert cache.get_or_compute("op_month_all", month, sample_transactions) == "month"
    assert (week.calls, month.calls) == (1, 1)


def test_corrupt_entry_is_a_miss(cache, sample_transactions):
    full_key = f"{OP}_{compute_fingerprint(sample_transactions)}"
    cache._entries[full_key] = "half-written"
    compute = CountingCompute("fresh")
    assert cache.get_or_compute(OP, compute, sample_transactions) == "fresh"
    assert compute.calls == 1


def test_compute_error_propagates_and_is_not_cached(cache, sample_transactions):
    with pytest.raises(RuntimeError, match="boom"):
        cache.get_or_compute(OP, failing_compute(RuntimeError("boom")), sample_transactions)
    assert len(cache) == 0
    compute = CountingCompute("ok")
    assert cache.get_or_compute(OP, compute, sample_transactions) == "ok"


def test_clear_during_compute_discards_result(cache, sample_transactions):
    def compute():
        cache.clear()
        return "stale"

    assert cache.get_or_compute(OP, compute, sample_transactions) == "stale"
    assert len(cache) == 0


def test_empty_and_non_list_snapshots_are_cacheable(cache):
    compute = CountingCompute(0)
    cache.get_or_compute(OP, compute, [])
    cache.get_or_compute(OP, compute, None)
    assert compute.calls == 1


def test_concurrent_misses_are_coalesced(sample_transactions):
    cache = AnalyticsCache()
    compute = CountingCompute("shared", delay=0.05)
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(
            pool.map(lambda _: cache.get_or_compute(OP, compute, sample_transactions), range(8))
        )
    assert results == ["shared"] * 8
    assert compute.calls == 1


# ---- Configuration ----------------------------------------------------------------


def test_default_ttl():
    assert AnalyticsCache().ttl_seconds == 120


def test_ttl_from_environment(monkeypatch):
    monkeypatch.setenv("LEDGER_ANALYTICS_CACHE_TTL", "5")
    assert AnalyticsCache().ttl_seconds == 5


@pytest.mark.parametrize("raw", ["abc", "0", "-3"])
def test_invalid_ttl_environment_falls_back(monkeypatch, raw):
    monkeypatch.setenv("LEDGER_ANALYTICS_CACHE_TTL", raw)
    assert AnalyticsCache().ttl_seconds == DEFAULT_TTL_SECONDS


def test_non_positive_ttl_argument_rejected():
    with pytest.raises(ValueError):
        AnalyticsCache(ttl_seconds=0)
