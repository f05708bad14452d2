from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal

import pytest

from ledger_analytics import AnalyticsEngine, TimeRange, Transaction


@pytest.mark.parametrize(
    ("time_range", "count", "income", "spending", "net"),
    [
        ("week", 2, "5000.00", "150.00", "4850.00"),
        ("month", 4, "5000.00", "280.00", "4720.00"),
        ("year", 6, "5000.00", "405.00", "4595.00"),
    ],
)
def test_all_analytics_per_range(
    engine, sample_transactions, time_range, count, income, spending, net
):
    result = engine.calculate_all_analytics(sample_transactions, time_range)
    assert result.time_range == TimeRange(time_range)
    assert result.transaction_count == count
    assert result.quick_analytics.transaction_count == count
    assert result.income_vs_spending.income == Decimal(income)
    assert result.income_vs_spending.spending == Decimal(spending)
    assert result.income_vs_spending.net == Decimal(net)
    assert result.quick_analytics.net_savings == Decimal(net)


def test_all_analytics_is_internally_consistent(engine, sample_transactions):
    result = engine.calculate_all_analytics(sample_transactions, "year")
    assert sum(r.amount for r in result.spending_by_category) == result.income_vs_spending.spending
    assert result.top_categories == result.spending_by_category[:5]
    assert result.net_worth == Decimal("4595.00")
    assert len(result.spending_trends) == 12


def test_all_analytics_to_dict_is_json_serializable(engine, sample_transactions):
    payload = engine.calculate_all_analytics(sample_transactions, "week").to_dict()
    decoded = json.loads(json.dumps(payload))
    assert decoded["time_range"] == "week"
    assert decoded["quick_analytics"]["income"] == 5000.0
    assert decoded["income_vs_spending"]["data"][0]["name"] == "Income"


def test_all_analytics_on_empty_ledger(engine):
    result = engine.calculate_all_analytics([], "month")
    assert result.transaction_count == 0
    assert result.spending_by_category == ()
    assert result.average_daily_spending == Decimal("0.00")
    assert len(result.spending_trends) == 4


def test_repeated_calls_hit_the_cache(engine, sample_transactions):
    first = engine.calculate_spending_by_category(sample_transactions, "month")
    second = engine.calculate_spending_by_category(sample_transactions, "month")
    assert first == second
    stats = engine.cache.stats()
    assert (stats.hits, stats.misses) == (1, 1)


def test_returned_lists_are_caller_owned(engine, sample_transactions):
    rows = engine.calculate_spending_by_category(sample_transactions, "year")
    rows.clear()
    assert len(engine.calculate_spending_by_category(sample_transactions, "year")) == 4


def test_clear_cache_and_force_refresh_recompute(engine, sample_transactions):
    engine.calculate_quick_analytics(sample_transactions, "month")
    engine.clear_cache()
    engine.calculate_quick_analytics(sample_transactions, "month")
    engine.force_refresh()
    engine.calculate_quick_analytics(sample_transactions, "month")
    assert engine.cache.stats().misses == 3
    assert engine.cache.stats().hits == 0


def test_edit_is_visible_without_clear(engine, sample_transactions):
    before = engine.calculate_income_vs_spending(sample_transactions, "week")
    edited = [dict(t) for t in sample_transactions]
    edited[0]["amount"] = -200.0
    after = engine.calculate_income_vs_spending(edited, "week")
    assert before.spending == Decimal("150.00")
    assert after.spending == Decimal("200.00")


def test_ranges_are_cached_separately(engine, sample_transactions):
    week = engine.calculate_quick_analytics(sample_transactions, "week")
    month = engine.calculate_quick_analytics(sample_transactions, "month")
    assert week.transaction_count == 2
    assert month.transaction_count == 4


def test_default_range_is_all(engine, sample_transactions):
    assert engine.calculate_quick_analytics(sample_transactions).transaction_count == 6


def test_accounts_change_net_worth(engine, sample_transactions):
    assert engine.calculate_net_worth(sample_transactions) == Decimal("4595.00")
    accounts = [{"id": 1, "type": "checking", "balance": 1000}]
    assert engine.calculate_net_worth(sample_transactions, accounts) == Decimal("5595.00")
    accounts = [{"id": 1, "type": "checking", "balance": 500}]
    assert engine.calculate_net_worth(sample_transactions, accounts) == Decimal("5095.00")


def test_top_spending_categories(engine, sample_transactions):
    rows = engine.get_top_spending_categories(sample_transactions, "month", limit=1)
    assert [(r.category, r.amount) for r in rows] == [("Food & Dining", Decimal("235.00"))]
    assert len(engine.get_top_spending_categories(sample_transactions, "year")) == 4


def test_average_daily_spending(engine, sample_transactions):
    assert engine.calculate_average_daily_spending(sample_transactions) == Decimal("9.33")
    assert engine.calculate_average_daily_spending(sample_transactions, "week") == Decimal("21.43")


def test_account_analytics_scoped_by_account(engine, sample_transactions):
    one = engine.calculate_account_analytics(sample_transactions, 1, "year")
    two = engine.calculate_account_analytics(sample_transactions, 2, "year")
    assert one.spending == Decimal("335.00")
    assert one.income == Decimal("5000.00")
    assert two.spending == Decimal("70.00")


def test_trend_methods(engine, sample_transactions):
    assert engine.calculate_income_trend(sample_transactions) == 100.0
    assert engine.calculate_spending_trend(sample_transactions) == 100.0
    assert engine.calculate_savings_trend(sample_transactions) == 100.0
    assert engine.calculate_net_worth_trend(sample_transactions) == 100.0


def test_generators_are_accepted(engine, sample_transactions):
    result = engine.calculate_all_analytics((t for t in sample_transactions), "month")
    assert result.transaction_count == 4


def test_models_and_mappings_give_same_results(engine, sample_transactions):
    models = [Transaction.model_validate(t) for t in sample_transactions]
    assert engine.calculate_income_vs_spending(
        models, "year"
    ) == engine.calculate_income_vs_spending(sample_transactions, "year")


def test_colors_are_stable_across_calls(engine, sample_transactions):
    first = {r.category: r.color for r in engine.calculate_spending_by_category(sample_transactions)}
    engine.clear_cache()
    second = {r.category: r.color for r in engine.calculate_spending_by_category(sample_transactions)}
    assert first == second


def test_engines_do_not_share_state(sample_transactions):
    a, b = AnalyticsEngine(), AnalyticsEngine()
    a.calculate_quick_analytics(sample_transactions)
    assert len(a.cache) == 1
    assert len(b.cache) == 0


def test_naive_clock_is_treated_as_utc():
    engine = AnalyticsEngine(clock=lambda: datetime(2025, 8, 3, 12))
    assert engine.now().tzinfo is not None


def test_account_analytics_follows_moved_transactions(engine, sample_transactions):
    before_one = engine.calculate_account_analytics(sample_transactions, 1, "year")
    before_two = engine.calculate_account_analytics(sample_transactions, 2, "year")
    moved = [dict(t) for t in sample_transactions]
    moved[2]["accountId"] = 1
    after_one = engine.calculate_account_analytics(moved, 1, "year")
    after_two = engine.calculate_account_analytics(moved, 2, "year")
    assert (before_one.spending, after_one.spending) == (Decimal("335.00"), Decimal("380.00"))
    assert (before_two.spending, after_two.spending) == (Decimal("70.00"), Decimal("25.00"))


def test_top_categories_are_cached_per_limit(engine, sample_transactions):
    assert len(engine.get_top_spending_categories(sample_transactions, "year", limit=2)) == 2
    assert len(engine.get_top_spending_categories(sample_transactions, "year", limit=3)) == 3
    assert len(engine.get_top_spending_categories(sample_transactions, "year", limit=2)) == 2
    assert engine.cache.stats().hits == 1


def test_huge_amount_does_not_break_all_analytics(engine, sample_transactions):
    txs = [*sample_transactions, {"id": 7, "amount": "1e30", "date": "2025-08-02"}]
    result = engine.calculate_all_analytics(txs, "week")
    assert result.income_vs_spending.income == Decimal("5000.00")
    assert result.transaction_count == 3
