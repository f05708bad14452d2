from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest

from ledger_analytics import trend_percent
from ledger_analytics import trends


@pytest.mark.parametrize(
    ("current", "previous", "expected"),
    [
        (100, 50, 100.0),
        (50, 100, -50.0),
        (50, 0, 100.0),
        (0, 0, 0.0),
        (-5, 0, 0.0),
        (-30, -60, -50.0),
        ("10.5", "3", 250.0),
    ],
)
def test_trend_percent(current, previous, expected):
    assert trend_percent(current, previous) == expected


def test_trend_percent_rounds_to_two_places():
    assert trend_percent(1, 3) == -66.67


def test_spending_trend_compares_adjacent_windows(now):
    txs = [
        {"id": 1, "amount": -100, "date": now - timedelta(days=40)},
        {"id": 2, "amount": -150, "date": now - timedelta(days=5)},
    ]
    assert trends.spending_trend(txs, "month", now=now) == 50.0
    assert trends.income_trend(txs, "month", now=now) == 0.0


def test_month_summary_without_history(sample_transactions, now):
    summary = trends.trend_summary(sample_transactions, "month", now=now)
    assert summary.income == 100.0
    assert summary.spending == 100.0
    assert summary.savings == 100.0
    assert summary.net_worth == 100.0


def test_all_range_has_no_previous_window(sample_transactions, now):
    assert trends.spending_trend(sample_transactions, "all", now=now) == 100.0


def test_trend_percent_handles_large_ratios():
    assert trend_percent(Decimal("1e24"), "0.01") == pytest.approx(1e28)
