"""Pytest configuration and shared fixtures.

The engine reads optional configuration from the environment
(``LEDGER_ANALYTICS_CACHE_TTL``, ``LEDGER_ANALYTICS_LOG_LEVEL``). A developer
shell or a local ``.env`` could leak values into the test process, so an
autouse fixture clears them for every test.

Dates in the shared scenario are pinned against a fixed "now" of
2025-08-03T12:00 UTC.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import pytest

from ledger_analytics import AnalyticsCache, AnalyticsEngine
from tests.helpers.clock import FakeClock

NOW = datetime(2025, 8, 3, 12, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("LEDGER_ANALYTICS_CACHE_TTL", "LEDGER_ANALYTICS_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def engine(fake_clock: FakeClock) -> AnalyticsEngine:
    return AnalyticsEngine(cache=AnalyticsCache(clock=fake_clock), clock=lambda: NOW)


@pytest.fixture
def sample_transactions() -> list[dict[str, Any]]:
    return [
        {
            "id": 1,
            "description": "Grocery Shopping",
            "amount": -150.0,
            "category": "Food & Dining",
            "date": datetime(2025, 8, 1, 10, 0, tzinfo=UTC),
            "accountId": 1,
        },
        {
            "id": 2,
            "description": "Salary",
            "amount": 5000.0,
            "category": "Income",
            "date": datetime(2025, 8, 2, 9, 0, tzinfo=UTC),
            "accountId": 1,
        },
        {
            "id": 3,
            "description": "Gas Station",
            "amount": -45.0,
            "category": "Transportation",
            "date": datetime(2025, 7, 15, 14, 0, tzinfo=UTC),
            "accountId": 2,
        },
        {
            "id": 4,
            "description": "Restaurant",
            "amount": -85.0,
            "category": "Food & Dining",
            "date": datetime(2025, 7, 20, 19, 0, tzinfo=UTC),
            "accountId": 1,
        },
        {
            "id": 5,
            "description": "Movie Tickets",
            "amount": -25.0,
            "category": "Entertainment",
            "date": datetime(2025, 3, 15, 20, 0, tzinfo=UTC),
            "accountId": 2,
        },
        {
            "id": 6,
            "description": "Old Transaction",
            "amount": -100.0,
            "category": "Shopping",
            "date": datetime(2024, 12, 15, 12, 0, tzinfo=UTC),
            "accountId": 1,
        },
    ]

