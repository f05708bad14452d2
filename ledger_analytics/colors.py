"""Stable category → color assignment for charts."""

from __future__ import annotations

import hashlib
import threading
from collections.abc import Sequence

# Fixed 12-color palette shared by every chart.
CATEGORY_PALETTE: tuple[str, ...] = (
    "#3B82F6",
    "#EF4444",
    "#10B981",
    "#F59E0B",
    "#8B5CF6",
    "#EC4899",
    "#06B6D4",
    "#84CC16",
    "#F97316",
    "#6366F1",
    "#14B8A6",
    "#A855F7",
)

INCOME_COLOR = "#10B981"
SPENDING_COLOR = "#EF4444"


def _stable_hash(label: str) -> int:
    # Python's built-in ``hash`` is salted per process; use a content digest so
    # the same label maps to the same slot across runs.
    digest = hashlib.sha256(label.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big")


class CategoryColorAssigner:
    """Remember the first color handed out for each category.

    Owned by the caller (usually one per :class:`~ledger_analytics.engine.AnalyticsEngine`);
    once a category has a color it keeps it for the life of the instance,
    whichever chart asked first.
    """

    def __init__(self, palette: Sequence[str] = CATEGORY_PALETTE) -> None:
        if not palette:
            raise ValueError("palette must contain at least one color")
        self._palette = tuple(palette)
        self._assigned: dict[str, str] = {}
        self._lock = threading.Lock()

    @property
    def palette(self) -> tuple[str, ...]:
        return self._palette

    def color_for(self, category: str) -> str:
        with self._lock:
            color = self._assigned.get(category)
            if color is None:
                color = self._palette[_stable_hash(category) % len(self._palette)]
                self._assigned[category] = color
            return color

    def assignments(self) -> dict[str, str]:
        """Snapshot of the categories seen so far."""

        with self._lock:
            return dict(self._assigned)

    def __len__(self) -> int:
        return len(self._assigned)
