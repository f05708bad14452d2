"""Deterministic time sources for cache and engine tests."""

from __future__ import annotations


class FakeClock:
    """Monotonic seconds source that only moves when told to."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.t = start

    def __call__(self) -> float:
        return self.t

    def advance(self, seconds: float) -> None:
        self.t += seconds
