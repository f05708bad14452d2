"""Call-counting compute functions for observing cache hits and misses."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Any


class CountingCompute:
    """Callable returning ``value`` and recording how often it ran.

    ``delay`` (seconds) widens the window in which concurrent callers overlap.
    """

    def __init__(self, value: Any = "result", *, delay: float = 0.0) -> None:
        self.value = value
        self.delay = delay
        self.calls = 0
        self._lock = threading.Lock()

    def __call__(self) -> Any:
        with self._lock:
            self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        return self.value


def failing_compute(exc: BaseException) -> Callable[[], Any]:
    def compute() -> Any:
        raise exc

    return compute
