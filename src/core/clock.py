"""Millisecond wall-clock helpers."""

import time
from collections.abc import Callable


Clock = Callable[[], int]


def now_ms() -> int:
    """Current time in milliseconds since the Unix epoch."""
    return time.time_ns() // 1_000_000
