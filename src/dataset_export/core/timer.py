"""Wall-clock helpers. Export timestamps are stored as epoch milliseconds."""

import time
from collections.abc import Callable

Clock = Callable[[], int]


def current_time_ms() -> int:
    """Return the current time as integer milliseconds since the epoch."""
    return time.time_ns() // 1_000_000
