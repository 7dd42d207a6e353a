# src/campfire_stage/db/time.py
"""Time utilities for stored documents.

Timestamps are persisted as integer epoch milliseconds.
"""

import time

MILLIS_PER_MINUTE = 60_000


def now_millis() -> int:
    """Return the current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def minutes_ago(minutes: float, now: int | None = None) -> int:
    """Return the epoch millis timestamp ``minutes`` before ``now``."""
    base = now_millis() if now is None else now
    return base - int(minutes * MILLIS_PER_MINUTE)
