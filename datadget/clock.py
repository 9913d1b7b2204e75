"""Millisecond epoch helpers shared by the history and analytics code."""

import time
from datetime import datetime, timezone

MS_PER_HOUR = 60 * 60 * 1000
MS_PER_DAY = 24 * MS_PER_HOUR


def now_ms() -> int:
    return int(time.time() * 1000)


def to_iso(timestamp_ms: int) -> str:
    """ISO-8601 UTC rendering of an epoch-millisecond timestamp."""
    dt = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def hours_ago(hours: float, now: int | None = None) -> int:
    now = now_ms() if now is None else now
    return int(now - hours * MS_PER_HOUR)
