"""Timestamp conversion: filesystem stat times -> millisecond integers -> ISO strings."""

from __future__ import annotations

from datetime import datetime, timezone

import pendulum

# Output format matches JavaScript's Date.toISOString(): YYYY-MM-DDTHH:MM:SS.mmmZ
ISO_SECONDS_FORMAT = "%Y-%m-%dT%H:%M:%S"


def to_millis(stat_seconds: float) -> int:
    """Convert a stat timestamp in (fractional) seconds to integer milliseconds.

    Truncates toward negative infinity so the value is stable across runs for
    the same on-disk mtime.
    """
    return int(stat_seconds * 1000 // 1)


def ns_to_millis(stat_ns: int) -> int:
    """Convert a nanosecond stat timestamp to integer milliseconds without float rounding."""
    return stat_ns // 1_000_000


def format_iso_millis(millis: int) -> str:
    """Format epoch milliseconds as a UTC ISO 8601 string with millisecond precision."""
    seconds, remainder = divmod(millis, 1000)
    dt = pendulum.from_timestamp(seconds, tz="UTC")
    return f"{dt.strftime(ISO_SECONDS_FORMAT)}.{remainder:03d}Z"


def now_utc() -> datetime:
    """Return the current UTC datetime."""
    return datetime.now(timezone.utc)
