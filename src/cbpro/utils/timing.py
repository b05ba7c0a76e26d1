"""Timestamp utilities."""

import time
from datetime import datetime


def get_timestamp_seconds() -> int:
    """Get current Unix timestamp in seconds (for request signing)."""
    return int(time.time())


def get_monotonic() -> float:
    """Monotonic clock in seconds, used for request spacing."""
    return time.monotonic()


def parse_iso_timestamp(value: str | None) -> datetime | None:
    """Parse an exchange ISO-8601 timestamp such as '2022-03-01T17:50:06.65121Z'."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        # Python < 3.11 rejects fractional seconds that are not 3 or 6 digits
        head, _, frac = value.rstrip("Z").partition(".")
        frac = (frac + "000000")[:6]
        return datetime.fromisoformat(f"{head}.{frac}+00:00")
