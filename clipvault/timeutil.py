"""Wall-clock helpers.

Timestamps are stored as naive UTC datetimes (SQLite has no timezone type),
so everything that compares against stored values goes through utc_now().
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Current UTC time as a naive datetime."""
    return datetime.now(UTC).replace(tzinfo=None)
