"""
Time helpers.

All timestamps produced by the pipeline are timezone-aware UTC.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def expiry_after(created_at: datetime, days: int) -> datetime:
    """Return ``created_at + days``.

    Raises:
        ValueError: If ``days`` is negative.
    """
    if days < 0:
        raise ValueError(f"days must be >= 0, got {days}.")
    return created_at + timedelta(days=days)


def age_in_days(then: datetime, now: datetime | None = None) -> int:
    """Whole days elapsed between ``then`` and ``now`` (never negative)."""
    now = now or utcnow()
    return max(0, (now - then).days)
