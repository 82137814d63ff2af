from __future__ import annotations

from datetime import date, datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_booking_today(today: date | datetime | None = None) -> date:
    """
    Return the calendar date booking windows are anchored to.

    Accepts an explicit override (tests, "what would a client see on ...")
    and strips any time of day so callers can pass a datetime.
    """
    if today is None:
        return date.today()
    if isinstance(today, datetime):
        return today.date()
    return today
