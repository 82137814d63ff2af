from __future__ import annotations

from datetime import date, datetime, timedelta

from booking.config import Config
from models.scheduling import AvailabilitySlot

DEFAULT_HORIZON = Config.DEFAULT_HORIZON


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def expand(
    slot: AvailabilitySlot,
    start: date | datetime,
    count: int = DEFAULT_HORIZON,
) -> list[date]:
    """
    Concrete calendar dates on which ``slot`` next occurs, on or after ``start``.

    One-off slots yield their date (or nothing once it has passed). Recurring
    slots yield the next ``count`` dates whose weekday matches, so ``start``
    itself counts when it falls on the slot's day. Time of day is ignored:
    a slot whose start time already passed today is still returned.
    """
    start = _as_date(start)

    if not slot.is_recurring:
        if slot.specific_date is not None and slot.specific_date >= start:
            return [slot.specific_date]
        return []

    if count <= 0:
        return []

    # Jump straight to the first matching weekday, then step a week at a time
    offset = (slot.day_of_week - start.weekday()) % 7
    first = start + timedelta(days=offset)
    return [first + timedelta(weeks=i) for i in range(count)]


def next_occurrence(slot: AvailabilitySlot, start: date | datetime) -> date | None:
    dates = expand(slot, start, count=1)
    return dates[0] if dates else None


def occurs_on(slot: AvailabilitySlot, day: date) -> bool:
    """True if ``day`` is one of the slot's occurrences (ignoring how far out it is)."""
    if slot.is_recurring:
        return day.weekday() == slot.day_of_week
    return day == slot.specific_date
