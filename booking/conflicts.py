from __future__ import annotations

from datetime import date, time
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from models.scheduling import ACTIVE_STATUSES, Booking


def intervals_overlap(start: time, end: time, other_start: time, other_end: time) -> bool:
    """Half-open overlap: [start, end) and [other_start, other_end). Abutting windows don't clash."""
    return start < other_end and other_start < end


def conflict_filter(
    trainer_id: int,
    booking_date: date,
    start_time: time,
    end_time: time,
    exclude_booking_id: Optional[int] = None,
):
    """WHERE clause matching live bookings of a trainer that overlap the window."""
    clauses = [
        Booking.trainer_id == trainer_id,
        Booking.booking_date == booking_date,
        Booking.status.in_(ACTIVE_STATUSES),
        Booking.start_time < end_time,
        Booking.end_time > start_time,
    ]
    if exclude_booking_id is not None:
        clauses.append(Booking.booking_id != exclude_booking_id)
    return clauses


def has_conflict(
    session: Session,
    trainer_id: int,
    booking_date: date,
    start_time: time,
    end_time: time,
    exclude_booking_id: Optional[int] = None,
) -> bool:
    """
    True if the trainer already has a pending/confirmed booking overlapping
    ``[start_time, end_time)`` on ``booking_date``. Read-only.
    """
    stmt = (
        select(Booking.booking_id)
        .where(*conflict_filter(trainer_id, booking_date, start_time, end_time, exclude_booking_id))
        .limit(1)
    )
    return session.scalars(stmt).first() is not None


def find_conflict(
    bookings: Iterable[Booking],
    booking_date: date,
    start_time: time,
    end_time: time,
    exclude_booking_id: Optional[int] = None,
) -> Booking | None:
    """
    Same rule as ``has_conflict`` but over bookings already fetched, so a
    listing can test many candidates against one query's worth of rows.
    """
    for booking in bookings:
        if booking.booking_id == exclude_booking_id and exclude_booking_id is not None:
            continue
        if not booking.is_active or booking.booking_date != booking_date:
            continue
        if intervals_overlap(start_time, end_time, booking.start_time, booking.end_time):
            return booking
    return None
