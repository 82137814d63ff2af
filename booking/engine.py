from __future__ import annotations

import logging
from datetime import date, datetime
from typing import NamedTuple, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from booking.calendar_window import get_booking_today
from booking.conflicts import find_conflict, has_conflict
from booking.errors import InvalidDate, NotFound, OwnerMismatch, SlotUnavailable
from booking.notification_service import add_trainer_notification
from booking.recurrence import DEFAULT_HORIZON, expand, occurs_on
from booking.store import store_guard, trainer_lock
from models.client import Client
from models.scheduling import (
    ACTIVE_STATUSES,
    DAY_NAMES,
    AvailabilitySlot,
    Booking,
    BookingStatus,
    Trainer,
)

log = logging.getLogger(__name__)


class Occurrence(NamedTuple):
    slot: AvailabilitySlot
    date: date


def _active_slots(session: Session, trainer_id: int) -> list[AvailabilitySlot]:
    stmt = (
        select(AvailabilitySlot)
        .where(
            AvailabilitySlot.trainer_id == trainer_id,
            AvailabilitySlot.is_active.is_(True),
        )
        .order_by(AvailabilitySlot.start_time, AvailabilitySlot.slot_id)
    )
    return list(session.scalars(stmt))


def _live_bookings(session: Session, *, first: date, last: date, **owner) -> list[Booking]:
    stmt = select(Booking).where(
        Booking.status.in_(ACTIVE_STATUSES),
        Booking.booking_date >= first,
        Booking.booking_date <= last,
    )
    for column, value in owner.items():
        stmt = stmt.where(getattr(Booking, column) == value)
    return list(session.scalars(stmt))


# ---------------------------
# 1. Available occurrences
# ---------------------------

def list_available_occurrences(
    session: Session,
    *,
    trainer_id: int,
    client_id: Optional[int] = None,
    horizon: int = DEFAULT_HORIZON,
    today: date | datetime | None = None,
) -> list[Occurrence]:
    """
    Bookable (slot, date) pairs for a trainer, soonest first.

    Every active slot is expanded ``horizon`` occurrences ahead of ``today``
    and candidates overlapping a live booking of the trainer are dropped.
    With ``client_id`` the client's own live bookings (with any trainer) are
    subtracted too. Availability is re-derived from current booking rows on
    every call, so a cancellation shows up on the next listing.
    """
    today = get_booking_today(today)

    with store_guard(session, "list available occurrences"):
        slots = _active_slots(session, trainer_id)
        candidates = [
            Occurrence(slot, day)
            for slot in slots
            for day in expand(slot, today, horizon)
        ]
        if not candidates:
            return []

        first = min(c.date for c in candidates)
        last = max(c.date for c in candidates)
        taken = _live_bookings(session, first=first, last=last, trainer_id=trainer_id)
        own = (
            _live_bookings(session, first=first, last=last, client_id=client_id)
            if client_id is not None
            else []
        )

    available = [
        occ
        for occ in candidates
        if find_conflict(taken, occ.date, occ.slot.start_time, occ.slot.end_time) is None
        and find_conflict(own, occ.date, occ.slot.start_time, occ.slot.end_time) is None
    ]
    available.sort(key=lambda occ: (occ.date, occ.slot.start_time, occ.slot.slot_id))
    return available


# ---------------------------
# 2. Book a slot occurrence
# ---------------------------

def _validate_booking_date(slot: AvailabilitySlot, booking_date: date, today: date) -> None:
    if booking_date < today:
        raise InvalidDate("Cannot book a session in the past")
    if not occurs_on(slot, booking_date):
        if slot.is_recurring:
            raise InvalidDate(
                f"{booking_date.isoformat()} is not a {DAY_NAMES[slot.day_of_week]} "
                "for this recurring slot"
            )
        raise InvalidDate(
            f"This slot is only available on {slot.specific_date.isoformat()}"
        )


def book_slot(
    session: Session,
    *,
    trainer_id: int,
    client_id: int,
    slot_id: int,
    booking_date: date | datetime,
    client_notes: Optional[str] = None,
    today: date | datetime | None = None,
) -> Booking:
    """
    Reserve one occurrence of ``slot_id`` for ``client_id``.

    The conflict check and the insert run under the trainer's lock, and a
    unique-constraint violation at commit is reported exactly like a conflict
    found by the check: ``SlotUnavailable``.
    """
    today = get_booking_today(today)
    booking_date = get_booking_today(booking_date)

    with store_guard(session, "book slot"):
        slot = session.get(AvailabilitySlot, slot_id)
        if slot is None:
            raise NotFound("Availability slot not found")
        if slot.trainer_id != trainer_id:
            raise OwnerMismatch("Slot belongs to a different trainer")
        if not slot.is_active:
            raise SlotUnavailable("This availability slot is no longer offered")
        if session.get(Client, client_id) is None:
            raise NotFound("Client not found")

        _validate_booking_date(slot, booking_date, today)

        with trainer_lock(trainer_id):
            if has_conflict(session, trainer_id, booking_date, slot.start_time, slot.end_time):
                log.info(
                    "Rejected booking for trainer %s on %s at %s: slot taken",
                    trainer_id, booking_date, slot.start_time,
                )
                raise SlotUnavailable()

            booking = Booking(
                trainer_id=trainer_id,
                client_id=client_id,
                slot_id=slot.slot_id,
                booking_date=booking_date,
                start_time=slot.start_time,
                end_time=slot.end_time,
                duration_minutes=slot.duration_minutes,
                status=BookingStatus.CONFIRMED.value,
                client_notes=client_notes,
            )
            session.add(booking)
            try:
                session.flush()
                add_trainer_notification(
                    session,
                    trainer_id,
                    f"New session booked for {booking_date:%a %b %d} at {slot.start_time:%H:%M}",
                    booking_id=booking.booking_id,
                )
                session.commit()
            except IntegrityError:
                session.rollback()
                log.info(
                    "Rejected booking for trainer %s on %s at %s: constraint violation",
                    trainer_id, booking_date, slot.start_time,
                )
                raise SlotUnavailable()

        session.refresh(booking)

    log.info(
        "Booked %s for client %s (slot %s)", booking, client_id, slot_id,
    )
    return booking


# ---------------------------
# 3. Booking lists
# ---------------------------

def list_client_bookings(
    session: Session,
    client_id: int,
    *,
    today: date | datetime | None = None,
    include_cancelled: bool = False,
) -> list[Booking]:
    """Upcoming bookings for a client, ordered by date then start time."""
    today = get_booking_today(today)
    stmt = select(Booking).where(
        Booking.client_id == client_id,
        Booking.booking_date >= today,
    )
    if not include_cancelled:
        stmt = stmt.where(Booking.status.in_(ACTIVE_STATUSES))
    stmt = stmt.order_by(Booking.booking_date, Booking.start_time)
    with store_guard(session, "list client bookings"):
        return list(session.scalars(stmt))


def list_trainer_bookings(
    session: Session,
    trainer_id: int,
    *,
    start: Optional[date] = None,
    end: Optional[date] = None,
    include_cancelled: bool = True,
) -> list[Booking]:
    """
    All bookings on a trainer's calendar between ``start`` and ``end``
    (inclusive, either may be omitted). Cancelled rows are kept by default
    since trainers see the cancellation history.
    """
    with store_guard(session, "list trainer bookings"):
        if session.get(Trainer, trainer_id) is None:
            raise NotFound("Trainer not found")

        stmt = select(Booking).where(Booking.trainer_id == trainer_id)
        if start is not None:
            stmt = stmt.where(Booking.booking_date >= start)
        if end is not None:
            stmt = stmt.where(Booking.booking_date <= end)
        if not include_cancelled:
            stmt = stmt.where(Booking.status.in_(ACTIVE_STATUSES))
        stmt = stmt.order_by(Booking.booking_date, Booking.start_time)
        return list(session.scalars(stmt))
