from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from booking.calendar_window import utcnow
from booking.errors import AlreadyCancelled, NotFound
from booking.notification_service import add_client_notification, add_trainer_notification
from booking.store import store_guard
from models.client import Client
from models.scheduling import Booking, BookingStatus

log = logging.getLogger(__name__)


def _notify_other_party(session: Session, booking: Booking, *, by_trainer: bool) -> None:
    when = f"{booking.booking_date:%a %b %d} at {booking.start_time:%H:%M}"
    if not by_trainer:
        client = session.get(Client, booking.client_id)
        who = client.full_name if client else "A client"
        add_trainer_notification(
            session,
            booking.trainer_id,
            f"{who} cancelled the session on {when}",
            booking_id=booking.booking_id,
        )
    else:
        add_client_notification(
            session,
            booking.client_id,
            f"Your session on {when} was cancelled by your trainer",
            booking_id=booking.booking_id,
        )


def cancel_booking(
    session: Session,
    *,
    booking_id: int,
    cancelled_by: int,
    reason: Optional[str] = None,
    by_trainer: bool = False,
    now: Optional[datetime] = None,
) -> Booking:
    """
    Move a booking to ``cancelled`` and record who did it and when.

    The availability slot is left alone; the freed occurrence reappears in
    listings because cancelled rows no longer count as conflicts. A second
    cancel raises ``AlreadyCancelled`` without touching the row.
    ``by_trainer`` only decides who gets notified.
    """
    with store_guard(session, "cancel booking"):
        booking = session.get(Booking, booking_id)
        if booking is None:
            raise NotFound("Booking not found")
        if booking.is_cancelled:
            raise AlreadyCancelled()

        booking.status = BookingStatus.CANCELLED.value
        booking.cancelled_at = now or utcnow()
        booking.cancelled_by = cancelled_by
        booking.cancellation_reason = reason
        _notify_other_party(session, booking, by_trainer=by_trainer)
        session.commit()
        session.refresh(booking)

    log.info("Cancelled %s (by %s)", booking, cancelled_by)
    return booking
