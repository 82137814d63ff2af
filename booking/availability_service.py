from __future__ import annotations

import logging
from datetime import date, time
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from booking.errors import InvalidSlot, NotFound, OwnerMismatch
from booking.store import store_guard
from models.scheduling import AvailabilitySlot, Trainer

log = logging.getLogger(__name__)


# ---------------------------
# 1. Set Availability
# ---------------------------

def create_availability_slot(
    session: Session,
    *,
    trainer_id: int,
    start: time,
    end: time,
    day_of_week: Optional[int] = None,
    specific_date: Optional[date] = None,
    duration_minutes: Optional[int] = None,
) -> AvailabilitySlot:
    """
    Define a new availability window for a trainer.

    Recurring weekly on ``day_of_week`` unless ``specific_date`` is given, in
    which case it is a one-off. Prevents overlapping active windows for the
    same trainer on the same weekday (recurring) or the same date (one-off).
    """
    if specific_date is not None:
        slot = AvailabilitySlot.one_off(
            trainer_id=trainer_id,
            specific_date=specific_date,
            start_time=start,
            end_time=end,
            duration_minutes=duration_minutes,
        )
    else:
        slot = AvailabilitySlot.recurring(
            trainer_id=trainer_id,
            day_of_week=day_of_week,
            start_time=start,
            end_time=end,
            duration_minutes=duration_minutes,
        )

    with store_guard(session, "create availability slot"):
        if not session.get(Trainer, trainer_id):
            raise NotFound("Trainer not found")

        # Check for overlapping availability with the same recurrence key
        overlap_stmt = select(AvailabilitySlot).where(
            AvailabilitySlot.trainer_id == trainer_id,
            AvailabilitySlot.is_active.is_(True),
            AvailabilitySlot.is_recurring.is_(slot.is_recurring),
            AvailabilitySlot.start_time < end,
            AvailabilitySlot.end_time > start,
        )
        if slot.is_recurring:
            overlap_stmt = overlap_stmt.where(AvailabilitySlot.day_of_week == slot.day_of_week)
        else:
            overlap_stmt = overlap_stmt.where(AvailabilitySlot.specific_date == specific_date)
        if session.scalars(overlap_stmt).first():
            raise InvalidSlot("Availability window overlaps with an existing one")

        session.add(slot)
        session.commit()
        session.refresh(slot)

    log.info("Trainer %s added availability %s", trainer_id, slot.label)
    return slot


def deactivate_availability_slot(
    session: Session,
    slot_id: int,
    *,
    trainer_id: Optional[int] = None,
) -> AvailabilitySlot:
    """
    Soft-delete a window. Bookings made from it keep their ``slot_id``.
    Deactivating an inactive slot is a no-op.
    """
    with store_guard(session, "deactivate availability slot"):
        slot = session.get(AvailabilitySlot, slot_id)
        if not slot:
            raise NotFound("Availability slot not found")
        if trainer_id is not None and slot.trainer_id != trainer_id:
            raise OwnerMismatch("Slot belongs to a different trainer")
        if not slot.is_active:
            return slot

        slot.is_active = False
        session.commit()
        session.refresh(slot)

    log.info("Trainer %s removed availability %s", slot.trainer_id, slot.label)
    return slot


# ---------------------------
# 2. Availability View
# ---------------------------

def list_trainer_slots(
    session: Session,
    trainer_id: int,
    *,
    include_inactive: bool = False,
) -> list[AvailabilitySlot]:
    stmt = select(AvailabilitySlot).where(AvailabilitySlot.trainer_id == trainer_id)
    if not include_inactive:
        stmt = stmt.where(AvailabilitySlot.is_active.is_(True))
    stmt = stmt.order_by(
        AvailabilitySlot.is_recurring.desc(),
        AvailabilitySlot.day_of_week,
        AvailabilitySlot.specific_date,
        AvailabilitySlot.start_time,
    )
    with store_guard(session, "list trainer slots"):
        return list(session.scalars(stmt))
