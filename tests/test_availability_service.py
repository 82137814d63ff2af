from datetime import time, timedelta

import pytest

from booking.availability_service import (
    create_availability_slot,
    deactivate_availability_slot,
    list_trainer_slots,
)
from booking.engine import book_slot, list_available_occurrences
from booking.errors import InvalidSlot, NotFound, OwnerMismatch
from models.scheduling import Booking
from tests.helpers import MONDAY, make_client, make_trainer


def test_create_recurring_slots_no_overlap(session):
    trainer = make_trainer(session)

    a1 = create_availability_slot(
        session,
        trainer_id=trainer.trainer_id,
        day_of_week=0,
        start=time(9, 0),
        end=time(11, 0),
    )
    assert a1.slot_id is not None
    assert a1.is_recurring
    assert a1.duration_minutes == 120

    # Abutting window on the same day is fine
    a2 = create_availability_slot(
        session,
        trainer_id=trainer.trainer_id,
        day_of_week=0,
        start=time(11, 0),
        end=time(12, 0),
        duration_minutes=45,
    )
    assert a2.slot_id is not None
    assert a2.duration_minutes == 45


def test_create_overlapping_slot_fails(session):
    trainer = make_trainer(session)
    create_availability_slot(
        session,
        trainer_id=trainer.trainer_id,
        day_of_week=1,
        start=time(9, 0),
        end=time(11, 0),
    )

    with pytest.raises(InvalidSlot, match="overlaps"):
        create_availability_slot(
            session,
            trainer_id=trainer.trainer_id,
            day_of_week=1,
            start=time(10, 0),
            end=time(12, 0),
        )


def test_overlap_check_is_per_weekday_and_per_date(session):
    trainer = make_trainer(session)
    create_availability_slot(
        session, trainer_id=trainer.trainer_id, day_of_week=1, start=time(9, 0), end=time(11, 0)
    )

    # Different weekday, and a one-off, may reuse the same hours
    create_availability_slot(
        session, trainer_id=trainer.trainer_id, day_of_week=2, start=time(9, 0), end=time(11, 0)
    )
    tuesday = MONDAY + timedelta(days=1)
    one_off = create_availability_slot(
        session, trainer_id=trainer.trainer_id, specific_date=tuesday, start=time(9, 0), end=time(11, 0)
    )
    assert one_off.day_of_week == 1

    with pytest.raises(InvalidSlot, match="overlaps"):
        create_availability_slot(
            session, trainer_id=trainer.trainer_id, specific_date=tuesday, start=time(10, 0), end=time(10, 30)
        )


def test_deactivated_window_no_longer_blocks_new_one(session):
    trainer = make_trainer(session)
    slot = create_availability_slot(
        session, trainer_id=trainer.trainer_id, day_of_week=4, start=time(9, 0), end=time(10, 0)
    )
    deactivate_availability_slot(session, slot.slot_id)

    replacement = create_availability_slot(
        session, trainer_id=trainer.trainer_id, day_of_week=4, start=time(9, 30), end=time(10, 30)
    )
    assert replacement.is_active


def test_create_slot_validation(session):
    trainer = make_trainer(session)

    with pytest.raises(InvalidSlot):
        create_availability_slot(
            session, trainer_id=trainer.trainer_id, day_of_week=0, start=time(10, 0), end=time(9, 0)
        )
    with pytest.raises(InvalidSlot):
        create_availability_slot(
            session, trainer_id=trainer.trainer_id, start=time(9, 0), end=time(10, 0)
        )
    with pytest.raises(NotFound, match="Trainer"):
        create_availability_slot(
            session, trainer_id=999, day_of_week=0, start=time(9, 0), end=time(10, 0)
        )


def test_deactivate_is_soft_and_keeps_bookings(session):
    trainer = make_trainer(session)
    client = make_client(session, trainer)
    slot = create_availability_slot(
        session, trainer_id=trainer.trainer_id, day_of_week=0, start=time(9, 0), end=time(10, 0)
    )
    booking = book_slot(
        session,
        trainer_id=trainer.trainer_id,
        client_id=client.client_id,
        slot_id=slot.slot_id,
        booking_date=MONDAY,
        today=MONDAY,
    )

    removed = deactivate_availability_slot(session, slot.slot_id, trainer_id=trainer.trainer_id)

    assert removed.is_active is False
    assert list_available_occurrences(session, trainer_id=trainer.trainer_id, today=MONDAY) == []
    assert session.get(Booking, booking.booking_id).slot_id == slot.slot_id
    assert [s.slot_id for s in list_trainer_slots(session, trainer.trainer_id, include_inactive=True)] == [
        slot.slot_id
    ]

    # Deactivating again is a no-op
    assert deactivate_availability_slot(session, slot.slot_id).is_active is False


def test_deactivate_checks_owner(session):
    trainer = make_trainer(session)
    other = make_trainer(session, email="otto@example.com")
    slot = create_availability_slot(
        session, trainer_id=trainer.trainer_id, day_of_week=0, start=time(9, 0), end=time(10, 0)
    )

    with pytest.raises(OwnerMismatch):
        deactivate_availability_slot(session, slot.slot_id, trainer_id=other.trainer_id)
    with pytest.raises(NotFound):
        deactivate_availability_slot(session, 999)


def test_list_trainer_slots_orders_recurring_first(session):
    trainer = make_trainer(session)
    friday = MONDAY + timedelta(days=4)
    one_off = create_availability_slot(
        session, trainer_id=trainer.trainer_id, specific_date=friday, start=time(8, 0), end=time(9, 0)
    )
    wed = create_availability_slot(
        session, trainer_id=trainer.trainer_id, day_of_week=2, start=time(9, 0), end=time(10, 0)
    )
    mon = create_availability_slot(
        session, trainer_id=trainer.trainer_id, day_of_week=0, start=time(18, 0), end=time(19, 0)
    )

    assert [s.slot_id for s in list_trainer_slots(session, trainer.trainer_id)] == [
        mon.slot_id,
        wed.slot_id,
        one_off.slot_id,
    ]
