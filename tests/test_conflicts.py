from datetime import time, timedelta

import pytest

from booking.conflicts import find_conflict, has_conflict, intervals_overlap
from models.scheduling import Booking, BookingStatus
from tests.helpers import MONDAY, make_client, make_trainer


def _book(session, trainer, client, start, end, *, on=MONDAY, status=BookingStatus.CONFIRMED):
    booking = Booking(
        trainer_id=trainer.trainer_id,
        client_id=client.client_id,
        booking_date=on,
        start_time=start,
        end_time=end,
        duration_minutes=60,
        status=status.value,
    )
    session.add(booking)
    session.commit()
    session.refresh(booking)
    return booking


@pytest.fixture()
def booked(session):
    trainer = make_trainer(session)
    client = make_client(session, trainer)
    booking = _book(session, trainer, client, time(9, 0), time(10, 0))
    return trainer, client, booking


@pytest.mark.parametrize(
    "start, end",
    [
        (time(9, 0), time(10, 0)),    # identical
        (time(8, 30), time(9, 30)),   # overlaps the start
        (time(9, 30), time(10, 30)),  # overlaps the end
        (time(9, 15), time(9, 45)),   # inside
        (time(8, 0), time(11, 0)),    # covers
    ],
)
def test_overlapping_probe_conflicts(session, booked, start, end):
    trainer, _, _ = booked
    assert has_conflict(session, trainer.trainer_id, MONDAY, start, end)


@pytest.mark.parametrize(
    "start, end",
    [
        (time(10, 0), time(11, 0)),  # abuts the end
        (time(8, 0), time(9, 0)),    # abuts the start
        (time(12, 0), time(13, 0)),  # disjoint
    ],
)
def test_disjoint_or_abutting_probe_is_free(session, booked, start, end):
    trainer, _, _ = booked
    assert not has_conflict(session, trainer.trainer_id, MONDAY, start, end)


def test_other_date_and_other_trainer_do_not_conflict(session, booked):
    trainer, _, _ = booked
    other = make_trainer(session, email="otto@example.com")

    assert not has_conflict(session, trainer.trainer_id, MONDAY + timedelta(days=7), time(9, 0), time(10, 0))
    assert not has_conflict(session, other.trainer_id, MONDAY, time(9, 0), time(10, 0))


def test_cancelled_bookings_do_not_occupy(session, booked):
    trainer, _, booking = booked
    booking.status = BookingStatus.CANCELLED.value
    session.commit()

    assert not has_conflict(session, trainer.trainer_id, MONDAY, time(9, 0), time(10, 0))


def test_pending_bookings_occupy(session):
    trainer = make_trainer(session)
    client = make_client(session, trainer)
    _book(session, trainer, client, time(14, 0), time(15, 0), status=BookingStatus.PENDING)

    assert has_conflict(session, trainer.trainer_id, MONDAY, time(14, 30), time(15, 30))


def test_excluded_booking_is_ignored(session, booked):
    trainer, _, booking = booked
    assert not has_conflict(
        session,
        trainer.trainer_id,
        MONDAY,
        time(9, 0),
        time(10, 0),
        exclude_booking_id=booking.booking_id,
    )


def test_has_conflict_does_not_mutate(session, booked):
    trainer, _, booking = booked
    for _ in range(3):
        assert has_conflict(session, trainer.trainer_id, MONDAY, time(9, 0), time(10, 0))
    assert not session.dirty
    assert session.get(Booking, booking.booking_id).status == BookingStatus.CONFIRMED.value


def test_intervals_overlap_is_half_open():
    assert intervals_overlap(time(9), time(10), time(9, 59), time(11))
    assert not intervals_overlap(time(9), time(10), time(10), time(11))
    assert not intervals_overlap(time(10), time(11), time(9), time(10))


def test_find_conflict_matches_query_rule(session, booked):
    _, _, booking = booked
    rows = [booking]

    assert find_conflict(rows, MONDAY, time(9, 30), time(10, 30)) is booking
    assert find_conflict(rows, MONDAY, time(10, 0), time(11, 0)) is None
    assert find_conflict(rows, MONDAY + timedelta(days=1), time(9, 0), time(10, 0)) is None
    assert find_conflict(rows, MONDAY, time(9, 0), time(10, 0), exclude_booking_id=booking.booking_id) is None
