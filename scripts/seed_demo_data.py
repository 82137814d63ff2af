# scripts/seed_demo_data.py

import os
import sys
from datetime import date, time, timedelta

from sqlalchemy import select

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.append(ROOT)

# Now imports will work
from booking.availability_service import create_availability_slot
from booking.config import configure_logging
from booking.engine import book_slot, list_available_occurrences, list_client_bookings
from booking.init_db import init_db
from models.base import get_session
from models.client import Client
from models.scheduling import AvailabilitySlot, Trainer


def _ensure_trainer(session, *, first_name: str, last_name: str, email: str) -> Trainer:
    trainer = session.scalar(select(Trainer).where(Trainer.email == email))
    if trainer:
        return trainer
    trainer = Trainer(first_name=first_name, last_name=last_name, email=email)
    session.add(trainer)
    session.commit()
    session.refresh(trainer)
    return trainer


def _ensure_client(session, trainer: Trainer, *, first_name: str, last_name: str, email: str) -> Client:
    client = session.scalar(select(Client).where(Client.email == email))
    if client:
        return client
    client = Client(
        first_name=first_name,
        last_name=last_name,
        email=email,
        trainer_id=trainer.trainer_id,
    )
    session.add(client)
    session.commit()
    session.refresh(client)
    return client


def _ensure_weekly_slots(session, trainer: Trainer) -> None:
    has_slots = session.scalar(
        select(AvailabilitySlot.slot_id).where(AvailabilitySlot.trainer_id == trainer.trainer_id)
    )
    if has_slots:
        return

    # Mon/Wed/Fri mornings, Tue/Thu evenings
    for day in (0, 2, 4):
        create_availability_slot(
            session, trainer_id=trainer.trainer_id, day_of_week=day, start=time(7, 0), end=time(8, 0)
        )
    for day in (1, 3):
        create_availability_slot(
            session, trainer_id=trainer.trainer_id, day_of_week=day, start=time(18, 0), end=time(19, 0)
        )
    # One Saturday bootcamp next week
    saturday = date.today() + timedelta(days=(5 - date.today().weekday()) % 7 + 7)
    create_availability_slot(
        session,
        trainer_id=trainer.trainer_id,
        specific_date=saturday,
        start=time(9, 0),
        end=time(10, 30),
        duration_minutes=90,
    )


def run():
    configure_logging()
    init_db()

    with get_session() as session:
        trainer = _ensure_trainer(session, first_name="Tina", last_name="Trainer", email="tina@example.com")
        alice = _ensure_client(session, trainer, first_name="Alice", last_name="Smith", email="alice@example.com")
        _ensure_client(session, trainer, first_name="Bob", last_name="Jones", email="bob@example.com")
        _ensure_weekly_slots(session, trainer)

        occurrences = list_available_occurrences(session, trainer_id=trainer.trainer_id, horizon=2)
        if occurrences and not list_client_bookings(session, alice.client_id):
            first = occurrences[0]
            book_slot(
                session,
                trainer_id=trainer.trainer_id,
                client_id=alice.client_id,
                slot_id=first.slot.slot_id,
                booking_date=first.date,
            )

        remaining = list_available_occurrences(session, trainer_id=trainer.trainer_id, horizon=2)
        print(f"Seeded trainer {trainer.full_name} with {len(remaining)} open occurrences:")
        for occ in remaining:
            print(f"  {occ.date:%a %b %d}  {occ.slot.start_time:%H:%M}-{occ.slot.end_time:%H:%M}")


if __name__ == "__main__":
    run()
