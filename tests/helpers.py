from __future__ import annotations

from datetime import date, time

from models.client import Client
from models.scheduling import AvailabilitySlot, Trainer

# Fixed calendar anchor: 2024-01-01 was a Monday
MONDAY = date(2024, 1, 1)


def make_trainer(session, *, email: str = "tina@example.com") -> Trainer:
    trainer = Trainer(first_name="Tina", last_name="Trainer", email=email)
    session.add(trainer)
    session.commit()
    session.refresh(trainer)
    return trainer


def make_client(session, trainer: Trainer | None = None, *, first_name: str = "Alice", email: str | None = None) -> Client:
    client = Client(
        first_name=first_name,
        last_name="Client",
        email=email or f"{first_name.lower()}@example.com",
        trainer_id=trainer.trainer_id if trainer else None,
    )
    session.add(client)
    session.commit()
    session.refresh(client)
    return client


def add_slot(
    session,
    trainer: Trainer,
    *,
    day_of_week: int | None = 0,
    specific_date: date | None = None,
    start: time = time(9, 0),
    end: time = time(10, 0),
    duration_minutes: int | None = None,
) -> AvailabilitySlot:
    """
    Persist an availability window without going through the service layer,
    so tests can set up states the service would refuse (e.g. overlaps).
    """
    if trainer.trainer_id is None:
        raise ValueError("Trainer must be persisted before adding availability")

    if specific_date is not None:
        slot = AvailabilitySlot.one_off(
            trainer_id=trainer.trainer_id,
            specific_date=specific_date,
            start_time=start,
            end_time=end,
            duration_minutes=duration_minutes,
        )
    else:
        slot = AvailabilitySlot.recurring(
            trainer_id=trainer.trainer_id,
            day_of_week=day_of_week,
            start_time=start,
            end_time=end,
            duration_minutes=duration_minutes,
        )
    session.add(slot)
    session.commit()
    session.refresh(slot)
    return slot
