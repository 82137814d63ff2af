from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, datetime, time

from sqlalchemy import (
    Integer,
    String,
    Date,
    DateTime,
    Time,
    Text,
    ForeignKey,
    Boolean,
    CheckConstraint,
    Index,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from booking.calendar_window import utcnow
from booking.errors import InvalidSlot
from .base import Base
from .client import Client  # noqa: F401 (register model for relationships)


DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


# Statuses that occupy a trainer's time
ACTIVE_STATUSES = (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)


@dataclass(frozen=True)
class Recurring:
    day_of_week: int  # 0 = Monday ... 6 = Sunday


@dataclass(frozen=True)
class OneOff:
    date: date


def minutes_between(start: time, end: time) -> int:
    return (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)


class Trainer(Base):
    __tablename__ = "trainer"

    trainer_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    last_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    slots: Mapped[list["AvailabilitySlot"]] = relationship(
        back_populates="trainer",
        cascade="all, delete-orphan",
    )
    bookings: Mapped[list["Booking"]] = relationship(back_populates="trainer")
    clients: Mapped[list["Client"]] = relationship("Client", back_populates="trainer")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class AvailabilitySlot(Base):
    """
    A trainer-defined window in which sessions may be booked.

    Either recurring weekly on ``day_of_week`` (0 = Monday ... 6 = Sunday) or a
    one-off on ``specific_date``; for one-offs ``day_of_week`` is derived from
    the date and only kept for display. Slots are never hard-deleted while
    bookings point at them, deactivating sets ``is_active`` to False.
    """
    __tablename__ = "availability_slot"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_availability_slot_window"),
        Index("ix_availability_slot_trainer_active", "trainer_id", "is_active"),
    )

    slot_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    trainer_id: Mapped[int] = mapped_column(ForeignKey("trainer.trainer_id"), nullable=False)

    is_recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)  # 0–6
    specific_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=60)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, onupdate=utcnow)

    trainer: Mapped["Trainer"] = relationship(back_populates="slots")
    bookings: Mapped[list["Booking"]] = relationship(back_populates="slot")

    def __init__(self, **kwargs):
        specific_date = kwargs.get("specific_date")
        kwargs.setdefault("is_recurring", specific_date is None)
        kwargs.setdefault("is_active", True)
        if not kwargs["is_recurring"] and specific_date is not None:
            kwargs["day_of_week"] = specific_date.weekday()

        start, end = kwargs.get("start_time"), kwargs.get("end_time")
        if kwargs.get("duration_minutes") is None and start and end and end > start:
            kwargs["duration_minutes"] = minutes_between(start, end)

        super().__init__(**kwargs)
        self.validate()

    @classmethod
    def recurring(cls, *, trainer_id, day_of_week: int, start_time: time, end_time: time, **kwargs):
        return cls(
            trainer_id=trainer_id,
            is_recurring=True,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            **kwargs,
        )

    @classmethod
    def one_off(cls, *, trainer_id, specific_date: date, start_time: time, end_time: time, **kwargs):
        return cls(
            trainer_id=trainer_id,
            is_recurring=False,
            specific_date=specific_date,
            start_time=start_time,
            end_time=end_time,
            **kwargs,
        )

    def validate(self) -> None:
        if self.start_time is None or self.end_time is None:
            raise InvalidSlot("Availability window needs a start and end time")
        if self.end_time <= self.start_time:
            raise InvalidSlot("Availability start time must be before end time")
        if self.duration_minutes is not None and (
            isinstance(self.duration_minutes, bool)
            or not isinstance(self.duration_minutes, int)
            or self.duration_minutes <= 0
        ):
            raise InvalidSlot("Session duration must be a positive number of minutes")

        if self.is_recurring:
            if self.specific_date is not None:
                raise InvalidSlot("Recurring availability cannot carry a specific date")
            if self.day_of_week is None or not 0 <= self.day_of_week <= 6:
                raise InvalidSlot("day_of_week must be between 0 (Monday) and 6 (Sunday)")
        elif self.specific_date is None:
            raise InvalidSlot("One-off availability needs a specific date")

    @property
    def recurrence(self) -> Recurring | OneOff:
        if self.is_recurring:
            return Recurring(self.day_of_week)
        return OneOff(self.specific_date)

    @property
    def label(self) -> str:
        when = DAY_NAMES[self.day_of_week] if self.is_recurring else self.specific_date.isoformat()
        return f"{when} {self.start_time:%H:%M}-{self.end_time:%H:%M}"

    def __repr__(self) -> str:
        return f"<AvailabilitySlot {self.slot_id} trainer={self.trainer_id} {self.label}>"


class Booking(Base):
    __tablename__ = "booking"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_booking_window"),
        # At most one live booking may start at a given trainer/date/time.
        # PostgreSQL additionally gets an overlap exclusion constraint (see init_db).
        Index(
            "uq_booking_active_start",
            "trainer_id",
            "booking_date",
            "start_time",
            unique=True,
            sqlite_where=text("status != 'cancelled'"),
            postgresql_where=text("status != 'cancelled'"),
        ),
        Index("ix_booking_trainer_date", "trainer_id", "booking_date"),
        Index("ix_booking_client_date", "client_id", "booking_date"),
    )

    booking_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    trainer_id: Mapped[int] = mapped_column(ForeignKey("trainer.trainer_id"), nullable=False)
    client_id: Mapped[int] = mapped_column(ForeignKey("client.client_id"), nullable=False)
    slot_id: Mapped[int | None] = mapped_column(
        ForeignKey("availability_slot.slot_id"), nullable=True
    )

    booking_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=BookingStatus.CONFIRMED.value
    )
    client_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    cancelled_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    trainer: Mapped["Trainer"] = relationship(back_populates="bookings")
    client: Mapped["Client"] = relationship("Client", back_populates="bookings")
    slot: Mapped["AvailabilitySlot | None"] = relationship(back_populates="bookings")

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def is_cancelled(self) -> bool:
        return self.status == BookingStatus.CANCELLED.value

    def __repr__(self) -> str:
        return (
            f"<Booking {self.booking_id} trainer={self.trainer_id} client={self.client_id} "
            f"{self.booking_date} {self.start_time:%H:%M}-{self.end_time:%H:%M} {self.status}>"
        )
