from datetime import datetime

from sqlalchemy import Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from booking.calendar_window import utcnow
from .base import Base


class Client(Base):
    __tablename__ = "client"

    client_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    last_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    # The trainer this client is connected to (a client books with one trainer)
    trainer_id: Mapped[int | None] = mapped_column(ForeignKey("trainer.trainer_id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    bookings: Mapped[list["Booking"]] = relationship(back_populates="client")
    trainer: Mapped["Trainer | None"] = relationship("Trainer", back_populates="clients")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
