"""
Error kinds raised by the booking engine.

Every ``BookingError`` is an expected business outcome the caller is meant to
branch on (show "slot taken", "already cancelled", ...). ``StoreUnavailable``
is the odd one out: it signals that the database could not be reached and is
not a ``BookingError`` so that callers do not confuse an outage with a
conflict.
"""
from __future__ import annotations


class BookingError(ValueError):
    code = "booking_error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.__class__.__doc__ or self.code)

    @property
    def message(self) -> str:
        return str(self)


class InvalidSlot(BookingError):
    """Availability window is malformed"""

    code = "invalid_slot"


class InvalidDate(BookingError):
    """Date is in the past or does not match the slot's recurrence"""

    code = "invalid_date"


class OwnerMismatch(BookingError):
    """Slot or booking belongs to a different trainer"""

    code = "owner_mismatch"


class SlotUnavailable(BookingError):
    """This time slot has already been booked"""

    code = "slot_unavailable"


class AlreadyCancelled(BookingError):
    """Booking is already cancelled"""

    code = "already_cancelled"


class NotFound(BookingError):
    """Record not found"""

    code = "not_found"


class StoreUnavailable(RuntimeError):
    """The record store could not be reached."""

    code = "store_unavailable"
