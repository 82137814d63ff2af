from __future__ import annotations

import logging
from datetime import date, time

from flask import Flask, jsonify, request

from booking.availability_service import (
    create_availability_slot,
    deactivate_availability_slot,
    list_trainer_slots,
)
from booking.cancellation import cancel_booking
from booking.config import Config, configure_logging
from booking.engine import (
    book_slot,
    list_available_occurrences,
    list_client_bookings,
    list_trainer_bookings,
)
from booking.errors import (
    AlreadyCancelled,
    BookingError,
    InvalidDate,
    InvalidSlot,
    NotFound,
    OwnerMismatch,
    SlotUnavailable,
    StoreUnavailable,
)
from models.scheduling import AvailabilitySlot, Booking

log = logging.getLogger(__name__)


class BadRequest(BookingError):
    """Malformed request"""

    code = "bad_request"


ERROR_STATUS = {
    BadRequest: 400,
    InvalidSlot: 400,
    InvalidDate: 400,
    OwnerMismatch: 403,
    NotFound: 404,
    SlotUnavailable: 409,
    AlreadyCancelled: 409,
}


# ---------------------------
# Serialisation helpers
# ---------------------------

def slot_to_dict(slot: AvailabilitySlot) -> dict:
    return {
        "slot_id": slot.slot_id,
        "trainer_id": slot.trainer_id,
        "is_recurring": slot.is_recurring,
        "day_of_week": slot.day_of_week,
        "specific_date": slot.specific_date.isoformat() if slot.specific_date else None,
        "start_time": slot.start_time.strftime("%H:%M"),
        "end_time": slot.end_time.strftime("%H:%M"),
        "duration_minutes": slot.duration_minutes,
        "is_active": slot.is_active,
        "label": slot.label,
    }


def booking_to_dict(booking: Booking) -> dict:
    return {
        "booking_id": booking.booking_id,
        "trainer_id": booking.trainer_id,
        "client_id": booking.client_id,
        "slot_id": booking.slot_id,
        "date": booking.booking_date.isoformat(),
        "start_time": booking.start_time.strftime("%H:%M"),
        "end_time": booking.end_time.strftime("%H:%M"),
        "duration_minutes": booking.duration_minutes,
        "status": booking.status,
        "client_notes": booking.client_notes,
        "cancelled_at": booking.cancelled_at.isoformat() if booking.cancelled_at else None,
        "cancelled_by": booking.cancelled_by,
        "cancellation_reason": booking.cancellation_reason,
    }


def _parse_date(value, field: str) -> date:
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise BadRequest(f"Invalid {field}. Use YYYY-MM-DD")


def _parse_time(value, field: str) -> time:
    try:
        return time.fromisoformat(value)
    except (TypeError, ValueError):
        raise BadRequest(f"Invalid {field}. Use HH:MM")


def _require_int(data: dict, field: str) -> int:
    value = data.get(field)
    if value is None or value == "":
        raise BadRequest(f"{field} is required")
    return _as_int(value, field)


def _optional_int(data: dict, field: str) -> int | None:
    value = data.get(field)
    if value is None:
        return None
    return _as_int(value, field)


def _as_int(value, field: str) -> int:
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise BadRequest(f"{field} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BadRequest(f"{field} must be an integer")


def create_app(session_factory=None) -> Flask:
    if session_factory is None:
        from models.base import SessionLocal

        session_factory = SessionLocal

    app = Flask(__name__)
    app.config["DEFAULT_HORIZON"] = Config.DEFAULT_HORIZON

    @app.errorhandler(BookingError)
    def handle_booking_error(exc: BookingError):
        status = ERROR_STATUS.get(type(exc), 400)
        return jsonify(error=exc.code, message=exc.message), status

    @app.errorhandler(StoreUnavailable)
    def handle_store_unavailable(exc: StoreUnavailable):
        log.warning("%s %s failed: %s", request.method, request.path, exc)
        return jsonify(error=exc.code, message="Booking service temporarily unavailable"), 503

    # ---------- CLIENTS: browse and book ----------

    @app.get("/trainers/<int:trainer_id>/occurrences")
    def available_occurrences(trainer_id: int):
        client_id = request.args.get("client_id", type=int)
        horizon = request.args.get("horizon", default=app.config["DEFAULT_HORIZON"], type=int)
        with session_factory() as db:
            occurrences = list_available_occurrences(
                db, trainer_id=trainer_id, client_id=client_id, horizon=horizon
            )
            return jsonify([
                {"date": occ.date.isoformat(), "slot": slot_to_dict(occ.slot)}
                for occ in occurrences
            ]), 200

    @app.post("/bookings")
    def create_booking():
        data = request.get_json(silent=True) or {}
        with session_factory() as db:
            booking = book_slot(
                db,
                trainer_id=_require_int(data, "trainer_id"),
                client_id=_require_int(data, "client_id"),
                slot_id=_require_int(data, "slot_id"),
                booking_date=_parse_date(data.get("date"), "date"),
                client_notes=(data.get("notes") or "").strip() or None,
            )
            return jsonify(booking_to_dict(booking)), 201

    @app.post("/bookings/<int:booking_id>/cancel")
    def cancel(booking_id: int):
        data = request.get_json(silent=True) or {}
        with session_factory() as db:
            booking = cancel_booking(
                db,
                booking_id=booking_id,
                cancelled_by=_require_int(data, "cancelled_by"),
                reason=(data.get("reason") or "").strip() or None,
                by_trainer=bool(data.get("by_trainer")),
            )
            return jsonify(booking_to_dict(booking)), 200

    @app.get("/clients/<int:client_id>/bookings")
    def client_bookings(client_id: int):
        with session_factory() as db:
            bookings = list_client_bookings(db, client_id)
            return jsonify([booking_to_dict(b) for b in bookings]), 200

    # ---------- TRAINERS: calendar and availability ----------

    @app.get("/trainers/<int:trainer_id>/bookings")
    def trainer_bookings(trainer_id: int):
        start = request.args.get("from")
        end = request.args.get("to")
        with session_factory() as db:
            bookings = list_trainer_bookings(
                db,
                trainer_id,
                start=_parse_date(start, "from") if start else None,
                end=_parse_date(end, "to") if end else None,
            )
            return jsonify([booking_to_dict(b) for b in bookings]), 200

    @app.get("/trainers/<int:trainer_id>/slots")
    def trainer_slots(trainer_id: int):
        with session_factory() as db:
            slots = list_trainer_slots(db, trainer_id)
            return jsonify([slot_to_dict(s) for s in slots]), 200

    @app.post("/trainers/<int:trainer_id>/slots")
    def add_slot(trainer_id: int):
        data = request.get_json(silent=True) or {}
        specific = data.get("specific_date")
        day_of_week = data.get("day_of_week")
        if specific is None and day_of_week is None:
            raise BadRequest("day_of_week or specific_date is required")
        with session_factory() as db:
            slot = create_availability_slot(
                db,
                trainer_id=trainer_id,
                start=_parse_time(data.get("start_time"), "start_time"),
                end=_parse_time(data.get("end_time"), "end_time"),
                day_of_week=_require_int(data, "day_of_week") if specific is None else None,
                specific_date=_parse_date(specific, "specific_date") if specific else None,
                duration_minutes=_optional_int(data, "duration_minutes"),
            )
            return jsonify(slot_to_dict(slot)), 201

    @app.delete("/slots/<int:slot_id>")
    def remove_slot(slot_id: int):
        trainer_id = request.args.get("trainer_id", type=int)
        with session_factory() as db:
            slot = deactivate_availability_slot(db, slot_id, trainer_id=trainer_id)
            return jsonify(slot_to_dict(slot)), 200

    return app


if __name__ == "__main__":
    configure_logging()
    create_app().run(debug=True)
