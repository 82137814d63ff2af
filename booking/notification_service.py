from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from models.notification import Notification


def add_client_notification(
    session: Session, client_id: int, message: str, *, booking_id: int | None = None
) -> Notification:
    note = Notification(client_id=client_id, booking_id=booking_id, message=message)
    session.add(note)
    return note


def add_trainer_notification(
    session: Session, trainer_id: int, message: str, *, booking_id: int | None = None
) -> Notification:
    note = Notification(trainer_id=trainer_id, booking_id=booking_id, message=message)
    session.add(note)
    return note


def list_unread_notifications(
    session: Session,
    *,
    trainer_id: int | None = None,
    client_id: int | None = None,
) -> list[Notification]:
    stmt = select(Notification).where(Notification.is_read.is_(False))
    if trainer_id is not None:
        stmt = stmt.where(Notification.trainer_id == trainer_id)
    if client_id is not None:
        stmt = stmt.where(Notification.client_id == client_id)
    return list(session.scalars(stmt.order_by(Notification.created_at, Notification.notification_id)))


def mark_notifications_read(session: Session, notifications: list[Notification]) -> None:
    if not notifications:
        return
    for note in notifications:
        note.is_read = True
    session.flush()
