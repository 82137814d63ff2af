"""
Glue between the engine and the SQLAlchemy session that acts as its record store.

``store_guard`` turns connectivity failures into ``StoreUnavailable`` so they
never masquerade as business outcomes. ``trainer_lock`` is the in-process
single-writer point for one trainer's check-then-insert; the unique index on
``booking`` (and the exclusion constraint on PostgreSQL) covers writers in
other processes.
"""
from __future__ import annotations

import logging
import threading
import weakref
from contextlib import contextmanager

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.orm import Session

from booking.errors import StoreUnavailable

log = logging.getLogger(__name__)

_locks_guard = threading.Lock()
# entries disappear once no caller holds the lock
_trainer_locks: weakref.WeakValueDictionary = weakref.WeakValueDictionary()


def _lock_for(trainer_id: int) -> threading.Lock:
    with _locks_guard:
        lock = _trainer_locks.get(trainer_id)
        if lock is None:
            lock = _trainer_locks[trainer_id] = threading.Lock()
        return lock


@contextmanager
def trainer_lock(trainer_id: int):
    lock = _lock_for(trainer_id)
    with lock:
        yield


def _is_disconnect(exc: Exception) -> bool:
    if isinstance(exc, (OperationalError, InterfaceError)):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


@contextmanager
def store_guard(session: Session, action: str):
    """Roll back and re-raise store outages as ``StoreUnavailable``."""
    try:
        yield
    except DBAPIError as exc:
        if not _is_disconnect(exc):
            raise
        log.error("Record store unavailable during %s: %s", action, exc)
        session.rollback()
        raise StoreUnavailable(f"Record store unavailable during {action}") from exc
