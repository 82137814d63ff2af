"""
Change notifications for availability slots and bookings.

A ``ChangeFeed`` hooks into SQLAlchemy session events, collects the rows a
flush inserted, updated or deleted, and hands them to subscribers once the
transaction commits (rolled-back changes are dropped). Whoever owns a live
view subscribes when it opens and unsubscribes when it closes; the booking
engine itself never touches the feed. It only shortens refresh latency, the
engine stays correct if callers simply poll.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

log = logging.getLogger(__name__)

WATCHED_TABLES = ("availability_slot", "booking")


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    kind: str  # "insert" | "update" | "delete"
    row_id: Any
    values: dict = field(default_factory=dict)


Callback = Callable[[ChangeEvent], None]


class Subscription:
    def __init__(self, feed: "ChangeFeed", table: str, callback: Callback, filters: dict):
        self.feed = feed
        self.table = table
        self.callback = callback
        self.filters = filters
        self.active = True

    def matches(self, change: ChangeEvent) -> bool:
        if change.table != self.table:
            return False
        return all(change.values.get(key) == value for key, value in self.filters.items())

    def unsubscribe(self) -> None:
        self.feed._remove(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.unsubscribe()


def _snapshot(obj) -> tuple[Any, dict]:
    state = inspect(obj)
    values = {attr.key: getattr(obj, attr.key) for attr in state.mapper.column_attrs}
    # identity keys are only assigned after the flush finishes, read the columns
    key = tuple(state.mapper.primary_key_from_instance(obj))
    row_id = key[0] if len(key) == 1 else key
    return row_id, values


class ChangeFeed:
    """
    Publish committed changes on ``tables`` made through ``target``.

    ``target`` is anything SQLAlchemy accepts for session events: a
    ``sessionmaker``, a ``Session`` subclass or a single ``Session``.
    """

    def __init__(self, target=Session, tables=WATCHED_TABLES):
        self.target = target
        self.tables = frozenset(tables)
        self._subscriptions: list[Subscription] = []
        self._lock = threading.Lock()
        self._pending_key = ("change_feed", id(self))

        event.listen(target, "after_flush", self._after_flush)
        event.listen(target, "after_commit", self._after_commit)
        event.listen(target, "after_soft_rollback", self._after_rollback)

    # --- subscriber side --------------------------------------------------

    def subscribe(self, table: str, callback: Callback, **filters) -> Subscription:
        if table not in self.tables:
            raise ValueError(f"Table {table!r} is not watched by this feed")
        sub = Subscription(self, table, callback, filters)
        with self._lock:
            self._subscriptions.append(sub)
        return sub

    def _remove(self, sub: Subscription) -> None:
        with self._lock:
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)
        sub.active = False

    def close(self) -> None:
        event.remove(self.target, "after_flush", self._after_flush)
        event.remove(self.target, "after_commit", self._after_commit)
        event.remove(self.target, "after_soft_rollback", self._after_rollback)
        with self._lock:
            subs, self._subscriptions = self._subscriptions, []
        for sub in subs:
            sub.active = False

    def publish(self, change: ChangeEvent) -> None:
        with self._lock:
            subs = [s for s in self._subscriptions if s.matches(change)]
        for sub in subs:
            try:
                sub.callback(change)
            except Exception:
                log.exception("Change feed subscriber failed for %s %s", change.table, change.kind)

    # --- session event hooks ----------------------------------------------

    def _pending(self, session: Session) -> list[ChangeEvent]:
        return session.info.setdefault(self._pending_key, [])

    def _collect(self, session: Session, objects, kind: str) -> None:
        for obj in objects:
            table = getattr(obj, "__tablename__", None)
            if table not in self.tables:
                continue
            if kind == "update" and not session.is_modified(obj, include_collections=False):
                continue
            row_id, values = _snapshot(obj)
            self._pending(session).append(ChangeEvent(table, kind, row_id, values))

    def _after_flush(self, session: Session, flush_context) -> None:
        self._collect(session, session.new, "insert")
        self._collect(session, session.dirty, "update")
        self._collect(session, session.deleted, "delete")

    def _after_commit(self, session: Session) -> None:
        changes = session.info.pop(self._pending_key, [])
        for change in changes:
            self.publish(change)

    def _after_rollback(self, session: Session, previous_transaction) -> None:
        if previous_transaction.parent is None:
            session.info.pop(self._pending_key, None)
