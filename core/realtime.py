"""
In-process change feed over SQLAlchemy sessions.

Rows committed through a session created by an attached ``sessionmaker`` are
published as ``ChangeEvent`` objects to subscribers scoped by table and an
equality filter. Events collected during a flush are only delivered once the
transaction commits; a rollback discards them.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from sqlalchemy import event, inspect

logger = logging.getLogger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"

_PENDING_KEY = "_pending_change_events"


@dataclass(frozen=True)
class ChangeEvent:
    event_type: str
    table: str
    old: Optional[Dict[str, Any]] = None
    new: Optional[Dict[str, Any]] = None

    @property
    def record(self) -> Dict[str, Any]:
        return self.new if self.new is not None else (self.old or {})


class Subscription:
    def __init__(self, feed: "ChangeFeed", table: str, filters: Dict[str, Any], callback: Callable[[ChangeEvent], None]):
        self.feed = feed
        self.table = table
        self.filters = filters
        self.callback = callback
        self.active = True

    def matches(self, change: ChangeEvent) -> bool:
        if change.table != self.table:
            return False
        for row in (change.new, change.old):
            if row is not None and all(row.get(k) == v for k, v in self.filters.items()):
                return True
        return False

    def unsubscribe(self) -> None:
        if self.active:
            self.feed._remove(self)
            self.active = False

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unsubscribe()


def row_snapshot(obj) -> Dict[str, Any]:
    # Loaded state only; expired attributes must not trigger a query mid-flush
    state = inspect(obj)
    return {attr.key: state.dict.get(attr.key) for attr in state.mapper.column_attrs}


def _previous_snapshot(obj) -> Dict[str, Any]:
    state = inspect(obj)
    row = {}
    for attr in state.mapper.column_attrs:
        history = state.attrs[attr.key].history
        row[attr.key] = history.deleted[0] if history.deleted else state.dict.get(attr.key)
    return row


class ChangeFeed:
    def __init__(self):
        self._subscriptions: List[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(self, table: str, callback: Callable[[ChangeEvent], None], **filters: Any) -> Subscription:
        subscription = Subscription(self, table, filters, callback)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def publish(self, change: ChangeEvent) -> None:
        with self._lock:
            targets = [s for s in self._subscriptions if s.matches(change)]
        for subscription in targets:
            try:
                subscription.callback(change)
            except Exception:
                logger.exception("Realtime subscriber failed for %s on %s", change.event_type, change.table)

    def publish_all(self, changes: Iterable[ChangeEvent]) -> None:
        for change in changes:
            self.publish(change)

    # SQLAlchemy session wiring

    def attach(self, session_factory) -> None:
        event.listen(session_factory, "after_flush", self._collect)
        event.listen(session_factory, "after_commit", self._dispatch)
        event.listen(session_factory, "after_rollback", self._discard)

    def _collect(self, session, flush_context) -> None:
        pending = session.info.setdefault(_PENDING_KEY, [])
        for obj in session.new:
            pending.append(ChangeEvent(INSERT, obj.__tablename__, None, row_snapshot(obj)))
        for obj in session.dirty:
            if session.is_modified(obj, include_collections=False):
                pending.append(ChangeEvent(UPDATE, obj.__tablename__, _previous_snapshot(obj), row_snapshot(obj)))
        for obj in session.deleted:
            pending.append(ChangeEvent(DELETE, obj.__tablename__, row_snapshot(obj), None))

    def _dispatch(self, session) -> None:
        pending = session.info.pop(_PENDING_KEY, [])
        self.publish_all(pending)

    def _discard(self, session) -> None:
        session.info.pop(_PENDING_KEY, None)


class LiveList:
    """
    A list of row dicts kept current by applying change events in place.

    ``accept`` decides whether a row belongs in the list; an update that makes
    a row stop matching removes it. Duplicate inserts are ignored and applied
    entries keep their position.
    """

    def __init__(self, rows: Iterable[Dict[str, Any]] = (), key: str = "id",
                 accept: Optional[Callable[[Dict[str, Any]], bool]] = None, newest_first: bool = False):
        self.key = key
        self.accept = accept or (lambda row: True)
        self.newest_first = newest_first
        self._rows: List[Dict[str, Any]] = list(rows)

    @property
    def items(self) -> List[Dict[str, Any]]:
        return list(self._rows)

    def _index(self, row_id) -> int:
        for i, row in enumerate(self._rows):
            if row.get(self.key) == row_id:
                return i
        return -1

    def _add(self, row: Dict[str, Any]) -> None:
        if self.newest_first:
            self._rows.insert(0, row)
        else:
            self._rows.append(row)

    def apply(self, change: ChangeEvent) -> None:
        if change.event_type == DELETE:
            if change.old is not None:
                idx = self._index(change.old.get(self.key))
                if idx >= 0:
                    del self._rows[idx]
            return

        row = change.new
        if row is None:
            return
        idx = self._index(row.get(self.key))
        if not self.accept(row):
            if idx >= 0:
                del self._rows[idx]
            return
        if idx >= 0:
            if change.event_type == UPDATE:
                self._rows[idx] = row
            return
        self._add(row)


change_feed = ChangeFeed()
