"""Polling the chain for events and remembering how far it got."""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

from .events import CHAIN_EVENT, EventDispatcher

_log = logging.getLogger(__name__)

GetEventTypes = Callable[[], Iterable[str]]


class _ChainClient(Protocol):
    def latest_block_height(self) -> int: ...

    def events_for_height_range(self, event_type: str, start: int, end: int) -> Iterable[Any]: ...


@dataclass
class ListenerStatus:
    """The highest block height whose events have been handled."""

    latest_height: int = 0
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


_SCHEMA = """
CREATE TABLE IF NOT EXISTS chain_events_status (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    latest_height INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    deleted_at TEXT
)
"""


class SqliteListenerStore:
    """Listener status store backed by an SQLite connection."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._db = connection
        self._lock = threading.Lock()
        with self._lock, self._db:
            self._db.execute(_SCHEMA)

    def get_listener_status(self) -> ListenerStatus:
        """Return the stored status, creating it if there is none."""
        with self._lock, self._db:
            row = self._db.execute(
                "SELECT id, latest_height, created_at, updated_at FROM chain_events_status "
                "WHERE deleted_at IS NULL ORDER BY id ASC LIMIT 1"
            ).fetchone()
            if row is not None:
                row_id, height, created, updated = row
                return ListenerStatus(
                    latest_height=height,
                    id=row_id,
                    created_at=datetime.fromisoformat(created),
                    updated_at=datetime.fromisoformat(updated),
                )
            status = ListenerStatus()
            self._insert(status)
            return status

    def _insert(self, status: ListenerStatus) -> None:
        now = datetime.now(timezone.utc)
        status.created_at = status.created_at or now
        status.updated_at = now
        cursor = self._db.execute(
            "INSERT INTO chain_events_status (latest_height, created_at, updated_at) "
            "VALUES (?, ?, ?)",
            (status.latest_height, status.created_at.isoformat(), status.updated_at.isoformat()),
        )
        status.id = cursor.lastrowid

    def update_listener_status(self, status: ListenerStatus) -> None:
        """Save status, inserting it if it has not been stored yet."""
        with self._lock, self._db:
            if status.id is None:
                self._insert(status)
                return
            status.updated_at = datetime.now(timezone.utc)
            self._db.execute(
                "UPDATE chain_events_status SET latest_height = ?, updated_at = ? WHERE id = ?",
                (status.latest_height, status.updated_at.isoformat(), status.id),
            )


class Listener:
    """Periodically fetches new chain events and hands them to a dispatcher.

    At most max_diff + 1 blocks are examined per poll.
    """

    def __init__(
        self,
        client: _ChainClient,
        store: SqliteListenerStore,
        max_diff: int,
        interval: float,
        get_types: GetEventTypes,
        dispatcher: EventDispatcher = CHAIN_EVENT,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._client = client
        self._store = store
        self._max_diff = max_diff
        self._interval = interval
        self._get_types = get_types
        self._dispatcher = dispatcher
        self._logger = logger or _log
        self._status: Optional[ListenerStatus] = None
        self._thread: Optional[threading.Thread] = None
        self._stopping: Optional[threading.Event] = None
        self._lock = threading.Lock()

    def _run(self, start: int, end: int) -> list:
        events = []
        for event_type in self._get_types():
            try:
                events.extend(self._client.events_for_height_range(event_type, start, end))
            except Exception as exc:
                raise RuntimeError(f"error while fetching events: {exc}") from exc
        for event in events:
            self._dispatcher.trigger(event)
        return events

    def poll(self) -> list:
        """Handle the blocks added since the last poll once; return their events."""
        if self._status is None:
            self._status = self._store.get_listener_status()
        status = self._status
        current = self._client.latest_block_height()
        if current <= status.latest_height:
            return []
        start = status.latest_height + 1
        end = min(current, start + self._max_diff)
        events = self._run(start, end)
        status.latest_height = end
        self._store.update_listener_status(status)
        return events

    def _loop(self, stopping: threading.Event) -> None:
        while not stopping.wait(self._interval):
            try:
                self.poll()
            except Exception as exc:
                self._logger.error("%s", exc)

    def start(self) -> Listener:
        """Start polling in the background; does nothing if already running."""
        with self._lock:
            if self._thread is not None:
                return self
            self._status = self._store.get_listener_status()
            self._stopping = threading.Event()
            self._thread = threading.Thread(target=self._loop, args=(self._stopping,), daemon=True)
            self._thread.start()
        return self

    def stop(self) -> None:
        """Stop background polling."""
        with self._lock:
            if self._thread is None:
                raise RuntimeError("listener is not running")
            self._stopping.set()
            self._thread.join()
            self._thread = None
            self._stopping = None