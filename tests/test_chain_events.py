import queue
import time

import pytest

from flowwallet.chain_events import Listener, ListenerStatus, SqliteListenerStore
from flowwallet.database import open_database
from flowwallet.events import EventDispatcher

DEPOSITED = "A.0ae53cb6e3f42a79.FlowToken.TokensDeposited"
WITHDRAWN = "A.0ae53cb6e3f42a79.FlowToken.TokensWithdrawn"
MAX_DIFF = 10


class FakeClient:
    def __init__(self, height, events=(), fail=False):
        self.height = height
        self.events = list(events)
        self.fail = fail
        self.queries = []

    def latest_block_height(self):
        return self.height

    def events_for_height_range(self, event_type, start, end):
        self.queries.append((event_type, start, end))
        if self.fail:
            raise ConnectionError("unreachable")
        return [
            payload
            for kind, height, payload in self.events
            if kind == event_type and start <= height <= end
        ]


@pytest.fixture
def connection():
    conn = open_database("sqlite", ":memory:")
    yield conn
    conn.close()


@pytest.fixture
def store(connection):
    return SqliteListenerStore(connection)


@pytest.fixture
def dispatcher():
    return EventDispatcher("test")


def make_listener(client, store, dispatcher, types=(DEPOSITED,), max_diff=MAX_DIFF, interval=0.01):
    return Listener(client, store, max_diff, interval, lambda: list(types), dispatcher)


def test_status_created_once(store):
    first = store.get_listener_status()
    second = store.get_listener_status()
    assert first.latest_height == 0
    assert first.id == second.id


def test_status_update_persists(store, connection):
    status = store.get_listener_status()
    status.latest_height = 42
    store.update_listener_status(status)
    assert SqliteListenerStore(connection).get_listener_status().latest_height == 42


def test_update_unsaved_status_inserts(store):
    status = ListenerStatus(latest_height=7)
    store.update_listener_status(status)
    assert store.get_listener_status().latest_height == 7


def test_poll_limits_range(store, dispatcher):
    client = FakeClient(height=100)
    listener = make_listener(client, store, dispatcher)
    listener.poll()
    assert client.queries == [(DEPOSITED, 1, 1 + MAX_DIFF)]
    assert store.get_listener_status().latest_height == 1 + MAX_DIFF


def test_poll_stops_at_current_height(store, dispatcher):
    client = FakeClient(height=3)
    make_listener(client, store, dispatcher).poll()
    assert client.queries == [(DEPOSITED, 1, 3)]
    assert store.get_listener_status().latest_height == 3


def test_successive_polls_continue(store, dispatcher):
    client = FakeClient(height=5)
    listener = make_listener(client, store, dispatcher, max_diff=1)
    for _ in range(4):
        listener.poll()
    assert [(start, end) for _, start, end in client.queries] == [(1, 2), (3, 4), (5, 5)]


def test_poll_without_new_blocks(store, dispatcher):
    client = FakeClient(height=0)
    assert make_listener(client, store, dispatcher).poll() == []
    assert client.queries == []


def test_poll_dispatches_events(store, dispatcher):
    received = queue.Queue()
    dispatcher.register(received.put)
    client = FakeClient(
        height=4,
        events=[(WITHDRAWN, 2, "withdrawn"), (DEPOSITED, 3, "deposited"), (DEPOSITED, 9, "later")],
    )
    listener = make_listener(client, store, dispatcher, types=(DEPOSITED, WITHDRAWN))
    events = listener.poll()
    assert events == ["deposited", "withdrawn"]
    got = {received.get(timeout=5), received.get(timeout=5)}
    assert got == {"deposited", "withdrawn"}


def test_fetch_failure_keeps_status(store, dispatcher):
    client = FakeClient(height=5, fail=True)
    listener = make_listener(client, store, dispatcher)
    with pytest.raises(RuntimeError, match="error while fetching events"):
        listener.poll()
    assert store.get_listener_status().latest_height == 0


def test_start_and_stop(store, dispatcher):
    client = FakeClient(height=5)
    listener = make_listener(client, store, dispatcher)
    assert listener.start() is listener
    assert listener.start() is listener
    deadline = time.monotonic() + 5
    while store.get_listener_status().latest_height < 5 and time.monotonic() < deadline:
        time.sleep(0.01)
    listener.stop()
    assert store.get_listener_status().latest_height == 5


def test_stop_without_start(store, dispatcher):
    listener = make_listener(FakeClient(height=0), store, dispatcher)
    with pytest.raises(RuntimeError, match="not running"):
        listener.stop()