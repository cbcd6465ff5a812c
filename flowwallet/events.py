"""In-process event dispatchers."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

_log = logging.getLogger(__name__)

Handler = Callable[[Any], None]


class EventDispatcher:
    """Calls every registered handler, each in its own thread, on trigger."""

    def __init__(self, name: str, *, warn_when_unhandled: bool = False) -> None:
        self.name = name
        self._warn_when_unhandled = warn_when_unhandled
        self._handlers: list[Handler] = []
        self._lock = threading.Lock()

    def register(self, handler: Handler) -> None:
        """Add a handler for this event."""
        with self._lock:
            self._handlers.append(handler)

    def trigger(self, payload: Any) -> list[threading.Thread]:
        """Send payload to every handler; return the threads running them."""
        with self._lock:
            handlers = list(self._handlers)
        if not handlers and self._warn_when_unhandled:
            _log.warning("no listeners for %s", self.name)
        threads = [
            threading.Thread(target=handler, args=(payload,), daemon=True) for handler in handlers
        ]
        for thread in threads:
            thread.start()
        return threads


@dataclass(frozen=True)
class AccountAddedPayload:
    """Announces that an account was added to the wallet."""

    address: str


ACCOUNT_ADDED = EventDispatcher("account added")
CHAIN_EVENT = EventDispatcher("chain events", warn_when_unhandled=True)