"""Job status values and their text form."""

from __future__ import annotations

import json
from enum import IntEnum


class Status(IntEnum):
    """Lifecycle state of a job."""

    UNKNOWN = 0
    INIT = 1
    ACCEPTED = 2
    NO_AVAILABLE_WORKERS = 3
    QUEUE_FULL = 4
    ERROR = 5
    COMPLETE = 6

    def __str__(self) -> str:
        return _LABELS[self]

    def to_json(self) -> str:
        """Return the JSON encoding of the status label."""
        return json.dumps(str(self))


_LABELS = {
    Status.UNKNOWN: "Unknown",
    Status.INIT: "Init",
    Status.ACCEPTED: "Accepted",
    Status.NO_AVAILABLE_WORKERS: "NoAvailableWorkers",
    Status.QUEUE_FULL: "QueueFull",
    Status.ERROR: "Error",
    Status.COMPLETE: "Complete",
}

_BY_TEXT = {label.lower(): status for status, label in _LABELS.items()}


def status_from_text(text: str) -> Status:
    """Parse a status label case-insensitively; unrecognised text is UNKNOWN."""
    return _BY_TEXT.get(text.lower(), Status.UNKNOWN)