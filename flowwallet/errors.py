"""Exception types shared across the wallet service."""

from __future__ import annotations

from http import HTTPStatus


class RequestError(Exception):
    """An error that maps directly to an HTTP status code."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = int(status_code)
        self.message = message

    def __str__(self) -> str:
        return self.message

    @property
    def status(self) -> HTTPStatus:
        return HTTPStatus(self.status_code)


class JobQueueFull(Exception):
    """Raised when the worker pool cannot accept another job."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class RecordNotFound(LookupError):
    """Raised by stores when a requested record does not exist."""

    def __init__(self, message: str = "record not found") -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message