"""HTTP response helpers and the job handlers."""

from __future__ import annotations

import json
import logging
import re
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from http import HTTPStatus
from typing import Any, Optional

from .errors import RequestError
from .jobs import JobService

SYNC_QUERY_PARAMETER = "sync"
_TEXT = "text/plain; charset=utf-8"
_JSON = "application/json"
_INTEGER = re.compile(r"[+-]?\d+")


@dataclass(frozen=True)
class Response:
    """An HTTP response ready to be written."""

    status: int
    body: str
    content_type: str


def error_response(error: BaseException, logger: Optional[logging.Logger] = None) -> Response:
    """Turn an exception into an error response."""
    if logger is not None:
        logger.error("Error: %s", error)
    if isinstance(error, RequestError):
        return Response(error.status_code, f"{error}\n", _TEXT)
    if "record not found" in str(error):
        return Response(HTTPStatus.NOT_FOUND, "record not found\n", _TEXT)
    return Response(HTTPStatus.BAD_REQUEST, f"{error}\n", _TEXT)


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    raise TypeError(f"cannot encode {type(value).__name__}")


def json_response(status: int, body: Any) -> Response:
    """Encode body as a JSON response."""
    return Response(int(status), json.dumps(body, default=_encode) + "\n", _JSON)


def check_non_empty_body(body: Optional[bytes | str]) -> None:
    """Raise a 400 RequestError if the request has no body."""
    if body is None or len(body) == 0:
        raise RequestError(HTTPStatus.BAD_REQUEST, "empty body")


def _int_param(query: Mapping[str, str], name: str) -> int:
    raw = query.get(name, "")
    return int(raw) if _INTEGER.fullmatch(raw) else 0


class JobsHandler:
    """HTTP endpoints for listing and inspecting jobs."""

    def __init__(self, service: JobService, logger: Optional[logging.Logger] = None) -> None:
        self._service = service
        self._logger = logger

    def list(self, query: Mapping[str, str]) -> Response:
        """List jobs, honouring the limit and offset query parameters."""
        try:
            jobs = self._service.list(_int_param(query, "limit"), _int_param(query, "offset"))
        except Exception as exc:
            return error_response(exc, self._logger)
        return json_response(HTTPStatus.OK, [job.to_json() for job in jobs])

    def details(self, job_id: str) -> Response:
        """Describe the job with the given id."""
        try:
            job = self._service.details(job_id)
        except Exception as exc:
            return error_response(exc, self._logger)
        return json_response(HTTPStatus.OK, job.to_json())