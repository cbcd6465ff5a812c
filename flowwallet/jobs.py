"""Background jobs: their storage, a worker pool and the job service."""

from __future__ import annotations

import logging
import queue
import sqlite3
import threading
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Optional, Protocol

from .datastore import ListOptions, parse_list_options
from .errors import JobQueueFull, RecordNotFound, RequestError
from .status import Status

_log = logging.getLogger(__name__)


@dataclass
class JobResult:
    """What a job's process reports back."""

    result: str = ""
    transaction_id: str = ""


Process = Callable[[JobResult], None]


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Job:
    """A unit of work handled by the worker pool."""

    id: Optional[uuid.UUID] = None
    status: Status = Status.INIT
    error: str = ""
    result: str = ""
    transaction_id: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    do: Optional[Process] = field(default=None, repr=False, compare=False)
    _finished: threading.Event = field(
        default_factory=threading.Event, init=False, repr=False, compare=False
    )

    def to_json(self) -> dict:
        """Return the job as it is presented in HTTP responses."""
        return {
            "jobId": str(self.id) if self.id is not None else None,
            "status": str(self.status),
            "error": self.error,
            "result": self.result,
            "transactionId": self.transaction_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def wait(self, wait: bool) -> None:
        """If wait is true, block until the job has finished; raise if it failed."""
        if not wait:
            return
        if self.status == Status.ACCEPTED:
            self._finished.wait()
        if self.status == Status.ERROR:
            raise RuntimeError(self.error)


class JobStore(Protocol):
    """Persistence for jobs."""

    def jobs(self, options: ListOptions) -> list[Job]: ...

    def job(self, job_id: uuid.UUID) -> Job: ...

    def insert_job(self, job: Job) -> None: ...

    def update_job(self, job: Job) -> None: ...


_SCHEMA = """
CREATE TABLE IF NOT EXISTS jobs (
    id TEXT PRIMARY KEY,
    status INTEGER NOT NULL,
    error TEXT NOT NULL DEFAULT '',
    result TEXT NOT NULL DEFAULT '',
    transaction_id TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    deleted_at TEXT
)
"""
_COLUMNS = "id, status, error, result, transaction_id, created_at, updated_at"


class SqliteJobStore:
    """Job store backed by an SQLite connection."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._db = connection
        self._lock = threading.Lock()
        with self._lock, self._db:
            self._db.execute(_SCHEMA)
            self._db.execute("CREATE INDEX IF NOT EXISTS idx_jobs_deleted_at ON jobs (deleted_at)")

    @staticmethod
    def _from_row(row: tuple) -> Job:
        job_id, status, error, result, tx_id, created, updated = row
        return Job(
            id=uuid.UUID(job_id),
            status=Status(status),
            error=error,
            result=result,
            transaction_id=tx_id,
            created_at=datetime.fromisoformat(created),
            updated_at=datetime.fromisoformat(updated),
        )

    def jobs(self, options: ListOptions) -> list[Job]:
        """List jobs, newest first."""
        with self._lock:
            rows = self._db.execute(
                f"SELECT {_COLUMNS} FROM jobs WHERE deleted_at IS NULL "
                "ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?",
                (options.limit, options.offset),
            ).fetchall()
        return [self._from_row(row) for row in rows]

    def job(self, job_id: uuid.UUID) -> Job:
        """Fetch one job; raise RecordNotFound if it does not exist."""
        with self._lock:
            row = self._db.execute(
                f"SELECT {_COLUMNS} FROM jobs WHERE id = ? AND deleted_at IS NULL",
                (str(job_id),),
            ).fetchone()
        if row is None:
            raise RecordNotFound()
        return self._from_row(row)

    def insert_job(self, job: Job) -> None:
        """Insert a new job, giving it a fresh id and timestamps."""
        job.id = uuid.uuid4()
        job.created_at = job.updated_at = _now()
        with self._lock, self._db:
            self._db.execute(
                f"INSERT INTO jobs ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                self._values(job),
            )

    def update_job(self, job: Job) -> None:
        """Save the job, inserting it if it is not stored yet."""
        if job.id is None:
            job.id = uuid.uuid4()
        job.updated_at = _now()
        if job.created_at is None:
            job.created_at = job.updated_at
        with self._lock, self._db:
            self._db.execute(
                f"INSERT INTO jobs ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET status = excluded.status, "
                "error = excluded.error, result = excluded.result, "
                "transaction_id = excluded.transaction_id, updated_at = excluded.updated_at",
                self._values(job),
            )

    @staticmethod
    def _values(job: Job) -> tuple:
        return (
            str(job.id),
            int(job.status),
            job.error,
            job.result,
            job.transaction_id,
            job.created_at.isoformat(),
            job.updated_at.isoformat(),
        )


class WorkerPool:
    """A bounded queue of jobs processed by a fixed number of worker threads."""

    def __init__(
        self,
        store: JobStore,
        capacity: int,
        worker_count: int,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if capacity < 1:
            raise ValueError("worker queue capacity must be at least 1")
        self._store = store
        self._logger = logger or _log
        self._queue: queue.Queue[Optional[Job]] = queue.Queue(maxsize=capacity)
        self._workers = [
            threading.Thread(target=self._work, daemon=True) for _ in range(worker_count)
        ]
        for worker in self._workers:
            worker.start()

    def __enter__(self) -> WorkerPool:
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

    def _work(self) -> None:
        while (job := self._queue.get()) is not None:
            self._process(job)

    def _save(self, job: Job) -> None:
        try:
            self._store.update_job(job)
        except Exception:
            self._logger.warning("Could not update DB entry for Job %s", job.id)

    def _process(self, job: Job) -> None:
        result = JobResult()
        try:
            job.do(result)
        except Exception as exc:
            self._logger.error("[Job %s] Error while processing job: %s", job.id, exc)
            job.status = Status.ERROR
            job.error = str(exc)
        else:
            job.status = Status.COMPLETE
        finally:
            job.result = result.result
            job.transaction_id = result.transaction_id
        self._save(job)
        job._finished.set()

    def add_job(self, process: Process) -> Job:
        """Store and queue a job; raise JobQueueFull if the queue is full."""
        job = Job(do=process, status=Status.INIT)
        self._store.insert_job(job)

        job.status = Status.ACCEPTED
        self._save(job)
        try:
            self._queue.put_nowait(job)
        except queue.Full:
            job.status = Status.QUEUE_FULL
            self._save(job)
            raise JobQueueFull(str(job.status)) from None
        return job

    def stop(self) -> None:
        """Finish the queued jobs and stop the workers."""
        for _ in self._workers:
            self._queue.put(None)
        for worker in self._workers:
            worker.join()


class JobService:
    """Job queries as used by the HTTP handlers."""

    def __init__(self, store: JobStore) -> None:
        self._store = store

    def list(self, limit: int, offset: int) -> list[Job]:
        """Return stored jobs, newest first."""
        return self._store.jobs(parse_list_options(limit, offset))

    def details(self, job_id: str) -> Job:
        """Return the job with the given id."""
        try:
            parsed = uuid.UUID(job_id)
        except (ValueError, TypeError, AttributeError):
            raise RequestError(HTTPStatus.BAD_REQUEST, "invalid job id") from None
        try:
            return self._store.job(parsed)
        except RecordNotFound:
            raise RequestError(HTTPStatus.NOT_FOUND, "job not found") from None