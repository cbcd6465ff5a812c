"""Account keys and their storage."""

from __future__ import annotations

import sqlite3
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from .errors import RecordNotFound

ACCOUNT_KEY_TYPE_LOCAL = "local"
ACCOUNT_KEY_TYPE_GOOGLE_KMS = "google_kms"


@dataclass
class Storable:
    """A private key as stored.

    The value is the encrypted private key for local keys, or the resource id
    for keys kept in a remote key management system.
    """

    index: int = 0
    type: str = ""
    value: bytes = field(default=b"", repr=False)
    sign_algo: str = ""
    hash_algo: str = ""
    account_address: str = ""
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class ProposalKey:
    """A key index of the admin account usable as transaction proposer."""

    key_index: int
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class PrivateKey:
    """An "in flight" key: its value is the plain private key or resource id."""

    index: int = 0
    type: str = ""
    value: str = field(default="", repr=False)
    sign_algo: str = ""
    hash_algo: str = ""


_STORABLE_SCHEMA = """
CREATE TABLE IF NOT EXISTS storable_keys (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    account_address TEXT NOT NULL DEFAULT '',
    "index" INTEGER NOT NULL DEFAULT 0,
    type TEXT NOT NULL DEFAULT '',
    value BLOB NOT NULL DEFAULT x'',
    sign_algo TEXT NOT NULL DEFAULT '',
    hash_algo TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    deleted_at TEXT
)
"""

_PROPOSAL_SCHEMA = """
CREATE TABLE IF NOT EXISTS proposal_keys (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    key_index INTEGER NOT NULL UNIQUE,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""

_STORABLE_COLUMNS = (
    'id, account_address, "index", type, value, sign_algo, hash_algo, created_at, updated_at'
)


def _stamp(moment: datetime) -> str:
    return moment.isoformat(timespec="microseconds")


class SqliteKeyStore:
    """Key store backed by an SQLite connection.

    Keys are handed out least recently used first; fetching a key marks it used.
    """

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._db = connection
        self._lock = threading.Lock()
        self._last: Optional[datetime] = None
        with self._lock, self._db:
            tables = {
                row[0]
                for row in self._db.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
            }
            if "storables" in tables and "storable_keys" not in tables:
                self._db.execute("ALTER TABLE storables RENAME TO storable_keys")
            self._db.execute(_STORABLE_SCHEMA)
            self._db.execute(
                "CREATE INDEX IF NOT EXISTS idx_storable_keys_account_address "
                "ON storable_keys (account_address)"
            )
            self._db.execute(
                'CREATE INDEX IF NOT EXISTS idx_storable_keys_index ON storable_keys ("index")'
            )
            self._db.execute(
                "CREATE INDEX IF NOT EXISTS idx_storable_keys_deleted_at "
                "ON storable_keys (deleted_at)"
            )
            self._db.execute(_PROPOSAL_SCHEMA)

    def _now(self) -> datetime:
        # Strictly increasing, so that "least recently used" is well defined.
        now = datetime.now(timezone.utc)
        if self._last is not None and now <= self._last:
            now = self._last + timedelta(microseconds=1)
        self._last = now
        return now

    @staticmethod
    def _from_row(row: tuple) -> Storable:
        key_id, address, index, key_type, value, sign_algo, hash_algo, created, updated = row
        return Storable(
            index=index,
            type=key_type,
            value=bytes(value),
            sign_algo=sign_algo,
            hash_algo=hash_algo,
            account_address=address,
            id=key_id,
            created_at=datetime.fromisoformat(created),
            updated_at=datetime.fromisoformat(updated),
        )

    def insert_key(self, address: str, key: Storable) -> None:
        """Store key as belonging to the account at address."""
        with self._lock, self._db:
            now = self._now()
            key.account_address = address
            key.created_at = key.created_at or now
            key.updated_at = now
            cursor = self._db.execute(
                'INSERT INTO storable_keys (account_address, "index", type, value, '
                "sign_algo, hash_algo, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    address,
                    key.index,
                    key.type,
                    bytes(key.value),
                    key.sign_algo,
                    key.hash_algo,
                    _stamp(key.created_at),
                    _stamp(key.updated_at),
                ),
            )
            key.id = cursor.lastrowid

    def account_key(self, address: str) -> Storable:
        """Return the least recently used key of an account and mark it used."""
        with self._lock, self._db:
            row = self._db.execute(
                f"SELECT {_STORABLE_COLUMNS} FROM storable_keys "
                "WHERE account_address = ? AND deleted_at IS NULL "
                "ORDER BY updated_at ASC, id ASC LIMIT 1",
                (address,),
            ).fetchone()
            if row is None:
                raise RecordNotFound()
            key = self._from_row(row)
            key.updated_at = self._now()
            self._db.execute(
                "UPDATE storable_keys SET updated_at = ? WHERE id = ?",
                (_stamp(key.updated_at), key.id),
            )
        return key

    def proposal_key(self) -> int:
        """Return the least recently used proposal key index and mark it used."""
        with self._lock, self._db:
            row = self._db.execute(
                "SELECT id, key_index FROM proposal_keys ORDER BY updated_at ASC, id ASC LIMIT 1"
            ).fetchone()
            if row is None:
                raise RecordNotFound()
            row_id, key_index = row
            self._db.execute(
                "UPDATE proposal_keys SET updated_at = ? WHERE id = ?",
                (_stamp(self._now()), row_id),
            )
        return key_index

    def insert_proposal_key(self, proposal_key: ProposalKey) -> None:
        """Store a proposal key; key indexes are unique."""
        with self._lock, self._db:
            now = self._now()
            proposal_key.created_at = proposal_key.created_at or now
            proposal_key.updated_at = now
            cursor = self._db.execute(
                "INSERT INTO proposal_keys (key_index, created_at, updated_at) VALUES (?, ?, ?)",
                (
                    proposal_key.key_index,
                    _stamp(proposal_key.created_at),
                    _stamp(proposal_key.updated_at),
                ),
            )
            proposal_key.id = cursor.lastrowid

    def delete_all_proposal_keys(self) -> None:
        """Remove every proposal key."""
        with self._lock, self._db:
            self._db.execute("DELETE FROM proposal_keys")