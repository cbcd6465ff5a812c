"""Wallet accounts and their storage."""

from __future__ import annotations

import sqlite3
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from .datastore import ListOptions
from .errors import RecordNotFound
from .keys import SqliteKeyStore, Storable

_SCHEMA = """
CREATE TABLE IF NOT EXISTS accounts (
    address TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    deleted_at TEXT
)
"""


@dataclass
class Account:
    """An account managed by the wallet."""

    address: str
    keys: list[Storable] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_json(self) -> dict:
        """Return the account as it is presented in HTTP responses."""
        return {
            "address": self.address,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


class SqliteAccountStore:
    """Account store backed by an SQLite connection; keys go to the key table."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._db = connection
        self._lock = threading.Lock()
        self._keys = SqliteKeyStore(connection)
        with self._lock, self._db:
            self._db.execute(_SCHEMA)
            self._db.execute(
                "CREATE INDEX IF NOT EXISTS idx_accounts_deleted_at ON accounts (deleted_at)"
            )

    @staticmethod
    def _from_row(row: tuple) -> Account:
        address, created, updated = row
        return Account(
            address=address,
            created_at=datetime.fromisoformat(created),
            updated_at=datetime.fromisoformat(updated),
        )

    def accounts(self, options: ListOptions) -> list[Account]:
        """List accounts, newest first; keys are not loaded."""
        with self._lock:
            rows = self._db.execute(
                "SELECT address, created_at, updated_at FROM accounts WHERE deleted_at IS NULL "
                "ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?",
                (options.limit, options.offset),
            ).fetchall()
        return [self._from_row(row) for row in rows]

    def account(self, address: str) -> Account:
        """Fetch one account; raise RecordNotFound if it does not exist."""
        with self._lock:
            row = self._db.execute(
                "SELECT address, created_at, updated_at FROM accounts "
                "WHERE address = ? AND deleted_at IS NULL",
                (address,),
            ).fetchone()
        if row is None:
            raise RecordNotFound()
        return self._from_row(row)

    def insert_account(self, account: Account) -> None:
        """Store a new account together with its keys."""
        now = datetime.now(timezone.utc)
        account.created_at = account.created_at or now
        account.updated_at = account.updated_at or now
        with self._lock, self._db:
            self._db.execute(
                "INSERT INTO accounts (address, created_at, updated_at) VALUES (?, ?, ?)",
                (
                    account.address,
                    account.created_at.isoformat(timespec="microseconds"),
                    account.updated_at.isoformat(timespec="microseconds"),
                ),
            )
        for key in account.keys:
            self._keys.insert_key(account.address, key)