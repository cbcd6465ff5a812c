"""Opening and closing the service database."""

from __future__ import annotations

import sqlite3

SQLITE = "sqlite"


def open_database(database_type: str, dsn: str) -> sqlite3.Connection:
    """Open a database connection of the given type.

    The connection may be shared between threads; the stores serialise access.
    """
    if database_type != SQLITE:
        raise ValueError(f"database type '{database_type}' not supported")
    return sqlite3.connect(dsn, check_same_thread=False)


def close_database(connection: sqlite3.Connection) -> None:
    """Close a connection opened by open_database."""
    try:
        connection.close()
    except sqlite3.Error as exc:
        raise RuntimeError("unable to close database") from exc