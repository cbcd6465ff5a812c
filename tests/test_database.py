import sqlite3

import pytest

from flowwallet.database import close_database, open_database


def test_open_sqlite_in_memory():
    connection = open_database("sqlite", ":memory:")
    try:
        assert connection.execute("SELECT 1").fetchone() == (1,)
    finally:
        close_database(connection)


def test_open_sqlite_file_creates_file(tmp_path):
    path = tmp_path / "wallet.db"
    connection = open_database("sqlite", str(path))
    with connection:
        connection.execute("CREATE TABLE t (x INTEGER)")
    close_database(connection)
    assert path.exists()


def test_unsupported_type_raises():
    with pytest.raises(ValueError, match="database type 'oracle' not supported"):
        open_database("oracle", "whatever")


def test_closed_connection_cannot_be_used():
    connection = open_database("sqlite", ":memory:")
    close_database(connection)
    with pytest.raises(sqlite3.ProgrammingError):
        connection.execute("SELECT 1")