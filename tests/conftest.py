"""Shared test fixtures."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from sproc_query.core.connection import ConnectionConfig


@pytest.fixture
def tmp_proc_dir(tmp_path: Path) -> Path:
    """Temporary directory for procedure scripts."""
    return tmp_path / "procedures"


@pytest.fixture
def write_procedure(tmp_proc_dir: Path):
    """Helper to write procedure scripts into the temp directory.

    Usage:
        write_procedure("GetUsersByStatus.sql", "SELECT * FROM users WHERE status = :status")
    """

    def _write(relative_path: str, content: str) -> Path:
        file_path = tmp_proc_dir / relative_path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding="utf-8")
        return file_path

    return _write


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """SQLite database file seeded with a users table.

    A file is used instead of ``:memory:`` because managed executions close
    the connection, which would discard an in-memory database.
    """
    path = tmp_path / "app.db"
    conn = sqlite3.connect(path)
    conn.executescript(
        """
        CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT, status TEXT, score REAL);
        INSERT INTO users VALUES (1, 'Alice', 'active', 9.5);
        INSERT INTO users VALUES (2, 'Bob', 'active', NULL);
        INSERT INTO users VALUES (3, 'Carol', 'active', 7.0);
        INSERT INTO users VALUES (4, 'Dave', 'inactive', 3.0);
        """
    )
    conn.commit()
    conn.close()
    return path


@pytest.fixture
def sqlite_config(db_path: Path, tmp_proc_dir: Path) -> ConnectionConfig:
    """SQLite connection config pointing at the seeded database and procedure dir."""
    tmp_proc_dir.mkdir(parents=True, exist_ok=True)
    return ConnectionConfig(driver="sqlite", database=str(db_path), procedures_dir=tmp_proc_dir)
