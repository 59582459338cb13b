"""Integration test for SQLite full workflow.

Covers: procedure scripts, load_procedure, parameter binding, record and
scalar mapping, multiple result sets, shared handlers and connection
ownership end-to-end against a real SQLite database file.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import pytest
from pydantic import BaseModel

from sproc_query import (
    AsyncDatabase,
    ConnectionConfig,
    ConnectionState,
    Database,
    ProcResults,
    execute_stored_non_query,
    execute_stored_proc,
    execute_stored_proc_async,
    execute_stored_proc_many_async,
)

# --- Test models ---


@dataclass
class User:
    id: int = 0
    name: Optional[str] = None


class UserScore(BaseModel):
    id: int = 0
    score: Optional[float] = None


# --- Fixtures ---


def status_of(db_path: Path, user_id: int) -> str:
    with sqlite3.connect(db_path) as conn:
        return conn.execute("SELECT status FROM users WHERE id = ?", (user_id,)).fetchone()[0]



@pytest.fixture
def procedures(write_procedure) -> None:
    write_procedure(
        "GetUsersByStatus.sql",
        "SELECT id AS Id, name AS Name, status AS Status FROM users "
        "WHERE status = :status ORDER BY id",
    )
    write_procedure(
        "reports/UserSummary.sql",
        """
        -- first result set: users, second: their count
        SELECT id, name FROM users WHERE status = :status ORDER BY id;
        SELECT COUNT(*) AS total FROM users WHERE status = :status;
        """,
    )
    write_procedure("GetScores.sql", "SELECT id, score FROM users ORDER BY id")
    write_procedure("RenameUser.sql", "UPDATE users SET name = :name WHERE id = :id")
    write_procedure("CountUsers.sql", "SELECT COUNT(*) FROM users")
    write_procedure(
        "MarkSeen.sql",
        """
        SELECT id, name FROM users WHERE id = :id;
        UPDATE users SET status = 'seen' WHERE id = :id
        """,
    )
    write_procedure(
        "TouchBob.sql", "SELECT 1 AS x; UPDATE users SET status = 'touched' WHERE id = 2"
    )
    write_procedure(
        "RenameActive.sql",
        "SELECT COUNT(*) FROM users; UPDATE users SET name = :name WHERE status = 'active'",
    )


@pytest.fixture
def db(sqlite_config: ConnectionConfig, procedures: None) -> Database:
    return Database.from_config(sqlite_config)


@pytest.fixture
def async_db(sqlite_config: ConnectionConfig, procedures: None) -> AsyncDatabase:
    return AsyncDatabase.from_config(sqlite_config)


class TestSqliteSync:
    def test_get_users_by_status(self, db: Database) -> None:
        users: list[User] = []
        command = db.load_procedure("GetUsersByStatus").with_param("status", "active")
        execute_stored_proc(command, lambda results: users.extend(results.read_rows(User)))

        assert users == [User(1, "Alice"), User(2, "Bob"), User(3, "Carol")]
        assert db.connection.state is ConnectionState.CLOSED
        assert command.disposed

    def test_no_matching_rows(self, db: Database) -> None:
        users: list[User] = ["sentinel"]  # type: ignore[list-item]
        command = db.load_procedure("GetUsersByStatus").with_param("status", "banned")

        def handler(results: ProcResults) -> None:
            users[:] = results.read_rows(User)

        command.execute(handler)
        assert users == []

    def test_null_values_and_pydantic(self, db: Database) -> None:
        scores: list[UserScore] = []
        db.load_procedure("GetScores").execute(
            lambda results: scores.extend(results.read_rows(UserScore))
        )
        assert [s.score for s in scores] == [9.5, None, 7.0, 3.0]

    def test_multiple_result_sets(self, db: Database) -> None:
        out: dict[str, object] = {}

        def handler(results: ProcResults) -> None:
            out["users"] = results.read_rows(User)
            results.advance()
            out["total"] = results.read_scalar(int)

        db.load_procedure("reports.UserSummary").with_param("status", "active").execute(handler)
        names = [u.name for u in out["users"]]  # type: ignore[attr-defined]
        assert names == ["Alice", "Bob", "Carol"]
        assert out["total"] == 3

    def test_scalar(self, db: Database) -> None:
        counts: list[int | None] = []
        db.load_procedure("CountUsers").execute(
            lambda results: counts.append(results.read_scalar(int))
        )
        assert counts == [4]

    def test_non_query(self, db: Database, db_path: Path) -> None:
        command = (
            db.load_procedure("RenameUser").with_param("id", 2).with_param("name", "Robert")
        )
        assert execute_stored_non_query(command) == 1

        with sqlite3.connect(db_path) as conn:
            assert conn.execute("SELECT name FROM users WHERE id = 2").fetchone() == ("Robert",)

    def test_trailing_statement_runs_after_last_result_set(
        self, db: Database, db_path: Path
    ) -> None:
        users: list[User] = []
        command = db.load_procedure("MarkSeen").with_param("id", 1)
        execute_stored_proc(command, lambda results: users.extend(results.read_rows(User)))

        assert users == [User(1, "Alice")]
        assert status_of(db_path, 1) == "seen"

    def test_non_query_script_with_select(self, db: Database, db_path: Path) -> None:
        command = db.load_procedure("RenameActive").with_param("name", "Member")
        assert execute_stored_non_query(command) == 3
        with sqlite3.connect(db_path) as conn:
            names = conn.execute("SELECT name FROM users ORDER BY id").fetchall()
        assert names == [("Member",), ("Member",), ("Member",), ("Dave",)]

    def test_caller_managed_connection(self, db: Database) -> None:
        seen: list[int | None] = []
        with db.connection:
            for _ in range(2):
                db.load_procedure("CountUsers").execute(
                    lambda results: seen.append(results.read_scalar(int))
                )
                assert db.connection.state is ConnectionState.OPEN
        assert seen == [4, 4]
        assert db.connection.state is ConnectionState.CLOSED


class TestSqliteAsync:
    async def test_get_users_by_status(self, async_db: AsyncDatabase) -> None:
        users: list[User] = []

        async def handler(results: ProcResults) -> None:
            users.extend(results.read_rows(User))

        command = async_db.load_procedure("GetUsersByStatus").with_param("status", "active")
        await execute_stored_proc_async(command, handler)

        assert [u.id for u in users] == [1, 2, 3]
        assert async_db.connection.state is ConnectionState.CLOSED

    async def test_two_handlers_two_result_sets(self, async_db: AsyncDatabase) -> None:
        out: dict[str, object] = {}

        async def read_users(results: ProcResults) -> None:
            out["users"] = results.read_rows(User)
            await results.advance_async()

        def read_total(results: ProcResults) -> None:
            out["total"] = results.read_scalar(int)

        command = async_db.load_procedure("reports.UserSummary").with_param("status", "active")
        await execute_stored_proc_many_async(command, [read_users, read_total])

        assert len(out["users"]) == 3  # type: ignore[arg-type]
        assert out["total"] == 3

    async def test_non_query(self, async_db: AsyncDatabase) -> None:
        command = (
            async_db.load_procedure("RenameUser").with_param("id", 9).with_param("name", "Nobody")
        )
        assert await command.execute_non_query_async() == 0

    async def test_sync_handlers_advance(self, async_db: AsyncDatabase) -> None:
        out: list[object] = []

        def read_first(results: ProcResults) -> None:
            out.append(results.read_scalar(int))
            out.append(results.advance())

        def read_total(results: ProcResults) -> None:
            out.append(results.read_scalar(int))

        command = async_db.load_procedure("reports.UserSummary").with_param("status", "active")
        await execute_stored_proc_many_async(command, [read_first, read_total])
        assert out == [1, True, 3]

    async def test_trailing_statement_runs_after_last_result_set(
        self, async_db: AsyncDatabase, db_path: Path
    ) -> None:
        users: list[User] = []
        command = async_db.load_procedure("MarkSeen").with_param("id", 3)
        await execute_stored_proc_async(
            command, lambda results: users.extend(results.read_rows(User))
        )
        assert users == [User(3, "Carol")]
        assert status_of(db_path, 3) == "seen"

    async def test_empty_handler_list_runs_whole_script(
        self, async_db: AsyncDatabase, db_path: Path
    ) -> None:
        await execute_stored_proc_many_async(async_db.load_procedure("TouchBob"), [])
        assert status_of(db_path, 2) == "touched"
        assert async_db.connection.state is ConnectionState.CLOSED

    async def test_non_query_script_with_select(
        self, async_db: AsyncDatabase, db_path: Path
    ) -> None:
        command = async_db.load_procedure("RenameActive").with_param("name", "Member")
        assert await command.execute_non_query_async() == 3
        with sqlite3.connect(db_path) as conn:
            assert conn.execute("SELECT name FROM users WHERE id = 4").fetchone() == ("Dave",)
