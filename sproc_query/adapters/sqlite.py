"""SQLite adapter - sync (sqlite3 stdlib) and async (aiosqlite).

SQLite has no stored procedures: a procedure is a script loaded by
ProcedureRegistry from ``ConnectionConfig.procedures_dir``. Its statements
run in order and every statement that returns rows yields one result set.
Parameters bind by name (``:status``); every statement receives the full
parameter dict. TEXT commands run ``command_text`` as the script.

The command timeout is enforced with a progress handler that interrupts
the running statement once the deadline has passed.
"""

from __future__ import annotations

import sqlite3
import time
from collections.abc import Callable
from typing import Any

from sproc_query.core.command import ProcedureCommand
from sproc_query.core.connection import ConnectionConfig
from sproc_query.core.enums import CommandType
from sproc_query.core.exceptions import AdapterError
from sproc_query.core.reader import BufferedReader, CursorReader
from sproc_query.core.registry import ProcedureRegistry
from sproc_query.core.sanitizer import split_statements

# VM instructions between deadline checks
_PROGRESS_STEPS = 10_000


def _deadline_handler(timeout: int) -> Callable[[], int]:
    deadline = time.monotonic() + timeout

    def handler() -> int:
        return 1 if time.monotonic() > deadline else 0

    return handler


def _connect_kwargs(config: ConnectionConfig) -> dict[str, Any]:
    kwargs = dict(config.extra)
    if config.autocommit:
        kwargs["isolation_level"] = None
    return kwargs


class _ScriptResolver:
    """Resolves a command to the statements it runs."""

    def __init__(self, registry: ProcedureRegistry | None) -> None:
        self.registry = registry

    def configure(self, config: ConnectionConfig) -> None:
        if self.registry is None and config.procedures_dir is not None:
            self.registry = ProcedureRegistry(config.procedures_dir)

    def statements(self, command: ProcedureCommand) -> list[str]:
        if command.command_type is CommandType.TEXT:
            return split_statements(command.command_text)
        if self.registry is None:
            raise AdapterError("SQLite procedures require ConnectionConfig.procedures_dir")
        return self.registry.get(command.command_text)


class SqliteSyncAdapter:
    """Synchronous SQLite adapter using stdlib sqlite3."""

    def __init__(self, registry: ProcedureRegistry | None = None) -> None:
        self._scripts = _ScriptResolver(registry)

    def connect(self, config: ConnectionConfig) -> sqlite3.Connection:
        self._scripts.configure(config)
        return sqlite3.connect(config.database, **_connect_kwargs(config))

    def close(self, connection: sqlite3.Connection) -> None:
        connection.close()

    def _apply_timeout(self, connection: sqlite3.Connection, timeout: int) -> None:
        if timeout > 0:
            connection.set_progress_handler(_deadline_handler(timeout), _PROGRESS_STEPS)

    def call_procedure(
        self, connection: sqlite3.Connection, command: ProcedureCommand
    ) -> CursorReader:
        """Run the script lazily; statements not reached by the handler run on close."""
        statements = self._scripts.statements(command)
        params = command.parameters.as_dict()

        def clear_timeout() -> None:
            connection.set_progress_handler(None, 0)

        self._apply_timeout(connection, command.command_timeout)
        try:
            return CursorReader(
                (connection.execute(statement, params) for statement in statements),
                on_close=clear_timeout,
            )
        except BaseException:
            clear_timeout()
            raise

    def call_non_query(self, connection: sqlite3.Connection, command: ProcedureCommand) -> int:
        """Run every statement; returns the summed row count of DML statements."""
        statements = self._scripts.statements(command)
        params = command.parameters.as_dict()
        affected = -1

        self._apply_timeout(connection, command.command_timeout)
        try:
            for statement in statements:
                cursor = connection.execute(statement, params)
                try:
                    if cursor.rowcount >= 0:
                        affected = max(affected, 0) + cursor.rowcount
                finally:
                    cursor.close()
        finally:
            connection.set_progress_handler(None, 0)
        return affected


class SqliteAsyncAdapter:
    """Asynchronous SQLite adapter using aiosqlite."""

    def __init__(self, registry: ProcedureRegistry | None = None) -> None:
        self._scripts = _ScriptResolver(registry)

    async def connect_async(self, config: ConnectionConfig) -> Any:
        import aiosqlite

        self._scripts.configure(config)
        return await aiosqlite.connect(config.database, **_connect_kwargs(config))

    async def close_async(self, connection: Any) -> None:
        await connection.close()

    async def _apply_timeout(self, connection: Any, timeout: int) -> None:
        if timeout > 0:
            await connection.set_progress_handler(_deadline_handler(timeout), _PROGRESS_STEPS)

    async def call_procedure_async(
        self, connection: Any, command: ProcedureCommand
    ) -> BufferedReader:
        """Run the whole script up front, buffering every result set."""
        statements = self._scripts.statements(command)
        params = command.parameters.as_dict()

        async def result_sets():  # type: ignore[no-untyped-def]
            for statement in statements:
                cursor = await connection.execute(statement, params)
                try:
                    if cursor.description is None:
                        continue
                    rows = await cursor.fetchall()
                    yield cursor.description, rows
                finally:
                    await cursor.close()

        async def clear_timeout() -> None:
            await connection.set_progress_handler(None, 0)

        await self._apply_timeout(connection, command.command_timeout)
        try:
            return await BufferedReader.create(result_sets(), on_close=clear_timeout)
        except BaseException:
            await clear_timeout()
            raise

    async def call_non_query_async(self, connection: Any, command: ProcedureCommand) -> int:
        """Run every statement; returns the summed row count of DML statements."""
        statements = self._scripts.statements(command)
        params = command.parameters.as_dict()
        affected = -1

        await self._apply_timeout(connection, command.command_timeout)
        try:
            for statement in statements:
                cursor = await connection.execute(statement, params)
                try:
                    if cursor.rowcount >= 0:
                        affected = max(affected, 0) + cursor.rowcount
                finally:
                    await cursor.close()
        finally:
            await connection.set_progress_handler(None, 0)
        return affected
