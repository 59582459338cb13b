"""PostgreSQL adapter - sync and async using psycopg (v3+).

Procedures that return rows are PostgreSQL functions and are called with
``SELECT * FROM name(arg => %(arg)s, ...)``. Non-query calls use
``CALL name(...)``. Parameters bind by name using named notation, so their
order does not matter. TEXT commands run ``command_text`` unchanged and may
return several result sets.
"""

from __future__ import annotations

from typing import Any

from sproc_query.core.command import ProcedureCommand
from sproc_query.core.connection import ConnectionConfig
from sproc_query.core.enums import CommandType
from sproc_query.core.reader import BufferedReader, CursorReader
from sproc_query.core.sanitizer import validate_parameter_name, validate_procedure_name

_SET_TIMEOUT = "SELECT set_config('statement_timeout', %s, false)"


def _build_conninfo(config: ConnectionConfig) -> str:
    """Build a libpq connection string from config fields."""
    parts: list[str] = []
    if config.host is not None:
        parts.append(f"host={config.host}")
    if config.port is not None:
        parts.append(f"port={config.port}")
    if config.user is not None:
        parts.append(f"user={config.user}")
    if config.password is not None:
        parts.append(f"password={config.password}")
    parts.append(f"dbname={config.database}")
    return " ".join(parts)


def _argument_list(command: ProcedureCommand) -> str:
    names = [validate_parameter_name(p.bind_name) for p in command.parameters.bound()]
    return ", ".join(f"{name} => %({name})s" for name in names)


def _statement(command: ProcedureCommand, verb: str) -> str:
    """Build the SQL for *command*; *verb* is ``SELECT * FROM`` or ``CALL``."""
    if command.command_type is CommandType.TEXT:
        return command.command_text
    name = validate_procedure_name(command.command_text)
    return f"{verb} {name}({_argument_list(command)})"


def _timeout_ms(command: ProcedureCommand) -> str:
    return str(command.command_timeout * 1000)


class PostgresqlSyncAdapter:
    """Synchronous PostgreSQL adapter using psycopg (v3+)."""

    def connect(self, config: ConnectionConfig) -> Any:
        import psycopg

        return psycopg.connect(
            _build_conninfo(config), autocommit=config.autocommit, **config.extra
        )

    def close(self, connection: Any) -> None:
        connection.close()

    def call_procedure(self, connection: Any, command: ProcedureCommand) -> CursorReader:
        sql = _statement(command, "SELECT * FROM")
        params = command.parameters.as_dict()
        connection.execute(_SET_TIMEOUT, (_timeout_ms(command),))
        cursor = connection.execute(sql, params or None)

        def result_sets():  # type: ignore[no-untyped-def]
            yield cursor
            while cursor.nextset():
                yield cursor

        return CursorReader(result_sets())

    def call_non_query(self, connection: Any, command: ProcedureCommand) -> int:
        sql = _statement(command, "CALL")
        connection.execute(_SET_TIMEOUT, (_timeout_ms(command),))
        with connection.execute(sql, command.parameters.as_dict() or None) as cursor:
            return cursor.rowcount


class PostgresqlAsyncAdapter:
    """Asynchronous PostgreSQL adapter using psycopg (v3+) async support."""

    async def connect_async(self, config: ConnectionConfig) -> Any:
        import psycopg

        return await psycopg.AsyncConnection.connect(
            _build_conninfo(config), autocommit=config.autocommit, **config.extra
        )

    async def close_async(self, connection: Any) -> None:
        await connection.close()

    async def call_procedure_async(
        self, connection: Any, command: ProcedureCommand
    ) -> BufferedReader:
        sql = _statement(command, "SELECT * FROM")
        params = command.parameters.as_dict()
        await connection.execute(_SET_TIMEOUT, (_timeout_ms(command),))
        cursor = await connection.execute(sql, params or None)

        async def result_sets():  # type: ignore[no-untyped-def]
            try:
                while True:
                    rows = await cursor.fetchall() if cursor.description is not None else []
                    yield cursor.description, rows
                    if not cursor.nextset():
                        break
            finally:
                await cursor.close()

        return await BufferedReader.create(result_sets())

    async def call_non_query_async(self, connection: Any, command: ProcedureCommand) -> int:
        sql = _statement(command, "CALL")
        await connection.execute(_SET_TIMEOUT, (_timeout_ms(command),))
        cursor = await connection.execute(sql, command.parameters.as_dict() or None)
        try:
            return cursor.rowcount
        finally:
            await cursor.close()
