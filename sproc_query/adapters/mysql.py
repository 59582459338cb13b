"""MySQL adapter - sync (mysql-connector-python) and async (aiomysql).

Procedures are invoked through the driver's ``callproc`` with the bound
parameter values in declaration order; MySQL binds procedure arguments by
position. Every SELECT inside the procedure yields one result set.
"""

from __future__ import annotations

from typing import Any

from sproc_query.core.command import ProcedureCommand
from sproc_query.core.connection import ConnectionConfig
from sproc_query.core.enums import CommandType
from sproc_query.core.reader import BufferedReader, CursorReader
from sproc_query.core.sanitizer import validate_procedure_name

_SET_TIMEOUT = "SET SESSION MAX_EXECUTION_TIME = %s"


def _arguments(command: ProcedureCommand) -> list[Any]:
    return [p.bind_value for p in command.parameters.bound()]


def _timeout_ms(command: ProcedureCommand) -> int:
    return command.command_timeout * 1000


class MysqlSyncAdapter:
    """Synchronous MySQL adapter using mysql-connector-python."""

    def connect(self, config: ConnectionConfig) -> Any:
        import mysql.connector

        return mysql.connector.connect(
            host=config.host,
            port=config.port,
            user=config.user,
            password=config.password,
            database=config.database,
            autocommit=config.autocommit,
            **config.extra,
        )

    def close(self, connection: Any) -> None:
        connection.close()

    def _cursor(self, connection: Any, command: ProcedureCommand) -> Any:
        cursor = connection.cursor()
        cursor.execute(_SET_TIMEOUT, (_timeout_ms(command),))
        return cursor

    def call_procedure(self, connection: Any, command: ProcedureCommand) -> CursorReader:
        cursor = self._cursor(connection, command)
        try:
            if command.command_type is CommandType.TEXT:
                cursor.execute(command.command_text, command.parameters.as_dict())
                return CursorReader([cursor])
            cursor.callproc(validate_procedure_name(command.command_text), _arguments(command))
        except BaseException:
            cursor.close()
            raise
        return CursorReader(cursor.stored_results(), on_close=cursor.close)

    def call_non_query(self, connection: Any, command: ProcedureCommand) -> int:
        cursor = self._cursor(connection, command)
        try:
            if command.command_type is CommandType.TEXT:
                cursor.execute(command.command_text, command.parameters.as_dict())
            else:
                name = validate_procedure_name(command.command_text)
                cursor.callproc(name, _arguments(command))
            return cursor.rowcount
        finally:
            cursor.close()


class MysqlAsyncAdapter:
    """Asynchronous MySQL adapter using aiomysql."""

    async def connect_async(self, config: ConnectionConfig) -> Any:
        import aiomysql

        return await aiomysql.connect(
            host=config.host or "localhost",
            port=config.port or 3306,
            user=config.user,
            password=config.password or "",
            db=config.database,
            autocommit=config.autocommit,
            **config.extra,
        )

    async def close_async(self, connection: Any) -> None:
        connection.close()

    async def _cursor(self, connection: Any, command: ProcedureCommand) -> Any:
        cursor = await connection.cursor()
        await cursor.execute(_SET_TIMEOUT, (_timeout_ms(command),))
        return cursor

    async def _run(self, cursor: Any, command: ProcedureCommand) -> None:
        if command.command_type is CommandType.TEXT:
            await cursor.execute(command.command_text, command.parameters.as_dict())
        else:
            name = validate_procedure_name(command.command_text)
            await cursor.callproc(name, _arguments(command))

    async def call_procedure_async(
        self, connection: Any, command: ProcedureCommand
    ) -> BufferedReader:
        cursor = await self._cursor(connection, command)
        try:
            await self._run(cursor, command)
        except BaseException:
            await cursor.close()
            raise

        async def result_sets():  # type: ignore[no-untyped-def]
            try:
                while True:
                    rows = await cursor.fetchall() if cursor.description is not None else []
                    yield cursor.description, rows
                    if not await cursor.nextset():
                        break
            finally:
                await cursor.close()

        return await BufferedReader.create(result_sets())

    async def call_non_query_async(self, connection: Any, command: ProcedureCommand) -> int:
        cursor = await self._cursor(connection, command)
        try:
            await self._run(cursor, command)
            return cursor.rowcount
        finally:
            await cursor.close()
