"""Oracle adapter - sync and async using oracledb.

Procedures are called with ``callproc`` and keyword parameters. Result
sets are the cursors the procedure returns through
``DBMS_SQL.RETURN_RESULT`` (implicit results), in the order returned.
The command timeout maps to ``Connection.call_timeout`` in milliseconds.
"""

from __future__ import annotations

from typing import Any

from sproc_query.core.command import ProcedureCommand
from sproc_query.core.connection import ConnectionConfig
from sproc_query.core.enums import CommandType
from sproc_query.core.reader import BufferedReader, CursorReader
from sproc_query.core.sanitizer import validate_parameter_name, validate_procedure_name


def _build_dsn(config: ConnectionConfig) -> str:
    """Build an Oracle DSN string from config fields (host:port/database)."""
    return f"{config.host}:{config.port}/{config.database}"


def _keyword_parameters(command: ProcedureCommand) -> dict[str, Any]:
    return {
        validate_parameter_name(name): value
        for name, value in command.parameters.as_dict().items()
    }


class OracleSyncAdapter:
    """Synchronous Oracle adapter using oracledb."""

    def connect(self, config: ConnectionConfig) -> Any:
        import oracledb

        connection = oracledb.connect(
            user=config.user, password=config.password, dsn=_build_dsn(config), **config.extra
        )
        connection.autocommit = config.autocommit
        return connection

    def close(self, connection: Any) -> None:
        connection.close()

    def _run(self, connection: Any, command: ProcedureCommand) -> Any:
        connection.call_timeout = command.command_timeout * 1000
        cursor = connection.cursor()
        try:
            if command.command_type is CommandType.TEXT:
                cursor.execute(command.command_text, command.parameters.as_dict())
            else:
                cursor.callproc(
                    validate_procedure_name(command.command_text),
                    keyword_parameters=_keyword_parameters(command),
                )
        except BaseException:
            cursor.close()
            raise
        return cursor

    def call_procedure(self, connection: Any, command: ProcedureCommand) -> CursorReader:
        cursor = self._run(connection, command)
        if command.command_type is CommandType.TEXT:
            return CursorReader([cursor])
        return CursorReader(cursor.getimplicitresults(), on_close=cursor.close)

    def call_non_query(self, connection: Any, command: ProcedureCommand) -> int:
        cursor = self._run(connection, command)
        try:
            return cursor.rowcount
        finally:
            cursor.close()


class OracleAsyncAdapter:
    """Asynchronous Oracle adapter using oracledb async support."""

    async def connect_async(self, config: ConnectionConfig) -> Any:
        import oracledb

        connection = await oracledb.connect_async(
            user=config.user, password=config.password, dsn=_build_dsn(config), **config.extra
        )
        connection.autocommit = config.autocommit
        return connection

    async def close_async(self, connection: Any) -> None:
        await connection.close()

    async def _run(self, connection: Any, command: ProcedureCommand) -> Any:
        connection.call_timeout = command.command_timeout * 1000
        cursor = connection.cursor()
        try:
            if command.command_type is CommandType.TEXT:
                await cursor.execute(command.command_text, command.parameters.as_dict())
            else:
                await cursor.callproc(
                    validate_procedure_name(command.command_text),
                    keyword_parameters=_keyword_parameters(command),
                )
        except BaseException:
            cursor.close()
            raise
        return cursor

    async def call_procedure_async(
        self, connection: Any, command: ProcedureCommand
    ) -> BufferedReader:
        cursor = await self._run(connection, command)
        if command.command_type is CommandType.TEXT:
            sources = [cursor]
        else:
            sources = list(cursor.getimplicitresults())

        async def result_sets():  # type: ignore[no-untyped-def]
            try:
                for source in sources:
                    rows = await source.fetchall() if source.description is not None else []
                    yield source.description, rows
            finally:
                for source in sources:
                    source.close()
                if command.command_type is not CommandType.TEXT:
                    cursor.close()

        return await BufferedReader.create(result_sets())

    async def call_non_query_async(self, connection: Any, command: ProcedureCommand) -> int:
        cursor = await self._run(connection, command)
        try:
            return cursor.rowcount
        finally:
            cursor.close()
