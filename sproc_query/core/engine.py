"""Database context.

A Database owns one connection and builds procedure commands bound to it.
It does not pool: every command from the same Database shares its
connection, and the execute functions decide whether they open or close it.
"""

from __future__ import annotations

from typing import Any

from sproc_query.core.command import DEFAULT_COMMAND_TIMEOUT, ProcedureCommand
from sproc_query.core.connection import AsyncConnection, Connection, ConnectionConfig
from sproc_query.core.enums import CommandType


class _DatabaseBase:
    def __init__(
        self,
        connection: Connection | AsyncConnection,
        default_schema: str | None = None,
        command_timeout: int = DEFAULT_COMMAND_TIMEOUT,
    ) -> None:
        self._connection = connection
        self._default_schema = default_schema
        self._command_timeout = command_timeout

    @property
    def default_schema(self) -> str | None:
        """Schema prepended to procedure names, if declared."""
        return self._default_schema

    def create_command(self) -> ProcedureCommand:
        """Create an unconfigured command bound to this database's connection."""
        return ProcedureCommand(self._connection, command_timeout=self._command_timeout)

    def load_procedure(
        self,
        procedure_name: str,
        *,
        prepend_default_schema: bool = True,
        command_timeout: int | None = None,
    ) -> ProcedureCommand:
        """Create a command that calls *procedure_name*.

        Args:
            procedure_name: Target procedure name.
            prepend_default_schema: Prefix the name with ``default_schema``
                and a dot, when the database declares one.
            command_timeout: Timeout in seconds. Defaults to the configured
                command timeout (30 unless configured otherwise).

        Returns:
            A command of type STORED_PROCEDURE, ready for parameter binding.
        """
        command = self.create_command()
        if command_timeout is not None:
            command.command_timeout = command_timeout

        if prepend_default_schema and self._default_schema is not None:
            procedure_name = f"{self._default_schema}.{procedure_name}"

        command.command_text = procedure_name
        command.command_type = CommandType.STORED_PROCEDURE
        return command


class Database(_DatabaseBase):
    """Synchronous database context."""

    def __init__(
        self,
        connection: Connection,
        default_schema: str | None = None,
        command_timeout: int = DEFAULT_COMMAND_TIMEOUT,
    ) -> None:
        super().__init__(connection, default_schema, command_timeout)

    @classmethod
    def from_config(cls, config: ConnectionConfig, adapter: Any | None = None) -> Database:
        """Create a Database from a ConnectionConfig.

        Args:
            config: ConnectionConfig instance
            adapter: Optional adapter instance; resolved from the driver name
                when omitted.

        Returns:
            Database instance
        """
        return cls(Connection(config, adapter), config.default_schema, config.command_timeout)

    @property
    def connection(self) -> Connection:
        return self._connection  # type: ignore[return-value]

    def close(self) -> None:
        self.connection.close()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


class AsyncDatabase(_DatabaseBase):
    """Asynchronous database context."""

    def __init__(
        self,
        connection: AsyncConnection,
        default_schema: str | None = None,
        command_timeout: int = DEFAULT_COMMAND_TIMEOUT,
    ) -> None:
        super().__init__(connection, default_schema, command_timeout)

    @classmethod
    def from_config(cls, config: ConnectionConfig, adapter: Any | None = None) -> AsyncDatabase:
        """Create an AsyncDatabase from a ConnectionConfig.

        Args:
            config: ConnectionConfig instance
            adapter: Optional adapter instance; resolved from the driver name
                when omitted.

        Returns:
            AsyncDatabase instance
        """
        return cls(
            AsyncConnection(config, adapter), config.default_schema, config.command_timeout
        )

    @property
    def connection(self) -> AsyncConnection:
        return self._connection  # type: ignore[return-value]

    async def close(self) -> None:
        await self.connection.close()

    async def __aenter__(self) -> AsyncDatabase:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
