"""Database adapter protocols.

Every adapter module MUST implement these protocols. Adapters apply the
command timeout before execution and return readers that follow the
TabularReader protocol.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from sproc_query.core.command import ProcedureCommand
from sproc_query.core.connection import ConnectionConfig
from sproc_query.mapping.protocol import TabularReader


@runtime_checkable
class SyncAdapter(Protocol):
    """Synchronous database adapter protocol."""

    def connect(self, config: ConnectionConfig) -> Any:
        """Open a driver connection."""
        ...

    def close(self, connection: Any) -> None:
        """Close a driver connection."""
        ...

    def call_procedure(self, connection: Any, command: ProcedureCommand) -> TabularReader:
        """Call the procedure and return a reader over its result sets."""
        ...

    def call_non_query(self, connection: Any, command: ProcedureCommand) -> int:
        """Call the procedure and return the affected row count (-1 if unknown)."""
        ...


@runtime_checkable
class AsyncAdapter(Protocol):
    """Asynchronous database adapter protocol."""

    async def connect_async(self, config: ConnectionConfig) -> Any:
        """Open an async driver connection."""
        ...

    async def close_async(self, connection: Any) -> None:
        """Close an async driver connection."""
        ...

    async def call_procedure_async(
        self, connection: Any, command: ProcedureCommand
    ) -> TabularReader:
        """Call the procedure and return a reader over its result sets."""
        ...

    async def call_non_query_async(self, connection: Any, command: ProcedureCommand) -> int:
        """Call the procedure and return the affected row count (-1 if unknown)."""
        ...
