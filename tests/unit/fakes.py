"""In-memory adapter doubles that record the calls they receive."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any

from sproc_query.core.command import ProcedureCommand
from sproc_query.core.connection import ConnectionConfig
from sproc_query.core.reader import BufferedReader, CursorReader

ResultSet = tuple[Sequence[str], Sequence[tuple[Any, ...]]]


class FakeCursor:
    def __init__(self, columns: Sequence[str], rows: Sequence[tuple[Any, ...]]) -> None:
        self.description = [(name, None, None, None, None, None, None) for name in columns]
        self._rows = list(rows)
        self.closed = False

    def fetchone(self) -> tuple[Any, ...] | None:
        return self._rows.pop(0) if self._rows else None

    def close(self) -> None:
        self.closed = True


class FakeAdapter:
    """Sync and async adapter over canned result sets.

    Args:
        result_sets: ``(columns, rows)`` pairs returned by every call.
        rowcount: Value returned by the non-query calls.
        error: Exception raised by the call methods, if any.
        block: When set, async calls wait forever so they can be cancelled.
    """

    def __init__(
        self,
        result_sets: Sequence[ResultSet] = (),
        rowcount: int = 5,
        error: Exception | None = None,
        block: bool = False,
    ) -> None:
        self.result_sets = list(result_sets)
        self.rowcount = rowcount
        self.error = error
        self.block = block
        self.events: list[str] = []
        self.commands: list[ProcedureCommand] = []

    def _call(self, name: str, command: ProcedureCommand) -> None:
        self.events.append(name)
        self.commands.append(command)
        if self.error is not None:
            raise self.error

    # --- sync ---

    def connect(self, config: ConnectionConfig) -> object:
        self.events.append("connect")
        return object()

    def close(self, connection: Any) -> None:
        self.events.append("close")

    def call_procedure(self, connection: Any, command: ProcedureCommand) -> CursorReader:
        self._call("call", command)
        cursors = [FakeCursor(columns, rows) for columns, rows in self.result_sets]
        return CursorReader(cursors, on_close=lambda: self.events.append("reader_closed"))

    def call_non_query(self, connection: Any, command: ProcedureCommand) -> int:
        self._call("non_query", command)
        return self.rowcount

    # --- async ---

    async def connect_async(self, config: ConnectionConfig) -> object:
        return self.connect(config)

    async def close_async(self, connection: Any) -> None:
        self.close(connection)

    async def _wait(self) -> None:
        if self.block:
            self.events.append("blocked")
            await asyncio.Event().wait()

    async def call_procedure_async(
        self, connection: Any, command: ProcedureCommand
    ) -> BufferedReader:
        self._call("call", command)
        await self._wait()
        result_sets = [
            (FakeCursor(columns, ()).description, list(rows))
            for columns, rows in self.result_sets
        ]

        async def sources():  # type: ignore[no-untyped-def]
            for result_set in result_sets:
                yield result_set

        async def on_close() -> None:
            self.events.append("reader_closed")

        return await BufferedReader.create(sources(), on_close=on_close)

    async def call_non_query_async(self, connection: Any, command: ProcedureCommand) -> int:
        self._call("non_query", command)
        await self._wait()
        return self.rowcount
