"""Result cursor handed to procedure result handlers."""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, TypeVar, overload

from sproc_query.core.cancellation import run_cancellable
from sproc_query.core.exceptions import CursorBusyError, CursorClosedError
from sproc_query.mapping.descriptor import RecordDescriptor
from sproc_query.mapping.protocol import TabularReader
from sproc_query.mapping.record import map_to_list, map_to_scalar

T = TypeVar("T")


class ProcResults:
    """Forward-only cursor over the result sets of one procedure call.

    Exactly one result set is current at a time. ``read_rows`` and
    ``read_scalar`` consume rows of the current set; ``advance`` (or
    ``advance_async``) moves to the next one and discards what was left
    unread.

    When several handlers share a cursor (``execute_stored_proc_many_async``)
    they run in order against this same object: each handler starts on the
    result set, and at the row, where the previous one stopped, so a handler
    that is done with a result set advances before returning.

    The cursor is only valid while its execute call is running. Operations
    may not overlap; an overlapping call raises CursorBusyError.
    """

    def __init__(self, reader: TabularReader) -> None:
        self._reader = reader
        self._busy = False
        self._closed = False

    @contextmanager
    def _operation(self, name: str) -> Iterator[TabularReader]:
        if self._closed:
            raise CursorClosedError()
        if self._busy:
            raise CursorBusyError(name)
        self._busy = True
        try:
            yield self._reader
        finally:
            self._busy = False

    @property
    def closed(self) -> bool:
        return self._closed

    def read_rows(self, target: type[T] | RecordDescriptor[T]) -> list[T]:
        """Map the remaining rows of the current result set to *target*."""
        with self._operation("read rows") as reader:
            return map_to_list(reader, target)

    @overload
    def read_scalar(self, target: type[T]) -> T | None: ...

    @overload
    def read_scalar(self, target: None = None) -> Any: ...

    def read_scalar(self, target: Any = None) -> Any:
        """Return the first column of the next row, or None."""
        with self._operation("read scalar") as reader:
            return map_to_scalar(reader, target)

    def advance(self) -> bool:
        """Move to the next result set. Returns False when there is none."""
        with self._operation("advance") as reader:
            return reader.next_result()

    async def advance_async(self, cancel: asyncio.Event | None = None) -> bool:
        """Asynchronously move to the next result set.

        Args:
            cancel: Optional event observed while the next set is fetched.
        """
        with self._operation("advance") as reader:
            return await run_cancellable(reader.next_result_async(), cancel, "advance")

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._reader.close()

    async def close_async(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._reader.close_async()
