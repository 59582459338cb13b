"""Tabular readers over DB-API cursors.

CursorReader serves the synchronous path and fetches rows lazily.
BufferedReader serves the asynchronous path: every result set is fetched
before the reader is handed out, so mapping and advancing inside handlers
never have to await.

Result sets without a column description (DML statements) are skipped.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Iterable, Iterator, Mapping, Sequence
from typing import Any

from sproc_query.core.exceptions import UsageError
from sproc_query.mapping.protocol import ColumnInfo

_UNFETCHED = object()
_NO_ROW = object()


def _columns_of(description: Sequence[Sequence[Any]] | None) -> tuple[ColumnInfo, ...]:
    if description is None:
        return ()
    return tuple(ColumnInfo(str(desc[0]), ordinal) for ordinal, desc in enumerate(description))


def _values_of(row: Any, columns: Sequence[ColumnInfo]) -> tuple[Any, ...]:
    """Normalize a tuple-like or dict-like row to a tuple in column order."""
    if isinstance(row, Mapping):
        return tuple(row[column.name] for column in columns)
    return tuple(row)


def _release(cursor: Any) -> None:
    if cursor is not None and hasattr(cursor, "close"):
        cursor.close()


class CursorReader:
    """Lazy reader over a sequence of DB-API cursors, one per result set.

    Closing the reader drains whatever is left of *result_sets*, so every
    statement behind it runs even when no handler reads that far.

    Args:
        result_sets: Iterable yielding a cursor positioned on each result set
            in turn. It is consumed lazily, so a generator may execute the
            statement behind each result set only when it is reached.
        on_close: Optional callback invoked once when the reader is closed.
    """

    def __init__(
        self,
        result_sets: Iterable[Any],
        on_close: Callable[[], None] | None = None,
    ) -> None:
        self._sources: Iterator[Any] = iter(result_sets)
        self._on_close = on_close
        self._last: Any = None
        self._columns: tuple[ColumnInfo, ...] = ()
        self._pending: Any = _NO_ROW
        self._row: tuple[Any, ...] | None = None
        self._seen_row = False
        self._closed = False
        self._load_next()

    def _pull(self) -> Any:
        """Take the next cursor from the sources, releasing the previous one."""
        cursor = next(self._sources, None)
        if cursor is not self._last:
            _release(self._last)
            self._last = cursor
        return cursor

    def _load_next(self) -> bool:
        self._row = None
        self._seen_row = False
        cursor = self._pull()
        while cursor is not None:
            if cursor.description is not None:
                self._columns = _columns_of(cursor.description)
                self._pending = _UNFETCHED
                return True
            cursor = self._pull()
        self._columns = ()
        self._pending = _NO_ROW
        return False

    def _peek(self) -> Any:
        if self._pending is _UNFETCHED:
            row = self._last.fetchone()
            self._pending = _NO_ROW if row is None else row
        return self._pending

    @property
    def has_rows(self) -> bool:
        return self._seen_row or self._peek() is not _NO_ROW

    @property
    def columns(self) -> Sequence[ColumnInfo]:
        return self._columns

    def read(self) -> bool:
        row = self._peek()
        if row is _NO_ROW:
            self._row = None
            return False
        self._pending = _UNFETCHED
        self._row = _values_of(row, self._columns)
        self._seen_row = True
        return True

    def get_value(self, ordinal: int) -> Any:
        if self._row is None:
            raise UsageError("No current row; call read() first")
        return self._row[ordinal]

    def is_null(self, ordinal: int) -> bool:
        return self.get_value(ordinal) is None

    def next_result(self) -> bool:
        return self._load_next()

    async def next_result_async(self) -> bool:
        return self._load_next()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._columns = ()
        self._pending = _NO_ROW
        try:
            try:
                while self._pull() is not None:
                    pass
            finally:
                _release(self._last)
                self._last = None
                close_sources = getattr(self._sources, "close", None)
                if close_sources is not None:
                    close_sources()
        finally:
            if self._on_close is not None:
                self._on_close()

    async def close_async(self) -> None:
        self.close()


class BufferedReader:
    """Reader over result sets fetched in full before it is returned.

    Build instances with ``await BufferedReader.create(...)``. Every result
    set is fetched up front, so each statement of the command has run by the
    time a handler sees the reader, and advancing never has to await.

    Args:
        result_sets: Buffered ``(columns, rows)`` pairs, one per result set.
        on_close: Optional coroutine function awaited once on close.
    """

    def __init__(
        self,
        result_sets: Sequence[tuple[tuple[ColumnInfo, ...], Sequence[Any]]],
        on_close: Callable[[], Any] | None = None,
    ) -> None:
        self._sets = list(result_sets)
        self._on_close = on_close
        self._index = -1
        self._columns: tuple[ColumnInfo, ...] = ()
        self._rows: Sequence[Any] = ()
        self._position = -1
        self._row: tuple[Any, ...] | None = None
        self._closed = False
        self.next_result()

    @classmethod
    async def create(
        cls,
        result_sets: AsyncIterator[tuple[Any, Sequence[Any]]],
        on_close: Callable[[], Any] | None = None,
    ) -> BufferedReader:
        """Drain *result_sets*, keeping the ones that carry a description."""
        buffered: list[tuple[tuple[ColumnInfo, ...], Sequence[Any]]] = []
        try:
            async for description, rows in result_sets:
                if description is not None:
                    buffered.append((_columns_of(description), list(rows)))
        finally:
            aclose = getattr(result_sets, "aclose", None)
            if aclose is not None:
                await aclose()
        return cls(buffered, on_close)

    @property
    def has_rows(self) -> bool:
        return len(self._rows) > 0

    @property
    def columns(self) -> Sequence[ColumnInfo]:
        return self._columns

    def read(self) -> bool:
        if self._position + 1 >= len(self._rows):
            self._position = len(self._rows)
            self._row = None
            return False
        self._position += 1
        self._row = _values_of(self._rows[self._position], self._columns)
        return True

    def get_value(self, ordinal: int) -> Any:
        if self._row is None:
            raise UsageError("No current row; call read() first")
        return self._row[ordinal]

    def is_null(self, ordinal: int) -> bool:
        return self.get_value(ordinal) is None

    def next_result(self) -> bool:
        self._position = -1
        self._row = None
        self._index = min(self._index + 1, len(self._sets))
        if self._index < len(self._sets):
            self._columns, self._rows = self._sets[self._index]
            return True
        self._columns = ()
        self._rows = ()
        return False

    async def next_result_async(self) -> bool:
        return self.next_result()

    def close(self) -> None:
        raise UsageError("Asynchronous results must be closed with close_async()")

    async def close_async(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._sets.clear()
        if self._on_close is not None:
            await self._on_close()
