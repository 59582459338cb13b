"""Tabular reader protocol.

The Record Mapper only talks to readers through this interface. Readers
are forward-only: exactly one result set is current at a time, and
advancing discards access to the previous one.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class ColumnInfo:
    """Name and ordinal position of one column in the current result set."""

    name: str
    ordinal: int


@runtime_checkable
class TabularReader(Protocol):
    """Forward-only reader over zero or more result sets."""

    @property
    def has_rows(self) -> bool:
        """Whether the current result set contains at least one row."""
        ...

    @property
    def columns(self) -> Sequence[ColumnInfo]:
        """Column schema of the current result set."""
        ...

    def read(self) -> bool:
        """Advance to the next row. Returns False when the set is exhausted."""
        ...

    def get_value(self, ordinal: int) -> Any:
        """Value of the given column in the current row."""
        ...

    def is_null(self, ordinal: int) -> bool:
        """Whether the given column in the current row is SQL NULL."""
        ...

    def next_result(self) -> bool:
        """Move to the next result set. Returns False when there is none."""
        ...

    async def next_result_async(self) -> bool:
        """Asynchronous variant of next_result."""
        ...

    def close(self) -> None:
        """Release the underlying cursor(s)."""
        ...

    async def close_async(self) -> None:
        """Asynchronous variant of close."""
        ...
