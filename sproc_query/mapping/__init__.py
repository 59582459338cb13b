"""Mapping layer - read tabular results into typed records and scalars."""

from __future__ import annotations

from sproc_query.mapping.descriptor import (
    FieldBinding,
    RecordDescriptor,
    describe,
    resolve_descriptor,
)
from sproc_query.mapping.protocol import ColumnInfo, TabularReader
from sproc_query.mapping.record import bind_columns, coerce_scalar, map_to_list, map_to_scalar

__all__ = [
    "ColumnInfo",
    "TabularReader",
    "FieldBinding",
    "RecordDescriptor",
    "describe",
    "resolve_descriptor",
    "bind_columns",
    "map_to_list",
    "map_to_scalar",
    "coerce_scalar",
]
