"""Record mapper.

Converts the current result set of a TabularReader into typed records, or
into a single nullable scalar. Column matching is case-insensitive and
otherwise exact; it is recomputed for every result set and every call.
"""

from __future__ import annotations

from collections.abc import Mapping
from functools import lru_cache
from typing import Any, TypeVar, overload

from pydantic import TypeAdapter, ValidationError

from sproc_query.core.exceptions import ScalarCoercionError
from sproc_query.mapping.descriptor import FieldBinding, RecordDescriptor, resolve_descriptor
from sproc_query.mapping.protocol import TabularReader

T = TypeVar("T")


def bind_columns(reader: TabularReader, fields: Mapping[str, FieldBinding]) -> dict[str, int]:
    """Intersect the reader's column schema with case-folded field names.

    Returns a mapping of case-folded name to column ordinal. When two columns
    fold to the same name, the first one wins.
    """
    binding: dict[str, int] = {}
    for column in reader.columns:
        key = column.name.casefold()
        if key in fields and key not in binding:
            binding[key] = column.ordinal
    return binding


def map_to_list(reader: TabularReader, target: type[T] | RecordDescriptor[T]) -> list[T]:
    """Map every remaining row of the current result set to *target*.

    Fields without a matching column keep their defaults and columns without
    a matching field are ignored. A NULL is written as None to nullable fields
    and skipped for non-nullable ones.

    Returns an empty list, without reading, when the result set has no rows.
    """
    descriptor = resolve_descriptor(target)
    fields = descriptor.field_map()
    if not reader.has_rows:
        return []

    column_binding = bind_columns(reader, fields)
    records: list[T] = []
    while reader.read():
        values: dict[str, Any] = {}
        for key, ordinal in column_binding.items():
            binding = fields[key]
            if reader.is_null(ordinal):
                if binding.nullable:
                    values[binding.name] = None
                continue
            values[binding.name] = reader.get_value(ordinal)
        records.append(descriptor.build(values))
    return records


@lru_cache(maxsize=128)
def _type_adapter(target: Any) -> TypeAdapter[Any]:
    return TypeAdapter(target)


@overload
def coerce_scalar(value: Any, target: type[T]) -> T: ...


@overload
def coerce_scalar(value: Any, target: None = None) -> Any: ...


def coerce_scalar(value: Any, target: Any = None) -> Any:
    """Coerce a non-NULL database value to *target* (returned as-is if None)."""
    if target is None or target is Any:
        return value
    if isinstance(target, type) and isinstance(value, target):
        return value
    try:
        return _type_adapter(target).validate_python(value)
    except ValidationError as e:
        raise ScalarCoercionError(value, getattr(target, "__name__", repr(target))) from e


@overload
def map_to_scalar(reader: TabularReader, target: type[T]) -> T | None: ...


@overload
def map_to_scalar(reader: TabularReader, target: None = None) -> Any: ...


def map_to_scalar(reader: TabularReader, target: Any = None) -> Any:
    """Read at most one row and return its first column, or None.

    None is returned when the result set has no rows, the read produces no
    row, or the value is NULL. Unread rows are skipped on the next advance.
    """
    if not reader.has_rows:
        return None
    if not reader.read():
        return None
    if reader.is_null(0):
        return None
    return coerce_scalar(reader.get_value(0), target)
