"""Field-binding descriptors.

A RecordDescriptor pairs every writable field of a target type with the way
a value is assigned to it, plus the strategy used to construct the record.
Descriptors are introspected once per type and cached; callers can also
declare one explicitly with RecordDescriptor.declare().

Supported targets:
1. Pydantic BaseModel -> model_validate(values)
2. dataclass -> target_class(**values), defaults fill unmatched fields
3. Plain class -> target_class() followed by attribute assignment

Every introspected field must have a default, because a row may lack its
column or hold NULL for it.
"""

from __future__ import annotations

import dataclasses
import inspect
import types
import typing
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, ClassVar, Generic, TypeVar, Union

from pydantic import BaseModel, ValidationError

from sproc_query.core.exceptions import DescriptorError, RecordConstructionError

T = TypeVar("T")

Factory = Callable[["RecordDescriptor[Any]", Mapping[str, Any]], Any]


def _accepts_none(hint: Any) -> bool:
    """Return True if a field annotated with *hint* may hold None."""
    if hint is Any or hint is None or hint is type(None):
        return True
    if isinstance(hint, str):
        # Unresolvable forward reference
        return "None" in hint or "Optional" in hint or hint.strip() == "Any"
    origin = typing.get_origin(hint)
    if origin is typing.Annotated:
        return _accepts_none(typing.get_args(hint)[0])
    if origin is Union or origin is types.UnionType:
        return any(_accepts_none(arg) for arg in typing.get_args(hint))
    return False


def _type_hints(cls: type) -> dict[str, Any]:
    """Resolved annotations of *cls* and its bases, raw strings as fallback."""
    try:
        return typing.get_type_hints(cls, include_extras=True)
    except (NameError, TypeError):
        hints: dict[str, Any] = {}
        for base in reversed(cls.__mro__):
            hints.update(inspect.get_annotations(base))
        return hints


@dataclass(frozen=True)
class FieldBinding:
    """One writable field of a target record.

    Attributes:
        name: Field name, matched case-insensitively against column names.
        nullable: Whether a database NULL may be written to the field. NULL
            values for non-nullable fields are skipped, leaving the default.
        setter: Optional assignment callable ``(record, value)``. Attribute
            assignment by name is used when omitted.
    """

    name: str
    nullable: bool = True
    setter: Callable[[Any, Any], None] | None = None

    @property
    def key(self) -> str:
        return self.name.casefold()

    def assign(self, record: Any, value: Any) -> None:
        if self.setter is not None:
            self.setter(record, value)
        else:
            setattr(record, self.name, value)


def construct_then_assign(descriptor: RecordDescriptor[Any], values: Mapping[str, Any]) -> Any:
    """Build a record through its parameterless constructor, then assign fields."""
    try:
        record = descriptor.target_class()
    except TypeError as e:
        raise RecordConstructionError(
            descriptor.target_class.__name__,
            f"a parameterless constructor is required ({e})",
        ) from e
    for binding in descriptor.fields:
        if binding.name in values:
            binding.assign(record, values[binding.name])
    return record


def _pydantic_factory(descriptor: RecordDescriptor[Any], values: Mapping[str, Any]) -> Any:
    try:
        return descriptor.target_class.model_validate(dict(values))
    except ValidationError as e:
        raise RecordConstructionError(descriptor.target_class.__name__, str(e)) from e


def _dataclass_factory(cls: type) -> Factory:
    init_names = frozenset(f.name for f in dataclasses.fields(cls) if f.init)

    def factory(descriptor: RecordDescriptor[Any], values: Mapping[str, Any]) -> Any:
        kwargs = {name: value for name, value in values.items() if name in init_names}
        try:
            record = cls(**kwargs)
        except TypeError as e:
            raise RecordConstructionError(cls.__name__, str(e)) from e
        for binding in descriptor.fields:
            if binding.name in values and binding.name not in init_names:
                binding.assign(record, values[binding.name])
        return record

    return factory


@dataclass(frozen=True)
class RecordDescriptor(Generic[T]):
    """Precomputed field bindings and construction strategy for a record type."""

    target_class: type[T]
    fields: tuple[FieldBinding, ...]
    factory: Factory = field(default=construct_then_assign, compare=False)

    def field_map(self) -> dict[str, FieldBinding]:
        """Bindings keyed by case-folded field name. The first binding wins."""
        mapping: dict[str, FieldBinding] = {}
        for binding in self.fields:
            mapping.setdefault(binding.key, binding)
        return mapping

    def build(self, values: Mapping[str, Any]) -> T:
        """Construct one record from values keyed by field name."""
        return self.factory(self, values)  # type: ignore[no-any-return]

    @classmethod
    def declare(
        cls,
        target_class: type[T],
        fields: Iterable[FieldBinding | str],
        factory: Factory | None = None,
    ) -> RecordDescriptor[T]:
        """Declare a descriptor explicitly instead of introspecting the type.

        Args:
            target_class: The record type to construct.
            fields: Field bindings, or plain names for nullable attributes.
            factory: Construction strategy. Defaults to a parameterless
                constructor followed by attribute assignment.

        Raises:
            DescriptorError: If no fields are given or two fields share a name
                case-insensitively.
        """
        bindings = tuple(f if isinstance(f, FieldBinding) else FieldBinding(f) for f in fields)
        if not bindings:
            raise DescriptorError(f"Descriptor for {target_class.__name__} declares no fields")
        seen: set[str] = set()
        for binding in bindings:
            if binding.key in seen:
                raise DescriptorError(
                    f"Duplicate field '{binding.name}' in descriptor for {target_class.__name__}"
                )
            seen.add(binding.key)
        return cls(target_class, bindings, factory or construct_then_assign)


def _required_field(cls: type, name: str) -> DescriptorError:
    # Rows may lack the column or carry NULL, so every field needs a default
    return DescriptorError(
        f"{cls.__name__}.{name} is required; mapped fields must have a default value"
    )


def _pydantic_bindings(cls: type[BaseModel]) -> tuple[FieldBinding, ...]:
    bindings = []
    for name, info in cls.model_fields.items():
        if info.is_required():
            raise _required_field(cls, name)
        # model_validate expects the alias when one is declared
        if isinstance(info.validation_alias, str):
            key = info.validation_alias
        else:
            key = info.alias or name
        bindings.append(FieldBinding(key, nullable=_accepts_none(info.annotation)))
    return tuple(bindings)


def _dataclass_bindings(cls: type) -> tuple[FieldBinding, ...]:
    for f in dataclasses.fields(cls):
        no_default = f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING
        if f.init and no_default:
            raise _required_field(cls, f.name)
    hints = _type_hints(cls)
    return tuple(
        FieldBinding(f.name, nullable=_accepts_none(hints.get(f.name, f.type)))
        for f in dataclasses.fields(cls)
    )


def _is_class_attribute(name: str, attr: Any) -> bool:
    """Public class-level defaults such as ``id = 0``; methods and descriptors are not fields."""
    return not name.startswith("_") and not callable(attr) and not hasattr(attr, "__get__")


def _plain_bindings(cls: type) -> tuple[FieldBinding, ...]:
    found: dict[str, FieldBinding] = {}
    class_vars: set[str] = set()

    for name, hint in _type_hints(cls).items():
        if hint is ClassVar or typing.get_origin(hint) is ClassVar:
            class_vars.add(name)
            continue
        if not name.startswith("_"):
            found[name] = FieldBinding(name, nullable=_accepts_none(hint))

    for base in reversed(cls.__mro__):
        for name, attr in vars(base).items():
            if isinstance(attr, property) and attr.fset is not None and not name.startswith("_"):
                hint = inspect.get_annotations(attr.fget).get("return", Any) if attr.fget else Any
                found[name] = FieldBinding(name, nullable=_accepts_none(hint))
            elif name not in class_vars and _is_class_attribute(name, attr):
                found.setdefault(name, FieldBinding(name))
        for name in getattr(base, "__slots__", ()):
            if isinstance(name, str) and not name.startswith("_"):
                found.setdefault(name, FieldBinding(name))

    try:
        sample = cls()
    except TypeError as e:
        raise DescriptorError(
            f"{cls.__name__} needs a parameterless constructor to be mapped ({e})"
        ) from e
    if hasattr(sample, "__dict__"):
        for name in vars(sample):
            if not name.startswith("_"):
                found.setdefault(name, FieldBinding(name))

    return tuple(found.values())


@lru_cache(maxsize=256)
def describe(target_class: type[T]) -> RecordDescriptor[T]:
    """Introspect *target_class* into a cached RecordDescriptor.

    Targets are checked before any row is read: a pydantic model or dataclass
    with a required field, or a plain class without a parameterless
    constructor, is rejected.

    Raises:
        DescriptorError: If the type exposes no writable fields or cannot be
            constructed from a partial row.
    """
    if isinstance(target_class, type) and issubclass(target_class, BaseModel):
        descriptor: RecordDescriptor[T] = RecordDescriptor(
            target_class, _pydantic_bindings(target_class), _pydantic_factory
        )
    elif dataclasses.is_dataclass(target_class):
        descriptor = RecordDescriptor(
            target_class,
            _dataclass_bindings(target_class),
            _dataclass_factory(target_class),
        )
    else:
        descriptor = RecordDescriptor(target_class, _plain_bindings(target_class))

    if not descriptor.fields:
        raise DescriptorError(f"{target_class.__name__} exposes no writable fields")
    return descriptor


def resolve_descriptor(target: type[T] | RecordDescriptor[T]) -> RecordDescriptor[T]:
    """Return *target* itself if it is a descriptor, else the cached introspection."""
    if isinstance(target, RecordDescriptor):
        return target
    if isinstance(target, type):
        return describe(target)
    raise DescriptorError(f"Expected a class or RecordDescriptor, got {target!r}")
