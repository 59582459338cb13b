"""Unit tests for record descriptors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional, Union

import pytest
from pydantic import BaseModel

from sproc_query.core.exceptions import DescriptorError
from sproc_query.mapping.descriptor import (
    FieldBinding,
    RecordDescriptor,
    describe,
    resolve_descriptor,
)


class Attributed:
    registry: ClassVar[dict[str, Any]] = {}
    _hidden: int = 0

    id: int = 0
    name: Optional[str] = None
    tag: str | None = None


class WithProperty:
    def __init__(self) -> None:
        self._label = ""

    @property
    def label(self) -> str:
        return self._label

    @label.setter
    def label(self, value: str) -> None:
        self._label = value.upper()

    @property
    def read_only(self) -> int:
        return 1


class Slotted:
    __slots__ = ("id", "_secret")


@dataclass
class Row:
    id: int = 0
    note: Union[str, None] = None
    derived: str = field(default="", init=False)


class Model(BaseModel):
    id: int = 0
    name: Optional[str] = None


class Defaults:
    id = 0
    name = ""
    label = None

    def describe(self) -> str:
        return self.name


class StrictModel(BaseModel):
    id: int
    name: Optional[str] = None


@dataclass
class StrictRow:
    id: int


class NeedsArgs:
    def __init__(self, id: int) -> None:
        self.id = id


class Empty:
    pass


def names(descriptor: RecordDescriptor[Any]) -> set[str]:
    return {binding.name for binding in descriptor.fields}


class TestDescribe:
    def test_plain_class_annotations(self) -> None:
        descriptor = describe(Attributed)
        assert names(descriptor) == {"id", "name", "tag"}
        nullable = {b.name: b.nullable for b in descriptor.fields}
        assert nullable == {"id": False, "name": True, "tag": True}

    def test_settable_property_included(self) -> None:
        descriptor = describe(WithProperty)
        assert names(descriptor) == {"label"}
        record = descriptor.build({"label": "abc"})
        assert record.label == "ABC"

    def test_slots_included(self) -> None:
        assert names(describe(Slotted)) == {"id"}

    def test_dataclass_fields(self) -> None:
        descriptor = describe(Row)
        assert names(descriptor) == {"id", "note", "derived"}
        record = descriptor.build({"id": 1, "derived": "x"})
        assert (record.id, record.note, record.derived) == (1, None, "x")

    def test_dataclass_nullability(self) -> None:
        nullable = {b.name: b.nullable for b in describe(Row).fields}
        assert nullable["id"] is False
        assert nullable["note"] is True

    def test_pydantic_fields(self) -> None:
        descriptor = describe(Model)
        assert names(descriptor) == {"id", "name"}
        assert descriptor.build({"id": "2"}) == Model(id=2)

    def test_cached(self) -> None:
        assert describe(Model) is describe(Model)

    def test_no_writable_fields(self) -> None:
        with pytest.raises(DescriptorError, match="Empty"):
            describe(Empty)

    def test_unannotated_class_defaults(self) -> None:
        descriptor = describe(Defaults)
        assert names(descriptor) == {"id", "name", "label"}
        record = descriptor.build({"id": 7, "name": "x"})
        assert (record.id, record.name, record.label) == (7, "x", None)

    def test_required_pydantic_field_rejected(self) -> None:
        with pytest.raises(DescriptorError, match="StrictModel.id is required"):
            describe(StrictModel)

    def test_required_dataclass_field_rejected(self) -> None:
        with pytest.raises(DescriptorError, match="StrictRow.id is required"):
            describe(StrictRow)

    def test_plain_class_without_parameterless_constructor_rejected(self) -> None:
        with pytest.raises(DescriptorError, match="parameterless"):
            describe(NeedsArgs)


class TestDeclare:
    def test_plain_names_are_nullable(self) -> None:
        descriptor = RecordDescriptor.declare(Empty, ["a", "b"])
        assert all(binding.nullable for binding in descriptor.fields)

    def test_empty_fields_rejected(self) -> None:
        with pytest.raises(DescriptorError):
            RecordDescriptor.declare(Empty, [])

    def test_duplicate_fields_rejected(self) -> None:
        with pytest.raises(DescriptorError, match="Duplicate"):
            RecordDescriptor.declare(Empty, ["Id", "ID"])

    def test_field_map_keys_case_folded(self) -> None:
        descriptor = RecordDescriptor.declare(Empty, [FieldBinding("UserName")])
        assert list(descriptor.field_map()) == ["username"]

    def test_custom_factory(self) -> None:
        descriptor = RecordDescriptor.declare(
            dict, ["a"], factory=lambda _descriptor, values: dict(values)
        )
        assert descriptor.build({"a": 1}) == {"a": 1}


class TestResolveDescriptor:
    def test_descriptor_passthrough(self) -> None:
        descriptor = RecordDescriptor.declare(Empty, ["a"])
        assert resolve_descriptor(descriptor) is descriptor

    def test_class_is_described(self) -> None:
        assert resolve_descriptor(Model) is describe(Model)

    def test_rejects_instances(self) -> None:
        with pytest.raises(DescriptorError):
            resolve_descriptor(Model(id=1))  # type: ignore[arg-type]
