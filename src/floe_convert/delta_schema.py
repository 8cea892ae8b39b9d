"""Delta protocol schema model.

Frozen Pydantic models for the Delta transaction log schema representation:
- Simple types are plain strings ("long", "string", "decimal(10,2)", ...)
- Array: {"type": "array", "elementType": <type>, "containsNull": bool}
- Map: {"type": "map", "keyType": <type>, "valueType": <type>, "valueContainsNull": bool}
- Struct: {"type": "struct", "fields": [{"name", "type", "nullable", "metadata"}, ...]}

Column mapping state (physical names, column ids, generation expressions)
lives in each field's metadata, exactly as Delta stores it.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from floe_convert.constants import COLUMN_ID_KEY, PHYSICAL_NAME_KEY

DeltaDataType = Union[str, "ArrayType", "MapType", "StructType"]

FieldPath = tuple[str, ...]

_MODEL_CONFIG = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class ArrayType(BaseModel):
    """Delta array type."""

    model_config = _MODEL_CONFIG

    type: Literal["array"] = "array"
    element_type: DeltaDataType = Field(..., alias="elementType")
    contains_null: bool = Field(default=True, alias="containsNull")


class MapType(BaseModel):
    """Delta map type."""

    model_config = _MODEL_CONFIG

    type: Literal["map"] = "map"
    key_type: DeltaDataType = Field(..., alias="keyType")
    value_type: DeltaDataType = Field(..., alias="valueType")
    value_contains_null: bool = Field(default=True, alias="valueContainsNull")


class StructField(BaseModel):
    """A named Delta column.

    Attributes:
        name: Logical (display) column name.
        type: Column data type.
        nullable: Whether the column accepts nulls.
        metadata: Column metadata (physical name, column id, ...).

    Example:
        >>> f = StructField(name="id", type="long", nullable=False)
        >>> f.with_metadata({"delta.columnMapping.physicalName": "id"}).physical_name
        'id'
    """

    model_config = _MODEL_CONFIG

    name: str = Field(..., min_length=1)
    type: DeltaDataType
    nullable: bool = True
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def physical_name(self) -> str | None:
        """Return the assigned physical name, if any."""
        return self.metadata.get(PHYSICAL_NAME_KEY)

    @property
    def column_id(self) -> int | None:
        """Return the column mapping id, if any."""
        value = self.metadata.get(COLUMN_ID_KEY)
        return int(value) if value is not None else None

    def with_metadata(self, extra: dict[str, Any]) -> StructField:
        """Return a copy with `extra` merged into the metadata."""
        return self.model_copy(update={"metadata": {**self.metadata, **extra}})

    def with_type(self, data_type: DeltaDataType) -> StructField:
        """Return a copy with a different data type."""
        return self.model_copy(update={"type": data_type})


class StructType(BaseModel):
    """Delta struct type, also used for whole table schemas."""

    model_config = _MODEL_CONFIG

    type: Literal["struct"] = "struct"
    fields: list[StructField] = Field(default_factory=list)

    @property
    def field_names(self) -> list[str]:
        """Return top-level field names in order."""
        return [f.name for f in self.fields]

    def get(self, name: str) -> StructField | None:
        """Return the top-level field with exactly this name."""
        return next((f for f in self.fields if f.name == name), None)

    def to_json(self) -> str:
        """Serialize to a Delta `schemaString`."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, schema_string: str) -> StructType:
        """Parse a Delta `schemaString`."""
        return cls.model_validate_json(schema_string)


ArrayType.model_rebuild()
MapType.model_rebuild()
StructField.model_rebuild()
StructType.model_rebuild()


def explode(schema: StructType) -> list[tuple[FieldPath, StructField]]:
    """Flatten a schema into (path, field) pairs in pre-order.

    Array elements and map keys/values contribute the path segments
    "element", "key" and "value".

    Example:
        >>> schema = StructType(fields=[
        ...     StructField(name="a", type=StructType(fields=[StructField(name="b", type="int")])),
        ... ])
        >>> [path for path, _ in explode(schema)]
        [('a',), ('a', 'b')]
    """
    return list(_explode(schema, ()))


def _explode(data_type: DeltaDataType, prefix: FieldPath) -> Iterator[tuple[FieldPath, StructField]]:
    if isinstance(data_type, StructType):
        for field in data_type.fields:
            path = (*prefix, field.name)
            yield path, field
            yield from _explode(field.type, path)
    elif isinstance(data_type, ArrayType):
        yield from _explode(data_type.element_type, (*prefix, "element"))
    elif isinstance(data_type, MapType):
        yield from _explode(data_type.key_type, (*prefix, "key"))
        yield from _explode(data_type.value_type, (*prefix, "value"))


def transform_fields(
    schema: StructType,
    fn: Callable[[FieldPath, StructField], StructField],
) -> StructType:
    """Rebuild a schema, applying `fn` to every field in pre-order.

    `fn` receives the path of the field's parent and the field itself. Nested
    fields are visited after their parent has been transformed, using the
    parent's (possibly new) name in their path.
    """
    result = _transform(schema, fn, ())
    assert isinstance(result, StructType)
    return result


def _transform(
    data_type: DeltaDataType,
    fn: Callable[[FieldPath, StructField], StructField],
    prefix: FieldPath,
) -> DeltaDataType:
    if isinstance(data_type, StructType):
        new_fields = []
        for field in data_type.fields:
            updated = fn(prefix, field)
            nested = _transform(updated.type, fn, (*prefix, updated.name))
            new_fields.append(updated.with_type(nested))
        return data_type.model_copy(update={"fields": new_fields})
    if isinstance(data_type, ArrayType):
        element = _transform(data_type.element_type, fn, (*prefix, "element"))
        return data_type.model_copy(update={"element_type": element})
    if isinstance(data_type, MapType):
        key = _transform(data_type.key_type, fn, (*prefix, "key"))
        value = _transform(data_type.value_type, fn, (*prefix, "value"))
        return data_type.model_copy(update={"key_type": key, "value_type": value})
    return data_type
