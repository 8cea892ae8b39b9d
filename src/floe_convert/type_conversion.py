"""Iceberg to Delta type conversion.

Walks a pyiceberg Schema with a SchemaVisitor and produces the Delta
protocol schema. Every produced field carries its Iceberg field id as the
Delta column mapping id, so id-based column mapping keeps reading the
existing data files.
"""

from __future__ import annotations

from typing import Any

from pyiceberg.schema import Schema, SchemaVisitor, visit
from pyiceberg.types import (
    BinaryType,
    BooleanType,
    DateType,
    DecimalType,
    DoubleType,
    FixedType,
    FloatType,
    IcebergType,
    IntegerType,
    ListType,
    LongType,
    NestedField,
    PrimitiveType,
    StringType,
    TimestampType,
    TimestamptzType,
    TimeType,
    UUIDType,
)
from pyiceberg.types import MapType as IcebergMapType
from pyiceberg.types import StructType as IcebergStructType

from floe_convert.constants import COLUMN_ID_KEY
from floe_convert.delta_schema import ArrayType, DeltaDataType, MapType, StructField, StructType
from floe_convert.errors import TypeConversionError

# Mapping of Iceberg primitive types to Delta type names
ICEBERG_TO_DELTA_TYPE_MAP: dict[type[PrimitiveType], str] = {
    BooleanType: "boolean",
    IntegerType: "integer",
    LongType: "long",
    FloatType: "float",
    DoubleType: "double",
    DateType: "date",
    TimestampType: "timestamp_ntz",
    TimestamptzType: "timestamp",
    StringType: "string",
    UUIDType: "string",
    BinaryType: "binary",
    FixedType: "binary",
}


class _IcebergToDeltaType(SchemaVisitor[Any]):
    """Schema visitor producing Delta types; fields become StructFields."""

    def __init__(self, cast_time_type: bool) -> None:
        self._cast_time_type = cast_time_type
        self._path: list[str] = []

    def before_field(self, field: NestedField) -> None:
        self._path.append(field.name)

    def after_field(self, field: NestedField) -> None:
        self._path.pop()

    def before_list_element(self, element: NestedField) -> None:
        self._path.append("element")

    def after_list_element(self, element: NestedField) -> None:
        self._path.pop()

    def before_map_key(self, key: NestedField) -> None:
        self._path.append("key")

    def after_map_key(self, key: NestedField) -> None:
        self._path.pop()

    def before_map_value(self, value: NestedField) -> None:
        self._path.append("value")

    def after_map_value(self, value: NestedField) -> None:
        self._path.pop()

    def schema(self, schema: Schema, struct_result: StructType) -> StructType:
        return struct_result

    def struct(self, struct: IcebergStructType, field_results: list[StructField]) -> StructType:
        return StructType(fields=field_results)

    def field(self, field: NestedField, field_result: DeltaDataType) -> StructField:
        metadata: dict[str, Any] = {COLUMN_ID_KEY: field.field_id}
        if field.doc:
            metadata["comment"] = field.doc
        return StructField(
            name=field.name,
            type=field_result,
            nullable=not field.required,
            metadata=metadata,
        )

    def list(self, list_type: ListType, element_result: DeltaDataType) -> ArrayType:
        return ArrayType(element_type=element_result, contains_null=not list_type.element_required)

    def map(
        self,
        map_type: IcebergMapType,
        key_result: DeltaDataType,
        value_result: DeltaDataType,
    ) -> MapType:
        return MapType(
            key_type=key_result,
            value_type=value_result,
            value_contains_null=not map_type.value_required,
        )

    def primitive(self, primitive: PrimitiveType) -> str:
        if isinstance(primitive, DecimalType):
            return f"decimal({primitive.precision},{primitive.scale})"
        if isinstance(primitive, TimeType):
            if self._cast_time_type:
                return "long"
            raise TypeConversionError(
                "Iceberg time type is not supported by Delta; enable time type casting "
                "to convert it to long (microseconds since midnight)",
                path=".".join(self._path) or None,
                source_type=str(primitive),
            )
        delta_type = ICEBERG_TO_DELTA_TYPE_MAP.get(type(primitive))
        if delta_type is None:
            raise TypeConversionError(
                f"Cannot convert unknown type to Delta: {primitive}",
                path=".".join(self._path) or None,
                source_type=str(primitive),
            )
        return delta_type


def convert_iceberg_schema(schema: Schema, cast_time_type: bool = False) -> StructType:
    """Convert an Iceberg schema to a Delta schema.

    Args:
        schema: The Iceberg table schema.
        cast_time_type: If True, time columns become long instead of failing.

    Returns:
        Delta StructType whose fields carry Iceberg field ids.

    Raises:
        TypeConversionError: If a type has no Delta counterpart.

    Example:
        >>> schema = Schema(NestedField(1, "id", LongType(), required=True))
        >>> convert_iceberg_schema(schema).fields[0].type
        'long'
    """
    result = visit(schema, _IcebergToDeltaType(cast_time_type))
    assert isinstance(result, StructType)
    return result


def convert_iceberg_type(iceberg_type: IcebergType, cast_time_type: bool = False) -> DeltaDataType:
    """Convert a single Iceberg type (primitive or nested) to a Delta type."""
    return visit(iceberg_type, _IcebergToDeltaType(cast_time_type))
