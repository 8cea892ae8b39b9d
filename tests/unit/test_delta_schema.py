"""Unit tests for the Delta schema model."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from floe_convert.delta_schema import (
    ArrayType,
    MapType,
    StructField,
    StructType,
    explode,
    transform_fields,
)


@pytest.fixture
def nested_schema() -> StructType:
    """Create a schema with struct, array and map nesting."""
    return StructType(
        fields=[
            StructField(name="id", type="long", nullable=False),
            StructField(
                name="payload",
                type=StructType(fields=[StructField(name="kind", type="string")]),
            ),
            StructField(
                name="tags",
                type=ArrayType(
                    element_type=StructType(fields=[StructField(name="label", type="string")])
                ),
            ),
            StructField(
                name="attrs",
                type=MapType(
                    key_type="string",
                    value_type=StructType(fields=[StructField(name="v", type="int")]),
                ),
            ),
        ]
    )


class TestStructField:
    """Tests for StructField."""

    def test_metadata_accessors(self) -> None:
        """Test physical name and column id come from the metadata."""
        field = StructField(
            name="id",
            type="long",
            metadata={
                "delta.columnMapping.physicalName": "col-1",
                "delta.columnMapping.id": 1,
            },
        )

        assert field.physical_name == "col-1"
        assert field.column_id == 1

    def test_missing_metadata(self) -> None:
        """Test accessors return None without metadata."""
        field = StructField(name="id", type="long")

        assert field.physical_name is None
        assert field.column_id is None

    def test_with_metadata_returns_copy(self) -> None:
        """Test with_metadata merges keys and leaves the original untouched."""
        field = StructField(name="id", type="long", metadata={"comment": "pk"})

        updated = field.with_metadata({"delta.columnMapping.physicalName": "id"})

        assert updated.metadata == {"comment": "pk", "delta.columnMapping.physicalName": "id"}
        assert field.metadata == {"comment": "pk"}

    def test_empty_name_rejected(self) -> None:
        """Test empty column names are rejected."""
        with pytest.raises(ValidationError):
            StructField(name="", type="long")


class TestStructTypeJson:
    """Tests for Delta schemaString serialization."""

    def test_uses_protocol_field_names(self, nested_schema: StructType) -> None:
        """Test JSON uses the camelCase keys of the Delta protocol."""
        data = json.loads(nested_schema.to_json())

        tags = data["fields"][2]["type"]
        attrs = data["fields"][3]["type"]
        assert data["type"] == "struct"
        assert tags["type"] == "array"
        assert tags["containsNull"] is True
        assert "elementType" in tags
        assert attrs["keyType"] == "string"
        assert attrs["valueContainsNull"] is True

    def test_parses_delta_schema_string(self) -> None:
        """Test a schemaString as written by Delta is parsed."""
        schema_string = json.dumps(
            {
                "type": "struct",
                "fields": [
                    {
                        "name": "id",
                        "type": "long",
                        "nullable": False,
                        "metadata": {"delta.columnMapping.physicalName": "col-a1"},
                    },
                    {
                        "name": "tags",
                        "type": {"type": "array", "elementType": "string", "containsNull": False},
                        "nullable": True,
                        "metadata": {},
                    },
                ],
            }
        )

        schema = StructType.from_json(schema_string)

        assert schema.field_names == ["id", "tags"]
        assert schema.fields[0].physical_name == "col-a1"
        tags_type = schema.fields[1].type
        assert isinstance(tags_type, ArrayType)
        assert tags_type.contains_null is False


class TestExplode:
    """Tests for explode()."""

    def test_pre_order_paths(self, nested_schema: StructType) -> None:
        """Test every nested field is listed after its parent."""
        paths = [path for path, _ in explode(nested_schema)]

        assert paths == [
            ("id",),
            ("payload",),
            ("payload", "kind"),
            ("tags",),
            ("tags", "element", "label"),
            ("attrs",),
            ("attrs", "value", "v"),
        ]


class TestTransformFields:
    """Tests for transform_fields()."""

    def test_receives_parent_path(self, nested_schema: StructType) -> None:
        """Test the callback sees the parent path of each field."""
        seen: list[tuple[tuple[str, ...], str]] = []

        def _record(parent: tuple[str, ...], field: StructField) -> StructField:
            seen.append((parent, field.name))
            return field

        transform_fields(nested_schema, _record)

        assert ((), "id") in seen
        assert (("payload",), "kind") in seen
        assert (("tags", "element"), "label") in seen
        assert (("attrs", "value"), "v") in seen

    def test_rebuilds_nested_fields(self, nested_schema: StructType) -> None:
        """Test changes to nested fields are kept in the result."""
        upper = transform_fields(
            nested_schema, lambda _, f: f.model_copy(update={"name": f.name.upper()})
        )

        assert [path for path, _ in explode(upper)][2] == ("PAYLOAD", "KIND")
        assert nested_schema.field_names == ["id", "payload", "tags", "attrs"]
