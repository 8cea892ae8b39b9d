"""Unit tests for data/partition schema merging and duplicate detection."""

from __future__ import annotations

import pytest

from floe_convert.delta_schema import StructField, StructType
from floe_convert.errors import DuplicateColumnNamesError, SchemaMergeConflictError
from floe_convert.schema_merge import (
    check_column_name_duplication,
    merge_data_and_partition_schema,
)

COLUMN_ID = "delta.columnMapping.id"


def _field(name: str, data_type: str, column_id: int | None = None, **metadata: str) -> StructField:
    meta: dict[str, object] = dict(metadata)
    if column_id is not None:
        meta[COLUMN_ID] = column_id
    return StructField(name=name, type=data_type, metadata=meta)


@pytest.fixture
def data_schema() -> StructType:
    """Create a flat data schema."""
    return StructType(
        fields=[
            _field("id", "long", 1),
            _field("ts", "timestamp", 2),
            _field("region", "string", 3),
        ]
    )


class TestMergeDataAndPartitionSchema:
    """Tests for merge_data_and_partition_schema()."""

    def test_generated_columns_appended(self, data_schema: StructType) -> None:
        """Test non-overlapping partition columns come after data columns."""
        partition = StructType(fields=[_field("ts_day", "date")])

        merged, overlapped = merge_data_and_partition_schema(data_schema, partition)

        assert merged.field_names == ["id", "ts", "region", "ts_day"]
        assert overlapped == {}

    def test_identity_replaces_data_column_in_place(self, data_schema: StructType) -> None:
        """Test an identity partition column takes its data column's position."""
        region = _field("region", "string", 3, note="partition")
        partition = StructType(fields=[region])

        merged, overlapped = merge_data_and_partition_schema(data_schema, partition)

        assert merged.field_names == ["id", "ts", "region"]
        assert merged.fields[2].metadata["note"] == "partition"
        assert overlapped == {"region": region}

    def test_case_insensitive_overlap(self, data_schema: StructType) -> None:
        """Test names are matched ignoring case by default."""
        partition = StructType(fields=[_field("REGION", "string", 3)])

        merged, overlapped = merge_data_and_partition_schema(data_schema, partition)

        assert merged.field_names == ["id", "ts", "REGION"]
        assert "region" in overlapped

    def test_case_sensitive_no_overlap(self) -> None:
        """Test case-sensitive matching keeps differently-cased columns apart."""
        data = StructType(fields=[_field("region", "string", 3)])
        partition = StructType(fields=[_field("Region", "string")])

        merged, overlapped = merge_data_and_partition_schema(data, partition, case_sensitive=True)

        assert merged.field_names == ["region", "Region"]
        assert overlapped == {}

    def test_unrelated_overlap_conflicts(self, data_schema: StructType) -> None:
        """Test a generated column named like an unrelated data column fails."""
        partition = StructType(fields=[_field("region", "string")])

        with pytest.raises(SchemaMergeConflictError) as exc_info:
            merge_data_and_partition_schema(data_schema, partition)

        assert exc_info.value.columns == ("region",)

    def test_overlap_with_other_column_id_conflicts(self, data_schema: StructType) -> None:
        """Test an identity column of another source column fails."""
        partition = StructType(fields=[_field("region", "long", 1)])

        with pytest.raises(SchemaMergeConflictError):
            merge_data_and_partition_schema(data_schema, partition)


class TestCheckColumnNameDuplication:
    """Tests for check_column_name_duplication()."""

    def test_unique_names_pass(self, data_schema: StructType) -> None:
        """Test a schema without duplicates passes."""
        check_column_name_duplication(data_schema, "during convert to Delta")

    def test_top_level_duplicates(self) -> None:
        """Test names differing only by case are reported with original spelling."""
        schema = StructType(fields=[_field("Foo", "long"), _field("foo", "long")])

        with pytest.raises(DuplicateColumnNamesError) as exc_info:
            check_column_name_duplication(schema, "during convert to Delta")

        assert exc_info.value.columns == ("Foo", "foo")
        assert exc_info.value.context == "during convert to Delta"

    def test_nested_duplicates(self) -> None:
        """Test duplicates inside a struct use full dotted names."""
        schema = StructType(
            fields=[
                StructField(
                    name="payload",
                    type=StructType(fields=[_field("Kind", "string"), _field("kind", "string")]),
                )
            ]
        )

        with pytest.raises(DuplicateColumnNamesError) as exc_info:
            check_column_name_duplication(schema, "here")

        assert exc_info.value.columns == ("payload.Kind", "payload.kind")

    def test_same_leaf_name_under_different_parents(self) -> None:
        """Test equal leaf names under different parents are not duplicates."""
        schema = StructType(
            fields=[
                StructField(name="a", type=StructType(fields=[_field("x", "long")])),
                StructField(name="b", type=StructType(fields=[_field("x", "long")])),
            ]
        )

        check_column_name_duplication(schema, "here")

    def test_dotted_name_is_not_a_nested_path(self) -> None:
        """Test a top-level column named `a.b` does not clash with nested `a` -> `b`."""
        schema = StructType(
            fields=[
                StructField(name="a", type=StructType(fields=[_field("b", "long")])),
                _field("a.b", "long"),
            ]
        )

        check_column_name_duplication(schema, "here")
