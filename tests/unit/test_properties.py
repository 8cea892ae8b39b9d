"""Unit tests for Delta table property derivation."""

from __future__ import annotations

import pytest

from floe_convert.config import ConversionConfig
from floe_convert.properties import derive_properties


class TestDeriveProperties:
    """Tests for derive_properties()."""

    def test_defaults(self) -> None:
        """Test source properties are copied and required settings overlaid."""
        properties = derive_properties({"commit.retry.num-retries": "3"}, ConversionConfig())

        assert properties == {
            "commit.retry.num-retries": "3",
            "delta.columnMapping.mode": "id",
            "delta.logRetentionDuration": "432000000 millisecond",
            "delta.ignoreIcebergBucketPartition": "true",
        }

    def test_log_retention_from_snapshot_age(self) -> None:
        """Test log retention follows the Iceberg snapshot max age."""
        properties = derive_properties(
            {"history.expire.max-snapshot-age-ms": "86400000"}, ConversionConfig()
        )

        assert properties["delta.logRetentionDuration"] == "86400000 millisecond"
        assert properties["history.expire.max-snapshot-age-ms"] == "86400000"

    def test_required_settings_win(self) -> None:
        """Test a source value for the mapping mode is overwritten."""
        properties = derive_properties({"delta.columnMapping.mode": "name"}, ConversionConfig())

        assert properties["delta.columnMapping.mode"] == "id"

    def test_cast_marker(self) -> None:
        """Test the cast marker is written when casting is on."""
        properties = derive_properties({}, ConversionConfig(cast_time_type=True))

        assert properties["delta.castIcebergTimeType"] == "true"

    def test_no_markers_when_disabled(self) -> None:
        """Test markers are omitted when their behaviour is off."""
        properties = derive_properties(
            {}, ConversionConfig(cast_time_type=False, bucket_partition_enabled=False)
        )

        assert "delta.castIcebergTimeType" not in properties
        assert "delta.ignoreIcebergBucketPartition" not in properties

    def test_source_not_modified(self) -> None:
        """Test the source mapping is left untouched."""
        source = {"owner": "analytics"}

        derive_properties(source, ConversionConfig())

        assert source == {"owner": "analytics"}

    def test_invalid_snapshot_age(self) -> None:
        """Test a non-integer snapshot age is rejected."""
        with pytest.raises(ValueError):
            derive_properties(
                {"history.expire.max-snapshot-age-ms": "five days"}, ConversionConfig()
            )
