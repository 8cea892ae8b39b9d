"""Delta table properties for a converted Iceberg table."""

from __future__ import annotations

from collections.abc import Mapping

from pyiceberg.utils.properties import property_as_int

from floe_convert.config import ConversionConfig
from floe_convert.constants import (
    CAST_ICEBERG_TIME_TYPE,
    COLUMN_MAPPING_MODE,
    ID_MAPPING,
    IGNORE_ICEBERG_BUCKET_PARTITION,
    LOG_RETENTION,
    MAX_SNAPSHOT_AGE_MS,
    MAX_SNAPSHOT_AGE_MS_DEFAULT,
)
from floe_convert.observability import get_logger


def derive_properties(
    source_properties: Mapping[str, str],
    config: ConversionConfig,
) -> dict[str, str]:
    """Build the Delta table properties, overlaying required settings on the source's.

    Applied in order, later wins:
    1. every source property, verbatim
    2. id-based column mapping
    3. log retention from the Iceberg snapshot max age
    4. the cast-time-type marker, if casting is on
    5. the ignore-bucket-partition marker, if bucket partitions are accepted

    The markers make future re-conversions keep the behaviour even if the
    global defaults change.

    Args:
        source_properties: Iceberg table properties.
        config: Effective conversion flags.

    Returns:
        Property map for the Delta table.

    Raises:
        ValueError: If the max snapshot age property is not an integer.

    Example:
        >>> derive_properties({"commit.retry.num-retries": "3"}, ConversionConfig())
        {'commit.retry.num-retries': '3', 'delta.columnMapping.mode': 'id',
         'delta.logRetentionDuration': '432000000 millisecond',
         'delta.ignoreIcebergBucketPartition': 'true'}
    """
    max_snapshot_age_ms = property_as_int(
        dict(source_properties), MAX_SNAPSHOT_AGE_MS, MAX_SNAPSHOT_AGE_MS_DEFAULT
    )

    properties = dict(source_properties)
    properties[COLUMN_MAPPING_MODE] = ID_MAPPING
    properties[LOG_RETENTION] = f"{max_snapshot_age_ms} millisecond"
    if config.cast_time_type:
        properties[CAST_ICEBERG_TIME_TYPE] = "true"
    if config.bucket_partition_enabled:
        properties[IGNORE_ICEBERG_BUCKET_PARTITION] = "true"

    get_logger().debug(
        "properties_derived",
        source_keys=len(source_properties),
        log_retention_ms=max_snapshot_age_ms,
    )
    return properties
