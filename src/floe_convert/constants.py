"""Property keys and defaults shared by the resolver.

Iceberg keys mirror pyiceberg's TableProperties; Delta keys are the table
configuration and column metadata keys of the Delta protocol.
"""

from __future__ import annotations

from pyiceberg.table import TableProperties

SOURCE_FORMAT = "iceberg"

# Iceberg table properties
DEFAULT_NAME_MAPPING = TableProperties.DEFAULT_NAME_MAPPING
MAX_SNAPSHOT_AGE_MS = "history.expire.max-snapshot-age-ms"
MAX_SNAPSHOT_AGE_MS_DEFAULT = 5 * 24 * 60 * 60 * 1000

# Iceberg snapshot summary counters
TOTAL_DATA_FILES = "total-data-files"
TOTAL_FILES_SIZE = "total-files-size"

# Delta table configuration
COLUMN_MAPPING_MODE = "delta.columnMapping.mode"
LOG_RETENTION = "delta.logRetentionDuration"
CAST_ICEBERG_TIME_TYPE = "delta.castIcebergTimeType"
IGNORE_ICEBERG_BUCKET_PARTITION = "delta.ignoreIcebergBucketPartition"

ID_MAPPING = "id"

# Delta column metadata
PHYSICAL_NAME_KEY = "delta.columnMapping.physicalName"
COLUMN_ID_KEY = "delta.columnMapping.id"
GENERATION_EXPRESSION_KEY = "delta.generationExpression"

CONVERT_CONTEXT = "during convert to Delta"
