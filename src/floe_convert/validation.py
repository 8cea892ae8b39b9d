"""Convertibility checks for an Iceberg table about to become a Delta table."""

from __future__ import annotations

from typing import TYPE_CHECKING

from floe_convert.constants import CONVERT_CONTEXT, DEFAULT_NAME_MAPPING
from floe_convert.errors import (
    BucketPartitionUnsupportedError,
    CaseSensitiveColumnConflictError,
    CustomNameMappingUnsupportedError,
    DuplicateColumnNamesError,
)
from floe_convert.partitions import bucket_fields, has_bucket_partition
from floe_convert.schema_merge import check_column_name_duplication

if TYPE_CHECKING:
    from floe_convert.config import ConversionConfig
    from floe_convert.delta_schema import StructType
    from floe_convert.source import SourceTableLike


def check_convertible(
    table: SourceTableLike,
    table_schema: StructType,
    config: ConversionConfig,
) -> None:
    """Reject tables whose features cannot be represented losslessly.

    Checks, in order:
    - The table must not carry a default name mapping. Tables imported from
      files without field ids need one, and their file-level ids cannot be
      trusted by id-based column mapping.
    - With bucket partitions disabled, the current spec (not necessarily the
      selected one) must not bucket.
    - No two columns may differ only by case, since Delta column names are
      case-insensitive.

    Args:
        table: Source table.
        table_schema: Merged data and partition schema.
        config: Effective conversion flags.

    Raises:
        CustomNameMappingUnsupportedError: Name mapping property present.
        BucketPartitionUnsupportedError: Current spec buckets while disabled.
        CaseSensitiveColumnConflictError: Columns differing only by case.
    """
    if DEFAULT_NAME_MAPPING in table.properties():
        raise CustomNameMappingUnsupportedError(property_key=DEFAULT_NAME_MAPPING)

    current_spec = table.spec()
    if not config.bucket_partition_enabled and has_bucket_partition(current_spec):
        raise BucketPartitionUnsupportedError(fields=bucket_fields(current_spec))

    try:
        check_column_name_duplication(table_schema, CONVERT_CONTEXT)
    except DuplicateColumnNamesError as exc:
        if exc.context != CONVERT_CONTEXT:
            raise
        raise CaseSensitiveColumnConflictError(exc.columns) from exc
