"""Partition spec selection and partition column derivation.

This module provides:
- Bucket / non-bucket partition detection on pyiceberg PartitionSpecs
- Selection of the single partition spec a conversion uses
- Derivation of Delta partition columns (with generation expressions)
  from an Iceberg partition spec
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pyiceberg.partitioning import PartitionField, PartitionSpec
from pyiceberg.transforms import (
    BucketTransform,
    DayTransform,
    HourTransform,
    IdentityTransform,
    MonthTransform,
    TruncateTransform,
    VoidTransform,
    YearTransform,
)
from pyiceberg.types import BinaryType, IntegerType, LongType, StringType

from floe_convert.constants import COLUMN_ID_KEY, GENERATION_EXPRESSION_KEY
from floe_convert.delta_schema import DeltaDataType, StructField, StructType
from floe_convert.errors import (
    NoPartitionSpecsError,
    PartitionEvolutionUnsupportedError,
    UnsupportedPartitionTransformError,
)
from floe_convert.observability import get_logger
from floe_convert.type_conversion import convert_iceberg_type

if TYPE_CHECKING:
    from pyiceberg.schema import Schema

    from floe_convert.config import ConversionConfig
    from floe_convert.source import SourceTableLike


def has_bucket_partition(spec: PartitionSpec) -> bool:
    """Return True if any partition field uses a bucket transform."""
    return any(isinstance(f.transform, BucketTransform) for f in spec.fields)


def has_non_bucket_partition(spec: PartitionSpec) -> bool:
    """Return True if any partition field uses something other than bucket."""
    return any(not isinstance(f.transform, BucketTransform) for f in spec.fields)


def bucket_fields(spec: PartitionSpec) -> list[str]:
    """Return the names of the bucket partition fields."""
    return [f.name for f in spec.fields if isinstance(f.transform, BucketTransform)]


def select_partition_spec(table: SourceTableLike, config: ConversionConfig) -> PartitionSpec:
    """Choose the one partition spec used for the whole conversion.

    Partition evolution is not supported, so normally the table has exactly
    one spec. The exception: when bucket partitions are accepted, they are
    converted as unpartitioned, so evolution across specs that only ever
    used bucket transforms is harmless and any such spec will do.

    Bucket usage of the current spec is not checked here; the convertibility
    check rejects it when bucket partitions are disabled.

    Args:
        table: Source table.
        config: Effective conversion flags.

    Returns:
        The partition spec to convert with.

    Raises:
        NoPartitionSpecsError: If the table has no partition spec at all.
        PartitionEvolutionUnsupportedError: If several specs carry real
            partition fields and evolution is not enabled.
    """
    logger = get_logger()
    specs = table.specs()
    if not specs:
        raise NoPartitionSpecsError(location=table.location())

    if len(specs) == 1 or config.partition_evolution_enabled or not config.bucket_partition_enabled:
        spec = table.spec()
        logger.debug("partition_spec_selected", spec_id=spec.spec_id, reason="current")
        return spec

    for spec in specs.values():
        if not has_non_bucket_partition(spec):
            logger.info(
                "partition_spec_selected",
                spec_id=spec.spec_id,
                reason="bucket_only",
                registered_specs=len(specs),
            )
            return spec

    raise PartitionEvolutionUnsupportedError(spec_ids=sorted(specs))


def _numeric_truncate_expression(column: str, width: int) -> str:
    return f"{column} - (({column} % {width}) + {width}) % {width}"


def _partition_column(
    field: PartitionField,
    schema: Schema,
    cast_time_type: bool,
) -> StructField:
    source = schema.find_field(field.source_id)
    column = schema.find_column_name(field.source_id) or source.name
    source_type = source.field_type
    transform = field.transform
    metadata: dict[str, Any] = {}
    expression: str | None = None
    target: DeltaDataType

    if isinstance(transform, IdentityTransform) and not isinstance(source_type, BinaryType):
        target = convert_iceberg_type(source_type, cast_time_type)
        if field.name.lower() == column.lower():
            # Same name: the partition column is the data column and keeps its id.
            metadata[COLUMN_ID_KEY] = source.field_id
        else:
            expression = column
    elif isinstance(transform, YearTransform):
        expression, target = f"year({column})", "integer"
    elif isinstance(transform, DayTransform):
        expression, target = f"cast({column} as date)", "date"
    elif isinstance(transform, MonthTransform):
        expression, target = f"date_format({column}, 'yyyy-MM')", "string"
    elif isinstance(transform, HourTransform):
        expression, target = f"date_format({column}, 'yyyy-MM-dd-HH')", "string"
    elif isinstance(transform, TruncateTransform) and isinstance(source_type, StringType):
        expression, target = f"substring({column}, 0, {transform.width})", "string"
    elif isinstance(transform, TruncateTransform) and isinstance(source_type, (IntegerType, LongType)):
        expression = _numeric_truncate_expression(column, transform.width)
        target = convert_iceberg_type(source_type)
    else:
        raise UnsupportedPartitionTransformError(
            str(transform),
            field=field.name,
            source_type=str(source_type),
        )

    if expression is not None:
        metadata[GENERATION_EXPRESSION_KEY] = expression
    return StructField(name=field.name, type=target, nullable=True, metadata=metadata)


def partition_fields(
    spec: PartitionSpec,
    schema: Schema,
    cast_time_type: bool = False,
) -> StructType:
    """Derive Delta partition columns from an Iceberg partition spec.

    Bucket and void fields produce no column: bucketing only drives file
    pruning on the Iceberg side and void fields are leftovers of dropped
    partition fields. An identity field keeps the source column id only when
    it carries the source column's name; a renamed identity field becomes a
    generated column copying its source.

    Args:
        spec: The selected partition spec.
        schema: Current Iceberg schema, used to resolve source columns.
        cast_time_type: Passed through to identity column type conversion.

    Returns:
        StructType of partition columns, in spec order.

    Raises:
        UnsupportedPartitionTransformError: If a transform has no Delta counterpart.

    Example:
        >>> spec = PartitionSpec(PartitionField(2, 1000, DayTransform(), "ts_day"))
        >>> partition_fields(spec, schema).fields[0].metadata
        {'delta.generationExpression': 'cast(ts as date)'}
    """
    columns = [
        _partition_column(field, schema, cast_time_type)
        for field in spec.fields
        if not isinstance(field.transform, (BucketTransform, VoidTransform))
    ]
    return StructType(fields=columns)
