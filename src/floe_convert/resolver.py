"""SourceTableResolver: resolve an Iceberg table into a Delta conversion plan.

The resolver reinterprets an existing Iceberg table as a Delta table without
touching data files. It picks a single partition spec, builds a schema whose
physical names stay stable across re-conversions, derives the Delta table
properties and rejects tables whose features cannot be represented.

All derivations run once, in construction; only the size estimate is lazy.
"""

from __future__ import annotations

from collections.abc import Callable
from functools import cached_property
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field
from pyiceberg.partitioning import PartitionSpec

from floe_convert.column_mapping import (
    assign_physical_names,
    field_path_to_physical_name,
    physical_names,
    set_physical_names,
)
from floe_convert.config import ConversionConfig, ConversionSettings
from floe_convert.constants import (
    ID_MAPPING,
    PHYSICAL_NAME_KEY,
    SOURCE_FORMAT,
    TOTAL_DATA_FILES,
    TOTAL_FILES_SIZE,
)
from floe_convert.delta_schema import StructType
from floe_convert.manifest import FileManifest, SnapshotFileManifest
from floe_convert.observability import get_logger, resolve_operation
from floe_convert.partitions import partition_fields, select_partition_spec
from floe_convert.properties import derive_properties
from floe_convert.schema_merge import merge_data_and_partition_schema
from floe_convert.type_conversion import convert_iceberg_schema
from floe_convert.validation import check_convertible

if TYPE_CHECKING:
    from pyiceberg.schema import Schema
    from structlog.stdlib import BoundLogger

    from floe_convert.prior import PriorTargetSnapshot
    from floe_convert.source import SourceTableLike

TypeConverter = Callable[["Schema", bool], StructType]


class ConversionPlan(BaseModel):
    """Everything the conversion command needs to write the Delta table.

    Attributes:
        source_format: Format tag of the source table ("iceberg").
        location: Source table location.
        table_schema: Data and partition columns merged.
        data_schema: Data columns with physical names.
        partition_schema: Partition columns with physical names.
        partition_spec: The Iceberg partition spec used for the conversion.
        properties: Delta table properties.
        column_mapping_mode: Required Delta column mapping mode.
        collect_stats: Whether per-file statistics should be collected.
        num_files: Number of live data files.
        size_in_bytes: Total size of live data files.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    source_format: str = Field(default=SOURCE_FORMAT)
    location: str
    table_schema: StructType
    data_schema: StructType
    partition_schema: StructType
    partition_spec: PartitionSpec
    properties: dict[str, str] = Field(default_factory=dict)
    column_mapping_mode: str = Field(default=ID_MAPPING)
    collect_stats: bool = True
    num_files: int = Field(..., ge=0)
    size_in_bytes: int = Field(..., ge=0)

    @property
    def partition_columns(self) -> list[str]:
        """Return the Delta partition column names, in order."""
        return self.partition_schema.field_names

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable representation."""
        data = self.model_dump(mode="json", by_alias=True, exclude={"partition_spec"})
        data["partition_spec"] = {
            "spec_id": self.partition_spec.spec_id,
            "fields": [
                {
                    "name": f.name,
                    "source_id": f.source_id,
                    "field_id": f.field_id,
                    "transform": str(f.transform),
                }
                for f in self.partition_spec.fields
            ],
        }
        data["partition_columns"] = self.partition_columns
        return data


def _inherit_identity_names(
    partition_schema: StructType,
    data_schema: StructType,
    case_sensitive: bool = False,
) -> StructType:
    """Give identity partition columns the physical name of their data column.

    Only a partition column that has the data column's id and its name is
    the data column; the merge replaces it in place.
    """

    def key(name: str) -> str:
        return name if case_sensitive else name.lower()

    by_id = {f.column_id: f for f in data_schema.fields if f.column_id is not None}
    fields = []
    for field in partition_schema.fields:
        source = by_id.get(field.column_id) if field.column_id is not None else None
        if (
            field.physical_name is None
            and source is not None
            and source.physical_name is not None
            and key(source.name) == key(field.name)
        ):
            field = field.with_metadata({PHYSICAL_NAME_KEY: source.physical_name})
        fields.append(field)
    return StructType(fields=fields)


class SourceTableResolver:
    """Resolve an Iceberg table into the pieces of a Delta conversion.

    Attributes:
        config: Effective conversion flags (sticky markers folded in).
        partition_spec: The single partition spec used for the conversion.
        data_schema: Converted data columns with physical names.
        partition_schema: Delta partition columns with physical names.
        table_schema: Data and partition columns merged.
        properties: Delta table properties, read-only.

    Example:
        >>> source = load_source_table("s3://lake/events/metadata/v3.metadata.json")
        >>> resolver = SourceTableResolver(source)
        >>> resolver.partition_schema.field_names
        ['event_date']
        >>> resolver.num_files
        42
    """

    required_column_mapping_mode: str = ID_MAPPING
    format: str = SOURCE_FORMAT

    def __init__(
        self,
        table: SourceTableLike,
        prior: PriorTargetSnapshot | None = None,
        settings: ConversionSettings | None = None,
        *,
        type_converter: TypeConverter | None = None,
        file_manifest: FileManifest | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        """Resolve the table.

        Args:
            table: Source table, never modified.
            prior: Snapshot of the previously converted table for incremental
                re-conversion, None for the first conversion.
            settings: Global defaults. Loaded from the environment if None.
            type_converter: Schema conversion function, defaults to
                convert_iceberg_schema.
            file_manifest: Fallback for the size estimate when the snapshot
                summary lacks the counters.
            logger: Optional structlog logger for custom logging.

        Raises:
            NoPartitionSpecsError: The table has no partition spec.
            PartitionEvolutionUnsupportedError: Several real partition specs.
            TypeConversionError: A column type has no Delta counterpart.
            UnsupportedPartitionTransformError: A partition transform has no
                Delta counterpart.
            SchemaMergeConflictError: A partition column collides with an
                unrelated data column.
            CustomNameMappingUnsupportedError: The table uses a name mapping.
            BucketPartitionUnsupportedError: Bucket partitions are disabled.
            CaseSensitiveColumnConflictError: Columns differ only by case.
        """
        self._table = table
        self._prior = prior
        self._type_converter = type_converter or convert_iceberg_schema
        self._logger = logger or get_logger()

        with resolve_operation("resolve", location=table.location(), source_format=self.format):
            self.config = ConversionConfig.resolve(settings, prior)
            self._field_path_to_physical_name = field_path_to_physical_name(
                prior.table_schema if prior is not None else None
            )
            self.partition_spec = select_partition_spec(table, self.config)
            self.data_schema = self._build_data_schema()
            self.properties = MappingProxyType(derive_properties(table.properties(), self.config))
            self.partition_schema = self._build_partition_schema()
            self.table_schema, _ = merge_data_and_partition_schema(
                self.data_schema,
                self.partition_schema,
                self.config.case_sensitive,
            )
            check_convertible(table, self.table_schema, self.config)

        self._file_manifest = file_manifest or SnapshotFileManifest(table)

    @property
    def table(self) -> SourceTableLike:
        """Return the source table."""
        return self._table

    @property
    def location(self) -> str:
        """Return the source table location."""
        return self._table.location()

    def _build_data_schema(self) -> StructType:
        converted = self._type_converter(self._table.schema(), self.config.cast_time_type)
        reused = set_physical_names(converted, self._field_path_to_physical_name)
        assigned = assign_physical_names(reused)
        self._logger.debug(
            "physical_names_assigned",
            schema="data",
            reused=len(physical_names(reused)),
            total=len(physical_names(assigned)),
        )
        return assigned

    def _build_partition_schema(self) -> StructType:
        derived = partition_fields(
            self.partition_spec,
            self._table.schema(),
            self.config.cast_time_type,
        )
        reused = set_physical_names(derived, self._field_path_to_physical_name)
        inherited = _inherit_identity_names(reused, self.data_schema, self.config.case_sensitive)
        return assign_physical_names(inherited, reserved=physical_names(self.data_schema))

    def _summary_counter(self, key: str) -> int | None:
        snapshot = self._table.current_snapshot()
        if snapshot is None or snapshot.summary is None:
            return None
        value = snapshot.summary.get(key)
        return int(value) if value is not None else None

    @cached_property
    def num_files(self) -> int:
        """Number of live data files, from the snapshot summary if possible."""
        counted = self._summary_counter(TOTAL_DATA_FILES)
        if counted is not None:
            return counted
        self._logger.info("size_estimate_fallback", counter=TOTAL_DATA_FILES)
        return self._file_manifest.num_files

    @cached_property
    def size_in_bytes(self) -> int:
        """Total size of live data files, from the snapshot summary if possible."""
        counted = self._summary_counter(TOTAL_FILES_SIZE)
        if counted is not None:
            return counted
        self._logger.info("size_estimate_fallback", counter=TOTAL_FILES_SIZE)
        return self._file_manifest.size_in_bytes

    def plan(self) -> ConversionPlan:
        """Return the resolved conversion plan.

        Triggers the size estimate if it has not run yet.
        """
        return ConversionPlan(
            source_format=self.format,
            location=self.location,
            table_schema=self.table_schema,
            data_schema=self.data_schema,
            partition_schema=self.partition_schema,
            partition_spec=self.partition_spec,
            properties=dict(self.properties),
            column_mapping_mode=self.required_column_mapping_mode,
            collect_stats=self.config.collect_stats,
            num_files=self.num_files,
            size_in_bytes=self.size_in_bytes,
        )
