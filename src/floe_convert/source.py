"""Source table access for conversion.

SourceTableLike is the subset of Iceberg table functionality the resolver
needs. DelegatingSourceTable implements it on top of a pyiceberg Table;
tests substitute their own implementation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from pyiceberg.table import StaticTable

if TYPE_CHECKING:
    from pyiceberg.io import FileIO
    from pyiceberg.partitioning import PartitionSpec
    from pyiceberg.schema import Schema
    from pyiceberg.table import Table
    from pyiceberg.table.snapshots import Snapshot


@runtime_checkable
class SourceTableLike(Protocol):
    """Subset of an Iceberg table required for conversion to Delta."""

    def location(self) -> str: ...

    def schema(self) -> Schema: ...

    def properties(self) -> dict[str, str]: ...

    def specs(self) -> dict[int, PartitionSpec]: ...

    def spec(self) -> PartitionSpec: ...

    def current_snapshot(self) -> Snapshot | None: ...

    def snapshot(self, snapshot_id: int) -> Snapshot | None: ...

    def io(self) -> FileIO: ...


class DelegatingSourceTable:
    """SourceTableLike backed by a pyiceberg Table.

    Example:
        >>> from pyiceberg.catalog import load_catalog
        >>> catalog = load_catalog("polaris")
        >>> source = DelegatingSourceTable(catalog.load_table("bronze.events"))
        >>> source.spec().spec_id
        0
    """

    def __init__(self, table: Table) -> None:
        self._table = table

    @property
    def table(self) -> Table:
        """Return the wrapped pyiceberg Table."""
        return self._table

    def location(self) -> str:
        return self._table.location()

    def schema(self) -> Schema:
        return self._table.schema()

    def properties(self) -> dict[str, str]:
        # pyiceberg exposes properties as an attribute
        return dict(self._table.properties)

    def specs(self) -> dict[int, PartitionSpec]:
        return self._table.specs()

    def spec(self) -> PartitionSpec:
        return self._table.spec()

    def current_snapshot(self) -> Snapshot | None:
        return self._table.current_snapshot()

    def snapshot(self, snapshot_id: int) -> Snapshot | None:
        return self._table.snapshot_by_id(snapshot_id)

    def io(self) -> FileIO:
        return self._table.io


def load_source_table(
    metadata_location: str,
    properties: dict[str, str] | None = None,
) -> DelegatingSourceTable:
    """Load a source table directly from its metadata JSON file.

    Args:
        metadata_location: Path or URI of an Iceberg `*.metadata.json` file.
        properties: Optional FileIO properties (credentials, endpoints).

    Returns:
        DelegatingSourceTable over a read-only pyiceberg StaticTable.

    Example:
        >>> source = load_source_table("s3://lake/events/metadata/v3.metadata.json")
    """
    return DelegatingSourceTable(StaticTable.from_metadata(metadata_location, properties or {}))
