"""File manifest aggregates for a source table.

The resolver prefers the snapshot summary counters and falls back to a
FileManifest only when they are missing.
"""

from __future__ import annotations

from functools import cached_property
from typing import TYPE_CHECKING, Protocol

from pyiceberg.manifest import DataFileContent, ManifestContent

from floe_convert.observability import resolve_operation

if TYPE_CHECKING:
    from floe_convert.source import SourceTableLike


class FileManifest(Protocol):
    """Aggregates over the live data files of a source table."""

    @property
    def num_files(self) -> int: ...

    @property
    def size_in_bytes(self) -> int: ...


class SnapshotFileManifest:
    """FileManifest reading the manifests of the current snapshot.

    Manifests are read at most once per instance, on first access.

    Example:
        >>> manifest = SnapshotFileManifest(source)
        >>> manifest.num_files, manifest.size_in_bytes
        (42, 1073741824)
    """

    def __init__(self, table: SourceTableLike) -> None:
        self._table = table

    @cached_property
    def _totals(self) -> tuple[int, int]:
        snapshot = self._table.current_snapshot()
        if snapshot is None:
            return 0, 0

        num_files = 0
        size_in_bytes = 0
        io = self._table.io()
        with resolve_operation("scan_manifests", location=self._table.location()):
            for manifest in snapshot.manifests(io):
                if manifest.content != ManifestContent.DATA:
                    continue
                for entry in manifest.fetch_manifest_entry(io, discard_deleted=True):
                    if entry.data_file.content == DataFileContent.DATA:
                        num_files += 1
                        size_in_bytes += entry.data_file.file_size_in_bytes
        return num_files, size_in_bytes

    @property
    def num_files(self) -> int:
        return self._totals[0]

    @property
    def size_in_bytes(self) -> int:
        return self._totals[1]
