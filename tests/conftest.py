"""Shared pytest fixtures for floe-convert tests.

Provides a FakeSourceTable test double, sample Iceberg schemas and
partition specs, and structlog configuration for test capture.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from typing import Any
from unittest.mock import MagicMock

import pytest
import structlog
from click.testing import CliRunner
from pyiceberg.partitioning import PartitionField, PartitionSpec
from pyiceberg.schema import Schema
from pyiceberg.transforms import BucketTransform, DayTransform, IdentityTransform
from pyiceberg.types import (
    IntegerType,
    LongType,
    NestedField,
    StringType,
    StructType,
    TimestamptzType,
)


@pytest.fixture(autouse=True)
def configure_structlog_for_tests() -> None:
    """Configure structlog to output to stdout for test capture."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,  # Important for test isolation
    )


@pytest.fixture(autouse=True)
def clean_convert_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove FLOE_CONVERT_* variables so settings use their defaults."""
    for key in list(os.environ):
        if key.startswith("FLOE_CONVERT_"):
            monkeypatch.delenv(key, raising=False)


@dataclass
class FakeSourceTable:
    """In-memory SourceTableLike for tests."""

    table_schema: Schema
    partition_specs: dict[int, PartitionSpec]
    current_spec_id: int = 0
    table_properties: dict[str, str] = field(default_factory=dict)
    snapshots: dict[int, Any] = field(default_factory=dict)
    current_snapshot_id: int | None = None
    table_location: str = "s3://lake/events"
    file_io: Any = None

    def location(self) -> str:
        return self.table_location

    def schema(self) -> Schema:
        return self.table_schema

    def properties(self) -> dict[str, str]:
        return dict(self.table_properties)

    def specs(self) -> dict[int, PartitionSpec]:
        return dict(self.partition_specs)

    def spec(self) -> PartitionSpec:
        return self.partition_specs[self.current_spec_id]

    def current_snapshot(self) -> Any:
        if self.current_snapshot_id is None:
            return None
        return self.snapshots[self.current_snapshot_id]

    def snapshot(self, snapshot_id: int) -> Any:
        return self.snapshots.get(snapshot_id)

    def io(self) -> Any:
        return self.file_io


@pytest.fixture
def make_snapshot() -> Any:
    """Return a factory for snapshot doubles with a mapping summary."""

    def _make(summary: dict[str, str] | None) -> MagicMock:
        snapshot = MagicMock()
        snapshot.summary = summary
        return snapshot

    return _make


@pytest.fixture
def sample_schema() -> Schema:
    """Create a sample Iceberg schema with a nested struct."""
    return Schema(
        NestedField(1, "id", LongType(), required=True),
        NestedField(2, "ts", TimestamptzType(), required=False),
        NestedField(3, "region", StringType(), required=False),
        NestedField(
            4,
            "payload",
            StructType(
                NestedField(5, "kind", StringType(), required=False),
                NestedField(6, "count", IntegerType(), required=False),
            ),
            required=False,
        ),
        schema_id=0,
    )


@pytest.fixture
def unpartitioned_spec() -> PartitionSpec:
    """Create an unpartitioned spec."""
    return PartitionSpec(spec_id=0)


@pytest.fixture
def region_spec() -> PartitionSpec:
    """Create a spec partitioned by identity(region)."""
    return PartitionSpec(PartitionField(3, 1000, IdentityTransform(), "region"), spec_id=1)


@pytest.fixture
def day_spec() -> PartitionSpec:
    """Create a spec partitioned by day(ts)."""
    return PartitionSpec(PartitionField(2, 1001, DayTransform(), "ts_day"), spec_id=2)


@pytest.fixture
def bucket_spec() -> PartitionSpec:
    """Create a spec partitioned by bucket(16, id)."""
    return PartitionSpec(PartitionField(1, 1002, BucketTransform(16), "id_bucket"), spec_id=3)


@pytest.fixture
def make_table(sample_schema: Schema, unpartitioned_spec: PartitionSpec) -> Any:
    """Return a factory building FakeSourceTables around the sample schema."""

    def _make(
        specs: list[PartitionSpec] | None = None,
        current: PartitionSpec | None = None,
        **kwargs: Any,
    ) -> FakeSourceTable:
        spec_list = [unpartitioned_spec] if specs is None else specs
        if current is None:
            current = spec_list[-1] if spec_list else unpartitioned_spec
        kwargs.setdefault("table_schema", sample_schema)
        return FakeSourceTable(
            partition_specs={s.spec_id: s for s in spec_list},
            current_spec_id=current.spec_id,
            **kwargs,
        )

    return _make


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click test runner.

    Returns:
        CliRunner instance for testing CLI commands.
    """
    return CliRunner()
