"""Snapshot of a previously converted Delta table.

Used for incremental re-conversion: its schema supplies the physical names
that must be kept, and its configuration supplies the sticky markers
written by the earlier conversion.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from floe_convert.constants import CAST_ICEBERG_TIME_TYPE, IGNORE_ICEBERG_BUCKET_PARTITION
from floe_convert.delta_schema import StructType
from floe_convert.observability import get_logger


def _as_bool(value: str | None) -> bool:
    return value is not None and value.strip().lower() == "true"


class PriorTargetSnapshot(BaseModel):
    """Schema and configuration of the already converted Delta table.

    Attributes:
        table_schema: Delta schema, fields carrying physical names.
        configuration: Delta table configuration.

    Example:
        >>> prior = PriorTargetSnapshot.from_delta_log(Path("/data/events/_delta_log"))
        >>> prior.casts_time_type
        False
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    table_schema: StructType | None = Field(
        default=None,
        description="Schema of the converted table",
    )
    configuration: dict[str, str] = Field(
        default_factory=dict,
        description="Delta table configuration",
    )

    @property
    def casts_time_type(self) -> bool:
        """Return True if an earlier conversion cast time columns."""
        return _as_bool(self.configuration.get(CAST_ICEBERG_TIME_TYPE))

    @property
    def ignores_bucket_partition(self) -> bool:
        """Return True if an earlier conversion treated bucket partitions as unpartitioned."""
        return _as_bool(self.configuration.get(IGNORE_ICEBERG_BUCKET_PARTITION))

    @classmethod
    def from_metadata_action(cls, action: dict[str, Any]) -> PriorTargetSnapshot:
        """Build from a Delta `metaData` action.

        Accepts either the full log line ({"metaData": {...}}) or its body.

        Args:
            action: Parsed metaData action.

        Returns:
            PriorTargetSnapshot.
        """
        body = action.get("metaData", action)
        schema_string = body.get("schemaString")
        return cls(
            table_schema=StructType.from_json(schema_string) if schema_string else None,
            configuration=dict(body.get("configuration") or {}),
        )

    @classmethod
    def from_delta_log(cls, log_dir: str | Path) -> PriorTargetSnapshot:
        """Read the latest metadata from a local `_delta_log` directory.

        Commit files are replayed in version order and the last `metaData`
        action wins. Checkpoint files are not read.

        Args:
            log_dir: Path to the `_delta_log` directory.

        Returns:
            PriorTargetSnapshot.

        Raises:
            FileNotFoundError: If the directory has no commit file.
            ValueError: If no commit contains a metaData action.
        """
        log_path = Path(log_dir)
        commits = sorted(p for p in log_path.glob("*.json") if p.stem.isdigit())
        if not commits:
            msg = f"No Delta commit files found in {log_path}"
            raise FileNotFoundError(msg)

        latest: dict[str, Any] | None = None
        for commit in commits:
            for line in commit.read_text().splitlines():
                if not line.strip():
                    continue
                action = json.loads(line)
                if "metaData" in action:
                    latest = action

        if latest is None:
            msg = f"No metaData action found in {log_path}"
            raise ValueError(msg)

        get_logger().debug(
            "prior_snapshot_loaded",
            log_dir=str(log_path),
            version=int(commits[-1].stem),
        )
        return cls.from_metadata_action(latest)
