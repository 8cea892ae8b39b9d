"""Configuration models for floe-convert.

This module provides:
- ConversionSettings: process-wide defaults, loadable from FLOE_CONVERT_* env vars
- ConversionConfig: effective flags for a single resolution, with sticky
  markers from a previously converted table folded in
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from floe_convert.prior import PriorTargetSnapshot


class ConversionSettings(BaseSettings):
    """Global conversion defaults.

    Can be loaded from environment variables with FLOE_CONVERT_ prefix.

    Example:
        >>> # From environment (FLOE_CONVERT_CAST_TIME_TYPE=true)
        >>> settings = ConversionSettings()
        >>>
        >>> # Explicit
        >>> settings = ConversionSettings(partition_evolution_enabled=True)
    """

    model_config = SettingsConfigDict(
        env_prefix="FLOE_CONVERT_",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    partition_evolution_enabled: bool = Field(
        default=False,
        description="Accept tables with several partition specs and use the current one",
    )
    bucket_partition_enabled: bool = Field(
        default=True,
        description="Treat bucket-partitioned tables as unpartitioned",
    )
    cast_time_type: bool = Field(
        default=False,
        description="Convert Iceberg time columns to long (microseconds)",
    )
    collect_stats: bool = Field(
        default=True,
        description="Collect per-file statistics in the file manifest",
    )
    case_sensitive: bool = Field(
        default=False,
        description="Match data and partition column names case-sensitively",
    )


class ConversionConfig(BaseModel):
    """Effective flags for one resolution.

    Built once per resolver through resolve(); never re-read afterwards.

    Attributes:
        partition_evolution_enabled: Accept partition evolution.
        bucket_partition_enabled: Accept bucket partitioning (sticky).
        cast_time_type: Cast time columns to long (sticky).
        collect_stats: Collect file statistics.
        case_sensitive: Case sensitivity of the data/partition merge.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    partition_evolution_enabled: bool = False
    bucket_partition_enabled: bool = True
    cast_time_type: bool = False
    collect_stats: bool = True
    case_sensitive: bool = False

    @classmethod
    def resolve(
        cls,
        settings: ConversionSettings | None = None,
        prior: PriorTargetSnapshot | None = None,
    ) -> ConversionConfig:
        """Merge global defaults with markers persisted by an earlier conversion.

        A marker can only switch a flag on: a table converted once with the
        behaviour enabled keeps it even if the global default changed since.

        Args:
            settings: Global defaults. Loaded from the environment if None.
            prior: Snapshot of the previously converted table, if any.

        Returns:
            Frozen ConversionConfig.

        Example:
            >>> prior = PriorTargetSnapshot(configuration={"delta.castIcebergTimeType": "true"})
            >>> ConversionConfig.resolve(ConversionSettings(), prior).cast_time_type
            True
        """
        settings = settings or ConversionSettings()
        return cls(
            partition_evolution_enabled=settings.partition_evolution_enabled,
            bucket_partition_enabled=settings.bucket_partition_enabled
            or (prior is not None and prior.ignores_bucket_partition),
            cast_time_type=settings.cast_time_type
            or (prior is not None and prior.casts_time_type),
            collect_stats=settings.collect_stats,
            case_sensitive=settings.case_sensitive,
        )
