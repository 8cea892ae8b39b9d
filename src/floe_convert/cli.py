"""CLI entry point for floe-convert.

`floe-convert plan` resolves an Iceberg table into a Delta conversion plan
and prints it, without writing anything.
"""

from __future__ import annotations

from pathlib import Path

import click
import rich_click as rclick

from floe_convert import __version__, output
from floe_convert.config import ConversionSettings
from floe_convert.delta_schema import StructType
from floe_convert.errors import ConversionError
from floe_convert.observability import configure_logging
from floe_convert.prior import PriorTargetSnapshot
from floe_convert.resolver import SourceTableResolver
from floe_convert.source import load_source_table

rclick.rich_click.TEXT_MARKUP = "markdown"
rclick.rich_click.SHOW_ARGUMENTS = True


def _column_rows(schema: StructType) -> list[tuple[str, str, str, str]]:
    rows = []
    for field in schema.fields:
        data_type = field.type if isinstance(field.type, str) else field.type.type
        column_id = field.column_id
        rows.append(
            (
                field.name,
                data_type,
                field.physical_name or "",
                "" if column_id is None else str(column_id),
            )
        )
    return rows


@click.group(cls=rclick.RichGroup)
@click.version_option(version=__version__, prog_name="floe-convert")
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable colored output.",
    is_eager=True,
    expose_value=False,
    callback=lambda ctx, param, value: output.set_no_color(value) if value else None,
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Minimum level of the log lines written to stderr.",
)
def cli(log_level: str) -> None:
    """Convert Iceberg tables to Delta in place.

    - `floe-convert plan` - Resolve the schema, partitioning and properties
    """
    configure_logging(log_level=log_level)


@cli.command("plan")
@click.argument("metadata_location")
@click.option(
    "--delta-log",
    "delta_log",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="`_delta_log` directory of a previous conversion, for re-conversion.",
)
@click.option(
    "--allow-partition-evolution",
    is_flag=True,
    default=False,
    help="Accept several partition specs and use the current one.",
)
@click.option(
    "--cast-time-type",
    is_flag=True,
    default=False,
    help="Convert Iceberg time columns to long.",
)
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the plan as JSON.")
def plan(
    metadata_location: str,
    delta_log: Path | None,
    allow_partition_evolution: bool,
    cast_time_type: bool,
    as_json: bool,
) -> None:
    """Resolve an Iceberg table into a Delta conversion plan.

    Examples:

        floe-convert plan s3://lake/events/metadata/v3.metadata.json

        floe-convert plan ./v3.metadata.json --delta-log ./events/_delta_log --json
    """
    overrides: dict[str, bool] = {}
    if allow_partition_evolution:
        overrides["partition_evolution_enabled"] = True
    if cast_time_type:
        overrides["cast_time_type"] = True

    try:
        prior = PriorTargetSnapshot.from_delta_log(delta_log) if delta_log else None
    except (FileNotFoundError, ValueError) as e:
        output.error(f"Cannot read previous conversion: {e}")
        raise SystemExit(2) from None

    try:
        source = load_source_table(metadata_location)
    except (OSError, ValueError) as e:
        output.error(f"Cannot load Iceberg table metadata: {e}")
        raise SystemExit(2) from None

    try:
        resolver = SourceTableResolver(source, prior, ConversionSettings(**overrides))
        result = resolver.plan()
    except ConversionError as e:
        output.error(str(e))
        raise SystemExit(1) from None

    if as_json:
        output.print_json(result.to_dict())
        return

    output.success(f"Table at {result.location} can be converted")
    output.info(f"Partition spec: {result.partition_spec.spec_id}")
    output.info(f"Partition columns: {', '.join(result.partition_columns) or '(none)'}")
    output.info(f"Files: {result.num_files} ({result.size_in_bytes} bytes)")
    output.print_columns("Table schema", _column_rows(result.table_schema))


if __name__ == "__main__":
    cli()
