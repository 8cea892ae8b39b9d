"""Merging data and partition schemas, and duplicate column detection."""

from __future__ import annotations

from collections import defaultdict

from floe_convert.delta_schema import StructField, StructType, explode
from floe_convert.errors import DuplicateColumnNamesError, SchemaMergeConflictError


def _column_key(field: StructField, case_sensitive: bool) -> str:
    return field.name if case_sensitive else field.name.lower()


def _replacement(
    data_field: StructField,
    overlapped: dict[str, StructField],
    case_sensitive: bool,
) -> StructField:
    partition_field = overlapped.get(_column_key(data_field, case_sensitive))
    if partition_field is not None and partition_field.column_id == data_field.column_id:
        return partition_field
    return data_field


def merge_data_and_partition_schema(
    data_schema: StructType,
    partition_schema: StructType,
    case_sensitive: bool = False,
) -> tuple[StructType, dict[str, StructField]]:
    """Merge data columns and partition columns into one table schema.

    A partition column that overlaps a data column takes the data column's
    position; the remaining partition columns are appended. An overlap is only
    legal for an identity partition of that same column (equal column ids).

    Args:
        data_schema: Converted data columns.
        partition_schema: Derived partition columns.
        case_sensitive: Whether column names are matched case-sensitively.

    Returns:
        Tuple of (merged schema, overlapped partition columns by match key).

    Raises:
        SchemaMergeConflictError: If a partition column collides with an
            unrelated data column.
    """
    data_ids_by_key: dict[str, set[int | None]] = defaultdict(set)
    for f in data_schema.fields:
        data_ids_by_key[_column_key(f, case_sensitive)].add(f.column_id)

    overlapped: dict[str, StructField] = {}
    conflicts: list[str] = []

    for partition_field in partition_schema.fields:
        key = _column_key(partition_field, case_sensitive)
        if key not in data_ids_by_key:
            continue
        if partition_field.column_id is None or partition_field.column_id not in data_ids_by_key[key]:
            conflicts.append(partition_field.name)
            continue
        overlapped[key] = partition_field

    if conflicts:
        raise SchemaMergeConflictError(conflicts)

    # Columns differing only by case from the partition column stay in place;
    # the duplicate name check reports them.
    merged = [_replacement(f, overlapped, case_sensitive) for f in data_schema.fields]
    merged.extend(
        f for f in partition_schema.fields if _column_key(f, case_sensitive) not in overlapped
    )
    return StructType(fields=merged), overlapped


def check_column_name_duplication(schema: StructType, context: str) -> None:
    """Fail if two columns share a name, ignoring case, at any nesting level.

    Args:
        schema: Schema to check.
        context: Phrase describing where the check runs, quoted in the error.

    Raises:
        DuplicateColumnNamesError: Naming every column involved in a duplicate.

    Example:
        >>> check_column_name_duplication(schema, "during convert to Delta")
        Traceback (most recent call last):
        ...
        DuplicateColumnNamesError: Found duplicate column(s) during convert to Delta: `Foo`, `foo`
    """
    groups: dict[tuple[str, ...], list[str]] = defaultdict(list)
    for path, _ in explode(schema):
        groups[tuple(part.lower() for part in path)].append(".".join(path))

    duplicates = [name for names in groups.values() if len(names) > 1 for name in names]
    if duplicates:
        raise DuplicateColumnNamesError(duplicates, context=context)
