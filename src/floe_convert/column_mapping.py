"""Physical name bookkeeping for Delta column mapping.

Physical names are the immutable identifiers a Delta table uses for its
columns in data files and statistics. A converted table keeps the physical
names a previous conversion assigned (looked up by lower-cased field path)
and gives every new column a fresh, readable one derived from its logical
name.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from floe_convert.constants import PHYSICAL_NAME_KEY
from floe_convert.delta_schema import FieldPath, StructField, StructType, explode, transform_fields


def _lower_path(path: Iterable[str]) -> FieldPath:
    return tuple(segment.lower() for segment in path)


def field_path_to_physical_name(schema: StructType | None) -> dict[FieldPath, str]:
    """Index the physical names of an existing schema by lower-cased field path.

    Fields without a physical name are skipped.

    Args:
        schema: Schema of the previously converted table, or None.

    Returns:
        Mapping of lower-cased path to physical name. Empty if schema is None.

    Example:
        >>> field_path_to_physical_name(prior.table_schema)
        {('id',): 'col-1a2b', ('payload', 'kind'): 'kind'}
    """
    if schema is None:
        return {}
    return {
        _lower_path(path): field.physical_name
        for path, field in explode(schema)
        if field.physical_name is not None
    }


def set_physical_names(
    schema: StructType,
    field_path_to_physical: Mapping[FieldPath, str],
) -> StructType:
    """Attach previously assigned physical names to matching fields.

    Fields whose lower-cased path is not in the mapping are left untouched;
    assign_physical_names() gives them a name afterwards.
    """
    if not field_path_to_physical:
        return schema

    def _reuse(parent: FieldPath, field: StructField) -> StructField:
        physical = field_path_to_physical.get(_lower_path((*parent, field.name)))
        if physical is None:
            return field
        return field.with_metadata({PHYSICAL_NAME_KEY: physical})

    return transform_fields(schema, _reuse)


def physical_names(schema: StructType) -> set[str]:
    """Return every physical name assigned anywhere in the schema."""
    return {f.physical_name for _, f in explode(schema) if f.physical_name is not None}


def assign_physical_names(
    schema: StructType,
    *,
    reserved: Iterable[str] = (),
) -> StructType:
    """Give every field without a physical name a fresh one.

    The fresh name is the field's logical name. If that name is already
    used (by a reused name, a name assigned earlier in pre-order, or one of
    `reserved`), the first free `<name>_<n>` is taken instead, so the
    result holds no physical name twice.

    Args:
        schema: Schema possibly holding reused physical names.
        reserved: Physical names owned by another schema that must not be reused.

    Returns:
        Schema in which every field has exactly one physical name.

    Example:
        >>> assigned = assign_physical_names(schema)
        >>> [f.physical_name for f in assigned.fields]
        ['id', 'name']
    """
    used = physical_names(schema) | set(reserved)

    def _assign(parent: FieldPath, field: StructField) -> StructField:
        if field.physical_name is not None:
            return field
        candidate = field.name
        suffix = 1
        while candidate in used:
            candidate = f"{field.name}_{suffix}"
            suffix += 1
        used.add(candidate)
        return field.with_metadata({PHYSICAL_NAME_KEY: candidate})

    return transform_fields(schema, _assign)
