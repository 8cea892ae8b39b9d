"""floe-convert: in-place conversion of Iceberg tables to Delta.

This package provides:
- SourceTableResolver: partition spec selection, column mapping, property
  derivation and convertibility checks for an Iceberg table
- Source table adapters over pyiceberg
- Delta schema model with stable physical names
- Sticky conversion markers for incremental re-conversion

Example:
    >>> from floe_convert import SourceTableResolver, load_source_table
    >>>
    >>> source = load_source_table("s3://lake/events/metadata/v3.metadata.json")
    >>> plan = SourceTableResolver(source).plan()
    >>> plan.properties["delta.columnMapping.mode"]
    'id'
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = [
    # Resolver
    "SourceTableResolver",
    "ConversionPlan",
    # Source table
    "SourceTableLike",
    "DelegatingSourceTable",
    "load_source_table",
    "PriorTargetSnapshot",
    # Configuration
    "ConversionSettings",
    "ConversionConfig",
    # Exceptions
    "ConversionError",
    "NoPartitionSpecsError",
    "PartitionEvolutionUnsupportedError",
    "BucketPartitionUnsupportedError",
    "CustomNameMappingUnsupportedError",
    "CaseSensitiveColumnConflictError",
    "TypeConversionError",
    "SchemaMergeConflictError",
    "DuplicateColumnNamesError",
    "UnsupportedPartitionTransformError",
]

_MODULES = {
    "SourceTableResolver": "floe_convert.resolver",
    "ConversionPlan": "floe_convert.resolver",
    "SourceTableLike": "floe_convert.source",
    "DelegatingSourceTable": "floe_convert.source",
    "load_source_table": "floe_convert.source",
    "PriorTargetSnapshot": "floe_convert.prior",
    "ConversionSettings": "floe_convert.config",
    "ConversionConfig": "floe_convert.config",
}


def __getattr__(name: str) -> object:
    """Lazy import of public API members."""
    import importlib

    if name in _MODULES:
        return getattr(importlib.import_module(_MODULES[name]), name)
    if name in __all__:
        from floe_convert import errors as errors_module

        return getattr(errors_module, name)
    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
