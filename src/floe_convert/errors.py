"""Custom exceptions for floe-convert.

This module defines the exception hierarchy:
- ConversionError (base)
- NoPartitionSpecsError
- PartitionEvolutionUnsupportedError
- BucketPartitionUnsupportedError
- CustomNameMappingUnsupportedError
- CaseSensitiveColumnConflictError
- TypeConversionError
- SchemaMergeConflictError
- DuplicateColumnNamesError
- UnsupportedPartitionTransformError

All errors are terminal: the resolver never retries and never downgrades
one of them to a warning.
"""

from __future__ import annotations

from collections.abc import Sequence


def _quote(columns: Sequence[str]) -> str:
    return ", ".join(f"`{c}`" for c in columns)


class ConversionError(Exception):
    """Base exception for all floe-convert resolution failures.

    Attributes:
        message: Human-readable error description.
        details: Optional additional context about the error.

    Example:
        >>> try:
        ...     resolver = SourceTableResolver(table)
        ... except ConversionError as e:
        ...     print(f"Cannot convert: {e}")
    """

    def __init__(self, message: str, *, details: dict[str, str] | None = None) -> None:
        """Initialize ConversionError.

        Args:
            message: Human-readable error description.
            details: Optional additional context about the error.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation with details if present."""
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class NoPartitionSpecsError(ConversionError):
    """Source table has no registered partition spec at all."""

    def __init__(
        self,
        message: str = "Cannot convert Iceberg table without any partition spec",
        *,
        location: str | None = None,
    ) -> None:
        details: dict[str, str] = {}
        if location:
            details["location"] = location
        super().__init__(message, details=details)
        self.location = location


class PartitionEvolutionUnsupportedError(ConversionError):
    """Source table has undergone partition evolution.

    Raised when more than one partition spec with real (non-bucket)
    partition fields is registered and partition evolution is not enabled.

    Example:
        >>> try:
        ...     select_partition_spec(table, config)
        ... except PartitionEvolutionUnsupportedError as e:
        ...     print(e.spec_ids)
    """

    def __init__(
        self,
        message: str = "Source iceberg table has undergone partition evolution",
        *,
        spec_ids: Sequence[int] = (),
    ) -> None:
        """Initialize PartitionEvolutionUnsupportedError.

        Args:
            message: Human-readable error description.
            spec_ids: Identifiers of the registered partition specs.
        """
        details: dict[str, str] = {}
        if spec_ids:
            details["spec_ids"] = ",".join(str(i) for i in spec_ids)
        super().__init__(message, details=details)
        self.spec_ids = tuple(spec_ids)


class BucketPartitionUnsupportedError(ConversionError):
    """Current partition spec uses bucket transforms while they are disabled."""

    def __init__(
        self,
        message: str = "Cannot convert Iceberg tables with bucket partition",
        *,
        fields: Sequence[str] = (),
    ) -> None:
        details: dict[str, str] = {}
        if fields:
            details["fields"] = ",".join(fields)
        super().__init__(message, details=details)
        self.fields = tuple(fields)


class CustomNameMappingUnsupportedError(ConversionError):
    """Source table relies on an external column name mapping.

    Tables whose data was imported from files without field ids carry a
    default name mapping property. Their file-level column ids cannot be
    trusted by an id-based column mapping.
    """

    def __init__(
        self,
        message: str = "Cannot convert Iceberg tables with column name mapping",
        *,
        property_key: str | None = None,
    ) -> None:
        details: dict[str, str] = {}
        if property_key:
            details["property"] = property_key
        super().__init__(message, details=details)
        self.property_key = property_key


class CaseSensitiveColumnConflictError(ConversionError):
    """Resolved schema contains column names that only differ by case.

    Example:
        >>> try:
        ...     check_convertible(table, table_schema, config)
        ... except CaseSensitiveColumnConflictError as e:
        ...     print(e.columns)
        ('Foo', 'foo')
    """

    def __init__(
        self,
        columns: Sequence[str],
        message: str | None = None,
    ) -> None:
        """Initialize CaseSensitiveColumnConflictError.

        Args:
            columns: The conflicting column names, as written in the source.
            message: Optional custom error message.
        """
        msg = message or (
            "Cannot convert table to Delta as the table contains column names that only "
            f"differ by case: {_quote(columns)}. Delta does not support case sensitive "
            "column names. Please rename these columns before converting to Delta."
        )
        super().__init__(msg, details={})
        self.columns = tuple(columns)


class TypeConversionError(ConversionError):
    """An Iceberg type has no Delta counterpart.

    Example:
        >>> try:
        ...     convert_iceberg_schema(schema, cast_time_type=False)
        ... except TypeConversionError as e:
        ...     print(e.path, e.source_type)
        event_time time
    """

    def __init__(
        self,
        message: str = "Cannot convert Iceberg type to Delta",
        *,
        path: str | None = None,
        source_type: str | None = None,
    ) -> None:
        """Initialize TypeConversionError.

        Args:
            message: Human-readable error description.
            path: Dotted path of the offending field.
            source_type: The Iceberg type that could not be converted.
        """
        details: dict[str, str] = {}
        if path:
            details["path"] = path
        if source_type:
            details["source_type"] = source_type
        super().__init__(message, details=details)
        self.path = path
        self.source_type = source_type


class SchemaMergeConflictError(ConversionError):
    """Partition column collides with an unrelated data column."""

    def __init__(
        self,
        columns: Sequence[str],
        message: str | None = None,
    ) -> None:
        msg = message or (
            f"Partition columns collide with unrelated data columns: {_quote(columns)}"
        )
        super().__init__(msg, details={})
        self.columns = tuple(columns)


class DuplicateColumnNamesError(ConversionError):
    """Schema contains duplicate column names (case-insensitive).

    Raised by check_column_name_duplication. The resolver re-raises it as
    CaseSensitiveColumnConflictError when the check ran in its own context.
    """

    def __init__(
        self,
        columns: Sequence[str],
        *,
        context: str,
    ) -> None:
        """Initialize DuplicateColumnNamesError.

        Args:
            columns: Every original column name taking part in a duplicate.
            context: Where the check ran (e.g. "during convert to Delta").
        """
        msg = f"Found duplicate column(s) {context}: {_quote(columns)}"
        super().__init__(msg, details={})
        self.columns = tuple(columns)
        self.context = context


class UnsupportedPartitionTransformError(ConversionError):
    """Partition transform cannot be expressed as a Delta partition column."""

    def __init__(
        self,
        transform: str,
        *,
        field: str | None = None,
        source_type: str | None = None,
    ) -> None:
        details: dict[str, str] = {}
        if field:
            details["field"] = field
        if source_type:
            details["source_type"] = source_type
        super().__init__(f"Unsupported Iceberg transformation: {transform}", details=details)
        self.transform = transform
        self.field = field
        self.source_type = source_type
