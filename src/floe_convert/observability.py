"""Structured logging and OpenTelemetry spans for floe-convert.

This module provides:
- Structured logging setup via structlog
- OpenTelemetry span helpers for resolution steps
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, TextIO

import structlog
from opentelemetry import trace
from opentelemetry.trace import SpanKind, Status, StatusCode

if TYPE_CHECKING:
    from opentelemetry.trace import Span, Tracer
    from structlog.stdlib import BoundLogger

# Module-level logger and tracer
_logger: BoundLogger | None = None
_tracer: Tracer | None = None

# Tracer name for OpenTelemetry
TRACER_NAME = "floe.convert"


def get_logger() -> BoundLogger:
    """Get the module logger, creating it if necessary.

    Returns:
        Configured structlog BoundLogger instance.

    Example:
        >>> logger = get_logger()
        >>> logger.info("partition_spec_selected", spec_id=0)
    """
    global _logger
    if _logger is None:
        _logger = structlog.get_logger(TRACER_NAME)
    assert _logger is not None  # Type narrowing for mypy
    return _logger


def get_tracer() -> Tracer:
    """Get the OpenTelemetry tracer for floe-convert."""
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(TRACER_NAME)
    return _tracer


def configure_logging(
    *,
    log_level: str = "WARNING",
    json_format: bool = False,
    add_timestamp: bool = True,
    stream: TextIO | None = None,
) -> None:
    """Configure structured logging for floe-convert.

    Events are written to ``stream`` (standard error by default) so that
    command output on standard output stays machine readable.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: If True, output JSON lines. If False, output human-readable.
        add_timestamp: If True, add ISO timestamp to log entries.
        stream: Text stream receiving log lines. Defaults to ``sys.stderr``.

    Example:
        >>> configure_logging(log_level="DEBUG", json_format=True)
    """
    processors: list[Any] = [
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if add_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        # The proxy from get_logger() must follow later reconfiguration.
        cache_logger_on_first_use=False,
    )


@contextmanager
def span(
    name: str,
    *,
    kind: SpanKind = SpanKind.INTERNAL,
    attributes: dict[str, Any] | None = None,
    log_start: bool = True,
    log_end: bool = True,
) -> Iterator[Span]:
    """Create an OpenTelemetry span with structured logging.

    Args:
        name: Span name (e.g., "resolve", "estimate_size").
        kind: Span kind (INTERNAL, CLIENT, SERVER, PRODUCER, CONSUMER).
        attributes: Optional span attributes.
        log_start: If True, log span start.
        log_end: If True, log span end.

    Yields:
        OpenTelemetry Span instance.
    """
    tracer = get_tracer()
    logger = get_logger()
    attrs = attributes or {}

    with tracer.start_as_current_span(name, kind=kind, attributes=attrs) as s:
        if log_start:
            logger.debug(f"{name}_started", **attrs)
        try:
            yield s
            s.set_status(Status(StatusCode.OK))
            if log_end:
                logger.info(f"{name}_completed", **attrs)
        except Exception as exc:
            s.set_status(Status(StatusCode.ERROR, str(exc)))
            s.record_exception(exc)
            logger.error(f"{name}_failed", error=str(exc), **attrs)
            raise


@contextmanager
def resolve_operation(
    operation: str,
    *,
    location: str | None = None,
    spec_id: int | None = None,
    source_format: str | None = None,
) -> Iterator[Span]:
    """Create a span for a resolution step with standard attributes.

    Args:
        operation: Operation name (e.g., "resolve", "num_files").
        location: Source table location.
        spec_id: Partition spec id involved, if any.
        source_format: Source format tag.

    Yields:
        OpenTelemetry Span instance.

    Example:
        >>> with resolve_operation("resolve", location="s3://bucket/events"):
        ...     resolver = SourceTableResolver(table)
    """
    attrs: dict[str, Any] = {"convert.operation": operation}
    if location:
        attrs["convert.location"] = location
    if spec_id is not None:
        attrs["convert.spec_id"] = spec_id
    if source_format:
        attrs["convert.source_format"] = source_format

    with span(f"convert.{operation}", kind=SpanKind.INTERNAL, attributes=attrs) as s:
        yield s
