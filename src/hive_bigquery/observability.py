"""Structured logging and OpenTelemetry spans for hive-bigquery.

This module provides:
- Structured logging setup via structlog
- OpenTelemetry span helpers for metastore and commit operations
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
from opentelemetry import trace
from opentelemetry.trace import SpanKind, Status, StatusCode

if TYPE_CHECKING:
    from opentelemetry.trace import Span, Tracer
    from structlog.stdlib import BoundLogger

# Module-level logger and tracer
_logger: BoundLogger | None = None
_tracer: Tracer | None = None

TRACER_NAME = "hive_bigquery"


def get_logger() -> BoundLogger:
    """Get the module logger, creating it if necessary.

    Returns:
        Configured structlog BoundLogger instance.

    Example:
        >>> logger = get_logger()
        >>> logger.info("partitions_fetched", table="db.events", count=3)
    """
    global _logger
    if _logger is None:
        _logger = structlog.get_logger(TRACER_NAME)
    assert _logger is not None  # Type narrowing for mypy
    return _logger


def get_tracer() -> Tracer:
    """Get the OpenTelemetry tracer for hive-bigquery."""
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(TRACER_NAME)
    return _tracer


def configure_logging(
    *,
    log_level: str = "INFO",
    json_format: bool = True,
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for hive-bigquery.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: If True, output JSON format. If False, output human-readable.
        add_timestamp: If True, add ISO timestamp to log entries.

    Example:
        >>> configure_logging(log_level="DEBUG", json_format=False)
    """
    import logging

    processors: list[Any] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if add_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper()),
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
        name: Span name (e.g., "metastore.list_partition_names").
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
def metastore_operation(
    operation: str,
    *,
    catalog: str | None = None,
    database: str | None = None,
    table: str | None = None,
) -> Iterator[Span]:
    """Create a span for an intercepted metastore call.

    Example:
        >>> with metastore_operation("get_partitions", database="db", table="events"):
        ...     bridge.get_partitions("hive", "db", "events", -1)
    """
    attrs: dict[str, Any] = {"metastore.operation": operation}
    if catalog:
        attrs["metastore.catalog"] = catalog
    if database:
        attrs["metastore.database"] = database
    if table:
        attrs["metastore.table"] = table

    with span(f"metastore.{operation}", kind=SpanKind.SERVER, attributes=attrs) as s:
        yield s


@contextmanager
def commit_operation(
    operation: str,
    *,
    output_table: str | None = None,
    write_method: str | None = None,
) -> Iterator[Span]:
    """Create a span for job finalization (commit or abort)."""
    attrs: dict[str, Any] = {"job.operation": operation}
    if output_table:
        attrs["job.output_table"] = output_table
    if write_method:
        attrs["job.write_method"] = write_method

    with span(f"job.{operation}", attributes=attrs) as s:
        yield s


@contextmanager
def warehouse_query(sql: str) -> Iterator[Span]:
    """Create a client span around a BigQuery query."""
    with span(
        "warehouse.query",
        kind=SpanKind.CLIENT,
        attributes={"db.system": "bigquery", "db.statement": sql},
        log_end=False,
    ) as s:
        yield s
