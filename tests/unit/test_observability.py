"""Unit tests for hive-bigquery observability helpers."""

from __future__ import annotations

import pytest
from opentelemetry.trace import Span

from hive_bigquery.observability import (
    commit_operation,
    get_logger,
    get_tracer,
    metastore_operation,
    span,
    warehouse_query,
)


class TestGetters:
    """Tests for the cached logger and tracer."""

    def test_logger_is_cached(self) -> None:
        """Test repeated calls return the same logger."""
        assert get_logger() is get_logger()

    def test_tracer_is_cached(self) -> None:
        """Test repeated calls return the same tracer."""
        assert get_tracer() is get_tracer()


class TestSpans:
    """Tests for the span context managers."""

    def test_span_yields_span(self) -> None:
        """Test the body receives an OpenTelemetry span."""
        with span("test.operation", attributes={"k": "v"}) as s:
            assert isinstance(s, Span)

    def test_span_reraises(self) -> None:
        """Test exceptions propagate out of the span."""
        with pytest.raises(RuntimeError, match="boom"), span("test.operation"):
            raise RuntimeError("boom")

    def test_metastore_operation(self) -> None:
        """Test metastore spans accept partial identifiers."""
        with metastore_operation("get_partitions", database="sales") as s:
            assert isinstance(s, Span)

    def test_commit_operation_reraises(self) -> None:
        """Test commit spans propagate failures."""
        with (
            pytest.raises(ValueError, match="bad"),
            commit_operation("commit", output_table="sales.orders"),
        ):
            raise ValueError("bad")

    def test_warehouse_query(self) -> None:
        """Test query spans wrap the query body."""
        with warehouse_query("SELECT 1") as s:
            assert isinstance(s, Span)
