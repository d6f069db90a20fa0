"""Unit tests for hive-bigquery custom exceptions."""

from __future__ import annotations

from hive_bigquery.errors import (
    CatalogClientError,
    ConfigurationError,
    FilterTranslationError,
    HiveBigQueryError,
    InvalidWriteMethodError,
    JobDetailsNotFoundError,
    JobStateMismatchError,
    MissingOutputTableError,
    UpstreamClientError,
    WarehouseClientError,
)


class TestHiveBigQueryError:
    """Tests for the base exception."""

    def test_message_only(self) -> None:
        """Test str() without details."""
        assert str(HiveBigQueryError("boom")) == "boom"

    def test_message_with_details(self) -> None:
        """Test str() appends details."""
        error = HiveBigQueryError("boom", details={"table": "sales.orders"})

        assert str(error) == "boom (table=sales.orders)"
        assert error.details == {"table": "sales.orders"}


class TestConfigurationErrors:
    """Tests for configuration errors."""

    def test_invalid_write_method(self) -> None:
        """Test InvalidWriteMethodError carries the bad value."""
        error = InvalidWriteMethodError("streaming")

        assert error.write_method == "streaming"
        assert "Invalid write method setting: streaming" in str(error)
        assert isinstance(error, ConfigurationError)

    def test_missing_output_table(self) -> None:
        """Test MissingOutputTableError default message."""
        error = MissingOutputTableError()

        assert "output table" in str(error)
        assert isinstance(error, ConfigurationError)


class TestUpstreamClientErrors:
    """Tests for client errors."""

    def test_catalog_client_error(self) -> None:
        """Test CatalogClientError records operation and cause."""
        error = CatalogClientError("get_table", cause="connection reset")

        assert error.operation == "get_table"
        assert error.cause == "connection reset"
        assert str(error) == (
            "Catalog client call failed (operation=get_table, cause=connection reset)"
        )
        assert isinstance(error, UpstreamClientError)

    def test_warehouse_client_error(self) -> None:
        """Test WarehouseClientError without a cause."""
        error = WarehouseClientError("query")

        assert error.cause is None
        assert error.details == {"operation": "query"}


class TestStateErrors:
    """Tests for job state errors."""

    def test_job_state_mismatch(self) -> None:
        """Test both identities are reported."""
        error = JobStateMismatchError(expected="db.t2", actual="db.t1")

        assert "expected=db.t2" in str(error)
        assert "actual=db.t1" in str(error)
        assert isinstance(error, HiveBigQueryError)

    def test_job_details_not_found(self) -> None:
        """Test the job key is reported."""
        assert JobDetailsNotFoundError("db.t1").job_key == "db.t1"

    def test_filter_translation_error(self) -> None:
        """Test the offending node type is reported."""
        error = FilterTranslationError(3.14)

        assert error.node == 3.14
        assert error.details == {"node_type": "float"}
