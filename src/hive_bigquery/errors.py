"""Custom exceptions for hive-bigquery.

This module defines the exception hierarchy:
- HiveBigQueryError (base)
- ConfigurationError
    - InvalidWriteMethodError
    - MissingOutputTableError
    - LinkedTableConfigError
- UpstreamClientError
    - CatalogClientError
    - WarehouseClientError
    - ExpressionDecodeError
    - PartitionIdFormatError
- FilterTranslationError
- JobStateMismatchError
- JobDetailsNotFoundError

Every error is fatal: nothing in this package retries or recovers.
"""

from __future__ import annotations


class HiveBigQueryError(Exception):
    """Base exception for all hive-bigquery operations.

    Attributes:
        message: Human-readable error description.
        details: Optional additional context about the error.

    Example:
        >>> try:
        ...     orchestrator.commit(context)
        ... except HiveBigQueryError as e:
        ...     print(f"Job failed: {e}")
    """

    def __init__(self, message: str, *, details: dict[str, str] | None = None) -> None:
        """Initialize HiveBigQueryError.

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


class ConfigurationError(HiveBigQueryError):
    """A job or table is misconfigured. Never recoverable."""


class InvalidWriteMethodError(ConfigurationError):
    """The configured write method is neither "direct" nor "indirect".

    Example:
        >>> InvalidWriteMethodError("streaming").write_method
        'streaming'
    """

    def __init__(self, write_method: str, message: str | None = None) -> None:
        """Initialize InvalidWriteMethodError.

        Args:
            write_method: The unrecognized configuration value.
            message: Optional custom error message.
        """
        msg = message or f"Invalid write method setting: {write_method}"
        super().__init__(msg, details={"write_method": write_method})
        self.write_method = write_method


class MissingOutputTableError(ConfigurationError):
    """The job context does not declare an output table."""

    def __init__(self, message: str = "Job context does not have output table name") -> None:
        super().__init__(message)


class LinkedTableConfigError(ConfigurationError):
    """A linked table lacks the metadata needed to reach the warehouse.

    Raised when:
    - The table has no partition key
    - The warehouse table parameter is missing or malformed
    """

    def __init__(self, table: str, message: str) -> None:
        """Initialize LinkedTableConfigError.

        Args:
            table: Catalog table identifier (db.table).
            message: Human-readable error description.
        """
        super().__init__(message, details={"table": table})
        self.table = table


class UpstreamClientError(HiveBigQueryError):
    """A collaborator (client, decoder, data) failed.

    Attributes:
        operation: The operation that was being performed.
        cause: String form of the underlying exception.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        cause: str | None = None,
    ) -> None:
        details: dict[str, str] = {}
        if operation:
            details["operation"] = operation
        if cause:
            details["cause"] = cause
        super().__init__(message, details=details)
        self.operation = operation
        self.cause = cause


class CatalogClientError(UpstreamClientError):
    """The metastore catalog client failed.

    Example:
        >>> try:
        ...     bridge.list_partition_names("hive", "db", "events", -1)
        ... except CatalogClientError as e:
        ...     print(e.operation)
    """

    def __init__(self, operation: str, cause: str | None = None) -> None:
        super().__init__("Catalog client call failed", operation=operation, cause=cause)


class WarehouseClientError(UpstreamClientError):
    """The BigQuery warehouse client failed."""

    def __init__(self, operation: str, cause: str | None = None) -> None:
        super().__init__("Warehouse client call failed", operation=operation, cause=cause)


class ExpressionDecodeError(UpstreamClientError):
    """A serialized partition filter could not be decoded."""

    def __init__(self, cause: str | None = None) -> None:
        super().__init__(
            "Failed to decode partition filter expression",
            operation="decode_expression",
            cause=cause,
        )


class PartitionIdFormatError(UpstreamClientError):
    """A warehouse partition id is not a valid yyyyMMdd date.

    This signals corrupted partition metadata.
    """

    def __init__(self, partition_id: str, cause: str | None = None) -> None:
        super().__init__(
            f"Unparseable partition id: {partition_id}",
            operation="convert_partition_ids",
            cause=cause,
        )
        self.partition_id = partition_id


class FilterTranslationError(HiveBigQueryError):
    """A filter node cannot be rewritten for the partition id column."""

    def __init__(self, node: object, message: str | None = None) -> None:
        """Initialize FilterTranslationError.

        Args:
            node: The offending node.
            message: Optional custom error message.
        """
        msg = message or f"Unexpected filter type: {node!r}"
        super().__init__(msg, details={"node_type": type(node).__name__})
        self.node = node


class JobStateMismatchError(HiveBigQueryError):
    """Persisted job details belong to a different output table.

    Guards against acting on stale details left by an earlier run.
    """

    def __init__(self, expected: str, actual: str) -> None:
        """Initialize JobStateMismatchError.

        Args:
            expected: Output table of the current job context.
            actual: Output table recorded in the job details.
        """
        super().__init__(
            "Hive table not matching in job details and job context",
            details={"expected": expected, "actual": actual},
        )
        self.expected = expected
        self.actual = actual


class JobDetailsNotFoundError(HiveBigQueryError):
    """No job details were persisted for a job key."""

    def __init__(self, job_key: str, message: str | None = None) -> None:
        msg = message or f"Job details not found: {job_key}"
        super().__init__(msg, details={"job_key": job_key})
        self.job_key = job_key
