"""hive-bigquery: Hive Metastore partitions and job commits for BigQuery tables.

This package provides:
- PartitionCatalogBridge: answers metastore partition queries for tables
  linked to BigQuery from INFORMATION_SCHEMA.PARTITIONS
- CommitOrchestrator: finalizes write jobs with the direct or indirect
  write method and cleans up their work directories
- Structured logging via structlog and OpenTelemetry span tracing

Example:
    >>> from hive_bigquery import create_partition_catalog
    >>> catalog = create_partition_catalog(default, metastore_client, bigquery_client)
    >>> catalog.list_partition_names("hive", "sales", "orders", -1)
    ['dt=2023-01-01', 'dt=2023-01-02']
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = [
    # Factory functions
    "create_partition_catalog",
    "create_commit_orchestrator",
    # Components
    "PartitionCatalogBridge",
    "CommitOrchestrator",
    "translate_filter",
    "convert_partition_ids",
    # Models
    "JobContext",
    "JobDetails",
    "JobState",
    "WriteMethod",
    "WarehouseTableId",
    # Exceptions
    "HiveBigQueryError",
    "ConfigurationError",
    "InvalidWriteMethodError",
    "MissingOutputTableError",
    "UpstreamClientError",
    "FilterTranslationError",
    "JobStateMismatchError",
]

_LAZY_IMPORTS: dict[str, str] = {
    "create_partition_catalog": "hive_bigquery.factory",
    "create_commit_orchestrator": "hive_bigquery.factory",
    "PartitionCatalogBridge": "hive_bigquery.metastore",
    "CommitOrchestrator": "hive_bigquery.committer",
    "JobContext": "hive_bigquery.committer",
    "JobState": "hive_bigquery.committer",
    "translate_filter": "hive_bigquery.translator",
    "convert_partition_ids": "hive_bigquery.partition_ids",
    "JobDetails": "hive_bigquery.job_details",
    "WriteMethod": "hive_bigquery.config",
    "WarehouseTableId": "hive_bigquery.config",
}

_ERROR_NAMES = frozenset(
    {
        "HiveBigQueryError",
        "ConfigurationError",
        "InvalidWriteMethodError",
        "MissingOutputTableError",
        "UpstreamClientError",
        "FilterTranslationError",
        "JobStateMismatchError",
    }
)


def __getattr__(name: str) -> object:
    """Lazy import of public API members."""
    import importlib

    if name in _LAZY_IMPORTS:
        return getattr(importlib.import_module(_LAZY_IMPORTS[name]), name)
    if name in _ERROR_NAMES:
        from hive_bigquery import errors as errors_module

        return getattr(errors_module, name)
    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
