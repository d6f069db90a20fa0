"""Factories for the metastore bridge and the commit orchestrator.

Collaborators are created once by the caller and passed in, so client
lifetimes stay explicit and are shared across calls.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from hive_bigquery.committer import CommitOrchestrator
from hive_bigquery.expressions import JsonExpressionDecoder
from hive_bigquery.job_details import FileJobDetailsStore, WorkDirectoryCleaner, work_dir_parent
from hive_bigquery.metastore import PartitionCatalogBridge
from hive_bigquery.observability import get_logger

if TYPE_CHECKING:
    from hive_bigquery.clients import (
        CatalogClient,
        ExpressionDecoder,
        PartitionCatalog,
        WarehouseClient,
    )
    from hive_bigquery.committer import RollbackWriteStrategy, WorkDirCleanup, WriteStrategy
    from hive_bigquery.job_details import JobDetailsStore


def create_partition_catalog(
    default: PartitionCatalog,
    catalog_client: CatalogClient,
    warehouse_client: WarehouseClient,
    decoder: ExpressionDecoder | None = None,
) -> PartitionCatalogBridge:
    """Wrap a metastore partition catalog with BigQuery partition lookups.

    Args:
        default: Implementation used for tables not linked to BigQuery.
        catalog_client: Client resolving table metadata.
        warehouse_client: BigQuery client.
        decoder: Partition filter decoder. Defaults to JsonExpressionDecoder.

    Returns:
        PartitionCatalogBridge: Drop-in PartitionCatalog.

    Example:
        >>> catalog = create_partition_catalog(default, metastore_client, bigquery_client)
        >>> catalog.list_partition_names("hive", "sales", "orders", -1)
    """
    get_logger().debug("creating_partition_catalog", default=type(default).__name__)
    return PartitionCatalogBridge(
        default,
        catalog_client,
        warehouse_client,
        decoder or JsonExpressionDecoder(),
    )


def create_commit_orchestrator(
    direct: RollbackWriteStrategy,
    indirect: WriteStrategy,
    *,
    properties: Mapping[str, str] | None = None,
    store: JobDetailsStore | None = None,
    cleaner: WorkDirCleanup | None = None,
) -> CommitOrchestrator:
    """Create a commit orchestrator.

    Job details and work directories default to files under
    ``bq.work.dir.parent.path`` (or the system temp directory).

    Args:
        direct: Direct write strategy.
        indirect: Indirect write strategy.
        properties: Job configuration used to locate work directories.
        store: JobDetails persistence. Defaults to FileJobDetailsStore.
        cleaner: Work directory cleanup. Defaults to WorkDirectoryCleaner.

    Returns:
        CommitOrchestrator: Configured orchestrator.
    """
    parent = work_dir_parent(properties or {})
    return CommitOrchestrator(
        store if store is not None else FileJobDetailsStore(parent),
        direct,
        indirect,
        cleaner if cleaner is not None else WorkDirectoryCleaner(parent),
    )
