"""Shared pytest fixtures for hive-bigquery tests."""

from __future__ import annotations

import sys
from collections.abc import Iterable, Sequence
from typing import Any
from unittest.mock import MagicMock

import pytest
import structlog

from hive_bigquery.config import (
    STORAGE_HANDLER_CLASS,
    STORAGE_HANDLER_KEY,
    TABLE_KEY,
    WarehouseTableId,
)
from hive_bigquery.models import (
    CatalogTable,
    SerDeInfo,
    StorageDescriptor,
    TimePartitioning,
    TimePartitioningType,
    WarehouseTableMetadata,
)


@pytest.fixture(autouse=True)
def configure_structlog_for_tests() -> None:
    """Configure structlog to output to stdout for test capture."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,  # Important for test isolation
    )


class FakeCatalogClient:
    """CatalogClient serving tables from a dict."""

    def __init__(self, tables: Iterable[CatalogTable] = ()) -> None:
        self.tables = {(t.catalog_name, t.db_name, t.table_name): t for t in tables}
        self.calls: list[tuple[str, str, str]] = []

    def get_table(self, catalog_name: str, db_name: str, table_name: str) -> CatalogTable:
        self.calls.append((catalog_name, db_name, table_name))
        key = (catalog_name, db_name, table_name)
        if key not in self.tables:
            msg = f"NoSuchObjectException: {db_name}.{table_name}"
            raise LookupError(msg)
        return self.tables[key]


class FakeWarehouseClient:
    """WarehouseClient returning canned partition ids and metadata."""

    def __init__(
        self,
        partition_ids: Sequence[str] = (),
        time_partitioning: TimePartitioning | None = None,
    ) -> None:
        self.partition_ids = list(partition_ids)
        self.metadata = WarehouseTableMetadata(time_partitioning=time_partitioning)
        self.queries: list[str] = []
        self.metadata_requests: list[WarehouseTableId] = []

    def query(self, sql: str) -> Iterable[Sequence[Any]]:
        self.queries.append(sql)
        return iter([(pid,) for pid in self.partition_ids])

    def get_table_metadata(self, table_id: WarehouseTableId) -> WarehouseTableMetadata:
        self.metadata_requests.append(table_id)
        return self.metadata


@pytest.fixture
def day_partitioning() -> TimePartitioning:
    """Daily time partitioning descriptor."""
    return TimePartitioning(type=TimePartitioningType.DAY, field="dt")


@pytest.fixture
def linked_table() -> CatalogTable:
    """Metastore table linked to BigQuery, partitioned by dt."""
    return CatalogTable(
        catalog_name="hive",
        db_name="sales",
        table_name="orders",
        parameters={
            STORAGE_HANDLER_KEY: STORAGE_HANDLER_CLASS,
            TABLE_KEY: "my-project.sales_ds.orders",
        },
        partition_keys=["dt"],
        storage=StorageDescriptor(
            location="gs://warehouse/sales/orders",
            serde_info=SerDeInfo(
                name="orders",
                serialization_lib="com.google.cloud.hive.bigquery.connector.BigQuerySerDe",
            ),
        ),
    )


@pytest.fixture
def plain_table() -> CatalogTable:
    """Regular metastore table."""
    return CatalogTable(
        catalog_name="hive",
        db_name="sales",
        table_name="returns",
        parameters={"EXTERNAL": "TRUE"},
        partition_keys=["dt"],
        storage=StorageDescriptor(location="hdfs://nn/warehouse/sales.db/returns"),
    )


@pytest.fixture
def catalog_client(linked_table: CatalogTable, plain_table: CatalogTable) -> FakeCatalogClient:
    """Catalog client knowing the linked and the plain table."""
    return FakeCatalogClient([linked_table, plain_table])


@pytest.fixture
def warehouse_client(day_partitioning: TimePartitioning) -> FakeWarehouseClient:
    """BigQuery client returning two daily partitions."""
    return FakeWarehouseClient(["20230101", "20230102"], day_partitioning)


@pytest.fixture
def default_catalog() -> MagicMock:
    """Default metastore partition catalog."""
    return MagicMock(name="default_catalog")


@pytest.fixture
def make_warehouse_client() -> type[FakeWarehouseClient]:
    """Factory for BigQuery clients with custom partitions."""
    return FakeWarehouseClient


@pytest.fixture
def make_catalog_client() -> type[FakeCatalogClient]:
    """Factory for catalog clients with custom tables."""
    return FakeCatalogClient
