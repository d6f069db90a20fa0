"""Collaborator interfaces consumed by the metastore bridge.

These use structural subtyping: implementations don't need to inherit from
the protocols, they just need to have the methods.

Architecture:
    ```
    PartitionCatalog (Protocol)
        ↑ implements
    default metastore implementation    PartitionCatalogBridge
                                           ├── CatalogClient
                                           ├── WarehouseClient
                                           └── ExpressionDecoder
    ```
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from hive_bigquery.config import WarehouseTableId
    from hive_bigquery.expressions import FilterExpression
    from hive_bigquery.models import (
        CatalogTable,
        Partition,
        PartitionListing,
        WarehouseTableMetadata,
    )


@runtime_checkable
class CatalogClient(Protocol):
    """Metastore client used to resolve table metadata."""

    def get_table(self, catalog_name: str, db_name: str, table_name: str) -> CatalogTable:
        """Load a table's parameters, partition keys and storage descriptor."""
        ...


@runtime_checkable
class WarehouseClient(Protocol):
    """BigQuery client used to query partition metadata."""

    def query(self, sql: str) -> Iterable[Sequence[Any]]:
        """Run a query and return its rows."""
        ...

    def get_table_metadata(self, table_id: WarehouseTableId) -> WarehouseTableMetadata:
        """Fetch table metadata, including the time partitioning descriptor."""
        ...


@runtime_checkable
class ExpressionDecoder(Protocol):
    """Turns a serialized partition filter into a filter tree."""

    def decode(self, data: bytes) -> FilterExpression:
        """Decode a serialized filter.

        Raises:
            ExpressionDecodeError: If the payload cannot be decoded.
        """
        ...


@runtime_checkable
class PartitionCatalog(Protocol):
    """Partition queries the query engine issues against the metastore."""

    def get_partitions_by_expr(
        self,
        catalog_name: str,
        db_name: str,
        table_name: str,
        expr: bytes,
        default_partition_name: str,
        max_parts: int,
    ) -> PartitionListing:
        """List partitions matching a serialized filter (SELECT ... WHERE)."""
        ...

    def get_partitions(
        self,
        catalog_name: str,
        db_name: str,
        table_name: str,
        max_parts: int,
    ) -> list[Partition]:
        """List all partitions of a table (SELECT without a partition filter)."""
        ...

    def list_partition_names(
        self,
        catalog_name: str,
        db_name: str,
        table_name: str,
        max_parts: int,
    ) -> list[str]:
        """List partition names (SHOW PARTITIONS)."""
        ...

    def list_partition_names_ps(
        self,
        catalog_name: str,
        db_name: str,
        table_name: str,
        part_vals: Sequence[str],
        max_parts: int,
    ) -> list[str]:
        """List partition names matching partial partition values."""
        ...

    def list_partitions_ps_with_auth(
        self,
        catalog_name: str,
        db_name: str,
        table_name: str,
        part_vals: Sequence[str],
        max_parts: int,
        user_name: str | None,
        group_names: Sequence[str] | None,
    ) -> list[Partition]:
        """List partitions matching partial values (INSERT OVERWRITE PARTITION)."""
        ...
