"""Metastore partition queries answered from BigQuery.

This module provides PartitionCatalogBridge, a PartitionCatalog decorator that
answers partition queries for tables linked to BigQuery from the table's
``INFORMATION_SCHEMA.PARTITIONS`` view, and delegates every other table to the
default metastore implementation unchanged.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from hive_bigquery.config import PARTITION_ID_COLUMN, LinkedTableConfig, WarehouseTableId
from hive_bigquery.errors import (
    CatalogClientError,
    ExpressionDecodeError,
    HiveBigQueryError,
    WarehouseClientError,
)
from hive_bigquery.expressions import FilterExpression, equals, render_sql
from hive_bigquery.models import CatalogTable, Partition, PartitionListing, StorageDescriptor
from hive_bigquery.observability import get_logger, get_tracer, metastore_operation, warehouse_query
from hive_bigquery.partition_ids import (
    convert_partition_ids,
    join_location,
    make_partition_name,
    make_partition_path,
)
from hive_bigquery.translator import translate_filter

if TYPE_CHECKING:
    from opentelemetry.trace import Tracer
    from structlog.stdlib import BoundLogger

    from hive_bigquery.clients import (
        CatalogClient,
        ExpressionDecoder,
        PartitionCatalog,
        WarehouseClient,
    )


def build_partition_query(
    table_id: WarehouseTableId,
    partition_filter: FilterExpression | None = None,
    max_parts: int = -1,
) -> str:
    """Build the INFORMATION_SCHEMA query listing a table's partition ids.

    Args:
        table_id: BigQuery table.
        partition_filter: Optional filter over ``partition_id``.
        max_parts: Row limit; values <= 0 mean unlimited.

    Example:
        >>> sql = build_partition_query(WarehouseTableId.from_string("p.d.t"), max_parts=10)
        >>> sql.endswith("FROM `p.d.INFORMATION_SCHEMA.PARTITIONS` WHERE table_name = 't' LIMIT 10")
        True
    """
    clauses = [
        f"SELECT {PARTITION_ID_COLUMN} FROM "
        f"`{table_id.project}.{table_id.dataset}.INFORMATION_SCHEMA.PARTITIONS` "
        f"WHERE table_name = '{table_id.table}'"
    ]
    if partition_filter is not None:
        clauses.append(f"AND {render_sql(partition_filter)}")
    if max_parts > 0:
        clauses.append(f"LIMIT {max_parts}")
    return " ".join(clauses)


class PartitionCatalogBridge:
    """Answer partition queries for BigQuery-linked tables.

    Wraps the default PartitionCatalog. For each call the table is resolved
    through the catalog client; tables whose ``storage_handler`` parameter is
    not the BigQuery storage handler are delegated untouched.

    Client failures are wrapped and re-raised, never retried.

    Example:
        >>> bridge = PartitionCatalogBridge(
        ...     default_catalog, catalog_client, warehouse_client, decoder
        ... )
        >>> bridge.list_partition_names("hive", "sales", "orders", -1)
        ['dt=2023-01-01', 'dt=2023-01-02']
    """

    def __init__(
        self,
        default: PartitionCatalog,
        catalog_client: CatalogClient,
        warehouse_client: WarehouseClient,
        decoder: ExpressionDecoder,
        *,
        tracer: Tracer | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        """Initialize PartitionCatalogBridge.

        Args:
            default: Metastore implementation used for non-linked tables.
            catalog_client: Client resolving table metadata.
            warehouse_client: BigQuery client.
            decoder: Decoder for serialized partition filters.
            tracer: Optional OpenTelemetry tracer. Uses default if not provided.
            logger: Optional structlog logger. Uses default if not provided.
        """
        self._default = default
        self._catalog_client = catalog_client
        self._warehouse_client = warehouse_client
        self._decoder = decoder
        self._tracer = tracer or get_tracer()
        self._logger = logger or get_logger()

    @property
    def default(self) -> PartitionCatalog:
        """Return the wrapped default implementation."""
        return self._default

    # ==================== Intercepted Entry Points ====================

    def get_partitions_by_expr(
        self,
        catalog_name: str,
        db_name: str,
        table_name: str,
        expr: bytes,
        default_partition_name: str,
        max_parts: int,
    ) -> PartitionListing:
        """List partitions matching a serialized filter.

        For linked tables the listing is always flagged as possibly containing
        non-matching partitions, so the engine re-applies the full predicate.
        """
        with metastore_operation(
            "get_partitions_by_expr", catalog=catalog_name, database=db_name, table=table_name
        ):
            table = self.get_linked_table(catalog_name, db_name, table_name)
            if table is None:
                return self._default.get_partitions_by_expr(
                    catalog_name, db_name, table_name, expr, default_partition_name, max_parts
                )
            partition_filter = translate_filter(self._decode(expr))
            partitions = self.fetch_partitions(table, partition_filter)
            return PartitionListing(partitions=partitions, has_unknown_partitions=True)

    def get_partitions(
        self,
        catalog_name: str,
        db_name: str,
        table_name: str,
        max_parts: int,
    ) -> list[Partition]:
        """List all partitions of a table, capped at ``max_parts`` when positive."""
        with metastore_operation(
            "get_partitions", catalog=catalog_name, database=db_name, table=table_name
        ):
            table = self.get_linked_table(catalog_name, db_name, table_name)
            if table is None:
                return self._default.get_partitions(catalog_name, db_name, table_name, max_parts)
            return self.fetch_partitions(table, None, max_parts)

    def list_partition_names(
        self,
        catalog_name: str,
        db_name: str,
        table_name: str,
        max_parts: int,
    ) -> list[str]:
        """List ``key=value`` partition names (SHOW PARTITIONS)."""
        with metastore_operation(
            "list_partition_names", catalog=catalog_name, database=db_name, table=table_name
        ):
            table = self.get_linked_table(catalog_name, db_name, table_name)
            if table is None:
                return self._default.list_partition_names(
                    catalog_name, db_name, table_name, max_parts
                )
            return self._fetch_partition_names(table, None, max_parts)

    def list_partition_names_ps(
        self,
        catalog_name: str,
        db_name: str,
        table_name: str,
        part_vals: Sequence[str],
        max_parts: int,
    ) -> list[str]:
        """List partition names matching a partial partition value."""
        with metastore_operation(
            "list_partition_names_ps", catalog=catalog_name, database=db_name, table=table_name
        ):
            table = self.get_linked_table(catalog_name, db_name, table_name)
            if table is None:
                return self._default.list_partition_names_ps(
                    catalog_name, db_name, table_name, part_vals, max_parts
                )
            return self._fetch_partition_names(table, _partial_value_filter(part_vals), max_parts)

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
        """List partitions matching a partial partition value.

        Authorization arguments only matter to the default implementation;
        access to linked tables is governed by BigQuery.
        """
        with metastore_operation(
            "list_partitions_ps_with_auth",
            catalog=catalog_name,
            database=db_name,
            table=table_name,
        ):
            table = self.get_linked_table(catalog_name, db_name, table_name)
            if table is None:
                return self._default.list_partitions_ps_with_auth(
                    catalog_name, db_name, table_name, part_vals, max_parts, user_name, group_names
                )
            return self.fetch_partitions(table, _partial_value_filter(part_vals), max_parts)

    # ==================== Warehouse Lookups ====================

    def get_linked_table(
        self,
        catalog_name: str,
        db_name: str,
        table_name: str,
    ) -> CatalogTable | None:
        """Return the table if it is linked to BigQuery, otherwise None.

        Raises:
            CatalogClientError: If the catalog client fails.
        """
        try:
            table = self._catalog_client.get_table(catalog_name, db_name, table_name)
        except HiveBigQueryError:
            raise
        except Exception as exc:
            raise CatalogClientError("get_table", cause=str(exc)) from exc
        if not table.is_linked:
            return None
        return table

    def fetch_partition_values(
        self,
        table: CatalogTable,
        partition_filter: FilterExpression | None = None,
        max_parts: int = -1,
    ) -> list[str]:
        """Fetch metastore partition values of a linked table from BigQuery.

        Args:
            table: Linked table.
            partition_filter: Optional filter already translated to ``partition_id``.
            max_parts: Row limit; values <= 0 mean unlimited.

        Returns:
            Partition values in BigQuery result order. Empty if the table is
            not partitioned daily.

        Raises:
            LinkedTableConfigError: If the table lacks BigQuery settings.
            WarehouseClientError: If BigQuery calls fail.
            PartitionIdFormatError: If BigQuery returns a malformed id.
        """
        config = self._linked_config(table)
        sql = build_partition_query(config.table_id, partition_filter, max_parts)
        with warehouse_query(sql):
            try:
                partition_ids = [str(row[0]) for row in self._warehouse_client.query(sql)]
            except HiveBigQueryError:
                raise
            except Exception as exc:
                raise WarehouseClientError("query", cause=str(exc)) from exc
        try:
            metadata = self._warehouse_client.get_table_metadata(config.table_id)
        except HiveBigQueryError:
            raise
        except Exception as exc:
            raise WarehouseClientError("get_table_metadata", cause=str(exc)) from exc

        values = convert_partition_ids(partition_ids, metadata.time_partitioning)
        if partition_ids and not values:
            self._logger.warning(
                "partition_enumeration_unsupported",
                table=table.qualified_name,
                bigquery_table=str(config.table_id),
                time_partitioning=(
                    metadata.time_partitioning.type.value if metadata.time_partitioning else None
                ),
            )
        self._logger.debug(
            "partition_ids_fetched",
            table=table.qualified_name,
            bigquery_table=str(config.table_id),
            count=len(values),
        )
        return values

    def fetch_partitions(
        self,
        table: CatalogTable,
        partition_filter: FilterExpression | None = None,
        max_parts: int = -1,
    ) -> list[Partition]:
        """Fetch partition values and synthesize metastore partition records."""
        column = self._linked_config(table).partition_column
        values = self.fetch_partition_values(table, partition_filter, max_parts)
        return [_synthesize_partition(table, column, value) for value in values]

    def _fetch_partition_names(
        self,
        table: CatalogTable,
        partition_filter: FilterExpression | None,
        max_parts: int,
    ) -> list[str]:
        column = self._linked_config(table).partition_column
        values = self.fetch_partition_values(table, partition_filter, max_parts)
        return [make_partition_name(column, value) for value in values]

    def _decode(self, expr: bytes) -> FilterExpression:
        try:
            return self._decoder.decode(expr)
        except HiveBigQueryError:
            raise
        except Exception as exc:
            raise ExpressionDecodeError(cause=str(exc)) from exc

    @staticmethod
    def _linked_config(table: CatalogTable) -> LinkedTableConfig:
        return LinkedTableConfig.from_parameters(
            table.qualified_name, table.parameters, table.partition_keys
        )


def _partial_value_filter(part_vals: Sequence[str]) -> FilterExpression | None:
    """Filter on the first partial value; empty values match every partition."""
    if not part_vals or not part_vals[0]:
        return None
    return translate_filter(equals(PARTITION_ID_COLUMN, part_vals[0]))


def _synthesize_partition(table: CatalogTable, column: str, value: str) -> Partition:
    location = join_location(table.storage.location, make_partition_path({column: value}))
    return Partition(
        catalog_name=table.catalog_name,
        db_name=table.db_name,
        table_name=table.table_name,
        values=[value],
        storage=StorageDescriptor(location=location, serde_info=table.storage.serde_info),
        parameters={},
    )
