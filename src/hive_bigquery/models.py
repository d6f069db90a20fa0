"""Data models exchanged with the metastore and the warehouse.

This module provides:
- SerDeInfo, StorageDescriptor: storage metadata shared by tables and partitions
- CatalogTable: metastore table as returned by the catalog client
- Partition: metastore partition record (synthesized for linked tables)
- PartitionListing: result of a filtered partition listing
- TimePartitioningType, TimePartitioning, WarehouseTableMetadata: BigQuery table metadata
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from hive_bigquery.config import is_linked


class SerDeInfo(BaseModel):
    """Serializer/deserializer settings of a table."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str | None = None
    serialization_lib: str | None = None
    parameters: dict[str, str] = Field(default_factory=dict)


class StorageDescriptor(BaseModel):
    """Where and how the data of a table or partition is stored."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    location: str | None = Field(default=None, description="Storage location URI")
    serde_info: SerDeInfo | None = Field(default=None, description="SerDe settings")


class CatalogTable(BaseModel):
    """Metastore table metadata.

    Attributes:
        catalog_name: Metastore catalog (usually "hive").
        db_name: Database name.
        table_name: Table name.
        parameters: Table parameters (storage handler, bq.table, ...).
        partition_keys: Ordered partition key names.
        storage: Table storage descriptor.

    Example:
        >>> table = CatalogTable(
        ...     catalog_name="hive",
        ...     db_name="sales",
        ...     table_name="orders",
        ...     partition_keys=["dt"],
        ... )
        >>> table.qualified_name
        'sales.orders'
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    catalog_name: str = Field(..., description="Metastore catalog name")
    db_name: str = Field(..., min_length=1, description="Database name")
    table_name: str = Field(..., min_length=1, description="Table name")
    parameters: dict[str, str] = Field(default_factory=dict, description="Table parameters")
    partition_keys: list[str] = Field(default_factory=list, description="Partition key names")
    storage: StorageDescriptor = Field(
        default_factory=StorageDescriptor,
        description="Table storage descriptor",
    )

    @property
    def qualified_name(self) -> str:
        """Return "db.table"."""
        return f"{self.db_name}.{self.table_name}"

    @property
    def is_linked(self) -> bool:
        """Return True if the table is backed by BigQuery."""
        return is_linked(self.parameters)


class Partition(BaseModel):
    """Metastore partition record.

    For linked tables these are built per request and never persisted.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    catalog_name: str
    db_name: str
    table_name: str
    values: list[str] = Field(..., description="Partition values, one per key")
    storage: StorageDescriptor
    parameters: dict[str, str] = Field(default_factory=dict)


class PartitionListing(BaseModel):
    """Partitions matching a filter.

    Attributes:
        partitions: Matching partitions.
        has_unknown_partitions: True if the listing may contain partitions
            the filter would have excluded, so the engine must re-apply it.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    partitions: list[Partition] = Field(default_factory=list)
    has_unknown_partitions: bool = False


class TimePartitioningType(str, Enum):
    """BigQuery time partitioning granularity."""

    HOUR = "HOUR"
    DAY = "DAY"
    MONTH = "MONTH"
    YEAR = "YEAR"


class TimePartitioning(BaseModel):
    """BigQuery time partitioning descriptor."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: TimePartitioningType
    field: str | None = Field(
        default=None,
        description="Partitioning column, None for ingestion-time partitioning",
    )


class WarehouseTableMetadata(BaseModel):
    """Subset of BigQuery table metadata used for partition conversion."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    time_partitioning: TimePartitioning | None = None
