"""Pydantic configuration models for hive-bigquery.

This module provides:
- Property keys and constants shared by the metastore bridge and the committer
- WriteMethod: Enum for the two write finalization strategies
- WarehouseTableId: BigQuery table identifier model
- LinkedTableConfig: Warehouse settings read from a linked table's parameters
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from hive_bigquery.errors import InvalidWriteMethodError, LinkedTableConfigError

# Marks a metastore table as backed by BigQuery
STORAGE_HANDLER_KEY = "storage_handler"
STORAGE_HANDLER_CLASS = "com.google.cloud.hive.bigquery.connector.BigQueryStorageHandler"

# Table parameter holding "project.dataset.table"
TABLE_KEY = "bq.table"

WRITE_METHOD_KEY = "bq.write.method"
WORK_DIR_PARENT_PATH_KEY = "bq.work.dir.parent.path"
WORK_DIR_NAME_PREFIX = "bq-hive-"

# Only column exposed by INFORMATION_SCHEMA.PARTITIONS that we filter on
PARTITION_ID_COLUMN = "partition_id"


class WriteMethod(str, Enum):
    """Strategy used to land data in BigQuery when a job commits.

    - DIRECT: Rows were streamed through the Storage Write API
    - INDIRECT: Files were staged in GCS and loaded by a load job
    """

    DIRECT = "direct"
    INDIRECT = "indirect"

    @classmethod
    def parse(cls, value: str) -> WriteMethod:
        """Parse a configuration value.

        Args:
            value: Raw configuration value.

        Returns:
            The matching WriteMethod.

        Raises:
            InvalidWriteMethodError: If the value is not recognized.

        Example:
            >>> WriteMethod.parse("indirect")
            <WriteMethod.INDIRECT: 'indirect'>
        """
        try:
            return cls(value)
        except ValueError as exc:
            raise InvalidWriteMethodError(value) from exc

    @classmethod
    def from_properties(cls, properties: Mapping[str, str]) -> WriteMethod:
        """Read the write method from job properties, defaulting to direct."""
        return cls.parse(properties.get(WRITE_METHOD_KEY, cls.DIRECT.value))


class WarehouseTableId(BaseModel):
    """BigQuery table identifier.

    Attributes:
        project: GCP project id.
        dataset: BigQuery dataset name.
        table: BigQuery table name.

    Example:
        >>> tid = WarehouseTableId.from_string("my-project.sales.orders")
        >>> tid.dataset
        'sales'
        >>> str(tid)
        'my-project.sales.orders'
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    project: str = Field(..., min_length=1, description="GCP project id")
    dataset: str = Field(..., min_length=1, description="BigQuery dataset")
    table: str = Field(..., min_length=1, description="BigQuery table name")

    def __str__(self) -> str:
        """Return the fully qualified table id."""
        return f"{self.project}.{self.dataset}.{self.table}"

    @classmethod
    def from_string(cls, identifier: str) -> WarehouseTableId:
        """Parse a "project.dataset.table" identifier.

        Raises:
            ValueError: If the identifier does not have exactly three parts.
        """
        parts = identifier.split(".")
        if len(parts) != 3 or not all(parts):
            msg = (
                f"Invalid BigQuery table identifier: {identifier}. "
                "Expected 'project.dataset.table'"
            )
            raise ValueError(msg)
        return cls(project=parts[0], dataset=parts[1], table=parts[2])


class LinkedTableConfig(BaseModel):
    """Warehouse settings of a metastore table linked to BigQuery.

    Attributes:
        table_id: The BigQuery table backing the metastore table.
        partition_column: Name of the single metastore partition key.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    table_id: WarehouseTableId = Field(..., description="Backing BigQuery table")
    partition_column: str = Field(..., min_length=1, description="Metastore partition key")

    @classmethod
    def from_parameters(
        cls,
        qualified_name: str,
        parameters: Mapping[str, str],
        partition_keys: list[str],
    ) -> LinkedTableConfig:
        """Build config from metastore table parameters.

        Args:
            qualified_name: Metastore table name (db.table), for error reporting.
            parameters: Metastore table parameters.
            partition_keys: Names of the table's partition keys.

        Raises:
            LinkedTableConfigError: If the table is not partitioned or the
                BigQuery table parameter is missing or malformed.
        """
        if not partition_keys:
            raise LinkedTableConfigError(qualified_name, "Linked table has no partition key")
        raw_table = parameters.get(TABLE_KEY)
        if not raw_table:
            raise LinkedTableConfigError(
                qualified_name, f"Linked table is missing the '{TABLE_KEY}' parameter"
            )
        try:
            table_id = WarehouseTableId.from_string(raw_table)
        except ValueError as exc:
            raise LinkedTableConfigError(qualified_name, str(exc)) from exc
        return cls(table_id=table_id, partition_column=partition_keys[0])


def is_linked(parameters: Mapping[str, str] | None) -> bool:
    """Return True if the table parameters mark a BigQuery-backed table."""
    if not parameters:
        return False
    return parameters.get(STORAGE_HANDLER_KEY) == STORAGE_HANDLER_CLASS
