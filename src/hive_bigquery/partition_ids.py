"""Conversion between BigQuery partition ids and metastore partition values.

BigQuery reports daily partitions as ``yyyyMMdd`` ids, the metastore expects
``yyyy-MM-dd`` values and ``key=value`` partition names. Only daily
partitioning is supported; any other granularity converts to an empty list,
which callers must read as "enumeration unsupported", never as "no partitions".
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from datetime import datetime

from hive_bigquery.errors import PartitionIdFormatError
from hive_bigquery.models import TimePartitioning, TimePartitioningType

WAREHOUSE_DAY_FORMAT = "%Y%m%d"
CATALOG_DAY_FORMAT = "%Y-%m-%d"

DEFAULT_PARTITION_NAME = "__HIVE_DEFAULT_PARTITION__"

_DAY_PARTITION_ID = re.compile(r"\d{8}")

# Characters the metastore percent-escapes in partition paths
_PATH_ESCAPED_CHARS = frozenset(
    [chr(c) for c in range(0x01, 0x20)]
    + ['"', "#", "%", "'", "*", "/", ":", "=", "?", "\\", "\x7f", "{", "[", "]", "^"]
)


def convert_partition_ids(
    partition_ids: Iterable[str],
    time_partitioning: TimePartitioning | None,
) -> list[str]:
    """Convert BigQuery partition ids to metastore partition values.

    Args:
        partition_ids: Raw ids as returned by INFORMATION_SCHEMA.PARTITIONS.
        time_partitioning: The table's partitioning descriptor, or None.

    Returns:
        Values in input order, or an empty list when the table is not
        partitioned daily.

    Raises:
        PartitionIdFormatError: If an id is not a valid yyyyMMdd date.

    Example:
        >>> day = TimePartitioning(type=TimePartitioningType.DAY)
        >>> convert_partition_ids(["20230615"], day)
        ['2023-06-15']
        >>> convert_partition_ids(["2023061500"], None)
        []
    """
    if time_partitioning is None or time_partitioning.type != TimePartitioningType.DAY:
        return []
    return [_day_id_to_value(partition_id) for partition_id in partition_ids]


def _day_id_to_value(partition_id: str) -> str:
    if not _DAY_PARTITION_ID.fullmatch(partition_id):
        raise PartitionIdFormatError(partition_id, cause="expected 8 digits (yyyyMMdd)")
    try:
        day = datetime.strptime(partition_id, WAREHOUSE_DAY_FORMAT)
    except ValueError as exc:
        raise PartitionIdFormatError(partition_id, cause=str(exc)) from exc
    return day.strftime(CATALOG_DAY_FORMAT)


def make_partition_name(column: str, value: str) -> str:
    """Return the metastore partition name ``column=value``.

    Example:
        >>> make_partition_name("dt", "2023-06-15")
        'dt=2023-06-15'
    """
    return f"{column}={value}"


def escape_path_name(name: str) -> str:
    """Percent-escape characters that are not allowed in partition paths.

    Empty values map to the default partition name.
    """
    if not name:
        return DEFAULT_PARTITION_NAME
    return "".join(f"%{ord(ch):02X}" if ch in _PATH_ESCAPED_CHARS else ch for ch in name)


def make_partition_path(spec: Mapping[str, str]) -> str:
    """Build the relative storage path of a partition.

    Example:
        >>> make_partition_path({"dt": "2023-06-15"})
        'dt=2023-06-15'
        >>> make_partition_path({"region": "eu/west"})
        'region=eu%2Fwest'
    """
    return "/".join(f"{escape_path_name(k)}={escape_path_name(v)}" for k, v in spec.items())


def join_location(base: str | None, relative: str) -> str:
    """Join a table location and a relative partition path."""
    if not base:
        return relative
    return f"{base.rstrip('/')}/{relative}"
