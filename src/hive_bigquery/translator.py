"""Rewrite metastore partition filters for BigQuery's partition id column.

Metastore filters reference the table's partition key (e.g. ``dt``) with
``yyyy-MM-dd`` values, while ``INFORMATION_SCHEMA.PARTITIONS`` exposes a single
``partition_id`` column holding ``yyyyMMdd`` strings. Translation is a pure
rebuild of the tree: node kinds and arity never change, only column names and
literal values do.
"""

from __future__ import annotations

from hive_bigquery.config import PARTITION_ID_COLUMN
from hive_bigquery.errors import FilterTranslationError
from hive_bigquery.expressions import ColumnRef, ConstantLiteral, FilterExpression, FunctionCall


def translate_filter(expr: FilterExpression) -> FilterExpression:
    """Translate a filter over the partition key into a partition id filter.

    Every column reference is renamed to ``partition_id``; callers must only
    pass filters over the single partition key. Every literal has its ``-``
    separators stripped.

    Args:
        expr: Filter tree over the metastore partition key.

    Returns:
        A new tree; the input is left untouched.

    Raises:
        FilterTranslationError: If a node is not one of the three supported
            kinds, or a literal is not a string.

    Example:
        >>> from hive_bigquery.expressions import equals, render_sql
        >>> render_sql(translate_filter(equals("dt", "2023-06-15")))
        "(partition_id = '20230615')"
    """
    if isinstance(expr, FunctionCall):
        return expr.model_copy(
            update={"children": tuple(translate_filter(child) for child in expr.children)}
        )
    if isinstance(expr, ColumnRef):
        return expr.model_copy(update={"name": PARTITION_ID_COLUMN})
    if isinstance(expr, ConstantLiteral):
        if not isinstance(expr.value, str):
            raise FilterTranslationError(
                expr,
                f"Partition filter constant must be a string, got: {expr.value!r}",
            )
        return expr.model_copy(update={"value": expr.value.replace("-", "")})
    raise FilterTranslationError(expr)
