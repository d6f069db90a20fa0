"""Partition filter expression trees.

This module provides:
- FunctionCall, ColumnRef, ConstantLiteral: immutable filter tree nodes
- FilterExpression: discriminated union of the three node kinds
- render_sql: render a tree as a BigQuery boolean expression
- JsonExpressionDecoder: decode JSON-serialized filter trees

Nodes are frozen pydantic models, so rewritten trees can be compared with ``==``.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from hive_bigquery.errors import ExpressionDecodeError


class FunctionCall(BaseModel):
    """Operator applied to an ordered list of child expressions.

    Example:
        >>> expr = FunctionCall(
        ...     operator="=",
        ...     children=(ColumnRef(name="dt"), ConstantLiteral(value="2023-06-15")),
        ... )
        >>> render_sql(expr)
        "(dt = '2023-06-15')"
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["function"] = "function"
    operator: str = Field(..., min_length=1, description="Operator or function name")
    children: tuple[FilterExpression, ...] = Field(
        default=(),
        description="Ordered operands",
    )


class ColumnRef(BaseModel):
    """Reference to a table column."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["column"] = "column"
    name: str = Field(..., min_length=1, description="Column name")


class ConstantLiteral(BaseModel):
    """Typed constant value."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["constant"] = "constant"
    type_name: str = Field(default="string", description="Declared type of the constant")
    value: Any = Field(default=None, description="Constant value")


FilterExpression = Annotated[
    FunctionCall | ColumnRef | ConstantLiteral,
    Field(discriminator="kind"),
]

FunctionCall.model_rebuild()

_EXPRESSION_ADAPTER: TypeAdapter[FilterExpression] = TypeAdapter(FilterExpression)

_INFIX_OPERATORS = frozenset({"=", "!=", "<>", "<", "<=", ">", ">=", "like", "and", "or"})
_KEYWORD_OPERATORS = frozenset({"like", "and", "or"})


def equals(column: str, value: Any, *, type_name: str = "string") -> FunctionCall:
    """Build a ``column = value`` filter."""
    return FunctionCall(
        operator="=",
        children=(ColumnRef(name=column), ConstantLiteral(type_name=type_name, value=value)),
    )


def render_sql(expr: FilterExpression) -> str:
    """Render a filter tree as a BigQuery boolean expression.

    Args:
        expr: Filter tree.

    Returns:
        SQL text, fully parenthesized.

    Example:
        >>> render_sql(equals("partition_id", "20230615"))
        "(partition_id = '20230615')"
    """
    if isinstance(expr, ColumnRef):
        return expr.name
    if isinstance(expr, ConstantLiteral):
        return _render_literal(expr.value)

    op = expr.operator.lower()
    args = [render_sql(child) for child in expr.children]
    if op in _INFIX_OPERATORS:
        symbol = op.upper() if op in _KEYWORD_OPERATORS else op
        return "(" + f" {symbol} ".join(args) + ")"
    if op == "not" and len(args) == 1:
        return f"(NOT {args[0]})"
    if op == "in" and args:
        return f"({args[0]} IN ({', '.join(args[1:])}))"
    if op == "between" and len(args) == 3:
        return f"({args[0]} BETWEEN {args[1]} AND {args[2]})"
    if op == "isnull" and len(args) == 1:
        return f"({args[0]} IS NULL)"
    if op == "isnotnull" and len(args) == 1:
        return f"({args[0]} IS NOT NULL)"
    return f"{expr.operator}({', '.join(args)})"


def _render_literal(value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, int | float):
        return str(value)
    escaped = str(value).replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


class JsonExpressionDecoder:
    """Decode JSON-serialized filter trees.

    Example:
        >>> decoder = JsonExpressionDecoder()
        >>> decoder.decode(b'{"kind": "column", "name": "dt"}')
        ColumnRef(kind='column', name='dt')
    """

    def decode(self, data: bytes) -> FilterExpression:
        """Decode a serialized filter.

        Raises:
            ExpressionDecodeError: If the payload is not a valid filter tree.
        """
        try:
            return _EXPRESSION_ADAPTER.validate_json(data)
        except ValidationError as exc:
            raise ExpressionDecodeError(cause=str(exc)) from exc

    @staticmethod
    def encode(expr: FilterExpression) -> bytes:
        """Serialize a filter tree to JSON bytes."""
        return _EXPRESSION_ADAPTER.dump_json(expr)
