"""Unit tests for filter expression rendering and decoding."""

from __future__ import annotations

import pytest

from hive_bigquery.errors import ExpressionDecodeError
from hive_bigquery.expressions import (
    ColumnRef,
    ConstantLiteral,
    FunctionCall,
    JsonExpressionDecoder,
    equals,
    render_sql,
)


class TestRenderSql:
    """Tests for render_sql."""

    def test_comparison(self) -> None:
        """Test infix comparison rendering."""
        assert render_sql(equals("partition_id", "20230615")) == "(partition_id = '20230615')"

    def test_not_and_between(self) -> None:
        """Test NOT and BETWEEN rendering."""
        expr = FunctionCall(
            operator="not",
            children=(
                FunctionCall(
                    operator="between",
                    children=(
                        ColumnRef(name="partition_id"),
                        ConstantLiteral(value="20230101"),
                        ConstantLiteral(value="20230131"),
                    ),
                ),
            ),
        )

        assert render_sql(expr) == "(NOT (partition_id BETWEEN '20230101' AND '20230131'))"

    def test_null_checks(self) -> None:
        """Test IS NULL and IS NOT NULL rendering."""
        column = ColumnRef(name="partition_id")

        assert render_sql(FunctionCall(operator="isnull", children=(column,))) == (
            "(partition_id IS NULL)"
        )
        assert render_sql(FunctionCall(operator="isnotnull", children=(column,))) == (
            "(partition_id IS NOT NULL)"
        )

    def test_generic_function(self) -> None:
        """Test unknown operators render as function calls."""
        expr = FunctionCall(
            operator="STARTS_WITH",
            children=(ColumnRef(name="partition_id"), ConstantLiteral(value="2023")),
        )

        assert render_sql(expr) == "STARTS_WITH(partition_id, '2023')"

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, "NULL"),
            (True, "TRUE"),
            (42, "42"),
            (1.5, "1.5"),
            ("it's", "'it\\'s'"),
        ],
    )
    def test_literals(self, value: object, expected: str) -> None:
        """Test literal rendering and quoting."""
        assert render_sql(ConstantLiteral(value=value)) == expected


class TestJsonExpressionDecoder:
    """Tests for JsonExpressionDecoder."""

    def test_decodes_nested_tree(self) -> None:
        """Test decoding a nested function call."""
        payload = (
            b'{"kind": "function", "operator": "=", "children": ['
            b'{"kind": "column", "name": "dt"},'
            b'{"kind": "constant", "type_name": "string", "value": "2023-06-15"}]}'
        )

        assert JsonExpressionDecoder().decode(payload) == equals("dt", "2023-06-15")

    def test_encoded_tree_decodes_equal(self) -> None:
        """Test encode output is accepted by decode."""
        expr = FunctionCall(
            operator="or",
            children=(equals("dt", "2023-01-01"), equals("dt", "2023-01-02")),
        )
        decoder = JsonExpressionDecoder()

        assert decoder.decode(decoder.encode(expr)) == expr

    def test_invalid_payload(self) -> None:
        """Test malformed payloads raise ExpressionDecodeError."""
        with pytest.raises(ExpressionDecodeError) as exc_info:
            JsonExpressionDecoder().decode(b'{"kind": "lambda"}')

        assert exc_info.value.operation == "decode_expression"

    def test_not_json(self) -> None:
        """Test binary garbage raises ExpressionDecodeError."""
        with pytest.raises(ExpressionDecodeError):
            JsonExpressionDecoder().decode(b"\x01\x02kryo")
