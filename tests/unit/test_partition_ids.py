"""Unit tests for partition id conversion and partition paths."""

from __future__ import annotations

import pytest

from hive_bigquery.errors import PartitionIdFormatError, UpstreamClientError
from hive_bigquery.models import TimePartitioning, TimePartitioningType
from hive_bigquery.partition_ids import (
    DEFAULT_PARTITION_NAME,
    convert_partition_ids,
    escape_path_name,
    join_location,
    make_partition_name,
    make_partition_path,
)


class TestConvertPartitionIds:
    """Tests for convert_partition_ids."""

    def test_daily_id(self, day_partitioning: TimePartitioning) -> None:
        """Test a yyyyMMdd id becomes yyyy-MM-dd."""
        assert convert_partition_ids(["20230615"], day_partitioning) == ["2023-06-15"]

    def test_keeps_input_order(self, day_partitioning: TimePartitioning) -> None:
        """Test values come back in input order."""
        ids = ["20230102", "20221231", "20230101"]

        assert convert_partition_ids(ids, day_partitioning) == [
            "2023-01-02",
            "2022-12-31",
            "2023-01-01",
        ]

    def test_empty_input(self, day_partitioning: TimePartitioning) -> None:
        """Test no ids yields no values."""
        assert convert_partition_ids([], day_partitioning) == []

    @pytest.mark.parametrize(
        "partitioning",
        [
            None,
            TimePartitioning(type=TimePartitioningType.HOUR),
            TimePartitioning(type=TimePartitioningType.MONTH),
            TimePartitioning(type=TimePartitioningType.YEAR),
        ],
    )
    def test_non_daily_partitioning_is_empty(self, partitioning: TimePartitioning | None) -> None:
        """Test any other partitioning yields an empty list, whatever the input."""
        ids = ["2023061500", "202306", "2023", "__NULL__"] * 50

        assert convert_partition_ids(ids, partitioning) == []

    @pytest.mark.parametrize(
        "partition_id",
        ["2023-06-15", "20230230", "2023061", "202306150", "__NULL__", "__UNPARTITIONED__"],
    )
    def test_malformed_id_is_fatal(
        self, day_partitioning: TimePartitioning, partition_id: str
    ) -> None:
        """Test ids that are not valid dates raise PartitionIdFormatError."""
        with pytest.raises(PartitionIdFormatError) as exc_info:
            convert_partition_ids(["20230101", partition_id], day_partitioning)

        assert exc_info.value.partition_id == partition_id
        assert isinstance(exc_info.value, UpstreamClientError)


class TestPartitionNames:
    """Tests for partition names and paths."""

    def test_make_partition_name(self) -> None:
        """Test key=value partition names."""
        assert make_partition_name("dt", "2023-06-15") == "dt=2023-06-15"

    def test_converted_value_to_name(self, day_partitioning: TimePartitioning) -> None:
        """Test a warehouse id ends up as a metastore partition name."""
        (value,) = convert_partition_ids(["20230615"], day_partitioning)

        assert make_partition_name("dt", value) == "dt=2023-06-15"

    def test_make_partition_path(self) -> None:
        """Test plain values are not escaped."""
        assert make_partition_path({"dt": "2023-06-15"}) == "dt=2023-06-15"

    def test_multi_key_path(self) -> None:
        """Test keys are joined with '/' in order."""
        assert make_partition_path({"dt": "2023-06-15", "hr": "07"}) == "dt=2023-06-15/hr=07"

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("eu/west", "eu%2Fwest"),
            ("10:30", "10%3A30"),
            ("a=b", "a%3Db"),
            ("100%", "100%25"),
            ("tab\there", "tab%09here"),
        ],
    )
    def test_escape_path_name(self, value: str, expected: str) -> None:
        """Test special characters are percent-escaped."""
        assert escape_path_name(value) == expected

    def test_empty_value_is_default_partition(self) -> None:
        """Test empty values map to the default partition name."""
        assert escape_path_name("") == DEFAULT_PARTITION_NAME

    def test_join_location(self) -> None:
        """Test trailing slashes on the base location are collapsed."""
        assert join_location("gs://bucket/orders/", "dt=2023-06-15") == (
            "gs://bucket/orders/dt=2023-06-15"
        )

    def test_join_location_without_base(self) -> None:
        """Test a missing base location yields the relative path."""
        assert join_location(None, "dt=2023-06-15") == "dt=2023-06-15"
