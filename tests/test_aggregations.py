"""Tests for aggregation helpers."""

from __future__ import annotations

import math

import pytest

from analysis.aggregations import aggregate_records, aggregate_values, metric_label

pytestmark = pytest.mark.unit

RECORDS = [{"v": 10}, {"v": 20}, {"v": 30}]


@pytest.mark.parametrize(
    ("agg", "expected"),
    [("sum", 60.0), ("avg", 20.0), ("count", 3.0), ("min", 10.0), ("max", 30.0), ("none", 10.0)],
)
def test_aggregate_records_basic_aggregations(agg: str, expected: float) -> None:
    """Aggregate a simple numeric column."""

    assert aggregate_records(RECORDS, agg, "v") == expected


def test_empty_groups_aggregate_to_zero() -> None:
    """Return 0 instead of NaN for empty groups."""

    for agg in ("sum", "avg", "count", "min", "max", "none"):
        assert aggregate_records([], agg, "v") == 0.0


def test_non_numeric_values_never_produce_nan() -> None:
    """Treat non-numeric values as 0 for sum and skip them elsewhere."""

    records = [{"v": "10"}, {"v": "n/a"}, {"v": None}, {}, {"v": 5}]
    assert aggregate_records(records, "sum", "v") == 15.0
    assert aggregate_records(records, "count", "v") == 3.0
    assert aggregate_records(records, "avg", "v") == 7.5
    assert aggregate_records(records, "max", "v") == 10.0
    assert aggregate_records([{"v": "n/a"}], "none", "v") == 0.0
    assert not math.isnan(aggregate_records([{"v": "x"}], "min", "v"))


def test_aggregate_values_ignores_non_finite_numbers() -> None:
    """Skip NaN and infinities when aggregating raw numbers."""

    assert aggregate_values([1.0, math.nan, 3.0, math.inf], "sum") == 4.0
    assert aggregate_values([1.0, math.nan], "count") == 2.0
    assert aggregate_values([], "avg") == 0.0


def test_metric_label_prefers_explicit_label() -> None:
    """Fall back to `agg(field)` when no label is configured."""

    assert metric_label("sales", "sum") == "sum(sales)"
    assert metric_label("sales", "sum", "Revenue") == "Revenue"
