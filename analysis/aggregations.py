"""Aggregation helpers for the chart pipeline.

This module provides deterministic aggregation functions over record groups.
Every function returns a finite float: empty groups and non-numeric inputs
degrade to 0 instead of propagating NaN into a chart specification.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from .coercion import is_missing, to_number
from .dto import Record

AGGREGATIONS: tuple[str, ...] = ("sum", "avg", "count", "min", "max", "none")


def aggregate_values(values: Iterable[float], agg: str) -> float:
    """Aggregate already-extracted numbers.

    Args:
        values: Numeric values; NaN and infinite values are ignored.
        agg: Aggregation name. Unknown names behave like `none`.

    Returns:
        The aggregated value, or 0.0 when no finite value exists.
    """

    raw = list(values)
    finite = [value for value in raw if math.isfinite(value)]
    if agg == "count":
        return float(len(raw))
    if not finite:
        return 0.0
    if agg == "sum":
        return math.fsum(finite)
    if agg == "avg":
        return math.fsum(finite) / len(finite)
    if agg == "min":
        return min(finite)
    if agg == "max":
        return max(finite)
    return finite[0]


def aggregate_records(records: Sequence[Record], agg: str, field: str) -> float:
    """Aggregate one field across a group of records.

    Args:
        records: Records in one category.
        agg: Aggregation name (sum, avg, count, min, max, none).
        field: Record key to aggregate.

    Returns:
        The aggregated value.

    Notes:
        - `count` counts records whose field is present and not None.
        - `sum` treats non-numeric values as 0.
        - `avg`, `min` and `max` only consider numeric values.
        - `none` returns the first present value, or 0 when it is not numeric.
    """

    present = [record.get(field) for record in records if not is_missing(record, field)]
    if agg == "count":
        return float(len(present))
    if agg == "none":
        if not present:
            return 0.0
        first = to_number(present[0])
        return first if math.isfinite(first) else 0.0

    numbers = [to_number(value) for value in present]
    if agg == "sum":
        return math.fsum(number for number in numbers if math.isfinite(number))
    return aggregate_values(numbers, agg)


def metric_label(field: str, agg: str, label: str = "") -> str:
    """Return the display name for a metric: explicit label, else `agg(field)`."""

    return label or f"{agg}({field})"
