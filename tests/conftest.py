"""Pytest fixtures shared across the test suite."""

from __future__ import annotations

from collections.abc import Sequence

import pytest

from analysis.dto import BucketSpec, ChartConfig, Metric


@pytest.fixture
def sales_records() -> list[dict[str, object]]:
    """Return a small monthly sales record set."""

    return [
        {"month": "Jan", "region": "north", "sales": 10, "units": 1, "date": "2024-01-15"},
        {"month": "Jan", "region": "south", "sales": 20, "units": 2, "date": "2024-01-20"},
        {"month": "Feb", "region": "north", "sales": 5, "units": 3, "date": "2024-02-03"},
    ]


@pytest.fixture
def month_sales_config() -> ChartConfig:
    """Return a config summing `sales` per `month` terms bucket."""

    return ChartConfig(
        metrics=(Metric(field="sales", agg="sum"),),
        buckets=(BucketSpec(field="month", type="terms"),),
    )


def pytest_collection_modifyitems(items: Sequence[pytest.Item]) -> None:
    """Enforce that every test has exactly one speed marker.

    - `unit`: pure, fast tests with no Django request handling.
    - `integration`: tests touching Django views, management commands, or IO.

    Each test must have exactly one of these markers.
    """

    invalid: list[str] = []
    for item in items:
        has_unit = item.get_closest_marker("unit") is not None
        has_integration = item.get_closest_marker("integration") is not None
        if has_unit == has_integration:
            markers = []
            if has_unit:
                markers.append("unit")
            if has_integration:
                markers.append("integration")
            invalid.append(f"{item.nodeid} (markers={markers or 'none'})")

    if invalid:
        joined = "\n".join(f"- {nodeid}" for nodeid in invalid)
        raise pytest.UsageError(
            "Each test must have exactly one speed marker: `@pytest.mark.unit` or "
            "`@pytest.mark.integration`.\n"
            f"Offending tests:\n{joined}"
        )
