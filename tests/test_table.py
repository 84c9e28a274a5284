"""Tests for the table pipeline and the table widget payload."""

from __future__ import annotations

import pytest

from analysis.dto import BucketSpec, ChartConfig, Filter, Metric, MetricStyle, TableColumn
from analysis.table import (
    create_auto_columns,
    derive_columns,
    detect_column_format,
    generate_table_title,
    detect_table_config_type,
    paginate_table_data,
    process_table,
    search_table_data,
    sort_table_data,
)
from core.charting.tables import INVALID_TABLE_ERROR, NO_DATA_WARNING, build_table_widget

pytestmark = pytest.mark.unit


def test_pagination_boundaries() -> None:
    """Return partial last pages and empty out-of-range pages."""

    rows = [{"n": index} for index in range(25)]

    assert len(paginate_table_data(rows, 0, 10)) == 10
    assert [row["n"] for row in paginate_table_data(rows, 2, 10)] == [20, 21, 22, 23, 24]
    assert paginate_table_data(rows, 3, 10) == ()
    assert paginate_table_data(rows, -1, 10) == ()


def test_sort_puts_missing_values_last_in_both_directions() -> None:
    """None values never move to the top, even when sorting descending."""

    rows = [{"v": 2}, {"v": None}, {"v": 10}, {}, {"v": 1}]

    assert [row.get("v") for row in sort_table_data(rows, "v", "asc")] == [1, 2, 10, None, None]
    assert [row.get("v") for row in sort_table_data(rows, "v", "desc")] == [10, 2, 1, None, None]
    assert sort_table_data(rows, None) == tuple(rows)


def test_sort_text_is_case_insensitive() -> None:
    """Text columns compare without regard to case."""

    rows = [{"name": "bravo"}, {"name": "Alpha"}, {"name": "charlie"}]
    assert [row["name"] for row in sort_table_data(rows, "name")] == ["Alpha", "bravo", "charlie"]


def test_search_only_looks_at_visible_columns() -> None:
    """Match the term case-insensitively against visible column values."""

    rows = [{"name": "North Store", "code": "x1"}, {"name": "South", "code": "north"}]
    columns = [TableColumn(key="name", label="Name")]

    assert search_table_data(rows, "NORTH", columns) == (rows[0],)
    assert search_table_data(rows, "  ", columns) == tuple(rows)


def test_process_table_reports_totals_after_search() -> None:
    """Totals count the searched rows, not the raw input."""

    rows = [{"name": f"item {index}", "kind": "a" if index % 2 else "b"} for index in range(7)]
    columns = [TableColumn(key="name", label="Name"), TableColumn(key="kind", label="Kind")]
    page = process_table(rows, columns, page=1, page_size=2, search="a", sort_key="name", sort_direction="desc")

    assert page.total_rows == 3
    assert page.total_pages == 2
    assert [row["name"] for row in page.rows] == ["item 1"]


def test_auto_columns_detect_formats() -> None:
    """Infer columns from the first record."""

    columns = create_auto_columns([{"store_name": "A", "sales": 3.5, "opened": "2024-01-15"}])

    assert [(column.key, column.label, column.format) for column in columns] == [
        ("store_name", "Store name", "text"),
        ("sales", "Sales", "number"),
        ("opened", "Opened", "date"),
    ]
    assert detect_column_format(True) == "text"
    assert detect_column_format("01/31/2024") == "date"


def test_configured_columns_list_buckets_then_metrics() -> None:
    """Bucket columns come first and the first column for a key wins."""

    config = ChartConfig(
        metrics=(Metric(field="sales", label="Revenue"), Metric(field="region")),
        buckets=(BucketSpec(field="region"),),
        metric_styles=(MetricStyle(format="currency", width=120),),
    )
    columns = derive_columns([], config)

    assert [column.key for column in columns] == ["region", "sales"]
    assert columns[1] == TableColumn(key="sales", label="Revenue", align="right", format="currency", width=120)


def test_generate_table_title() -> None:
    """Derive titles from the configuration shape."""

    grouped = ChartConfig(metrics=(Metric(field="s"),), buckets=(BucketSpec(field="region"),))
    counted = ChartConfig(buckets=(BucketSpec(field="region"),))

    assert generate_table_title(grouped, detect_table_config_type(grouped)) == "Table grouped by region"
    assert generate_table_title(counted, detect_table_config_type(counted)) == "Count by region"
    assert generate_table_title(ChartConfig(), detect_table_config_type(ChartConfig())) == "Data table"


def test_table_widget_ready_payload(sales_records) -> None:
    """Filter, project and paginate into a JSON-ready payload."""

    config = ChartConfig(
        metrics=(Metric(field="sales"),),
        buckets=(BucketSpec(field="month"),),
        global_filters=(Filter(field="region", value="north"),),
        widget_params={"pageSize": 1},
    )
    table = build_table_widget(sales_records, config, sort_key="sales")

    assert table["status"] == "ready"
    assert table["configType"] == "grouped"
    assert [column["key"] for column in table["columns"]] == ["month", "sales"]
    assert table["rows"] == [{"month": "Feb", "sales": 5}]
    assert (table["totalRows"], table["totalPages"], table["pageSize"]) == (2, 2, 1)


def test_table_widget_empty_and_invalid() -> None:
    """Empty data only warns; unnamed fields make the table invalid."""

    empty = build_table_widget([], ChartConfig())
    assert empty["status"] == "empty"
    assert empty["warnings"] == [NO_DATA_WARNING]
    assert empty["errors"] == []

    invalid = build_table_widget([{"a": 1}], ChartConfig(metrics=(Metric(field=""),)))
    assert invalid["status"] == "invalid"
    assert invalid["errors"] == [INVALID_TABLE_ERROR]
    assert invalid["rows"] == []


def test_sort_keeps_numbers_before_text_when_descending() -> None:
    """Reverse each group on its own so numbers still lead and missing values trail."""

    rows = [{"v": "b"}, {"v": 2}, {"v": "a"}, {"v": 10}, {}]

    ascending = sort_table_data(rows, "v", "asc")
    descending = sort_table_data(rows, "v", "desc")

    assert [row.get("v") for row in ascending] == [2, 10, "a", "b", None]
    assert [row.get("v") for row in descending] == [10, 2, "b", "a", None]


@pytest.mark.parametrize(
    ("page_size", "expected"),
    [("abc", 10), (None, 10), (0, 10), (-4, 10), ("3", 3), (2.0, 2)],
)
def test_table_widget_tolerates_unusable_page_size(page_size, expected) -> None:
    """Fall back to the default page size instead of raising on junk `pageSize`."""

    records = [{"region": f"r{index}"} for index in range(12)]
    config = ChartConfig(buckets=(BucketSpec(field="region"),), widget_params={"pageSize": page_size})

    table = build_table_widget(records, config)

    assert table["status"] == "ready"
    assert table["pageSize"] == expected
    assert len(table["rows"]) == expected
