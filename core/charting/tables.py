"""Table widget assembly on top of the pure table pipeline."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from analysis.coercion import to_finite
from analysis.dto import ChartConfig, Record, TableColumn, ValidationResult
from analysis.table import (
    DEFAULT_PAGE_SIZE,
    apply_table_filters,
    derive_columns,
    detect_table_config_type,
    generate_table_title,
    process_table,
    project_rows,
)

logger = logging.getLogger(__name__)

INVALID_TABLE_ERROR = "Invalid table configuration"
NO_DATA_WARNING = "No data available"


def validate_table_config(config: ChartConfig, records: Sequence[Record]) -> ValidationResult:
    """Validate a table configuration against its input records.

    Notes:
        Every configured bucket and metric must name a field. Missing data is
        reported as a warning only.
    """

    errors: list[str] = []
    if any(not bucket.field.strip() for bucket in config.buckets) or any(
        not metric.field.strip() for metric in config.metrics
    ):
        errors.append(INVALID_TABLE_ERROR)
    warnings = [] if records else [NO_DATA_WARNING]
    return ValidationResult(is_valid=not errors, errors=tuple(errors), warnings=tuple(warnings))


def _configured_page_size(config: ChartConfig, default: int) -> int:
    """Return `widgetParams.pageSize` when it is a positive number, else `default`."""

    size = to_finite(config.widget_params.get("pageSize"))
    return int(size) if size >= 1 else default


def _column_json(column: TableColumn) -> dict[str, Any]:
    return {
        "key": column.key,
        "label": column.label,
        "sortable": column.sortable,
        "align": column.align,
        "format": column.format,
        "width": column.width,
    }


def build_table_widget(
    records: Sequence[Record],
    config: ChartConfig,
    *,
    page: int = 0,
    page_size: int | None = None,
    search: str = "",
    sort_key: str | None = None,
    sort_direction: str = "asc",
    default_page_size: int = DEFAULT_PAGE_SIZE,
) -> dict[str, Any]:
    """Run the table pipeline and return a JSON-ready widget payload.

    Args:
        records: Raw input records.
        config: Table configuration (buckets and metrics select columns).
        page: Zero-based page index.
        page_size: Rows per page; falls back to `widgetParams.pageSize`, then
            `default_page_size`.
        search: Case-insensitive search term over the visible columns.
        sort_key: Column key to sort by.
        sort_direction: `asc` or `desc`.
        default_page_size: Page size used when neither the request nor the
            configuration sets one.

    Returns:
        Dict with `status` (`ready`, `empty` or `invalid`), `title`,
        `configType`, `columns`, `rows`, pagination totals, `errors` and
        `warnings`.
    """

    config_type = detect_table_config_type(config)
    title = generate_table_title(config, config_type)
    filtered = apply_table_filters(records, config.global_filters)
    validation = validate_table_config(config, filtered)
    size = page_size or _configured_page_size(config, default_page_size)

    payload: dict[str, Any] = {
        "title": title,
        "configType": config_type.name,
        "errors": list(validation.errors),
        "warnings": list(validation.warnings),
    }
    if not validation.is_valid:
        logger.info("Invalid table configuration")
        return {
            **payload,
            "status": "invalid",
            "columns": [],
            "rows": [],
            "totalRows": 0,
            "totalPages": 0,
            "page": page,
            "pageSize": size,
        }

    columns = derive_columns(filtered, config)
    table_page = process_table(
        project_rows(filtered, columns),
        columns,
        page=page,
        page_size=size,
        search=search,
        sort_key=sort_key,
        sort_direction=sort_direction,
    )
    return {
        **payload,
        "status": "ready" if filtered else "empty",
        "columns": [_column_json(column) for column in columns],
        "rows": [dict(row) for row in table_page.rows],
        "totalRows": table_page.total_rows,
        "totalPages": table_page.total_pages,
        "page": table_page.page,
        "pageSize": table_page.page_size,
    }
