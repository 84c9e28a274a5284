"""Table processing pipeline: filter -> project -> search -> sort -> paginate.

Tables share the filter engine with charts but never aggregate: configured
buckets and metrics only decide which columns are shown.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping, Sequence

from .coercion import is_missing, to_text
from .dto import BucketSpec, ChartConfig, Filter, Metric, MetricStyle, Record, TableColumn, TableConfigType, TablePage
from .filters import apply_all_filters

DEFAULT_PAGE_SIZE = 10

_DATE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^\d{4}-\d{2}-\d{2}$"),
    re.compile(r"^\d{4}-\d{2}-\d{2}T"),
    re.compile(r"^\d{2}/\d{2}/\d{4}$"),
)


def apply_table_filters(records: Sequence[Record], global_filters: Iterable[Filter] | None) -> tuple[Record, ...]:
    """Apply the global filters only (tables have no per-dataset filters)."""

    return apply_all_filters(records, global_filters)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and not math.isnan(value)


def sort_table_data(records: Sequence[Record], sort_key: str | None, direction: str = "asc") -> tuple[Record, ...]:
    """Sort rows by one column.

    Args:
        records: Rows to sort.
        sort_key: Column key; a falsy key returns the rows unchanged.
        direction: `asc` or `desc`.

    Returns:
        Stable-sorted rows. Numbers sort numerically and come before text
        values in both directions; text compares case-insensitively. Rows
        whose value is missing or None always sort last, whatever the
        direction.
    """

    rows = tuple(records)
    if not sort_key:
        return rows

    descending = direction == "desc"
    numbers = [row for row in rows if _is_number(row.get(sort_key))]
    texts = [row for row in rows if not is_missing(row, sort_key) and not _is_number(row.get(sort_key))]
    missing = [row for row in rows if is_missing(row, sort_key)]

    numbers.sort(key=lambda row: float(row[sort_key]), reverse=descending)
    texts.sort(key=lambda row: to_text(row[sort_key]).casefold(), reverse=descending)
    return (*numbers, *texts, *missing)


def search_table_data(records: Sequence[Record], term: str, columns: Sequence[TableColumn]) -> tuple[Record, ...]:
    """Keep rows where any visible column contains `term` (case-insensitive)."""

    needle = term.strip().casefold()
    if not needle:
        return tuple(records)
    keys = [column.key for column in columns]
    return tuple(
        row
        for row in records
        if any(row.get(key) is not None and needle in to_text(row.get(key)).casefold() for key in keys)
    )


def paginate_table_data(records: Sequence[Record], page: int, page_size: int) -> tuple[Record, ...]:
    """Return the `page`-th slice (0-based); out-of-range pages are empty."""

    if page < 0 or page_size <= 0:
        return ()
    start = page * page_size
    return tuple(records[start : start + page_size])


def humanize_key(key: str) -> str:
    """Return `key` with its first letter capitalized and underscores as spaces."""

    return (key[:1].upper() + key[1:]).replace("_", " ")


def detect_column_format(value: object) -> str:
    """Infer a column format from one sample value."""

    if _is_number(value):
        return "number"
    if isinstance(value, str) and any(pattern.match(value) for pattern in _DATE_PATTERNS):
        return "date"
    return "text"


def create_auto_columns(records: Sequence[Record]) -> tuple[TableColumn, ...]:
    """Infer columns from the keys and values of the first record."""

    if not records:
        return ()
    first = records[0]
    return tuple(
        TableColumn(key=str(key), label=humanize_key(str(key)), format=detect_column_format(value))
        for key, value in first.items()
    )


def create_bucket_columns(buckets: Sequence[BucketSpec]) -> tuple[TableColumn, ...]:
    """Return one text column per bucket field."""

    return tuple(TableColumn(key=bucket.field, label=bucket.label or humanize_key(bucket.field)) for bucket in buckets)


def create_metric_columns(
    metrics: Sequence[Metric],
    styles: Sequence[MetricStyle] = (),
) -> tuple[TableColumn, ...]:
    """Return one right-aligned number column per metric, applying style overrides."""

    columns: list[TableColumn] = []
    for index, metric in enumerate(metrics):
        style = styles[index] if index < len(styles) else MetricStyle()
        columns.append(
            TableColumn(
                key=metric.field,
                label=metric.label or humanize_key(metric.field),
                align=style.align or "right",
                format=style.format or "number",
                width=style.width,
            )
        )
    return tuple(columns)


def detect_table_config_type(config: ChartConfig) -> TableConfigType:
    """Return which parts of a table configuration are populated."""

    return TableConfigType(has_metrics=bool(config.metrics), has_buckets=bool(config.buckets))


def generate_table_title(config: ChartConfig, config_type: TableConfigType) -> str:
    """Return the explicit title, else a title derived from the configuration shape."""

    title = config.widget_params.get("title")
    if title:
        return str(title)
    if config_type.has_buckets:
        names = ", ".join(bucket.label or bucket.field for bucket in config.buckets)
        return f"Table grouped by {names}" if config_type.has_metrics else f"Count by {names}"
    if config_type.has_metrics:
        return "Metrics table"
    return "Data table"


def derive_columns(records: Sequence[Record], config: ChartConfig) -> tuple[TableColumn, ...]:
    """Return configured columns (buckets then metrics, first key wins) or inferred ones."""

    if not config.metrics:
        return create_auto_columns(records)
    candidates = [*create_bucket_columns(config.buckets), *create_metric_columns(config.metrics, config.metric_styles)]
    seen: set[str] = set()
    columns: list[TableColumn] = []
    for column in candidates:
        if column.key in seen:
            continue
        seen.add(column.key)
        columns.append(column)
    return tuple(columns)


def project_rows(records: Sequence[Record], columns: Sequence[TableColumn]) -> tuple[dict[str, object], ...]:
    """Return rows restricted to the column keys (absent values become None)."""

    return tuple({column.key: row.get(column.key) for column in columns} for row in records)


def process_table(
    rows: Sequence[Mapping[str, object]],
    columns: Sequence[TableColumn],
    *,
    page: int = 0,
    page_size: int = DEFAULT_PAGE_SIZE,
    search: str = "",
    sort_key: str | None = None,
    sort_direction: str = "asc",
) -> TablePage:
    """Search, sort and paginate already-projected rows.

    Returns:
        TablePage with the visible slice and the totals after searching.
    """

    searched = search_table_data(rows, search, columns)
    ordered = sort_table_data(searched, sort_key, sort_direction)
    size = page_size if page_size > 0 else DEFAULT_PAGE_SIZE
    total_rows = len(ordered)
    return TablePage(
        rows=paginate_table_data(ordered, page, size),
        total_rows=total_rows,
        total_pages=math.ceil(total_rows / size),
        page=page,
        page_size=size,
    )
