"""Multi-bucket processor.

Turns `(records, buckets)` into ordered category labels plus per-category
record groups, then aggregates metrics over those groups.

Every bucket level groups the same (already filtered) record set. The first
non-split level drives the category axis; split levels do not add categories
but partition the records so the ordinary pipeline can run once per partition
(one series, row or chart per distinct value).
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

from .aggregations import aggregate_records
from .buckets import get_split_type, is_split_bucket
from .coercion import to_number, to_text
from .dto import BucketItem, BucketLevel, BucketSpec, Metric, ProcessedData, Record, SplitData, SplitItem

logger = logging.getLogger(__name__)

TOTAL_LABEL = "Total"

_DEFAULT_SIZES: dict[str, int] = {
    "terms": 10,
    "histogram": 50,
    "date_histogram": 100,
}

_MONTH_NAMES: tuple[str, ...] = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


def process_buckets(records: Sequence[Record], buckets: Sequence[BucketSpec]) -> ProcessedData:
    """Group records by every configured bucket.

    Args:
        records: Filtered input records.
        buckets: Bucket specifications in configuration order.

    Returns:
        ProcessedData with one BucketLevel per bucket, the category labels of
        the first non-split level and the split partitions. Without buckets
        (or with split buckets only) the labels are `("Total",)`.
    """

    data = tuple(records)
    if not buckets:
        return ProcessedData(grouped_data=data, labels=(TOTAL_LABEL,))

    hierarchy: list[BucketLevel] = []
    series: list[SplitItem] = []
    rows: list[SplitItem] = []
    charts: list[SplitItem] = []
    targets = {"series": series, "rows": rows, "chart": charts}

    for index, bucket in enumerate(buckets):
        level = process_bucket_level(data, bucket, index)
        hierarchy.append(level)
        if is_split_bucket(bucket):
            target = targets.get(get_split_type(bucket) or "series", series)
            target.extend(SplitItem(key=item.key, data=item.data, bucket=bucket) for item in level.buckets)

    category_level = next((level for level in hierarchy if not is_split_bucket(level.bucket)), None)
    labels = tuple(item.label for item in category_level.buckets) if category_level else (TOTAL_LABEL,)
    logger.debug("Processed %d records into %d categories", len(data), len(labels))
    return ProcessedData(
        grouped_data=data,
        labels=labels,
        bucket_hierarchy=tuple(hierarchy),
        split_data=SplitData(series=tuple(series), rows=tuple(rows), charts=tuple(charts)),
    )


def process_bucket_level(records: Sequence[Record], bucket: BucketSpec, level: int) -> BucketLevel:
    """Group records for a single bucket specification."""

    builders: dict[str, Callable[[tuple[Record, ...], BucketSpec], list[BucketItem]]] = {
        "histogram": _histogram_items,
        "date_histogram": _date_histogram_items,
        "range": _range_items,
    }
    data = tuple(records)
    items = builders.get(bucket.type, _terms_items)(data, bucket)
    return BucketLevel(bucket=bucket, level=level, buckets=tuple(items), data=data)


def partition_by_split(records: Sequence[Record], bucket: BucketSpec) -> tuple[SplitItem, ...]:
    """Partition records by the distinct values of a split bucket's field.

    Args:
        records: Filtered input records.
        bucket: Split bucket (terms semantics: order, size, min_doc_count).

    Returns:
        One SplitItem per retained distinct value, in bucket order.
    """

    items = _terms_items(tuple(records), bucket)
    return tuple(SplitItem(key=item.key, data=item.data, bucket=bucket) for item in items)


def bucket_key(record: Record, bucket: BucketSpec) -> str | None:
    """Return the category key a record falls into, or None when excluded."""

    if bucket.type == "histogram":
        floor = _histogram_floor(record, bucket)
        return None if floor is None else _histogram_key(floor, _interval(bucket))
    if bucket.type == "date_histogram":
        moment = parse_datetime(record.get(bucket.field))
        return None if moment is None else date_bucket_key(moment, bucket.date_interval or "day")
    if bucket.type == "range":
        return _range_key(record, bucket)
    return to_text(record.get(bucket.field))


def metric_values(processed: ProcessedData, metric: Metric) -> tuple[float, ...]:
    """Aggregate one metric per category label.

    Args:
        processed: Output of `process_buckets`.
        metric: Metric whose `field` and `agg` are aggregated.

    Returns:
        Values aligned with `processed.labels`.
    """

    level = processed.category_level
    if level is None:
        return (aggregate_records(processed.grouped_data, metric.agg, metric.field),)
    return tuple(aggregate_records(item.data, metric.agg, metric.field) for item in level.buckets)


def split_series_values(processed: ProcessedData, metric: Metric) -> tuple[tuple[str, tuple[float, ...]], ...]:
    """Aggregate one metric per category label, once per split-series partition.

    Args:
        processed: Output of `process_buckets`.
        metric: Metric aggregated inside every partition.

    Returns:
        `(partition key, values)` pairs; values are aligned with
        `processed.labels` and categories absent from a partition yield 0.
    """

    level = processed.category_level
    out: list[tuple[str, tuple[float, ...]]] = []
    for split_item in processed.split_data.series:
        if level is None:
            out.append((split_item.key, (aggregate_records(split_item.data, metric.agg, metric.field),)))
            continue
        grouped: dict[str, list[Record]] = {}
        for record in split_item.data:
            key = bucket_key(record, level.bucket)
            if key is not None:
                grouped.setdefault(key, []).append(record)
        values = tuple(
            aggregate_records(grouped.get(item.key, ()), metric.agg, metric.field) for item in level.buckets
        )
        out.append((split_item.key, values))
    return tuple(out)


def parse_datetime(value: object) -> datetime | None:
    """Parse a record value into an aware UTC datetime.

    Accepts datetimes (naive values are treated as UTC), dates, ISO-8601
    strings and epoch milliseconds. Returns None for anything else.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    if isinstance(value, (int, float, Decimal)):
        millis = float(value)
        if not math.isfinite(millis):
            return None
        try:
            return datetime.fromtimestamp(millis / 1000.0, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        return parsed.replace(tzinfo=UTC) if parsed.tzinfo is None else parsed.astimezone(UTC)
    return None


def date_bucket_key(moment: datetime, interval: str) -> str:
    """Truncate a datetime to an interval boundary and return a sortable key."""

    day = moment.date().isoformat()
    if interval == "year":
        return f"{moment.year:04d}"
    if interval == "month":
        return f"{moment.year:04d}-{moment.month:02d}"
    if interval == "week":
        monday = moment.date() - timedelta(days=moment.weekday())
        iso = monday.isocalendar()
        return f"{iso.year:04d}-W{iso.week:02d}"
    if interval == "hour":
        return f"{day}T{moment.hour:02d}:00:00Z"
    if interval == "minute":
        return f"{day}T{moment.hour:02d}:{moment.minute:02d}:00Z"
    return day


def format_date_label(key: str, interval: str | None) -> str:
    """Return a human-readable label for a date bucket key.

    Examples:
        `"2024-01"` (month) -> `"January 2024"`, `"2024-W03"` (week) ->
        `"Week 3, 2024"`, `"2024-01-15T14:00:00Z"` (hour) ->
        `"Jan 15, 2024, 14:00"`. Unparsable keys are returned unchanged.
    """

    try:
        if interval == "month":
            year, month = key.split("-")
            return f"{_MONTH_NAMES[int(month) - 1]} {int(year)}"
        if interval == "week":
            year, week = key.split("-W")
            return f"Week {int(week)}, {int(year)}"
        if interval == "day":
            parsed = date.fromisoformat(key)
            return f"{_MONTH_NAMES[parsed.month - 1]} {parsed.day}, {parsed.year}"
        if interval in ("hour", "minute"):
            moment = datetime.fromisoformat(key)
            prefix = f"{_MONTH_NAMES[moment.month - 1][:3]} {moment.day}, {moment.year}"
            return f"{prefix}, {moment.hour:02d}:{moment.minute:02d}"
    except (ValueError, IndexError):
        return key
    return key


def _min_doc_count(bucket: BucketSpec) -> int:
    return bucket.min_doc_count or 1


def _size(bucket: BucketSpec) -> int:
    return bucket.size or _DEFAULT_SIZES.get(bucket.type, 10)


def _interval(bucket: BucketSpec) -> float:
    interval = bucket.interval or 1
    return interval if interval > 0 else 1


def _terms_items(records: tuple[Record, ...], bucket: BucketSpec) -> list[BucketItem]:
    """Group by stringified value; order by document count, stable on ties."""

    grouped: dict[str, list[Record]] = {}
    for record in records:
        grouped.setdefault(to_text(record.get(bucket.field)), []).append(record)

    entries = [(key, rows) for key, rows in grouped.items() if len(rows) >= _min_doc_count(bucket)]
    entries.sort(key=lambda entry: len(entry[1]), reverse=bucket.order != "asc")
    return [BucketItem(key=key, doc_count=len(rows), data=tuple(rows)) for key, rows in entries[: _size(bucket)]]


def _histogram_floor(record: Record, bucket: BucketSpec) -> float | None:
    value = to_number(record.get(bucket.field))
    if not math.isfinite(value):
        return None
    interval = _interval(bucket)
    return math.floor(value / interval) * interval


def _histogram_key(floor: float, interval: float) -> str:
    return f"{to_text(float(floor))}-{to_text(float(floor + interval))}"


def _histogram_items(records: tuple[Record, ...], bucket: BucketSpec) -> list[BucketItem]:
    """Group numeric values into `[k, k + interval)` bins, ascending by `k`."""

    grouped: dict[float, list[Record]] = {}
    for record in records:
        floor = _histogram_floor(record, bucket)
        if floor is not None:
            grouped.setdefault(floor, []).append(record)

    interval = _interval(bucket)
    entries = sorted(
        ((floor, rows) for floor, rows in grouped.items() if len(rows) >= _min_doc_count(bucket)),
        key=lambda entry: entry[0],
    )
    return [
        BucketItem(key=_histogram_key(floor, interval), doc_count=len(rows), data=tuple(rows))
        for floor, rows in entries[: _size(bucket)]
    ]


def _date_histogram_items(records: tuple[Record, ...], bucket: BucketSpec) -> list[BucketItem]:
    """Group by truncated date; records without a parsable date are skipped."""

    interval = bucket.date_interval or "day"
    grouped: dict[str, list[Record]] = {}
    for record in records:
        moment = parse_datetime(record.get(bucket.field))
        if moment is None:
            continue
        grouped.setdefault(date_bucket_key(moment, interval), []).append(record)

    entries = sorted(
        ((key, rows) for key, rows in grouped.items() if len(rows) >= _min_doc_count(bucket)),
        key=lambda entry: entry[0],
    )
    return [
        BucketItem(
            key=key,
            doc_count=len(rows),
            data=tuple(rows),
            key_as_string=format_date_label(key, interval),
        )
        for key, rows in entries[: _size(bucket)]
    ]


def _range_label(low: float | None, high: float | None, label: str) -> str:
    if label:
        return label
    low_text = "" if low is None else to_text(float(low))
    high_text = "" if high is None else to_text(float(high))
    return f"{low_text}-{high_text}"


def _range_key(record: Record, bucket: BucketSpec) -> str | None:
    value = to_number(record.get(bucket.field))
    if math.isnan(value):
        return None
    for spec in bucket.ranges:
        if spec.from_value is not None and value < spec.from_value:
            continue
        if spec.to_value is not None and value >= spec.to_value:
            continue
        return _range_label(spec.from_value, spec.to_value, spec.label)
    return None


def _range_items(records: tuple[Record, ...], bucket: BucketSpec) -> list[BucketItem]:
    """Assign each record to the first containing range, in configured range order."""

    grouped: dict[str, list[Record]] = {}
    for record in records:
        key = _range_key(record, bucket)
        if key is not None:
            grouped.setdefault(key, []).append(record)

    items: list[BucketItem] = []
    seen: set[str] = set()
    for spec in bucket.ranges:
        key = _range_label(spec.from_value, spec.to_value, spec.label)
        if key in seen:
            continue
        seen.add(key)
        rows = grouped.get(key, [])
        if len(rows) >= _min_doc_count(bucket):
            items.append(BucketItem(key=key, doc_count=len(rows), data=tuple(rows)))
    return items
