"""Bucket (grouping) model: defaults, validation and labels.

Bucket specifications are plain DTOs; this module owns the per-type defaults
and the structural rules a specification must satisfy before it is handed to
the multi-bucket processor.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from .dto import BucketSpec, RangeSpec, ValidationResult


@dataclass(frozen=True, slots=True)
class BucketOption:
    """A selectable option for configuration forms."""

    value: str
    label: str
    description: str = ""


BUCKET_TYPE_OPTIONS: tuple[BucketOption, ...] = (
    BucketOption("terms", "Terms", "Group by field values (categories)"),
    BucketOption("histogram", "Histogram", "Group by numeric intervals"),
    BucketOption("date_histogram", "Date histogram", "Group by time intervals"),
    BucketOption("range", "Ranges", "Group by custom ranges"),
    BucketOption("split_series", "Split series", "Create one series per value"),
    BucketOption("split_rows", "Split rows", "Create one row per value"),
    BucketOption("split_chart", "Split chart", "Create one chart per value"),
)

DATE_INTERVAL_OPTIONS: tuple[BucketOption, ...] = (
    BucketOption("minute", "Minute"),
    BucketOption("hour", "Hour"),
    BucketOption("day", "Day"),
    BucketOption("week", "Week"),
    BucketOption("month", "Month"),
    BucketOption("year", "Year"),
)

SORT_ORDER_OPTIONS: tuple[BucketOption, ...] = (
    BucketOption("asc", "Ascending"),
    BucketOption("desc", "Descending"),
)

BUCKET_TYPES: frozenset[str] = frozenset(option.value for option in BUCKET_TYPE_OPTIONS)
DATE_INTERVALS: frozenset[str] = frozenset(option.value for option in DATE_INTERVAL_OPTIONS)
SORT_ORDERS: frozenset[str] = frozenset(option.value for option in SORT_ORDER_OPTIONS)

_SPLIT_PREFIX = "split_"


def create_default_range() -> RangeSpec:
    """Return an empty `[0, 100)` range."""

    return RangeSpec(from_value=0, to_value=100, label="")


def create_default_bucket(bucket_type: str, field: str = "") -> BucketSpec:
    """Return the default specification for a bucket type.

    Args:
        bucket_type: One of the supported bucket types.
        field: Record key to group by.

    Returns:
        BucketSpec with type-specific defaults. Every bucket starts with
        `order="desc"`, `size=10` and `min_doc_count=1`; unknown types fall
        back to the terms defaults.
    """

    base = BucketSpec(field=field, type=bucket_type, label="", order="desc", size=10, min_doc_count=1)
    if bucket_type == "histogram":
        return replace(base, interval=1)
    if bucket_type == "date_histogram":
        return replace(base, date_interval="day")
    if bucket_type == "range":
        return replace(base, ranges=(replace(create_default_range(), label="Range 1"),))
    if bucket_type == "split_series":
        return replace(base, split_type="series", size=5)
    if bucket_type == "split_rows":
        return replace(base, split_type="rows", size=5)
    if bucket_type == "split_chart":
        return replace(base, split_type="chart", size=4)
    return base


def validate_bucket(spec: BucketSpec) -> ValidationResult:
    """Validate a bucket specification.

    Args:
        spec: Bucket to validate.

    Returns:
        ValidationResult with one error per violated rule.
    """

    errors: list[str] = []
    if not spec.field.strip():
        errors.append("Field is required")
    if spec.type not in BUCKET_TYPES:
        errors.append(f"Unsupported bucket type: {spec.type!r}")
    if spec.type == "histogram" and (spec.interval is None or spec.interval <= 0):
        errors.append("Interval must be greater than 0")
    if spec.type == "date_histogram":
        if not spec.date_interval:
            errors.append("Date interval is required")
        elif spec.date_interval not in DATE_INTERVALS:
            errors.append(f"Unsupported date interval: {spec.date_interval!r}")
    if spec.type == "range" and not spec.ranges:
        errors.append("At least one range is required")
    if spec.order not in SORT_ORDERS:
        errors.append(f"Unsupported sort order: {spec.order!r}")
    if spec.size is not None and spec.size <= 0:
        errors.append("Size must be greater than 0")
    return ValidationResult(is_valid=not errors, errors=tuple(errors))


def bucket_type_display_name(bucket_type: str) -> str:
    """Return the display name of a bucket type, or the raw type when unknown."""

    for option in BUCKET_TYPE_OPTIONS:
        if option.value == bucket_type:
            return option.label
    return bucket_type


def generate_bucket_label(spec: BucketSpec) -> str:
    """Return the explicit label, or `"<Type display name> - <field>"`."""

    return spec.label or f"{bucket_type_display_name(spec.type)} - {spec.field}"


def is_split_bucket(spec: BucketSpec) -> bool:
    """Return True for split_series, split_rows and split_chart buckets."""

    return spec.type.startswith(_SPLIT_PREFIX)


def get_split_type(spec: BucketSpec) -> str | None:
    """Return the fan-out target of a split bucket, or None.

    Notes:
        An explicit `split_type` wins; otherwise it is derived from the type
        suffix (`split_chart` -> `chart`).
    """

    if not is_split_bucket(spec):
        return None
    return spec.split_type or spec.type[len(_SPLIT_PREFIX) :]
