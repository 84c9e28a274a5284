"""DTO types shared by the aggregation pipeline.

DTOs are plain, immutable data containers passed between the filter engine,
the bucket processor, the dataset-shaped processors and the chart compiler.
They intentionally avoid any Django dependencies.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from typing import Any, Literal


Record = Mapping[str, Any]

FilterOperator = Literal[
    "equals",
    "not_equals",
    "contains",
    "not_contains",
    "greater_than",
    "less_than",
    "greater_equal",
    "less_equal",
    "starts_with",
    "ends_with",
]
BucketType = Literal[
    "terms",
    "histogram",
    "date_histogram",
    "range",
    "split_series",
    "split_rows",
    "split_chart",
]
SplitType = Literal["series", "rows", "chart"]
DateInterval = Literal["minute", "hour", "day", "week", "month", "year"]
SortOrder = Literal["asc", "desc"]
AggregationType = Literal["sum", "avg", "count", "min", "max", "none"]
ColumnFormat = Literal["text", "number", "date", "currency", "percent"]


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of validating a configuration fragment.

    Attributes:
        is_valid: False when at least one blocking error exists.
        errors: Human-readable messages that block rendering.
        warnings: Informational messages that never block rendering.
    """

    is_valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Filter:
    """A single predicate applied to a record set.

    Attributes:
        field: Record key the predicate reads.
        operator: Comparison operator name.
        value: Right-hand operand; None or "" turns the filter into a no-op.
    """

    field: str
    operator: str = "equals"
    value: Any = None


@dataclass(frozen=True, slots=True)
class RangeSpec:
    """A half-open numeric range `[from_value, to_value)` used by range buckets."""

    from_value: float | None = None
    to_value: float | None = None
    label: str = ""


@dataclass(frozen=True, slots=True)
class BucketSpec:
    """A grouping specification.

    Attributes:
        field: Record key used for grouping.
        type: Bucket type (terms, histogram, date_histogram, range, split_*).
        label: Optional display label.
        order: Document-count ordering for terms-like buckets.
        size: Optional maximum number of groups.
        min_doc_count: Groups with fewer records are dropped.
        interval: Histogram bucket width.
        date_interval: Date histogram truncation unit.
        ranges: Explicit ranges for range buckets.
        split_type: Fan-out target for split buckets.
    """

    field: str
    type: str = "terms"
    label: str = ""
    order: str = "desc"
    size: int | None = None
    min_doc_count: int = 1
    interval: float | None = None
    date_interval: str | None = None
    ranges: tuple[RangeSpec, ...] = ()
    split_type: str | None = None


@dataclass(frozen=True, slots=True)
class Metric:
    """A metric configuration.

    Bucketed charts read `field`; scatter reads `x`/`y`, bubble `x`/`y`/`r`
    and radar `fields` (one aggregated value per field).
    """

    field: str = ""
    agg: str = "sum"
    label: str = ""
    x: str = ""
    y: str = ""
    r: str = ""
    fields: tuple[str, ...] = ()
    dataset_filters: tuple[Filter, ...] = ()


@dataclass(frozen=True, slots=True)
class MetricStyle:
    """Per-series styling overrides.

    Table widgets also read `width`, `align` and `format` for column layout.
    """

    color: str | None = None
    colors: tuple[str, ...] = ()
    border_color: str | None = None
    border_width: float | None = None
    border_radius: float | None = None
    opacity: float | None = None
    fill: bool | None = None
    tension: float | None = None
    point_radius: float | None = None
    bar_thickness: float | None = None
    width: int | None = None
    align: str | None = None
    format: str | None = None


@dataclass(frozen=True, slots=True)
class ChartConfig:
    """Declarative widget configuration.

    Attributes:
        metrics: Metrics (one series each for bucketed charts).
        buckets: Grouping specifications; empty for dataset-shaped charts.
        metric_styles: Styles aligned by index with `metrics`.
        global_filters: Filters applied to every series.
        widget_params: Free-form widget parameters (camelCase keys).
        echarts: Optional advanced-option block supplied next to the params.
    """

    metrics: tuple[Metric, ...] = ()
    buckets: tuple[BucketSpec, ...] = ()
    metric_styles: tuple[MetricStyle, ...] = ()
    global_filters: tuple[Filter, ...] = ()
    widget_params: Mapping[str, Any] = field(default_factory=dict)
    echarts: Mapping[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class BucketItem:
    """One group produced by a bucket level."""

    key: str
    doc_count: int
    data: tuple[Record, ...]
    key_as_string: str | None = None

    @property
    def label(self) -> str:
        """Return the display label for this group."""

        return self.key_as_string or self.key


@dataclass(frozen=True, slots=True)
class BucketLevel:
    """Groups produced by one bucket specification."""

    bucket: BucketSpec
    level: int
    buckets: tuple[BucketItem, ...]
    data: tuple[Record, ...]


@dataclass(frozen=True, slots=True)
class SplitItem:
    """A partition of records sharing one split-field value."""

    key: str
    data: tuple[Record, ...]
    bucket: BucketSpec


@dataclass(frozen=True, slots=True)
class SplitData:
    """Split partitions grouped by fan-out target."""

    series: tuple[SplitItem, ...] = ()
    rows: tuple[SplitItem, ...] = ()
    charts: tuple[SplitItem, ...] = ()

    @property
    def is_empty(self) -> bool:
        """Return True when no split bucket produced partitions."""

        return not (self.series or self.rows or self.charts)


@dataclass(frozen=True, slots=True)
class ProcessedData:
    """Output of the multi-bucket processor.

    Attributes:
        grouped_data: Records that entered the processor.
        labels: Category labels from the first non-split bucket level.
        bucket_hierarchy: One level per configured bucket, in order.
        split_data: Partitions produced by split buckets.
    """

    grouped_data: tuple[Record, ...]
    labels: tuple[str, ...]
    bucket_hierarchy: tuple[BucketLevel, ...] = ()
    split_data: SplitData = SplitData()

    @property
    def category_level(self) -> BucketLevel | None:
        """Return the first non-split level, which drives the label axis."""

        for level in self.bucket_hierarchy:
            if not level.bucket.type.startswith("split_"):
                return level
        return None


@dataclass(frozen=True, slots=True)
class ScatterPoint:
    """A single x/y point."""

    x: float
    y: float


@dataclass(frozen=True, slots=True)
class BubblePoint:
    """A single x/y point with a radius value."""

    x: float
    y: float
    r: float


@dataclass(frozen=True, slots=True)
class ScaleBounds:
    """Axis bounds for value-axis charts; bubble charts also carry radius bounds."""

    x_min: float
    x_max: float
    y_min: float
    y_max: float
    r_min: float | None = None
    r_max: float | None = None


@dataclass(frozen=True, slots=True)
class RadarIndicator:
    """A radar axis with its scaling maximum."""

    name: str
    max: float


@dataclass(frozen=True, slots=True)
class ChartDataContext:
    """Working set for one render pass.

    Attributes:
        kind: Chart kind being compiled.
        filtered_data: Records that survived the global filters.
        processed_data: Multi-bucket output, or None when no bucket exists.
        labels: Category labels consumed by the builders.
        metrics: Configured metrics.
        metric_styles: Styles aligned by index with `metrics`.
        params: Merged and normalized widget parameters.
        validation: Validation outcome for the configuration.
    """

    kind: str
    filtered_data: tuple[Record, ...]
    processed_data: ProcessedData | None
    labels: tuple[str, ...]
    metrics: tuple[Metric, ...]
    metric_styles: tuple[MetricStyle, ...]
    params: Mapping[str, Any]
    validation: ValidationResult


@dataclass(frozen=True, slots=True)
class TableColumn:
    """A table column definition."""

    key: str
    label: str
    sortable: bool = True
    align: str | None = None
    format: str = "text"
    width: int | None = None


@dataclass(frozen=True, slots=True)
class TableConfigType:
    """Shape flags for a table configuration."""

    has_metrics: bool
    has_buckets: bool

    @property
    def name(self) -> str:
        """Return a stable name for the detected shape."""

        if self.has_buckets:
            return "grouped"
        if self.has_metrics:
            return "metrics_only"
        return "raw"


@dataclass(frozen=True, slots=True)
class TablePage:
    """A searched, sorted and paginated slice of table rows."""

    rows: tuple[Record, ...]
    total_rows: int
    total_pages: int
    page: int
    page_size: int
