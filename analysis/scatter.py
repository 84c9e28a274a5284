"""Scatter chart processing: validation, point conversion and scales.

Scatter charts bypass bucketing. Every metric maps rows directly to `(x, y)`
points after the global filters and the metric's own dataset filters.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .coercion import to_finite
from .dto import Filter, Metric, Record, ScaleBounds, ScatterPoint, ValidationResult
from .filters import apply_all_filters

NO_DATASET_ERROR = "At least one dataset must be configured"

DEFAULT_SCALES = ScaleBounds(x_min=0, x_max=100, y_min=0, y_max=100)

SCALE_MARGIN_RATIO = 0.1


def validate_dataset_metrics(metrics: Sequence[Metric], *, required: Sequence[tuple[str, str]]) -> ValidationResult:
    """Validate dataset-shaped metrics against a list of required axis fields.

    Args:
        metrics: Configured datasets.
        required: `(attribute, message)` pairs checked on every dataset.

    Returns:
        ValidationResult with one `"Dataset <n>: ..."` error per invalid dataset.
    """

    if not metrics:
        return ValidationResult(is_valid=False, errors=(NO_DATASET_ERROR,))

    errors: list[str] = []
    for index, metric in enumerate(metrics, start=1):
        problems = [message for attribute, message in required if not str(getattr(metric, attribute) or "").strip()]
        if problems:
            errors.append(f"Dataset {index}: {', '.join(problems)}")
    return ValidationResult(is_valid=not errors, errors=tuple(errors))


def validate_scatter_configuration(metrics: Sequence[Metric]) -> ValidationResult:
    """Validate scatter datasets (x and y fields are required)."""

    return validate_dataset_metrics(
        metrics,
        required=(("x", "X field must be specified"), ("y", "Y field must be specified")),
    )


def generate_dataset_label(metric: Metric, default: str = "Dataset") -> str:
    """Return the metric label, else `"X: a, Y: b, R: c"`, else `default`."""

    if metric.label.strip():
        return metric.label
    parts = [f"{name.upper()}: {value}" for name, value in (("x", metric.x), ("y", metric.y), ("r", metric.r)) if value]
    return ", ".join(parts) if parts else default


def convert_to_scatter_data(
    records: Sequence[Record],
    metric: Metric,
    global_filters: Iterable[Filter] | None = None,
) -> tuple[ScatterPoint, ...]:
    """Convert records into scatter points for one dataset.

    Args:
        records: Raw records.
        metric: Dataset with `x` and `y` field names.
        global_filters: Filters applied before the dataset's own filters.

    Returns:
        One point per surviving record; missing or invalid coordinates become 0.
    """

    if not metric.x or not metric.y:
        return ()
    rows = apply_all_filters(records, global_filters, metric.dataset_filters)
    return tuple(ScatterPoint(x=to_finite(row.get(metric.x)), y=to_finite(row.get(metric.y))) for row in rows)


def calculate_xy_scales(points: Iterable[ScatterPoint]) -> ScaleBounds:
    """Compute padded bounds over points; empty input yields `[0, 100]` axes.

    Notes:
        Each axis is padded by 10% of its observed range on both sides, so a
        `[0, 100]` domain becomes `[-10, 110]`.
    """

    items = list(points)
    if not items:
        return DEFAULT_SCALES
    xs = [point.x for point in items]
    ys = [point.y for point in items]
    x_margin = (max(xs) - min(xs)) * SCALE_MARGIN_RATIO
    y_margin = (max(ys) - min(ys)) * SCALE_MARGIN_RATIO
    return ScaleBounds(
        x_min=min(xs) - x_margin,
        x_max=max(xs) + x_margin,
        y_min=min(ys) - y_margin,
        y_max=max(ys) + y_margin,
    )


def calculate_scatter_scales(
    records: Sequence[Record],
    metrics: Sequence[Metric],
    global_filters: Iterable[Filter] | None = None,
) -> ScaleBounds:
    """Compute shared bounds across the union of every dataset's points."""

    if not records or not metrics:
        return DEFAULT_SCALES
    filters = tuple(global_filters or ())
    points = [point for metric in metrics for point in convert_to_scatter_data(records, metric, filters)]
    return calculate_xy_scales(points)
