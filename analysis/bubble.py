"""Bubble chart processing: scatter plus a radius dimension."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from .coercion import to_finite
from .dto import BubblePoint, Filter, Metric, Record, ScaleBounds, ScatterPoint, ValidationResult
from .filters import apply_all_filters
from .scatter import DEFAULT_SCALES, calculate_xy_scales, validate_dataset_metrics

MIN_SYMBOL_SIZE = 10
MAX_SYMBOL_SIZE = 50


def validate_bubble_configuration(metrics: Sequence[Metric]) -> ValidationResult:
    """Validate bubble datasets (x, y and r fields are required)."""

    return validate_dataset_metrics(
        metrics,
        required=(
            ("x", "X field must be specified"),
            ("y", "Y field must be specified"),
            ("r", "R field (radius) must be specified"),
        ),
    )


def convert_to_bubble_data(
    records: Sequence[Record],
    metric: Metric,
    global_filters: Iterable[Filter] | None = None,
) -> tuple[BubblePoint, ...]:
    """Convert records into bubble points for one dataset.

    Notes:
        Invalid x/y coordinates become 0. A missing, invalid or zero radius
        becomes 1; negative radii are dropped.
    """

    if not metric.x or not metric.y or not metric.r:
        return ()
    rows = apply_all_filters(records, global_filters, metric.dataset_filters)
    points: list[BubblePoint] = []
    for row in rows:
        radius = to_finite(row.get(metric.r)) or 1.0
        if radius < 0:
            continue
        points.append(BubblePoint(x=to_finite(row.get(metric.x)), y=to_finite(row.get(metric.y)), r=radius))
    return tuple(points)


def calculate_symbol_size(
    radius: float,
    max_radius: float,
    min_size: float = MIN_SYMBOL_SIZE,
    max_size: float = MAX_SYMBOL_SIZE,
) -> float:
    """Map a radius value onto a pixel size range.

    Args:
        radius: Radius value of one point.
        max_radius: Largest radius in the same series; values <= 0 count as 1.
        min_size: Size of a zero radius.
        max_size: Size of the series maximum.

    Returns:
        Linear interpolation clamped to `[min_size, max_size]`.
    """

    denominator = max_radius if max_radius > 0 else 1
    ratio = radius / denominator if math.isfinite(radius) else 0.0
    size = min_size + ratio * (max_size - min_size)
    return max(min_size, min(max_size, size))


def calculate_bubble_scales(
    records: Sequence[Record],
    metrics: Sequence[Metric],
    global_filters: Iterable[Filter] | None = None,
) -> ScaleBounds:
    """Compute padded x/y bounds plus the observed radius range."""

    if not records or not metrics:
        return ScaleBounds(
            x_min=DEFAULT_SCALES.x_min,
            x_max=DEFAULT_SCALES.x_max,
            y_min=DEFAULT_SCALES.y_min,
            y_max=DEFAULT_SCALES.y_max,
            r_min=1,
            r_max=10,
        )
    filters = tuple(global_filters or ())
    points = [point for metric in metrics for point in convert_to_bubble_data(records, metric, filters)]
    xy = calculate_xy_scales(ScatterPoint(x=point.x, y=point.y) for point in points)
    radii = [point.r for point in points]
    return ScaleBounds(
        x_min=xy.x_min,
        x_max=xy.x_max,
        y_min=xy.y_min,
        y_max=xy.y_max,
        r_min=min(radii) if radii else 1,
        r_max=max(radii) if radii else 10,
    )
