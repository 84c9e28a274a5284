"""Radar chart processing.

Radar axes (indicators) are the ordered union of every dataset's `fields`.
Each dataset yields one aggregated value per axis; axes a dataset does not
cover read 0 so that all series share the same indicator set.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .aggregations import AGGREGATIONS, aggregate_records
from .dto import Filter, Metric, RadarIndicator, Record, ValidationResult
from .filters import apply_all_filters
from .scatter import NO_DATASET_ERROR

DEFAULT_SCALE_FACTOR = 1.2
FALLBACK_AXIS_MAX = 100.0

INCONSISTENT_FIELDS_WARNING = "Datasets have different fields, this may create an unbalanced radar"


def generate_radar_label(metric: Metric) -> str:
    """Return the metric label, else `"agg(field_a, field_b)"`."""

    if metric.label.strip():
        return metric.label
    fields = ", ".join(metric.fields) if metric.fields else "fields"
    return f"{metric.agg}({fields})"


def validate_radar_configuration(metrics: Sequence[Metric]) -> ValidationResult:
    """Validate radar datasets.

    Args:
        metrics: Configured datasets.

    Returns:
        ValidationResult. Missing fields or aggregation are errors; datasets
        with differing field sets only produce a warning.
    """

    if not metrics:
        return ValidationResult(is_valid=False, errors=(NO_DATASET_ERROR,))

    errors: list[str] = []
    for index, metric in enumerate(metrics, start=1):
        problems: list[str] = []
        if not metric.fields:
            problems.append("At least one field must be selected for axes")
        if not metric.agg or metric.agg not in AGGREGATIONS:
            problems.append("An aggregation must be specified")
        if problems:
            errors.append(f"Dataset {index}: {', '.join(problems)}")

    warnings: list[str] = []
    first = set(metrics[0].fields)
    if any(len(metric.fields) != len(metrics[0].fields) or set(metric.fields) != first for metric in metrics):
        warnings.append(INCONSISTENT_FIELDS_WARNING)

    return ValidationResult(is_valid=not errors, errors=tuple(errors), warnings=tuple(warnings))


def radar_axes(metrics: Iterable[Metric]) -> tuple[str, ...]:
    """Return the de-duplicated union of all dataset fields, in first-seen order."""

    axes: dict[str, None] = {}
    for metric in metrics:
        for name in metric.fields:
            axes.setdefault(str(name), None)
    return tuple(axes)


def radar_series_values(
    records: Sequence[Record],
    metric: Metric,
    axes: Sequence[str],
    global_filters: Iterable[Filter] | None = None,
) -> tuple[float, ...]:
    """Aggregate one dataset over every radar axis.

    Args:
        records: Raw records.
        metric: Dataset whose `fields` and `agg` are used.
        axes: Shared indicator names (see `radar_axes`).
        global_filters: Filters applied before the dataset's own filters.

    Returns:
        One value per axis; axes missing from `metric.fields` are 0.
    """

    rows = apply_all_filters(records, global_filters, metric.dataset_filters)
    covered = set(metric.fields)
    return tuple(aggregate_records(rows, metric.agg, axis) if axis in covered and rows else 0.0 for axis in axes)


def radar_indicators(
    series_values: Sequence[Sequence[float]],
    axes: Sequence[str],
    scale_factor: float = DEFAULT_SCALE_FACTOR,
) -> tuple[RadarIndicator, ...]:
    """Compute the scaling maximum of every axis.

    Args:
        series_values: Values per series, aligned with `axes`.
        axes: Indicator names.
        scale_factor: Headroom multiplier applied to the observed maximum.

    Returns:
        One indicator per axis with `max = observed max * scale_factor`, or 100
        when no series produced a positive value on that axis.
    """

    indicators: list[RadarIndicator] = []
    for index, axis in enumerate(axes):
        observed = [values[index] for values in series_values if index < len(values)]
        peak = max(observed, default=0.0)
        indicators.append(RadarIndicator(name=axis, max=peak * scale_factor if peak > 0 else FALLBACK_AXIS_MAX))
    return tuple(indicators)
