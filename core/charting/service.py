"""Chart compilation service: records + configuration -> ECharts option object."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import asdict, dataclass, replace
from hashlib import sha256
from typing import Any, Literal

from analysis.bubble import calculate_bubble_scales, validate_bubble_configuration
from analysis.buckets import generate_bucket_label, get_split_type, validate_bucket
from analysis.bucketing import process_buckets
from analysis.dto import (
    ChartConfig,
    ChartDataContext,
    ProcessedData,
    Record,
    SplitItem,
    ValidationResult,
)
from analysis.filters import apply_all_filters
from analysis.radar import radar_axes, radar_indicators, radar_series_values, validate_radar_configuration
from analysis.scatter import DEFAULT_SCALES, calculate_scatter_scales, validate_scatter_configuration

from .options import BUCKETED_KINDS, OPTION_BUILDERS, build_options
from .params import resolve_widget_params
from .series import bar_series, bubble_series, line_series, pie_series, radar_series, scatter_series

logger = logging.getLogger(__name__)

ChartStatus = Literal["ready", "empty", "invalid"]


@dataclass(frozen=True, slots=True)
class CompiledChart:
    """Outcome of compiling one chart widget.

    Attributes:
        kind: Chart kind that was requested.
        status: `ready`, `empty` (valid configuration, no surviving records)
            or `invalid` (configuration errors; no spec).
        spec: ECharts option object, or None when invalid.
        validation: Validation outcome (errors and warnings).
        title: Resolved widget title.
        charts: One sub-chart per `split_chart` partition.
        rows: One sub-chart per `split_rows` partition.
    """

    kind: str
    status: ChartStatus
    spec: dict[str, Any] | None
    validation: ValidationResult
    title: str = ""
    charts: tuple[CompiledChart, ...] = ()
    rows: tuple[CompiledChart, ...] = ()

    def as_json(self) -> dict[str, Any]:
        """Return a JSON-serializable payload for HTTP and CLI output."""

        return {
            "kind": self.kind,
            "status": self.status,
            "title": self.title,
            "spec": self.spec,
            "errors": list(self.validation.errors),
            "warnings": list(self.validation.warnings),
            "charts": [chart.as_json() for chart in self.charts],
            "rows": [row.as_json() for row in self.rows],
        }


@dataclass(frozen=True, slots=True)
class ChartRequest:
    """One entry of a batch compile."""

    kind: str
    records: tuple[Record, ...]
    config: ChartConfig
    overrides: Mapping[str, Any] | None = None


def process_chart_data(records: Sequence[Record], config: ChartConfig) -> tuple[tuple[Record, ...], ProcessedData | None]:
    """Apply the global filters, then bucket the survivors when buckets exist.

    Returns:
        `(filtered_records, processed)`; `processed` is None without buckets.
    """

    filtered = apply_all_filters(records, config.global_filters)
    if not config.buckets:
        return filtered, None
    return filtered, process_buckets(filtered, config.buckets)


def validate_bucket_chart_config(config: ChartConfig) -> ValidationResult:
    """Validate the minimum configuration of a bucketed chart (bar, line, pie).

    Returns:
        ValidationResult. Bucket-level rule violations are reported with the
        bucket's label as prefix, e.g. `"Histogram - price: Interval must be
        greater than 0"`.
    """

    errors: list[str] = []
    if not config.metrics:
        errors.append("At least one metric must be configured")
    if not config.buckets:
        errors.append("At least one bucket must be configured")
    elif not config.buckets[0].field.strip():
        errors.append("Bucket field must be specified")
    for bucket in config.buckets:
        if not bucket.field.strip():
            continue
        for message in validate_bucket(bucket).errors:
            errors.append(f"{generate_bucket_label(bucket)}: {message}")
    return ValidationResult(is_valid=not errors, errors=tuple(errors))


_VALIDATORS: dict[str, Callable[[ChartConfig], ValidationResult]] = {
    "bar": validate_bucket_chart_config,
    "line": validate_bucket_chart_config,
    "pie": validate_bucket_chart_config,
    "scatter": lambda config: validate_scatter_configuration(config.metrics),
    "bubble": lambda config: validate_bubble_configuration(config.metrics),
    "radar": lambda config: validate_radar_configuration(config.metrics),
}


def validate_chart_config(kind: str, config: ChartConfig) -> ValidationResult:
    """Validate a configuration for the given chart kind."""

    validator = _VALIDATORS.get(kind)
    if validator is None:
        return ValidationResult(is_valid=False, errors=(f"Unsupported chart type: {kind!r}",))
    return validator(config)


def create_data_context(
    kind: str,
    records: Sequence[Record],
    config: ChartConfig,
    overrides: Mapping[str, Any] | None = None,
) -> ChartDataContext:
    """Build the working set consumed by the series and option builders.

    Args:
        kind: Chart kind.
        records: Raw input records.
        config: Declarative chart configuration.
        overrides: Call-site widget parameter overrides.

    Returns:
        ChartDataContext with filtered records, bucket output, category labels,
        merged parameters and the validation outcome.
    """

    filtered, processed = process_chart_data(records, config)
    return ChartDataContext(
        kind=kind,
        filtered_data=filtered,
        processed_data=processed,
        labels=processed.labels if processed is not None else (),
        metrics=config.metrics,
        metric_styles=config.metric_styles,
        params=resolve_widget_params(kind, config, overrides),
        validation=validate_chart_config(kind, config),
    )


_BUCKETED_SERIES: dict[str, Callable[[ChartDataContext], list[dict[str, Any]]]] = {
    "bar": bar_series,
    "line": line_series,
    "pie": pie_series,
}


def _bucketed_spec(context: ChartDataContext) -> dict[str, Any]:
    series = _BUCKETED_SERIES[context.kind](context)
    return build_options(context.kind, context.params, context.labels, series)


def _scatter_spec(context: ChartDataContext) -> dict[str, Any]:
    scales = calculate_scatter_scales(context.filtered_data, context.metrics)
    return build_options("scatter", context.params, (), scatter_series(context), scales=scales)


def _bubble_spec(context: ChartDataContext) -> dict[str, Any]:
    scales = calculate_bubble_scales(context.filtered_data, context.metrics)
    return build_options("bubble", context.params, (), bubble_series(context), scales=scales)


def _radar_spec(context: ChartDataContext) -> dict[str, Any]:
    axes = radar_axes(context.metrics)
    values = [radar_series_values(context.filtered_data, metric, axes) for metric in context.metrics]
    indicators = radar_indicators(values, axes)
    return build_options("radar", context.params, (), radar_series(context, values), indicators)


_SPEC_BUILDERS: dict[str, Callable[[ChartDataContext], dict[str, Any]]] = {
    "bar": _bucketed_spec,
    "line": _bucketed_spec,
    "pie": _bucketed_spec,
    "scatter": _scatter_spec,
    "bubble": _bubble_spec,
    "radar": _radar_spec,
}


def _empty_spec(context: ChartDataContext) -> dict[str, Any]:
    scales = DEFAULT_SCALES if context.kind in ("scatter", "bubble") else None
    return build_options(context.kind, context.params, (), (), scales=scales)


def _title(params: Mapping[str, Any]) -> str:
    return str(params.get("title") or "")


def _split_contexts(context: ChartDataContext, config: ChartConfig, partitions: Sequence[SplitItem]) -> list[ChartDataContext]:
    """Phase 2 of split fan-out: one context per partition, without the fan-out buckets."""

    remaining = tuple(bucket for bucket in config.buckets if get_split_type(bucket) not in ("rows", "chart"))
    parent_title = _title(context.params)
    contexts: list[ChartDataContext] = []
    for partition in partitions:
        processed = process_buckets(partition.data, remaining)
        title = f"{parent_title} - {partition.key}" if parent_title else partition.key
        contexts.append(
            replace(
                context,
                filtered_data=partition.data,
                processed_data=processed,
                labels=processed.labels,
                params={**context.params, "title": title},
            )
        )
    return contexts


def _compiled(context: ChartDataContext) -> CompiledChart:
    if not context.filtered_data:
        return CompiledChart(
            kind=context.kind,
            status="empty",
            spec=_empty_spec(context),
            validation=context.validation,
            title=_title(context.params),
        )
    return CompiledChart(
        kind=context.kind,
        status="ready",
        spec=_SPEC_BUILDERS[context.kind](context),
        validation=context.validation,
        title=_title(context.params),
    )


def compile_chart(
    kind: str,
    records: Sequence[Record],
    config: ChartConfig,
    overrides: Mapping[str, Any] | None = None,
) -> CompiledChart:
    """Compile one chart widget.

    Args:
        kind: Chart kind (bar, line, pie, scatter, bubble, radar).
        records: Raw input records.
        config: Declarative chart configuration.
        overrides: Call-site widget parameter overrides.

    Returns:
        CompiledChart. Invalid configurations never raise; they produce a
        chart with `status="invalid"` and the error list. For bucketed kinds,
        `split_chart` and `split_rows` buckets add one sub-chart per
        partition.
    """

    if kind not in OPTION_BUILDERS:
        validation = validate_chart_config(kind, config)
        logger.info("Rejected chart with unsupported kind %r", kind)
        return CompiledChart(kind=kind, status="invalid", spec=None, validation=validation)

    context = create_data_context(kind, records, config, overrides)
    validation = context.validation
    if not validation.is_valid:
        logger.info("Invalid %s chart configuration (%d errors)", kind, len(validation.errors))
        return CompiledChart(
            kind=kind,
            status="invalid",
            spec=None,
            validation=validation,
            title=_title(context.params),
        )
    if validation.warnings:
        logger.warning("%s chart compiled with warnings: %s", kind, "; ".join(validation.warnings))

    logger.debug("Compiling %s chart over %d filtered records", kind, len(context.filtered_data))
    compiled = _compiled(context)
    processed = context.processed_data
    if kind not in BUCKETED_KINDS or processed is None:
        return compiled
    return replace(
        compiled,
        charts=tuple(_compiled(sub) for sub in _split_contexts(context, config, processed.split_data.charts)),
        rows=tuple(_compiled(sub) for sub in _split_contexts(context, config, processed.split_data.rows)),
    )


def compile_charts(requests: Iterable[ChartRequest]) -> tuple[CompiledChart, ...]:
    """Compile a batch of charts, compiling identical requests only once.

    Returns:
        CompiledChart entries in the same order as `requests`.
    """

    compiled: list[CompiledChart] = []
    cache: dict[str, CompiledChart] = {}
    for request in requests:
        cache_key = _request_cache_key(request)
        if cache_key in cache:
            logger.debug("Chart cache hit for %s request", request.kind)
        else:
            cache[cache_key] = compile_chart(request.kind, request.records, request.config, request.overrides)
        compiled.append(cache[cache_key])
    return tuple(compiled)


def _request_cache_key(request: ChartRequest) -> str:
    """Return a content-based cache key for one compile request.

    Notes:
        This cache is request-local and only guards against redundant work
        when a dashboard contains the same widget several times.
    """

    payload = {
        "kind": request.kind,
        "records": [dict(record) for record in request.records],
        "config": asdict(request.config),
        "overrides": dict(request.overrides or {}),
    }
    dumped = json.dumps(payload, sort_keys=True, default=str)
    return sha256(dumped.encode("utf-8")).hexdigest()
