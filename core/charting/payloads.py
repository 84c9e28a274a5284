"""Decoding helpers for camelCase widget payloads (JSON bodies, YAML files)."""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from analysis.dto import BucketSpec, ChartConfig, Filter, Metric, MetricStyle, RangeSpec, Record

from .service import ChartRequest


def decode_chart_config(payload: Mapping[str, Any] | None) -> ChartConfig:
    """Decode a ChartConfig from a camelCase payload.

    Args:
        payload: Mapping with optional `metrics`, `buckets`, `metricStyles`,
            `globalFilters`, `widgetParams` and `echarts` keys. None decodes to
            an empty configuration.

    Returns:
        ChartConfig instance. Missing scalar values fall back to defaults;
        semantic problems are left for validation.

    Raises:
        ValueError: When the payload or one of its sections has the wrong
            structural type (for example a non-list `metrics`).
    """

    if payload is None:
        return ChartConfig()
    if not isinstance(payload, Mapping):
        raise ValueError("Chart config must be an object")
    widget_params = payload.get("widgetParams") or {}
    if not isinstance(widget_params, Mapping):
        raise ValueError("'widgetParams' must be an object")
    echarts = payload.get("echarts")
    if echarts is not None and not isinstance(echarts, Mapping):
        raise ValueError("'echarts' must be an object")
    return ChartConfig(
        metrics=tuple(_parse_metric(item) for item in _objects(payload, "metrics")),
        buckets=tuple(_parse_bucket(item) for item in _objects(payload, "buckets")),
        metric_styles=tuple(_parse_style(item) for item in _objects(payload, "metricStyles")),
        global_filters=tuple(_parse_filter(item) for item in _objects(payload, "globalFilters")),
        widget_params=dict(widget_params),
        echarts=dict(echarts) if echarts else None,
    )


def decode_records(value: object) -> tuple[Record, ...]:
    """Validate that `value` is a list of record objects.

    Raises:
        ValueError: When `value` is not a list or holds non-object entries.
    """

    if value is None:
        return ()
    if not isinstance(value, list):
        raise ValueError("'data' must be a list of records")
    for index, record in enumerate(value):
        if not isinstance(record, Mapping):
            raise ValueError(f"data[{index}] must be an object")
    return tuple(value)


def decode_chart_request(payload: Mapping[str, Any], records: object = None) -> ChartRequest:
    """Decode a widget envelope `{type, config, overrides, data}` into a ChartRequest.

    Args:
        payload: Widget envelope.
        records: Records used instead of `payload["data"]` when provided.

    Raises:
        ValueError: On structural errors in the envelope.
    """

    if not isinstance(payload, Mapping):
        raise ValueError("Widget must be an object")
    kind = str(payload.get("type") or "").strip()
    if not kind:
        raise ValueError("Widget 'type' is required")
    overrides = payload.get("overrides")
    if overrides is not None and not isinstance(overrides, Mapping):
        raise ValueError("'overrides' must be an object")
    return ChartRequest(
        kind=kind,
        records=decode_records(payload.get("data") if records is None else records),
        config=decode_chart_config(payload.get("config")),
        overrides=dict(overrides) if overrides else None,
    )


def _objects(payload: Mapping[str, Any], key: str) -> list[Mapping[str, Any]]:
    """Return `payload[key]` as a list of objects, raising on structural errors."""

    raw = payload.get(key)
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError(f"'{key}' must be a list")
    for index, item in enumerate(raw):
        if not isinstance(item, Mapping):
            raise ValueError(f"{key}[{index}] must be an object")
    return raw


def _parse_filter(raw: Mapping[str, Any]) -> Filter:
    return Filter(
        field=str(raw.get("field") or ""),
        operator=str(raw.get("operator") or "equals"),
        value=raw.get("value"),
    )


def _parse_metric(raw: Mapping[str, Any]) -> Metric:
    fields = raw.get("fields") or ()
    if not isinstance(fields, (list, tuple)):
        raise ValueError("Metric 'fields' must be a list")
    return Metric(
        field=str(raw.get("field") or ""),
        agg=str(raw.get("agg") or "sum"),
        label=str(raw.get("label") or ""),
        x=str(raw.get("x") or ""),
        y=str(raw.get("y") or ""),
        r=str(raw.get("r") or ""),
        fields=tuple(str(name) for name in fields),
        dataset_filters=tuple(_parse_filter(item) for item in _objects(raw, "datasetFilters")),
    )


def _parse_range(raw: Mapping[str, Any]) -> RangeSpec:
    return RangeSpec(
        from_value=_parse_float(raw.get("from")),
        to_value=_parse_float(raw.get("to")),
        label=str(raw.get("label") or ""),
    )


def _parse_bucket(raw: Mapping[str, Any]) -> BucketSpec:
    size = raw.get("size")
    return BucketSpec(
        field=str(raw.get("field") or ""),
        type=str(raw.get("type") or "terms"),
        label=str(raw.get("label") or ""),
        order=str(raw.get("order") or "desc"),
        size=None if size is None else _parse_int(size),
        min_doc_count=_parse_int(raw.get("minDocCount")) or 1,
        interval=_parse_float(raw.get("interval")),
        date_interval=str(raw["dateInterval"]) if raw.get("dateInterval") else None,
        ranges=tuple(_parse_range(item) for item in _objects(raw, "ranges")),
        split_type=str(raw["splitType"]) if raw.get("splitType") else None,
    )


def _parse_style(raw: Mapping[str, Any]) -> MetricStyle:
    colors = raw.get("colors") or raw.get("backgroundColor") or ()
    if isinstance(colors, str):
        colors = (colors,)
    border_color = raw.get("borderColor")
    if isinstance(border_color, list):
        border_color = border_color[0] if border_color else None
    return MetricStyle(
        color=str(raw["color"]) if raw.get("color") else None,
        colors=tuple(str(color) for color in colors),
        border_color=str(border_color) if border_color else None,
        border_width=_parse_float(raw.get("borderWidth")),
        border_radius=_parse_float(raw.get("borderRadius")),
        opacity=_parse_float(raw.get("opacity")),
        fill=_parse_optional_bool(raw.get("fill")),
        tension=_parse_float(raw.get("tension")),
        point_radius=_parse_float(raw.get("pointRadius")),
        bar_thickness=_parse_float(raw.get("barThickness")),
        width=_parse_int(raw.get("width")),
        align=str(raw["align"]) if raw.get("align") else None,
        format=str(raw["format"]) if raw.get("format") else None,
    )


def _parse_float(value: object) -> float | None:
    """Best-effort float parsing for payload values."""

    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        number = float(str(value))
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _parse_int(value: object) -> int | None:
    """Best-effort int parsing for payload values."""

    number = _parse_float(value)
    return None if number is None else int(number)


def _parse_optional_bool(value: object) -> bool | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    return str(value).strip().casefold() in {"1", "true", "yes", "on"}
