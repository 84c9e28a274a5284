"""Series builders for every chart kind.

Bucketed kinds (bar, line, pie) read the processed bucket hierarchy of a
`ChartDataContext`; dataset-shaped kinds (scatter, bubble, radar) convert the
filtered records per metric. Every builder returns plain JSON-ready dicts.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from analysis.aggregations import aggregate_records, metric_label
from analysis.bubble import calculate_symbol_size, convert_to_bubble_data
from analysis.bucketing import metric_values, split_series_values
from analysis.dto import ChartDataContext, Metric, MetricStyle
from analysis.radar import generate_radar_label
from analysis.scatter import convert_to_scatter_data, generate_dataset_label

from .decorations import (
    emphasis_options,
    gradient_color,
    label_config,
    mark_area_options,
    mark_line_options,
    shadow_options,
)
from .palette import colors_for_labels, series_color

SeriesEntry = tuple[str, tuple[float, ...], MetricStyle | None]


def _echarts(params: Mapping[str, Any]) -> Mapping[str, Any]:
    block = params.get("echarts")
    return block if isinstance(block, Mapping) else {}


def _feature(params: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    block = _echarts(params).get(key)
    return block if isinstance(block, Mapping) else {}


def _style(context: ChartDataContext, index: int) -> MetricStyle | None:
    return context.metric_styles[index] if index < len(context.metric_styles) else None


def _first(*values: object) -> Any:
    """Return the first value that is not None."""

    return next((value for value in values if value is not None), None)


def _decorations(params: Mapping[str, Any]) -> dict[str, Any]:
    echarts = _echarts(params)
    return {
        **emphasis_options(echarts.get("emphasis")),
        **mark_line_options(echarts.get("markLine")),
        **mark_area_options(echarts.get("markArea")),
    }


def series_entries(context: ChartDataContext) -> list[SeriesEntry]:
    """Return `(name, values, style)` per output series of a bucketed chart.

    Notes:
        Without split-series buckets there is one entry per metric. With them
        there is one entry per partition (per metric when several metrics are
        configured); partition entries carry no explicit style so their colors
        come from the palette.
    """

    processed = context.processed_data
    entries: list[SeriesEntry] = []
    for index, metric in enumerate(context.metrics):
        name = metric_label(metric.field, metric.agg, metric.label)
        if processed is None:
            entries.append((name, (aggregate_records(context.filtered_data, metric.agg, metric.field),), _style(context, index)))
            continue
        if processed.split_data.series:
            for key, values in split_series_values(processed, metric):
                label = key if len(context.metrics) == 1 else f"{key} - {name}"
                entries.append((label, values, None))
            continue
        entries.append((name, metric_values(processed, metric), _style(context, index)))
    return entries


def bar_series(context: ChartDataContext) -> list[dict[str, Any]]:
    """Build one bar series per entry."""

    params = context.params
    bar = _feature(params, "bar")
    gradient = _echarts(params).get("gradient")
    out: list[dict[str, Any]] = []
    for index, (name, values, style) in enumerate(series_entries(context)):
        style = style or MetricStyle()
        base = series_color(index, style)
        item_style: dict[str, Any] = {
            "color": gradient_color(base, gradient),
            "borderWidth": _first(style.border_width, params.get("borderWidth"), 0),
            "borderRadius": _first(style.border_radius, params.get("borderRadius"), 0),
            **shadow_options(_echarts(params).get("shadow")),
        }
        if style.border_color:
            item_style["borderColor"] = style.border_color
        if style.opacity is not None:
            item_style["opacity"] = style.opacity
        entry: dict[str, Any] = {
            "name": name,
            "type": "bar",
            "data": list(values),
            "itemStyle": item_style,
            "label": label_config(bool(params.get("showValues")), params, _echarts(params)),
            **_decorations(params),
        }
        stack = _first(bar.get("stack"), "total" if params.get("stacked") else None)
        if stack:
            entry["stack"] = stack
        width = _first(bar.get("barWidth"), style.bar_thickness)
        if width is not None:
            entry["barWidth"] = width
        for key in ("barMaxWidth", "barGap", "barCategoryGap"):
            if bar.get(key) is not None:
                entry[key] = bar[key]
        out.append(entry)
    return out


def line_series(context: ChartDataContext) -> list[dict[str, Any]]:
    """Build one line series per entry."""

    params = context.params
    line = _feature(params, "line")
    gradient = _echarts(params).get("gradient")
    out: list[dict[str, Any]] = []
    for index, (name, values, style) in enumerate(series_entries(context)):
        style = style or MetricStyle()
        base = series_color(index, style)
        tension = _first(style.tension, params.get("tension"), 0)
        entry: dict[str, Any] = {
            "name": name,
            "type": "line",
            "data": list(values),
            "smooth": bool(_first(line.get("smooth"), tension > 0)),
            "connectNulls": line.get("connectNulls", True),
            "lineStyle": {"color": base, "width": _first(style.border_width, params.get("borderWidth"), 2)},
            "itemStyle": {"color": base},
            "showSymbol": params.get("showPoints") is not False,
            "symbol": line.get("symbol", "circle"),
            "symbolSize": _first(line.get("symbolSize"), style.point_radius, params.get("pointRadius"), 4),
            "label": label_config(bool(params.get("showValues")), params, _echarts(params)),
            **_decorations(params),
        }
        if line.get("step"):
            entry["step"] = line["step"]
        if params.get("stacked"):
            entry["stack"] = "total"
        if _first(line.get("areaStyle"), style.fill):
            entry["areaStyle"] = {
                "color": gradient_color(base, gradient),
                "opacity": _first(line.get("areaOpacity"), style.opacity, 0.3),
            }
        out.append(entry)
    return out


def pie_series(context: ChartDataContext) -> list[dict[str, Any]]:
    """Build the single pie series from the first metric.

    Slice colors come from the first style's `colors` list when set, else from
    the palette in label order.
    """

    params = context.params
    echarts = _echarts(params)
    pie = _feature(params, "pie")
    metric = context.metrics[0] if context.metrics else Metric(agg="count")
    style = _style(context, 0) or MetricStyle()
    if context.processed_data is not None:
        values = metric_values(context.processed_data, metric)
    else:
        values = (aggregate_records(context.filtered_data, metric.agg, metric.field),)
    labels = context.labels
    colors = style.colors or colors_for_labels(labels)
    data = [
        {"name": label, "value": values[index] if index < len(values) else 0, "itemStyle": {"color": colors[index % len(colors)]}}
        for index, label in enumerate(labels)
    ]

    show_label = bool(params.get("showValues"))
    position = echarts.get("labelPosition", "outside")
    position = "outside" if position == "top" else position
    cutout = str(params.get("cutout") or "").rstrip("%")
    inner = f"{cutout}%" if cutout.isdigit() and int(cutout) > 0 else None
    outer = "55%" if show_label and position == "outside" else "70%"
    entry: dict[str, Any] = {
        "name": metric_label(metric.field, metric.agg, metric.label),
        "type": "pie",
        "radius": [inner, outer] if inner else outer,
        "center": ["50%", "50%"],
        "data": data,
        "startAngle": pie.get("startAngle", 90),
        "clockwise": pie.get("clockwise", True),
        "avoidLabelOverlap": pie.get("avoidLabelOverlap", True),
        "label": {
            "show": show_label,
            "position": position,
            "formatter": echarts.get("labelFormatter", "{b}: {c} ({d}%)"),
            "fontSize": params.get("labelFontSize", 12),
            "color": params.get("labelColor"),
        },
        "labelLine": {"show": show_label and position == "outside", "smooth": True},
        "itemStyle": {
            "borderColor": "#fff",
            "borderWidth": _first(style.border_width, params.get("borderWidth"), 2),
            **shadow_options(echarts.get("shadow")),
        },
        **emphasis_options(echarts.get("emphasis")),
    }
    if pie.get("roseType"):
        entry["roseType"] = pie["roseType"]
    return [entry]


def scatter_series(context: ChartDataContext) -> list[dict[str, Any]]:
    """Build one scatter series per dataset from the filtered records."""

    params = context.params
    echarts = _echarts(params)
    out: list[dict[str, Any]] = []
    for index, metric in enumerate(context.metrics):
        style = _style(context, index) or MetricStyle()
        points = convert_to_scatter_data(context.filtered_data, metric)
        out.append(
            {
                "name": generate_dataset_label(metric, f"Dataset {index + 1}"),
                "type": "scatter",
                "data": [[point.x, point.y] for point in points],
                "symbolSize": _first(style.point_radius, params.get("pointRadius"), 10),
                "itemStyle": {
                    "color": gradient_color(series_color(index, style), echarts.get("gradient")),
                    "opacity": _first(style.opacity, 0.8),
                },
                "label": label_config(bool(params.get("showValues")), params, echarts),
                **emphasis_options(echarts.get("emphasis")),
            }
        )
    return out


def bubble_series(context: ChartDataContext) -> list[dict[str, Any]]:
    """Build one bubble series per dataset with precomputed symbol sizes.

    Each point is `{"value": [x, y, r], "symbolSize": size}` where the size is
    scaled against the largest radius of the same dataset.
    """

    params = context.params
    echarts = _echarts(params)
    gradient = echarts.get("gradient")
    radial = {**gradient, "type": "radial"} if isinstance(gradient, Mapping) else None
    out: list[dict[str, Any]] = []
    for index, metric in enumerate(context.metrics):
        style = _style(context, index) or MetricStyle()
        points = convert_to_bubble_data(context.filtered_data, metric)
        max_radius = max((point.r for point in points), default=1.0)
        out.append(
            {
                "name": generate_dataset_label(metric, f"Dataset {index + 1}"),
                "type": "scatter",
                "data": [
                    {"value": [point.x, point.y, point.r], "symbolSize": calculate_symbol_size(point.r, max(max_radius, 1.0))}
                    for point in points
                ],
                "itemStyle": {
                    "color": gradient_color(series_color(index, style), radial),
                    "opacity": _first(style.opacity, 0.7),
                },
                "label": label_config(bool(params.get("showValues")), params, echarts),
                **emphasis_options(echarts.get("emphasis")),
            }
        )
    return out


def radar_series(context: ChartDataContext, values: Sequence[Sequence[float]]) -> list[dict[str, Any]]:
    """Build the radar series; `values` holds one axis-aligned row per dataset."""

    params = context.params
    echarts = _echarts(params)
    radar = _feature(params, "radar")
    gradient = echarts.get("gradient")
    radial = {**gradient, "type": "radial"} if isinstance(gradient, Mapping) else None
    items: list[dict[str, Any]] = []
    for index, metric in enumerate(context.metrics):
        base = series_color(index, _style(context, index))
        item: dict[str, Any] = {
            "name": generate_radar_label(metric),
            "value": list(values[index]) if index < len(values) else [],
            "itemStyle": {"color": base},
            "lineStyle": {"color": base, "width": 2},
            **emphasis_options(echarts.get("emphasis")),
        }
        if radar.get("areaStyle") is not False:
            item["areaStyle"] = {"color": gradient_color(base, radial), "opacity": radar.get("areaOpacity", 0.25)}
        items.append(item)
    return [
        {
            "type": "radar",
            "data": items,
            "symbol": "circle" if params.get("showPoints") is not False else "none",
            "symbolSize": _first(params.get("pointRadius"), 6),
            "label": {
                "show": bool(params.get("showValues")),
                "formatter": echarts.get("labelFormatter", "{c}"),
                "fontSize": params.get("labelFontSize", 12),
                "color": params.get("labelColor"),
            },
        }
    ]

