"""ECharts option builders keyed by chart kind.

Every chart kind maps to an `(axis_fn, tooltip_fn)` pair in
`OPTION_BUILDERS`. `build_options` merges the shared base options with the
kind's axis and tooltip blocks and the series list, in that order.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any, Literal

from analysis.dto import RadarIndicator, ScaleBounds

from .palette import THEME_COLORS

ChartKind = Literal["bar", "line", "pie", "scatter", "bubble", "radar"]
CHART_KINDS: tuple[str, ...] = ("bar", "line", "pie", "scatter", "bubble", "radar")

# Kinds that aggregate through buckets; the rest are dataset-shaped.
BUCKETED_KINDS: frozenset[str] = frozenset({"bar", "line", "pie"})

AxisFn = Callable[[Mapping[str, Any], Sequence[str], ScaleBounds | None, Sequence[RadarIndicator]], dict[str, Any]]
TooltipFn = Callable[[Mapping[str, Any]], dict[str, Any]]

_TITLE_LEFT: dict[str, str] = {"start": "left", "left": "left", "end": "right", "right": "right"}

_LEGEND_PLACEMENT: dict[str, dict[str, str]] = {
    "top": {"top": "0%", "left": "center", "orient": "horizontal"},
    "bottom": {"bottom": "0%", "left": "center", "orient": "horizontal"},
    "left": {"left": "0%", "top": "middle", "orient": "vertical"},
    "right": {"right": "0%", "top": "middle", "orient": "vertical"},
}


def _advanced(params: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    echarts = params.get("echarts")
    block = echarts.get(key) if isinstance(echarts, Mapping) else None
    return block if isinstance(block, Mapping) else {}


def toolbox_options(params: Mapping[str, Any]) -> dict[str, Any]:
    """Return `{"toolbox": ...}` when `echarts.toolbox.show` is set, else {}."""

    toolbox = _advanced(params, "toolbox")
    if not toolbox.get("show"):
        return {}
    feature: dict[str, Any] = {}
    if toolbox.get("saveAsImage", True):
        feature["saveAsImage"] = {}
    if toolbox.get("dataView"):
        feature["dataView"] = {"readOnly": True}
    if toolbox.get("restore", True):
        feature["restore"] = {}
    return {"toolbox": {"show": True, "right": "2%", "feature": feature}}


def base_options(params: Mapping[str, Any]) -> dict[str, Any]:
    """Return the options shared by every chart kind.

    Args:
        params: Merged widget parameters.

    Returns:
        Background, palette, legend and grid blocks, plus a title block when
        `params["title"]` is set and a toolbox when one is enabled.
    """

    options: dict[str, Any] = {
        "backgroundColor": "transparent",
        "color": list(THEME_COLORS),
        "legend": {
            "show": params.get("legend") is not False,
            **_LEGEND_PLACEMENT.get(str(params.get("legendPosition")), _LEGEND_PLACEMENT["top"]),
        },
        "grid": {"left": "3%", "right": "4%", "bottom": "3%", "containLabel": True},
    }
    title = params.get("title")
    if title:
        options["title"] = {
            "text": str(title),
            "left": _TITLE_LEFT.get(str(params.get("titleAlign")), "center"),
            "textStyle": {"fontSize": 14, "fontWeight": "bold"},
        }
    options.update(toolbox_options(params))
    return options


def category_axes(
    params: Mapping[str, Any],
    labels: Sequence[str],
    scales: ScaleBounds | None = None,
    indicators: Sequence[RadarIndicator] = (),
) -> dict[str, Any]:
    """Return a category axis plus a value axis; `horizontal` swaps them."""

    horizontal = bool(params.get("horizontal"))
    show_grid = params.get("showGrid") is not False
    category_axis = {
        "type": "category",
        "data": list(labels),
        "name": params.get("yLabel" if horizontal else "xLabel") or "",
        "axisLine": {"show": show_grid},
        "axisTick": {"show": params.get("showTicks") is not False},
    }
    rotate = _advanced(params, "axisConfig").get("axisLabelRotate")
    if rotate:
        category_axis["axisLabel"] = {"rotate": rotate}
    value_axis = {
        "type": "value",
        "name": params.get("xLabel" if horizontal else "yLabel") or "",
        "splitLine": {"show": show_grid},
    }
    if horizontal:
        return {"xAxis": value_axis, "yAxis": category_axis}
    return {"xAxis": category_axis, "yAxis": value_axis}


def no_axes(
    params: Mapping[str, Any],
    labels: Sequence[str],
    scales: ScaleBounds | None = None,
    indicators: Sequence[RadarIndicator] = (),
) -> dict[str, Any]:
    """Pie charts have no axes."""

    return {}


def value_axes(
    params: Mapping[str, Any],
    labels: Sequence[str],
    scales: ScaleBounds | None = None,
    indicators: Sequence[RadarIndicator] = (),
) -> dict[str, Any]:
    """Return two value axes bounded by the computed scales (scatter, bubble)."""

    show_grid = params.get("showGrid") is not False
    x_axis: dict[str, Any] = {"type": "value", "name": params.get("xLabel") or "X", "splitLine": {"show": show_grid}}
    y_axis: dict[str, Any] = {"type": "value", "name": params.get("yLabel") or "Y", "splitLine": {"show": show_grid}}
    if scales is not None:
        x_axis.update({"min": scales.x_min, "max": scales.x_max})
        y_axis.update({"min": scales.y_min, "max": scales.y_max})
    return {"xAxis": x_axis, "yAxis": y_axis}


def radar_axes_options(
    params: Mapping[str, Any],
    labels: Sequence[str],
    scales: ScaleBounds | None = None,
    indicators: Sequence[RadarIndicator] = (),
) -> dict[str, Any]:
    """Return the radar coordinate system built from the indicators."""

    radar = _advanced(params, "radar")
    return {
        "radar": {
            "indicator": [{"name": indicator.name, "max": indicator.max} for indicator in indicators],
            "shape": radar.get("shape", "polygon"),
            "splitNumber": radar.get("splitNumber", 5),
            "center": ["50%", "55%"],
            "radius": "65%",
            "axisName": {"show": radar.get("axisNameShow") is not False},
        }
    }


def _axis_tooltip(params: Mapping[str, Any], pointer: str) -> dict[str, Any]:
    pointer = _advanced(params, "axisConfig").get("axisPointer", pointer)
    return {"tooltip": {"trigger": "axis", "axisPointer": {"type": pointer}}}


def bar_tooltip(params: Mapping[str, Any]) -> dict[str, Any]:
    return _axis_tooltip(params, "shadow")


def line_tooltip(params: Mapping[str, Any]) -> dict[str, Any]:
    return _axis_tooltip(params, "line")


def pie_tooltip(params: Mapping[str, Any]) -> dict[str, Any]:
    tooltip = _advanced(params, "tooltipConfig")
    return {
        "tooltip": {
            "trigger": "item",
            "formatter": tooltip.get("formatter", "{b}: {c} ({d}%)"),
            "confine": tooltip.get("confine", True),
        }
    }


def item_tooltip(params: Mapping[str, Any]) -> dict[str, Any]:
    tooltip = _advanced(params, "tooltipConfig")
    out: dict[str, Any] = {"trigger": "item", "confine": tooltip.get("confine", True)}
    if tooltip.get("formatter"):
        out["formatter"] = tooltip["formatter"]
    return {"tooltip": out}


OPTION_BUILDERS: dict[str, tuple[AxisFn, TooltipFn]] = {
    "bar": (category_axes, bar_tooltip),
    "line": (category_axes, line_tooltip),
    "pie": (no_axes, pie_tooltip),
    "scatter": (value_axes, item_tooltip),
    "bubble": (value_axes, item_tooltip),
    "radar": (radar_axes_options, item_tooltip),
}


def build_options(
    kind: str,
    params: Mapping[str, Any],
    labels: Sequence[str],
    series: Sequence[Mapping[str, Any]],
    indicators: Sequence[RadarIndicator] = (),
    *,
    scales: ScaleBounds | None = None,
) -> dict[str, Any]:
    """Assemble the full option object for one chart.

    Args:
        kind: Chart kind; must be a key of `OPTION_BUILDERS`.
        params: Merged widget parameters.
        labels: Category labels (bar, line, pie).
        series: Series built for the chart.
        indicators: Radar indicators.
        scales: Value-axis bounds (scatter, bubble).

    Returns:
        base options, then axis blocks, then tooltip, then `series`; later
        blocks replace earlier keys.

    Raises:
        KeyError: When `kind` is not a supported chart kind.
    """

    axis_fn, tooltip_fn = OPTION_BUILDERS[kind]
    return {
        **base_options(params),
        **axis_fn(params, labels, scales, indicators),
        **tooltip_fn(params),
        "series": [dict(entry) for entry in series],
    }
