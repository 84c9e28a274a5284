"""Advanced series decorations driven by the `echarts` parameter block.

Every helper is a no-op (returns the base value or an empty dict) when its
advanced option is absent or disabled, so builders can splat the results into
a series unconditionally.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from analysis.coercion import to_finite

from .palette import hex_to_rgba

_MARK_LINE_NAMES: dict[str, str] = {"average": "Average", "min": "Min", "max": "Max"}


def _block(value: object) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _enabled(block: Mapping[str, Any]) -> bool:
    return bool(block) and block.get("enabled", True) is not False


def _opacity(value: object, default: float) -> float:
    return max(0.0, min(1.0, to_finite(value, default=default)))


def label_config(show_values: bool, params: Mapping[str, Any], echarts: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Return the series `label` block for value labels."""

    if not show_values:
        return {"show": False}
    advanced = _block(echarts)
    label: dict[str, Any] = {
        "show": True,
        "position": advanced.get("labelPosition", "top"),
        "fontSize": params.get("labelFontSize", 12),
        "color": _block(params.get("themeColors")).get("labelColor", params.get("labelColor")),
    }
    if advanced.get("labelFormatter"):
        label["formatter"] = advanced["labelFormatter"]
    if advanced.get("labelRotate"):
        label["rotate"] = advanced["labelRotate"]
    return label


def emphasis_options(emphasis: object) -> dict[str, Any]:
    """Return `{"emphasis": ...}` for hover focus, or {} when not configured."""

    block = _block(emphasis)
    if not _enabled(block):
        return {}
    out: dict[str, Any] = {
        "focus": block.get("focus", "series"),
        "blurScope": block.get("blurScope", "coordinateSystem"),
        "scale": bool(block.get("scale", True)),
    }
    if block.get("shadowBlur"):
        out["itemStyle"] = {
            "shadowBlur": block["shadowBlur"],
            "shadowColor": block.get("shadowColor", "rgba(0, 0, 0, 0.3)"),
        }
    return {"emphasis": out}


def gradient_color(base_color: str, gradient: object) -> str | dict[str, Any]:
    """Return a linear or radial gradient derived from `base_color`.

    Args:
        base_color: Series color in hex notation.
        gradient: `echarts.gradient` block: `enabled`, `type` (linear or
            radial), `direction` (vertical or horizontal), `startOpacity`,
            `endOpacity`.

    Returns:
        The base color unchanged when gradients are disabled, else an
        ECharts gradient object with two opacity stops.
    """

    block = _block(gradient)
    if not block.get("enabled"):
        return base_color
    stops = [
        {"offset": 0, "color": hex_to_rgba(base_color, _opacity(block.get("startOpacity"), 1.0))},
        {"offset": 1, "color": hex_to_rgba(base_color, _opacity(block.get("endOpacity"), 0.2))},
    ]
    if block.get("type") == "radial":
        return {"type": "radial", "x": 0.5, "y": 0.5, "r": 0.5, "colorStops": stops}
    horizontal = block.get("direction") == "horizontal"
    return {
        "type": "linear",
        "x": 0,
        "y": 0,
        "x2": 1 if horizontal else 0,
        "y2": 0 if horizontal else 1,
        "colorStops": stops,
    }


def mark_line_options(mark_line: object) -> dict[str, Any]:
    """Return `{"markLine": ...}` for statistic and constant reference lines."""

    block = _block(mark_line)
    if not _enabled(block):
        return {}
    data: list[dict[str, Any]] = []
    for kind in block.get("types") or ("average",):
        if kind in _MARK_LINE_NAMES:
            data.append({"type": kind, "name": _MARK_LINE_NAMES[kind]})
    for line in block.get("lines") or ():
        if isinstance(line, Mapping) and line.get("value") is not None:
            data.append({"yAxis": line["value"], "name": line.get("label", "")})
    if not data:
        return {}
    return {
        "markLine": {
            "silent": True,
            "symbol": ["none", "none"],
            "lineStyle": {"type": block.get("lineType", "dashed"), "color": block.get("color")},
            "label": {"show": block.get("showLabel", True) is not False},
            "data": data,
        }
    }


def mark_area_options(mark_area: object) -> dict[str, Any]:
    """Return `{"markArea": ...}` for highlighted bands, or {} when none are set."""

    block = _block(mark_area)
    if not _enabled(block):
        return {}
    data: list[list[dict[str, Any]]] = []
    for area in block.get("areas") or ():
        if not isinstance(area, Mapping):
            continue
        axis_key = "yAxis" if area.get("axis") == "y" else "xAxis"
        data.append([{"name": area.get("label", ""), axis_key: area.get("from")}, {axis_key: area.get("to")}])
    if not data:
        return {}
    color = str(block.get("color", "#6366f1"))
    return {
        "markArea": {
            "silent": True,
            "itemStyle": {"color": hex_to_rgba(color, _opacity(block.get("opacity"), 0.15))},
            "data": data,
        }
    }


def shadow_options(shadow: object) -> dict[str, Any]:
    """Return item-style shadow keys, or {} when shadows are not configured."""

    block = _block(shadow)
    if not _enabled(block):
        return {}
    return {
        "shadowBlur": block.get("blur", 10),
        "shadowColor": block.get("color", "rgba(0, 0, 0, 0.25)"),
        "shadowOffsetX": block.get("offsetX", 0),
        "shadowOffsetY": block.get("offsetY", 2),
    }
