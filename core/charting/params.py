"""Widget parameter cascade.

Widget parameters come from several sources with a fixed precedence:

1. component defaults (`DEFAULT_WIDGET_PARAMS`),
2. chart-kind defaults (`CHART_KIND_DEFAULTS`),
3. the declarative configuration's `widgetParams` (and its `echarts` block),
4. call-site overrides.

Sources are folded left to right with shallow-merge semantics, except for the
nested advanced-option blocks (`echarts`, `themeColors`), which are merged key
by key on their own so a later shallow override never drops earlier advanced
settings.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from analysis.coercion import to_number
from analysis.dto import ChartConfig

DEFAULT_WIDGET_PARAMS: dict[str, Any] = {
    "title": "",
    "legendPosition": "top",
    "xLabel": "",
    "yLabel": "",
    "labelFormat": "{label}: {value} ({percent}%)",
    "tooltipFormat": "{label}: {value}",
    "titleAlign": "center",
    "labelFontSize": 12,
    "labelColor": "#000000",
    "legend": True,
    "showGrid": True,
    "showValues": False,
    "stacked": False,
    "horizontal": False,
    "showPoints": True,
    "tension": 0,
    "borderWidth": 1,
    "borderRadius": 0,
    "pointRadius": 3,
    "showTicks": True,
}

CHART_KIND_DEFAULTS: dict[str, dict[str, Any]] = {
    "bar": {},
    "line": {"borderWidth": 2, "pointRadius": 4},
    "pie": {"borderWidth": 2},
    "scatter": {},
    "bubble": {},
    "radar": {},
}

NESTED_BLOCKS: tuple[str, ...] = ("echarts", "themeColors")

LEGEND_POSITIONS: tuple[str, ...] = ("top", "left", "right", "bottom")
TITLE_ALIGNS: tuple[str, ...] = ("start", "center", "end", "left", "right")


def _merge_block(base: Mapping[str, Any], update: Mapping[str, Any]) -> dict[str, Any]:
    """Merge an advanced-option block, also merging its per-feature dict entries."""

    merged = dict(base)
    for key, value in update.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = {**current, **value}
        else:
            merged[key] = value
    return merged


def merge_widget_params(*sources: Mapping[str, Any] | None) -> dict[str, Any]:
    """Fold parameter sources left to right; later sources win.

    Args:
        *sources: Partial parameter mappings in increasing precedence. None
            entries are skipped.

    Returns:
        A new dict. Top-level keys are shallow-merged; the `echarts` and
        `themeColors` blocks are merged independently across all sources.

    Examples:
        >>> merge_widget_params({"echarts": {"a": 1}}, {"echarts": {"b": 2}})["echarts"]
        {'a': 1, 'b': 2}
    """

    merged: dict[str, Any] = {}
    blocks: dict[str, dict[str, Any]] = {}
    for source in sources:
        if not source:
            continue
        for key, value in source.items():
            if key in NESTED_BLOCKS:
                if isinstance(value, Mapping):
                    blocks[key] = _merge_block(blocks.get(key, {}), value)
                continue
            merged[key] = value
    merged.update(blocks)
    return merged


def _clamp(value: object, *, low: float, high: float, default: float) -> float | int:
    number = to_number(value)
    if not math.isfinite(number):
        number = default
    number = float(max(low, min(high, number)))
    return int(number) if number.is_integer() else number


def normalize_widget_params(params: Mapping[str, Any]) -> dict[str, Any]:
    """Clamp and normalize user-editable parameters.

    Notes:
        - Unknown legend positions fall back to `top`; unknown title
          alignments fall back to `center`.
        - `labelFontSize` is clamped to 8..72, `tension` to 0..1 and
          `borderWidth` to >= 0. Missing or non-numeric values take the
          defaults (12, 0 and 1); whole-number results come back as ints.
    """

    normalized = dict(params)
    if normalized.get("legendPosition") not in LEGEND_POSITIONS:
        normalized["legendPosition"] = "top"
    if normalized.get("titleAlign") not in TITLE_ALIGNS:
        normalized["titleAlign"] = "center"
    normalized["labelFontSize"] = _clamp(normalized.get("labelFontSize"), low=8, high=72, default=12)
    normalized["tension"] = _clamp(normalized.get("tension"), low=0, high=1, default=0)
    normalized["borderWidth"] = _clamp(normalized.get("borderWidth"), low=0, high=float("inf"), default=1)
    return normalized


def resolve_widget_params(
    kind: str,
    config: ChartConfig,
    overrides: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Return the fully merged and normalized parameters for one render pass."""

    return normalize_widget_params(
        merge_widget_params(
            DEFAULT_WIDGET_PARAMS,
            CHART_KIND_DEFAULTS.get(kind),
            config.widget_params,
            {"echarts": config.echarts} if config.echarts else None,
            overrides,
        )
    )
