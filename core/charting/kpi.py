"""KPI, card and KPI-group widget assembly on top of `analysis.kpi`."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import replace
from typing import Any

from analysis.coercion import to_finite
from analysis.dto import ChartConfig, Metric, Record, ValidationResult
from analysis.kpi import (
    DEFAULT_DESCRIPTION_COLOR,
    DEFAULT_ICON_COLOR,
    DEFAULT_VALUE_COLOR,
    apply_kpi_filters,
    calculate_kpi_trend,
    calculate_kpi_value,
    format_value,
    kpi_title,
    parse_kpi_params,
    trend_color,
    validate_card_config,
    validate_kpi_config,
    validate_kpi_group_config,
    widget_text,
)

from .tables import NO_DATA_WARNING

logger = logging.getLogger(__name__)

DEFAULT_CARD_TITLE = "Summary"
DEFAULT_CARD_ICON = "chart-bar"
DEFAULT_GROUP_TITLE = "KPI Group"
DEFAULT_GROUP_COLUMNS = 2


def _status(validation: ValidationResult, filtered: Sequence[Record]) -> str:
    if not validation.is_valid:
        return "invalid"
    return "ready" if filtered else "empty"


def _warnings(validation: ValidationResult, filtered: Sequence[Record]) -> list[str]:
    warnings = list(validation.warnings)
    if validation.is_valid and not filtered:
        warnings.append(NO_DATA_WARNING)
    return warnings


def build_kpi_widget(records: Sequence[Record], config: ChartConfig) -> dict[str, Any]:
    """Compute one KPI tile: aggregated value, formatted text and trend.

    Args:
        records: Raw input records.
        config: KPI configuration; only the first metric is used.

    Returns:
        Dict with `kind`, `status` (`ready`, `empty` or `invalid`), `title`,
        `value`, `formattedValue`, colors, trend fields, `errors` and
        `warnings`. Invalid configurations carry a null value.
    """

    validation = validate_kpi_config(config)
    params = parse_kpi_params(config.widget_params)
    metric = config.metrics[0] if config.metrics else None
    filtered = apply_kpi_filters(records, config) if validation.is_valid else ()
    status = _status(validation, filtered)
    if status == "invalid":
        logger.info("Invalid KPI configuration: %s", "; ".join(validation.errors))

    value = calculate_kpi_value(metric, filtered) if validation.is_valid else None
    trend = calculate_kpi_trend(metric, filtered, params.show_trend)
    return {
        "kind": "kpi",
        "status": status,
        "title": kpi_title(config, metric),
        "value": value,
        "formattedValue": format_value(value, params.format, decimals=params.decimals, currency=params.currency),
        "valueColor": widget_text(config, "valueColor", DEFAULT_VALUE_COLOR),
        "titleColor": widget_text(config, "titleColor", DEFAULT_VALUE_COLOR),
        "showValue": params.show_value,
        "showTrend": params.show_trend,
        "showPercent": params.show_percent,
        "trendType": params.trend_type,
        "trend": trend.direction,
        "trendValue": trend.value,
        "trendPercent": trend.percent,
        "trendColor": trend_color(trend.direction, trend.percent, params.threshold),
        "errors": list(validation.errors),
        "warnings": _warnings(validation, filtered),
    }


def build_card_widget(records: Sequence[Record], config: ChartConfig) -> dict[str, Any]:
    """Compute a summary card: one formatted value with icon and description.

    Cards have no trend. A card without metrics still renders (value 0) and
    only warns.
    """

    validation = validate_card_config(config)
    params = parse_kpi_params(config.widget_params)
    metric = config.metrics[0] if config.metrics else None
    filtered = apply_kpi_filters(records, config) if validation.is_valid else ()
    status = _status(validation, filtered)
    if status == "invalid":
        logger.info("Invalid card configuration: %s", "; ".join(validation.errors))

    widget_params = config.widget_params
    value = calculate_kpi_value(metric, filtered) if validation.is_valid else None
    description = widget_params.get("description")
    return {
        "kind": "card",
        "status": status,
        "title": kpi_title(config, metric, DEFAULT_CARD_TITLE),
        "value": value,
        "formattedValue": format_value(value, params.format, decimals=params.decimals, currency=params.currency),
        "description": description if isinstance(description, str) else "",
        "icon": widget_text(config, "icon", DEFAULT_CARD_ICON),
        "showIcon": widget_params.get("showIcon") is not False,
        "iconColor": widget_text(config, "iconColor", DEFAULT_ICON_COLOR),
        "valueColor": widget_text(config, "valueColor", DEFAULT_VALUE_COLOR),
        "descriptionColor": widget_text(config, "descriptionColor", DEFAULT_DESCRIPTION_COLOR),
        "titleColor": widget_text(config, "titleColor", DEFAULT_VALUE_COLOR),
        "errors": list(validation.errors),
        "warnings": _warnings(validation, filtered),
    }


def _group_columns(params: Mapping[str, Any]) -> int:
    columns = params.get("columns")
    if isinstance(columns, bool):
        return DEFAULT_GROUP_COLUMNS
    number = to_finite(columns)
    return int(number) if number >= 1 else DEFAULT_GROUP_COLUMNS


def _item_params(config: ChartConfig, index: int, metric: Metric) -> dict[str, Any]:
    """Per-tile params: group params, theme colors, then the tile title and color.

    A theme text color wins over per-metric style colors.
    """

    base: dict[str, Any] = dict(config.widget_params)
    theme = base.get("themeColors")
    theme = theme if isinstance(theme, Mapping) else {}
    if theme.get("textColor"):
        base["valueColor"] = theme["textColor"]
    if theme.get("labelColor"):
        base["titleColor"] = theme["labelColor"]

    style = config.metric_styles[index] if index < len(config.metric_styles) else None
    if not theme.get("textColor") and style is not None and style.color:
        base["valueColor"] = style.color
    base["title"] = metric.label or metric.field or f"KPI {index + 1}"
    return base


def build_kpi_group_widget(records: Sequence[Record], config: ChartConfig) -> dict[str, Any]:
    """Compute one KPI tile per configured metric, laid out on a grid.

    Every tile shares the group's global filters and widget parameters; its
    own metric filters apply on top.

    Returns:
        Dict with `kind`, `status`, `title`, `columns`, `items` (one KPI
        payload per metric), `errors` and `warnings`.
    """

    validation = validate_kpi_group_config(config)
    title = config.widget_params.get("title")
    payload: dict[str, Any] = {
        "kind": "kpi_group",
        "title": title if isinstance(title, str) and title else DEFAULT_GROUP_TITLE,
        "columns": _group_columns(config.widget_params),
        "errors": list(validation.errors),
        "warnings": list(validation.warnings),
    }
    if not validation.is_valid:
        logger.info("Invalid KPI group configuration: %s", "; ".join(validation.errors))
        return {**payload, "status": "invalid", "items": []}

    items = [
        build_kpi_widget(
            records,
            replace(config, metrics=(metric,), metric_styles=(), widget_params=_item_params(config, index, metric)),
        )
        for index, metric in enumerate(config.metrics)
    ]
    ready = any(item["status"] == "ready" for item in items)
    if not ready:
        payload["warnings"].append(NO_DATA_WARNING)
    return {**payload, "status": "ready" if ready else "empty", "items": items}


KPI_WIDGET_BUILDERS: dict[str, Callable[[Sequence[Record], ChartConfig], dict[str, Any]]] = {
    "kpi": build_kpi_widget,
    "card": build_card_widget,
    "kpi_group": build_kpi_group_widget,
}
KPI_KINDS: tuple[str, ...] = tuple(KPI_WIDGET_BUILDERS)
