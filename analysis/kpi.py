"""Single-value widgets: KPI tiles, summary cards and KPI groups.

A KPI reduces the filtered records to one aggregated number, formats it for
display and, optionally, compares the last two rows to report a trend. The
functions here stay pure so the widget builders in `core.charting.kpi` only
assemble payloads.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

from .aggregations import aggregate_records
from .coercion import to_finite, to_text
from .dto import ChartConfig, Metric, Record, ValidationResult
from .filters import apply_all_filters

TrendDirection = Literal["up", "down"]

VALUE_FORMATS: tuple[str, ...] = ("number", "currency", "percent", "date", "text")
DEFAULT_CURRENCY = "USD"
NULL_VALUE = "-"
MAX_GROUP_METRICS = 12

DEFAULT_VALUE_COLOR = "#2563eb"
DEFAULT_ICON_COLOR = "#6366f1"
DEFAULT_DESCRIPTION_COLOR = "#6b7280"

# (regular, past-threshold) colors per direction
_TREND_COLORS: dict[str, tuple[str, str]] = {
    "up": ("#22c55e", "#15803d"),
    "down": ("#ef4444", "#b91c1c"),
}

_CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "GBP": "£",
    "JPY": "¥",
    "CNY": "CN¥",
    "KRW": "₩",
    "INR": "₹",
    "AUD": "A$",
    "CAD": "CA$",
}


@dataclass(frozen=True, slots=True)
class KPIParams:
    """Display options read from `widgetParams`.

    Attributes:
        show_trend: Compute and show the trend (default True).
        show_value: Show the value itself (default True).
        format: One of `VALUE_FORMATS`.
        currency: ISO currency code used by the `currency` format.
        decimals: Fraction digits for the value.
        trend_type: Presentation hint for the trend (`arrow` by default).
        show_percent: Show the trend as a percentage.
        threshold: Absolute trend percentage from which the strong trend
            color applies; 0 disables it.
    """

    show_trend: bool = True
    show_value: bool = True
    format: str = "number"
    currency: str = DEFAULT_CURRENCY
    decimals: int = 2
    trend_type: str = "arrow"
    show_percent: bool = False
    threshold: float = 0.0


@dataclass(frozen=True, slots=True)
class KPITrend:
    """Change between the last two filtered rows."""

    direction: TrendDirection | None = None
    value: float = 0.0
    percent: float = 0.0


def _text_param(params: Mapping[str, Any], key: str, default: str) -> str:
    value = params.get(key)
    return value if isinstance(value, str) and value else default


def _number_param(value: object, default: float) -> float:
    return default if isinstance(value, bool) else to_finite(value, default=default)


def parse_kpi_params(widget_params: Mapping[str, Any]) -> KPIParams:
    """Read KPI display options, ignoring values of the wrong type."""

    fmt = _text_param(widget_params, "format", "number")
    return KPIParams(
        show_trend=widget_params.get("showTrend") is not False,
        show_value=widget_params.get("showValue") is not False,
        format=fmt if fmt in VALUE_FORMATS else "number",
        currency=_text_param(widget_params, "currency", DEFAULT_CURRENCY).upper(),
        decimals=int(max(0, min(10, _number_param(widget_params.get("decimals"), 2)))),
        trend_type=_text_param(widget_params, "trendType", "arrow"),
        show_percent=widget_params.get("showPercent") is True,
        threshold=abs(_number_param(widget_params.get("trendThreshold"), 0.0)),
    )


def apply_kpi_filters(records: Sequence[Record], config: ChartConfig) -> tuple[Record, ...]:
    """Apply the global filters, then the first metric's own filters."""

    metric = config.metrics[0] if config.metrics else None
    return apply_all_filters(records, config.global_filters, metric.dataset_filters if metric else None)


def calculate_kpi_value(metric: Metric | None, records: Sequence[Record]) -> float:
    """Aggregate the metric over the records; 0 without a metric or rows."""

    if metric is None or not records:
        return 0.0
    return aggregate_records(records, metric.agg, metric.field)


def calculate_kpi_trend(metric: Metric | None, records: Sequence[Record], show_trend: bool = True) -> KPITrend:
    """Compare the metric field of the last row with the row before it.

    Args:
        metric: Metric whose field is compared.
        records: Filtered rows in their input order.
        show_trend: When False no trend is computed.

    Returns:
        The direction (None when unchanged), the absolute difference and the
        difference as a percentage of the previous value (0 when the previous
        value is 0). Non-numeric values count as 0.
    """

    if not show_trend or metric is None or len(records) < 2:
        return KPITrend()
    last = to_finite(records[-1].get(metric.field))
    previous = to_finite(records[-2].get(metric.field))
    diff = last - previous
    direction: TrendDirection | None = None
    if diff:
        direction = "up" if diff > 0 else "down"
    percent = diff / abs(previous) * 100 if previous else 0.0
    return KPITrend(direction=direction, value=diff, percent=percent)


def trend_color(direction: TrendDirection | None, percent: float, threshold: float = 0.0) -> str:
    """Return the trend color; stronger once `abs(percent)` reaches the threshold."""

    if direction is None:
        return ""
    regular, strong = _TREND_COLORS[direction]
    return strong if threshold and abs(percent) >= threshold else regular


def _grouped(value: float, decimals: int) -> str:
    return f"{value:,.{decimals}f}"


def format_number(value: float, decimals: int | None = None) -> str:
    """Format with thousands separators.

    Without explicit `decimals` at most two fraction digits are kept and
    trailing zeros are dropped.
    """

    if decimals is not None:
        return _grouped(value, decimals)
    text = _grouped(value, 2)
    return text.rstrip("0").rstrip(".") if "." in text else text


def format_currency(value: float, currency: str = DEFAULT_CURRENCY, decimals: int = 2) -> str:
    """Format as money: `$1,234.56` for symbol currencies, `EUR 1,234.56` otherwise."""

    code = currency.upper()
    amount = _grouped(abs(value), decimals)
    sign = "-" if value < 0 and float(amount.replace(",", "")) else ""
    symbol = _CURRENCY_SYMBOLS.get(code)
    if symbol is None:
        return f"{sign}{code} {amount}"
    return f"{sign}{symbol}{amount}"


def format_percent(value: float, decimals: int = 1) -> str:
    """Format a ratio as a percentage (0.1 is `10.0%`)."""

    return f"{value * 100:.{decimals}f}%"


def format_date(value: str) -> str:
    """Format an ISO date string as `Jan 15, 2024`; unparseable text is returned as-is."""

    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return value
    return f"{parsed:%b} {parsed.day}, {parsed.year}"


def format_value(
    value: Any,
    format_type: str = "text",
    *,
    decimals: int | None = None,
    currency: str = DEFAULT_CURRENCY,
    null_value: str = NULL_VALUE,
) -> str:
    """Format one value for display.

    Notes:
        - None becomes `null_value`.
        - Numeric formats only apply to finite numbers; anything else is
          shown as text.
        - `date` only applies to strings.
    """

    if value is None:
        return null_value
    is_number = isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)
    if format_type == "number" and is_number:
        return format_number(value, decimals)
    if format_type == "currency" and is_number:
        return format_currency(value, currency, 2 if decimals is None else decimals)
    if format_type == "percent" and is_number:
        return format_percent(value, 1 if decimals is None else decimals)
    if format_type == "date" and isinstance(value, str):
        return format_date(value)
    return to_text(value)


def kpi_title(config: ChartConfig, metric: Metric | None, default: str = "KPI") -> str:
    """Return `widgetParams.title`, else the metric label, else its field."""

    title = config.widget_params.get("title")
    if isinstance(title, str) and title:
        return title
    if metric is not None:
        return metric.label or metric.field or default
    return default


def widget_text(config: ChartConfig, key: str, default: str) -> str:
    """Return a non-empty string from `widgetParams` (a color, an icon name), else `default`."""

    return _text_param(config.widget_params, key, default)


def validate_kpi_config(config: ChartConfig) -> ValidationResult:
    """A KPI needs a first metric that names a field."""

    errors: list[str] = []
    if not config.metrics:
        errors.append("At least one metric is required")
    elif not config.metrics[0].field.strip():
        errors.append("Metric field is required")
    return ValidationResult(is_valid=not errors, errors=tuple(errors))


def validate_card_config(config: ChartConfig) -> ValidationResult:
    """Cards render without a metric (value 0) but a configured metric needs a field."""

    errors: list[str] = []
    warnings: list[str] = []
    if not config.metrics:
        warnings.append("No metrics configured for card widget")
    elif not config.metrics[0].field.strip():
        errors.append("Metric field is required")
    return ValidationResult(is_valid=not errors, errors=tuple(errors), warnings=tuple(warnings))


def validate_kpi_group_config(config: ChartConfig) -> ValidationResult:
    """A group needs at least one metric, each naming a field."""

    errors: list[str] = []
    warnings: list[str] = []
    if not config.metrics:
        errors.append("At least one metric is required")
    elif any(not metric.field.strip() for metric in config.metrics):
        errors.append("Metric field is required")
    if len(config.metrics) > MAX_GROUP_METRICS:
        warnings.append("Large number of KPIs may affect readability")
    return ValidationResult(is_valid=not errors, errors=tuple(errors), warnings=tuple(warnings))
