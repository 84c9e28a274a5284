"""Tests for KPI values, trends, formatting and the KPI widget payloads."""

from __future__ import annotations

import pytest

from analysis.dto import ChartConfig, Filter, Metric, MetricStyle
from analysis.kpi import (
    KPIParams,
    apply_kpi_filters,
    calculate_kpi_trend,
    calculate_kpi_value,
    format_currency,
    format_date,
    format_number,
    format_value,
    parse_kpi_params,
    trend_color,
    validate_card_config,
    validate_kpi_config,
    validate_kpi_group_config,
)
from core.charting.kpi import build_card_widget, build_kpi_group_widget, build_kpi_widget
from core.charting.tables import NO_DATA_WARNING

pytestmark = pytest.mark.unit


def test_kpi_filters_apply_global_then_metric_filters(sales_records) -> None:
    """Only the first metric's own filters narrow the rows further."""

    config = ChartConfig(
        metrics=(Metric(field="sales", dataset_filters=(Filter(field="month", value="Feb"),)),),
        global_filters=(Filter(field="region", value="north"),),
    )

    assert [row["sales"] for row in apply_kpi_filters(sales_records, config)] == [5]
    assert calculate_kpi_value(config.metrics[0], sales_records) == 35.0
    assert calculate_kpi_value(Metric(field="units", agg="avg"), sales_records) == 2.0
    assert calculate_kpi_value(None, sales_records) == 0.0
    assert calculate_kpi_value(Metric(field="sales"), []) == 0.0


def test_trend_compares_the_last_two_rows(sales_records) -> None:
    """Report direction, difference and percentage against the previous row."""

    metric = Metric(field="sales")

    trend = calculate_kpi_trend(metric, sales_records)
    assert (trend.direction, trend.value, trend.percent) == ("down", -15.0, -75.0)

    rising = calculate_kpi_trend(metric, [{"sales": 100}, {"sales": 150}])
    assert (rising.direction, rising.value, rising.percent) == ("up", 50.0, 50.0)

    assert calculate_kpi_trend(metric, [{"sales": 0}, {"sales": 5}]).percent == 0.0
    assert calculate_kpi_trend(metric, [{"sales": 4}, {"sales": 4}]).direction is None
    assert calculate_kpi_trend(metric, sales_records[:1]).direction is None
    assert calculate_kpi_trend(metric, sales_records, show_trend=False).direction is None


def test_trend_color_strengthens_past_the_threshold() -> None:
    """The strong color applies once the absolute percentage reaches the threshold."""

    assert trend_color(None, 80.0, 10.0) == ""
    assert trend_color("up", 5.0) == "#22c55e"
    assert trend_color("up", 5.0, 10.0) == "#22c55e"
    assert trend_color("up", 10.0, 10.0) == "#15803d"
    assert trend_color("down", -75.0, 50.0) == "#b91c1c"
    assert trend_color("down", -75.0) == "#ef4444"


def test_number_and_currency_formatting() -> None:
    """Group thousands and place the currency symbol or code."""

    assert format_number(1234.567, 2) == "1,234.57"
    assert format_number(1234.5) == "1,234.5"
    assert format_number(1000.0) == "1,000"
    assert format_currency(1234.56) == "$1,234.56"
    assert format_currency(1234.56, "eur") == "EUR 1,234.56"
    assert format_currency(-5, "USD", 0) == "-$5"
    assert format_currency(-0.001) == "$0.00"


def test_format_value_dispatches_by_format() -> None:
    """Numeric formats need numbers; anything else is shown as text."""

    assert format_value(None, "number") == "-"
    assert format_value(None, "number", null_value="n/a") == "n/a"
    assert format_value(0.1234, "percent") == "12.3%"
    assert format_value(0.5, "percent", decimals=0) == "50%"
    assert format_value(1234.56, "currency", currency="GBP") == "£1,234.56"
    assert format_value("abc", "number") == "abc"
    assert format_value("2024-01-15", "date") == "Jan 15, 2024"
    assert format_date("2024-01-15T14:30:00") == "Jan 15, 2024"
    assert format_date("invalid date") == "invalid date"


def test_parse_kpi_params_ignores_unusable_values() -> None:
    """Defaults apply when keys are missing or of the wrong type."""

    assert parse_kpi_params({}) == KPIParams()

    params = parse_kpi_params(
        {
            "format": "currency",
            "currency": "eur",
            "decimals": "0",
            "trendThreshold": -10,
            "showTrend": False,
            "showPercent": True,
            "trendType": "",
        }
    )
    assert params == KPIParams(
        show_trend=False,
        format="currency",
        currency="EUR",
        decimals=0,
        show_percent=True,
        threshold=10.0,
    )

    junk = parse_kpi_params({"format": "gauge", "decimals": "abc", "trendThreshold": True, "showPercent": "yes"})
    assert (junk.format, junk.decimals, junk.threshold, junk.show_percent) == ("number", 2, 0.0, False)


def test_validation_rules_per_widget() -> None:
    """KPIs and groups need metrics; cards only warn without one."""

    missing_field = ChartConfig(metrics=(Metric(field=" "),))

    assert validate_kpi_config(ChartConfig()).errors == ("At least one metric is required",)
    assert validate_kpi_config(missing_field).errors == ("Metric field is required",)

    card = validate_card_config(ChartConfig())
    assert card.is_valid
    assert card.warnings == ("No metrics configured for card widget",)
    assert validate_card_config(missing_field).errors == ("Metric field is required",)

    crowded = ChartConfig(metrics=tuple(Metric(field=f"m{index}") for index in range(13)))
    assert validate_kpi_group_config(crowded).warnings == ("Large number of KPIs may affect readability",)
    assert not validate_kpi_group_config(ChartConfig()).is_valid


def test_kpi_widget_ready_payload(sales_records) -> None:
    """Aggregate, format and attach the trend to one KPI tile."""

    config = ChartConfig(
        metrics=(Metric(field="sales", label="Revenue"),),
        widget_params={"format": "currency", "decimals": 0, "trendThreshold": 50},
    )

    widget = build_kpi_widget(sales_records, config)

    assert widget["status"] == "ready"
    assert (widget["title"], widget["value"], widget["formattedValue"]) == ("Revenue", 35.0, "$35")
    assert (widget["trend"], widget["trendValue"], widget["trendPercent"]) == ("down", -15.0, -75.0)
    assert widget["trendColor"] == "#b91c1c"
    assert widget["valueColor"] == "#2563eb"
    assert (widget["errors"], widget["warnings"]) == ([], [])


def test_kpi_widget_empty_and_invalid(sales_records) -> None:
    """Filtered-out data is empty with a zero value; a missing metric is invalid."""

    empty = build_kpi_widget(
        sales_records,
        ChartConfig(metrics=(Metric(field="sales"),), global_filters=(Filter(field="region", value="west"),)),
    )
    assert empty["status"] == "empty"
    assert (empty["value"], empty["formattedValue"], empty["trend"]) == (0.0, "0.00", None)
    assert empty["warnings"] == [NO_DATA_WARNING]

    invalid = build_kpi_widget(sales_records, ChartConfig())
    assert invalid["status"] == "invalid"
    assert (invalid["value"], invalid["formattedValue"]) == (None, "-")
    assert invalid["errors"] == ["At least one metric is required"]


def test_card_widget_defaults(sales_records) -> None:
    """Cards without a metric still render a zero value with default styling."""

    card = build_card_widget(sales_records, ChartConfig(widget_params={"description": "All regions"}))

    assert card["status"] == "ready"
    assert (card["title"], card["value"], card["formattedValue"]) == ("Summary", 0.0, "0.00")
    assert (card["icon"], card["showIcon"], card["iconColor"]) == ("chart-bar", True, "#6366f1")
    assert card["description"] == "All regions"
    assert card["descriptionColor"] == "#6b7280"
    assert card["warnings"] == ["No metrics configured for card widget"]


def test_kpi_group_builds_one_tile_per_metric(sales_records) -> None:
    """Tiles take the metric label and style color; columns come from params."""

    config = ChartConfig(
        metrics=(Metric(field="sales", label="Sales"), Metric(field="units", agg="avg")),
        metric_styles=(MetricStyle(color="#123456"),),
        widget_params={"columns": "3", "title": "Overview", "decimals": 1},
    )

    group = build_kpi_group_widget(sales_records, config)

    assert (group["status"], group["title"], group["columns"]) == ("ready", "Overview", 3)
    items = group["items"]
    assert [item["title"] for item in items] == ["Sales", "units"]
    assert [item["formattedValue"] for item in items] == ["35.0", "2.0"]
    assert [item["valueColor"] for item in items] == ["#123456", "#2563eb"]


def test_kpi_group_theme_colors_and_invalid_config(sales_records) -> None:
    """A theme text color wins over style colors; a group without metrics is invalid."""

    themed = build_kpi_group_widget(
        sales_records,
        ChartConfig(
            metrics=(Metric(field="sales"),),
            metric_styles=(MetricStyle(color="#123456"),),
            widget_params={"columns": 0, "themeColors": {"textColor": "#ffffff", "labelColor": "#eeeeee"}},
        ),
    )
    assert themed["columns"] == 2
    assert themed["title"] == "KPI Group"
    assert (themed["items"][0]["valueColor"], themed["items"][0]["titleColor"]) == ("#ffffff", "#eeeeee")

    invalid = build_kpi_group_widget(sales_records, ChartConfig())
    assert (invalid["status"], invalid["items"]) == ("invalid", [])
    assert invalid["errors"] == ["At least one metric is required"]
