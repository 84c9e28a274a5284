"""Tests for advanced series decorations."""

from __future__ import annotations

import pytest

from core.charting.decorations import (
    emphasis_options,
    gradient_color,
    label_config,
    mark_area_options,
    mark_line_options,
    shadow_options,
)

pytestmark = pytest.mark.unit


@pytest.mark.parametrize("block", [None, {}, {"enabled": False}, "yes"])
def test_helpers_are_no_ops_when_not_configured(block: object) -> None:
    """Absent or disabled blocks add nothing to a series."""

    assert emphasis_options(block) == {}
    assert mark_line_options(block) == {}
    assert mark_area_options(block) == {}
    assert shadow_options(block) == {}
    assert gradient_color("#6366f1", block) == "#6366f1"


def test_label_config() -> None:
    """Hidden labels collapse to show False; visible labels read the params."""

    assert label_config(False, {}) == {"show": False}
    label = label_config(
        True,
        {"labelFontSize": 14, "labelColor": "#000000", "themeColors": {"labelColor": "#ffffff"}},
        {"labelPosition": "inside", "labelRotate": 45},
    )
    assert label == {"show": True, "position": "inside", "fontSize": 14, "color": "#ffffff", "rotate": 45}


def test_linear_and_radial_gradients() -> None:
    """Build two-stop gradients from the base color."""

    vertical = gradient_color("#ffffff", {"enabled": True})
    assert (vertical["type"], vertical["x2"], vertical["y2"]) == ("linear", 0, 1)
    assert [stop["color"] for stop in vertical["colorStops"]] == [
        "rgba(255, 255, 255, 1)",
        "rgba(255, 255, 255, 0.2)",
    ]

    horizontal = gradient_color("#ffffff", {"enabled": True, "direction": "horizontal"})
    assert (horizontal["x2"], horizontal["y2"]) == (1, 0)

    radial = gradient_color("#ffffff", {"enabled": True, "type": "radial", "endOpacity": 0.5})
    assert radial["type"] == "radial"
    assert radial["colorStops"][1]["color"] == "rgba(255, 255, 255, 0.5)"


def test_mark_lines_combine_statistics_and_constants() -> None:
    """Known statistic types and constant lines become markLine data."""

    block = mark_line_options({"types": ["max", "median"], "lines": [{"value": 50, "label": "Target"}]})
    assert block["markLine"]["data"] == [{"type": "max", "name": "Max"}, {"yAxis": 50, "name": "Target"}]
    assert mark_line_options({"enabled": True})["markLine"]["data"] == [{"type": "average", "name": "Average"}]


def test_mark_area_bands() -> None:
    """Each area becomes a start/end pair on its axis."""

    block = mark_area_options({"areas": [{"from": 0, "to": 10, "label": "Low", "axis": "y"}, "bad"]})
    assert block["markArea"]["data"] == [[{"name": "Low", "yAxis": 0}, {"yAxis": 10}]]
    assert block["markArea"]["itemStyle"]["color"] == "rgba(99, 102, 241, 0.15)"


def test_emphasis_and_shadow() -> None:
    """Enabled blocks fill in their defaults."""

    assert emphasis_options({"focus": "self", "shadowBlur": 8}) == {
        "emphasis": {
            "focus": "self",
            "blurScope": "coordinateSystem",
            "scale": True,
            "itemStyle": {"shadowBlur": 8, "shadowColor": "rgba(0, 0, 0, 0.3)"},
        }
    }
    assert shadow_options({"blur": 4}) == {
        "shadowBlur": 4,
        "shadowColor": "rgba(0, 0, 0, 0.25)",
        "shadowOffsetX": 0,
        "shadowOffsetY": 2,
    }


@pytest.mark.parametrize(
    ("start", "end", "expected"),
    [
        ("abc", None, ("rgba(255, 255, 255, 1)", "rgba(255, 255, 255, 0.2)")),
        (5, -1, ("rgba(255, 255, 255, 1)", "rgba(255, 255, 255, 0)")),
        ("0.5", "nan", ("rgba(255, 255, 255, 0.5)", "rgba(255, 255, 255, 0.2)")),
    ],
)
def test_gradient_opacities_tolerate_junk(start: object, end: object, expected: tuple[str, str]) -> None:
    """Unparseable opacities take the defaults and numeric ones are clamped to 0..1."""

    gradient = gradient_color("#ffffff", {"enabled": True, "startOpacity": start, "endOpacity": end})

    assert tuple(stop["color"] for stop in gradient["colorStops"]) == expected


def test_mark_area_opacity_tolerates_junk() -> None:
    """A non-numeric band opacity falls back to the default instead of raising."""

    areas = [{"from": 0, "to": 1}]

    assert mark_area_options({"areas": areas, "opacity": "x"})["markArea"]["itemStyle"]["color"] == (
        "rgba(99, 102, 241, 0.15)"
    )
    assert mark_area_options({"areas": areas, "opacity": 3})["markArea"]["itemStyle"]["color"] == (
        "rgba(99, 102, 241, 1)"
    )
