"""Tests for series color selection."""

from __future__ import annotations

import pytest

from analysis.dto import MetricStyle
from core.charting.palette import DEFAULT_CHART_COLORS, color_for_index, colors_for_labels, hex_to_rgba, series_color

pytestmark = pytest.mark.unit


def test_palette_wraps_around() -> None:
    """Indices past the palette length start over."""

    assert color_for_index(0) == "#6366f1"
    assert color_for_index(len(DEFAULT_CHART_COLORS)) == "#6366f1"
    assert color_for_index(11) == DEFAULT_CHART_COLORS[1]
    assert colors_for_labels(["a", "b"]) == DEFAULT_CHART_COLORS[:2]


def test_series_color_prefers_explicit_style() -> None:
    """Use the style color, then the first style color, then the palette."""

    assert series_color(3, MetricStyle(color="#123456")) == "#123456"
    assert series_color(3, MetricStyle(colors=("#abcdef", "#000000"))) == "#abcdef"
    assert series_color(3, None) == DEFAULT_CHART_COLORS[3]


def test_hex_to_rgba() -> None:
    """Expand short hex, clamp opacity and pass non-hex colors through."""

    assert hex_to_rgba("#6366f1", 0.2) == "rgba(99, 102, 241, 0.2)"
    assert hex_to_rgba("#fff", 2) == "rgba(255, 255, 255, 1)"
    assert hex_to_rgba("red", 0.5) == "red"
    assert hex_to_rgba("#zzzzzz", 0.5) == "#zzzzzz"
