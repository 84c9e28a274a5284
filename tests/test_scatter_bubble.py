"""Tests for scatter and bubble point conversion and scales."""

from __future__ import annotations

import pytest

from analysis.bubble import (
    calculate_bubble_scales,
    calculate_symbol_size,
    convert_to_bubble_data,
    validate_bubble_configuration,
)
from analysis.dto import BubblePoint, Filter, Metric, ScaleBounds, ScatterPoint
from analysis.scatter import (
    DEFAULT_SCALES,
    calculate_scatter_scales,
    calculate_xy_scales,
    convert_to_scatter_data,
    generate_dataset_label,
    validate_scatter_configuration,
)

pytestmark = pytest.mark.unit


def test_scales_pad_each_axis_by_ten_percent() -> None:
    """A [0, 100] domain becomes [-10, 110]."""

    bounds = calculate_xy_scales([ScatterPoint(x=0, y=0), ScatterPoint(x=100, y=100)])
    assert bounds == ScaleBounds(x_min=-10.0, x_max=110.0, y_min=-10.0, y_max=110.0)


def test_empty_points_use_default_scales() -> None:
    """No points means fixed [0, 100] axes."""

    assert calculate_xy_scales([]) == DEFAULT_SCALES
    assert calculate_scatter_scales([], [Metric(x="a", y="b")]) == DEFAULT_SCALES


def test_validate_scatter_configuration() -> None:
    """Require at least one dataset and both axis fields on each."""

    assert validate_scatter_configuration([]).errors == ("At least one dataset must be configured",)
    result = validate_scatter_configuration([Metric(x="a", y="b"), Metric(x="a")])
    assert result.errors == ("Dataset 2: Y field must be specified",)


def test_scatter_points_apply_global_then_dataset_filters() -> None:
    """Filtered-out rows never become points; bad coordinates become 0.

    Rows without the filtered field never satisfy a filter, not even `not_equals`.
    """

    records = [
        {"a": 1, "b": 2, "g": "keep", "flag": "yes"},
        {"a": "bad", "b": 4, "g": "keep", "flag": "yes"},
        {"a": 9, "b": 9, "g": "keep"},
        {"a": 5, "b": 6, "g": "drop"},
        {"a": 7, "b": 8, "g": "keep", "flag": "no"},
    ]
    metric = Metric(x="a", y="b", dataset_filters=(Filter(field="flag", operator="not_equals", value="no"),))
    points = convert_to_scatter_data(records, metric, [Filter(field="g", value="keep")])

    assert points == (ScatterPoint(x=1.0, y=2.0), ScatterPoint(x=0.0, y=4.0))
    assert convert_to_scatter_data(records, Metric(x="a")) == ()


def test_generate_dataset_label() -> None:
    """Prefer the label, then the axis fields, then the default."""

    assert generate_dataset_label(Metric(label="Mine", x="a")) == "Mine"
    assert generate_dataset_label(Metric(x="a", y="b", r="c")) == "X: a, Y: b, R: c"
    assert generate_dataset_label(Metric()) == "Dataset"


def test_bubble_radius_rules() -> None:
    """Zero or invalid radii read 1; negative radii are dropped."""

    records = [
        {"x": 1, "y": 1, "r": 0},
        {"x": 2, "y": 2, "r": "big"},
        {"x": 3, "y": 3, "r": -4},
        {"x": 4, "y": 4, "r": 8},
    ]
    points = convert_to_bubble_data(records, Metric(x="x", y="y", r="r"))

    assert points == (
        BubblePoint(x=1.0, y=1.0, r=1.0),
        BubblePoint(x=2.0, y=2.0, r=1.0),
        BubblePoint(x=4.0, y=4.0, r=8.0),
    )


def test_bubble_scales_track_the_radius_range() -> None:
    """Report the observed radius range next to the padded axes."""

    records = [{"x": 0, "y": 0, "r": 2}, {"x": 10, "y": 20, "r": 6}]
    bounds = calculate_bubble_scales(records, [Metric(x="x", y="y", r="r")])

    assert (bounds.x_min, bounds.x_max) == (-1.0, 11.0)
    assert (bounds.y_min, bounds.y_max) == (-2.0, 22.0)
    assert (bounds.r_min, bounds.r_max) == (2.0, 6.0)


def test_symbol_size_interpolates_and_clamps() -> None:
    """Map radii linearly onto [10, 50] pixels."""

    assert calculate_symbol_size(0, 10) == 10
    assert calculate_symbol_size(5, 10) == 30
    assert calculate_symbol_size(10, 10) == 50
    assert calculate_symbol_size(20, 10) == 50
    assert calculate_symbol_size(1, 0) == 50


def test_validate_bubble_configuration_requires_radius() -> None:
    """Bubble datasets need an r field."""

    result = validate_bubble_configuration([Metric(x="a", y="b")])
    assert result.errors == ("Dataset 1: R field (radius) must be specified",)
