"""Tests for decoding camelCase widget payloads."""

from __future__ import annotations

import pytest

from analysis.dto import BucketSpec, ChartConfig, Filter, RangeSpec
from core.charting.payloads import decode_chart_config, decode_chart_request, decode_records

pytestmark = pytest.mark.unit


def test_decode_full_configuration() -> None:
    """Map camelCase keys onto the configuration dataclasses."""

    config = decode_chart_config(
        {
            "metrics": [{"field": "sales", "agg": "avg", "datasetFilters": [{"field": "region", "value": "north"}]}],
            "buckets": [
                {"field": "price", "type": "range", "minDocCount": 2, "ranges": [{"from": 0, "to": "10", "label": "Low"}]},
                {"field": "region", "type": "split_series", "splitType": "series", "size": "3"},
            ],
            "metricStyles": [{"backgroundColor": "#ff0000", "borderColor": ["#000000"], "fill": "yes"}],
            "globalFilters": [{"field": "year", "operator": "greater_than", "value": 2020}],
            "widgetParams": {"title": "Sales"},
            "echarts": {"gradient": {"enabled": True}},
        }
    )

    assert config.metrics[0].agg == "avg"
    assert config.metrics[0].dataset_filters == (Filter(field="region", value="north"),)
    assert config.buckets[0].ranges == (RangeSpec(from_value=0.0, to_value=10.0, label="Low"),)
    assert config.buckets[0].min_doc_count == 2
    assert config.buckets[0].size is None
    assert config.buckets[1] == BucketSpec(field="region", type="split_series", size=3, split_type="series")
    assert config.metric_styles[0].colors == ("#ff0000",)
    assert config.metric_styles[0].border_color == "#000000"
    assert config.metric_styles[0].fill is True
    assert config.global_filters[0].operator == "greater_than"
    assert config.widget_params == {"title": "Sales"}
    assert config.echarts == {"gradient": {"enabled": True}}


def test_none_decodes_to_empty_configuration() -> None:
    """A missing config is an empty, not a broken, configuration."""

    assert decode_chart_config(None) == ChartConfig()


def test_non_finite_numbers_are_ignored() -> None:
    """NaN and infinite numbers never reach the bucket settings."""

    bucket = decode_chart_config({"buckets": [{"field": "p", "interval": "nan", "size": "inf"}]}).buckets[0]
    assert bucket.interval is None
    assert bucket.size is None


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ([], "Chart config must be an object"),
        ({"metrics": {}}, "'metrics' must be a list"),
        ({"buckets": ["terms"]}, "buckets[0] must be an object"),
        ({"widgetParams": [1]}, "'widgetParams' must be an object"),
        ({"echarts": "dark"}, "'echarts' must be an object"),
        ({"metrics": [{"fields": "a"}]}, "Metric 'fields' must be a list"),
    ],
)
def test_structural_errors_raise_value_error(payload: object, message: str) -> None:
    """Report the offending section by name."""

    with pytest.raises(ValueError, match=message.replace("[", r"\[").replace("]", r"\]")):
        decode_chart_config(payload)  # type: ignore[arg-type]


def test_decode_records() -> None:
    """Records must be a list of objects."""

    assert decode_records([{"a": 1}]) == ({"a": 1},)
    assert decode_records(None) == ()
    with pytest.raises(ValueError, match="'data' must be a list of records"):
        decode_records({"a": 1})
    with pytest.raises(ValueError, match=r"data\[1\] must be an object"):
        decode_records([{"a": 1}, 2])


def test_decode_chart_request() -> None:
    """Explicit records replace the envelope's inline data."""

    request = decode_chart_request({"type": "bar", "data": [{"a": 1}], "overrides": {"title": "T"}})
    assert request.kind == "bar"
    assert request.records == ({"a": 1},)
    assert request.overrides == {"title": "T"}

    shared = decode_chart_request({"type": "pie", "data": [{"a": 1}]}, records=[{"b": 2}])
    assert shared.records == ({"b": 2},)

    with pytest.raises(ValueError, match="Widget 'type' is required"):
        decode_chart_request({"config": {}})
    with pytest.raises(ValueError, match="'overrides' must be an object"):
        decode_chart_request({"type": "bar", "overrides": [1]})
