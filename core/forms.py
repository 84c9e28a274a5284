"""Forms validating the JSON envelopes of the widget endpoints.

The views parse the request body as JSON and bind the resulting object to one
of these forms; structural payload errors surface as form errors.
"""

from __future__ import annotations

from django import forms

from core.charting.kpi import KPI_KINDS
from core.charting.options import CHART_KINDS
from core.charting.payloads import decode_chart_config, decode_chart_request, decode_records


class WidgetCompileForm(forms.Form):
    """Validate a single chart compile request."""

    type = forms.ChoiceField(choices=[(kind, kind.title()) for kind in CHART_KINDS], label="Chart type")
    data = forms.JSONField(required=False, label="Records")
    config = forms.JSONField(required=False, label="Chart configuration")
    overrides = forms.JSONField(required=False, label="Widget parameter overrides")

    def clean(self) -> dict[str, object]:
        """Decode the envelope into a ChartRequest stored as `cleaned_data["request"]`."""

        cleaned = super().clean() or {}
        if self.errors:
            return cleaned
        try:
            cleaned["request"] = decode_chart_request(
                {
                    "type": cleaned.get("type"),
                    "config": cleaned.get("config"),
                    "overrides": cleaned.get("overrides"),
                },
                records=cleaned.get("data") or [],
            )
        except ValueError as exc:
            raise forms.ValidationError(str(exc)) from exc
        return cleaned


class TablePageForm(forms.Form):
    """Validate a table page request (search, sort and pagination controls)."""

    data = forms.JSONField(required=False, label="Records")
    config = forms.JSONField(required=False, label="Table configuration")
    page = forms.IntegerField(required=False, min_value=0, label="Page")
    pageSize = forms.IntegerField(required=False, min_value=1, max_value=1000, label="Page size")
    search = forms.CharField(required=False, max_length=200, label="Search")
    sortKey = forms.CharField(required=False, max_length=200, label="Sort column")
    sortDirection = forms.ChoiceField(
        required=False,
        choices=(("asc", "Ascending"), ("desc", "Descending")),
        label="Sort direction",
    )

    def clean(self) -> dict[str, object]:
        """Decode records and configuration into `records` and `chart_config`."""

        cleaned = super().clean() or {}
        if self.errors:
            return cleaned
        try:
            cleaned["records"] = decode_records(cleaned.get("data") or [])
            cleaned["chart_config"] = decode_chart_config(cleaned.get("config"))
        except ValueError as exc:
            raise forms.ValidationError(str(exc)) from exc
        return cleaned


class KPIWidgetForm(forms.Form):
    """Validate a KPI, card or KPI group request."""

    type = forms.ChoiceField(choices=[(kind, kind.replace("_", " ").title()) for kind in KPI_KINDS], label="Widget type")
    data = forms.JSONField(required=False, label="Records")
    config = forms.JSONField(required=False, label="Widget configuration")

    def clean(self) -> dict[str, object]:
        """Decode records and configuration into `records` and `chart_config`."""

        cleaned = super().clean() or {}
        if self.errors:
            return cleaned
        try:
            cleaned["records"] = decode_records(cleaned.get("data") or [])
            cleaned["chart_config"] = decode_chart_config(cleaned.get("config"))
        except ValueError as exc:
            raise forms.ValidationError(str(exc)) from exc
        return cleaned
