"""JSON endpoints for compiling chart, table and KPI widgets and dashboards."""

from __future__ import annotations

import json
import logging
from typing import Any

from django.conf import settings
from django.forms import Form
from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from core.charting.kpi import KPI_WIDGET_BUILDERS
from core.charting.payloads import decode_chart_request
from core.charting.service import ChartRequest, compile_chart, compile_charts
from core.charting.tables import build_table_widget
from core.forms import KPIWidgetForm, TablePageForm, WidgetCompileForm

logger = logging.getLogger(__name__)


def _json_body(request: HttpRequest) -> dict[str, Any]:
    """Parse the request body as a JSON object.

    Raises:
        ValueError: When the body is not valid JSON or not an object.
    """

    try:
        payload = json.loads(request.body or b"{}")
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValueError("Request body must be valid JSON") from exc
    if not isinstance(payload, dict):
        raise ValueError("Request body must be a JSON object")
    return payload


def _error(message: str, *, status: int, **extra: Any) -> JsonResponse:
    return JsonResponse({"ok": False, "error": message, **extra}, status=status)


def _form_error(form: Form) -> JsonResponse:
    """Return a 400 response carrying the first form error message."""

    first = next(iter(form.errors.values()))
    logger.warning("Rejected widget payload: %s", first[0])
    return _error(str(first[0]), status=400, fields=form.errors.get_json_data())


def _too_many_records(count: int) -> JsonResponse | None:
    limit = settings.WIDGET_MAX_RECORDS
    if count <= limit:
        return None
    logger.warning("Rejected widget payload with %d records (limit %d)", count, limit)
    return _error(f"Too many records: {count} (limit {limit})", status=413)


@csrf_exempt
@require_POST
def compile_widget(request: HttpRequest) -> JsonResponse:
    """Compile one chart widget: `{type, data, config, overrides}`."""

    try:
        body = _json_body(request)
    except ValueError as exc:
        logger.warning("Rejected widget payload: %s", exc)
        return _error(str(exc), status=400)

    form = WidgetCompileForm(data=body)
    if not form.is_valid():
        return _form_error(form)
    chart_request: ChartRequest = form.cleaned_data["request"]
    rejected = _too_many_records(len(chart_request.records))
    if rejected is not None:
        return rejected

    compiled = compile_chart(chart_request.kind, chart_request.records, chart_request.config, chart_request.overrides)
    return JsonResponse({"ok": True, "chart": compiled.as_json()})


@csrf_exempt
@require_POST
def table_widget(request: HttpRequest) -> JsonResponse:
    """Return one searched, sorted and paginated table page."""

    try:
        body = _json_body(request)
    except ValueError as exc:
        logger.warning("Rejected table payload: %s", exc)
        return _error(str(exc), status=400)

    form = TablePageForm(data=body)
    if not form.is_valid():
        return _form_error(form)
    cleaned = form.cleaned_data
    rejected = _too_many_records(len(cleaned["records"]))
    if rejected is not None:
        return rejected

    table = build_table_widget(
        cleaned["records"],
        cleaned["chart_config"],
        page=cleaned.get("page") or 0,
        page_size=cleaned.get("pageSize"),
        search=cleaned.get("search") or "",
        sort_key=cleaned.get("sortKey") or None,
        sort_direction=cleaned.get("sortDirection") or "asc",
        default_page_size=settings.WIDGET_TABLE_PAGE_SIZE,
    )
    return JsonResponse({"ok": True, "table": table})


@csrf_exempt
@require_POST
def kpi_widget(request: HttpRequest) -> JsonResponse:
    """Compute a KPI tile, summary card or KPI group: `{type, data, config}`."""

    try:
        body = _json_body(request)
    except ValueError as exc:
        logger.warning("Rejected KPI payload: %s", exc)
        return _error(str(exc), status=400)

    form = KPIWidgetForm(data=body)
    if not form.is_valid():
        return _form_error(form)
    cleaned = form.cleaned_data
    rejected = _too_many_records(len(cleaned["records"]))
    if rejected is not None:
        return rejected

    widget = KPI_WIDGET_BUILDERS[cleaned["type"]](cleaned["records"], cleaned["chart_config"])
    return JsonResponse({"ok": True, "widget": widget})


@csrf_exempt
@require_POST
def dashboard_preview(request: HttpRequest) -> JsonResponse:
    """Compile every widget of a dashboard: `{widgets: [...], data?}`.

    Widgets without their own `data` use the shared top-level `data`.
    Identical widgets are compiled once per request.
    """

    try:
        body = _json_body(request)
        widgets = body.get("widgets")
        if not isinstance(widgets, list):
            raise ValueError("'widgets' must be a list")
        shared = body.get("data")
        requests: list[ChartRequest] = []
        for index, widget in enumerate(widgets):
            if not isinstance(widget, dict):
                raise ValueError(f"widgets[{index}] must be an object")
            try:
                requests.append(decode_chart_request(widget, records=widget.get("data", shared)))
            except ValueError as exc:
                raise ValueError(f"widgets[{index}]: {exc}") from exc
    except ValueError as exc:
        logger.warning("Rejected dashboard payload: %s", exc)
        return _error(str(exc), status=400)

    rejected = _too_many_records(sum(len(item.records) for item in requests))
    if rejected is not None:
        return rejected

    compiled = compile_charts(requests)
    return JsonResponse({"ok": True, "charts": [chart.as_json() for chart in compiled]})
