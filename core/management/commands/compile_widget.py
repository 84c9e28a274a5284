"""Compile a widget definition file into its chart specification."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from core.charting.kpi import KPI_KINDS, KPI_WIDGET_BUILDERS
from core.charting.payloads import decode_chart_config, decode_chart_request, decode_records
from core.charting.service import compile_chart
from core.charting.tables import build_table_widget


def _load(path: str) -> Any:
    """Read a YAML or JSON file (JSON documents are valid YAML)."""

    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise CommandError(f"Cannot read {path}: {exc}") from exc
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise CommandError(f"Cannot parse {path}: {exc}") from exc


class Command(BaseCommand):
    """Compile a widget file (`type`, `config`, `overrides`, optional `data`)."""

    help = "Compile a YAML/JSON widget definition against a record file and print the result as JSON."

    def add_arguments(self, parser) -> None:
        """Add command arguments."""

        parser.add_argument("widget", help="Path to the widget definition (.yaml, .yml or .json).")
        parser.add_argument(
            "--data",
            default=None,
            help="Path to a JSON/YAML list of records; overrides the widget's inline `data`.",
        )
        parser.add_argument(
            "--indent",
            type=int,
            default=None,
            help="Indent the JSON output by this many spaces.",
        )

    def handle(self, *args, **options) -> str | None:
        """Run the command."""

        widget = _load(options["widget"])
        if not isinstance(widget, dict):
            raise CommandError("Widget file must contain a mapping.")

        records: Any = widget.get("data") or []
        if options["data"]:
            records = _load(options["data"])
            if isinstance(records, dict):
                records = records.get("data")

        try:
            if widget.get("type") == "table":
                result = build_table_widget(
                    decode_records(records),
                    decode_chart_config(widget.get("config")),
                    default_page_size=settings.WIDGET_TABLE_PAGE_SIZE,
                )
            elif widget.get("type") in KPI_KINDS:
                result = KPI_WIDGET_BUILDERS[widget["type"]](
                    decode_records(records),
                    decode_chart_config(widget.get("config")),
                )
            else:
                request = decode_chart_request(widget, records=records)
                result = compile_chart(request.kind, request.records, request.config, request.overrides).as_json()
        except ValueError as exc:
            raise CommandError(f"Invalid widget payload: {exc}") from exc

        self.stdout.write(json.dumps(result, indent=options["indent"], default=str))
        return None
