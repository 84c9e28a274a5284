"""App configuration for the widget compiler Django app."""

from __future__ import annotations

from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Configuration for the `core` app (widget endpoints and commands)."""

    name = "core"
    verbose_name = "Dashboard widgets"
