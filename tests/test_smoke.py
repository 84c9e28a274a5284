"""Minimal smoke tests for the project scaffolding."""

from __future__ import annotations

import pytest

pytestmark = pytest.mark.unit


def test_analysis_package_imports() -> None:
    """Import the analysis package and verify the public entry points exist."""

    from analysis import apply_all_filters, process_buckets

    assert callable(apply_all_filters)
    assert callable(process_buckets)


def test_django_project_loads() -> None:
    """Import and initialize Django to verify settings are valid."""

    import os

    import django
    from django.conf import settings

    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "dashboardStudio.settings")
    django.setup()
    assert "core.apps.CoreConfig" in settings.INSTALLED_APPS


def test_settings_configure_no_template_engine() -> None:
    """The JSON-only API ships no templates, so no template engine is configured."""

    import os

    import django
    from django.conf import settings

    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "dashboardStudio.settings")
    django.setup()
    assert settings.TEMPLATES == []
