"""URL configuration for core views."""

from __future__ import annotations

from django.urls import path

from core import views

app_name = "core"

urlpatterns = [
    path("api/widgets/compile/", views.compile_widget, name="compile_widget"),
    path("api/widgets/table/", views.table_widget, name="table_widget"),
    path("api/widgets/kpi/", views.kpi_widget, name="kpi_widget"),
    path("api/dashboards/preview/", views.dashboard_preview, name="dashboard_preview"),
]
