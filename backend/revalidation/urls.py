"""
URL routing for the revalidation API.
"""

from django.urls import path

from . import views

app_name = "revalidation"

urlpatterns = [
    path("logs/", views.RevalidationLogsView.as_view(), name="logs"),
    path("settings/", views.EndpointSettingsView.as_view(), name="settings"),
    path("revalidate/", views.ManualRevalidationView.as_view(), name="revalidate"),
    path("status/", views.RevalidationStatusView.as_view(), name="status"),
]
