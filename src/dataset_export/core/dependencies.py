"""FastAPI dependency injection for the wired export services."""

from fastapi import Request

from dataset_export.core.config import Settings
from dataset_export.services.export_management import ExportManagement


def get_export_management(request: Request) -> ExportManagement:
    """Return the export management service built during app startup."""
    return request.app.state.components.management


def get_app_settings(request: Request) -> Settings:
    """Return the settings the running app was built with."""
    return request.app.state.settings
