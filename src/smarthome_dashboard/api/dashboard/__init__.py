"""Dashboard service and HTTP surface."""

from smarthome_dashboard.api.dashboard.dashboard_service import DashboardService
from smarthome_dashboard.api.dashboard.dashboard_models import ControlRequest, ControlResponse, UnreadResponse
from smarthome_dashboard.api.dashboard.dashboard_app import create_app, API_PREFIX

__all__ = [
    "DashboardService",
    "ControlRequest",
    "ControlResponse",
    "UnreadResponse",
    "create_app",
    "API_PREFIX",
]
