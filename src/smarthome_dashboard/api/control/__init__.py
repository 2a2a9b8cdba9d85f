"""Device control package."""

from smarthome_dashboard.api.control.control_models import ControlAction, PendingRollback, Publisher
from smarthome_dashboard.api.control.control_engine import ControlEngine

__all__ = [
    "ControlEngine",
    "ControlAction",
    "PendingRollback",
    "Publisher",
]
