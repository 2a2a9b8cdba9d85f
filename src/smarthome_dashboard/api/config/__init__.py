"""Configuration package."""

from smarthome_dashboard.api.config.config_models import (
    DashboardConfig,
    MqttConfig,
    BackendConfig,
    ControlConfig,
    SensorConfig,
    DeviceConfig,
    Room,
    ROLLBACK_DEADLINE_S,
)
from smarthome_dashboard.api.config.config_service import ConfigService

__all__ = [
    "ConfigService",
    "DashboardConfig",
    "MqttConfig",
    "BackendConfig",
    "ControlConfig",
    "SensorConfig",
    "DeviceConfig",
    "Room",
    "ROLLBACK_DEADLINE_S",
]
