"""Shared state package."""

from smarthome_dashboard.api.state.state_models import (
    DEVICE_IDS,
    DeviceStatus,
    DeviceState,
    SensorKind,
    SensorData,
    GasReading,
    FireReading,
    LightReading,
    RainReading,
    DryerReading,
    Alert,
    AlertCategory,
    AlertSeverity,
    StateSnapshot,
)
from smarthome_dashboard.api.state.state_store import DeviceStateStore

__all__ = [
    "DeviceStateStore",
    "DEVICE_IDS",
    "DeviceStatus",
    "DeviceState",
    "SensorKind",
    "SensorData",
    "GasReading",
    "FireReading",
    "LightReading",
    "RainReading",
    "DryerReading",
    "Alert",
    "AlertCategory",
    "AlertSeverity",
    "StateSnapshot",
]
