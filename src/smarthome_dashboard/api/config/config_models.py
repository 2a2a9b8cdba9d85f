"""Dashboard configuration models."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

# Rollback deadline for unconfirmed device commands, in seconds
ROLLBACK_DEADLINE_S = 5.0
# Reconnect interval used by the transport's own retry policy, in seconds
RECONNECT_DELAY_S = 5.0
DEFAULT_GAS_THRESHOLD = 300.0


class Room(str, Enum):
    """Where a device is shown on the dashboard."""
    BEDROOM = "bedroom"
    LIVING = "living"
    OUTDOOR = "outdoor"
    EMERGENCY = "emergency"


class MqttConfig(BaseModel):
    """Message bus connection settings."""
    url: str = Field("ws://localhost:8083/mqtt", description="Broker URL (ws, wss, mqtt or mqtts)")
    username: Optional[str] = Field(None, description="Broker username")
    password: Optional[str] = Field(None, description="Broker password")
    client_id_prefix: str = Field("smarthome_web_", description="Prefix of the randomized client id")
    keepalive: int = Field(60, gt=0, description="Keepalive interval in seconds")
    connect_timeout_s: float = Field(5.0, gt=0, description="Handshake timeout in seconds")
    reconnect_delay_s: float = Field(RECONNECT_DELAY_S, gt=0, description="Fixed retry interval in seconds")


class BackendConfig(BaseModel):
    """REST backend settings."""
    api_url: str = Field("http://localhost:3001/api", description="REST API base URL")
    timeout_s: float = Field(10.0, gt=0, description="Request timeout in seconds")


class ControlConfig(BaseModel):
    """Optimistic control settings."""
    rollback_deadline_s: float = Field(
        ROLLBACK_DEADLINE_S, gt=0, description="Seconds to wait for device confirmation"
    )


class SensorConfig(BaseModel):
    """Sensor alerting settings."""
    gas_threshold: float = Field(
        DEFAULT_GAS_THRESHOLD, description="Gas level used when a reading carries no threshold"
    )


class DeviceConfig(BaseModel):
    """One controllable device in the catalog."""
    id: str = Field(..., description="Device identifier")
    name: str = Field(..., description="Display name")
    room: Room = Field(..., description="Dashboard section")
    emergency: bool = Field(False, description="Shown in the emergency panel")
    state_topic: str = Field(..., description="Topic carrying authoritative state")
    control_topic: str = Field(..., description="Topic commands are published on")
    control_extra: Dict[str, Any] = Field(
        default_factory=dict, description="Payload fields identifying the device on a shared topic"
    )
    color_capable: bool = Field(False, description="Device accepts a #RRGGBB color")
    action_status: Dict[str, str] = Field(
        default_factory=dict, description="Speculative status per action, identity when absent"
    )

    def status_for(self, action: str) -> str:
        """Status the device is expected to report after ``action``."""
        return self.action_status.get(action, action)


def default_devices() -> List[DeviceConfig]:
    """Device catalog of the reference installation."""
    return [
        DeviceConfig(
            id="alarm", name="Alarm Siren", room=Room.EMERGENCY, emergency=True,
            state_topic="home/alert/state", control_topic="home/alert/control"
        ),
        DeviceConfig(
            id="warning_light", name="Warning Light", room=Room.EMERGENCY, emergency=True,
            state_topic="home/alert/state", control_topic="home/alert/control"
        ),
        DeviceConfig(
            id="fan", name="Fan", room=Room.EMERGENCY, emergency=True,
            state_topic="home/fan/state", control_topic="home/fan/control"
        ),
        DeviceConfig(
            id="pump", name="Pump", room=Room.EMERGENCY, emergency=True,
            state_topic="home/pump/state", control_topic="home/pump/control"
        ),
        DeviceConfig(
            id="neo_bedroom", name="NeoPixel LED", room=Room.BEDROOM,
            state_topic="home/light/state", control_topic="home/light/control",
            control_extra={"device": "neopixel"}, color_capable=True
        ),
        DeviceConfig(
            id="light_living", name="Living Room Light", room=Room.LIVING,
            state_topic="home/light/state", control_topic="home/light/control",
            control_extra={"device": "living"}
        ),
        DeviceConfig(
            id="light_outdoor", name="Outdoor Light", room=Room.OUTDOOR,
            state_topic="home/light/state", control_topic="home/light/control",
            control_extra={"device": "outside"}
        ),
        DeviceConfig(
            id="dryer_rack", name="Dryer Rack", room=Room.OUTDOOR,
            state_topic="home/dryer/state", control_topic="home/dryer/control",
            action_status={"on": "open", "off": "closed"}
        ),
    ]


class DashboardConfig(BaseModel):
    """Complete dashboard configuration."""
    mqtt: MqttConfig = Field(default_factory=MqttConfig)
    backend: BackendConfig = Field(default_factory=BackendConfig)
    control: ControlConfig = Field(default_factory=ControlConfig)
    sensors: SensorConfig = Field(default_factory=SensorConfig)
    devices: List[DeviceConfig] = Field(default_factory=default_devices)

    @field_validator("devices")
    @classmethod
    def validate_unique_ids(cls, devices: List[DeviceConfig]) -> List[DeviceConfig]:
        """Reject catalogs that list a device twice."""
        seen = set()
        for device in devices:
            if device.id in seen:
                raise ValueError(f"Duplicate device id: {device.id}")
            seen.add(device.id)
        return devices

    def get_device(self, device_id: str) -> Optional[DeviceConfig]:
        """Look up a catalog entry by id."""
        for device in self.devices:
            if device.id == device_id:
                return device
        return None

    def devices_by_room(self, room: Room) -> List[DeviceConfig]:
        """Non-emergency devices shown in ``room``."""
        return [d for d in self.devices if d.room == room and not d.emergency]

    def emergency_devices(self) -> List[DeviceConfig]:
        """Devices shown in the emergency panel."""
        return [d for d in self.devices if d.emergency]
