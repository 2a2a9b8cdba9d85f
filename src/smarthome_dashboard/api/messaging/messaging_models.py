"""Message bus payloads and the domain events decoded from them."""

from typing import Any, Dict, NamedTuple, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from smarthome_dashboard.api.notifications.notification_models import (
    EnrollmentNotice,
    RfidLostNotice,
    ToastLevel,
)
from smarthome_dashboard.api.state.state_models import (
    Alert,
    DeviceStatus,
    DryerReading,
    FireReading,
    GasReading,
    LightReading,
    RainReading,
    SensorKind,
)


class BusMessage(NamedTuple):
    """Raw message as delivered by the transport."""
    topic: str
    payload: bytes


class Payload(BaseModel):
    """Base for inbound payloads; unknown fields are ignored."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class LivenessPayload(Payload):
    online: Optional[bool] = None

    @property
    def is_online(self) -> bool:
        """Devices are online unless they say otherwise."""
        return True if self.online is None else self.online


class DeviceStatePayload(LivenessPayload):
    status: DeviceStatus


class AlertStatePayload(LivenessPayload):
    active: bool


class LightStatePayload(LivenessPayload):
    living: Optional[str] = None
    outside: Optional[str] = None
    neopixel: Optional[str] = None
    neopixel_color: Optional[str] = Field(None, alias="neopixelColor")
    bedroom_color: Optional[int] = Field(None, alias="bedroomColor")


class DryerStatePayload(LivenessPayload):
    out: Optional[bool] = None


class DoorStatePayload(Payload):
    abnormal: bool = False


class GasPayload(Payload):
    level: float
    threshold: Optional[float] = None


class FirePayload(Payload):
    detected: bool
    value: Optional[float] = None
    location: Optional[str] = None


class LightSensorPayload(Payload):
    bright: bool


class RainPayload(Payload):
    raining: bool


class AlertNoticePayload(Payload):
    type: str
    message: str = ""
    level: str = "WARNING"


# Domain events

class Event(BaseModel):
    model_config = ConfigDict(frozen=True)


class DeviceReport(Event):
    """Authoritative device state. A missing color keeps the stored one."""
    device_id: str
    status: DeviceStatus
    online: bool = True
    mode: Optional[str] = None
    color: Optional[str] = None


class SensorReport(Event):
    kind: SensorKind
    reading: Union[GasReading, FireReading, LightReading, RainReading, DryerReading]


class ToastRequest(Event):
    title: str
    message: str = ""
    level: ToastLevel = ToastLevel.ERROR


class AlertRaised(Event):
    alert: Alert


class RfidLost(Event):
    notice: RfidLostNotice


class EnrollmentResult(Event):
    notice: EnrollmentNotice


class Heartbeat(Event):
    data: Dict[str, Any] = Field(default_factory=dict)


DecodedEvent = Union[
    DeviceReport,
    SensorReport,
    ToastRequest,
    AlertRaised,
    RfidLost,
    EnrollmentResult,
    Heartbeat,
]
