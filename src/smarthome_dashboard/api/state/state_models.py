"""Device and sensor state models."""

from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

# Every device the decoder and control engine know about
DEVICE_IDS = (
    "fan",
    "pump",
    "alarm",
    "warning_light",
    "light_living",
    "light_outdoor",
    "neo_bedroom",
    "dryer_rack",
)


class DeviceStatus(str, Enum):
    """Reported or requested device status."""
    ON = "on"
    OFF = "off"
    OPEN = "open"
    CLOSED = "closed"
    UNKNOWN = "unknown"


class DeviceState(BaseModel):
    """Last known state of one device."""
    model_config = ConfigDict(frozen=True)

    status: DeviceStatus = Field(DeviceStatus.UNKNOWN, description="Device status")
    online: bool = Field(False, description="Transport connectivity and last-known liveness")
    last_updated: Optional[datetime] = Field(None, description="Time of last authoritative or speculative write")
    color: Optional[str] = Field(None, description="#RRGGBB for color-capable devices")
    mode: Optional[str] = Field(None, description="Secondary controller mode, e.g. auto")


class GasReading(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: float
    threshold: float


class FireReading(BaseModel):
    model_config = ConfigDict(frozen=True)

    detected: bool
    value: Optional[float] = None


class LightReading(BaseModel):
    model_config = ConfigDict(frozen=True)

    bright: bool


class RainReading(BaseModel):
    model_config = ConfigDict(frozen=True)

    raining: bool


class DryerReading(BaseModel):
    model_config = ConfigDict(frozen=True)

    out: bool


class SensorKind(str, Enum):
    """Slots of the sensor record."""
    GAS = "gas"
    FIRE = "fire"
    LIGHT = "light"
    RAIN = "rain"
    DRYER = "dryer"


class SensorData(BaseModel):
    """Sparse sensor record; a missing slot means no reading yet."""
    model_config = ConfigDict(frozen=True)

    gas: Optional[GasReading] = None
    fire: Optional[FireReading] = None
    light: Optional[LightReading] = None
    rain: Optional[RainReading] = None
    dryer: Optional[DryerReading] = None


class AlertCategory(str, Enum):
    FIRE = "fire"
    GAS = "gas"
    DOOR = "door"


class AlertSeverity(str, Enum):
    INFO = "INFO"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


class UserRef(BaseModel):
    """User reference embedded in backend records."""
    id: int
    username: str


class Alert(BaseModel):
    """Alert raised by the backend; only the acknowledger changes after creation."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[int] = Field(None, description="Backend alert id")
    type: AlertCategory = Field(..., description="Alert category")
    level: AlertSeverity = Field(AlertSeverity.WARNING, description="Severity")
    message: str = Field("", description="Free-text message")
    created_at: Optional[datetime] = Field(None, alias="createdAt", description="Creation time")
    acknowledged_by: Optional[UserRef] = Field(None, alias="acknowledgedBy", description="Acknowledging user")


class StateSnapshot(BaseModel):
    """Read-only view of the store handed to subscribers."""
    model_config = ConfigDict(frozen=True)

    connected: bool
    devices: Dict[str, DeviceState]
    sensors: SensorData
