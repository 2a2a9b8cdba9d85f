"""REST backend response models."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from smarthome_dashboard.api.state.state_models import Alert, UserRef


class BackendModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    USER = "USER"


class User(BackendModel):
    id: int
    username: str
    role: UserRole = UserRole.USER


class LoginResponse(BackendModel):
    token: str
    user: User


class AlertPage(BackendModel):
    alerts: List[Alert] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    total_pages: int = Field(0, alias="totalPages")


class DoorEvent(BackendModel):
    """One door access log entry."""
    id: int
    event: str
    method: Optional[str] = None
    timestamp: datetime
    user: Optional[UserRef] = None


class DoorHistoryPage(BackendModel):
    logs: List[DoorEvent] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    total_pages: int = Field(0, alias="totalPages")


class RfidCard(BackendModel):
    id: int
    uid: str
    status: Optional[str] = None
    username: Optional[str] = None
    created_at: Optional[datetime] = Field(None, alias="createdAt")


class MyRfidCard(BackendModel):
    has_card: bool = Field(..., alias="hasCard")
    card: Optional[RfidCard] = None


class LostCardReport(BackendModel):
    success: bool
    card: Optional[RfidCard] = None
    message: str = ""


class UserRfidStatus(BackendModel):
    """User row of the RFID administration view."""
    id: int
    username: str
    role: UserRole = UserRole.USER
    has_rfid_card: bool = Field(False, alias="hasRfidCard")
    rfid_card: Optional[RfidCard] = Field(None, alias="rfidCard")


class EnrollmentStatus(BackendModel):
    active: bool = False
    user_id: Optional[int] = Field(None, alias="userId")
    username: Optional[str] = None


class EnrollmentStart(BackendModel):
    """Reply to an enrollment request; the device now waits for a card scan."""
    success: bool = True
    username: Optional[str] = None
    message: str = ""
