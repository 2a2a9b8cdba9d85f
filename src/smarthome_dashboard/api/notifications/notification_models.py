"""Notification data models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ToastLevel(str, Enum):
    """Severity of a user-facing message."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Toast(BaseModel):
    """Short user-facing message."""
    model_config = ConfigDict(frozen=True)

    title: str = Field(..., description="Headline")
    message: str = Field("", description="Body text")
    level: ToastLevel = Field(ToastLevel.ERROR, description="Severity")
    created_at: datetime = Field(default_factory=datetime.now, description="Creation time")

    @property
    def text(self) -> str:
        """Single-line rendering, ``title: message``."""
        return f"{self.title}: {self.message}" if self.message else self.title


class RfidLostNotice(BaseModel):
    """A user reported their RFID card lost."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: int = Field(..., alias="userId")
    username: str
    card_uid: str = Field(..., alias="cardUid")


class EnrollmentNotice(BaseModel):
    """Result of an RFID card enrollment at the door."""
    model_config = ConfigDict(extra="ignore")

    success: bool
    message: str = ""
    username: Optional[str] = None
