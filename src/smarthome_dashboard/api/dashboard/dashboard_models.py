"""Dashboard API request/response models."""

from typing import Optional

from pydantic import BaseModel, Field

from smarthome_dashboard.api.control.control_models import ControlAction


class ControlRequest(BaseModel):
    """Operator command for one device."""
    action: ControlAction = Field(..., description="on or off")
    color: Optional[str] = Field(
        None, pattern=r"^#[0-9A-Fa-f]{6}$", description="#RRGGBB for color-capable devices"
    )


class ControlResponse(BaseModel):
    success: bool = Field(..., description="Command was published")


class UnreadResponse(BaseModel):
    unread: int = Field(..., description="Unread alert count")
