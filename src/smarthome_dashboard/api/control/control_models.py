"""Control engine models."""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Protocol

from smarthome_dashboard.api.state.state_models import DeviceState


class ControlAction(str, Enum):
    """Operator command for a device."""
    ON = "on"
    OFF = "off"


class Publisher(Protocol):
    """Anything that can put a JSON payload on the message bus."""

    def publish(self, topic: str, payload: Any) -> bool:
        ...


@dataclass
class PendingRollback:
    """In-flight command awaiting confirmation.

    ``revision`` is the store revision written by the speculative update;
    the command counts as answered once the device's revision moves on.
    ``snapshot_revision`` is the revision ``snapshot`` was written under and
    goes back into the store with it on rollback.
    """
    device_id: str
    snapshot: DeviceState
    snapshot_revision: int
    revision: int
    handle: Optional[asyncio.TimerHandle] = None
