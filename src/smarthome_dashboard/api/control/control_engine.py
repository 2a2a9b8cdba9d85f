"""Optimistic device control with deadline rollback."""

import asyncio
from typing import Any, Dict, Iterable, Optional

from loguru import logger

from smarthome_dashboard.api.config.config_models import (
    ROLLBACK_DEADLINE_S,
    DeviceConfig,
    default_devices,
)
from smarthome_dashboard.api.control.control_models import (
    ControlAction,
    PendingRollback,
    Publisher,
)
from smarthome_dashboard.api.notifications import NotificationHub
from smarthome_dashboard.api.state import DeviceStateStore, DeviceStatus


class ControlEngine:
    """Issues device commands and reverts them when the device stays silent.

    A command writes its expected state to the store straight away, then
    publishes. If the publish fails the write is undone immediately. If it
    succeeds, a one-shot deadline compares the device's store revision with
    the one the speculative write got: unchanged means no device report
    arrived and the pre-command state is restored; changed means the
    command was confirmed or superseded and nothing happens.
    """

    def __init__(
        self,
        store: DeviceStateStore,
        transport: Publisher,
        notifications: NotificationHub,
        devices: Optional[Iterable[DeviceConfig]] = None,
        deadline_s: float = ROLLBACK_DEADLINE_S,
        loop: Optional[asyncio.AbstractEventLoop] = None
    ):
        self._store = store
        self._transport = transport
        self._notifications = notifications
        self._devices: Dict[str, DeviceConfig] = {
            device.id: device for device in (devices if devices is not None else default_devices())
        }
        self._deadline_s = deadline_s
        self._loop = loop
        self._pending: Dict[int, PendingRollback] = {}

    @property
    def deadline_s(self) -> float:
        return self._deadline_s

    @property
    def pending_count(self) -> int:
        """Published commands still waiting for their deadline."""
        return len(self._pending)

    def control_device(
        self,
        device_id: str,
        action: str,
        topic: str,
        extra: Optional[Dict[str, Any]] = None
    ) -> bool:
        """Send ``action`` to a device and update the store optimistically.

        Args:
            device_id: Catalog id of the device
            action: "on" or "off"
            topic: Control topic to publish on
            extra: Additional payload fields, e.g. ``{"device": "neopixel", "color": "#FF0000"}``

        Returns:
            True if the command was published, False if it was rejected or
            could not be sent. Never raises.
        """
        extra = dict(extra or {})
        device = self._devices.get(device_id)
        if device is None or not self._store.is_known(device_id):
            logger.warning(f"Rejected command for unknown device {device_id}")
            self._notifications.toast("Unknown device", f"No device named {device_id}")
            return False

        try:
            command = ControlAction(action)
        except ValueError:
            logger.warning(f"Rejected invalid action {action!r} for {device_id}")
            self._notifications.toast("Invalid command", f"Unsupported action: {action}")
            return False

        snapshot = self._store.get(device_id)
        snapshot_revision = self._store.revision(device_id)
        color = snapshot.color
        if device.color_capable and command is ControlAction.ON and extra.get("color"):
            color = extra["color"]

        speculative = snapshot.model_copy(update={
            "status": DeviceStatus(device.status_for(command.value)),
            "online": True,
            "last_updated": self._store.now(),
            "color": color,
        })
        revision = self._store.write(device_id, speculative)
        pending = PendingRollback(
            device_id=device_id,
            snapshot=snapshot,
            snapshot_revision=snapshot_revision,
            revision=revision
        )

        payload = {"action": command.value, **extra}
        if not self._transport.publish(topic, payload):
            self._restore(pending)
            self._notifications.toast(
                "Command not sent",
                "Could not send the command. Check the MQTT connection."
            )
            return False

        logger.info(f"Sent {command.value} to {device_id} on {topic}")
        pending.handle = self._get_loop().call_later(self._deadline_s, self._on_deadline, pending)
        self._pending[revision] = pending
        return True

    def close(self) -> None:
        """Cancel all outstanding deadlines."""
        for pending in self._pending.values():
            if pending.handle is not None:
                pending.handle.cancel()
        self._pending.clear()

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def _on_deadline(self, pending: PendingRollback) -> None:
        self._discard(pending)
        current = self._store.revision(pending.device_id)
        if current != pending.revision:
            logger.debug(f"Command for {pending.device_id} resolved (rev {pending.revision} -> {current})")
            return

        name = self._devices[pending.device_id].name
        logger.warning(f"No response from {pending.device_id} within {self._deadline_s}s, rolling back")
        self._restore(pending)
        self._notifications.toast("No response", f"No response from {name}")

    def _discard(self, pending: PendingRollback) -> None:
        self._pending.pop(pending.revision, None)

    def _restore(self, pending: PendingRollback) -> None:
        state = pending.snapshot
        if not self._store.connected:
            state = state.model_copy(update={"online": False})
        self._store.restore(pending.device_id, state, pending.snapshot_revision)
