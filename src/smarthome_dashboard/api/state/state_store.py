"""Shared device and sensor state store."""

from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Dict, Iterable, Iterator, Tuple

from loguru import logger
from pydantic import BaseModel

from smarthome_dashboard.api.base import StateError
from smarthome_dashboard.api.notifications.registry import EventRegistry, Unsubscribe
from smarthome_dashboard.api.state.state_models import (
    DEVICE_IDS,
    DeviceState,
    SensorData,
    SensorKind,
    StateSnapshot,
)

StateListener = Callable[[StateSnapshot], None]


class DeviceStateStore:
    """Canonical device map, sensor record and connection flag.

    Every mutation is followed by a synchronous notify of all subscribers
    with a fresh snapshot, except inside ``transaction()`` where the
    outermost block notifies exactly once on exit.

    Each device write is stamped with a store-wide, strictly increasing
    revision number. Liveness changes from connect/disconnect do not get a
    revision because they are not device reports.
    """

    def __init__(
        self,
        device_ids: Iterable[str] = DEVICE_IDS,
        clock: Callable[[], datetime] = datetime.now
    ):
        self._devices: Dict[str, DeviceState] = {device_id: DeviceState() for device_id in device_ids}
        self._revisions: Dict[str, int] = {device_id: 0 for device_id in self._devices}
        self._sensors = SensorData()
        self._connected = False
        self._sequence = 0
        self._clock = clock
        self._listeners: EventRegistry[StateSnapshot] = EventRegistry("state")
        self._batch_depth = 0

    @property
    def connected(self) -> bool:
        """True while the transport session is active."""
        return self._connected

    @property
    def device_ids(self) -> Tuple[str, ...]:
        return tuple(self._devices)

    @property
    def sensors(self) -> SensorData:
        return self._sensors

    def now(self) -> datetime:
        """Timestamp for a new write."""
        return self._clock()

    def is_known(self, device_id: str) -> bool:
        return device_id in self._devices

    def get(self, device_id: str) -> DeviceState:
        """Current state of ``device_id``; unknown ids read as not yet initialized."""
        return self._devices.get(device_id, DeviceState())

    def revision(self, device_id: str) -> int:
        """Revision of the last write to ``device_id`` (0 if never written)."""
        return self._revisions.get(device_id, 0)

    def snapshot(self) -> StateSnapshot:
        """Copy of the whole store."""
        return StateSnapshot(
            connected=self._connected,
            devices=dict(self._devices),
            sensors=self._sensors
        )

    def subscribe(self, listener: StateListener) -> Unsubscribe:
        """Receive a snapshot after every change."""
        return self._listeners.subscribe(listener)

    def write(self, device_id: str, state: DeviceState) -> int:
        """Replace the state of a known device.

        Returns:
            The revision assigned to this write

        Raises:
            StateError: If the device id is not known to the store
        """
        if device_id not in self._devices:
            raise StateError(f"Unknown device: {device_id}", {"device_id": device_id})

        self._sequence += 1
        self._devices[device_id] = state
        self._revisions[device_id] = self._sequence
        logger.debug(f"Device {device_id} -> {state.status.value} (rev {self._sequence})")
        self._changed()
        return self._sequence

    def restore(self, device_id: str, state: DeviceState, revision: int) -> None:
        """Put back an earlier state together with the revision it was written under.

        Used to undo a speculative write. No new revision is assigned, so a
        command still waiting on the restored state is not treated as answered.

        Raises:
            StateError: If the device id is not known to the store
        """
        if device_id not in self._devices:
            raise StateError(f"Unknown device: {device_id}", {"device_id": device_id})

        self._devices[device_id] = state
        self._revisions[device_id] = revision
        logger.debug(f"Device {device_id} restored to {state.status.value} (rev {revision})")
        self._changed()

    def update_sensor(self, kind: SensorKind, reading: BaseModel) -> None:
        """Store the latest reading of one sensor."""
        self._sensors = self._sensors.model_copy(update={kind.value: reading})
        self._changed()

    def set_connected(self, connected: bool) -> None:
        """Record transport connectivity and flip every device's liveness flag.

        Status, color and mode are kept as last known.
        """
        self._connected = connected
        self._devices = {
            device_id: state.model_copy(update={"online": connected})
            for device_id, state in self._devices.items()
        }
        logger.info(f"Message bus {'connected' if connected else 'disconnected'}")
        self._changed()

    @contextmanager
    def transaction(self) -> Iterator["DeviceStateStore"]:
        """Group mutations into one notify, sent even if nothing changed."""
        self._batch_depth += 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0:
                self._notify()

    def _changed(self) -> None:
        if self._batch_depth == 0:
            self._notify()

    def _notify(self) -> None:
        self._listeners.emit(self.snapshot())
