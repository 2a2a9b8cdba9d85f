"""Dashboard service: owns and wires the real-time core."""

from typing import Any, Dict, List, Optional

from loguru import logger

from smarthome_dashboard.api.base import BaseService, create_error
from smarthome_dashboard.api.base.base_errors import NOT_FOUND, SERVICE_ERROR
from smarthome_dashboard.api.config import ConfigService, DeviceConfig
from smarthome_dashboard.api.control import ControlEngine
from smarthome_dashboard.api.messaging import BusMessage, MessageDecoder, MqttConnectionManager
from smarthome_dashboard.api.messaging.mqtt_client import ClientFactory
from smarthome_dashboard.api.notifications import NotificationHub
from smarthome_dashboard.api.notifications.registry import Unsubscribe
from smarthome_dashboard.api.state import DEVICE_IDS, DeviceStateStore, StateSnapshot


class DashboardService(BaseService):
    """Composition root for the store, transport, decoder, control engine and hub.

    Everything is created in ``_start`` and released in ``_stop``; there is
    one transport session per service lifetime.
    """

    def __init__(
        self,
        config_service: ConfigService,
        client_factory: Optional[ClientFactory] = None
    ):
        """Initialize dashboard service.

        Args:
            config_service: Configuration source, started on demand
            client_factory: Builds the MQTT client (tests pass a fake)
        """
        super().__init__(name="dashboard")
        self._config_service = config_service
        self._client_factory = client_factory
        self._owns_config = False

        self._store: Optional[DeviceStateStore] = None
        self._notifications: Optional[NotificationHub] = None
        self._transport: Optional[MqttConnectionManager] = None
        self._decoder: Optional[MessageDecoder] = None
        self._control: Optional[ControlEngine] = None
        self._subscriptions: List[Unsubscribe] = []

    @property
    def store(self) -> DeviceStateStore:
        return self._require(self._store)

    @property
    def notifications(self) -> NotificationHub:
        return self._require(self._notifications)

    @property
    def transport(self) -> MqttConnectionManager:
        return self._require(self._transport)

    @property
    def decoder(self) -> MessageDecoder:
        return self._require(self._decoder)

    @property
    def control(self) -> ControlEngine:
        return self._require(self._control)

    def _require(self, component: Any) -> Any:
        if component is None:
            raise create_error(
                message="Dashboard service not running",
                status_code=SERVICE_ERROR,
                context={"service": self.name}
            )
        return component

    async def _start(self) -> None:
        if not self._config_service.is_running:
            await self._config_service.start()
            self._owns_config = True
        config = self._config_service.config

        # Catalog devices extend the fixed set the decoder reports on
        device_ids = list(dict.fromkeys([*DEVICE_IDS, *(d.id for d in config.devices)]))
        self._store = DeviceStateStore(device_ids)
        self._notifications = NotificationHub()
        self._transport = MqttConnectionManager(config.mqtt, client_factory=self._client_factory)
        self._decoder = MessageDecoder(self._store, self._notifications, config.sensors.gas_threshold)
        self._control = ControlEngine(
            self._store,
            self._transport,
            self._notifications,
            devices=config.devices,
            deadline_s=config.control.rollback_deadline_s
        )

        self._subscriptions = [
            self._transport.connection.subscribe(self._store.set_connected),
            self._transport.messages.subscribe(self._on_message),
        ]

        try:
            self._transport.connect()
        except Exception:
            self._teardown()
            raise

    async def _stop(self) -> None:
        self._teardown()
        if self._owns_config and self._config_service.is_running:
            await self._config_service.stop()
            self._owns_config = False

    def _teardown(self) -> None:
        if self._control is not None:
            self._control.close()
        if self._transport is not None:
            self._transport.disconnect()
        for unsubscribe in self._subscriptions:
            unsubscribe()
        self._subscriptions = []
        if self._notifications is not None:
            self._notifications.clear()

        self._store = None
        self._notifications = None
        self._transport = None
        self._decoder = None
        self._control = None

    def _on_message(self, message: BusMessage) -> None:
        self.decoder.handle_message(message.topic, message.payload)

    def snapshot(self) -> StateSnapshot:
        """Current store contents."""
        return self.store.snapshot()

    def devices(self) -> List[DeviceConfig]:
        """Device catalog."""
        return list(self._config_service.config.devices)

    def get_device(self, device_id: str) -> DeviceConfig:
        """Catalog entry for ``device_id``.

        Raises:
            HTTPException: If the device is not in the catalog (404)
        """
        device = self._config_service.config.get_device(device_id)
        if device is None:
            raise create_error(
                message=f"Unknown device: {device_id}",
                status_code=NOT_FOUND,
                context={"device_id": device_id}
            )
        return device

    def control_device(self, device_id: str, action: str, color: Optional[str] = None) -> bool:
        """Command a catalog device on its own control topic.

        Returns:
            True if the command was published
        """
        device = self.get_device(device_id)
        extra: Dict[str, Any] = dict(device.control_extra)
        if color and device.color_capable and action == "on":
            extra["color"] = color
        logger.debug(f"Control request: {device_id} {action} {extra}")
        return self.control.control_device(device_id, action, device.control_topic, extra)

    @property
    def unread(self) -> int:
        return self.notifications.unread.count

    def reset_unread(self) -> None:
        """Operator opened the alerts view."""
        self.notifications.unread.reset()

    def _health_context(self) -> Dict[str, Any]:
        if self._transport is None:
            return {"service": self.name, "connected": False}
        return {
            "service": self.name,
            "connected": self._transport.is_connected,
            "client_id": self._transport.client_id,
            "pending_commands": self._control.pending_count if self._control else 0,
            "unread_alerts": self._notifications.unread.count if self._notifications else 0,
        }
