"""MQTT connection manager."""

import asyncio
import json
import secrets
from typing import Any, Callable, Iterable, Optional, Tuple
from urllib.parse import urlparse

import paho.mqtt.client as paho
from paho.mqtt.enums import CallbackAPIVersion
from loguru import logger

from smarthome_dashboard.api.base import ConfigError
from smarthome_dashboard.api.config.config_models import MqttConfig
from smarthome_dashboard.api.messaging.messaging_models import BusMessage
from smarthome_dashboard.api.messaging.topics import SUBSCRIBED_TOPICS
from smarthome_dashboard.api.notifications.registry import EventRegistry

DEFAULT_PORTS = {
    "ws": 80,
    "wss": 443,
    "mqtt": 1883,
    "mqtts": 8883,
}
WEBSOCKET_SCHEMES = ("ws", "wss")
TLS_SCHEMES = ("wss", "mqtts")

ClientFactory = Callable[[MqttConfig, str], Any]


def make_client_id(prefix: str) -> str:
    """Randomized client id, ``<prefix><8 hex chars>``."""
    return f"{prefix}{secrets.token_hex(4)}"


def broker_address(url: str) -> Tuple[str, str, int, str]:
    """Split a broker URL into scheme, host, port and websocket path.

    Raises:
        ConfigError: If the scheme is not supported or the host is missing
    """
    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    if scheme not in DEFAULT_PORTS:
        raise ConfigError(f"Unsupported broker URL scheme: {parsed.scheme!r}", {"url": url})
    if not parsed.hostname:
        raise ConfigError("Broker URL has no host", {"url": url})
    port = parsed.port or DEFAULT_PORTS[scheme]
    return scheme, parsed.hostname, port, parsed.path or "/mqtt"


def create_paho_client(config: MqttConfig, client_id: str) -> paho.Client:
    """Build a paho client configured for ``config`` but not yet connected."""
    scheme, _, _, path = broker_address(config.url)
    client = paho.Client(
        callback_api_version=CallbackAPIVersion.VERSION2,
        client_id=client_id,
        transport="websockets" if scheme in WEBSOCKET_SCHEMES else "tcp",
    )
    if scheme in WEBSOCKET_SCHEMES:
        client.ws_set_options(path=path)
    if scheme in TLS_SCHEMES:
        client.tls_set()
    if config.username:
        client.username_pw_set(config.username, config.password)

    # Fixed retry interval, no backoff
    delay = max(1, int(config.reconnect_delay_s))
    client.reconnect_delay_set(min_delay=delay, max_delay=delay)
    client.connect_timeout = config.connect_timeout_s
    return client


class MqttConnectionManager:
    """Owns the single MQTT session of the dashboard.

    paho runs its network loop on its own thread; every callback is handed
    to the asyncio loop with ``call_soon_threadsafe`` so that listeners only
    ever run on the loop thread. Reconnects are left to paho's retry policy.
    """

    def __init__(
        self,
        config: MqttConfig,
        topics: Iterable[str] = SUBSCRIBED_TOPICS,
        client_factory: Optional[ClientFactory] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None
    ):
        self._config = config
        self._topics = tuple(topics)
        self._client_factory = client_factory or create_paho_client
        self._loop = loop
        self._client: Optional[Any] = None
        self._client_id: Optional[str] = None
        self._connected = False

        self.messages: EventRegistry[BusMessage] = EventRegistry("messages")
        self.connection: EventRegistry[bool] = EventRegistry("connection")

    @property
    def is_connected(self) -> bool:
        """True between a successful handshake and the next close."""
        return self._connected

    @property
    def client_id(self) -> Optional[str]:
        return self._client_id

    @property
    def has_session(self) -> bool:
        """True once connect() has created a session that is not torn down."""
        return self._client is not None

    def connect(self) -> None:
        """Open the session. Calling again while a session exists does nothing.

        Raises:
            ConfigError: If the broker URL is invalid
        """
        if self._client is not None:
            logger.debug("MQTT session already exists, ignoring connect")
            return

        if self._loop is None:
            self._loop = asyncio.get_running_loop()

        _, host, port, _ = broker_address(self._config.url)
        self._client_id = make_client_id(self._config.client_id_prefix)
        client = self._client_factory(self._config, self._client_id)
        client.on_connect = self._on_connect
        client.on_disconnect = self._on_disconnect
        client.on_message = self._on_message
        client.on_connect_fail = self._on_connect_fail
        self._client = client

        logger.info(f"Connecting to MQTT broker {self._config.url} as {self._client_id}")
        client.connect_async(host, port, keepalive=self._config.keepalive)
        client.loop_start()

    def disconnect(self) -> None:
        """Tear the session down and report the connection as closed."""
        client = self._client
        if client is None:
            return

        self._client = None
        try:
            client.disconnect()
        finally:
            client.loop_stop()

        logger.info("MQTT session closed")
        if self._connected:
            self._set_connected(False)

    def publish(self, topic: str, payload: Any) -> bool:
        """Publish ``payload`` as JSON.

        Returns:
            False without queueing when not connected or when the client
            rejects the message
        """
        if self._client is None or not self._connected:
            logger.warning(f"Not connected, dropping publish to {topic}")
            return False

        try:
            info = self._client.publish(topic, json.dumps(payload))
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to encode payload for {topic}: {e}")
            return False

        if info.rc != paho.MQTT_ERR_SUCCESS:
            logger.error(f"Publish to {topic} failed: {paho.error_string(info.rc)}")
            return False

        logger.debug(f"Published to {topic}: {payload}")
        return True

    # paho callbacks, run on the paho network thread

    def _on_connect(self, client, userdata, flags, reason_code, properties=None) -> None:
        self._dispatch(self._handle_connect, client, reason_code)

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None) -> None:
        self._dispatch(self._handle_disconnect, client, reason_code)

    def _on_message(self, client, userdata, message) -> None:
        self._dispatch(self._handle_message, client, BusMessage(message.topic, message.payload))

    def _on_connect_fail(self, client, userdata) -> None:
        self._dispatch(self._handle_connect_fail, client)

    def _dispatch(self, handler: Callable[..., None], *args: Any) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(handler, *args)

    # Handlers, run on the asyncio loop

    def _is_current(self, client: Any) -> bool:
        return client is not None and client is self._client

    def _handle_connect(self, client: Any, reason_code: Any) -> None:
        if not self._is_current(client):
            return

        if reason_code.is_failure:
            # paho keeps retrying on its own schedule
            logger.error(f"MQTT connection refused: {reason_code}")
            return

        logger.info(f"MQTT connected to {self._config.url}")
        self._set_connected(True)
        client.subscribe([(topic, 0) for topic in self._topics])
        logger.debug(f"Subscribed to {len(self._topics)} topics")

    def _handle_disconnect(self, client: Any, reason_code: Any) -> None:
        if not self._is_current(client):
            return

        logger.warning(f"MQTT connection closed: {reason_code}")
        if self._connected:
            self._set_connected(False)

    def _handle_connect_fail(self, client: Any) -> None:
        if not self._is_current(client):
            return
        logger.error(f"MQTT connection to {self._config.url} failed, retrying")

    def _handle_message(self, client: Any, message: BusMessage) -> None:
        if not self._is_current(client):
            return
        self.messages.emit(message)

    def _set_connected(self, connected: bool) -> None:
        self._connected = connected
        self.connection.emit(connected)
