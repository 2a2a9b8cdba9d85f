"""Root test configuration and shared fixtures."""

import asyncio
from datetime import datetime
from types import SimpleNamespace
from typing import Any, Dict, List, Optional, Tuple

import paho.mqtt.client as paho
import pytest
import yaml
from paho.mqtt.packettypes import PacketTypes
from paho.mqtt.reasoncodes import ReasonCode

from smarthome_dashboard.api.base import BaseService
from smarthome_dashboard.api.config import ConfigService, DashboardConfig, MqttConfig
from smarthome_dashboard.api.messaging import MessageDecoder, MqttConnectionManager
from smarthome_dashboard.api.notifications import NotificationHub
from smarthome_dashboard.api.state import DeviceStateStore


class MockBaseService(BaseService):
    """Mock base service for testing."""

    def __init__(self, name: str = None):
        super().__init__(name or "test_service")

    async def _start(self) -> None:
        pass

    async def _stop(self) -> None:
        pass


class FakeMqttClient:
    """Stands in for paho.mqtt.client.Client without a network.

    Callbacks are invoked synchronously from ``simulate_*``; the manager
    under test hands them to the event loop, so tests must yield with
    ``await flush()`` before asserting.
    """

    def __init__(self, config: MqttConfig, client_id: str):
        self.config = config
        self.client_id = client_id
        self.on_connect = None
        self.on_disconnect = None
        self.on_message = None
        self.on_connect_fail = None
        self.connect_args: Optional[Tuple[str, int, int]] = None
        self.loop_started = False
        self.loop_stopped = False
        self.disconnected = False
        self.subscriptions: List[List[Tuple[str, int]]] = []
        self.published: List[Tuple[str, str]] = []
        self.publish_rc = paho.MQTT_ERR_SUCCESS

    # paho API used by the manager

    def connect_async(self, host: str, port: int, keepalive: int = 60) -> None:
        self.connect_args = (host, port, keepalive)

    def loop_start(self) -> None:
        self.loop_started = True

    def loop_stop(self) -> None:
        self.loop_stopped = True

    def disconnect(self) -> None:
        self.disconnected = True

    def subscribe(self, topics: List[Tuple[str, int]]) -> None:
        self.subscriptions.append(list(topics))

    def publish(self, topic: str, payload: str) -> Any:
        self.published.append((topic, payload))
        return SimpleNamespace(rc=self.publish_rc)

    # Test helpers

    def simulate_connect(self, reason: str = "Success") -> None:
        self.on_connect(self, None, {}, ReasonCode(PacketTypes.CONNACK, reason), None)

    def simulate_disconnect(self, reason: str = "Unspecified error") -> None:
        self.on_disconnect(self, None, {}, ReasonCode(PacketTypes.DISCONNECT, reason), None)

    def simulate_connect_fail(self) -> None:
        self.on_connect_fail(self, None)

    def simulate_message(self, topic: str, payload: bytes) -> None:
        self.on_message(self, None, SimpleNamespace(topic=topic, payload=payload))


class FakeClientFactory:
    """Client factory that keeps every client it builds."""

    def __init__(self):
        self.clients: List[FakeMqttClient] = []

    def __call__(self, config: MqttConfig, client_id: str) -> FakeMqttClient:
        client = FakeMqttClient(config, client_id)
        self.clients.append(client)
        return client

    @property
    def last(self) -> FakeMqttClient:
        return self.clients[-1]


async def flush() -> None:
    """Let callbacks scheduled with call_soon_threadsafe run."""
    for _ in range(3):
        await asyncio.sleep(0)


FIXED_TIME = datetime(2024, 1, 1, 12, 0, 0)


@pytest.fixture
def base_service():
    """Create base service fixture."""
    return MockBaseService()


@pytest.fixture
def store() -> DeviceStateStore:
    """State store with a fixed clock."""
    return DeviceStateStore(clock=lambda: FIXED_TIME)


@pytest.fixture
def hub() -> NotificationHub:
    return NotificationHub()


@pytest.fixture
def decoder(store, hub) -> MessageDecoder:
    return MessageDecoder(store, hub, gas_threshold=300.0)


@pytest.fixture
def snapshots(store) -> List[Any]:
    """Every snapshot the store notifies with."""
    received: List[Any] = []
    store.subscribe(received.append)
    return received


@pytest.fixture
def toasts(hub) -> List[Any]:
    """Every toast published on the hub."""
    received: List[Any] = []
    hub.toasts.subscribe(received.append)
    return received


@pytest.fixture
def mqtt_config() -> MqttConfig:
    return MqttConfig(url="ws://broker.test:8083/mqtt", username="web", password="secret")


@pytest.fixture
def client_factory() -> FakeClientFactory:
    return FakeClientFactory()


@pytest.fixture
def manager(mqtt_config, client_factory) -> MqttConnectionManager:
    """Connection manager using fake paho clients."""
    return MqttConnectionManager(mqtt_config, client_factory=client_factory)


@pytest.fixture
def config_data() -> Dict[str, Any]:
    """Raw configuration as it would appear in YAML."""
    return {
        "mqtt": {"url": "ws://broker.test:8083/mqtt"},
        "backend": {"api_url": "http://backend.test/api"},
        "control": {"rollback_deadline_s": 0.05},
        "sensors": {"gas_threshold": 300},
    }


@pytest.fixture
def config_service(tmp_path, config_data) -> ConfigService:
    """Config service reading a temporary YAML file with an empty environment."""
    path = tmp_path / "dashboard.yaml"
    path.write_text(yaml.safe_dump(config_data))
    return ConfigService(config_path=path, environ={})


@pytest.fixture
def dashboard_config(config_data) -> DashboardConfig:
    return DashboardConfig(**config_data)
