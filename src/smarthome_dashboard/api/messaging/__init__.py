"""Message bus package: topics, payloads, transport and decoder."""

from smarthome_dashboard.api.messaging import topics
from smarthome_dashboard.api.messaging.messaging_models import (
    BusMessage,
    DecodedEvent,
    DeviceReport,
    SensorReport,
    ToastRequest,
    AlertRaised,
    RfidLost,
    EnrollmentResult,
    Heartbeat,
)
from smarthome_dashboard.api.messaging.decoder import MessageDecoder, index_to_color
from smarthome_dashboard.api.messaging.mqtt_client import (
    MqttConnectionManager,
    broker_address,
    create_paho_client,
    make_client_id,
)

__all__ = [
    "topics",
    "BusMessage",
    "DecodedEvent",
    "DeviceReport",
    "SensorReport",
    "ToastRequest",
    "AlertRaised",
    "RfidLost",
    "EnrollmentResult",
    "Heartbeat",
    "MessageDecoder",
    "index_to_color",
    "MqttConnectionManager",
    "broker_address",
    "create_paho_client",
    "make_client_id",
]
