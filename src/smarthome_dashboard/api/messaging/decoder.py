"""Message decoder: topic/payload pairs to store mutations and notifications."""

import json
from typing import Any, Callable, Dict, List, Optional, Union

from loguru import logger
from pydantic import ValidationError

from smarthome_dashboard.api.base import DecodeError
from smarthome_dashboard.api.config.config_models import DEFAULT_GAS_THRESHOLD
from smarthome_dashboard.api.messaging import topics
from smarthome_dashboard.api.messaging.messaging_models import (
    AlertNoticePayload,
    AlertRaised,
    AlertStatePayload,
    DecodedEvent,
    DeviceReport,
    DeviceStatePayload,
    DoorStatePayload,
    DryerStatePayload,
    EnrollmentResult,
    FirePayload,
    GasPayload,
    Heartbeat,
    LightSensorPayload,
    LightStatePayload,
    RainPayload,
    RfidLost,
    SensorReport,
    ToastRequest,
)
from smarthome_dashboard.api.notifications import (
    EnrollmentNotice,
    NotificationHub,
    RfidLostNotice,
    ToastLevel,
)
from smarthome_dashboard.api.state import (
    Alert,
    AlertSeverity,
    DeviceState,
    DeviceStateStore,
    DeviceStatus,
    DryerReading,
    FireReading,
    GasReading,
    LightReading,
    RainReading,
    SensorKind,
)

DEFAULT_COLOR = "#FFFFFF"

# Legacy controller color index -> hex color
COLOR_PALETTE = {
    1: "#FF0000",  # red
    2: "#00FF00",  # green
    3: "#0000FF",  # blue
    4: "#FFFF00",  # yellow
    5: "#FF00FF",  # magenta
    6: "#00FFFF",  # cyan
    7: "#FFFFFF",  # white
}

TopicDecoder = Callable[[Dict[str, Any]], List[DecodedEvent]]


def index_to_color(index: Optional[int]) -> str:
    """Map a legacy color index to hex, white when missing or out of range."""
    if index is None:
        return DEFAULT_COLOR
    return COLOR_PALETTE.get(index, DEFAULT_COLOR)


def _on_off(flag: bool) -> DeviceStatus:
    return DeviceStatus.ON if flag else DeviceStatus.OFF


def _severity_level(level: str) -> ToastLevel:
    return ToastLevel.ERROR if level.upper() == AlertSeverity.CRITICAL.value else ToastLevel.WARNING


class MessageDecoder:
    """Decodes bus messages into events and applies them to the store.

    Decoding is pure; a payload that fails to parse or validate is dropped
    before anything is mutated. The events of one message are applied in a
    single store transaction so subscribers see one notify per message.
    """

    def __init__(
        self,
        store: DeviceStateStore,
        notifications: NotificationHub,
        gas_threshold: float = DEFAULT_GAS_THRESHOLD
    ):
        self._store = store
        self._notifications = notifications
        self._gas_threshold = gas_threshold
        self._decoders: Dict[str, TopicDecoder] = {
            topics.FAN_STATE: self._device_state("fan"),
            topics.PUMP_STATE: self._device_state("pump"),
            topics.ALERT_STATE: self._decode_alert_state,
            topics.LIGHT_STATE: self._decode_light_state,
            topics.DRYER_STATE: self._decode_dryer_state,
            topics.DOOR_STATE: self._decode_door_state,
            topics.SENSOR_GAS: self._decode_gas,
            topics.SENSOR_FIRE: self._decode_fire,
            topics.SENSOR_LIGHT: self._decode_light_sensor,
            topics.SENSOR_RAIN: self._decode_rain,
            topics.DEVICE_HEARTBEAT: self._decode_heartbeat,
            topics.ALERT: self._decode_alert_notice,
            topics.ALERT_NEW: self._decode_new_alert,
            topics.RFID_LOST: self._decode_rfid_lost,
            topics.ENROLLMENT_RESULT: self._decode_enrollment,
        }

    @property
    def handled_topics(self) -> List[str]:
        """Topics this decoder understands."""
        return list(self._decoders)

    def handle_message(self, topic: str, payload: Union[bytes, str]) -> bool:
        """Decode and apply one message. Never raises.

        Returns:
            True if the message was applied, False if it was dropped
        """
        try:
            events = self.decode(topic, payload)
        except DecodeError as e:
            logger.warning(f"Dropped message on {e.topic}: {e}")
            return False

        if events is None:
            logger.debug(f"Ignoring message on unhandled topic {topic}")
            return False

        logger.debug(f"MQTT [{topic}] -> {len(events)} event(s)")
        self.apply(events)
        return True

    def decode(self, topic: str, payload: Union[bytes, str]) -> Optional[List[DecodedEvent]]:
        """Turn one message into events without touching the store.

        Returns:
            Events for the message, or None for an unhandled topic

        Raises:
            DecodeError: If the payload is not a valid JSON object for the topic
        """
        decoder = self._decoders.get(topic)
        if decoder is None:
            return None

        try:
            data = json.loads(payload)
        except (TypeError, ValueError) as e:
            raise DecodeError(f"Invalid JSON: {e}", topic) from e

        if not isinstance(data, dict):
            raise DecodeError(f"Expected a JSON object, got {type(data).__name__}", topic)

        try:
            return decoder(data)
        except ValidationError as e:
            raise DecodeError("Payload validation failed", topic, {"errors": e.errors()}) from e

    def apply(self, events: List[DecodedEvent]) -> None:
        """Apply decoded events to the store and notification registries."""
        with self._store.transaction():
            for event in events:
                self._apply_event(event)

    def _apply_event(self, event: DecodedEvent) -> None:
        if isinstance(event, DeviceReport):
            previous = self._store.get(event.device_id)
            self._store.write(event.device_id, DeviceState(
                status=event.status,
                online=event.online,
                last_updated=self._store.now(),
                color=event.color if event.color is not None else previous.color,
                mode=event.mode,
            ))
        elif isinstance(event, SensorReport):
            self._store.update_sensor(event.kind, event.reading)
        elif isinstance(event, ToastRequest):
            self._notifications.toast(event.title, event.message, event.level)
        elif isinstance(event, AlertRaised):
            self._notifications.unread.increment()
            self._notifications.alerts.emit(event.alert)
        elif isinstance(event, RfidLost):
            self._notifications.rfid_lost.emit(event.notice)
        elif isinstance(event, EnrollmentResult):
            self._notifications.enrollment.emit(event.notice)
        elif isinstance(event, Heartbeat):
            pass

    # Topic decoders

    def _device_state(self, device_id: str) -> TopicDecoder:
        def decode(data: Dict[str, Any]) -> List[DecodedEvent]:
            payload = DeviceStatePayload(**data)
            return [DeviceReport(device_id=device_id, status=payload.status, online=payload.is_online)]
        return decode

    def _decode_alert_state(self, data: Dict[str, Any]) -> List[DecodedEvent]:
        payload = AlertStatePayload(**data)
        status = _on_off(payload.active)
        return [
            DeviceReport(device_id="alarm", status=status, online=payload.is_online),
            DeviceReport(device_id="warning_light", status=status, online=payload.is_online),
        ]

    def _decode_light_state(self, data: Dict[str, Any]) -> List[DecodedEvent]:
        payload = LightStatePayload(**data)
        color_index = payload.bedroom_color or 0
        neo_on = payload.neopixel == "on" or color_index > 0
        neo_color = payload.neopixel_color or (index_to_color(color_index) if color_index > 0 else None)

        return [
            DeviceReport(
                device_id="light_living",
                status=_on_off(payload.living == "on"),
                online=payload.is_online,
            ),
            # "auto" follows the light sensor and is shown as on
            DeviceReport(
                device_id="light_outdoor",
                status=_on_off(payload.outside == "auto"),
                online=payload.is_online,
                mode=payload.outside,
            ),
            DeviceReport(
                device_id="neo_bedroom",
                status=_on_off(neo_on),
                online=payload.is_online,
                color=neo_color if neo_on else None,
            ),
        ]

    def _decode_dryer_state(self, data: Dict[str, Any]) -> List[DecodedEvent]:
        payload = DryerStatePayload(**data)
        out = bool(payload.out)
        return [
            DeviceReport(
                device_id="dryer_rack",
                status=DeviceStatus.OPEN if out else DeviceStatus.CLOSED,
                online=payload.is_online,
            ),
            SensorReport(kind=SensorKind.DRYER, reading=DryerReading(out=out)),
        ]

    def _decode_door_state(self, data: Dict[str, Any]) -> List[DecodedEvent]:
        payload = DoorStatePayload(**data)
        if not payload.abnormal:
            return []
        return [ToastRequest(title="Door warning", message="Abnormal access detected!", level=ToastLevel.WARNING)]

    def _decode_gas(self, data: Dict[str, Any]) -> List[DecodedEvent]:
        payload = GasPayload(**data)
        threshold = payload.threshold if payload.threshold is not None else self._gas_threshold
        events: List[DecodedEvent] = [
            SensorReport(kind=SensorKind.GAS, reading=GasReading(level=payload.level, threshold=threshold))
        ]
        if payload.level > threshold:
            events.append(ToastRequest(title="Gas leak!", message=f"Level: {payload.level:g} ppm"))
        return events

    def _decode_fire(self, data: Dict[str, Any]) -> List[DecodedEvent]:
        payload = FirePayload(**data)
        events: List[DecodedEvent] = [
            SensorReport(kind=SensorKind.FIRE, reading=FireReading(detected=payload.detected, value=payload.value))
        ]
        if payload.detected:
            events.append(ToastRequest(title="Fire detected!", message=payload.location or "Unknown location"))
        return events

    def _decode_light_sensor(self, data: Dict[str, Any]) -> List[DecodedEvent]:
        payload = LightSensorPayload(**data)
        return [SensorReport(kind=SensorKind.LIGHT, reading=LightReading(bright=payload.bright))]

    def _decode_rain(self, data: Dict[str, Any]) -> List[DecodedEvent]:
        payload = RainPayload(**data)
        return [SensorReport(kind=SensorKind.RAIN, reading=RainReading(raining=payload.raining))]

    def _decode_heartbeat(self, data: Dict[str, Any]) -> List[DecodedEvent]:
        return [Heartbeat(data=data)]

    def _decode_alert_notice(self, data: Dict[str, Any]) -> List[DecodedEvent]:
        payload = AlertNoticePayload(**data)
        return [ToastRequest(title=payload.type.upper(), message=payload.message, level=_severity_level(payload.level))]

    def _decode_new_alert(self, data: Dict[str, Any]) -> List[DecodedEvent]:
        alert = Alert(**data)
        return [
            AlertRaised(alert=alert),
            ToastRequest(
                title=alert.type.value.upper(),
                message=alert.message,
                level=_severity_level(alert.level.value),
            ),
        ]

    def _decode_rfid_lost(self, data: Dict[str, Any]) -> List[DecodedEvent]:
        notice = RfidLostNotice(**data)
        return [
            RfidLost(notice=notice),
            ToastRequest(
                title="RFID card lost",
                message=f"{notice.username} reported their card lost",
                level=ToastLevel.WARNING,
            ),
        ]

    def _decode_enrollment(self, data: Dict[str, Any]) -> List[DecodedEvent]:
        notice = EnrollmentNotice(**data)
        events: List[DecodedEvent] = [EnrollmentResult(notice=notice)]
        if notice.success:
            events.append(ToastRequest(
                title="Card enrolled",
                message=notice.message or f"Card enrolled for {notice.username}",
                level=ToastLevel.INFO,
            ))
        return events
