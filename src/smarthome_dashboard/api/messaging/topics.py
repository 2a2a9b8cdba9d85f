"""Message bus topics."""

# Authoritative state and events (subscribed)
FAN_STATE = "home/fan/state"
PUMP_STATE = "home/pump/state"
DOOR_STATE = "home/door/state"
LIGHT_STATE = "home/light/state"
ALERT_STATE = "home/alert/state"
DRYER_STATE = "home/dryer/state"
SENSOR_GAS = "home/sensor/gas"
SENSOR_FIRE = "home/sensor/fire"
SENSOR_LIGHT = "home/sensor/light"
SENSOR_RAIN = "home/sensor/rain"
DEVICE_HEARTBEAT = "home/device/heartbeat"
ALERT = "home/alert"
ALERT_NEW = "home/alert/new"
RFID_LOST = "home/rfid/lost"
ENROLLMENT_RESULT = "door/enrollment/result"

SUBSCRIBED_TOPICS = (
    FAN_STATE,
    PUMP_STATE,
    DOOR_STATE,
    LIGHT_STATE,
    ALERT_STATE,
    DRYER_STATE,
    SENSOR_GAS,
    SENSOR_FIRE,
    SENSOR_LIGHT,
    SENSOR_RAIN,
    DEVICE_HEARTBEAT,
    ALERT,
    ALERT_NEW,
    RFID_LOST,
    ENROLLMENT_RESULT,
)

# Commands (published)
FAN_CONTROL = "home/fan/control"
PUMP_CONTROL = "home/pump/control"
ALERT_CONTROL = "home/alert/control"
LIGHT_CONTROL = "home/light/control"
DRYER_CONTROL = "home/dryer/control"
