"""Smart home dashboard: MQTT state reconciliation and optimistic device control."""

__version__ = "1.0.0"
