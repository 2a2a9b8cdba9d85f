"""Notification fan-out package."""

from smarthome_dashboard.api.notifications.registry import EventRegistry, UnreadCounter
from smarthome_dashboard.api.notifications.notification_models import (
    Toast,
    ToastLevel,
    RfidLostNotice,
    EnrollmentNotice,
)
from smarthome_dashboard.api.notifications.notification_hub import NotificationHub

__all__ = [
    "EventRegistry",
    "UnreadCounter",
    "NotificationHub",
    "Toast",
    "ToastLevel",
    "RfidLostNotice",
    "EnrollmentNotice",
]
