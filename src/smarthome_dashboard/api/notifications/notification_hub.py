"""Notification fan-out hub."""

from loguru import logger

from smarthome_dashboard.api.notifications.notification_models import (
    Toast,
    ToastLevel,
    RfidLostNotice,
    EnrollmentNotice,
)
from smarthome_dashboard.api.notifications.registry import EventRegistry, UnreadCounter
from smarthome_dashboard.api.state.state_models import Alert

_LOG_LEVELS = {
    ToastLevel.INFO: "INFO",
    ToastLevel.WARNING: "WARNING",
    ToastLevel.ERROR: "ERROR",
}


class NotificationHub:
    """Independent registries decoupling UI surfaces from the decoder."""

    def __init__(self) -> None:
        self.alerts: EventRegistry[Alert] = EventRegistry("alerts")
        self.unread = UnreadCounter("unread")
        self.rfid_lost: EventRegistry[RfidLostNotice] = EventRegistry("rfid_lost")
        self.enrollment: EventRegistry[EnrollmentNotice] = EventRegistry("enrollment")
        self.toasts: EventRegistry[Toast] = EventRegistry("toasts")

    def toast(self, title: str, message: str = "", level: ToastLevel = ToastLevel.ERROR) -> Toast:
        """Log and publish a user-facing message."""
        toast = Toast(title=title, message=message, level=level)
        logger.log(_LOG_LEVELS[level], f"Toast: {toast.text}")
        self.toasts.emit(toast)
        return toast

    def clear(self) -> None:
        """Drop every listener; the unread count is kept."""
        for registry in (self.alerts, self.unread, self.rfid_lost, self.enrollment, self.toasts):
            registry.clear()
