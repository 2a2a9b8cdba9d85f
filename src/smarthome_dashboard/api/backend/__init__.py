"""REST backend client package."""

from smarthome_dashboard.api.backend.backend_client import BackendClient
from smarthome_dashboard.api.backend.backend_models import (
    User,
    UserRole,
    LoginResponse,
    AlertPage,
    DoorEvent,
    DoorHistoryPage,
    RfidCard,
    MyRfidCard,
    LostCardReport,
    UserRfidStatus,
    EnrollmentStatus,
    EnrollmentStart,
)

__all__ = [
    "BackendClient",
    "User",
    "UserRole",
    "LoginResponse",
    "AlertPage",
    "DoorEvent",
    "DoorHistoryPage",
    "RfidCard",
    "MyRfidCard",
    "LostCardReport",
    "UserRfidStatus",
    "EnrollmentStatus",
    "EnrollmentStart",
]
