"""Base API components.

This module provides the building blocks shared by the dashboard services:

- BaseService: Base class for services with start/stop lifecycle
- create_error: Utility for creating consistent HTTP errors
- ServiceError and subclasses: Internal error hierarchy
- add_health_endpoints: Health check route for a service
"""

from smarthome_dashboard.api.base.base_service import BaseService
from smarthome_dashboard.api.base.base_errors import create_error
from smarthome_dashboard.api.base.base_exceptions import (
    ServiceError,
    ConfigError,
    CommunicationError,
    DecodeError,
    StateError,
    BackendError,
)
from smarthome_dashboard.api.base.base_router import add_health_endpoints

__all__ = [
    "BaseService",
    "create_error",
    "ServiceError",
    "ConfigError",
    "CommunicationError",
    "DecodeError",
    "StateError",
    "BackendError",
    "add_health_endpoints",
]
