"""Base exceptions for the dashboard."""

from typing import Optional, Dict, Any


class ServiceError(Exception):
    """Base exception for service errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        """Initialize service error.

        Args:
            message: Error message
            context: Additional error context
        """
        super().__init__(message)
        self.context = context if context is not None else {}


class ConfigError(ServiceError):
    """Exception for configuration errors."""
    pass


class CommunicationError(ServiceError):
    """Exception for message bus transport errors."""
    pass


class DecodeError(ServiceError):
    """Exception for malformed message bus payloads."""

    def __init__(self, message: str, topic: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context)
        self.topic = topic


class StateError(ServiceError):
    """Exception for invalid state store access."""
    pass


class BackendError(ServiceError):
    """Exception for failed REST backend requests."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, context)
        self.status_code = status_code
