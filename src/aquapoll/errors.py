"""Error types and constants for consistent error handling across the application."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Standardized error codes for consistent error handling."""

    # Storage errors
    STORAGE_UNAVAILABLE = "storage_unavailable"
    DEVICE_STATE_NOT_FOUND = "device_state_not_found"
    SENSOR_READING_NOT_FOUND = "sensor_reading_not_found"

    # Validation errors
    INVALID_INPUT = "invalid_input"

    # Access errors
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"

    # Generic errors
    INTERNAL_ERROR = "internal_error"


class ControlError(Exception):
    """Base exception class for control plane errors."""

    status_code: int = 500

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        """Initialize the control error.

        Args:
            code: Error code identifier
            message: Human-readable error message
            details: Additional error context and data
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {
            "error": self.message,
            "code": self.code.value,
            "details": self.details,
        }


class StorageUnavailableError(ControlError):
    """Raised when a read or write against the backing store fails."""

    status_code = 503

    def __init__(
        self,
        operation: str,
        cause: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize storage unavailable error.

        Args:
            operation: Name of the storage operation that failed
            cause: Original exception raised by the adapter
            details: Additional error context
        """
        message = f"Storage operation '{operation}' failed"
        if cause:
            message += f": {cause}"
        super().__init__(
            ErrorCode.STORAGE_UNAVAILABLE,
            message,
            details={"operation": operation, **(details or {})},
            cause=cause,
        )


class NotFoundError(ControlError):
    """Raised when an expected stored entity is missing."""

    status_code = 404


class DeviceStateNotFoundError(NotFoundError):
    """Raised when the device state row for a device is missing."""

    def __init__(self, device_id: str, details: Optional[Dict[str, Any]] = None):
        """Initialize device state not found error.

        Args:
            device_id: Identifier of the device whose state is missing
            details: Additional error context
        """
        super().__init__(
            ErrorCode.DEVICE_STATE_NOT_FOUND,
            f"Device state {device_id} not found",
            details={"device_id": device_id, **(details or {})},
        )


class SensorReadingNotFoundError(NotFoundError):
    """Raised when a device has not uploaded any telemetry yet."""

    def __init__(self, device_id: str):
        super().__init__(
            ErrorCode.SENSOR_READING_NOT_FOUND,
            f"No sensor readings for device {device_id}",
            details={"device_id": device_id},
        )


class InvalidInputError(ControlError):
    """Raised when a request is missing required input."""

    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorCode.INVALID_INPUT, message, details)


class UnauthorizedError(ControlError):
    """Raised when credentials are missing or malformed."""

    status_code = 401

    def __init__(self, message: str = "Missing Authorization header"):
        super().__init__(ErrorCode.UNAUTHORIZED, message)


class ForbiddenError(ControlError):
    """Raised when valid-looking credentials lack admin access."""

    status_code = 403

    def __init__(self, message: str = "Forbidden: Admin access required"):
        super().__init__(ErrorCode.FORBIDDEN, message)
