"""
Exceptions Package for Device Monitor

Provides the exception hierarchy for error handling
throughout the application.
"""

from exceptions.base import (
    DeviceMonitorException,
    ConfigurationError,
    InitializationError,
)

from exceptions.database import (
    DatabaseException,
    DatabaseConnectionError,
    DatabaseQueryError,
)

from exceptions.validation import (
    ValidationException,
    InvalidIntervalError,
    InvalidTimeoutError,
)

from exceptions.monitoring import (
    MonitoringException,
    AlertStateError,
    TransportNotConfiguredError,
)

__all__ = [
    # Base exceptions
    "DeviceMonitorException",
    "ConfigurationError",
    "InitializationError",

    # Database exceptions
    "DatabaseException",
    "DatabaseConnectionError",
    "DatabaseQueryError",

    # Validation exceptions
    "ValidationException",
    "InvalidIntervalError",
    "InvalidTimeoutError",

    # Monitoring exceptions
    "MonitoringException",
    "AlertStateError",
    "TransportNotConfiguredError",
]
