"""
Device configuration errors, raised when a device is scheduled.
"""

from __future__ import annotations

from typing import Any, Optional

from exceptions.base import DeviceMonitorException

VALUE_PREVIEW_LENGTH = 100


class ValidationException(DeviceMonitorException):
    """
    A device field holds a value the scheduler cannot work with.

    The offending value is stored as a short string preview.
    """

    default_error_code = 3000
    default_recoverable = True

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)
        preview = None
        if value is not None:
            preview = str(value)
            if len(preview) > VALUE_PREVIEW_LENGTH:
                preview = preview[:VALUE_PREVIEW_LENGTH] + "..."
        self._note(field=field, value=preview)


class InvalidIntervalError(ValidationException):
    """Check interval is not a positive number of seconds."""

    default_error_code = 3002

    def __init__(
        self,
        message: str = "Check interval must be greater than zero",
        interval: Optional[Any] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, field="check_interval", value=interval, **kwargs)


class InvalidTimeoutError(ValidationException):
    """Timeout is not a positive number of milliseconds."""

    default_error_code = 3003

    def __init__(
        self,
        message: str = "Timeout must be greater than zero",
        timeout: Optional[Any] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, field="timeout", value=timeout, **kwargs)
