"""
Root of the Device Monitor exception hierarchy.

Error codes are grouped by concern:

    1xxx  configuration and startup
    2xxx  database
    3xxx  device validation
    4xxx  monitoring engine

Every error keeps a ``details`` mapping that is written to the logs
alongside the message, and the lower-level exception it wraps, if any.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class DeviceMonitorException(Exception):
    """
    Base class for every error raised by the monitoring engine.

    Subclasses set ``default_error_code`` and ``default_recoverable``;
    both can be overridden per instance.
    """

    default_error_code: int = 1000
    default_recoverable: bool = True

    def __init__(
        self,
        message: str = "An error occurred",
        error_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
        recoverable: Optional[bool] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details: Dict[str, Any] = dict(details or {})
        self.cause = cause
        self.recoverable = self.default_recoverable if recoverable is None else recoverable
        self.timestamp = datetime.now(timezone.utc).replace(tzinfo=None)

    def _note(self, **fields: Any) -> None:
        """Copy the fields that carry a value into ``details``."""
        self.details.update({key: value for key, value in fields.items() if value not in (None, "")})

    def with_details(self, **kwargs: Any) -> "DeviceMonitorException":
        self.details.update(kwargs)
        return self

    @classmethod
    def from_exception(
        cls,
        exception: BaseException,
        message: Optional[str] = None,
        **kwargs: Any
    ) -> "DeviceMonitorException":
        """Wrap a lower-level exception, reusing its text as the message."""
        return cls(message=message or str(exception), cause=exception, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": type(self).__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
            "cause": str(self.cause) if self.cause is not None else None,
            "timestamp": self.timestamp.isoformat(),
        }

    def log_format(self) -> str:
        """One-line rendering for log records."""
        text = f"{type(self).__name__} | Code: {self.error_code} | Message: {self.message}"
        if self.details:
            text += f" | Details: {self.details}"
        if self.cause is not None:
            text += f" | Cause: {self.cause}"
        return text

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, error_code={self.error_code}, details={self.details})"


class ConfigurationError(DeviceMonitorException):
    """A setting is missing or unusable."""

    default_error_code = 1100
    default_recoverable = False

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self._note(config_key=config_key)


class InitializationError(DeviceMonitorException):
    """A component was started before the components it depends on."""

    default_error_code = 1200
    default_recoverable = False

    def __init__(self, message: str, component: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self._note(component=component)
