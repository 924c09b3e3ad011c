"""
Monitoring Exception Classes for Device Monitor

Probe failures are never raised; they are result values. The classes
here cover misuse of the alert lifecycle and notification wiring.
"""

from __future__ import annotations

from typing import Any, Optional

from exceptions.base import ConfigurationError, DeviceMonitorException


class MonitoringException(DeviceMonitorException):
    """
    Base Monitoring Exception

    Parent class for all monitoring-engine exceptions.
    """

    default_error_code = 4000


class AlertStateError(MonitoringException):
    """
    Alert State Error

    Raised on an illegal alert status transition. Alerts move from
    ``pending`` to ``sent`` or ``failed`` exactly once.
    """

    default_error_code = 4001

    def __init__(
        self,
        message: str = "Illegal alert status transition",
        alert_id: Optional[str] = None,
        current_status: Optional[str] = None,
        target_status: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)
        self._note(alert_id=alert_id, current_status=current_status, target_status=target_status)


class TransportNotConfiguredError(ConfigurationError):
    """
    Transport Not Configured Error

    Raised by a notification transport constructor when its credentials
    are missing. The notifier factory turns it into a null transport.
    """

    default_error_code = 1101

    def __init__(
        self,
        message: str = "Notification transport is not configured",
        transport: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)
        self._note(transport=transport)
