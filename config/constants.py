"""
Constants Module for Device Monitor

Contains constant values, message templates and static
configuration used throughout the application.
"""

from __future__ import annotations

from typing import Dict, Final


class MessageTemplates:
    """
    Alert Message Templates

    One template per alert kind. ``{device_name}`` is the only
    placeholder; rendering happens once when the alert is created.
    """

    DEVICE_DOWN: Final[str] = '🚨 ALERT: Device "{device_name}" is OFFLINE!'
    DEVICE_UP: Final[str] = '✅ RECOVERED: Device "{device_name}" is back ONLINE!'
    DEVICE_WARNING: Final[str] = '⚠️ WARNING: Device "{device_name}" is reporting anomalies.'
    DEVICE_SLOW: Final[str] = '🐢 SLOW: Device "{device_name}" is responding slowly.'

    EMAIL_SUBJECT: Final[str] = "{prefix}: {device_name}"

    EMAIL_HTML: Final[str] = """<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <title>{subject}</title>
</head>
<body style="font-family: sans-serif; color: #333; max-width: 600px; margin: 0 auto;">
  <h2>{subject}</h2>
  <div style="font-size: 18px; padding: 16px; border-left: 4px solid #667eea; background: #f9f9f9;">
    {message}
  </div>
  <p style="color: #888; font-size: 12px;">This alert was generated automatically by {app_name}.</p>
</body>
</html>
"""

    @classmethod
    def by_kind(cls) -> Dict[str, str]:
        """Template lookup keyed by alert kind value."""
        return {
            "down": cls.DEVICE_DOWN,
            "up": cls.DEVICE_UP,
            "warning": cls.DEVICE_WARNING,
            "slow_response": cls.DEVICE_SLOW,
        }


class Limits:
    """Hard limits."""

    SMS_MAX_LENGTH: Final[int] = 160
    ERROR_MESSAGE_MAX_LENGTH: Final[int] = 500


class Defaults:
    """
    Default Values

    Provides default values for device checks.
    """

    HTTP_PORT: Final[int] = 80
    HTTPS_PORT: Final[int] = 443
    TCP_PORT: Final[int] = 80

    CHECK_INTERVAL: Final[int] = 60  # seconds
    CHECK_TIMEOUT_MS: Final[int] = 5000

    LOG_PAGE_SIZE: Final[int] = 100
    RECENT_ALERTS: Final[int] = 50
