"""
Configuration Package for Device Monitor

This package contains all configuration-related modules including:
- Settings management with environment variable support
- Constants and message templates used throughout the application
"""

from config.settings import (
    Settings,
    DatabaseSettings,
    MonitoringSettings,
    AlertSettings,
    ResendSettings,
    OmbalaSettings,
    VonageSettings,
    LoggingSettings,
    get_settings,
)

from config.constants import (
    MessageTemplates,
    Limits,
    Defaults,
)

__all__ = [
    # Settings
    "Settings",
    "DatabaseSettings",
    "MonitoringSettings",
    "AlertSettings",
    "ResendSettings",
    "OmbalaSettings",
    "VonageSettings",
    "LoggingSettings",
    "get_settings",

    # Constants
    "MessageTemplates",
    "Limits",
    "Defaults",
]
