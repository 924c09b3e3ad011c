"""
Database Package for Device Monitor

Provides database connectivity, models, and repository patterns
for data persistence using SQLAlchemy with async support.
"""

from database.manager import DatabaseManager

from database.models import (
    Base,
    Device,
    MonitoringLog,
    Alert,
    DeviceType,
    DeviceStatus,
    CheckProtocol,
    AlertType,
    AlertChannel,
    AlertStatus,
)

from database.repositories import (
    BaseRepository,
    DeviceRepository,
    MonitoringLogRepository,
    AlertRepository,
)

__all__ = [
    # Connection
    "DatabaseManager",

    # Models
    "Base",
    "Device",
    "MonitoringLog",
    "Alert",
    "DeviceType",
    "DeviceStatus",
    "CheckProtocol",
    "AlertType",
    "AlertChannel",
    "AlertStatus",

    # Repositories
    "BaseRepository",
    "DeviceRepository",
    "MonitoringLogRepository",
    "AlertRepository",
]
