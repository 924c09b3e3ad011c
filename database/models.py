"""
============================================================================
DEVICE MONITOR - DATABASE MODELS
============================================================================
SQLAlchemy ORM models for monitored devices, their check history and
the alerts raised on status transitions.

Version: 1.0.0
License: MIT
============================================================================
"""

import enum
from typing import Any, Dict, Optional

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Text, Float,
    Enum, ForeignKey, Index,
)
from sqlalchemy.orm import declarative_base

from config.constants import Defaults, MessageTemplates
from exceptions import AlertStateError
from utils.helpers import StringHelper, TimeHelper


# ============================================================================
# BASE MODEL CONFIGURATION
# ============================================================================

Base = declarative_base()


class TimestampMixin:
    """
    Mixin to add created_at and updated_at timestamps to models.
    Both are naive UTC.
    """
    created_at = Column(
        DateTime,
        nullable=False,
        default=TimeHelper.get_utc_now,
        index=True
    )
    updated_at = Column(
        DateTime,
        nullable=False,
        default=TimeHelper.get_utc_now,
        onupdate=TimeHelper.get_utc_now
    )


def _enum_column(enum_cls, **kwargs) -> Column:
    """Enum column persisted by value, as VARCHAR, without a native type."""
    return Column(
        Enum(
            enum_cls,
            native_enum=False,
            length=32,
            values_callable=lambda members: [member.value for member in members],
        ),
        **kwargs
    )


# ============================================================================
# ENUMERATIONS
# ============================================================================

class DeviceType(str, enum.Enum):
    """Kind of device. Descriptive only, never affects checks"""
    SERVER = "server"
    ROUTER = "router"
    SWITCH = "switch"
    API = "api"
    DOMAIN = "domain"
    PORT = "port"
    SERVICE = "service"


class DeviceStatus(str, enum.Enum):
    """Health status of a device"""
    ONLINE = "online"
    OFFLINE = "offline"
    WARNING = "warning"
    UNKNOWN = "unknown"


class CheckProtocol(str, enum.Enum):
    """Protocol used to check a device"""
    PING = "ping"
    HTTP = "http"
    HTTPS = "https"
    TCP = "tcp"
    DNS = "dns"


class AlertType(str, enum.Enum):
    """Kind of alert raised on a transition"""
    DOWN = "down"
    UP = "up"
    WARNING = "warning"
    SLOW_RESPONSE = "slow_response"


class AlertChannel(str, enum.Enum):
    """Notification channel requested for an alert"""
    EMAIL = "email"
    SMS = "sms"
    BOTH = "both"


class AlertStatus(str, enum.Enum):
    """Delivery status of an alert"""
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


# ============================================================================
# DEVICE MODEL
# ============================================================================

class Device(Base, TimestampMixin):
    """
    Model for a monitored network endpoint.

    ``check_protocol`` is stored as plain text so a value outside
    ``CheckProtocol`` still loads and is reported by the probe.
    """
    __tablename__ = "devices"

    # Primary Key
    id = Column(String(36), primary_key=True)

    # Device Information
    name = Column(String(255), nullable=False)
    device_type = _enum_column(DeviceType, nullable=False, default=DeviceType.SERVER)
    host = Column(String(255), nullable=False)
    port = Column(Integer, nullable=True)

    # Check Configuration
    check_protocol = Column(String(16), nullable=False, default=CheckProtocol.PING.value)
    check_interval = Column(Float, nullable=False, default=Defaults.CHECK_INTERVAL)  # seconds
    timeout = Column(Integer, nullable=False, default=Defaults.CHECK_TIMEOUT_MS)  # milliseconds

    # Current State
    status = _enum_column(DeviceStatus, nullable=False, default=DeviceStatus.UNKNOWN, index=True)
    last_check = Column(DateTime, nullable=True)
    last_response_time = Column(Integer, nullable=True)  # milliseconds
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    # Ownership
    user_id = Column(String(64), nullable=True, index=True)

    __table_args__ = (
        Index('idx_device_active_user', 'is_active', 'user_id'),
    )

    def __init__(self, **kwargs: Any) -> None:
        kwargs.setdefault("id", StringHelper.new_id())
        kwargs.setdefault("device_type", DeviceType.SERVER)
        kwargs.setdefault("check_protocol", CheckProtocol.PING.value)
        kwargs.setdefault("check_interval", Defaults.CHECK_INTERVAL)
        kwargs.setdefault("timeout", Defaults.CHECK_TIMEOUT_MS)
        kwargs.setdefault("status", DeviceStatus.UNKNOWN)
        kwargs.setdefault("is_active", True)

        protocol = kwargs["check_protocol"]
        if isinstance(protocol, CheckProtocol):
            kwargs["check_protocol"] = protocol.value

        super().__init__(**kwargs)

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / 1000.0

    def update_status(self, status: DeviceStatus, response_time: Optional[int] = None) -> None:
        """Record the outcome of a check on the device."""
        now = TimeHelper.get_utc_now()
        self.status = DeviceStatus(status)
        self.last_check = now
        self.last_response_time = response_time
        self.updated_at = now

    def to_dict(self) -> Dict[str, Any]:
        """Convert device to dictionary"""
        return {
            "id": self.id,
            "name": self.name,
            "device_type": DeviceType(self.device_type).value,
            "host": self.host,
            "port": self.port,
            "check_protocol": self.check_protocol,
            "check_interval": self.check_interval,
            "timeout": self.timeout,
            "status": DeviceStatus(self.status).value,
            "last_check": self.last_check.isoformat() if self.last_check else None,
            "last_response_time": self.last_response_time,
            "is_active": self.is_active,
            "user_id": self.user_id,
        }

    def __repr__(self) -> str:
        return f"<Device {self.id} {self.name!r} {self.check_protocol}://{self.host}>"


# ============================================================================
# MONITORING LOG MODEL
# ============================================================================

class MonitoringLog(Base):
    """
    Immutable record of one check outcome.
    """
    __tablename__ = "monitoring_logs"

    id = Column(String(36), primary_key=True)
    device_id = Column(
        String(36),
        ForeignKey("devices.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    status = _enum_column(DeviceStatus, nullable=False)
    response_time = Column(Integer, nullable=True)  # milliseconds
    error_message = Column(Text, nullable=True)
    checked_at = Column(DateTime, nullable=False, default=TimeHelper.get_utc_now, index=True)

    __table_args__ = (
        Index('idx_monitoring_log_device_time', 'device_id', 'checked_at'),
    )

    def __init__(self, **kwargs: Any) -> None:
        kwargs.setdefault("id", StringHelper.new_id())
        kwargs.setdefault("checked_at", TimeHelper.get_utc_now())
        super().__init__(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert monitoring log to dictionary"""
        return {
            "id": self.id,
            "device_id": self.device_id,
            "status": DeviceStatus(self.status).value,
            "response_time": self.response_time,
            "error_message": self.error_message,
            "checked_at": self.checked_at.isoformat(),
        }


# ============================================================================
# ALERT MODEL
# ============================================================================

class Alert(Base, TimestampMixin):
    """
    Model for a notification raised on a device status transition.

    Status moves once, from ``pending`` to ``sent`` or ``failed``.
    ``device_id`` carries no foreign key so the alert outlives its device.
    """
    __tablename__ = "alerts"

    # Primary Key
    id = Column(String(36), primary_key=True)

    # Device Reference
    device_id = Column(String(36), nullable=False, index=True)
    device_name = Column(String(255), nullable=False)

    # Alert Information
    alert_type = _enum_column(AlertType, nullable=False, index=True)
    message = Column(Text, nullable=False)
    channel = _enum_column(AlertChannel, nullable=False)

    # Delivery
    status = _enum_column(AlertStatus, nullable=False, default=AlertStatus.PENDING, index=True)
    recipient_email = Column(String(255), nullable=True)
    recipient_phone = Column(String(32), nullable=True)
    sent_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index('idx_alert_device_created', 'device_id', 'created_at'),
    )

    def __init__(self, **kwargs: Any) -> None:
        kwargs.setdefault("id", StringHelper.new_id())
        kwargs.setdefault("status", AlertStatus.PENDING)
        kwargs.setdefault("created_at", TimeHelper.get_utc_now())
        super().__init__(**kwargs)

    @staticmethod
    def render_message(alert_type: AlertType, device_name: str) -> str:
        """Render the fixed template for an alert kind."""
        template = MessageTemplates.by_kind()[AlertType(alert_type).value]
        return template.format(device_name=device_name)

    @classmethod
    def create(
        cls,
        device_id: str,
        device_name: str,
        alert_type: AlertType,
        channel: AlertChannel,
        recipient_email: Optional[str] = None,
        recipient_phone: Optional[str] = None,
    ) -> "Alert":
        """
        Build a new pending alert with its message rendered.

        Args:
            device_id: Identity of the device
            device_name: Display name, copied onto the alert
            alert_type: Kind of alert
            channel: Requested delivery channel
            recipient_email: Email recipient, if any
            recipient_phone: Phone recipient, if any

        Returns:
            Pending alert, not yet persisted
        """
        alert_type = AlertType(alert_type)
        return cls(
            device_id=device_id,
            device_name=device_name,
            alert_type=alert_type,
            message=cls.render_message(alert_type, device_name),
            channel=AlertChannel(channel),
            recipient_email=recipient_email,
            recipient_phone=recipient_phone,
        )

    @property
    def is_pending(self) -> bool:
        return self.status == AlertStatus.PENDING

    def _ensure_pending(self, target: AlertStatus) -> None:
        if not self.is_pending:
            raise AlertStateError(
                f"Alert {self.id} is already {AlertStatus(self.status).value}",
                alert_id=self.id,
                current_status=AlertStatus(self.status).value,
                target_status=target.value,
            )

    def mark_as_sent(self) -> None:
        """Mark alert as sent"""
        self._ensure_pending(AlertStatus.SENT)
        self.status = AlertStatus.SENT
        self.sent_at = TimeHelper.get_utc_now()

    def mark_as_failed(self) -> None:
        """Mark alert as failed"""
        self._ensure_pending(AlertStatus.FAILED)
        self.status = AlertStatus.FAILED

    def to_dict(self) -> Dict[str, Any]:
        """Convert alert to dictionary"""
        return {
            "id": self.id,
            "device_id": self.device_id,
            "device_name": self.device_name,
            "type": AlertType(self.alert_type).value,
            "message": self.message,
            "channel": AlertChannel(self.channel).value,
            "status": AlertStatus(self.status).value,
            "recipient_email": self.recipient_email,
            "recipient_phone": self.recipient_phone,
            "sent_at": self.sent_at.isoformat() if self.sent_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
