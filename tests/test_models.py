"""
Tests for the ORM models and the exception hierarchy.
"""

from __future__ import annotations

import pytest

from config.constants import MessageTemplates
from database.models import (
    Alert,
    AlertChannel,
    AlertStatus,
    AlertType,
    CheckProtocol,
    Device,
    DeviceStatus,
    DeviceType,
)
from exceptions import (
    AlertStateError,
    ConfigurationError,
    DatabaseQueryError,
    DeviceMonitorException,
    InvalidIntervalError,
    TransportNotConfiguredError,
    ValidationException,
)


def make_alert(alert_type=AlertType.DOWN, name="Edge-01") -> Alert:
    return Alert.create(
        device_id="dev-1",
        device_name=name,
        alert_type=alert_type,
        channel=AlertChannel.EMAIL,
        recipient_email="ops@example.com",
    )


# =============================================================================
# Device
# =============================================================================


class TestDevice:
    def test_defaults(self):
        device = Device(name="core-router", host="10.0.0.1")

        assert len(device.id) == 36
        assert device.device_type == DeviceType.SERVER
        assert device.check_protocol == "ping"
        assert device.check_interval == 60
        assert device.timeout == 5000
        assert device.status == DeviceStatus.UNKNOWN
        assert device.is_active is True
        assert device.timeout_seconds == 5.0

    def test_protocol_enum_is_stored_as_value(self):
        device = Device(name="api", host="api.example.com", check_protocol=CheckProtocol.HTTPS)
        assert device.check_protocol == "https"

    def test_update_status(self):
        device = Device(name="api", host="api.example.com")
        device.update_status("offline", 250)

        assert device.status == DeviceStatus.OFFLINE
        assert device.last_response_time == 250
        assert device.last_check is not None
        assert device.to_dict()["status"] == "offline"


# =============================================================================
# Alert
# =============================================================================


class TestAlert:
    @pytest.mark.parametrize(
        "alert_type,expected",
        [
            (AlertType.DOWN, '🚨 ALERT: Device "Edge-01" is OFFLINE!'),
            (AlertType.UP, '✅ RECOVERED: Device "Edge-01" is back ONLINE!'),
            (AlertType.WARNING, '⚠️ WARNING: Device "Edge-01" is reporting anomalies.'),
            (AlertType.SLOW_RESPONSE, '🐢 SLOW: Device "Edge-01" is responding slowly.'),
        ],
    )
    def test_message_rendering(self, alert_type, expected):
        assert make_alert(alert_type).message == expected

    def test_every_kind_has_a_template(self):
        assert set(MessageTemplates.by_kind()) == {kind.value for kind in AlertType}

    def test_name_with_braces_renders_literally(self):
        assert make_alert(name="{edge}").message == '🚨 ALERT: Device "{edge}" is OFFLINE!'

    def test_new_alert_is_pending(self):
        alert = make_alert()

        assert alert.is_pending
        assert alert.status == AlertStatus.PENDING
        assert alert.sent_at is None
        assert alert.created_at is not None

    def test_mark_as_sent_stamps_time(self):
        alert = make_alert()
        alert.mark_as_sent()

        assert alert.status == AlertStatus.SENT
        assert alert.sent_at is not None
        assert alert.to_dict()["status"] == "sent"

    def test_mark_as_failed_leaves_sent_at_empty(self):
        alert = make_alert()
        alert.mark_as_failed()

        assert alert.status == AlertStatus.FAILED
        assert alert.sent_at is None

    @pytest.mark.parametrize(
        "first,second",
        [
            ("mark_as_sent", "mark_as_failed"),
            ("mark_as_failed", "mark_as_sent"),
            ("mark_as_sent", "mark_as_sent"),
        ],
    )
    def test_outcome_is_final(self, first, second):
        alert = make_alert()
        getattr(alert, first)()

        with pytest.raises(AlertStateError) as exc_info:
            getattr(alert, second)()

        assert exc_info.value.details["alert_id"] == alert.id


# =============================================================================
# Exceptions
# =============================================================================


class TestExceptions:
    def test_codes_and_hierarchy(self):
        assert InvalidIntervalError().error_code == 3002
        assert isinstance(InvalidIntervalError(), ValidationException)
        assert isinstance(TransportNotConfiguredError(), ConfigurationError)
        assert DatabaseQueryError().recoverable is True
        assert ConfigurationError("bad").recoverable is False

    def test_string_and_dict_forms(self):
        error = DeviceMonitorException("boom", error_code=1234).with_details(device_id="dev-1")

        assert str(error) == "[1234] boom"
        data = error.to_dict()
        assert data["type"] == "DeviceMonitorException"
        assert data["details"] == {"device_id": "dev-1"}
        assert "Code: 1234" in error.log_format()

    def test_from_exception_keeps_cause(self):
        cause = ValueError("bad value")
        error = DeviceMonitorException.from_exception(cause)

        assert error.message == "bad value"
        assert error.cause is cause
        assert error.to_dict()["cause"] == "bad value"

    def test_interval_error_records_value(self):
        error = InvalidIntervalError(interval=0)
        assert error.details == {"field": "check_interval", "value": "0"}
