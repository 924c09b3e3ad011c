"""
Notifications Package for Device Monitor

Email and SMS transports and the AlertNotifier that drives them.
"""

from notifications.base import (
    EmailTransport,
    SmsTransport,
    NullEmailTransport,
    NullSmsTransport,
)
from notifications.email import ResendEmailTransport
from notifications.sms import OmbalaSmsTransport, VonageSmsTransport
from notifications.notifier import AlertNotifier, DeliveryResult

__all__ = [
    "EmailTransport",
    "SmsTransport",
    "NullEmailTransport",
    "NullSmsTransport",
    "ResendEmailTransport",
    "OmbalaSmsTransport",
    "VonageSmsTransport",
    "AlertNotifier",
    "DeliveryResult",
]
