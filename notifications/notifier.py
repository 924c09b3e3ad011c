"""
Alert Notifier

Independent email and SMS delivery over injected transports.

``send_email`` / ``send_sms`` keep the plain boolean contract and never
raise. ``deliver_email`` / ``deliver_sms`` return a ``DeliveryResult``
that tells an unconfigured channel apart from a failed attempt.

SMS transports are tried in order until one succeeds.
"""

from __future__ import annotations

import enum
from typing import Any, Dict, Optional, Sequence

import httpx

from config.settings import Settings, get_settings
from exceptions import TransportNotConfiguredError
from notifications.base import (
    EmailTransport,
    NullEmailTransport,
    NullSmsTransport,
    SmsTransport,
)
from notifications.email import ResendEmailTransport
from notifications.sms import OmbalaSmsTransport, VonageSmsTransport
from utils.logger import get_logger


logger = get_logger("AlertNotifier")


class DeliveryResult(str, enum.Enum):
    """Outcome of one delivery request"""
    SENT = "sent"
    FAILED = "failed"
    UNAVAILABLE = "unavailable"

    @property
    def ok(self) -> bool:
        return self is DeliveryResult.SENT


class AlertNotifier:
    """
    Email / SMS delivery with per-channel success reporting.
    """

    def __init__(
        self,
        email_transport: Optional[EmailTransport] = None,
        sms_transports: Optional[Sequence[SmsTransport]] = None,
    ):
        self.email_transport = email_transport or NullEmailTransport()
        self.sms_transports = list(sms_transports or []) or [NullSmsTransport()]

        self._stats: Dict[str, int] = {
            "email_sent": 0,
            "email_failed": 0,
            "sms_sent": 0,
            "sms_failed": 0,
            "unavailable": 0,
        }

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> "AlertNotifier":
        """
        Build the notifier from configured credentials.

        A transport whose credentials are missing is replaced by its null
        variant and a warning is logged.
        """
        settings = settings or get_settings()

        try:
            email_transport: EmailTransport = ResendEmailTransport(
                settings.resend, app_name=settings.app_name, client=client
            )
            logger.info("Email transport configured: resend")
        except TransportNotConfiguredError as e:
            logger.warning(f"Email transport not configured: {e.message}")
            email_transport = NullEmailTransport()

        sms_transports = []
        for factory, section in (
            (OmbalaSmsTransport, settings.ombala),
            (VonageSmsTransport, settings.vonage),
        ):
            try:
                sms_transports.append(factory(section, client=client))
                logger.info(f"SMS transport configured: {factory.name}")
            except TransportNotConfiguredError as e:
                logger.warning(f"SMS transport {factory.name} not configured: {e.message}")

        return cls(email_transport=email_transport, sms_transports=sms_transports)

    @property
    def email_available(self) -> bool:
        return self.email_transport.available

    @property
    def sms_available(self) -> bool:
        return any(transport.available for transport in self.sms_transports)

    # ------------------------------------------------------------------
    # EMAIL
    # ------------------------------------------------------------------

    async def deliver_email(self, to: str, subject: str, body: str) -> DeliveryResult:
        transport = self.email_transport
        if not transport.available:
            logger.warning("Email service not available")
            self._stats["unavailable"] += 1
            return DeliveryResult.UNAVAILABLE

        try:
            sent = await transport.send_email(to, subject, body)
        except Exception as e:
            logger.error(f"Email transport {transport.name} raised: {e}")
            sent = False

        if sent:
            self._stats["email_sent"] += 1
            return DeliveryResult.SENT

        self._stats["email_failed"] += 1
        return DeliveryResult.FAILED

    async def send_email(self, to: str, subject: str, body: str) -> bool:
        """Send one email. Returns True only when it was accepted."""
        return (await self.deliver_email(to, subject, body)).ok

    # ------------------------------------------------------------------
    # SMS
    # ------------------------------------------------------------------

    async def deliver_sms(self, to: str, body: str) -> DeliveryResult:
        available = [t for t in self.sms_transports if t.available]
        if not available:
            logger.warning("No SMS service available")
            self._stats["unavailable"] += 1
            return DeliveryResult.UNAVAILABLE

        for transport in available:
            try:
                sent = await transport.send_sms(to, body)
            except Exception as e:
                logger.error(f"SMS transport {transport.name} raised: {e}")
                sent = False

            if sent:
                self._stats["sms_sent"] += 1
                return DeliveryResult.SENT

            logger.warning(f"SMS transport {transport.name} failed, trying next")

        self._stats["sms_failed"] += 1
        return DeliveryResult.FAILED

    async def send_sms(self, to: str, body: str) -> bool:
        """Send one SMS. Returns True only when some transport accepted it."""
        return (await self.deliver_sms(to, body)).ok

    def get_stats(self) -> Dict[str, Any]:
        return {
            **self._stats,
            "email_transport": self.email_transport.name,
            "sms_transports": [t.name for t in self.sms_transports],
        }
