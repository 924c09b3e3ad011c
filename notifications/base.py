"""
Notification Transport Interfaces

Every transport answers a single delivery attempt with a boolean.
Unconfigured channels are represented by the null transports, which
report ``available = False`` and never perform I/O.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from config.constants import Limits
from utils.helpers import StringHelper


def truncate_sms(body: str) -> str:
    """Fit a message into one SMS segment."""
    return StringHelper.truncate(body, Limits.SMS_MAX_LENGTH)


class EmailTransport(ABC):
    """Email delivery capability."""

    name: str = "email"

    @property
    def available(self) -> bool:
        return True

    @abstractmethod
    async def send_email(self, to: str, subject: str, body: str) -> bool:
        """Deliver one email. Returns True when the provider accepted it."""


class SmsTransport(ABC):
    """SMS delivery capability."""

    name: str = "sms"

    @property
    def available(self) -> bool:
        return True

    @abstractmethod
    async def send_sms(self, to: str, body: str) -> bool:
        """Deliver one SMS. Returns True when the provider accepted it."""


class NullEmailTransport(EmailTransport):
    """Stands in for an unconfigured email provider."""

    name = "null-email"

    @property
    def available(self) -> bool:
        return False

    async def send_email(self, to: str, subject: str, body: str) -> bool:
        return False


class NullSmsTransport(SmsTransport):
    """Stands in for an unconfigured SMS provider."""

    name = "null-sms"

    @property
    def available(self) -> bool:
        return False

    async def send_sms(self, to: str, body: str) -> bool:
        return False


class HttpApiMixin:
    """
    Shared POST helper for transports that talk to an HTTP API.

    A client passed in is reused and left open; otherwise a short-lived
    client is created per request.
    """

    api_url: str
    timeout: float
    _client: Optional[httpx.AsyncClient] = None

    async def _post(self, **kwargs: Any) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(self.api_url, timeout=self.timeout, **kwargs)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.api_url, **kwargs)
