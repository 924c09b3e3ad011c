"""
SMS transports: Ombala (primary) and Vonage (fallback).
"""

from __future__ import annotations

import re
from typing import Optional

import httpx

from config.settings import OmbalaSettings, VonageSettings
from exceptions import TransportNotConfiguredError
from notifications.base import HttpApiMixin, SmsTransport, truncate_sms
from utils.helpers import StringHelper
from utils.logger import get_logger


logger = get_logger("SmsTransport")


# ============================================================================
# OMBALA
# ============================================================================

class OmbalaSmsTransport(HttpApiMixin, SmsTransport):
    """
    Ombala messaging API.

    Success requires both a 2xx response and ``"success": true`` in the
    JSON body.
    """

    name = "ombala"

    def __init__(self, settings: OmbalaSettings, client: Optional[httpx.AsyncClient] = None):
        if settings.api_key is None or not settings.api_key.get_secret_value():
            raise TransportNotConfiguredError(
                "Missing OMBALA_API_KEY",
                transport=self.name,
                config_key="OMBALA_API_KEY",
            )

        self._api_key = settings.api_key.get_secret_value()
        self.api_url = settings.api_url
        self.timeout = settings.timeout
        self.from_name = settings.from_name
        self._client = client

    @staticmethod
    def format_phone_number(phone: str) -> str:
        """Reduce to digits and drop the 244 country code from full numbers."""
        cleaned = StringHelper.digits_only(phone)
        if cleaned.startswith("244") and len(cleaned) == 12:
            return cleaned[3:]
        return cleaned

    async def send_sms(self, to: str, body: str) -> bool:
        payload = {
            "message": truncate_sms(body),
            "from": self.from_name,
            "to": self.format_phone_number(to),
        }

        try:
            response = await self._post(
                json=payload,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
        except httpx.HTTPError as e:
            logger.error(f"[Ombala] Request failed: {e}")
            return False

        if not response.is_success:
            logger.error(f"[Ombala] API error ({response.status_code}): {response.text[:200]}")
            return False

        try:
            data = response.json()
        except ValueError:
            logger.error("[Ombala] Response body is not JSON")
            return False

        if not isinstance(data, dict) or not data.get("success"):
            reason = data.get("error") or data.get("message") if isinstance(data, dict) else None
            logger.error(f"[Ombala] SMS rejected: {reason or 'Unknown error'}")
            return False

        logger.info(f"[Ombala] SMS sent to {to} (id={data.get('messageId') or 'N/A'})")
        return True


# ============================================================================
# VONAGE
# ============================================================================

class VonageSmsTransport(HttpApiMixin, SmsTransport):
    """
    Vonage (Nexmo) SMS REST API.

    Credentials travel as form fields. The first message in the response
    must carry status ``"0"``.
    """

    name = "vonage"

    def __init__(self, settings: VonageSettings, client: Optional[httpx.AsyncClient] = None):
        if not settings.api_key or settings.api_secret is None or not settings.api_secret.get_secret_value():
            raise TransportNotConfiguredError(
                "Missing VONAGE_API_KEY or VONAGE_API_SECRET",
                transport=self.name,
                config_key="VONAGE_API_KEY",
            )

        self._api_key = settings.api_key
        self._api_secret = settings.api_secret.get_secret_value()
        self.api_url = settings.api_url
        self.timeout = settings.timeout
        self.from_number = settings.from_number
        self.default_country_code = settings.default_country_code
        self._client = client

    def format_phone_number(self, phone: str) -> str:
        """Keep digits and '+', prefixing the default country code when absent."""
        formatted = re.sub(r"[^\d+]", "", phone)
        if not formatted.startswith("+"):
            formatted = self.default_country_code + formatted
        return formatted

    async def send_sms(self, to: str, body: str) -> bool:
        form = {
            "api_key": self._api_key,
            "api_secret": self._api_secret,
            "from": self.from_number,
            "to": self.format_phone_number(to),
            "text": truncate_sms(body),
        }

        try:
            response = await self._post(data=form)
            response.raise_for_status()
            messages = response.json().get("messages") or []
        except httpx.HTTPError as e:
            logger.error(f"[Vonage] Request failed: {e}")
            return False
        except ValueError:
            logger.error("[Vonage] Response body is not JSON")
            return False

        if not messages:
            logger.error("[Vonage] Response carried no message status")
            return False

        first = messages[0]
        if str(first.get("status")) != "0":
            logger.error(f"[Vonage] SMS failed: {first.get('error-text', 'Unknown error')}")
            return False

        logger.info(f"[Vonage] SMS sent to {to} (id={first.get('message-id', 'N/A')})")
        return True
