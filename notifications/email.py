"""
Resend email transport.
"""

from __future__ import annotations

import html
from typing import Optional

import httpx

from config.constants import MessageTemplates
from config.settings import ResendSettings
from exceptions import TransportNotConfiguredError
from notifications.base import EmailTransport, HttpApiMixin
from utils.logger import get_logger


logger = get_logger("ResendEmailTransport")


class ResendEmailTransport(HttpApiMixin, EmailTransport):
    """
    Sends alert emails through the Resend HTTP API.

    The message body is rendered into a small HTML document. A 2xx
    response means the email was accepted.
    """

    name = "resend"

    def __init__(
        self,
        settings: ResendSettings,
        app_name: str = "Device Monitor",
        client: Optional[httpx.AsyncClient] = None,
    ):
        if settings.api_key is None or not settings.api_key.get_secret_value():
            raise TransportNotConfiguredError(
                "Missing RESEND_API_KEY",
                transport=self.name,
                config_key="RESEND_API_KEY",
            )

        self._api_key = settings.api_key.get_secret_value()
        self.api_url = settings.api_url
        self.timeout = settings.timeout
        self.sender = f"{settings.from_name} <{settings.from_email}>"
        self.app_name = app_name
        self._client = client

    def render_html(self, subject: str, body: str) -> str:
        return MessageTemplates.EMAIL_HTML.format(
            subject=html.escape(subject),
            message=html.escape(body),
            app_name=html.escape(self.app_name),
        )

    async def send_email(self, to: str, subject: str, body: str) -> bool:
        payload = {
            "from": self.sender,
            "to": [to],
            "subject": subject,
            "html": self.render_html(subject, body),
        }

        try:
            response = await self._post(
                json=payload,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
        except httpx.HTTPError as e:
            logger.error(f"[Resend] Request to {self.api_url} failed: {e}")
            return False

        if not response.is_success:
            logger.error(f"[Resend] API error ({response.status_code}): {response.text[:200]}")
            return False

        try:
            message_id = response.json().get("id")
        except ValueError:
            message_id = None

        logger.info(f"[Resend] Email sent to {to} (id={message_id or 'N/A'})")
        return True
