"""
Outgoing email.

The ``log`` transport (default) writes the message to the application log,
which is what development and tests use. The ``http`` transport posts the
message as JSON to a transactional email API (``EMAIL_API_URL``) with the
API key as a bearer token.
"""

from __future__ import annotations

from typing import Optional

import httpx

from matlinks.core.logging_config import get_logger
from matlinks.server.core.config import EmailConfig

logger = get_logger(__name__)


class EmailService:
    """Send transactional emails."""

    def __init__(self, config: EmailConfig, http_client: Optional[httpx.AsyncClient] = None) -> None:
        self.config = config
        self._http_client = http_client

    async def send_email(self, to: str, subject: str, html: str, text: Optional[str] = None) -> bool:
        """Deliver one email.

        Returns:
            True when the transport accepted the message. Delivery failures
            are logged and reported as False so that callers can record them.
        """
        if self.config.transport == "http":
            return await self._send_http(to, subject, html, text)

        logger.info(f"Email to {to}: {subject}")
        logger.debug(f"Email body for {to}:\n{text or html}")
        return True

    async def _send_http(self, to: str, subject: str, html: str, text: Optional[str]) -> bool:
        if not self.config.api_url:
            logger.error("EMAIL_TRANSPORT=http but EMAIL_API_URL is not set")
            return False

        payload = {"from": self.config.sender, "to": [to], "subject": subject, "html": html}
        if text:
            payload["text"] = text
        headers = {"Authorization": f"Bearer {self.config.api_key}"} if self.config.api_key else {}

        client = self._http_client or httpx.AsyncClient(timeout=10.0)
        try:
            response = await client.post(self.config.api_url, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to send email to {to}: {e}")
            return False
        finally:
            if self._http_client is None:
                await client.aclose()

        logger.info(f"Email sent to {to}: {subject}")
        return True
