"""Transactional email delivery through the Resend HTTP API."""

import logging

import httpx

from libala.config import get_settings

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class EmailService:
    """Sends a single HTML email."""

    def __init__(self) -> None:
        self.settings = get_settings()
        self.timeout = self.settings.email_timeout_seconds

    @property
    def is_configured(self) -> bool:
        """Check if an API key is available for outbound mail."""
        return bool(self.settings.resend_api_key)

    def send(self, to: str, subject: str, html: str) -> bool:
        """Send an email.

        Returns False without sending when no API key is configured.

        Raises:
            httpx.HTTPError: the provider rejected the request or was unreachable
        """
        if not self.is_configured:
            logger.info(f"RESEND_API_KEY not configured, skipping email '{subject}'")
            return False

        with httpx.Client(timeout=self.timeout) as client:
            response = client.post(
                RESEND_API_URL,
                headers={"Authorization": f"Bearer {self.settings.resend_api_key}"},
                json={
                    "from": self.settings.email_from,
                    "to": [to],
                    "subject": subject,
                    "html": html,
                },
            )
            response.raise_for_status()

        logger.info(f"Sent email '{subject}'")
        return True
