"""Celery task for outbound email."""

import logging

import httpx

from libala.celery_app import app as celery_app
from libala.services.email import EmailService

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3, default_retry_delay=30)
def send_email(self, to: str, subject: str, html: str) -> dict:
    """Deliver an email in the background.

    Args:
        to: Recipient address
        subject: Subject line
        html: HTML body

    Returns:
        dict with delivery status
    """
    try:
        sent = EmailService().send(to, subject, html)
    except httpx.HTTPError as e:
        logger.error(f"Email '{subject}' failed (attempt {self.request.retries + 1}): {e}")
        raise self.retry(exc=e) from e

    return {"success": True, "sent": sent}
