"""Verification and password reset emails."""

import logging
from html import escape
from urllib.parse import urlencode

from libala.config import get_settings
from libala.tasks.email import send_email

logger = logging.getLogger(__name__)
settings = get_settings()

VERIFICATION_SUBJECT = "Vérifiez votre adresse email - Libala"
PASSWORD_RESET_SUBJECT = "Réinitialisation de votre mot de passe - Libala"


def build_link(path: str, token: str) -> str:
    """Absolute link to a front-end page carrying ``token``."""
    return f"{settings.site_url.rstrip('/')}{path}?{urlencode({'token': token})}"


def dispatch_email(to: str, subject: str, html: str) -> None:
    """Queue an email without waiting for delivery.

    Queueing failures are logged and swallowed so the calling request still
    succeeds.
    """
    try:
        send_email.delay(to, subject, html)
    except Exception as e:
        logger.error(f"Failed to queue email '{subject}': {e}")


def _log_dev_link(kind: str, link: str) -> None:
    if settings.is_development and not settings.resend_api_key:
        logger.info(f"RESEND_API_KEY not configured. {kind} link (dev): {link}")


def send_verification_email(email: str, first_name: str | None, token: str) -> None:
    """Send the link that confirms an account's email address."""
    link = build_link("/verify-email", token)
    _log_dev_link("Verification", link)
    html = f"""
        <div style="font-family: sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
          <h2>Bienvenue sur Libala, {escape(first_name or "Inconnu")} !</h2>
          <p>Merci de vous être inscrit. Pour activer votre compte, merci de confirmer votre adresse email.</p>
          <p style="text-align: center; margin: 30px 0;">
            <a href="{link}">Confirmer mon email</a>
          </p>
          <p>Ce lien expirera dans {settings.verification_token_hours} heures.
          Si vous n'êtes pas à l'origine de cette inscription, vous pouvez ignorer cet email.</p>
        </div>
    """
    dispatch_email(email, VERIFICATION_SUBJECT, html)


def send_password_reset_email(email: str, token: str) -> None:
    """Send the link that lets a user choose a new password."""
    link = build_link("/reset-password", token)
    _log_dev_link("Password reset", link)
    html = f"""
        <div style="font-family: sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
          <h2>Réinitialisation de mot de passe</h2>
          <p>Vous avez demandé la réinitialisation de votre mot de passe pour votre compte Libala.</p>
          <p style="text-align: center; margin: 30px 0;">
            <a href="{link}">Réinitialiser mon mot de passe</a>
          </p>
          <p>Ce lien expirera dans {settings.reset_token_minutes} minutes.
          Si vous n'avez pas demandé ce changement, merci d'ignorer cet email.</p>
        </div>
    """
    dispatch_email(email, PASSWORD_RESET_SUBJECT, html)
