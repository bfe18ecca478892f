"""Email notification helpers."""

from __future__ import annotations

import logging
import smtplib
from collections.abc import Iterable
from email.message import EmailMessage
from urllib.parse import urlencode

from fastapi import BackgroundTasks
from jinja2 import Environment, select_autoescape

from repairdesk.core.config import get_settings

logger = logging.getLogger(__name__)

_ENV = Environment(autoescape=select_autoescape(["html", "xml"]))
_MAGIC_LINK_HTML = _ENV.from_string(
    """<p>Hello,</p>
<p>Use the button below to sign in to {{ host }}. The link can be used once
and expires in {{ ttl_hours }} hours.</p>
<p><a href="{{ url }}">Sign in</a></p>
<p>If you did not request this email you can safely ignore it.</p>"""
)


def schedule_email(
    background_tasks: BackgroundTasks,
    *,
    recipients: Iterable[str],
    subject: str,
    body: str,
    html: str | None = None,
) -> None:
    """Queue an email to be delivered after the response is sent."""
    recipients_list = [addr for addr in recipients if addr]
    if not recipients_list:
        logger.debug("No recipients provided for email; skipping")
        return
    settings = get_settings()
    if not settings.smtp_host or not settings.smtp_port:
        logger.info("SMTP disabled; skipping email to %s", recipients_list)
        return
    background_tasks.add_task(_send_email, recipients_list, subject, body, html)


def build_magic_link_url(token: str, callback_url: str | None = None) -> str:
    settings = get_settings()
    params = {"token": token}
    if callback_url:
        params["callbackUrl"] = callback_url
    base = settings.public_base_url.rstrip("/")
    return f"{base}/auth/verify?{urlencode(params)}"


def build_magic_link_email(*, url: str) -> tuple[str, str, str]:
    """Return subject, plain-text body and HTML body for a sign-in link."""
    settings = get_settings()
    host = settings.public_base_url.split("://", 1)[-1].rstrip("/")
    ttl_hours = max(1, settings.magic_link_ttl_minutes // 60)
    subject = f"Sign in to {host}"
    body = (
        f"Sign in to {host}\n\n"
        f"{url}\n\n"
        f"The link can be used once and expires in {ttl_hours} hours.\n"
        "If you did not request this email you can safely ignore it.\n"
    )
    html = _MAGIC_LINK_HTML.render(host=host, url=url, ttl_hours=ttl_hours)
    return subject, body, html


def _send_email(
    recipients: list[str], subject: str, body: str, html: str | None = None
) -> None:
    settings = get_settings()
    if not settings.smtp_host or not settings.smtp_port:
        logger.info("SMTP configuration missing; skipping email to %s", recipients)
        return

    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = (
        settings.email_from or settings.smtp_username or "no-reply@repairdesk.local"
    )
    message["To"] = ", ".join(recipients)
    message.set_content(body)
    if html:
        message.add_alternative(html, subtype="html")

    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=10) as server:
            if settings.smtp_username and settings.smtp_password:
                try:
                    server.starttls()
                except smtplib.SMTPException:
                    logger.debug("SMTP server does not support STARTTLS")
                server.login(settings.smtp_username, settings.smtp_password)
            server.send_message(message)
    except Exception:  # pragma: no cover - network dependent
        logger.exception("Failed to send email to %s", recipients)
