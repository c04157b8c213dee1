"""
Email adapter for the Zenshift backend.

Messages go out over SMTP using the credentials from Settings (implicit TLS
on port 465, STARTTLS otherwise). HTML bodies for transactional mail are
rendered from the Jinja2 templates shipped in ``zenshift/templates/email``.
"""

from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from functools import lru_cache
import logging
import os
import smtplib
import ssl

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .config import Settings, get_settings

logger = logging.getLogger(__name__)

TEMPLATES_DIR = os.path.join(os.path.dirname(__file__), "..", "templates")
IMPLICIT_TLS_PORT = 465


@lru_cache
def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(TEMPLATES_DIR),
        autoescape=select_autoescape(["html"]),
    )


def render_email(template_name: str, **context) -> str:
    return _environment().get_template(f"email/{template_name}").render(**context)


def smtp_configured(settings: Settings) -> bool:
    return all(
        (settings.smtp_host, settings.smtp_port, settings.smtp_user, settings.smtp_password, settings.smtp_from)
    )


def _build_message(settings: Settings, subject: str, to_email: str, html_body: str | None, text_body: str | None) -> MIMEMultipart:
    message = MIMEMultipart("alternative")
    message["Subject"] = subject
    message["From"] = settings.smtp_from
    message["To"] = to_email
    message.attach(MIMEText(text_body or html_body or "", "plain", "utf-8"))
    if html_body:
        message.attach(MIMEText(html_body, "html", "utf-8"))
    return message


def _connect(settings: Settings) -> smtplib.SMTP:
    context = ssl.create_default_context()
    if settings.smtp_port == IMPLICIT_TLS_PORT:
        return smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port, context=context)
    server = smtplib.SMTP(settings.smtp_host, settings.smtp_port)
    try:
        server.ehlo()
        server.starttls(context=context)
    except (smtplib.SMTPException, OSError):
        server.close()
        raise
    return server


def send_email(subject: str, to_email: str, html_body: str | None, text_body: str | None = None) -> bool:
    """
    Deliver one message. Returns False, without raising, when SMTP is not
    configured or the server rejects the message.
    """
    settings = get_settings()
    if not smtp_configured(settings):
        logger.warning("SMTP not configured; skipping email to %s", to_email)
        return False
    message = _build_message(settings, subject, to_email, html_body, text_body)
    try:
        with _connect(settings) as server:
            server.login(settings.smtp_user, settings.smtp_password)
            server.sendmail(settings.smtp_from, [to_email], message.as_string())
    except (smtplib.SMTPException, OSError) as exc:
        logger.error("Failed to send email to %s: %s", to_email, exc)
        return False
    logger.info("Sent '%s' to %s", subject, to_email)
    return True
