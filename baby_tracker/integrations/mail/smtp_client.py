"""
Delivery through a manually configured SMTP server.
"""

import logging
import smtplib
import ssl
from email.message import EmailMessage

from baby_tracker.config import get_settings
from baby_tracker.integrations.mail.base import MailMessage

logger = logging.getLogger(__name__)


def build_mime_message(message: MailMessage) -> EmailMessage:
    """Build a multipart/alternative message with text and HTML parts."""
    mime = EmailMessage()
    mime["Subject"] = message.subject
    mime["From"] = message.sender
    mime["To"] = message.to
    mime.set_content(message.text)
    if message.html:
        mime.add_alternative(message.html, subtype="html")
    return mime


def _ssl_context(allow_self_signed_cert: bool) -> ssl.SSLContext:
    context = ssl.create_default_context()
    if allow_self_signed_cert:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def send_with_smtp(
    message: MailMessage,
    host: str,
    port: int,
    username: str,
    password: str,
    enable_tls: bool = True,
    allow_self_signed_cert: bool = False,
) -> None:
    """
    Send a message over SMTP.

    With enable_tls the connection uses implicit TLS (typically port 465);
    otherwise STARTTLS is used when the server offers it.

    Raises:
        smtplib.SMTPException: On protocol or authentication failure
        OSError: On connection failure
    """
    context = _ssl_context(allow_self_signed_cert)
    timeout = get_settings().http_timeout

    if enable_tls:
        server = smtplib.SMTP_SSL(host, port, timeout=timeout, context=context)
    else:
        server = smtplib.SMTP(host, port, timeout=timeout)

    with server:
        server.ehlo()
        if not enable_tls and server.has_extn("starttls"):
            server.starttls(context=context)
            server.ehlo()
        server.login(username, password)
        server.send_message(build_mime_message(message))

    logger.info(f"Email sent via {host} to {message.to}")
