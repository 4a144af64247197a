"""
E-mail notifications for contact form submissions.

``MailService.send_contact_notification`` renders an HTML summary of a
submission with Jinja2 and delivers it through ``smtplib``.  Delivery is
blocking, so ``notify_contact`` runs it in a worker thread and waits at
most ``settings.email_wait_seconds`` before answering ``"pending"``; the
send keeps running in the background in that case.

The SMTP classes are injectable so tests never open a socket.
"""

import asyncio
import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import Any, Callable, Dict, Optional

from jinja2 import Environment, StrictUndefined

from daily_care_api.app.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

STATUS_SENT = "sent"
STATUS_FAILED = "failed"
STATUS_PENDING = "pending"

CONTACT_TEMPLATE = """\
<h2>New Contact Form Submission</h2>
<p><strong>Name:</strong> {{ name }}</p>
<p><strong>Email:</strong> {{ email }}</p>
<p><strong>Phone:</strong> {{ phone or "Not provided" }}</p>
<p><strong>Service Type:</strong> {{ service_type }}</p>
<p><strong>Message:</strong></p>
<p>{{ message }}</p>
<p><em>This is an automated message. Please do not reply directly to this email.</em></p>
"""

_env = Environment(autoescape=True, undefined=StrictUndefined)
_contact_template = _env.from_string(CONTACT_TEMPLATE)
# Sends that outlived the wait budget; referenced so they are not garbage collected.
_in_flight: set = set()


class MailDeliveryError(Exception):
    """Raised when a notification could not be delivered."""


def render_contact_email(contact: Dict[str, Any]) -> str:
    """Render the HTML body for a contact submission (values are escaped)."""
    return _contact_template.render(
        name=contact["name"],
        email=contact["email"],
        phone=contact.get("phone"),
        service_type=contact["service_type"],
        message=contact["message"],
    )


def build_contact_message(contact: Dict[str, Any], config: Settings) -> EmailMessage:
    message = EmailMessage()
    message["Subject"] = f"New Contact Form Submission: {contact['service_type']}"
    message["From"] = config.smtp_from or config.smtp_user
    message["To"] = config.mail_to_address
    message.set_content("A new contact form submission was received. View this message as HTML.")
    message.add_alternative(render_contact_email(contact), subtype="html")
    return message


class MailService:
    """Thin wrapper around smtplib with injectable connection factories."""

    def __init__(
        self,
        config: Optional[Settings] = None,
        smtp_factory: Optional[Callable] = None,
        smtp_ssl_factory: Optional[Callable] = None,
    ):
        self.config = config or default_settings
        self.smtp_factory = smtp_factory or smtplib.SMTP
        self.smtp_ssl_factory = smtp_ssl_factory or smtplib.SMTP_SSL

    def send(self, message: EmailMessage) -> None:
        """Deliver ``message``.

        ``SMTP_SECURE`` selects implicit TLS; otherwise STARTTLS is
        attempted when the server offers it.  Raises
        ``MailDeliveryError`` on any SMTP or network failure.
        """
        config = self.config
        if not config.smtp_host or not config.mail_to_address:
            raise MailDeliveryError("SMTP is not configured")
        smtp = None
        try:
            if config.smtp_secure:
                smtp = self.smtp_ssl_factory(
                    config.smtp_host, config.smtp_port, context=ssl.create_default_context()
                )
            else:
                smtp = self.smtp_factory(config.smtp_host, config.smtp_port)
                smtp.ehlo()
                if smtp.has_extn("starttls"):
                    smtp.starttls(context=ssl.create_default_context())
                    smtp.ehlo()
            if config.smtp_user and config.smtp_pass:
                smtp.login(config.smtp_user, config.smtp_pass)
            smtp.send_message(message)
            logger.info("Notification sent to %s", message["To"])
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("SMTP delivery failed: %s", exc)
            raise MailDeliveryError(str(exc)) from exc
        finally:
            if smtp is not None:
                try:
                    smtp.quit()
                except (smtplib.SMTPException, OSError) as exc:
                    logger.warning("Error closing SMTP connection: %s", exc)

    def send_contact_notification(self, contact: Dict[str, Any]) -> str:
        """Send the notification for ``contact`` and return ``sent`` or ``failed``."""
        try:
            self.send(build_contact_message(contact, self.config))
        except MailDeliveryError:
            return STATUS_FAILED
        return STATUS_SENT

    async def notify_contact(self, contact: Dict[str, Any], wait_seconds: Optional[float] = None) -> str:
        """Send the notification without blocking the caller for long.

        Returns ``sent`` or ``failed`` when delivery finishes within the
        wait budget and ``pending`` otherwise.
        """
        budget = self.config.email_wait_seconds if wait_seconds is None else wait_seconds
        task = asyncio.ensure_future(asyncio.to_thread(self.send_contact_notification, contact))
        _in_flight.add(task)
        task.add_done_callback(_in_flight.discard)
        try:
            return await asyncio.wait_for(asyncio.shield(task), timeout=budget)
        except asyncio.TimeoutError:
            logger.info("Notification for contact %s still in flight", contact.get("id"))
            return STATUS_PENDING
