"""SMTP mail delivery."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

from utils.errors import MailDeliveryError

from .abstract_mailer import AbstractMailer, OutgoingEmail

logger = logging.getLogger(__name__)


class SmtpMailer(AbstractMailer):
    """Send multipart (text + HTML) messages through an SMTP relay.

    A new connection is opened per message.
    """

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: int = 10,
    ):
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def _build(self, message: OutgoingEmail) -> EmailMessage:
        mime = EmailMessage()
        mime["From"] = self.sender
        mime["To"] = message.to
        mime["Subject"] = message.subject
        mime.set_content(message.text)
        mime.add_alternative(message.html, subtype="html")
        return mime

    def send(self, message: OutgoingEmail) -> None:
        mime = self._build(message)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username and self.password:
                    smtp.login(self.username, self.password)
                smtp.send_message(mime)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("SMTP delivery to %s failed: %s", message.to, exc)
            raise MailDeliveryError() from exc
