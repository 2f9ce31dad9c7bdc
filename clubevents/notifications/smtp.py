"""SMTP notification sender."""

from __future__ import annotations

import asyncio
import smtplib
from email.message import EmailMessage

from structlog.stdlib import BoundLogger

from clubevents.config import Settings
from clubevents.errors import NotificationFailure
from clubevents.notifications.base import CalendarAttachment, NotificationSender


class SmtpNotificationSender(NotificationSender):
    """Sends mail through an SMTP relay, one connection per message."""

    def __init__(self, settings: Settings, logger: BoundLogger) -> None:
        self.settings = settings
        self.logger = logger
        if not settings.email_enabled:
            self.logger.warning("smtp_disabled")

    def is_enabled(self) -> bool:
        return self.settings.email_enabled

    def build_message(
        self,
        address: str,
        subject: str,
        body: str,
        attachment: CalendarAttachment | None = None,
    ) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.settings.mail_from or ""
        message["To"] = address
        message["Subject"] = subject
        message.set_content(body)

        if attachment is not None:
            maintype, _, subtype = attachment.mimetype.partition("/")
            message.add_attachment(
                attachment.content,
                maintype=maintype,
                subtype=subtype,
                filename=attachment.filename,
            )
        return message

    def _deliver(self, message: EmailMessage) -> None:
        if not self.settings.smtp_host:
            raise NotificationFailure("Email delivery is not configured")
        with smtplib.SMTP(
            self.settings.smtp_host,
            self.settings.smtp_port,
            timeout=self.settings.notification_timeout_seconds,
        ) as client:
            if self.settings.smtp_starttls:
                client.starttls()
            if self.settings.smtp_username and self.settings.smtp_password:
                client.login(self.settings.smtp_username, self.settings.smtp_password)
            client.send_message(message)

    async def send(
        self,
        address: str,
        subject: str,
        body: str,
        attachment: CalendarAttachment | None = None,
    ) -> None:
        if not self.is_enabled():
            raise NotificationFailure("Email delivery is not configured", address=address)

        message = self.build_message(address, subject, body, attachment)
        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationFailure(f"SMTP delivery failed: {exc}", address=address) from exc
