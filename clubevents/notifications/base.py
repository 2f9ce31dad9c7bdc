"""Notification sender interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from clubevents.constants import CALENDAR_ATTACHMENT_FILENAME, CALENDAR_MIME_TYPE


@dataclass(frozen=True, slots=True)
class CalendarAttachment:
    content: bytes
    filename: str = CALENDAR_ATTACHMENT_FILENAME
    mimetype: str = CALENDAR_MIME_TYPE


@dataclass(frozen=True, slots=True)
class OutgoingMessage:
    address: str
    subject: str
    body: str
    attachment: CalendarAttachment | None = None


class NotificationSender(ABC):
    """Delivers one message to one address.

    Implementations make a single attempt and raise ``NotificationFailure``
    when it does not go through; retries are not their concern.
    """

    @abstractmethod
    async def send(
        self,
        address: str,
        subject: str,
        body: str,
        attachment: CalendarAttachment | None = None,
    ) -> None:
        """Send the message or raise ``NotificationFailure``."""

    async def close(self) -> None:
        """Release transport resources held by the sender."""
