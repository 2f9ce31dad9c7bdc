"""Explicitly constructed runtime context shared by the services."""

from __future__ import annotations

import random
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from structlog.stdlib import BoundLogger

from clubevents.config import Settings
from clubevents.constants import DEFAULT_CALENDAR_TIMEZONE, DEFAULT_NOTIFICATION_TIMEOUT_SECONDS
from clubevents.db.enums import MissingContactPolicy
from clubevents.db.session import create_engine_and_session_factory
from clubevents.logging_setup import get_logger
from clubevents.notifications.base import NotificationSender
from clubevents.notifications.smtp import SmtpNotificationSender
from clubevents.services.locks import EventLockRegistry


@dataclass(slots=True)
class ServiceContext:
    session_factory: async_sessionmaker[AsyncSession]
    sender: NotificationSender
    logger: BoundLogger
    missing_contact_policy: MissingContactPolicy = MissingContactPolicy.REJECT
    notification_timeout_seconds: float = DEFAULT_NOTIFICATION_TIMEOUT_SECONDS
    calendar_uid_domain: str = "clubevents.local"
    calendar_timezone: str = DEFAULT_CALENDAR_TIMEZONE
    default_organizer_name: str = "VereinsApp"
    rng: random.Random = field(default_factory=random.SystemRandom)
    event_locks: EventLockRegistry = field(default_factory=EventLockRegistry)
    engine: AsyncEngine | None = None

    async def close(self) -> None:
        await self.sender.close()
        if self.engine is not None:
            await self.engine.dispose()


def build_context(settings: Settings, logger: BoundLogger | None = None) -> ServiceContext:
    logger = logger or get_logger("clubevents")
    engine, session_factory = create_engine_and_session_factory(settings.database_url)
    return ServiceContext(
        session_factory=session_factory,
        sender=SmtpNotificationSender(settings, logger),
        logger=logger,
        missing_contact_policy=settings.missing_contact_policy,
        notification_timeout_seconds=settings.notification_timeout_seconds,
        calendar_uid_domain=settings.calendar_uid_domain,
        calendar_timezone=settings.calendar_timezone,
        default_organizer_name=settings.default_organizer_name,
        engine=engine,
    )
