"""Shared fixtures: a SQLite-backed store and a recording notification sender."""

from __future__ import annotations

import asyncio
import random
from datetime import date

import pytest
from sqlalchemy import select

from clubevents.context import ServiceContext
from clubevents.db.enums import UserRole
from clubevents.db.models import Enrollment, Event, User
from clubevents.db.session import create_engine_and_session_factory, create_schema
from clubevents.errors import NotificationFailure
from clubevents.logging_setup import get_logger
from clubevents.notifications.base import CalendarAttachment, NotificationSender, OutgoingMessage

TODAY = date(2026, 10, 18)


class RecordingSender(NotificationSender):
    def __init__(self) -> None:
        self.sent: list[OutgoingMessage] = []
        self.failing_addresses: set[str] = set()
        self.fail_all = False
        self.delay_seconds = 0.0
        self.closed = False

    async def send(
        self,
        address: str,
        subject: str,
        body: str,
        attachment: CalendarAttachment | None = None,
    ) -> None:
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.fail_all or address in self.failing_addresses:
            raise NotificationFailure("relay refused the message", address=address)
        self.sent.append(OutgoingMessage(address, subject, body, attachment))

    async def close(self) -> None:
        self.closed = True

    def addresses(self) -> list[str]:
        return [message.address for message in self.sent]


class StoreHelper:
    """Direct table access for arranging and inspecting test state."""

    def __init__(self, session_factory) -> None:
        self.session_factory = session_factory

    async def add_user(
        self,
        username: str,
        *,
        score: int = 0,
        email: str | None = "",
        is_active: bool = True,
        role: UserRole = UserRole.MEMBER,
    ) -> None:
        if email == "":
            email = f"{username}@example.org"
        async with self.session_factory() as session:
            async with session.begin():
                session.add(User(username=username, score=score, email=email, is_active=is_active, role=role))

    async def add_event(self, **overrides: object) -> int:
        fields: dict[str, object] = {
            "title": "Summer fete",
            "event_date": date(2026, 11, 1),
            "capacity": 3,
            "reward_score": 0,
        }
        fields.update(overrides)
        async with self.session_factory() as session:
            async with session.begin():
                event = Event(**fields)
                session.add(event)
                await session.flush()
                return event.id

    async def enroll(self, event_id: int, *usernames: str) -> None:
        async with self.session_factory() as session:
            async with session.begin():
                for username in usernames:
                    session.add(Enrollment(event_id=event_id, username=username))

    async def enrolled(self, event_id: int) -> set[str]:
        async with self.session_factory() as session:
            rows = await session.scalars(select(Enrollment.username).where(Enrollment.event_id == event_id))
            return set(rows)

    async def score(self, username: str) -> int:
        async with self.session_factory() as session:
            return await session.scalar(select(User.score).where(User.username == username))

    async def event(self, event_id: int) -> Event | None:
        async with self.session_factory() as session:
            return await session.get(Event, event_id)


@pytest.fixture
async def session_factory(tmp_path):
    engine, factory = create_engine_and_session_factory(f"sqlite+aiosqlite:///{tmp_path / 'clubevents.db'}")
    await create_schema(engine)
    yield factory
    await engine.dispose()


@pytest.fixture
def store(session_factory) -> StoreHelper:
    return StoreHelper(session_factory)


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def ctx(session_factory, sender) -> ServiceContext:
    return ServiceContext(
        session_factory=session_factory,
        sender=sender,
        logger=get_logger("tests"),
        notification_timeout_seconds=1.0,
        calendar_uid_domain="example.org",
        rng=random.Random(1234),
    )
