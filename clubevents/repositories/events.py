"""Event repository helpers."""

from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from clubevents.db.models import Enrollment, Event


class EventsRepository:
    @staticmethod
    async def get(session: AsyncSession, event_id: int, *, for_update: bool = False) -> Event | None:
        stmt = select(Event).where(Event.id == event_id)
        if for_update:
            stmt = stmt.with_for_update()
        return await session.scalar(stmt)

    @staticmethod
    async def list_all(session: AsyncSession) -> list[Event]:
        stmt = select(Event).order_by(Event.event_date.asc(), Event.id.asc())
        rows = await session.scalars(stmt)
        return list(rows)

    @staticmethod
    async def create(session: AsyncSession, **fields: Any) -> Event:
        event = Event(**fields)
        session.add(event)
        await session.flush()
        return event

    @staticmethod
    def apply_changes(event: Event, **fields: Any) -> None:
        for name, value in fields.items():
            setattr(event, name, value)

    @staticmethod
    async def delete(session: AsyncSession, event_id: int) -> bool:
        await session.execute(delete(Enrollment).where(Enrollment.event_id == event_id))
        result = await session.execute(delete(Event).where(Event.id == event_id))
        return result.rowcount > 0

    @staticmethod
    async def list_due_unnotified_ids(session: AsyncSession, today: date) -> list[int]:
        stmt = (
            select(Event.id)
            .where(
                Event.deadline == today,
                Event.deadline_notified.is_(False),
            )
            .order_by(Event.id.asc())
        )
        rows = await session.scalars(stmt)
        return list(rows)

    @staticmethod
    async def mark_notified(session: AsyncSession, event_id: int) -> bool:
        """Flip the deadline flag false -> true; returns False when it was already set."""

        stmt = (
            update(Event)
            .where(
                Event.id == event_id,
                Event.deadline_notified.is_(False),
            )
            .values(deadline_notified=True)
        )
        result = await session.execute(stmt)
        return result.rowcount > 0
