"""Enrollment repository helpers."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from clubevents.db.models import Enrollment


class EnrollmentsRepository:
    @staticmethod
    async def count_for_event(session: AsyncSession, event_id: int) -> int:
        stmt = select(func.count(Enrollment.id)).where(Enrollment.event_id == event_id)
        return int(await session.scalar(stmt) or 0)

    @staticmethod
    async def exists(session: AsyncSession, event_id: int, username: str) -> bool:
        stmt = (
            select(Enrollment.id)
            .where(
                Enrollment.event_id == event_id,
                Enrollment.username == username,
            )
            .limit(1)
        )
        return (await session.scalar(stmt)) is not None

    @staticmethod
    async def insert(session: AsyncSession, event_id: int, username: str) -> Enrollment:
        enrollment = Enrollment(event_id=event_id, username=username)
        session.add(enrollment)
        await session.flush()
        return enrollment

    @staticmethod
    async def delete(session: AsyncSession, event_id: int, username: str) -> bool:
        stmt = delete(Enrollment).where(
            Enrollment.event_id == event_id,
            Enrollment.username == username,
        )
        result = await session.execute(stmt)
        return result.rowcount > 0

    @staticmethod
    async def list_usernames(session: AsyncSession, event_id: int) -> list[str]:
        stmt = (
            select(Enrollment.username)
            .where(Enrollment.event_id == event_id)
            .order_by(Enrollment.id.asc())
        )
        rows = await session.scalars(stmt)
        return list(rows)

    @staticmethod
    async def usernames_by_event(session: AsyncSession, event_ids: Iterable[int]) -> dict[int, list[str]]:
        ids = list(event_ids)
        grouped: dict[int, list[str]] = defaultdict(list)
        if not ids:
            return grouped

        stmt = (
            select(Enrollment.event_id, Enrollment.username)
            .where(Enrollment.event_id.in_(ids))
            .order_by(Enrollment.id.asc())
        )
        rows = await session.execute(stmt)
        for event_id, username in rows.all():
            grouped[event_id].append(username)
        return grouped
