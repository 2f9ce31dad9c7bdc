"""User repository helpers."""

from __future__ import annotations

from typing import Any

from sqlalchemy import delete, exists, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from clubevents.db.models import Enrollment, User


class UsersRepository:
    @staticmethod
    async def get_by_username(
        session: AsyncSession,
        username: str,
        *,
        for_update: bool = False,
    ) -> User | None:
        stmt = select(User).where(User.username == username)
        if for_update:
            stmt = stmt.with_for_update()
        return await session.scalar(stmt)

    @staticmethod
    async def exists_by_username(session: AsyncSession, username: str) -> bool:
        stmt = select(User.id).where(User.username == username).limit(1)
        return (await session.scalar(stmt)) is not None

    @staticmethod
    async def list_all(session: AsyncSession) -> list[User]:
        rows = await session.scalars(select(User).order_by(User.username.asc()))
        return list(rows)

    @staticmethod
    async def create(session: AsyncSession, **fields: Any) -> User:
        user = User(**fields)
        session.add(user)
        await session.flush()
        return user

    @staticmethod
    async def rename(session: AsyncSession, user: User, new_username: str) -> None:
        """Rename a user and carry the enrollments over to the new name."""

        old_username = user.username
        user.username = new_username
        await session.flush()
        # No-op where the database already cascaded the key change.
        await session.execute(
            update(Enrollment).where(Enrollment.username == old_username).values(username=new_username)
        )

    @staticmethod
    async def delete(session: AsyncSession, username: str) -> bool:
        await session.execute(delete(Enrollment).where(Enrollment.username == username))
        result = await session.execute(delete(User).where(User.username == username))
        return result.rowcount > 0

    @staticmethod
    async def credit_score(session: AsyncSession, username: str, amount: int) -> None:
        stmt = update(User).where(User.username == username).values(score=User.score + amount)
        await session.execute(stmt)

    @staticmethod
    async def list_eligible_for_event(session: AsyncSession, event_id: int) -> list[User]:
        """Active users that hold no seat in the event yet."""

        already_enrolled = exists().where(
            Enrollment.event_id == event_id,
            Enrollment.username == User.username,
        )
        stmt = (
            select(User)
            .where(
                User.is_active.is_(True),
                ~already_enrolled,
            )
            .order_by(User.username.asc())
        )
        rows = await session.scalars(stmt)
        return list(rows)
