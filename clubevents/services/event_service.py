"""Event administration."""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from clubevents.context import ServiceContext
from clubevents.db.models import Event
from clubevents.errors import Conflict, NotFound, StorageFailure, ValidationError
from clubevents.identity import Identity, require_admin
from clubevents.repositories.enrollments import EnrollmentsRepository
from clubevents.repositories.events import EventsRepository
from clubevents.schemas import EventCreate, EventUpdate, EventView, check_time_range


def to_view(event: Event, participants: list[str]) -> EventView:
    view = EventView.model_validate(event)
    view.participants = participants
    return view


async def list_events(ctx: ServiceContext) -> list[EventView]:
    try:
        async with ctx.session_factory() as session:
            events = await EventsRepository.list_all(session)
            participants = await EnrollmentsRepository.usernames_by_event(session, (event.id for event in events))
    except SQLAlchemyError as exc:
        raise StorageFailure("Events could not be loaded") from exc

    return [to_view(event, participants.get(event.id, [])) for event in events]


async def get_event(ctx: ServiceContext, event_id: int) -> EventView:
    try:
        async with ctx.session_factory() as session:
            event = await EventsRepository.get(session, event_id)
            if event is None:
                raise NotFound(f"Event {event_id} does not exist", event_id=event_id)
            participants = await EnrollmentsRepository.list_usernames(session, event_id)
    except SQLAlchemyError as exc:
        raise StorageFailure("Event could not be loaded", event_id=event_id) from exc

    return to_view(event, participants)


async def create_event(ctx: ServiceContext, identity: Identity, payload: EventCreate) -> EventView:
    require_admin(identity)

    try:
        async with ctx.session_factory() as session:
            async with session.begin():
                event = await EventsRepository.create(session, **payload.model_dump())
    except SQLAlchemyError as exc:
        raise StorageFailure("Event could not be created") from exc

    ctx.logger.info("event_created", event_id=event.id, capacity=event.capacity, admin=identity.username)
    return to_view(event, [])


async def update_event(
    ctx: ServiceContext,
    identity: Identity,
    event_id: int,
    payload: EventUpdate,
) -> EventView:
    """Apply the fields present in ``payload``.

    Capacity cannot drop below the seats already taken, and the deadline flag
    is left alone even when the deadline moves.
    """

    require_admin(identity)
    changes = payload.model_dump(exclude_unset=True)

    async with ctx.event_locks.hold(event_id):
        try:
            async with ctx.session_factory() as session:
                async with session.begin():
                    event = await EventsRepository.get(session, event_id, for_update=True)
                    if event is None:
                        raise NotFound(f"Event {event_id} does not exist", event_id=event_id)

                    try:
                        check_time_range(
                            changes.get("start_time", event.start_time),
                            changes.get("end_time", event.end_time),
                        )
                    except ValueError as exc:
                        raise ValidationError(str(exc), event_id=event_id) from exc

                    participants = await EnrollmentsRepository.list_usernames(session, event_id)
                    new_capacity = changes.get("capacity", event.capacity)
                    if new_capacity < len(participants):
                        raise Conflict(
                            f"Capacity {new_capacity} is below the {len(participants)} seats already taken",
                            event_id=event_id,
                        )

                    EventsRepository.apply_changes(event, **changes)
        except SQLAlchemyError as exc:
            raise StorageFailure("Event could not be updated", event_id=event_id) from exc

    ctx.logger.info("event_updated", event_id=event_id, fields=sorted(changes), admin=identity.username)
    return to_view(event, participants)


async def delete_event(ctx: ServiceContext, identity: Identity, event_id: int) -> None:
    require_admin(identity)

    async with ctx.event_locks.hold(event_id):
        try:
            async with ctx.session_factory() as session:
                async with session.begin():
                    deleted = await EventsRepository.delete(session, event_id)
        except SQLAlchemyError as exc:
            raise StorageFailure("Event could not be deleted", event_id=event_id) from exc

    if not deleted:
        raise NotFound(f"Event {event_id} does not exist", event_id=event_id)
    ctx.logger.info("event_deleted", event_id=event_id, admin=identity.username)
