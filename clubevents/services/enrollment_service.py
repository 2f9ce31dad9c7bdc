"""Direct enrollment and withdrawal."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from clubevents.context import ServiceContext
from clubevents.db.enums import DeliveryStatus, MissingContactPolicy
from clubevents.db.models import Event
from clubevents.errors import (
    AlreadyEnrolled,
    CapacityExceeded,
    MissingContact,
    NotFound,
    StorageFailure,
)
from clubevents.identity import Identity, resolve_target_username
from clubevents.notifications.calendar import build_event_calendar
from clubevents.notifications.delivery import deliver_best_effort
from clubevents.notifications.messages import compose_enrollment_confirmation
from clubevents.repositories.enrollments import EnrollmentsRepository
from clubevents.repositories.events import EventsRepository
from clubevents.repositories.users import UsersRepository

WARNING_NO_CONTACT = "Enrollment succeeded, but no email address is on file, so no confirmation was sent."
WARNING_NO_CALENDAR = "Enrollment succeeded, but the calendar file could not be created."
WARNING_DELIVERY_FAILED = "Enrollment succeeded, but the confirmation email could not be delivered."


@dataclass(slots=True)
class EnrollResult:
    event_id: int
    username: str
    score_credited: int
    notification: DeliveryStatus
    warning: str | None = None


@dataclass(slots=True)
class WithdrawResult:
    event_id: int
    username: str
    was_enrolled: bool


def reward_for(event: Event) -> int:
    return event.reward_score if event.reward_score > 0 else 0


def contact_blocks_enrollment(email: str | None, policy: MissingContactPolicy) -> bool:
    return not email and policy is MissingContactPolicy.REJECT


async def enroll(
    ctx: ServiceContext,
    event_id: int,
    identity: Identity,
    *,
    username: str | None = None,
) -> EnrollResult:
    """Give the user a seat, credit the event's reward score, then send a confirmation.

    The seat and the score credit are committed before any mail goes out; a
    failed confirmation only turns into a warning on the result.
    """

    target = resolve_target_username(identity, username)

    async with ctx.event_locks.hold(event_id):
        try:
            async with ctx.session_factory() as session:
                async with session.begin():
                    event = await EventsRepository.get(session, event_id, for_update=True)
                    if event is None:
                        raise NotFound(f"Event {event_id} does not exist", event_id=event_id)

                    user = await UsersRepository.get_by_username(session, target)
                    if user is None or not user.is_active:
                        raise NotFound(f"User {target} does not exist or is inactive", username=target)

                    if await EnrollmentsRepository.exists(session, event_id, target):
                        raise AlreadyEnrolled(
                            f"{target} is already enrolled in event {event_id}",
                            event_id=event_id,
                            username=target,
                        )

                    taken = await EnrollmentsRepository.count_for_event(session, event_id)
                    if taken >= event.capacity:
                        raise CapacityExceeded(
                            f"Event {event_id} has no free seats",
                            event_id=event_id,
                            capacity=event.capacity,
                        )

                    if contact_blocks_enrollment(user.email, ctx.missing_contact_policy):
                        raise MissingContact(f"No email address on file for {target}", username=target)

                    await EnrollmentsRepository.insert(session, event_id, target)
                    credited = reward_for(event)
                    if credited:
                        await UsersRepository.credit_score(session, target, credited)
                    address = user.email
        except IntegrityError as exc:
            raise AlreadyEnrolled(
                f"{target} is already enrolled in event {event_id}",
                event_id=event_id,
                username=target,
            ) from exc
        except SQLAlchemyError as exc:
            ctx.logger.exception("enrollment_storage_error", event_id=event_id, username=target)
            raise StorageFailure("Enrollment could not be stored", event_id=event_id) from exc

    ctx.logger.info(
        "enrollment_created",
        event_id=event_id,
        username=target,
        score_credited=credited,
        acting_user=identity.username,
    )

    if not address:
        return EnrollResult(event_id, target, credited, DeliveryStatus.SKIPPED, WARNING_NO_CONTACT)

    try:
        attachment = build_event_calendar(event, ctx.calendar_uid_domain, ctx.calendar_timezone)
    except Exception:
        ctx.logger.exception("calendar_build_failed", event_id=event_id)
        return EnrollResult(event_id, target, credited, DeliveryStatus.FAILED, WARNING_NO_CALENDAR)

    status = await deliver_best_effort(
        ctx.sender,
        compose_enrollment_confirmation(event, address, attachment),
        timeout_seconds=ctx.notification_timeout_seconds,
        logger=ctx.logger,
        event_id=event_id,
        username=target,
        kind="enrollment_confirmation",
    )
    warning = WARNING_DELIVERY_FAILED if status is DeliveryStatus.FAILED else None
    return EnrollResult(event_id, target, credited, status, warning)


async def withdraw(
    ctx: ServiceContext,
    event_id: int,
    identity: Identity,
    *,
    username: str | None = None,
) -> WithdrawResult:
    """Remove the seat if there is one; withdrawing twice is the same as once."""

    target = resolve_target_username(identity, username)

    async with ctx.event_locks.hold(event_id):
        try:
            async with ctx.session_factory() as session:
                async with session.begin():
                    removed = await EnrollmentsRepository.delete(session, event_id, target)
        except SQLAlchemyError as exc:
            ctx.logger.exception("withdrawal_storage_error", event_id=event_id, username=target)
            raise StorageFailure("Withdrawal could not be stored", event_id=event_id) from exc

    ctx.logger.info(
        "enrollment_withdrawn" if removed else "withdrawal_noop",
        event_id=event_id,
        username=target,
        acting_user=identity.username,
    )
    return WithdrawResult(event_id=event_id, username=target, was_enrolled=removed)
