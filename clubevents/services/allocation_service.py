"""Deadline seat allocation.

When an event's sign-up deadline arrives, seats that are still free are given
to active members who are not enrolled yet. Only the members tied at the
lowest reward score take part in the draw, and the winners are picked
uniformly at random among them. If that tier is smaller than the number of
free seats the remaining seats stay open; the draw never moves on to the next
score tier within one pass.
"""

from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError

from clubevents.context import ServiceContext
from clubevents.db.enums import DeliveryStatus
from clubevents.db.models import Event
from clubevents.errors import StorageFailure
from clubevents.notifications.calendar import build_event_calendar
from clubevents.notifications.delivery import count_statuses, deliver_best_effort
from clubevents.notifications.messages import compose_allocation_notice, compose_deadline_summary
from clubevents.repositories.enrollments import EnrollmentsRepository
from clubevents.repositories.events import EventsRepository
from clubevents.repositories.users import UsersRepository


@dataclass(frozen=True, slots=True)
class Candidate:
    username: str
    score: int
    email: str | None = None


@dataclass(slots=True)
class AllocationOutcome:
    event_id: int
    processed: bool
    seats_filled: int = 0
    notifications_sent: int = 0
    notifications_failed: int = 0
    winners: list[str] = field(default_factory=list)


def free_seat_count(capacity: int, taken: int) -> int:
    return max(0, capacity - taken)


def lowest_score_tier(eligible: Sequence[Candidate]) -> list[Candidate]:
    if not eligible:
        return []
    min_score = min(candidate.score for candidate in eligible)
    return [candidate for candidate in eligible if candidate.score == min_score]


def draw_winners(eligible: Sequence[Candidate], free_seats: int, rng: random.Random) -> list[Candidate]:
    """Shuffle the lowest-score tier and take up to ``free_seats`` of it."""

    if free_seats <= 0:
        return []

    tier = lowest_score_tier(eligible)
    rng.shuffle(tier)
    return tier[: min(free_seats, len(tier))]


async def _fill_seats(ctx: ServiceContext, event_id: int) -> tuple[Event | None, list[Candidate], list[str]]:
    """Fill free seats and set the deadline flag in one transaction.

    Returns ``(None, [], [])`` when the event is gone or was already handled.
    """

    async with ctx.session_factory() as session:
        async with session.begin():
            event = await EventsRepository.get(session, event_id, for_update=True)
            if event is None or event.deadline_notified:
                return None, [], []

            taken = await EnrollmentsRepository.count_for_event(session, event_id)
            free_seats = free_seat_count(event.capacity, taken)

            winners: list[Candidate] = []
            if free_seats:
                eligible = [
                    Candidate(username=user.username, score=user.score, email=user.email)
                    for user in await UsersRepository.list_eligible_for_event(session, event_id)
                ]
                winners = draw_winners(eligible, free_seats, ctx.rng)

            for winner in winners:
                await EnrollmentsRepository.insert(session, event_id, winner.username)
                if event.reward_score > 0:
                    await UsersRepository.credit_score(session, winner.username, event.reward_score)

            await EventsRepository.mark_notified(session, event_id)
            enrollees = await EnrollmentsRepository.list_usernames(session, event_id)

    ctx.logger.info(
        "deadline_seats_filled",
        event_id=event_id,
        free_seats=free_seats,
        seats_filled=len(winners),
        winners=[winner.username for winner in winners],
    )
    return event, winners, enrollees


async def _notify(
    ctx: ServiceContext,
    event: Event,
    winners: Sequence[Candidate],
    enrollees: Sequence[str],
) -> list[DeliveryStatus]:
    statuses: list[DeliveryStatus] = []

    attachment = None
    if any(winner.email for winner in winners):
        try:
            attachment = build_event_calendar(event, ctx.calendar_uid_domain, ctx.calendar_timezone)
        except Exception:
            ctx.logger.exception("calendar_build_failed", event_id=event.id)

    for winner in winners:
        if not winner.email:
            ctx.logger.info("allocation_notice_skipped_no_contact", event_id=event.id, username=winner.username)
            statuses.append(DeliveryStatus.SKIPPED)
            continue
        statuses.append(
            await deliver_best_effort(
                ctx.sender,
                compose_allocation_notice(event, winner.email, attachment),
                timeout_seconds=ctx.notification_timeout_seconds,
                logger=ctx.logger,
                event_id=event.id,
                username=winner.username,
                kind="allocation_notice",
            )
        )

    if event.organizer_email:
        statuses.append(
            await deliver_best_effort(
                ctx.sender,
                compose_deadline_summary(event, event.organizer_email, enrollees, ctx.default_organizer_name),
                timeout_seconds=ctx.notification_timeout_seconds,
                logger=ctx.logger,
                event_id=event.id,
                kind="deadline_summary",
            )
        )

    return statuses


async def allocate_event(ctx: ServiceContext, event_id: int) -> AllocationOutcome:
    """Run the full deadline pass for one event.

    The seat fill and the ``deadline_notified`` flag are committed together,
    so the fill happens at most once per event; notifications follow the
    commit and their failures are only counted.
    """

    async with ctx.event_locks.hold(event_id):
        try:
            event, winners, enrollees = await _fill_seats(ctx, event_id)
        except SQLAlchemyError as exc:
            raise StorageFailure("Deadline allocation could not be stored", event_id=event_id) from exc

    if event is None:
        ctx.logger.info("deadline_pass_skipped", event_id=event_id)
        return AllocationOutcome(event_id=event_id, processed=False)

    sent, failed = count_statuses(await _notify(ctx, event, winners, enrollees))
    return AllocationOutcome(
        event_id=event_id,
        processed=True,
        seats_filled=len(winners),
        notifications_sent=sent,
        notifications_failed=failed,
        winners=[winner.username for winner in winners],
    )
