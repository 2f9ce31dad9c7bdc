"""Deadline sweep over all events that are due today."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import date

import structlog
from sqlalchemy.exc import SQLAlchemyError

from clubevents.context import ServiceContext
from clubevents.errors import StorageFailure
from clubevents.repositories.events import EventsRepository
from clubevents.services.allocation_service import allocate_event


@dataclass(slots=True)
class SweepResult:
    events_processed: int = 0
    seats_filled: int = 0
    notifications_sent: int = 0
    notifications_failed: int = 0
    events_failed: int = 0


async def fetch_due_event_ids(ctx: ServiceContext, today: date) -> list[int]:
    try:
        async with ctx.session_factory() as session:
            return await EventsRepository.list_due_unnotified_ids(session, today)
    except SQLAlchemyError as exc:
        ctx.logger.exception("sweep_due_events_query_failed", sweep_date=today.isoformat())
        raise StorageFailure("Due events could not be loaded", sweep_date=today.isoformat()) from exc


async def run_sweep(ctx: ServiceContext, today: date) -> SweepResult:
    """Process every event whose deadline is ``today`` and that is not flagged yet.

    Failing to load the due events aborts the run. A failure while handling
    one event is logged and counted, and the sweep moves on to the next.
    """

    due_event_ids = await fetch_due_event_ids(ctx, today)
    ctx.logger.info("sweep_started", sweep_date=today.isoformat(), due_events=len(due_event_ids))

    result = SweepResult()
    for event_id in due_event_ids:
        try:
            outcome = await allocate_event(ctx, event_id)
        except Exception:
            result.events_failed += 1
            ctx.logger.exception("sweep_event_failed", event_id=event_id, sweep_date=today.isoformat())
            continue

        if not outcome.processed:
            continue

        result.events_processed += 1
        result.seats_filled += outcome.seats_filled
        result.notifications_sent += outcome.notifications_sent
        result.notifications_failed += outcome.notifications_failed

    ctx.logger.info(
        "sweep_completed",
        sweep_date=today.isoformat(),
        events_processed=result.events_processed,
        seats_filled=result.seats_filled,
        notifications_sent=result.notifications_sent,
        notifications_failed=result.notifications_failed,
        events_failed=result.events_failed,
    )
    return result


async def run_periodic_sweeps(ctx: ServiceContext, interval_seconds: int) -> None:
    """Sweep for the current date every ``interval_seconds`` until cancelled."""

    while True:
        today = date.today()
        with structlog.contextvars.bound_contextvars(sweep_date=today.isoformat()):
            try:
                await run_sweep(ctx, today)
            except StorageFailure:
                ctx.logger.warning("periodic_sweep_aborted")
            except Exception:
                ctx.logger.exception("periodic_sweep_failed")
        await asyncio.sleep(interval_seconds)
