"""iCalendar attachments for event invitations."""

from __future__ import annotations

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from ics import Calendar
from ics import Event as CalendarEvent

from clubevents.constants import DEFAULT_CALENDAR_TIMEZONE, DEFAULT_EVENT_DURATION_MINUTES
from clubevents.db.models import Event
from clubevents.notifications.base import CalendarAttachment


def calendar_uid(event_id: int, uid_domain: str) -> str:
    """Stable per-event UID so calendar clients update instead of duplicating."""

    return f"event-{event_id}@{uid_domain}"


def event_time_bounds(event: Event) -> tuple[datetime, datetime] | None:
    """Return (begin, end) for timed events, ``None`` for whole-day events."""

    if event.start_time is None:
        return None

    begin = datetime.combine(event.event_date, event.start_time)
    if event.end_time is not None:
        end = datetime.combine(event.event_date, event.end_time)
        if end > begin:
            return begin, end
    return begin, begin + timedelta(minutes=DEFAULT_EVENT_DURATION_MINUTES)


def build_event_calendar(
    event: Event,
    uid_domain: str,
    timezone: str = DEFAULT_CALENDAR_TIMEZONE,
) -> CalendarAttachment:
    """Build the invite; event times are local to ``timezone`` and written as UTC."""

    calendar = Calendar()
    entry = CalendarEvent()

    entry.name = event.title
    entry.uid = calendar_uid(event.id, uid_domain)
    if event.description:
        entry.description = event.description

    bounds = event_time_bounds(event)
    if bounds is None:
        entry.begin = event.event_date
        entry.make_all_day()
    else:
        zone = ZoneInfo(timezone)
        begin, end = bounds
        entry.begin = begin.replace(tzinfo=zone)
        entry.end = end.replace(tzinfo=zone)

    calendar.events.add(entry)
    return CalendarAttachment(content=calendar.serialize().encode("utf-8"))
