"""Mail texts sent by the enrollment and deadline workflows."""

from __future__ import annotations

from collections.abc import Sequence

from clubevents.db.models import Event
from clubevents.notifications.base import CalendarAttachment, OutgoingMessage


def format_event_when(event: Event) -> str:
    when = event.event_date.isoformat()
    if event.start_time is not None:
        when = f"{when} {event.start_time.strftime('%H:%M')}"
        if event.end_time is not None:
            when = f"{when}-{event.end_time.strftime('%H:%M')}"
    return when


def compose_enrollment_confirmation(
    event: Event,
    address: str,
    attachment: CalendarAttachment | None,
) -> OutgoingMessage:
    return OutgoingMessage(
        address=address,
        subject=f'Confirmation: "{event.title}"',
        body=f'You are signed up for "{event.title}" on {format_event_when(event)}.',
        attachment=attachment,
    )


def compose_allocation_notice(
    event: Event,
    address: str,
    attachment: CalendarAttachment | None,
) -> OutgoingMessage:
    return OutgoingMessage(
        address=address,
        subject=f'You have been assigned to "{event.title}"',
        body=(
            f'The sign-up deadline for "{event.title}" has passed and open seats were drawn '
            f"among the members with the lowest score. You were assigned a seat for "
            f"{format_event_when(event)}."
        ),
        attachment=attachment,
    )


def compose_deadline_summary(
    event: Event,
    address: str,
    enrollees: Sequence[str],
    default_organizer_name: str,
) -> OutgoingMessage:
    """Reminder for the event organizer listing everyone who holds a seat."""

    participants = "\n".join(f"- {username}" for username in enrollees) or "- (nobody)"
    body = "\n".join(
        [
            f"Hello {event.organizer_name or default_organizer_name},",
            "",
            "this is the automatic deadline reminder for the event:",
            f"Title: {event.title}",
            f"Date: {event.event_date.isoformat()}",
            f"Start: {event.start_time.strftime('%H:%M') if event.start_time else '-'}",
            f"End: {event.end_time.strftime('%H:%M') if event.end_time else '-'}",
            f"Description: {event.description or '-'}",
            f"Seats taken: {len(enrollees)}/{event.capacity}",
            "",
            "Participants:",
            participants,
            "",
            "Please take care of the organization!",
        ]
    )
    return OutgoingMessage(
        address=address,
        subject=f"Deadline reached for event: {event.title}",
        body=body,
    )
