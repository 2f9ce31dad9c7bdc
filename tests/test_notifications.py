import smtplib
from datetime import date, datetime, time

import pytest

from clubevents.config import Settings
from clubevents.db.enums import DeliveryStatus
from clubevents.db.models import Event
from clubevents.errors import NotificationFailure
from clubevents.logging_setup import get_logger
from clubevents.notifications import smtp
from clubevents.notifications.base import OutgoingMessage
from clubevents.notifications.calendar import build_event_calendar, calendar_uid, event_time_bounds
from clubevents.notifications.delivery import count_statuses, deliver_best_effort
from clubevents.notifications.messages import compose_deadline_summary, format_event_when
from clubevents.notifications.smtp import SmtpNotificationSender


def _event(**overrides) -> Event:
    fields = {
        "id": 7,
        "title": "Spring cleanup",
        "event_date": date(2026, 11, 1),
        "start_time": None,
        "end_time": None,
        "description": "Bring gloves",
        "capacity": 4,
        "organizer_name": None,
        "organizer_email": None,
    }
    fields.update(overrides)
    return Event(**fields)


def _settings(**overrides) -> Settings:
    values = {"DATABASE_URL": "sqlite+aiosqlite://", "_env_file": None}
    values.update(overrides)
    return Settings(**values)


def test_whole_day_event_has_no_time_bounds() -> None:
    assert event_time_bounds(_event()) is None


def test_missing_end_time_defaults_to_one_hour() -> None:
    begin, end = event_time_bounds(_event(start_time=time(18, 30)))
    assert begin == datetime(2026, 11, 1, 18, 30)
    assert end == datetime(2026, 11, 1, 19, 30)


def test_explicit_end_time_is_used() -> None:
    begin, end = event_time_bounds(_event(start_time=time(9, 0), end_time=time(12, 0)))
    assert (begin.hour, end.hour) == (9, 12)


def test_calendar_contains_single_event_with_stable_uid() -> None:
    attachment = build_event_calendar(_event(), "example.org")
    content = attachment.content.decode("utf-8")

    assert attachment.filename == "event.ics"
    assert attachment.mimetype == "text/calendar"
    assert "BEGIN:VCALENDAR" in content
    assert content.count("BEGIN:VEVENT") == 1
    assert f"UID:{calendar_uid(7, 'example.org')}" in content
    assert "SUMMARY:Spring cleanup" in content
    assert "DESCRIPTION:Bring gloves" in content
    assert "20261101" in content


def test_timed_event_is_written_in_utc_from_local_club_time() -> None:
    attachment = build_event_calendar(
        _event(start_time=time(19, 0), end_time=time(21, 0)),
        "example.org",
        "Europe/Berlin",
    )
    content = attachment.content.decode("utf-8")

    assert "DTSTART:20261101T180000Z" in content
    assert "DTEND:20261101T200000Z" in content


def test_timed_event_follows_daylight_saving_time() -> None:
    attachment = build_event_calendar(
        _event(event_date=date(2026, 7, 1), start_time=time(19, 0)),
        "example.org",
        "Europe/Berlin",
    )
    content = attachment.content.decode("utf-8")

    assert "DTSTART:20260701T170000Z" in content
    assert "DTEND:20260701T180000Z" in content


def test_format_event_when_includes_times() -> None:
    assert format_event_when(_event()) == "2026-11-01"
    assert format_event_when(_event(start_time=time(9, 0), end_time=time(11, 15))) == "2026-11-01 09:00-11:15"


def test_deadline_summary_lists_participants() -> None:
    message = compose_deadline_summary(_event(), "olga@example.org", ["anna", "ben"], "VereinsApp")

    assert message.address == "olga@example.org"
    assert message.subject == "Deadline reached for event: Spring cleanup"
    assert "Hello VereinsApp," in message.body
    assert "- anna\n- ben" in message.body
    assert "Seats taken: 2/4" in message.body


def test_smtp_message_carries_calendar_attachment() -> None:
    sender = SmtpNotificationSender(_settings(SMTP_HOST="smtp.example.org", MAIL_FROM="club@example.org"), get_logger("tests"))
    attachment = build_event_calendar(_event(), "example.org")

    message = sender.build_message("anna@example.org", "Hi", "Body", attachment)

    assert message["From"] == "club@example.org"
    assert message["To"] == "anna@example.org"
    parts = [part for part in message.iter_attachments()]
    assert len(parts) == 1
    assert parts[0].get_content_type() == "text/calendar"
    assert parts[0].get_filename() == "event.ics"


@pytest.mark.asyncio
async def test_smtp_sender_without_host_reports_failure() -> None:
    sender = SmtpNotificationSender(_settings(), get_logger("tests"))

    with pytest.raises(NotificationFailure):
        await sender.send("anna@example.org", "Hi", "Body")


def test_smtp_delivery_without_host_raises_notification_failure() -> None:
    sender = SmtpNotificationSender(_settings(), get_logger("tests"))
    message = sender.build_message("anna@example.org", "Hi", "Body")

    with pytest.raises(NotificationFailure):
        sender._deliver(message)


@pytest.mark.asyncio
async def test_smtp_transport_errors_become_notification_failures(monkeypatch) -> None:
    class RefusingSMTP:
        def __init__(self, *args, **kwargs) -> None:
            raise smtplib.SMTPConnectError(421, "service not available")

    monkeypatch.setattr(smtp.smtplib, "SMTP", RefusingSMTP)
    sender = SmtpNotificationSender(_settings(SMTP_HOST="smtp.example.org", MAIL_FROM="club@example.org"), get_logger("tests"))

    with pytest.raises(NotificationFailure):
        await sender.send("anna@example.org", "Hi", "Body")


@pytest.mark.asyncio
async def test_best_effort_delivery_reports_instead_of_raising(sender) -> None:
    message = OutgoingMessage("anna@example.org", "Hi", "Body")

    assert await deliver_best_effort(sender, message, timeout_seconds=1, logger=get_logger("tests")) is DeliveryStatus.SENT

    sender.fail_all = True
    assert await deliver_best_effort(sender, message, timeout_seconds=1, logger=get_logger("tests")) is DeliveryStatus.FAILED


def test_count_statuses_ignores_skipped() -> None:
    statuses = [DeliveryStatus.SENT, DeliveryStatus.FAILED, DeliveryStatus.SKIPPED, DeliveryStatus.SENT]
    assert count_statuses(statuses) == (2, 1)
