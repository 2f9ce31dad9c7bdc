"""Application-wide constants."""

DEFAULT_NOTIFICATION_TIMEOUT_SECONDS = 10.0
DEFAULT_SWEEP_INTERVAL_SECONDS = 3600

DEFAULT_AUTH_USER_HEADER = "X-Auth-User"
DEFAULT_AUTH_ROLE_HEADER = "X-Auth-Role"

CALENDAR_ATTACHMENT_FILENAME = "event.ics"
CALENDAR_MIME_TYPE = "text/calendar"

# Duration used when an event has a start time but no end time.
DEFAULT_EVENT_DURATION_MINUTES = 60

# Local wall-clock zone of event dates and times.
DEFAULT_CALENDAR_TIMEZONE = "Europe/Berlin"
