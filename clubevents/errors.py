"""Domain errors raised by the services."""

from __future__ import annotations


class ClubEventsError(Exception):
    """Base class for errors surfaced to callers."""

    code = "error"

    def __init__(self, message: str, **details: object) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class NotFound(ClubEventsError):
    code = "not_found"


class Conflict(ClubEventsError):
    code = "conflict"


class AlreadyEnrolled(Conflict):
    code = "already_enrolled"


class CapacityExceeded(Conflict):
    code = "capacity_exceeded"


class DuplicateUsername(Conflict):
    code = "duplicate_username"


class ValidationError(ClubEventsError):
    code = "validation_error"


class MissingContact(ClubEventsError):
    code = "missing_contact"


class Forbidden(ClubEventsError):
    code = "forbidden"


class StorageFailure(ClubEventsError):
    code = "storage_failure"


class NotificationFailure(ClubEventsError):
    """Raised by a sender when one delivery attempt fails."""

    code = "notification_failure"
