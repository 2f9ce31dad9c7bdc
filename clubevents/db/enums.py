"""Database and policy enums."""

from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"


class MissingContactPolicy(str, Enum):
    """What enrollment does when the member has no email address."""

    REJECT = "reject"
    SKIP_NOTIFICATION = "skip_notification"


class DeliveryStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"
