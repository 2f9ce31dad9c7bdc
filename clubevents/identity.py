"""Authenticated caller identity as handed over by the gateway."""

from __future__ import annotations

from dataclasses import dataclass

from clubevents.db.enums import UserRole
from clubevents.errors import Forbidden


@dataclass(frozen=True, slots=True)
class Identity:
    username: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN


def require_admin(identity: Identity) -> None:
    if not identity.is_admin:
        raise Forbidden("Only administrators may perform this action", username=identity.username)


def resolve_target_username(identity: Identity, username: str | None) -> str:
    """Return the username an operation applies to.

    Members may only act for themselves; administrators may name anyone.
    """

    if username is None or username == identity.username:
        return identity.username
    require_admin(identity)
    return username
