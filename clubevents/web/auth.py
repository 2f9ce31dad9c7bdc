"""Caller identity taken from headers set by the authenticating gateway."""

from __future__ import annotations

from collections.abc import Mapping

from clubevents.db.enums import UserRole
from clubevents.identity import Identity


class MissingIdentity(Exception):
    pass


def parse_identity(headers: Mapping[str, str], user_header: str, role_header: str) -> Identity:
    username = (headers.get(user_header) or "").strip()
    raw_role = (headers.get(role_header) or "").strip().lower()
    if not username or not raw_role:
        raise MissingIdentity("authenticated identity headers are missing")

    try:
        role = UserRole(raw_role)
    except ValueError as exc:
        raise MissingIdentity(f"unknown role {raw_role!r}") from exc
    return Identity(username=username, role=role)
