import pytest
from pydantic import ValidationError

from clubevents.config import Settings
from clubevents.db.enums import MissingContactPolicy, UserRole
from clubevents.errors import Forbidden
from clubevents.identity import Identity, resolve_target_username
from clubevents.web.auth import MissingIdentity, parse_identity


def _settings(**overrides) -> Settings:
    values = {"DATABASE_URL": "sqlite+aiosqlite://", "_env_file": None}
    values.update(overrides)
    return Settings(**values)


def test_defaults() -> None:
    settings = _settings()

    assert settings.missing_contact_policy is MissingContactPolicy.REJECT
    assert settings.email_enabled is False
    assert settings.sweep_interval_seconds == 3600
    assert settings.auth_user_header == "X-Auth-User"


def test_missing_contact_policy_is_case_insensitive() -> None:
    settings = _settings(MISSING_CONTACT_POLICY="Skip_Notification")
    assert settings.missing_contact_policy is MissingContactPolicy.SKIP_NOTIFICATION


def test_smtp_host_requires_sender_address() -> None:
    with pytest.raises(ValidationError):
        _settings(SMTP_HOST="smtp.example.org")

    assert _settings(SMTP_HOST="smtp.example.org", MAIL_FROM="club@example.org").email_enabled is True


def test_invalid_timing_settings_are_rejected() -> None:
    with pytest.raises(ValidationError):
        _settings(NOTIFICATION_TIMEOUT_SECONDS=0)
    with pytest.raises(ValidationError):
        _settings(SWEEP_INTERVAL_SECONDS=-1)


def test_calendar_timezone_must_be_known() -> None:
    assert _settings().calendar_timezone == "Europe/Berlin"
    assert _settings(CALENDAR_TIMEZONE="America/New_York").calendar_timezone == "America/New_York"

    with pytest.raises(ValidationError):
        _settings(CALENDAR_TIMEZONE="Mars/Olympus_Mons")


def test_parse_identity_from_gateway_headers() -> None:
    identity = parse_identity({"X-Auth-User": "anna", "X-Auth-Role": "Admin"}, "X-Auth-User", "X-Auth-Role")
    assert identity == Identity(username="anna", role=UserRole.ADMIN)


@pytest.mark.parametrize(
    "headers",
    [
        {},
        {"X-Auth-User": "anna"},
        {"X-Auth-User": " ", "X-Auth-Role": "member"},
        {"X-Auth-User": "anna", "X-Auth-Role": "superuser"},
    ],
)
def test_parse_identity_rejects_incomplete_headers(headers) -> None:
    with pytest.raises(MissingIdentity):
        parse_identity(headers, "X-Auth-User", "X-Auth-Role")


def test_members_act_only_for_themselves() -> None:
    anna = Identity(username="anna", role=UserRole.MEMBER)
    admin = Identity(username="root", role=UserRole.ADMIN)

    assert resolve_target_username(anna, None) == "anna"
    assert resolve_target_username(anna, "anna") == "anna"
    assert resolve_target_username(admin, "anna") == "anna"
    with pytest.raises(Forbidden):
        resolve_target_username(anna, "ben")
