"""Typed request and response bodies."""

from __future__ import annotations

from datetime import date, time

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, PositiveInt, computed_field, model_validator

from clubevents.db.enums import DeliveryStatus, UserRole


def check_time_range(start_time: time | None, end_time: time | None) -> None:
    if end_time is not None and start_time is None:
        raise ValueError("end_time requires start_time")
    if start_time is not None and end_time is not None and end_time <= start_time:
        raise ValueError("end_time must be after start_time")


class EventCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1)
    event_date: date
    start_time: time | None = None
    end_time: time | None = None
    description: str | None = None
    capacity: PositiveInt
    deadline: date | None = None
    organizer_name: str | None = None
    organizer_email: str | None = None
    reward_score: NonNegativeInt = 0

    @model_validator(mode="after")
    def validate_times(self) -> "EventCreate":
        check_time_range(self.start_time, self.end_time)
        return self


class EventUpdate(BaseModel):
    """Partial update; only fields present in the body are changed."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1)
    event_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    description: str | None = None
    capacity: PositiveInt | None = None
    deadline: date | None = None
    organizer_name: str | None = None
    organizer_email: str | None = None
    reward_score: NonNegativeInt | None = None

    @model_validator(mode="after")
    def reject_null_required_fields(self) -> "EventUpdate":
        for name in ("title", "event_date", "capacity", "reward_score"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class EventView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    event_date: date
    start_time: time | None
    end_time: time | None
    description: str | None
    capacity: int
    deadline: date | None
    organizer_name: str | None
    organizer_email: str | None
    reward_score: int
    deadline_notified: bool
    participants: list[str] = Field(default_factory=list)

    @computed_field
    @property
    def free_seats(self) -> int:
        return max(0, self.capacity - len(self.participants))


class UserCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    username: str = Field(min_length=1)
    email: str | None = None
    role: UserRole = UserRole.MEMBER
    is_active: bool = True
    score: int = 0


class UserUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    username: str | None = Field(default=None, min_length=1)
    email: str | None = None
    role: UserRole | None = None
    is_active: bool | None = None
    score: int | None = None

    @model_validator(mode="after")
    def require_changes(self) -> "UserUpdate":
        if not self.model_fields_set:
            raise ValueError("no fields to change")
        for name in ("username", "role", "is_active", "score"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class UserView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    username: str
    email: str | None
    role: UserRole
    is_active: bool
    score: int


class EnrollmentRequest(BaseModel):
    """Body of enroll/withdraw calls; ``username`` lets admins act for a member."""

    model_config = ConfigDict(extra="forbid")

    username: str | None = Field(default=None, min_length=1)


class EnrollResponse(BaseModel):
    enrolled: bool = True
    event_id: int
    username: str
    score_credited: int
    notification: DeliveryStatus
    warning: str | None = None


class WithdrawResponse(BaseModel):
    withdrawn: bool = True
    event_id: int
    username: str
    was_enrolled: bool


class SweepRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    sweep_date: date | None = Field(default=None, alias="date")


class SweepResponse(BaseModel):
    events_processed: int
    seats_filled: int
    notifications_sent: int
    notifications_failed: int
    events_failed: int
