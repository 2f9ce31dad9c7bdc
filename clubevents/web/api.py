"""JSON API handlers."""

from __future__ import annotations

import json
from datetime import date
from typing import TypeVar

import pydantic
from aiohttp import web
from pydantic import BaseModel

from clubevents.config import Settings
from clubevents.context import ServiceContext
from clubevents.errors import (
    ClubEventsError,
    Conflict,
    Forbidden,
    MissingContact,
    NotFound,
    StorageFailure,
    ValidationError,
)
from clubevents.identity import Identity, require_admin
from clubevents.schemas import (
    EnrollmentRequest,
    EnrollResponse,
    EventCreate,
    EventUpdate,
    SweepRequest,
    SweepResponse,
    UserCreate,
    UserUpdate,
    WithdrawResponse,
)
from clubevents.services import enrollment_service, event_service, user_service
from clubevents.services.sweep_service import run_sweep
from clubevents.web.auth import MissingIdentity, parse_identity

ModelT = TypeVar("ModelT", bound=BaseModel)

ERROR_STATUSES: tuple[tuple[type[ClubEventsError], int], ...] = (
    (NotFound, 404),
    (Forbidden, 403),
    (Conflict, 409),
    (ValidationError, 400),
    (MissingContact, 400),
    (StorageFailure, 500),
)


def status_for(exc: ClubEventsError) -> int:
    for error_type, status in ERROR_STATUSES:
        if isinstance(exc, error_type):
            return status
    return 500


@web.middleware
async def error_middleware(request: web.Request, handler) -> web.StreamResponse:
    try:
        return await handler(request)
    except MissingIdentity as exc:
        return web.json_response({"error": "unauthenticated", "message": str(exc)}, status=401)
    except ClubEventsError as exc:
        status = status_for(exc)
        ctx: ServiceContext = request.app["context"]
        log = ctx.logger.error if status >= 500 else ctx.logger.info
        log("request_rejected", path=request.path, error=exc.code, status=status)
        return web.json_response({"error": exc.code, "message": exc.message}, status=status)


def identity_from(request: web.Request) -> Identity:
    settings: Settings = request.app["settings"]
    return parse_identity(request.headers, settings.auth_user_header, settings.auth_role_header)


async def read_payload(request: web.Request, model: type[ModelT]) -> ModelT:
    data: object = {}
    if request.can_read_body:
        try:
            data = await request.json()
        except json.JSONDecodeError as exc:
            raise ValidationError("Request body is not valid JSON") from exc

    try:
        return model.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Invalid request body: {exc.error_count()} error(s)", errors=exc.errors()) from exc


def event_id_from(request: web.Request) -> int:
    return int(request.match_info["event_id"])


def respond(body: BaseModel | list[BaseModel], status: int = 200) -> web.Response:
    if isinstance(body, list):
        return web.json_response([item.model_dump(mode="json") for item in body], status=status)
    return web.json_response(body.model_dump(mode="json"), status=status)


async def list_events(request: web.Request) -> web.Response:
    return respond(await event_service.list_events(request.app["context"]))


async def get_event(request: web.Request) -> web.Response:
    return respond(await event_service.get_event(request.app["context"], event_id_from(request)))


async def create_event(request: web.Request) -> web.Response:
    identity = identity_from(request)
    payload = await read_payload(request, EventCreate)
    return respond(await event_service.create_event(request.app["context"], identity, payload), status=201)


async def update_event(request: web.Request) -> web.Response:
    identity = identity_from(request)
    payload = await read_payload(request, EventUpdate)
    view = await event_service.update_event(request.app["context"], identity, event_id_from(request), payload)
    return respond(view)


async def delete_event(request: web.Request) -> web.Response:
    await event_service.delete_event(request.app["context"], identity_from(request), event_id_from(request))
    return web.json_response({"deleted": True})


async def enroll(request: web.Request) -> web.Response:
    identity = identity_from(request)
    payload = await read_payload(request, EnrollmentRequest)
    result = await enrollment_service.enroll(
        request.app["context"],
        event_id_from(request),
        identity,
        username=payload.username,
    )
    return respond(
        EnrollResponse(
            event_id=result.event_id,
            username=result.username,
            score_credited=result.score_credited,
            notification=result.notification,
            warning=result.warning,
        ),
        status=201,
    )


async def withdraw(request: web.Request) -> web.Response:
    identity = identity_from(request)
    payload = await read_payload(request, EnrollmentRequest)
    result = await enrollment_service.withdraw(
        request.app["context"],
        event_id_from(request),
        identity,
        username=payload.username,
    )
    return respond(
        WithdrawResponse(event_id=result.event_id, username=result.username, was_enrolled=result.was_enrolled)
    )


async def trigger_sweep(request: web.Request) -> web.Response:
    identity = identity_from(request)
    require_admin(identity)
    payload = await read_payload(request, SweepRequest)
    result = await run_sweep(request.app["context"], payload.sweep_date or date.today())
    return respond(
        SweepResponse(
            events_processed=result.events_processed,
            seats_filled=result.seats_filled,
            notifications_sent=result.notifications_sent,
            notifications_failed=result.notifications_failed,
            events_failed=result.events_failed,
        )
    )


async def list_users(request: web.Request) -> web.Response:
    return respond(await user_service.list_users(request.app["context"], identity_from(request)))


async def get_user(request: web.Request) -> web.Response:
    identity = identity_from(request)
    return respond(await user_service.get_user(request.app["context"], identity, request.match_info["username"]))


async def create_user(request: web.Request) -> web.Response:
    identity = identity_from(request)
    payload = await read_payload(request, UserCreate)
    return respond(await user_service.create_user(request.app["context"], identity, payload), status=201)


async def update_user(request: web.Request) -> web.Response:
    identity = identity_from(request)
    payload = await read_payload(request, UserUpdate)
    view = await user_service.update_user(request.app["context"], identity, request.match_info["username"], payload)
    return respond(view)


async def delete_user(request: web.Request) -> web.Response:
    identity = identity_from(request)
    await user_service.delete_user(request.app["context"], identity, request.match_info["username"])
    return web.json_response({"deleted": True})


def setup_routes(app: web.Application) -> None:
    app.router.add_get("/api/events", list_events)
    app.router.add_post("/api/events", create_event)
    app.router.add_get(r"/api/events/{event_id:\d+}", get_event)
    app.router.add_put(r"/api/events/{event_id:\d+}", update_event)
    app.router.add_delete(r"/api/events/{event_id:\d+}", delete_event)
    app.router.add_post(r"/api/events/{event_id:\d+}/enrollment", enroll)
    app.router.add_delete(r"/api/events/{event_id:\d+}/enrollment", withdraw)
    app.router.add_post("/api/sweeps", trigger_sweep)
    app.router.add_get("/api/users", list_users)
    app.router.add_post("/api/users", create_user)
    app.router.add_get("/api/users/{username}", get_user)
    app.router.add_put("/api/users/{username}", update_user)
    app.router.add_delete("/api/users/{username}", delete_user)
