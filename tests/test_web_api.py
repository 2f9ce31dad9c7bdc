from datetime import date

import pytest
from aiohttp.test_utils import TestClient, TestServer

from clubevents.config import Settings
from clubevents.main import create_app

ADMIN_HEADERS = {"X-Auth-User": "admin", "X-Auth-Role": "admin"}
ANNA_HEADERS = {"X-Auth-User": "anna", "X-Auth-Role": "member"}


@pytest.fixture
async def client(ctx):
    settings = Settings(DATABASE_URL="sqlite+aiosqlite://", SWEEP_INTERVAL_SECONDS=0, _env_file=None)
    app = create_app(settings, ctx)
    async with TestClient(TestServer(app)) as test_client:
        yield test_client


@pytest.mark.asyncio
async def test_health_endpoints(client) -> None:
    assert (await client.get("/healthz")).status == 200

    response = await client.get("/readyz")
    assert response.status == 200
    assert (await response.json())["db"] == "ok"


@pytest.mark.asyncio
async def test_enroll_flow_over_http(client, store, sender) -> None:
    await store.add_user("anna")
    event_id = await store.add_event(capacity=1, reward_score=2)

    response = await client.post(f"/api/events/{event_id}/enrollment", headers=ANNA_HEADERS)
    assert response.status == 201
    body = await response.json()
    assert body["enrolled"] is True
    assert body["score_credited"] == 2
    assert body["notification"] == "sent"

    duplicate = await client.post(f"/api/events/{event_id}/enrollment", headers=ANNA_HEADERS)
    assert duplicate.status == 409
    assert (await duplicate.json())["error"] == "already_enrolled"

    listing = await (await client.get("/api/events")).json()
    assert listing[0]["participants"] == ["anna"]
    assert listing[0]["free_seats"] == 0

    withdrawn = await client.delete(f"/api/events/{event_id}/enrollment", headers=ANNA_HEADERS)
    assert withdrawn.status == 200
    assert (await withdrawn.json())["was_enrolled"] is True


@pytest.mark.asyncio
async def test_mutations_require_identity(client, store) -> None:
    event_id = await store.add_event()

    response = await client.post(f"/api/events/{event_id}/enrollment")

    assert response.status == 401


@pytest.mark.asyncio
async def test_invalid_event_body_is_rejected_before_storage(client) -> None:
    response = await client.post("/api/events", json={"title": "No capacity"}, headers=ADMIN_HEADERS)

    assert response.status == 400
    assert (await response.json())["error"] == "validation_error"


@pytest.mark.asyncio
async def test_members_cannot_create_events(client) -> None:
    payload = {"title": "Fete", "event_date": "2026-11-01", "capacity": 2}

    response = await client.post("/api/events", json=payload, headers=ANNA_HEADERS)

    assert response.status == 403


@pytest.mark.asyncio
async def test_admin_triggers_sweep_for_a_date(client, store) -> None:
    await store.add_user("anna")
    event_id = await store.add_event(capacity=1, deadline=date(2026, 10, 18))

    response = await client.post("/api/sweeps", json={"date": "2026-10-18"}, headers=ADMIN_HEADERS)

    assert response.status == 200
    body = await response.json()
    assert body["events_processed"] == 1
    assert body["seats_filled"] == 1
    assert await store.enrolled(event_id) == {"anna"}
