"""Health and readiness handlers."""

from __future__ import annotations

from aiohttp import web
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from clubevents.context import ServiceContext


async def healthz(_: web.Request) -> web.Response:
    return web.json_response({"status": "ok"})


async def readyz(request: web.Request) -> web.Response:
    ctx: ServiceContext = request.app["context"]

    try:
        async with ctx.session_factory() as session:
            await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError):
        ctx.logger.warning("readiness_check_failed")
        return web.json_response({"status": "error", "db": "error"}, status=503)

    return web.json_response({"status": "ready", "db": "ok"})
