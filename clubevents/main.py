"""Web application entrypoint."""

from __future__ import annotations

import asyncio
from contextlib import suppress

from aiohttp import web

from clubevents.config import Settings, get_settings
from clubevents.context import ServiceContext, build_context
from clubevents.logging_setup import configure_logging, get_logger
from clubevents.services.sweep_service import run_periodic_sweeps
from clubevents.web.api import error_middleware, setup_routes
from clubevents.web.health import healthz, readyz


def create_app(settings: Settings, ctx: ServiceContext | None = None) -> web.Application:
    configure_logging(settings.log_level, settings.log_format)
    logger = get_logger("clubevents")

    context = ctx or build_context(settings, logger)

    app = web.Application(middlewares=[error_middleware])
    app["settings"] = settings
    app["context"] = context
    app["sweep_task"] = None

    async def on_startup(application: web.Application) -> None:
        if settings.sweep_interval_seconds <= 0:
            logger.warning("periodic_sweep_disabled")
            return

        application["sweep_task"] = asyncio.create_task(
            run_periodic_sweeps(context, settings.sweep_interval_seconds)
        )
        logger.info("periodic_sweep_started", interval_seconds=settings.sweep_interval_seconds)

    async def on_shutdown(application: web.Application) -> None:
        sweep_task = application.get("sweep_task")
        if sweep_task is not None and not sweep_task.done():
            sweep_task.cancel()
            with suppress(asyncio.CancelledError):
                await sweep_task
            logger.info("periodic_sweep_stopped")

        await context.close()

    app.on_startup.append(on_startup)
    app.on_cleanup.append(on_shutdown)

    app.router.add_get("/healthz", healthz)
    app.router.add_get("/readyz", readyz)
    setup_routes(app)

    return app


def main() -> None:
    settings = get_settings()
    app = create_app(settings)
    web.run_app(app, host=settings.app_host, port=settings.app_port)


if __name__ == "__main__":
    main()
