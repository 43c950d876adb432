"""FastAPI application entry point."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator

import uvicorn
from fastapi import FastAPI

from .config import AppConfig, load_config
from .dependencies import include_routers
from .lifecycle import run_periodic_reclamation
from .logging import configure_logging

logger = logging.getLogger(__name__)

SHUTDOWN_GRACE_SECONDS = 5.0


@contextlib.asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    config: AppConfig = app.state.config
    await _start_reclaimer(app, config)
    try:
        yield
    finally:
        await _stop_reclaimer(app)


async def _start_reclaimer(app: FastAPI, config: AppConfig) -> None:
    app.state.reclaim_task = None
    app.state.reclaim_shutdown_event = None
    if not config.reclaimer.enabled:
        logger.info("Reclamation loop startup skipped: disabled via configuration")
        return
    shutdown_event = asyncio.Event()
    app.state.reclaim_shutdown_event = shutdown_event
    app.state.reclaim_task = asyncio.create_task(
        run_periodic_reclamation(
            repo=app.state.archive_repo,
            store=app.state.blob_store,
            shutdown_event=shutdown_event,
            interval_seconds=config.reclaimer.interval_seconds,
            batch_size=config.reclaimer.batch_size,
        ),
        name="tempdrop-reclaimer",
    )
    logger.info("Reclamation loop started (interval %.2fs)", config.reclaimer.interval_seconds)


async def _stop_reclaimer(app: FastAPI) -> None:
    shutdown_event: asyncio.Event | None = getattr(app.state, "reclaim_shutdown_event", None)
    if shutdown_event is not None:
        shutdown_event.set()
    task: asyncio.Task[None] | None = getattr(app.state, "reclaim_task", None)
    if task is not None:
        try:
            await asyncio.wait_for(task, timeout=SHUTDOWN_GRACE_SECONDS)
        except asyncio.TimeoutError:
            logger.warning("Reclamation loop did not stop in time; abandoning current pass")
    app.state.reclaim_task = None
    app.state.reclaim_shutdown_event = None


def create_app(config: AppConfig | None = None) -> FastAPI:
    """Build FastAPI instance with configured dependencies."""
    configure_logging()
    cfg = config or load_config()
    app = FastAPI(title="tempdrop", lifespan=_lifespan)
    include_routers(app, cfg)
    return app


def __getattr__(name: str) -> FastAPI:
    # built on first access; importing this module has no side effects
    if name == "app":
        app = create_app()
        globals()["app"] = app
        return app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    uvicorn.run("tempdrop.main:app", host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
