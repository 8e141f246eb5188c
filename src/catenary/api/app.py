"""
FastAPI application wiring.

`create_app` builds the process-wide objects (settings, message store, writer thread,
trace sessions), hangs them on `app.state` and starts/stops the writer with the
application lifespan. Tests build isolated apps with their own store.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from catenary.config.settings import Settings, get_settings
from catenary.core.logging import configure_logging
from catenary.core.time import Clock, utcnow
from catenary.store.names import NameSupplier
from catenary.store.plane import Plane
from catenary.store.writer import MessageWriter
from catenary.tracing.session import SessionRegistry

from .routes import router

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    plane: Plane | None = None,
    name_supplier: NameSupplier | None = None,
    clock: Clock = utcnow,
) -> FastAPI:
    settings = settings or get_settings()
    plane = plane or Plane(settings.tuning, name_supplier=name_supplier, clock=clock)
    writer = MessageWriter(plane, maxsize=settings.app.ingest_queue_size)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        writer.start()
        logger.info("%s ready, store capacity %d", settings.app.name, plane.capacity)
        try:
            yield
        finally:
            writer.stop()

    app = FastAPI(title=f"{settings.app.name} API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.plane = plane
    app.state.writer = writer
    app.state.clock = clock
    app.state.sessions = SessionRegistry(settings.tuning, clock=clock)
    app.include_router(router)
    return app


configure_logging()

app = create_app()
