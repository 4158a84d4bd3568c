"""FastAPI application assembly."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fileforge import __version__
from fileforge.config import Settings
from fileforge.runtime import Runtime, build_runtime
from middleware import install_middleware
from routes.compression import router as compression_router
from routes.conversion import router as conversion_router
from routes.errors import register_error_handlers
from routes.health import router as health_router
from routes.jobs import router as jobs_router
from routes.uploads import router as uploads_router

logger = logging.getLogger("fileforge.api")

_ROUTERS = (uploads_router, compression_router, conversion_router, jobs_router, health_router)


def create_app(settings: Settings, *, runtime: Runtime | None = None) -> FastAPI:
    rt = runtime or build_runtime(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        rt.registry.check(strict=settings.engine.strict_startup)
        if settings.storage.sweep_enabled:
            rt.sweeper.start()
        logger.info("API starting (temp_dir=%s)", rt.store.root)
        try:
            yield
        finally:
            await rt.sweeper.stop()

    app = FastAPI(
        title="FileForge API",
        description="File compression and conversion API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.runtime = rt

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_middleware(app, rate_limiter=rt.rate_limiter, path_prefix=settings.rate_limit.path_prefix)
    register_error_handlers(app)

    for router in _ROUTERS:
        app.include_router(router)
        app.include_router(router, prefix="/api")
    return app
