"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (token sweeper, database).
Middleware, CORS, exception handlers, and routers all registered here.
"""

import asyncio
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from liftlog import __version__
from liftlog.api import api_router
from liftlog.api.errors import setup_exception_handlers
from liftlog.config import settings
from liftlog.middleware.request_id import RequestIdMiddleware
from liftlog.middleware.security import SecurityHeadersMiddleware

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at
    shutdown. The schema itself is Alembic's job (`alembic upgrade head`).
    """
    logger.info(
        "liftlog.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    sweeper = None
    sweep_task = None
    if settings.token_sweep_interval_seconds > 0:
        from liftlog.services.token_sweeper import TokenSweeper

        sweeper = TokenSweeper(interval=settings.token_sweep_interval_seconds)
        sweep_task = asyncio.create_task(sweeper.run_loop())

    yield

    logger.info("liftlog.shutdown")

    if sweeper is not None:
        sweeper.stop()
        sweep_task.cancel()
        try:
            await sweep_task
        except asyncio.CancelledError:
            pass

    from liftlog.db.engine import engine
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="liftlog",
        description="Workout tracking API with bearer-token auth",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → Security → RequestId → handler
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_exception_handlers(app)
    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: liftlog.main:app)
app = create_app()
