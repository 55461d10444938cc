"""
FastAPI application factory.

* Registers routes for vehicles, drivers, trips, maintenance, expenses and
  admin.
* Hydrates the in-process ``FleetStore`` from the database and starts /
  stops the change-feed sync worker via lifespan events.
* Maps fleet errors to HTTP responses and applies rate limiting.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.api.middleware import limiter
from src.api.routes import admin, drivers, expenses, maintenance, trips, vehicles
from src.config import settings
from src.domain.errors import (
    ConsistencyError,
    InvalidStateTransition,
    LockUnavailable,
    ValidationError,
)
from src.infrastructure.change_feed import ChangeFeed
from src.infrastructure.database import async_session_factory
from src.infrastructure.redis_client import close_redis, get_redis
from src.infrastructure.repositories import FleetRepository
from src.services.store import FleetStore
from src.workers import sync as _sync

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the fleet and wire the change feed on startup; undo on shutdown."""
    store: FleetStore = app.state.store
    async with async_session_factory() as session:
        await store.replace(await FleetRepository(session).load_snapshot())
    logger.info(
        "Loaded %d vehicles, %d drivers, %d trips",
        len(store.snapshot.vehicles),
        len(store.snapshot.drivers),
        len(store.snapshot.trips),
    )

    feed = ChangeFeed(await get_redis(), settings.change_channel)
    unsubscribe = store.subscribe(feed.on_commit)
    if settings.sync_enabled:
        await _sync.start_sync_loop(store, feed)
    yield
    if settings.sync_enabled:
        await _sync.stop_sync_loop()
    unsubscribe()
    await close_redis()


# ── Error mapping ─────────────────────────────────────────────────────


async def _invalid_transition_handler(request: Request, exc: InvalidStateTransition):
    return JSONResponse(status_code=409, content={"detail": {"errors": exc.errors}})


async def _validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": {"errors": exc.errors}})


async def _lock_unavailable_handler(request: Request, exc: LockUnavailable):
    return JSONResponse(
        status_code=503,
        content={"detail": "Fleet is busy, retry shortly"},
        headers={"Retry-After": "1"},
    )


async def _consistency_error_handler(request: Request, exc: ConsistencyError):
    logger.error("Consistency error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Write was rolled back"})


def create_app() -> FastAPI:
    app = FastAPI(
        title="Fleet Operations API",
        description=(
            "Tracks vehicles, drivers, trips, maintenance and expenses for a "
            "delivery fleet.  Enforces the dispatch lifecycle and keeps "
            "vehicle and driver status consistent across concurrent writers."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.store = FleetStore()

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Fleet errors; the subclass handler is matched first by MRO
    app.add_exception_handler(InvalidStateTransition, _invalid_transition_handler)
    app.add_exception_handler(ValidationError, _validation_error_handler)
    app.add_exception_handler(LockUnavailable, _lock_unavailable_handler)
    app.add_exception_handler(ConsistencyError, _consistency_error_handler)

    # Routers
    for module in (vehicles, drivers, trips, maintenance, expenses, admin):
        app.include_router(module.router, prefix="/api/v1")

    return app
