"""Address Capture API — application wiring: lifespan, CORS, routers, error handlers.

Invariants:
    - Every router is included by name below; nothing is discovered at import
    - Startup order: logging, database (+ create_all when enabled), places client,
      shared location resolver; shutdown releases them in reverse
    - CORS origins come from Settings

Design Decisions:
    - database_auto_create is for SQLite and development; deployed databases
      are migrated with alembic
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from address_capture.api.error_handlers import register_error_handlers
from address_capture.api.routes import addresses, health, places
from address_capture.config import get_settings
from address_capture.infrastructure.database import init_db
from address_capture.infrastructure.observability import setup_logging
from address_capture.infrastructure.places_client import (
    close_places_client, init_places_client,
)
from address_capture.services.location_resolver import init_location_resolver

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if settings.database_auto_create:
        await manager.create_schema()
    places_client = init_places_client(
        api_key=settings.google_api_key,
        base_url=settings.places_base_url,
        ip_geolocation_url=settings.ip_geolocation_url,
        timeout_seconds=settings.places_timeout_seconds,
        search_radius_m=settings.places_search_radius_m,
        pincode_country=settings.pincode_country,
    )
    init_location_resolver(
        places_client,
        high_accuracy=settings.location_high_accuracy,
        timeout_ms=settings.location_timeout_ms,
        maximum_age_ms=settings.location_maximum_age_ms,
    )
    logger.info("Address Capture API started")
    yield
    logger.info("Address Capture API shutting down")
    await close_places_client()
    await manager.dispose()


app = FastAPI(
    title="Address Capture API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(addresses.router)
app.include_router(places.router)

register_error_handlers(app)
