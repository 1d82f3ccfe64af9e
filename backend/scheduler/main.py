"""Rehearsal Scheduler API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map SchedulerError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database and band channel hub initialized on startup via lifespan,
      database engine disposed on shutdown

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Error handlers live in api/error_handlers.py to keep this module thin
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from scheduler.api.error_handlers import register_error_handlers
from scheduler.api.routes import band_events, health, rehearsals
from scheduler.config import get_settings
from scheduler.infrastructure.broadcast import init_broadcast
from scheduler.infrastructure.database import close_db, init_db
from scheduler.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_timeout=settings.database_pool_timeout_seconds,
        statement_timeout_ms=settings.database_statement_timeout_ms,
    )
    init_broadcast(settings.broadcast_queue_size)
    logger.info("Rehearsal Scheduler API started")
    yield
    logger.info("Rehearsal Scheduler API shutting down")
    await close_db()


app = FastAPI(
    title="Rehearsal Scheduler API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(rehearsals.router)
app.include_router(band_events.router)

register_error_handlers(app)
