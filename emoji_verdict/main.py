"""Emoji Verdict Court API - FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map VerdictCourtError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Logging configured on startup via lifespan context manager

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Handlers live in api/error_handlers.py to keep this module wiring-only
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from emoji_verdict import __version__
from emoji_verdict.api.error_handlers import register_error_handlers
from emoji_verdict.api.routes import health, verdict
from emoji_verdict.config import get_settings
from emoji_verdict.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    logger.info("Emoji Verdict Court API started")
    yield
    logger.info("Emoji Verdict Court API shutting down")


app = FastAPI(
    title="Emoji Verdict Court API", version=__version__, lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
    expose_headers=["Retry-After"],
)

app.include_router(health.router)
app.include_router(verdict.router)

register_error_handlers(app)
