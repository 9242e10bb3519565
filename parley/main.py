"""Parley API: FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map ParleyError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database manager and analysis client created in lifespan, stored on app.state

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Missing API key is logged at startup but does not block boot;
      resolution requests fail with ANALYSIS_UNAVAILABLE instead
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from parley import __version__
from parley.api.error_handlers import register_error_handlers
from parley.api.routes import health, messages, resolutions, sessions, users
from parley.config import get_settings
from parley.infrastructure.anthropic_client import AnthropicAnalysisClient
from parley.infrastructure.database import DatabaseSessionManager
from parley.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    app.state.db = DatabaseSessionManager(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    app.state.analysis = AnthropicAnalysisClient(
        api_key=settings.anthropic_api_key,
        model=settings.analysis_model,
        max_tokens=settings.analysis_max_tokens,
        timeout_seconds=settings.analysis_timeout_seconds,
    )
    if not app.state.analysis.configured:
        logger.warning("ANTHROPIC_API_KEY not set; resolutions will be unavailable")
    logger.info("Parley API started")
    yield
    logger.info("Parley API shutting down")
    await app.state.db.close()


app = FastAPI(title="Parley API", version=__version__, lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(users.router)
app.include_router(sessions.router)
app.include_router(messages.router)
app.include_router(resolutions.router)

register_error_handlers(app)
