"""Request-scoped dependencies: stores and the pipeline built per request.

Invariants:
    - Long-lived resources (DB manager, analysis client) live on app.state,
      created and closed by the lifespan in main.py
    - Stores are constructed per request around one AsyncSession
    - get_clock is the single time source, overridable in tests

Design Decisions:
    - FastAPI Depends over module globals: tests swap the analysis capability and clock
      with dependency_overrides
"""

from datetime import datetime
from typing import Callable

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from parley.config import Settings, get_settings
from parley.core.repository_protocols import AnalysisCapability
from parley.core.session_rules import utc_now
from parley.infrastructure.database import get_db
from parley.services.message_log import MessageLog
from parley.services.resolution_pipeline import ResolutionPipeline
from parley.services.resolution_store import ResolutionStore
from parley.services.session_store import SessionStore
from parley.services.user_directory import UserDirectory


def get_clock() -> Callable[[], datetime]:
    return utc_now


def get_analysis_capability(request: Request) -> AnalysisCapability:
    capability = getattr(request.app.state, "analysis", None)
    if capability is None:
        raise RuntimeError("Analysis capability not initialized")
    return capability


def get_session_store(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> SessionStore:
    return SessionStore(db, clock=clock, max_name_length=settings.max_name_length)


def get_message_log(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> MessageLog:
    return MessageLog(
        db, clock=clock,
        max_length=settings.max_message_length,
        turn_policy=settings.turn_policy,
    )


def get_resolution_store(
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> ResolutionStore:
    return ResolutionStore(db, clock=clock)


def get_user_directory(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> UserDirectory:
    return UserDirectory(db, max_name_length=settings.max_name_length)


def get_resolution_pipeline(
    sessions: SessionStore = Depends(get_session_store),
    messages: MessageLog = Depends(get_message_log),
    resolutions: ResolutionStore = Depends(get_resolution_store),
    capability: AnalysisCapability = Depends(get_analysis_capability),
    settings: Settings = Depends(get_settings),
) -> ResolutionPipeline:
    return ResolutionPipeline(
        sessions, messages, resolutions, capability,
        timeout_seconds=settings.analysis_timeout_seconds,
    )
