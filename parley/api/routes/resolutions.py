"""Resolution Routes: trigger analysis and list past verdicts.

Invariants:
    - POST runs the Resolution Pipeline once; failures map to 400/404/410/500 by error code
    - GET lists resolutions most-recent-first, each with its stored analysis
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from parley.api.dependencies import (
    get_resolution_pipeline,
    get_resolution_store,
    get_session_store,
)
from parley.schemas.resolution import (
    ResolutionResponse,
    ResolveRequest,
    ResolveResponse,
)
from parley.services.resolution_pipeline import ResolutionPipeline
from parley.services.resolution_store import ResolutionStore
from parley.services.session_store import SessionStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/resolutions", tags=["resolutions"])


@router.post(
    "", response_model=ResolveResponse,
    status_code=status.HTTP_201_CREATED,
)
async def trigger_resolution(
    body: ResolveRequest,
    pipeline: ResolutionPipeline = Depends(get_resolution_pipeline),
):
    """Analyze the session transcript and store the verdict."""
    outcome = await pipeline.resolve(body.session_id)
    return ResolveResponse(
        resolution=ResolutionResponse.from_model(outcome.resolution),
        analysis=outcome.analysis.to_wire(),
    )


@router.get("", response_model=list[ResolutionResponse])
async def list_resolutions(
    session_id: UUID = Query(..., alias="sessionId"),
    sessions: SessionStore = Depends(get_session_store),
    resolutions: ResolutionStore = Depends(get_resolution_store),
):
    """Resolution history for a live session."""
    await sessions.get_by_id(session_id)
    rows = await resolutions.list_for_session(session_id)
    return [ResolutionResponse.from_model(r) for r in rows]
