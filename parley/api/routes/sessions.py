"""Session Routes: create, fetch and join sessions.

Invariants:
    - Creating an anonymous session returns the invite URL and the creator's participant token
    - Fetch responses include ordered messages, resolutions, turn view and viewer_role
    - Expired sessions answer 410 on every read, never a stale body
    - Routes hold no business logic; SessionStore raises the typed errors

Design Decisions:
    - X-Participant-Token header binds the caller to role A or B; absent header = spectator view
"""

import logging
from datetime import timedelta
from uuid import UUID

from fastapi import APIRouter, Depends, Header, status

from parley.api.dependencies import get_session_store
from parley.api.routes.session_views import build_session_response
from parley.config import Settings, get_settings
from parley.core.domain_types import Role
from parley.core.session_rules import to_utc
from parley.schemas.session import (
    IdentifiedSessionCreate,
    JoinResponse,
    SessionCreate,
    SessionCreated,
    SessionJoin,
    SessionResponse,
)
from parley.services.session_store import SessionStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/sessions", tags=["sessions"])

PARTICIPANT_HEADER = "X-Participant-Token"


@router.post(
    "", response_model=SessionCreated,
    status_code=status.HTTP_201_CREATED,
)
async def create_session(
    body: SessionCreate,
    store: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_settings),
):
    """Create an anonymous session. The creator becomes role A."""
    hours = body.expiration_hours or settings.session_ttl_hours
    created = await store.create_anonymous_session(
        body.creator_name, timedelta(hours=hours),
    )
    session = created.session
    return SessionCreated(
        session_id=session.id,
        invite_token=session.invite_token,
        invite_url=f"{settings.app_url.rstrip('/')}/session/{session.invite_token}",
        creator_role=Role.A,
        participant_token=created.participant_token,
        expires_at=to_utc(session.expires_at),
    )


@router.post(
    "/identified", response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_identified_session(
    body: IdentifiedSessionCreate,
    store: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_settings),
):
    """Create a session between two registered users."""
    created = await store.create_identified_session(body.user_a_id, body.user_b_id)
    session = await store.get_by_id(created.session.id, include_children=True)
    return build_session_response(session, settings)


@router.get("/by-invite/{invite_token}", response_model=SessionResponse)
async def get_session_by_invite(
    invite_token: str,
    participant_token: str | None = Header(None, alias=PARTICIPANT_HEADER),
    store: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_settings),
):
    """Fetch a session by invite token with its messages and resolutions."""
    session = await store.get_by_invite_token(invite_token, include_children=True)
    return build_session_response(session, settings, participant_token)


@router.post("/by-invite/{invite_token}/join", response_model=JoinResponse)
async def join_session(
    invite_token: str,
    body: SessionJoin,
    store: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_settings),
):
    """Join an anonymous session as role B. Only the first caller succeeds."""
    joined = await store.join_anonymous_session(invite_token, body.partner_name)
    return JoinResponse(
        session=build_session_response(
            joined.session, settings, joined.participant_token,
        ),
        partner_role=Role.B,
        participant_token=joined.participant_token,
    )


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: UUID,
    participant_token: str | None = Header(None, alias=PARTICIPANT_HEADER),
    store: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_settings),
):
    """Fetch a session by id with its messages and resolutions."""
    session = await store.get_by_id(session_id, include_children=True)
    return build_session_response(session, settings, participant_token)
