"""Session view builder: ORM session (with children loaded) -> SessionResponse.

Invariants:
    - Called only with sessions loaded via include_children=True
    - user_a_name/user_b_name are the stored anonymous names (null until set);
      display_name_a/display_name_b carry the resolved fallback (user -> anonymous name -> "User A")
    - Turn view computed from the log tail with the configured policy
"""

from parley.config import Settings
from parley.core.domain_types import Role
from parley.core.session_rules import resolve_viewer_role, to_utc
from parley.core.transcript import display_names
from parley.core.turn_gate import turn_view
from parley.models.session import Session as SessionModel
from parley.schemas.message import MessageResponse
from parley.schemas.resolution import ResolutionResponse
from parley.schemas.session import SessionResponse, TurnView


def build_session_response(
    session: SessionModel,
    settings: Settings,
    participant_token: str | None = None,
) -> SessionResponse:
    names = display_names(session)
    messages = list(session.messages)
    return SessionResponse(
        id=session.id,
        is_anonymous=session.is_anonymous,
        invite_token=session.invite_token,
        user_a_id=session.user_a_id,
        user_b_id=session.user_b_id,
        user_a_name=session.user_a_name,
        user_b_name=session.user_b_name,
        display_name_a=names[Role.A],
        display_name_b=names[Role.B],
        user_a_joined=session.user_a_joined,
        user_b_joined=session.user_b_joined,
        expires_at=to_utc(session.expires_at) if session.expires_at else None,
        created_at=to_utc(session.created_at),
        messages=[MessageResponse.from_model(m) for m in messages],
        resolutions=[ResolutionResponse.from_model(r) for r in session.resolutions],
        turn=TurnView(**turn_view(session, messages, settings.turn_policy)),
        viewer_role=resolve_viewer_role(session, participant_token),
        poll_interval_seconds=settings.poll_interval_seconds,
    )
