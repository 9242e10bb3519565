"""Session Schemas: Pydantic models with field-level validation for API boundaries.

Invariants:
    - SessionCreate.creator_name and SessionJoin.partner_name: 1-100 chars, stripped, non-empty
    - expiration_hours, when given, is positive and at most 30 days
    - SessionResponse never exposes participant tokens, only the caller's viewer_role

Design Decisions:
    - field_validator for side-effect-free transforms (strip): keeps models pure
"""

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from parley.core.domain_types import Role
from parley.schemas.base import CamelModel
from parley.schemas.message import MessageResponse
from parley.schemas.resolution import ResolutionResponse


def _strip_required(v: str, field: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError(f"{field} cannot be empty or whitespace")
    return v


class SessionCreate(CamelModel):
    """Anonymous session creation."""
    creator_name: str = Field(min_length=1, max_length=100)
    expiration_hours: float | None = Field(None, gt=0, le=720)

    @field_validator("creator_name")
    @classmethod
    def strip_creator_name(cls, v: str) -> str:
        return _strip_required(v, "creator_name")


class IdentifiedSessionCreate(CamelModel):
    user_a_id: UUID
    user_b_id: UUID


class SessionJoin(CamelModel):
    partner_name: str = Field(min_length=1, max_length=100)

    @field_validator("partner_name")
    @classmethod
    def strip_partner_name(cls, v: str) -> str:
        return _strip_required(v, "partner_name")


class SessionCreated(CamelModel):
    session_id: UUID
    invite_token: str
    invite_url: str
    creator_role: Role = Role.A
    participant_token: str
    expires_at: datetime


class TurnView(CamelModel):
    """Derived Turn-Gate state for the current log tail."""
    policy: str
    can_send_a: bool
    can_send_b: bool
    both_responded: bool
    can_analyze: bool


class SessionResponse(CamelModel):
    """Session with ordered messages (ascending) and resolutions (most-recent-first)."""
    id: UUID
    is_anonymous: bool
    invite_token: str | None
    user_a_id: UUID | None
    user_b_id: UUID | None
    user_a_name: str | None
    user_b_name: str | None
    display_name_a: str
    display_name_b: str
    user_a_joined: bool
    user_b_joined: bool
    expires_at: datetime | None
    created_at: datetime
    messages: list[MessageResponse]
    resolutions: list[ResolutionResponse]
    turn: TurnView
    viewer_role: Role | None = None
    poll_interval_seconds: int


class JoinResponse(CamelModel):
    session: SessionResponse
    partner_role: Role = Role.B
    participant_token: str
