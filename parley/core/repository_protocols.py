"""Boundary Protocols: contracts between core and shell.

Invariants:
    - Core NEVER imports from shell; dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: boundary methods are async because implementations do IO,
      but core pure functions that USE these protocols are never async themselves
"""

from datetime import datetime, timedelta
from typing import Any, Protocol, Sequence
from uuid import UUID


class UserLike(Protocol):
    """Identified participant."""
    name: str


class SessionLike(Protocol):
    """Structural contract for Session objects passed to core functions.

    Avoids coupling core to the ORM model while giving mypy
    real type information (unlike Any).
    """
    id: UUID
    is_anonymous: bool
    user_a_name: str | None
    user_b_name: str | None
    user_a_joined: bool
    user_b_joined: bool
    user_a_token: str | None
    user_b_token: str | None
    expires_at: datetime | None
    user_a: UserLike | None
    user_b: UserLike | None


class MessageLike(Protocol):
    """Structural contract for Message objects read by the Turn-Gate."""
    id: UUID
    sender: str
    content: str
    created_at: datetime


class SessionRepository(Protocol):
    """Session Store contract, implemented by shell."""
    async def create_anonymous_session(
        self, creator_name: str, ttl: timedelta,
    ) -> Any: ...
    async def get_by_id(
        self, session_id: UUID, include_children: bool = False,
    ) -> SessionLike: ...
    async def get_by_invite_token(
        self, invite_token: str, include_children: bool = False,
    ) -> SessionLike: ...
    async def join_anonymous_session(
        self, invite_token: str, partner_name: str,
    ) -> Any: ...


class MessageRepository(Protocol):
    """Message Log contract, implemented by shell."""
    async def append(
        self, session_id: UUID, sender: str, content: str,
        participant_token: str | None = None,
    ) -> MessageLike: ...
    async def list_since(
        self, session_id: UUID, since: datetime | None = None,
    ) -> Sequence[MessageLike]: ...


class ResolutionRepository(Protocol):
    """Resolution persistence contract, implemented by shell."""
    async def insert(
        self, session_id: UUID, verdict: str, compromise: str,
        analysis: dict | None,
    ) -> Any: ...
    async def list_for_session(self, session_id: UUID) -> Sequence[Any]: ...


class AnalysisCapability(Protocol):
    """External analysis provider. One prompt in, raw text out."""
    async def invoke(self, prompt: str) -> str: ...
