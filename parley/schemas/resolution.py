"""Resolution Schemas: trigger request, stored verdict, and full analysis response."""

from datetime import datetime
from uuid import UUID

from parley.core.session_rules import to_utc
from parley.schemas.base import CamelModel


class ResolveRequest(CamelModel):
    """Trigger a resolution. The transcript is read from the session's message log;
    a client-supplied message list is accepted for compatibility and ignored."""
    session_id: UUID
    messages: list[dict] | None = None


class ResolutionResponse(CamelModel):
    id: UUID
    session_id: UUID
    verdict: str
    compromise: str
    analysis: dict | None = None
    created_at: datetime

    @classmethod
    def from_model(cls, resolution) -> "ResolutionResponse":
        return cls(
            id=resolution.id,
            session_id=resolution.session_id,
            verdict=resolution.verdict,
            compromise=resolution.compromise,
            analysis=resolution.analysis,
            created_at=to_utc(resolution.created_at),
        )


class ResolveResponse(CamelModel):
    """Stored resolution plus the structured tones and reasonableness scores."""
    resolution: ResolutionResponse
    analysis: dict
