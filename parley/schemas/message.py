"""Message Schemas: append request and the authoritative persisted message."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from parley.core.session_rules import to_utc
from parley.schemas.base import CamelModel


class MessageCreate(CamelModel):
    """Append request. Sender and content rules are enforced by MessageLog."""
    session_id: UUID
    sender: str = Field(max_length=8)
    content: str


class MessageResponse(CamelModel):
    id: UUID
    session_id: UUID
    sender: str
    content: str
    created_at: datetime

    @classmethod
    def from_model(cls, message) -> "MessageResponse":
        return cls(
            id=message.id,
            session_id=message.session_id,
            sender=message.sender,
            content=message.content,
            created_at=to_utc(message.created_at),
        )
