"""Message ORM: one immutable turn in a session's append-only log.

Invariants:
    - Always belongs to a Session (session_id FK, ON DELETE CASCADE)
    - sender is "A" or "B"; content is trimmed and non-empty
    - (session_id, sequence) is unique: concurrent appends that race for the same
      slot collide here and the loser is retried
    - created_at is strictly increasing per session, assigned by the store

Design Decisions:
    - sequence as Integer controlled by MessageLog, not auto-increment: it is per session
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from parley.db.base import Base


class Message(Base):
    """Message entity, ordered by (created_at, sequence) within its session."""
    __tablename__ = "messages"
    __table_args__ = (
        UniqueConstraint("session_id", "sequence", name="uq_messages_session_sequence"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    session_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("sessions.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    sender: Mapped[str] = mapped_column(String(1), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    session: Mapped["Session"] = relationship(
        "Session", back_populates="messages",
    )
