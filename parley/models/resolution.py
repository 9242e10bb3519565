"""Resolution ORM: a persisted verdict over a session transcript.

Invariants:
    - Always belongs to a Session (session_id FK, ON DELETE CASCADE)
    - verdict and compromise are non-empty
    - One row per successful analysis; never deduplicated by content

Design Decisions:
    - analysis JSON column keeps tones and reasonableness so historical
      resolutions retain full detail (nullable for rows written without it)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Text, DateTime, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from parley.db.base import Base


class Resolution(Base):
    """Resolution entity, listed most-recent-first per session."""
    __tablename__ = "resolutions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    session_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("sessions.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    verdict: Mapped[str] = mapped_column(Text, nullable=False)
    compromise: Mapped[str] = mapped_column(Text, nullable=False)
    analysis: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    session: Mapped["Session"] = relationship(
        "Session", back_populates="resolutions",
    )
