"""Session ORM: the aggregate root for a two-party conversation.

Invariants:
    - id is UUID primary key
    - is_anonymous sessions carry user_a_name/user_b_name and a unique invite_token;
      identified sessions carry user_a_id/user_b_id and no invite_token
    - user_a_joined is True from creation; user_b_joined flips False -> True exactly once
    - expires_at None means the session never expires
    - Never hard-deleted by the core; children cascade at the DB level if it ever is

Design Decisions:
    - messages/resolutions relationships are lazy="raise": children load only when a
      read asks for them (include_children), never implicitly in async context
    - user_a/user_b relationships are selectin: display-name resolution needs them on every read
    - Participant tokens stored alongside the join flags: identity binding for role A/B
"""

import uuid
from typing import Optional
from datetime import datetime, timezone

from sqlalchemy import String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from parley.db.base import Base


class Session(Base):
    """Session aggregate root, owns messages and resolutions."""
    __tablename__ = "sessions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_a_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=True,
    )
    user_b_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=True,
    )
    is_anonymous: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    invite_token: Mapped[str | None] = mapped_column(
        String(64), nullable=True, unique=True,
    )
    user_a_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    user_b_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    user_a_joined: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True,
    )
    user_b_joined: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    user_a_token: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_b_token: Mapped[str | None] = mapped_column(String(64), nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    user_a: Mapped[Optional["User"]] = relationship(
        "User", foreign_keys=[user_a_id], lazy="selectin",
    )
    user_b: Mapped[Optional["User"]] = relationship(
        "User", foreign_keys=[user_b_id], lazy="selectin",
    )
    messages: Mapped[list["Message"]] = relationship(
        "Message", back_populates="session",
        order_by="Message.sequence",
        lazy="raise", passive_deletes=True,
    )
    resolutions: Mapped[list["Resolution"]] = relationship(
        "Resolution", back_populates="session",
        order_by="Resolution.created_at.desc()",
        lazy="raise", passive_deletes=True,
    )
