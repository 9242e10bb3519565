"""Message Log: append-only, session-scoped, strictly time-ordered record of turns.

Invariants:
    - append validates sender and content before touching the store
    - Every append passes the Turn-Gate for the configured policy
    - created_at is strictly greater than the previous message's created_at in the
      same session; sequence is previous + 1
    - Two appends racing for the same sequence collide on uq_messages_session_sequence;
      the loser is retried once and re-evaluates the gate against the new tail
    - list_since is the sole read path for full loads and Sync Feed polling

Design Decisions:
    - The whole append (load, expiry, gate, insert) runs inside the retry closure so a
      retried attempt never reuses state read before the rollback
    - append returns the persisted Message (id, created_at) so clients can reconcile
      optimistic temporary ids
"""

import logging
from datetime import datetime
from typing import Callable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from parley.core.domain_types import TurnPolicy
from parley.core.errors import (
    ErrorContext,
    ParticipantMismatchError,
    ResourceNotFoundError,
    TurnNotAllowedError,
)
from parley.core.session_rules import (
    ensure_not_expired,
    next_ordered_timestamp,
    normalize_content,
    parse_role,
    resolve_viewer_role,
    to_utc,
    utc_now,
)
from parley.core.turn_gate import TURN_WINDOW, check_can_send
from parley.models.message import Message
from parley.models.session import Session as SessionModel
from parley.services.store_retry import with_store_retry

logger = logging.getLogger(__name__)


class MessageLog:
    """Appends and reads session messages in their total order."""

    def __init__(
        self,
        db: AsyncSession,
        clock: Callable[[], datetime] = utc_now,
        max_length: int = 2000,
        turn_policy: TurnPolicy = TurnPolicy.UNRESTRICTED,
    ):
        self.db = db
        self.clock = clock
        self.max_length = max_length
        self.turn_policy = turn_policy

    async def append(
        self,
        session_id: UUID,
        sender: str,
        content: str,
        participant_token: str | None = None,
    ) -> Message:
        """Validate, gate and persist one message. Returns the stored row."""
        role = parse_role(sender)
        text = normalize_content(content, self.max_length)
        ctx = ErrorContext(session_id=str(session_id))

        async def _append() -> Message:
            session = await self._load_live_session(session_id)
            if participant_token is not None and (
                resolve_viewer_role(session, participant_token) != role
            ):
                raise ParticipantMismatchError(role.value, ctx)

            tail = await self.tail(session_id)
            reason = check_can_send(session, tail, role, self.turn_policy)
            if reason:
                raise TurnNotAllowedError(role.value, reason, ctx)

            previous = tail[-1] if tail else None
            message = Message(
                session_id=session_id,
                sender=role.value,
                content=text,
                sequence=previous.sequence + 1 if previous else 1,
                created_at=next_ordered_timestamp(
                    self.clock(), previous.created_at if previous else None,
                ),
            )
            self.db.add(message)
            await self.db.commit()
            return message

        message = await with_store_retry(self.db, _append, "append_message", ctx)
        logger.info(
            "Message appended",
            extra={
                "session_id": str(session_id),
                "message_id": str(message.id),
                "sender": message.sender,
                "content_length": len(message.content),
            },
        )
        return message

    async def list_since(
        self, session_id: UUID, since: datetime | None = None,
    ) -> list[Message]:
        """Messages with created_at > since (all if None), ascending."""

        async def _read() -> list[Message]:
            await self._load_live_session(session_id)
            query = select(Message).where(Message.session_id == session_id)
            if since is not None:
                query = query.where(Message.created_at > to_utc(since))
            query = query.order_by(Message.created_at, Message.sequence)
            result = await self.db.execute(query)
            return list(result.scalars().all())

        return await with_store_retry(
            self.db, _read, "list_messages",
            ErrorContext(session_id=str(session_id)),
        )

    async def tail(self, session_id: UUID, size: int = TURN_WINDOW) -> list[Message]:
        """Last `size` messages, ascending. The Turn-Gate's whole input."""
        result = await self.db.execute(
            select(Message)
            .where(Message.session_id == session_id)
            .order_by(Message.sequence.desc())
            .limit(size)
        )
        return list(reversed(result.scalars().all()))

    async def _load_live_session(self, session_id: UUID) -> SessionModel:
        session = await self.db.get(SessionModel, session_id, populate_existing=True)
        if session is None:
            raise ResourceNotFoundError("Session", str(session_id))
        ensure_not_expired(session, self.clock())
        return session
