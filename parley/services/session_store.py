"""Session Store: create, read and join two-party sessions.

Invariants:
    - Creator is role A and pre-joined; invite_token is present iff is_anonymous
    - Every read path checks expires_at and raises SessionExpiredError for stale sessions
    - join_anonymous_session is the only mutation of a Session, and it is exactly-once:
      a single conditional UPDATE ... WHERE user_b_joined = false decides the winner
    - Reads use populate_existing so a session object never shows pre-join state
      after a join committed in the same unit of work

Design Decisions:
    - Pre-read before the conditional update only to classify errors (404/400/410/409);
      the UPDATE's rowcount is what grants the slot
    - Store handler class with db + clock: explicit dependencies, no globals
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable
from uuid import UUID

from sqlalchemy import select, update, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from parley.core.errors import (
    ErrorContext,
    InputValidationError,
    InvalidSessionStateError,
    ResourceNotFoundError,
    SessionFullError,
)
from parley.core.session_rules import (
    compute_expiry,
    ensure_not_expired,
    new_invite_token,
    new_participant_token,
    normalize_name,
    to_utc,
    utc_now,
)
from parley.models.session import Session as SessionModel
from parley.models.user import User
from parley.services.store_retry import with_store_retry

logger = logging.getLogger(__name__)


@dataclass
class CreatedSession:
    """A new session plus the participant token issued to its creator."""
    session: SessionModel
    participant_token: str | None


@dataclass
class JoinResult:
    session: SessionModel
    participant_token: str


class SessionStore:
    """Durable record of sessions, participants, expiry and join state."""

    def __init__(
        self,
        db: AsyncSession,
        clock: Callable[[], datetime] = utc_now,
        max_name_length: int = 100,
        token_factory: Callable[[], str] = new_invite_token,
    ):
        self.db = db
        self.clock = clock
        self.max_name_length = max_name_length
        self.token_factory = token_factory

    async def create_anonymous_session(
        self, creator_name: str, ttl: timedelta,
    ) -> CreatedSession:
        """Create an anonymous session with the creator bound to role A."""
        name = normalize_name(creator_name, "creator_name", self.max_name_length)
        now = to_utc(self.clock())
        expires_at = compute_expiry(now, ttl)
        participant_token = new_participant_token()

        async def _create() -> SessionModel:
            session = SessionModel(
                is_anonymous=True,
                invite_token=self.token_factory(),
                user_a_name=name,
                user_a_joined=True,
                user_b_joined=False,
                user_a_token=participant_token,
                expires_at=expires_at,
                created_at=now,
            )
            self.db.add(session)
            await self.db.commit()
            return session

        session = await with_store_retry(self.db, _create, "create_session")
        logger.info(
            "Anonymous session created",
            extra={"session_id": str(session.id)},
        )
        return CreatedSession(session=session, participant_token=participant_token)

    async def create_identified_session(
        self, user_a_id: UUID, user_b_id: UUID,
    ) -> CreatedSession:
        """Create a session between two registered users. Both roles pre-joined, no expiry."""
        if user_a_id == user_b_id:
            raise InputValidationError(
                "user_a_id and user_b_id must differ", "user_b_id",
            )
        for user_id in (user_a_id, user_b_id):
            if await self.db.get(User, user_id) is None:
                raise ResourceNotFoundError("User", str(user_id))

        async def _create() -> SessionModel:
            session = SessionModel(
                is_anonymous=False,
                user_a_id=user_a_id,
                user_b_id=user_b_id,
                user_a_joined=True,
                user_b_joined=True,
                created_at=to_utc(self.clock()),
            )
            self.db.add(session)
            await self.db.commit()
            return session

        session = await with_store_retry(self.db, _create, "create_session")
        logger.info(
            "Identified session created",
            extra={"session_id": str(session.id)},
        )
        return CreatedSession(session=session, participant_token=None)

    async def get_by_id(
        self, session_id: UUID, include_children: bool = False,
    ) -> SessionModel:
        """Load a live session by id. include_children eager-loads messages and resolutions."""
        query = select(SessionModel).where(SessionModel.id == session_id)
        session = await self._fetch(query, include_children)
        if session is None:
            raise ResourceNotFoundError("Session", str(session_id))
        ensure_not_expired(session, self.clock())
        return session

    async def get_by_invite_token(
        self, invite_token: str, include_children: bool = False,
    ) -> SessionModel:
        """Load a live anonymous session by its invite token."""
        session = await self._find_by_token(invite_token, include_children)
        ensure_not_expired(session, self.clock())
        return session

    async def join_anonymous_session(
        self, invite_token: str, partner_name: str,
    ) -> JoinResult:
        """Bind the partner to role B. Exactly one concurrent caller can win."""
        name = normalize_name(partner_name, "partner_name", self.max_name_length)
        session = await self._find_by_token(invite_token)
        session_id = session.id
        ctx = ErrorContext(session_id=str(session_id))

        if not session.is_anonymous:
            raise InvalidSessionStateError(
                "This is not an anonymous session", ctx,
            )
        now = to_utc(self.clock())
        ensure_not_expired(session, now)
        if session.user_b_joined:
            raise SessionFullError(ctx)

        participant_token = new_participant_token()

        async def _claim() -> int:
            result = await self.db.execute(
                update(SessionModel)
                .where(SessionModel.id == session_id)
                .where(SessionModel.user_b_joined.is_(False))
                .where(or_(
                    SessionModel.expires_at.is_(None),
                    SessionModel.expires_at > now,
                ))
                .values(
                    user_b_name=name,
                    user_b_joined=True,
                    user_b_token=participant_token,
                )
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
            return result.rowcount

        claimed = await with_store_retry(self.db, _claim, "join_session", ctx)
        if claimed != 1:
            await self._raise_lost_join(session_id, now, ctx)

        joined = await self.get_by_id(session_id, include_children=True)
        logger.info("Partner joined session", extra={"session_id": str(session_id)})
        return JoinResult(session=joined, participant_token=participant_token)

    async def _raise_lost_join(
        self, session_id: UUID, now: datetime, ctx: ErrorContext,
    ) -> None:
        """The conditional update matched nothing: expiry crossed or B already bound."""
        current = await self._fetch(
            select(SessionModel).where(SessionModel.id == session_id), False,
        )
        if current is not None:
            ensure_not_expired(current, now)
        logger.warning("Join lost to a concurrent join", extra={"session_id": str(session_id)})
        raise SessionFullError(ctx)

    async def _find_by_token(
        self, invite_token: str, include_children: bool = False,
    ) -> SessionModel:
        query = select(SessionModel).where(SessionModel.invite_token == invite_token)
        session = await self._fetch(query, include_children)
        if session is None:
            raise ResourceNotFoundError("Session", "invite token")
        return session

    async def _fetch(self, query, include_children: bool) -> SessionModel | None:
        if include_children:
            query = query.options(
                selectinload(SessionModel.messages),
                selectinload(SessionModel.resolutions),
            )
        query = query.execution_options(populate_existing=True)

        async def _read() -> SessionModel | None:
            result = await self.db.execute(query)
            return result.scalar_one_or_none()

        return await with_store_retry(self.db, _read, "read_session")
