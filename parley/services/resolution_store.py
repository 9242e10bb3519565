"""Resolution Store: insert and list verdict records for a session.

Invariants:
    - created_at comes from the injected clock and is strictly greater than the
      session's previous resolution, so most-recent-first order is total
    - list_for_session breaks any remaining tie by id, newest insert first
"""

import logging
from datetime import datetime
from typing import Callable
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from parley.core.errors import ErrorContext
from parley.core.session_rules import next_ordered_timestamp, utc_now
from parley.models.resolution import Resolution
from parley.services.store_retry import with_store_retry

logger = logging.getLogger(__name__)


class ResolutionStore:
    """Persists one Resolution per successful analysis."""

    def __init__(
        self,
        db: AsyncSession,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.clock = clock

    async def insert(
        self,
        session_id: UUID,
        verdict: str,
        compromise: str,
        analysis: dict | None,
    ) -> Resolution:
        """Single commit: either the whole row exists afterwards or nothing does."""

        async def _insert() -> Resolution:
            latest = await self.db.scalar(
                select(func.max(Resolution.created_at))
                .where(Resolution.session_id == session_id)
            )
            resolution = Resolution(
                session_id=session_id,
                verdict=verdict,
                compromise=compromise,
                analysis=analysis,
                created_at=next_ordered_timestamp(self.clock(), latest),
            )
            self.db.add(resolution)
            await self.db.commit()
            return resolution

        resolution = await with_store_retry(
            self.db, _insert, "insert_resolution",
            ErrorContext(session_id=str(session_id)),
        )
        logger.info(
            "Resolution stored",
            extra={"session_id": str(session_id), "resolution_id": str(resolution.id)},
        )
        return resolution

    async def list_for_session(self, session_id: UUID) -> list[Resolution]:
        """Most-recent-first."""

        async def _read() -> list[Resolution]:
            result = await self.db.execute(
                select(Resolution)
                .where(Resolution.session_id == session_id)
                .order_by(Resolution.created_at.desc(), Resolution.id.desc())
            )
            return list(result.scalars().all())

        return await with_store_retry(self.db, _read, "list_resolutions")
