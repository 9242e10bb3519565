"""User Directory: registers identified participants for non-anonymous sessions."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from parley.core.session_rules import normalize_name
from parley.models.user import User
from parley.services.store_retry import with_store_retry

logger = logging.getLogger(__name__)


class UserDirectory:

    def __init__(self, db: AsyncSession, max_name_length: int = 100):
        self.db = db
        self.max_name_length = max_name_length

    async def create_user(
        self, name: str, relationship_name: str | None = None,
    ) -> User:
        clean_name = normalize_name(name, "name", self.max_name_length)
        label = relationship_name.strip() if relationship_name else None

        async def _create() -> User:
            user = User(name=clean_name, relationship_name=label or None)
            self.db.add(user)
            await self.db.commit()
            return user

        user = await with_store_retry(self.db, _create, "create_user")
        logger.info(f"User {user.id} registered")
        return user
