"""Store Retry: run a store operation, retrying once on a transient failure.

Invariants:
    - At most 2 attempts; the second failure raises StoreUnavailableError
    - The session is rolled back between attempts, so the retry re-reads everything
    - Domain errors (ParleyError) raised inside the operation are never retried

Design Decisions:
    - IntegrityError counts as transient: the (session_id, sequence) and invite_token
      unique constraints turn lost races into a clean retry
    - No backoff inside the core; retry policy beyond one attempt is a deployment concern
"""

import logging
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from parley.core.errors import StoreUnavailableError, ErrorContext

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_ATTEMPTS: int = 2
TRANSIENT_ERRORS = (IntegrityError, OperationalError)


async def with_store_retry(
    db: AsyncSession,
    operation: Callable[[], Awaitable[T]],
    name: str,
    context: ErrorContext | None = None,
) -> T:
    """Await operation(); on a transient store error roll back and try once more."""
    for attempt in range(1, MAX_ATTEMPTS + 1):
        try:
            return await operation()
        except TRANSIENT_ERRORS as e:
            await db.rollback()
            if attempt >= MAX_ATTEMPTS:
                logger.error(
                    f"Store {name} failed after {attempt} attempts: {e}",
                    extra={"operation": name, "attempt": attempt},
                )
                raise StoreUnavailableError(
                    "store did not accept the operation", name, context,
                ) from e
            logger.warning(
                f"Transient store error on {name}, retrying: {e}",
                extra={"operation": name, "attempt": attempt},
            )
    raise StoreUnavailableError("retry loop exhausted", name, context)
