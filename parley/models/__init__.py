"""ORM Models: SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Session is the aggregate root; messages and resolutions are scoped by session_id

Design Decisions:
    - One file per entity
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from parley.models.user import User  # noqa: F401
from parley.models.session import Session  # noqa: F401
from parley.models.message import Message  # noqa: F401
from parley.models.resolution import Resolution  # noqa: F401
