"""Session Rules: pure checks for expiry, input normalization, and participant binding.

Invariants:
    - All functions are PURE: no IO, no async, no DB (the clock is passed in)
    - Datetimes are compared in UTC; naive values are treated as UTC
    - Expiry is a read-time check; nothing here deletes or mutates a session
    - next_ordered_timestamp is strictly greater than the previous timestamp (messages, resolutions)

Design Decisions:
    - Naive-as-UTC: SQLite drops tzinfo on read, PostgreSQL keeps it; both must compare equal
    - Microsecond bump on clock stall: keeps created_at a usable "since" cursor
      without a second ordering column leaking into the Sync Feed contract
"""

import secrets
from datetime import datetime, timedelta, timezone

from parley.core.domain_types import Role
from parley.core.errors import (
    InputValidationError, SessionExpiredError, ErrorContext,
)
from parley.core.repository_protocols import SessionLike

TIMESTAMP_STEP = timedelta(microseconds=1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Normalize to an aware UTC datetime."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_expired(expires_at: datetime | None, now: datetime) -> bool:
    """None means the session never expires."""
    if expires_at is None:
        return False
    return to_utc(expires_at) <= to_utc(now)


def ensure_not_expired(session: SessionLike, now: datetime) -> None:
    """Raise SessionExpiredError instead of handing out a stale session."""
    if is_expired(session.expires_at, now):
        raise SessionExpiredError(
            to_utc(session.expires_at),
            ErrorContext(session_id=str(session.id)),
        )


def compute_expiry(now: datetime, ttl: timedelta) -> datetime:
    if ttl <= timedelta(0):
        raise InputValidationError("ttl must be positive", "ttl")
    return to_utc(now) + ttl


def next_ordered_timestamp(
    now: datetime, previous: datetime | None,
) -> datetime:
    """Store-assigned created_at: now, unless the clock has not moved past previous."""
    now = to_utc(now)
    if previous is None:
        return now
    previous = to_utc(previous)
    if now > previous:
        return now
    return previous + TIMESTAMP_STEP


def normalize_name(value: str | None, field: str, max_length: int) -> str:
    """Trim a display name; reject empty or over-long names."""
    name = (value or "").strip()
    if not name:
        raise InputValidationError(f"{field} is required", field)
    if len(name) > max_length:
        raise InputValidationError(
            f"{field} exceeds {max_length} characters", field,
        )
    return name


def normalize_content(value: str | None, max_length: int) -> str:
    """Trim message content; reject empty or over-long content."""
    content = (value or "").strip()
    if not content:
        raise InputValidationError(
            "content cannot be empty or whitespace", "content",
        )
    if len(content) > max_length:
        raise InputValidationError(
            f"content exceeds {max_length} characters", "content",
        )
    return content


def parse_role(value: str | None) -> Role:
    """Validate a sender tag."""
    try:
        return Role(value)
    except ValueError:
        raise InputValidationError("sender must be 'A' or 'B'", "sender")


def new_invite_token() -> str:
    return secrets.token_urlsafe(24)


def new_participant_token() -> str:
    return secrets.token_urlsafe(32)


def resolve_viewer_role(
    session: SessionLike, participant_token: str | None,
) -> Role | None:
    """Map a participant token to the role it was issued for, or None."""
    if not participant_token:
        return None
    if session.user_a_token and secrets.compare_digest(
        session.user_a_token, participant_token,
    ):
        return Role.A
    if session.user_b_token and secrets.compare_digest(
        session.user_b_token, participant_token,
    ):
        return Role.B
    return None
