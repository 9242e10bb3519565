"""Session Store: creation, expiry-aware reads, exactly-once join.

Invariants:
    - Creator is role A, pre-joined, holding the A participant token
    - Expired sessions raise SessionExpiredError on every read and on join
    - Join order of checks: not found -> not anonymous -> expired -> full
    - A join whose conditional update matches nothing reports SESSION_FULL
"""

from datetime import timedelta
from types import SimpleNamespace
from uuid import uuid4

import pytest

from parley.core.errors import (
    InputValidationError,
    InvalidSessionStateError,
    ResourceNotFoundError,
    SessionExpiredError,
    SessionFullError,
)
from parley.core.session_rules import to_utc
from parley.models.user import User
from parley.services.session_store import SessionStore


@pytest.fixture
def store(test_db, clock):
    return SessionStore(test_db, clock=clock)


async def _anonymous(store, name="Alex", hours=24):
    return await store.create_anonymous_session(name, timedelta(hours=hours))


# ─── create ──────────────────────────────────────────────────────

async def test_create_anonymous_binds_creator_as_a(store, clock):
    created = await _anonymous(store, "  Alex ")
    session = created.session
    assert session.is_anonymous is True
    assert session.user_a_name == "Alex"
    assert session.user_a_joined is True
    assert session.user_b_joined is False
    assert session.user_a_token == created.participant_token
    assert to_utc(session.expires_at) == clock.now + timedelta(hours=24)
    assert session.invite_token


async def test_create_anonymous_rejects_blank_name(store):
    with pytest.raises(InputValidationError):
        await _anonymous(store, "   ")


async def test_invite_tokens_are_distinct(store):
    first = await _anonymous(store)
    second = await _anonymous(store)
    assert first.session.invite_token != second.session.invite_token


async def test_create_identified_session(store, test_db):
    a, b = User(name="Sam"), User(name="Riley")
    test_db.add_all([a, b])
    await test_db.commit()

    created = await store.create_identified_session(a.id, b.id)
    assert created.participant_token is None
    session = await store.get_by_id(created.session.id)
    assert session.is_anonymous is False
    assert session.invite_token is None
    assert session.user_a_joined and session.user_b_joined
    assert session.expires_at is None
    assert session.user_a.name == "Sam"


async def test_create_identified_rejects_same_user(store):
    uid = uuid4()
    with pytest.raises(InputValidationError):
        await store.create_identified_session(uid, uid)


async def test_create_identified_requires_existing_users(store):
    with pytest.raises(ResourceNotFoundError):
        await store.create_identified_session(uuid4(), uuid4())


# ─── read ────────────────────────────────────────────────────────

async def test_get_by_id_with_children(store):
    created = await _anonymous(store)
    session = await store.get_by_id(created.session.id, include_children=True)
    assert session.messages == []
    assert session.resolutions == []


async def test_get_by_id_missing(store):
    with pytest.raises(ResourceNotFoundError):
        await store.get_by_id(uuid4())


async def test_get_by_invite_token(store):
    created = await _anonymous(store)
    session = await store.get_by_invite_token(created.session.invite_token)
    assert session.id == created.session.id


async def test_get_by_unknown_invite_token(store):
    with pytest.raises(ResourceNotFoundError):
        await store.get_by_invite_token("does-not-exist")


async def test_reads_fail_after_expiry(store, clock):
    created = await _anonymous(store, hours=1)
    clock.advance(hours=1)
    with pytest.raises(SessionExpiredError):
        await store.get_by_id(created.session.id)
    with pytest.raises(SessionExpiredError):
        await store.get_by_invite_token(created.session.invite_token)


# ─── join ────────────────────────────────────────────────────────

async def test_join_binds_partner_as_b(store):
    created = await _anonymous(store)
    joined = await store.join_anonymous_session(created.session.invite_token, " Jamie ")
    session = joined.session
    assert session.user_b_joined is True
    assert session.user_b_name == "Jamie"
    assert session.user_b_token == joined.participant_token
    assert joined.participant_token != created.participant_token


async def test_second_join_is_rejected(store):
    created = await _anonymous(store)
    await store.join_anonymous_session(created.session.invite_token, "Jamie")
    with pytest.raises(SessionFullError):
        await store.join_anonymous_session(created.session.invite_token, "Morgan")
    session = await store.get_by_id(created.session.id)
    assert session.user_b_name == "Jamie"


async def test_join_unknown_token(store):
    with pytest.raises(ResourceNotFoundError):
        await store.join_anonymous_session("nope", "Jamie")


async def test_join_expired_session(store, clock):
    created = await _anonymous(store, hours=1)
    clock.advance(hours=2)
    with pytest.raises(SessionExpiredError):
        await store.join_anonymous_session(created.session.invite_token, "Jamie")


async def test_join_identified_session_is_invalid(store, monkeypatch):
    identified = SimpleNamespace(
        id=uuid4(), is_anonymous=False, expires_at=None, user_b_joined=True,
    )

    async def _find(token, include_children=False):
        return identified

    monkeypatch.setattr(store, "_find_by_token", _find)
    with pytest.raises(InvalidSessionStateError):
        await store.join_anonymous_session("token", "Jamie")


async def test_join_rejects_blank_partner_name(store):
    created = await _anonymous(store)
    with pytest.raises(InputValidationError):
        await store.join_anonymous_session(created.session.invite_token, "  ")


async def test_lost_join_race_reports_full(store, test_db, clock, monkeypatch):
    """Pre-read saw an open slot, but another join committed first."""
    created = await _anonymous(store)
    rival = SessionStore(test_db, clock=clock)
    await rival.join_anonymous_session(created.session.invite_token, "Morgan")

    stale = SimpleNamespace(
        id=created.session.id, is_anonymous=True,
        expires_at=created.session.expires_at, user_b_joined=False,
    )

    async def _stale_find(token, include_children=False):
        return stale

    monkeypatch.setattr(store, "_find_by_token", _stale_find)
    with pytest.raises(SessionFullError):
        await store.join_anonymous_session(created.session.invite_token, "Jamie")
    session = await rival.get_by_id(created.session.id)
    assert session.user_b_name == "Morgan"
