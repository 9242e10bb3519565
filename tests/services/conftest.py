"""Service test fixtures: async DB, fake clock, fake analysis, FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB session
    - app.state.db holds a manager bound to the test engine (readiness probe)
    - Clock and analysis capability swapped through dependency_overrides

Design Decisions:
    - SQLite in-memory with StaticPool: one shared connection, so every session
      sees the same database; PostgreSQL-specific behavior is not exercised here
    - FakeAnalysis records prompts and replays scripted replies or exceptions
"""

import json
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import StaticPool
from httpx import ASGITransport, AsyncClient

from parley.api.dependencies import get_analysis_capability, get_clock
from parley.db.base import Base
from parley.infrastructure.database import get_db, DatabaseSessionManager
from parley.main import app


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeAnalysis:
    """AnalysisCapability double. Each invoke() pops the next scripted reply."""

    def __init__(self):
        self.prompts: list[str] = []
        self.replies: list = []

    def reply_with(self, *replies) -> None:
        self.replies.extend(replies)

    async def invoke(self, prompt: str) -> str:
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if self.replies else valid_analysis_text()
        if isinstance(reply, BaseException):
            raise reply
        if callable(reply):
            return await reply()
        return reply


def valid_analysis_payload() -> dict:
    return {
        "verdict": "Both of you want the home to feel fair.",
        "explanation": "One partner feels unsupported, the other feels criticized.",
        "compromise": "Agree on a weekly chore split and check in on Sundays.",
        "userATone": {"tone": "hurt", "emotion": "frustration", "intensity": 6},
        "userBTone": {"tone": "defensive", "emotion": "irritation", "intensity": 5},
        "reasonableness": {
            "userA": 7, "userB": 6,
            "analysis": "Both are reasonable; A is slightly more specific.",
        },
    }


def valid_analysis_text() -> str:
    return "Here is my assessment:\n" + json.dumps(valid_analysis_payload())


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def analysis():
    return FakeAnalysis()


@pytest.fixture
async def client(test_engine, test_session_factory, clock, analysis):
    """FastAPI test client with DB, clock and analysis overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_analysis_capability] = lambda: analysis

    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    app.state.db = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    del app.state.db


@pytest.fixture
def analysis_payload():
    return valid_analysis_payload()
