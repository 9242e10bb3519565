"""Resolution Pipeline: transcript in, validated verdict out, nothing partial.

Invariants:
    - Fewer than 2 messages or a one-sided log -> AnalysisNotReadyError, capability not called
    - Prompt contains display names and the persisted transcript in order
    - Capability failures and timeouts -> AnalysisUnavailableError, nothing stored
    - Malformed replies -> MalformedAnalysisResponseError, nothing stored
    - Success stores exactly one resolution with the structured analysis
"""

import asyncio
import json
from datetime import timedelta
from uuid import uuid4

import pytest

from parley.core.errors import (
    AnalysisNotReadyError,
    AnalysisUnavailableError,
    MalformedAnalysisResponseError,
    ResourceNotFoundError,
    SessionExpiredError,
)
from parley.core.session_rules import to_utc
from parley.services.message_log import MessageLog
from parley.services.resolution_pipeline import ResolutionPipeline
from parley.services.resolution_store import ResolutionStore
from parley.services.session_store import SessionStore


@pytest.fixture
def stores(test_db, clock):
    return (
        SessionStore(test_db, clock=clock),
        MessageLog(test_db, clock=clock),
        ResolutionStore(test_db, clock=clock),
    )


@pytest.fixture
def pipeline(stores, analysis):
    sessions, messages, resolutions = stores
    return ResolutionPipeline(
        sessions, messages, resolutions, analysis, timeout_seconds=1,
    )


@pytest.fixture
async def session_id(stores):
    sessions, _, _ = stores
    created = await sessions.create_anonymous_session("Alex", timedelta(hours=24))
    await sessions.join_anonymous_session(created.session.invite_token, "Jamie")
    return created.session.id


async def _converse(stores, session_id, *turns):
    _, messages, _ = stores
    for sender, content in turns:
        await messages.append(session_id, sender, content)


async def _stored(stores, session_id):
    _, _, resolutions = stores
    return await resolutions.list_for_session(session_id)


async def test_resolve_stores_verdict(pipeline, stores, session_id, analysis, analysis_payload):
    await _converse(stores, session_id, ("A", "You never do the dishes."), ("B", "I did them Tuesday."))

    outcome = await pipeline.resolve(session_id)

    assert outcome.resolution.verdict == analysis_payload["verdict"]
    assert outcome.resolution.compromise == analysis_payload["compromise"]
    assert outcome.analysis.user_b_tone.intensity == 5
    assert outcome.resolution.analysis["reasonableness"]["userA"] == 7
    assert len(await _stored(stores, session_id)) == 1
    assert len(analysis.prompts) == 1


async def test_prompt_uses_names_and_ordered_transcript(pipeline, stores, session_id, analysis):
    await _converse(stores, session_id, ("A", "first"), ("B", "second"), ("A", "third"))
    await pipeline.resolve(session_id)
    prompt = analysis.prompts[0]
    assert "Alex: first\nJamie: second\nAlex: third" in prompt


async def test_no_messages_not_ready(pipeline, session_id, analysis):
    with pytest.raises(AnalysisNotReadyError):
        await pipeline.resolve(session_id)
    assert analysis.prompts == []


async def test_one_sided_log_not_ready(pipeline, stores, session_id, analysis):
    await _converse(stores, session_id, ("A", "one"), ("A", "two"), ("A", "three"))
    with pytest.raises(AnalysisNotReadyError):
        await pipeline.resolve(session_id)
    assert analysis.prompts == []
    assert await _stored(stores, session_id) == []


async def test_missing_session(pipeline):
    with pytest.raises(ResourceNotFoundError):
        await pipeline.resolve(uuid4())


async def test_expired_session(pipeline, stores, session_id, clock):
    await _converse(stores, session_id, ("A", "one"), ("B", "two"))
    clock.advance(days=2)
    with pytest.raises(SessionExpiredError):
        await pipeline.resolve(session_id)


async def test_capability_error_is_unavailable(pipeline, stores, session_id, analysis):
    await _converse(stores, session_id, ("A", "one"), ("B", "two"))
    analysis.reply_with(AnalysisUnavailableError("boom", "connection_error"))
    with pytest.raises(AnalysisUnavailableError) as exc:
        await pipeline.resolve(session_id)
    assert exc.value.reason == "connection_error"
    assert await _stored(stores, session_id) == []


async def test_unexpected_capability_exception_is_unavailable(pipeline, stores, session_id, analysis):
    await _converse(stores, session_id, ("A", "one"), ("B", "two"))
    analysis.reply_with(RuntimeError("socket closed"))
    with pytest.raises(AnalysisUnavailableError) as exc:
        await pipeline.resolve(session_id)
    assert exc.value.reason == "unknown"


async def test_capability_timeout(stores, session_id, analysis):
    sessions, messages, resolutions = stores
    pipeline = ResolutionPipeline(
        sessions, messages, resolutions, analysis, timeout_seconds=0.05,
    )
    await _converse(stores, session_id, ("A", "one"), ("B", "two"))

    async def _slow():
        await asyncio.sleep(1)
        return "{}"

    analysis.reply_with(_slow)
    with pytest.raises(AnalysisUnavailableError) as exc:
        await pipeline.resolve(session_id)
    assert exc.value.reason == "timeout"
    assert await _stored(stores, session_id) == []


async def test_malformed_reply_stores_nothing(pipeline, stores, session_id, analysis, analysis_payload):
    await _converse(stores, session_id, ("A", "one"), ("B", "two"))
    broken = dict(analysis_payload, reasonableness={"userA": 42, "userB": 1, "analysis": "x"})
    analysis.reply_with(json.dumps(broken))
    with pytest.raises(MalformedAnalysisResponseError):
        await pipeline.resolve(session_id)
    assert await _stored(stores, session_id) == []


async def test_prose_reply_is_malformed(pipeline, stores, session_id, analysis):
    await _converse(stores, session_id, ("A", "one"), ("B", "two"))
    analysis.reply_with("I would rather not judge.")
    with pytest.raises(MalformedAnalysisResponseError):
        await pipeline.resolve(session_id)


async def test_repeat_resolutions_accumulate(pipeline, stores, session_id):
    await _converse(stores, session_id, ("A", "one"), ("B", "two"))
    await pipeline.resolve(session_id)
    await pipeline.resolve(session_id)
    assert len(await _stored(stores, session_id)) == 2


async def test_resolution_timestamps_follow_store_clock(pipeline, stores, session_id, clock):
    await _converse(stores, session_id, ("A", "one"), ("B", "two"))
    first = await pipeline.resolve(session_id)
    # Clock does not move between the two resolutions
    second = await pipeline.resolve(session_id)

    assert to_utc(first.resolution.created_at) == clock.now
    assert to_utc(second.resolution.created_at) > to_utc(first.resolution.created_at)

    history = await _stored(stores, session_id)
    assert [r.id for r in history] == [second.resolution.id, first.resolution.id]


async def test_resolution_store_orders_newest_first(stores, session_id, clock):
    _, _, resolutions = stores
    ids = []
    for n in range(3):
        row = await resolutions.insert(session_id, f"verdict {n}", "meet halfway", None)
        ids.append(row.id)
    clock.advance(minutes=5)
    latest = await resolutions.insert(session_id, "verdict 3", "meet halfway", None)

    history = await resolutions.list_for_session(session_id)
    assert [r.id for r in history] == [latest.id, *reversed(ids)]
    stamps = [to_utc(r.created_at) for r in history]
    assert stamps == sorted(stamps, reverse=True)
    assert len(set(stamps)) == 4
    assert stamps[0] == clock.now
