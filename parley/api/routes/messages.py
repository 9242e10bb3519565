"""Message Routes: append a turn and poll the Sync Feed.

Invariants:
    - POST returns the persisted message (final id and created_at) for client reconciliation
    - GET ?since= returns only messages strictly newer than the cursor, ascending
    - The server keeps no per-client polling state; clients dedupe by id
"""

import logging
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Query, status

from parley.api.dependencies import get_message_log
from parley.api.routes.sessions import PARTICIPANT_HEADER
from parley.schemas.message import MessageCreate, MessageResponse
from parley.services.message_log import MessageLog

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/messages", tags=["messages"])


@router.post(
    "", response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def append_message(
    body: MessageCreate,
    participant_token: str | None = Header(None, alias=PARTICIPANT_HEADER),
    log: MessageLog = Depends(get_message_log),
):
    """Append one message after the Turn-Gate admits it."""
    message = await log.append(
        body.session_id, body.sender, body.content, participant_token,
    )
    return MessageResponse.from_model(message)


@router.get("", response_model=list[MessageResponse])
async def list_messages(
    session_id: UUID = Query(..., alias="sessionId"),
    since: datetime | None = Query(None),
    log: MessageLog = Depends(get_message_log),
):
    """Full history, or only messages newer than `since`."""
    messages = await log.list_since(session_id, since)
    return [MessageResponse.from_model(m) for m in messages]
