# daylog/api/server.py
"""
FastAPI server for the daily chat core:

- /days/{day}/messages : read, append, clear, remove, toggle ignore
- /days/{day}/mode     : switch between chat and log
- /days/{day}/status   : entry/summary state and the derived entry action
- /days/{day}/entry    : generate/update or delete the derived entry
- /days/{day}/summary  : reflective summary of the whole session
- /health              : basic health check

Days are ISO dates ('YYYY-MM-DD'). Composed replies arrive asynchronously;
poll GET /days/{day}/messages to see them.
"""

import time
import uuid
from datetime import datetime
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field

from daylog.core.chat import DailyChatCore
from daylog.core.daykey import DayKey
from daylog.memory.models import ChatMessage, ChatMode
from daylog.utils.logging import get_logger

logger = get_logger(__name__)

app = FastAPI(
    title="Daylog Core API",
    description="Local API for per-day chat sessions, entry staleness and simulated replies.",
    version="1.0.0",
)

# Single core instance shared by all requests; built lazily so importing the
# module does not touch storage.
_daily_core: Optional[DailyChatCore] = None


def get_core() -> DailyChatCore:
    global _daily_core
    if _daily_core is None:
        _daily_core = DailyChatCore.from_settings()
    return _daily_core


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class MessageModel(BaseModel):
    id: str
    content: str
    is_user: bool
    timestamp: datetime
    is_ignored_in_entry: bool = False
    mode: Optional[ChatMode] = None
    is_system_notification: bool = False
    notification_title: Optional[str] = None

    @classmethod
    def from_message(cls, msg: ChatMessage) -> "MessageModel":
        return cls(**msg.to_dict())


class SendMessageRequest(BaseModel):
    text: str = Field(..., description="User message in plain text. Empty text is accepted.")


class SendMessageResponse(BaseModel):
    message: MessageModel
    mode: ChatMode
    reply_pending: bool


class ModeRequest(BaseModel):
    mode: ChatMode


class ModeResponse(BaseModel):
    mode: ChatMode
    notification: Optional[MessageModel] = None


class StatusResponse(BaseModel):
    day: str
    mode: ChatMode
    has_entry: bool
    has_summary: bool
    summary_generated: bool
    entry_message_count: int
    entry_last_updated: Optional[datetime] = None
    user_message_count: int
    has_new_messages: bool
    entry_action: str


class EntryResponse(BaseModel):
    day: str
    title: str
    body: str
    action: str
    message_count: int
    updated_at: datetime


class SummaryResponse(BaseModel):
    day: str
    summary: str


class RegenerateResponse(BaseModel):
    scheduled: bool


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _parse_day(day: str) -> DayKey:
    try:
        return DayKey.parse(day)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid day {day!r}; expected YYYY-MM-DD.")


def _status_for(core: DailyChatCore, key: DayKey) -> StatusResponse:
    status = core.status(key)
    return StatusResponse(
        day=str(key),
        mode=core.get_mode(key),
        has_entry=status.has_entry,
        has_summary=status.has_summary,
        summary_generated=core.sessions.is_summary_generated(key),
        entry_message_count=status.entry_message_count_at_creation,
        entry_last_updated=status.entry_last_updated,
        user_message_count=core.sessions.user_message_count(key),
        has_new_messages=core.statuses.has_new_messages_since_entry(key),
        entry_action=core.entry_action(key).value,
    )


# ---------------------------------------------------------------------------
# Message endpoints
# ---------------------------------------------------------------------------

@app.get("/days/{day}/messages", response_model=List[MessageModel])
def list_messages(day: str, core: DailyChatCore = Depends(get_core)) -> List[MessageModel]:
    key = _parse_day(day)
    return [MessageModel.from_message(m) for m in core.get_messages(key)]


@app.post("/days/{day}/messages", response_model=SendMessageResponse)
def send_message(
    day: str,
    req: SendMessageRequest,
    core: DailyChatCore = Depends(get_core),
) -> SendMessageResponse:
    """
    Append a user message. In chat mode a reply is scheduled and shows up
    in the session after a short delay.
    """
    request_id = str(uuid.uuid4())
    start_time = time.monotonic()
    key = _parse_day(day)
    logger.info("[send_message] request_id=%s day=%s message_len=%d", request_id, key, len(req.text))

    message = core.append_user_message(key, req.text)
    mode = core.get_mode(key)
    reply_pending = message.mode == ChatMode.CHAT

    latency_ms = int((time.monotonic() - start_time) * 1000)
    logger.info("[send_message] request_id=%s OK latency_ms=%d mode=%s", request_id, latency_ms, mode.value)
    return SendMessageResponse(
        message=MessageModel.from_message(message),
        mode=mode,
        reply_pending=reply_pending,
    )


@app.delete("/days/{day}/messages")
def clear_messages(day: str, core: DailyChatCore = Depends(get_core)) -> dict:
    key = _parse_day(day)
    core.clear_session(key)
    return {"status": "ok", "day": str(key)}


@app.delete("/days/{day}/messages/{message_id}")
def remove_message(day: str, message_id: str, core: DailyChatCore = Depends(get_core)) -> dict:
    key = _parse_day(day)
    core.remove_message(key, message_id)
    return {"status": "ok", "day": str(key)}


@app.post("/days/{day}/messages/{message_id}/toggle_ignore", response_model=List[MessageModel])
def toggle_ignore(day: str, message_id: str, core: DailyChatCore = Depends(get_core)) -> List[MessageModel]:
    key = _parse_day(day)
    core.toggle_ignore(key, message_id)
    return [MessageModel.from_message(m) for m in core.get_messages(key)]


@app.post("/days/{day}/regenerate", response_model=RegenerateResponse)
def regenerate(day: str, core: DailyChatCore = Depends(get_core)) -> RegenerateResponse:
    key = _parse_day(day)
    task = core.regenerate_response(key)
    return RegenerateResponse(scheduled=task is not None)


# ---------------------------------------------------------------------------
# Mode / status endpoints
# ---------------------------------------------------------------------------

@app.put("/days/{day}/mode", response_model=ModeResponse)
def set_mode(day: str, req: ModeRequest, core: DailyChatCore = Depends(get_core)) -> ModeResponse:
    key = _parse_day(day)
    notification = core.set_mode(key, req.mode)
    return ModeResponse(
        mode=core.get_mode(key),
        notification=MessageModel.from_message(notification) if notification else None,
    )


@app.get("/days/{day}/status", response_model=StatusResponse)
def get_status(day: str, core: DailyChatCore = Depends(get_core)) -> StatusResponse:
    return _status_for(core, _parse_day(day))


# ---------------------------------------------------------------------------
# Entry / summary endpoints
# ---------------------------------------------------------------------------

@app.post("/days/{day}/entry", response_model=EntryResponse)
def generate_entry(day: str, core: DailyChatCore = Depends(get_core)) -> EntryResponse:
    key = _parse_day(day)
    draft = core.generate_or_update_entry(key)
    return EntryResponse(
        day=draft.day,
        title=draft.title,
        body=draft.body,
        action=draft.action.value,
        message_count=draft.message_count,
        updated_at=draft.updated_at,
    )


@app.delete("/days/{day}/entry", response_model=StatusResponse)
def delete_entry(day: str, core: DailyChatCore = Depends(get_core)) -> StatusResponse:
    key = _parse_day(day)
    core.delete_entry(key)
    return _status_for(core, key)


@app.post("/days/{day}/summary", response_model=SummaryResponse)
def generate_summary(day: str, core: DailyChatCore = Depends(get_core)) -> SummaryResponse:
    key = _parse_day(day)
    return SummaryResponse(day=str(key), summary=core.generate_summary(key))


@app.get("/health")
def health_check() -> dict:
    """
    Very simple health check endpoint.
    """
    return {"status": "ok"}
