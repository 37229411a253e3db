"""Shared pytest fixtures for daylog tests."""

import random
from datetime import datetime, timezone

import pytest

from daylog.core.chat import DailyChatCore, ReplyConfig
from daylog.core.daykey import DayKey
from daylog.core.events import Notifier
from daylog.core.responses import ResponseComposer
from daylog.core.scheduler import ManualReplyScheduler
from daylog.memory.models import ChatMessage
from daylog.memory.stores import ContentStatusTracker, SessionStore


@pytest.fixture
def day():
    """A fixed Saturday."""
    return DayKey.parse("2026-10-17")


@pytest.fixture
def morning():
    return datetime(2026, 10, 17, 8, 30, tzinfo=timezone.utc)


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def events(notifier):
    """Every (kind, day) published on the shared notifier, in order."""
    received = []
    notifier.subscribe(lambda kind, key: received.append((kind, key)))
    return received


@pytest.fixture
def sessions(notifier):
    return SessionStore(notifier=notifier)


@pytest.fixture
def statuses(sessions):
    return ContentStatusTracker(sessions)


@pytest.fixture
def scheduler():
    return ManualReplyScheduler()


@pytest.fixture
def core(sessions, statuses, scheduler):
    return DailyChatCore(
        sessions=sessions,
        statuses=statuses,
        composer=ResponseComposer(random.Random(7)),
        scheduler=scheduler,
        tz=timezone.utc,
        reply_config=ReplyConfig(delay_min=0.75, delay_max=1.5),
    )


def user_msg(content: str, **kwargs) -> ChatMessage:
    return ChatMessage(content=content, is_user=True, **kwargs)


def bot_msg(content: str, **kwargs) -> ChatMessage:
    return ChatMessage(content=content, is_user=False, **kwargs)


def composed_replies(messages):
    """Non-user, non-notification messages that answer a user message."""
    replies = []
    seen_user = False
    for msg in messages:
        if msg.is_user:
            seen_user = True
        elif seen_user and not msg.is_system_notification:
            replies.append(msg)
    return replies
