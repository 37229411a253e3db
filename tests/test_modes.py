"""Tests for ModeController transitions."""

from datetime import datetime, timezone

from daylog.core.modes import MODE_NOTIFICATIONS, ModeController
from daylog.memory.models import ChatMode

from conftest import bot_msg, user_msg


def test_default_mode_is_chat():
    assert ModeController().mode == ChatMode.CHAT


def test_transition_to_same_mode_posts_nothing():
    controller = ModeController()
    assert controller.transition(ChatMode.CHAT) is None
    assert controller.mode == ChatMode.CHAT


def test_transition_returns_notification_for_target_mode():
    controller = ModeController()
    ts = datetime(2026, 10, 17, 12, tzinfo=timezone.utc)

    note = controller.transition(ChatMode.LOG, ts)

    title, body = MODE_NOTIFICATIONS[ChatMode.LOG]
    assert controller.mode == ChatMode.LOG
    assert note.is_system_notification is True
    assert note.is_user is False
    assert note.notification_title == title
    assert note.content == body
    assert note.mode == ChatMode.LOG
    assert note.timestamp == ts


def test_round_trip_transitions_each_post_once():
    controller = ModeController()
    notes = [
        controller.transition(ChatMode.LOG),
        controller.transition(ChatMode.LOG),
        controller.transition(ChatMode.CHAT),
    ]
    assert [n is not None for n in notes] == [True, False, True]


def test_should_reply_only_for_user_messages_in_chat():
    controller = ModeController()
    assert controller.should_reply(user_msg("hi")) is True
    assert controller.should_reply(bot_msg("hello")) is False

    controller.transition(ChatMode.LOG)
    assert controller.should_reply(user_msg("hi")) is False


def test_notifications_never_trigger_replies():
    controller = ModeController()
    fake = user_msg("system-ish", is_system_notification=True)
    assert controller.should_reply(fake) is False
