# daylog/core/modes.py

from datetime import datetime
from typing import Dict, Optional, Tuple

from daylog.memory.models import ChatMessage, ChatMode, now_utc

# (title, body) of the notification posted when switching INTO a mode
MODE_NOTIFICATIONS: Dict[ChatMode, Tuple[str, str]] = {
    ChatMode.CHAT: (
        "Chat Mode",
        "You're chatting now. I'll reply to each message and ask follow-up questions about your day.",
    ),
    ChatMode.LOG: (
        "Log Mode",
        "You're logging now. Messages are saved for your entry without replies.",
    ),
}

LOG_MODE_INSTRUCTION = "Log any details about this day. I'll keep them for your entry without replying."


class ModeController:
    """Two-state switch deciding whether inbound messages get a reply."""

    def __init__(self, mode: ChatMode = ChatMode.CHAT) -> None:
        self.mode = mode

    def transition(self, new_mode: ChatMode, now: Optional[datetime] = None) -> Optional[ChatMessage]:
        """
        Switch to new_mode. Returns the notification message to post into
        the session, or None when the mode is unchanged.
        """
        if new_mode == self.mode:
            return None

        title, body = MODE_NOTIFICATIONS[new_mode]
        notification = ChatMessage(
            content=body,
            is_user=False,
            timestamp=now or now_utc(),
            mode=new_mode,
            is_system_notification=True,
            notification_title=title,
        )
        self.mode = new_mode
        return notification

    def should_reply(self, message: ChatMessage) -> bool:
        return (
            self.mode == ChatMode.CHAT
            and message.is_user
            and not message.is_system_notification
        )
