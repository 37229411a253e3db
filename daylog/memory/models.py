# daylog/memory/models.py

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional
import uuid


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def new_message_id() -> str:
    return str(uuid.uuid4())


class ChatMode(str, Enum):
    """
    CHAT : every user message gets a composed reply.
    LOG  : messages are recorded as-is, nothing replies.
    """
    CHAT = "chat"
    LOG = "log"


@dataclass(eq=False)
class ChatMessage:
    content: str
    is_user: bool
    timestamp: datetime = field(default_factory=now_utc)
    id: str = field(default_factory=new_message_id)
    is_ignored_in_entry: bool = False
    mode: Optional[ChatMode] = None
    is_system_notification: bool = False
    notification_title: Optional[str] = None

    # Identity is the id; identical text at the same instant is still two messages.
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ChatMessage):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def is_conversational(self) -> bool:
        return not self.is_system_notification

    def with_ignored(self, ignored: bool) -> "ChatMessage":
        return replace(self, is_ignored_in_entry=ignored)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "is_user": self.is_user,
            "timestamp": self.timestamp.isoformat(),
            "is_ignored_in_entry": self.is_ignored_in_entry,
            "mode": self.mode.value if self.mode else None,
            "is_system_notification": self.is_system_notification,
            "notification_title": self.notification_title,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatMessage":
        mode = data.get("mode")
        return cls(
            id=data["id"],
            content=data["content"],
            is_user=bool(data["is_user"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            is_ignored_in_entry=bool(data.get("is_ignored_in_entry", False)),
            mode=ChatMode(mode) if mode else None,
            is_system_notification=bool(data.get("is_system_notification", False)),
            notification_title=data.get("notification_title"),
        )


@dataclass
class ContentStatus:
    has_entry: bool = False
    has_summary: bool = False
    # Snapshot of the user-message count when the entry was last (re)generated.
    entry_message_count_at_creation: int = 0
    entry_last_updated: Optional[datetime] = None


class EntryAction(str, Enum):
    GENERATE_ENTRY = "generate_entry"
    VIEW_ENTRY = "view_entry"
    UPDATE_ENTRY = "update_entry"


@dataclass
class EntryDraft:
    day: str
    title: str
    body: str
    action: EntryAction
    message_count: int
    updated_at: datetime
