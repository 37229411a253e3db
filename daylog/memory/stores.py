# daylog/memory/stores.py

from datetime import datetime
import threading
from typing import List, Optional

from daylog.core.daykey import DayKey
from daylog.core.events import ChangeKind, Notifier
from daylog.memory.models import ChatMessage, ContentStatus, EntryAction, now_utc
from daylog.memory.repository import (
    InMemorySessionBackend,
    InMemoryStatusBackend,
    SessionBackend,
    StatusBackend,
)
from daylog.utils.logging import get_logger

logger = get_logger(__name__)


class SessionStore:
    """
    Owns the per-day chat log.

    Every write replaces the whole day in the backend; append/remove/toggle
    read, edit and save under one lock. Lookups for days without a session return an empty list.
    """

    def __init__(
        self,
        backend: Optional[SessionBackend] = None,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self._backend = backend or InMemorySessionBackend()
        self.notifier = notifier or Notifier()
        self._lock = threading.RLock()

    def get_messages(self, day: DayKey) -> List[ChatMessage]:
        with self._lock:
            return self._backend.load(day)

    # Writers publish only after releasing the lock.

    def save_messages(self, day: DayKey, messages: List[ChatMessage]) -> None:
        with self._lock:
            self._backend.save(day, list(messages))
        self.notifier.publish(ChangeKind.SESSION_CHANGED, day)

    def append_message(self, day: DayKey, message: ChatMessage) -> None:
        with self._lock:
            messages = self._backend.load(day)
            messages.append(message)
            self._backend.save(day, messages)
        self.notifier.publish(ChangeKind.SESSION_CHANGED, day)

    def clear_session(self, day: DayKey) -> None:
        """Empty the day's log and drop its summary-generated flag."""
        with self._lock:
            self._backend.delete(day)
        logger.info("Cleared session for %s.", day)
        self.notifier.publish(ChangeKind.SESSION_CHANGED, day)

    def remove_message(self, day: DayKey, message_id: str) -> None:
        with self._lock:
            messages = self._backend.load(day)
            kept = [m for m in messages if m.id != message_id]
            if len(kept) == len(messages):
                return
            self._backend.save(day, kept)
        self.notifier.publish(ChangeKind.SESSION_CHANGED, day)

    def toggle_ignore(self, day: DayKey, message_id: str) -> None:
        with self._lock:
            messages = self._backend.load(day)
            for idx, msg in enumerate(messages):
                if msg.id == message_id:
                    messages[idx] = msg.with_ignored(not msg.is_ignored_in_entry)
                    break
            else:
                return
            self._backend.save(day, messages)
        self.notifier.publish(ChangeKind.SESSION_CHANGED, day)

    def is_summary_generated(self, day: DayKey) -> bool:
        with self._lock:
            return self._backend.get_summary_generated(day)

    def set_summary_generated(self, day: DayKey, generated: bool) -> None:
        with self._lock:
            self._backend.set_summary_generated(day, generated)

    def user_message_count(self, day: DayKey) -> int:
        # Raw count: messages flagged is_ignored_in_entry still count.
        return sum(1 for m in self.get_messages(day) if m.is_user)


class ContentStatusTracker:
    """
    Per-day bookkeeping for the derived entry and summary.

    The staleness check compares the live user-message count in the
    SessionStore against the snapshot taken when the entry was last
    generated or updated.
    """

    def __init__(
        self,
        sessions: SessionStore,
        backend: Optional[StatusBackend] = None,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self.sessions = sessions
        self._backend = backend or InMemoryStatusBackend()
        self.notifier = notifier or sessions.notifier
        self._lock = threading.RLock()

    def get_status(self, day: DayKey) -> ContentStatus:
        with self._lock:
            return self._backend.load(day) or ContentStatus()

    def _update(self, day: DayKey, kind: ChangeKind, **changes) -> None:
        with self._lock:
            status = self.get_status(day)
            for name, value in changes.items():
                setattr(status, name, value)
            self._backend.save(day, status)
        self.notifier.publish(kind, day)

    # ---------- ENTRY ----------

    def has_entry(self, day: DayKey) -> bool:
        return self.get_status(day).has_entry

    def set_has_entry(self, day: DayKey, has_entry: bool) -> None:
        self._update(day, ChangeKind.ENTRY_STATUS_CHANGED, has_entry=has_entry)

    def get_entry_message_count(self, day: DayKey) -> int:
        return self.get_status(day).entry_message_count_at_creation

    def set_entry_message_count(self, day: DayKey, count: int) -> None:
        self._update(day, ChangeKind.ENTRY_STATUS_CHANGED, entry_message_count_at_creation=count)

    def get_entry_update_date(self, day: DayKey) -> Optional[datetime]:
        return self.get_status(day).entry_last_updated

    def set_entry_update_date(self, day: DayKey, when: datetime) -> None:
        self._update(day, ChangeKind.ENTRY_STATUS_CHANGED, entry_last_updated=when)

    def has_new_messages_since_entry(self, day: DayKey) -> bool:
        return self.sessions.user_message_count(day) > self.get_entry_message_count(day)

    def entry_action(self, day: DayKey) -> EntryAction:
        if not self.has_entry(day):
            return EntryAction.GENERATE_ENTRY
        if self.has_new_messages_since_entry(day):
            return EntryAction.UPDATE_ENTRY
        return EntryAction.VIEW_ENTRY

    def record_entry_snapshot(self, day: DayKey, when: Optional[datetime] = None) -> int:
        """
        Mark the entry as present and snapshot the current user-message count.
        Shared tail of both "generate" and "update". Returns the snapshot.
        """
        # Counted before taking our lock; the session lock is never nested inside it.
        count = self.sessions.user_message_count(day)
        self._update(
            day,
            ChangeKind.ENTRY_STATUS_CHANGED,
            has_entry=True,
            entry_message_count_at_creation=count,
            entry_last_updated=when or now_utc(),
        )
        logger.info("Entry snapshot for %s at %d user messages.", day, count)
        return count

    # ---------- SUMMARY ----------

    def has_summary(self, day: DayKey) -> bool:
        return self.get_status(day).has_summary

    def set_has_summary(self, day: DayKey, has_summary: bool) -> None:
        self._update(day, ChangeKind.SUMMARY_STATUS_CHANGED, has_summary=has_summary)
