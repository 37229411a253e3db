# daylog/core/chat.py

from dataclasses import dataclass
from datetime import date, datetime
import random
import threading
from typing import Dict, List, Optional, Tuple, Union

from daylog.config.settings import Settings, load_settings
from daylog.core.daykey import DayKey, resolve_timezone
from daylog.core.events import ChangeKind
from daylog.core.modes import LOG_MODE_INSTRUCTION, ModeController
from daylog.core.responses import Category, ResponseClassifier, ResponseComposer
from daylog.core.scheduler import ReplyScheduler, ScheduledReply, TimerReplyScheduler
from daylog.memory.models import (
    ChatMessage,
    ChatMode,
    ContentStatus,
    EntryAction,
    EntryDraft,
    now_utc,
)
from daylog.memory.repository import build_backends
from daylog.memory.stores import ContentStatusTracker, SessionStore
from daylog.utils.logging import get_logger, set_log_level

logger = get_logger(__name__)

# SAFEGUARD: bound a single message so one paste can't bloat a session
MAX_MESSAGE_CHARS = 8000

DayLike = Union[DayKey, datetime, date, str]


@dataclass
class ReplyConfig:
    delay_min: float = 0.75
    delay_max: float = 1.5
    # "overlap": every pending reply lands; "latest": a newer message cancels older ones
    policy: str = "overlap"


class DailyChatCore:
    """
    Inbound facade for the daily chat: messages, modes, entries, summaries.

    Owns the per-day ModeControllers and wires SessionStore,
    ContentStatusTracker, the classifier/composer pair and the reply
    scheduler together. Compound operations run under one lock so a
    timer-thread reply and a request thread never interleave mid-edit.
    """

    def __init__(
        self,
        sessions: SessionStore,
        statuses: ContentStatusTracker,
        classifier: Optional[ResponseClassifier] = None,
        composer: Optional[ResponseComposer] = None,
        scheduler: Optional[ReplyScheduler] = None,
        tz=None,
        reply_config: Optional[ReplyConfig] = None,
        default_mode: ChatMode = ChatMode.CHAT,
    ) -> None:
        self.sessions = sessions
        self.statuses = statuses
        self.notifier = sessions.notifier
        self.classifier = classifier or ResponseClassifier()
        self.composer = composer or ResponseComposer()
        self.scheduler = scheduler or TimerReplyScheduler()
        self.tz = tz or resolve_timezone("UTC")
        self.reply_config = reply_config or ReplyConfig()
        self.default_mode = default_mode

        self._modes: Dict[DayKey, ModeController] = {}
        # Bumped whenever a day's pending replies are dropped; a reply
        # scheduled under an older generation is discarded on delivery.
        self._generations: Dict[DayKey, int] = {}
        self._lock = threading.RLock()

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        scheduler: Optional[ReplyScheduler] = None,
    ) -> "DailyChatCore":
        settings = settings or load_settings()
        set_log_level(settings.log_level)
        session_backend, status_backend = build_backends(settings.storage, settings.db_path)
        sessions = SessionStore(session_backend)
        statuses = ContentStatusTracker(sessions, status_backend)
        rng = random.Random(settings.random_seed)

        logger.info(
            "Starting daily chat core (storage=%s tz=%s policy=%s).",
            settings.storage,
            settings.timezone,
            settings.reply_policy,
        )
        return cls(
            sessions=sessions,
            statuses=statuses,
            composer=ResponseComposer(rng),
            scheduler=scheduler,
            tz=resolve_timezone(settings.timezone),
            reply_config=ReplyConfig(
                delay_min=settings.reply_delay_min,
                delay_max=settings.reply_delay_max,
                policy=settings.reply_policy,
            ),
        )

    def day_key(self, day: DayLike) -> DayKey:
        return DayKey.from_value(day, self.tz)

    # ---------- MODES ----------

    def _controller(self, key: DayKey) -> ModeController:
        controller = self._modes.get(key)
        if controller is None:
            controller = ModeController(self.default_mode)
            self._modes[key] = controller
        return controller

    def get_mode(self, day: DayLike) -> ChatMode:
        with self._lock:
            return self._controller(self.day_key(day)).mode

    def set_mode(self, day: DayLike, mode: ChatMode, now: Optional[datetime] = None) -> Optional[ChatMessage]:
        """
        Switch the day's mode. Posts a system notification into the session
        when the mode actually changes; returns it (or None).
        """
        key = self.day_key(day)
        with self._lock:
            notification = self._controller(key).transition(mode, now or now_utc())
            if notification is None:
                return None
            self.sessions.append_message(key, notification)
        logger.info("Mode for %s switched to %s.", key, mode.value)
        self.notifier.publish(ChangeKind.MODE_CHANGED, key)
        return notification

    # ---------- MESSAGES ----------

    def get_messages(self, day: DayLike) -> List[ChatMessage]:
        return self.sessions.get_messages(self.day_key(day))

    def _opening_message(self, key: DayKey, mode: ChatMode, now: datetime) -> ChatMessage:
        if mode == ChatMode.LOG:
            content = LOG_MODE_INSTRUCTION
        else:
            content = self.composer.compose_opening_prompt(now.astimezone(self.tz) if now.tzinfo else now)
        return ChatMessage(content=content, is_user=False, timestamp=now, mode=mode)

    def append_user_message(self, day: DayLike, text: str, now: Optional[datetime] = None) -> ChatMessage:
        """
        Store a user message and, in Chat mode, schedule exactly one reply.

        When the session holds no conversational messages yet, the opening
        message for the current mode goes in front first.
        """
        now = now or now_utc()
        key = self.day_key(day)

        text = text or ""
        if len(text) > MAX_MESSAGE_CHARS:
            logger.warning(
                "Message length %d exceeds MAX_MESSAGE_CHARS=%d; truncating.",
                len(text),
                MAX_MESSAGE_CHARS,
            )
            text = text[:MAX_MESSAGE_CHARS]

        with self._lock:
            controller = self._controller(key)
            messages = self.sessions.get_messages(key)

            if not any(m.is_conversational for m in messages):
                messages.insert(0, self._opening_message(key, controller.mode, now))

            message = ChatMessage(content=text, is_user=True, timestamp=now, mode=controller.mode)
            messages.append(message)
            self.sessions.save_messages(key, messages)

            if controller.should_reply(message):
                self._schedule_reply(key, self.classifier.classify(text))

        return message

    def _schedule_reply(self, key: DayKey, category: Category) -> ScheduledReply:
        if self.reply_config.policy == "latest":
            self._drop_pending(key)
        generation = self._generations.get(key, 0)

        reply_text = self.composer.compose_reply(category)
        delay = self.composer.rng.uniform(self.reply_config.delay_min, self.reply_config.delay_max)

        def deliver() -> None:
            with self._lock:
                if self._generations.get(key, 0) != generation:
                    logger.info("Dropped stale %s reply for %s.", category.value, key)
                    return
                reply = ChatMessage(content=reply_text, is_user=False, mode=ChatMode.CHAT)
                self.sessions.append_message(key, reply)

        logger.info("Scheduled %s reply for %s in %.2fs.", category.value, key, delay)
        return self.scheduler.schedule(key, delay, deliver)

    def _drop_pending(self, key: DayKey) -> None:
        self._generations[key] = self._generations.get(key, 0) + 1
        self.scheduler.cancel_day(key)

    def remove_message(self, day: DayLike, message_id: str) -> None:
        key = self.day_key(day)
        with self._lock:
            self.sessions.remove_message(key, message_id)

    def toggle_ignore(self, day: DayLike, message_id: str) -> None:
        key = self.day_key(day)
        with self._lock:
            self.sessions.toggle_ignore(key, message_id)

    def clear_session(self, day: DayLike) -> None:
        """Empty the day's chat and drop its pending replies. Entry status is kept."""
        key = self.day_key(day)
        with self._lock:
            self._drop_pending(key)
            self.sessions.clear_session(key)

    def regenerate_response(self, day: DayLike) -> Optional[ScheduledReply]:
        """
        Drop the latest composed reply and schedule a fresh one for the user
        message it answered. Returns None when there is nothing to redo.
        """
        key = self.day_key(day)
        with self._lock:
            messages = self.sessions.get_messages(key)
            target = _last_reply_and_prompt(messages)
            if target is None:
                return None
            reply, prompt = target
            self.sessions.remove_message(key, reply.id)
            return self._schedule_reply(key, self.classifier.classify(prompt.content))

    # ---------- ENTRY / SUMMARY ----------

    def status(self, day: DayLike) -> ContentStatus:
        return self.statuses.get_status(self.day_key(day))

    def entry_action(self, day: DayLike) -> EntryAction:
        return self.statuses.entry_action(self.day_key(day))

    def generate_or_update_entry(self, day: DayLike, now: Optional[datetime] = None) -> EntryDraft:
        """
        Build the entry draft from the session. Generate and update both end
        by re-snapshotting the user-message count; an entry that is already
        current is rendered without touching its status.
        """
        key = self.day_key(day)
        with self._lock:
            action = self.statuses.entry_action(key)
            messages = self.sessions.get_messages(key)
            title, body = self.composer.compose_entry(key, messages)

            if action == EntryAction.VIEW_ENTRY:
                status = self.statuses.get_status(key)
                return EntryDraft(
                    day=str(key),
                    title=title,
                    body=body,
                    action=action,
                    message_count=status.entry_message_count_at_creation,
                    updated_at=status.entry_last_updated or now or now_utc(),
                )

            updated_at = now or now_utc()
            count = self.statuses.record_entry_snapshot(key, updated_at)

        logger.info("Entry %s for %s (%d user messages).", action.value, key, count)
        return EntryDraft(
            day=str(key),
            title=title,
            body=body,
            action=action,
            message_count=count,
            updated_at=updated_at,
        )

    def delete_entry(self, day: DayLike) -> None:
        self.statuses.set_has_entry(self.day_key(day), False)

    def generate_summary(self, day: DayLike) -> str:
        key = self.day_key(day)
        with self._lock:
            summary = self.composer.compose_reflective_summary(self.sessions.get_messages(key))
            self.sessions.set_summary_generated(key, True)
            self.statuses.set_has_summary(key, True)
        return summary


def _last_reply_and_prompt(messages: List[ChatMessage]) -> Optional[Tuple[ChatMessage, ChatMessage]]:
    """Latest composed reply together with the closest user message before it."""
    for idx in range(len(messages) - 1, -1, -1):
        msg = messages[idx]
        if msg.is_user or msg.is_system_notification:
            continue
        for prior in reversed(messages[:idx]):
            if prior.is_user:
                return msg, prior
        # Only the opening prompt is left; it answers nothing.
        return None
    return None
