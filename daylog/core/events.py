# daylog/core/events.py

from __future__ import annotations

from enum import Enum
import threading
from typing import Callable, List

from daylog.core.daykey import DayKey
from daylog.utils.logging import get_logger

logger = get_logger(__name__)


class ChangeKind(str, Enum):
    SESSION_CHANGED = "session_changed"
    ENTRY_STATUS_CHANGED = "entry_status_changed"
    SUMMARY_STATUS_CHANGED = "summary_status_changed"
    MODE_CHANGED = "mode_changed"


Observer = Callable[[ChangeKind, DayKey], None]


class Notifier:
    """
    Synchronous fan-out to every subscriber.

    publish() returns only after all observers have run. There is no queue
    and no replay: an observer that subscribes late misses earlier events.
    A failing observer is logged and skipped so the mutation that triggered
    the event still completes.
    """

    def __init__(self) -> None:
        self._observers: List[Observer] = []
        self._lock = threading.Lock()

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        with self._lock:
            self._observers.append(observer)

        def unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return unsubscribe

    def publish(self, kind: ChangeKind, day: DayKey) -> None:
        with self._lock:
            observers = list(self._observers)
        for observer in observers:
            try:
                observer(kind, day)
            except Exception as e:
                logger.error("Observer %r failed on %s(%s): %s", observer, kind.value, day, e)
