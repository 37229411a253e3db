# daylog/core/scheduler.py

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import itertools
import threading
from typing import Callable, Dict, List, Optional

from daylog.core.daykey import DayKey
from daylog.utils.logging import get_logger

logger = get_logger(__name__)

_task_ids = itertools.count(1)


@dataclass(eq=False)
class ScheduledReply:
    """Single-shot deferred callback, keyed by the day it will write into."""

    day: DayKey
    delay: float
    callback: Callable[[], None]
    id: int = field(default_factory=lambda: next(_task_ids))
    cancelled: bool = False
    done: bool = False

    def run(self) -> None:
        if self.cancelled or self.done:
            return
        self.done = True
        try:
            self.callback()
        except Exception as e:
            logger.error("Scheduled reply %d for %s failed: %s", self.id, self.day, e)


class ReplyScheduler(ABC):
    """
    Runs composed replies after a simulated "thinking" delay.

    Several tasks may be pending for the same day at once; cancel_day()
    drops every task still pending for that day.
    """

    def __init__(self) -> None:
        self._pending: Dict[DayKey, List[ScheduledReply]] = {}
        self._lock = threading.Lock()

    def schedule(self, day: DayKey, delay: float, callback: Callable[[], None]) -> ScheduledReply:
        task = ScheduledReply(day=day, delay=delay, callback=callback)
        with self._lock:
            self._pending.setdefault(day, []).append(task)
        self._start(task)
        return task

    def cancel(self, task: ScheduledReply) -> None:
        task.cancelled = True
        self._forget(task)
        self._stop(task)

    def cancel_day(self, day: DayKey) -> int:
        with self._lock:
            tasks = self._pending.pop(day, [])
        for task in tasks:
            task.cancelled = True
            self._stop(task)
        if tasks:
            logger.info("Cancelled %d pending repl%s for %s.", len(tasks), "y" if len(tasks) == 1 else "ies", day)
        return len(tasks)

    def pending(self, day: Optional[DayKey] = None) -> List[ScheduledReply]:
        with self._lock:
            if day is not None:
                return list(self._pending.get(day, []))
            return [t for tasks in self._pending.values() for t in tasks]

    def _forget(self, task: ScheduledReply) -> None:
        with self._lock:
            tasks = self._pending.get(task.day)
            if tasks and task in tasks:
                tasks.remove(task)
                if not tasks:
                    del self._pending[task.day]

    def _fire(self, task: ScheduledReply) -> None:
        self._forget(task)
        task.run()

    @abstractmethod
    def _start(self, task: ScheduledReply) -> None:
        ...

    def _stop(self, task: ScheduledReply) -> None:
        pass


class TimerReplyScheduler(ReplyScheduler):
    """Fires each task on its own threading.Timer."""

    def __init__(self) -> None:
        super().__init__()
        self._timers: Dict[int, threading.Timer] = {}

    def _start(self, task: ScheduledReply) -> None:
        timer = threading.Timer(task.delay, self._on_timer, args=(task,))
        timer.daemon = True
        self._timers[task.id] = timer
        timer.start()

    def _on_timer(self, task: ScheduledReply) -> None:
        self._timers.pop(task.id, None)
        self._fire(task)

    def _stop(self, task: ScheduledReply) -> None:
        timer = self._timers.pop(task.id, None)
        if timer is not None:
            timer.cancel()


class ManualReplyScheduler(ReplyScheduler):
    """
    Holds tasks until run_pending() is called.

    Used by tests and the CLI, where "time passing" is explicit.
    """

    def _start(self, task: ScheduledReply) -> None:
        pass

    def run_pending(self, day: Optional[DayKey] = None) -> int:
        """Fire pending tasks in scheduling order. Returns how many ran."""
        tasks = sorted(self.pending(day), key=lambda t: t.id)
        for task in tasks:
            self._fire(task)
        return len(tasks)
