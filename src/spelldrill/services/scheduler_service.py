"""Queue of cancellable deferred tasks driven by the asyncio event loop."""
import asyncio
import itertools
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

Action = Callable[[], None]
Listener = Callable[[int], None]


@dataclass
class ScheduledTask:
    """A pending action and the timer that will fire it."""
    task_id: int
    delay: float
    action: Action
    handle: Optional[asyncio.TimerHandle] = None


class TaskQueue:
    """Schedules actions after a delay and keeps them cancellable.

    Each task runs at most once. Tasks pushed with the same delay fire in
    push order. The queue knows nothing about what the actions do.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        """Initialize the queue, optionally bound to a specific event loop."""
        self._loop = loop
        self._ids = itertools.count(1)
        self._tasks: Dict[int, ScheduledTask] = {}
        self._listeners: List[Listener] = []

    def __len__(self) -> int:
        return len(self._tasks)

    def __bool__(self) -> bool:
        return bool(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    @property
    def pending_count(self) -> int:
        """Number of tasks that have neither fired nor been removed."""
        return len(self._tasks)

    def push(self, action: Action, delay: float) -> int:
        """Schedule ``action`` to run after ``delay`` seconds and return its id."""
        loop = self._loop or asyncio.get_running_loop()
        task_id = next(self._ids)
        task = ScheduledTask(task_id=task_id, delay=delay, action=action)
        task.handle = loop.call_later(delay, self._execute, task_id)
        self._tasks[task_id] = task
        logger.debug("Scheduled task %d in %.3fs", task_id, delay)
        return task_id

    def remove(self, task_id: int) -> None:
        """Cancel a pending task. Unknown or already fired ids are ignored."""
        task = self._tasks.pop(task_id, None)
        if task is None:
            return
        if task.handle is not None:
            task.handle.cancel()
        logger.debug("Removed task %d", task_id)

    def clear(self) -> None:
        """Cancel all pending tasks."""
        for task in self._tasks.values():
            if task.handle is not None:
                task.handle.cancel()
        if self._tasks:
            logger.debug("Cleared %d pending tasks", len(self._tasks))
        self._tasks.clear()

    def run_all_now(self) -> int:
        """Fire every currently pending task synchronously, in push order.

        Tasks pushed by the fired actions themselves stay pending. Returns the
        number of tasks executed.
        """
        task_ids = list(self._tasks)
        executed = 0
        for task_id in task_ids:
            task = self._tasks.get(task_id)
            if task is None:
                # removed by an earlier action
                continue
            if task.handle is not None:
                task.handle.cancel()
            self._execute(task_id)
            executed += 1
        return executed

    def add_listener(self, listener: Listener) -> None:
        """Register a callback invoked with the task id after every execution."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _execute(self, task_id: int) -> None:
        task = self._tasks.pop(task_id, None)
        if task is None:
            return
        try:
            task.action()
        except Exception:
            logger.exception("Scheduled task %d failed", task_id)
        for listener in list(self._listeners):
            try:
                listener(task_id)
            except Exception:
                logger.exception("Task listener failed after task %d", task_id)
