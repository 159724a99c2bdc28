import logging
from contextlib import nullcontext
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class ScheduledTask:
    """Handle for a repeating callback. ``cancel`` is idempotent."""

    def __init__(self, interval: float, callback: Callable[[], None]):
        self.interval = interval
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class BackgroundScheduler:
    """Runs each task on its own background loop.

    ``spawn`` and ``sleep`` are normally ``socketio.start_background_task``
    and ``socketio.sleep`` so the loop cooperates with whatever async mode the
    server runs under.
    """

    def __init__(self, spawn: Callable, sleep: Callable[[float], None]):
        self._spawn = spawn
        self._sleep = sleep

    def every(self, interval: float, callback: Callable[[], None]) -> ScheduledTask:
        task = ScheduledTask(interval, callback)

        def _runner():
            while True:
                self._sleep(task.interval)
                if task.cancelled:
                    return
                try:
                    task.callback()
                except Exception:
                    logger.exception("[timer-error] tick callback failed, stopping task")
                    task.cancel()
                    return

        self._spawn(_runner)
        return task


class ManualScheduler:
    """Scheduler that only ticks when ``advance`` is called."""

    def __init__(self):
        self._tasks: List[ScheduledTask] = []

    def every(self, interval: float, callback: Callable[[], None]) -> ScheduledTask:
        task = ScheduledTask(interval, callback)
        self._tasks.append(task)
        return task

    @property
    def pending(self) -> int:
        return sum(1 for t in self._tasks if not t.cancelled)

    def advance(self, steps: int = 1) -> None:
        for _ in range(steps):
            self._tasks = [t for t in self._tasks if not t.cancelled]
            for task in list(self._tasks):
                if not task.cancelled:
                    task.callback()


class RoundTimer:
    """One-second countdown that signals expiry exactly once per start.

    Restarting cancels the running countdown first, so at most one scheduled
    task is live. Ticks from a cancelled task are dropped.
    """

    def __init__(
        self,
        scheduler,
        duration: int = 15,
        on_tick: Optional[Callable[[int], None]] = None,
        on_expire: Optional[Callable[[], None]] = None,
        interval: float = 1.0,
        lock=None,
    ):
        self.scheduler = scheduler
        # Ticks arrive from the scheduler's thread; the owner's lock serialises them
        self._lock = lock if lock is not None else nullcontext()
        self.duration = int(duration)
        self.interval = interval
        self.on_tick = on_tick
        self.on_expire = on_expire
        self.remaining = self.duration
        self.active = False
        self._task: Optional[ScheduledTask] = None

    def start(self) -> None:
        self._cancel_task()
        self.remaining = self.duration
        self.active = True
        task = None

        def _tick():
            with self._lock:
                self._tick(task)

        task = self.scheduler.every(self.interval, _tick)
        self._task = task
        logger.debug(f"[timer-start] duration={self.duration}s")

    def stop(self) -> None:
        self.active = False
        self._cancel_task()

    def reset(self) -> None:
        self.stop()
        self.remaining = self.duration

    def _cancel_task(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    def _tick(self, task: Optional[ScheduledTask]) -> None:
        if task is None or task is not self._task or not self.active:
            return
        self.remaining = max(0, self.remaining - 1)
        if self.on_tick:
            self.on_tick(self.remaining)
        if self.remaining == 0:
            self.stop()
            logger.debug("[timer-expire] countdown reached zero")
            if self.on_expire:
                self.on_expire()
