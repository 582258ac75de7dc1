import heapq
import itertools
import logging
import time
from typing import Callable, List, Tuple


logger = logging.getLogger('launch_control')


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class Timer:
    """A pending callback. Cancelling only flips a flag; the runner checks it."""

    __slots__ = ('delay_ms', 'callback', 'due', 'cancelled', 'fired')

    def __init__(self, delay_ms: float, callback: Callable[[], None], due: float = 0.0):
        self.delay_ms = delay_ms
        self.callback = callback
        self.due = due
        self.cancelled = False
        self.fired = False

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)


class SocketIOScheduler:
    """Runs each timer as a Flask-SocketIO background task.

    Works with whichever async mode the server picked (threading, eventlet,
    gevent) since both the task and the sleep go through socketio.
    """

    def __init__(self, socketio, app=None):
        self.socketio = socketio
        self.app = app

    def now(self) -> float:
        return monotonic_ms()

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> Timer:
        timer = Timer(delay_ms, callback, due=self.now() + delay_ms)
        self.socketio.start_background_task(self._run, timer)
        return timer

    def cancel(self, timer: Timer) -> None:
        timer.cancelled = True

    def _run(self, timer: Timer) -> None:
        self.socketio.sleep(timer.delay_ms / 1000.0)
        if timer.cancelled:
            logger.debug(f"[lc-timer-skip] delay={timer.delay_ms:.0f}ms cancelled")
            return
        timer.fired = True
        if self.app is not None:
            with self.app.app_context():
                timer.callback()
        else:
            timer.callback()


class ManualScheduler:
    """Simulated clock: nothing fires until advance() moves time forward.

    now() doubles as the controller clock so reaction times are exact.
    """

    def __init__(self, start_ms: float = 0.0):
        self._now = float(start_ms)
        self._queue: List[Tuple[float, int, Timer]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> Timer:
        timer = Timer(delay_ms, callback, due=self._now + delay_ms)
        heapq.heappush(self._queue, (timer.due, next(self._seq), timer))
        return timer

    def cancel(self, timer: Timer) -> None:
        timer.cancelled = True

    @property
    def pending(self) -> int:
        return sum(1 for _, _, t in self._queue if t.pending)

    def advance(self, ms: float) -> None:
        target = self._now + ms
        while self._queue and self._queue[0][0] <= target:
            due, _, timer = heapq.heappop(self._queue)
            self._now = max(self._now, due)
            if timer.cancelled:
                continue
            timer.fired = True
            timer.callback()
        self._now = target

    def run_until_idle(self, limit_ms: float = 60_000) -> None:
        """Fire every pending timer, including ones scheduled while firing."""
        deadline = self._now + limit_ms
        while self._queue and self._queue[0][0] <= deadline:
            self.advance(self._queue[0][0] - self._now)
