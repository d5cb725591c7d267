from __future__ import annotations

import heapq
import itertools
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class TaskHandle:
    """A scheduled callback that can be cancelled before it (next) fires."""

    def __init__(self, name: str = "", on_cancel: Optional[Callable[[], None]] = None):
        self.name = name
        self._cancelled = False
        self._on_cancel = on_cancel

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._on_cancel is not None:
            self._on_cancel()

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "active"
        return f"TaskHandle({self.name!r}, {state})"


class Scheduler(ABC):
    """Runs callbacks later or periodically. Every task can be cancelled through its handle."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any, name: str = "") -> TaskHandle:
        ...

    @abstractmethod
    def call_every(self, interval: float, callback: Callable[..., Any], *args: Any, name: str = "") -> TaskHandle:
        ...


def _run_logged(handle: TaskHandle, callback: Callable[..., Any], args: Tuple[Any, ...]) -> None:
    try:
        callback(*args)
    except Exception:
        logger.exception("[task-error] task=%s", handle.name)


class ThreadingScheduler(Scheduler):
    """Wall-clock scheduler backed by daemon threads. Callbacks run off the caller's thread."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any, name: str = "") -> TaskHandle:
        timer: Optional[threading.Timer] = None

        def _cancel() -> None:
            if timer is not None:
                timer.cancel()

        handle = TaskHandle(name, on_cancel=_cancel)

        def _fire() -> None:
            if not handle.cancelled:
                _run_logged(handle, callback, args)

        timer = threading.Timer(delay, _fire)
        timer.daemon = True
        timer.start()
        return handle

    def call_every(self, interval: float, callback: Callable[..., Any], *args: Any, name: str = "") -> TaskHandle:
        stop = threading.Event()
        handle = TaskHandle(name, on_cancel=stop.set)

        def _loop() -> None:
            while not stop.wait(interval):
                _run_logged(handle, callback, args)

        thread = threading.Thread(target=_loop, name=f"every-{name or 'task'}", daemon=True)
        thread.start()
        return handle


class _Entry:
    __slots__ = ("handle", "callback", "args", "interval")

    def __init__(self, handle: TaskHandle, callback: Callable[..., Any], args: Tuple[Any, ...], interval: Optional[float]):
        self.handle = handle
        self.callback = callback
        self.args = args
        self.interval = interval


class ManualScheduler(Scheduler):
    """
    Virtual-clock scheduler. Nothing fires until advance() moves the clock;
    due tasks then run in time order on the calling thread, and their
    exceptions propagate to the caller of advance().
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._seq = itertools.count()
        self._queue: List[Tuple[float, int, _Entry]] = []

    def _push(self, due: float, entry: _Entry) -> None:
        heapq.heappush(self._queue, (due, next(self._seq), entry))

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any, name: str = "") -> TaskHandle:
        handle = TaskHandle(name)
        self._push(self.now + max(0.0, delay), _Entry(handle, callback, args, None))
        return handle

    def call_every(self, interval: float, callback: Callable[..., Any], *args: Any, name: str = "") -> TaskHandle:
        if interval <= 0:
            raise ValueError("interval must be positive")
        handle = TaskHandle(name)
        self._push(self.now + interval, _Entry(handle, callback, args, interval))
        return handle

    def advance(self, seconds: float) -> int:
        """Moves the clock forward, running every task that falls due. Returns how many ran."""
        if seconds < 0:
            raise ValueError("cannot move the clock backwards")
        target = self.now + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, entry = heapq.heappop(self._queue)
            if entry.handle.cancelled:
                continue
            self.now = due
            entry.callback(*entry.args)
            ran += 1
            if entry.interval is not None and not entry.handle.cancelled:
                self._push(due + entry.interval, entry)
        self.now = target
        return ran

    def pending(self) -> int:
        return sum(1 for _, _, entry in self._queue if not entry.handle.cancelled)
