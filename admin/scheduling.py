"""
Timing primitives for the admin node.

The registry never calls time.sleep() or datetime.now() directly: it is handed
a clock and a scheduler so tests can drive heartbeats, evictions and restart
completion with simulated time.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Protocol

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> Cancellable: ...


class ThreadTimerScheduler:
    """Runs each callback once on a daemon threading.Timer."""

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(max(0.0, float(delay_seconds)), callback)
        timer.daemon = True
        timer.start()
        return timer


class DeferredTasks:
    """
    One pending deferred callback per key.

    Scheduling a key that already has a pending task cancels the old one. The
    callback is responsible for re-checking state when it fires.
    """

    def __init__(self, scheduler: Scheduler):
        self._scheduler = scheduler
        self._pending: Dict[str, Cancellable] = {}
        self._lock = threading.Lock()

    def schedule(self, key: str, delay_seconds: float, callback: Callable[[], None]) -> None:
        handle: Optional[Cancellable] = None

        def fire() -> None:
            with self._lock:
                if self._pending.get(key) is not handle:
                    return
                del self._pending[key]
            try:
                callback()
            except Exception as e:
                logger.error(f"Deferred task '{key}' failed: {e}", exc_info=True)

        with self._lock:
            previous = self._pending.pop(key, None)
            if previous is not None:
                previous.cancel()
            handle = self._scheduler.call_later(delay_seconds, fire)
            self._pending[key] = handle

    def cancel(self, key: str) -> bool:
        with self._lock:
            handle = self._pending.pop(key, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def cancel_all(self) -> int:
        with self._lock:
            handles = list(self._pending.values())
            self._pending.clear()
        for handle in handles:
            handle.cancel()
        return len(handles)

    def is_pending(self, key: str) -> bool:
        with self._lock:
            return key in self._pending


class IntervalWorker:
    """
    Background thread that calls run_once() every interval_seconds.

    Exceptions from run_once() are logged and the loop continues on the next
    tick. stop() wakes the thread immediately instead of waiting out the
    current interval. Every start() creates a fresh stop event, so a thread
    still finishing a slow tick after stop() timed out exits on its own event
    and never keeps looping beside its replacement.
    """

    name = "interval-worker"

    def __init__(self, interval_seconds: float):
        self.interval_seconds = float(interval_seconds)
        self.running = False
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def run_once(self) -> None:
        raise NotImplementedError

    def start(self, run_immediately: bool = True) -> None:
        if self.running:
            logger.warning(f"{self.name} already running")
            return

        self.running = True
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._loop,
            args=(self._stop_event, run_immediately),
            name=self.name,
            daemon=True,
        )
        self._thread.start()
        logger.info(f"{self.name} started (interval={self.interval_seconds}s)")

    def stop(self, timeout: float = 5.0) -> None:
        if not self.running:
            return

        self.running = False
        self._stop_event.set()
        thread = self._thread
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning(f"{self.name} still finishing a tick after {timeout}s, it will exit when the tick returns")
        self._thread = None
        logger.info(f"{self.name} stopped")

    def _loop(self, stop_event: threading.Event, run_immediately: bool) -> None:
        if not run_immediately and stop_event.wait(self.interval_seconds):
            return
        while not stop_event.is_set():
            try:
                self.run_once()
            except Exception as e:
                logger.error(f"{self.name} tick failed: {e}", exc_info=True)
            if stop_event.wait(self.interval_seconds):
                break
