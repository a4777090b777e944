"""
Periodic task runner.

A ``PeriodicTask`` fires on a fixed interval from a timer thread and runs its
callable on a small worker pool. A tick that fires while the previous run is
still in progress is skipped, never queued, so slow refreshes cannot pile up
into bursts. ``stop`` cancels future ticks; a run already in progress is
allowed to finish.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """
    Cancellable fixed-interval task with skip-if-busy semantics.

    Args:
        interval: Seconds between ticks
        func: Callable run on each tick (no arguments)
        name: Label used in logs and thread names
        run_immediately: Fire the first tick on ``start`` instead of after
            one interval
    """

    def __init__(self, interval: float, func: Callable[[], object],
                 name: Optional[str] = None, run_immediately: bool = True):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.interval = interval
        self.func = func
        self.name = name or getattr(func, "__name__", "periodic-task")
        self.run_immediately = run_immediately

        self.completed_ticks = 0
        self.skipped_ticks = 0
        self.failed_ticks = 0

        self._busy = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._executor: Optional[ThreadPoolExecutor] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and not self._stop_event.is_set()

    @property
    def busy(self) -> bool:
        return self._busy.locked()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event = threading.Event()
        self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix=f"{self.name}-worker")
        self._thread = threading.Thread(
            target=self._loop, args=(self._stop_event, self._executor),
            name=f"{self.name}-timer", daemon=True,
        )
        self._thread.start()
        logger.debug(f"Started periodic task {self.name} every {self.interval}s")

    def stop(self, wait: bool = False) -> None:
        """Stop scheduling ticks. With ``wait`` block until the timer exits."""
        thread, executor = self._thread, self._executor
        self._stop_event.set()
        self._thread = None
        self._executor = None
        if executor is not None:
            executor.shutdown(wait=wait)
        if wait and thread is not None and thread is not threading.current_thread():
            thread.join()
        logger.debug(f"Stopped periodic task {self.name}")

    def tick(self) -> bool:
        """
        Run the task once unless a previous run is still in progress.

        Returns:
            True if the task ran, False if the tick was skipped
        """
        if not self._busy.acquire(blocking=False):
            self.skipped_ticks += 1
            logger.debug(f"Skipping tick of {self.name}: previous run still in progress")
            return False
        try:
            self.func()
            self.completed_ticks += 1
        except Exception:
            self.failed_ticks += 1
            logger.exception(f"Periodic task {self.name} failed")
        finally:
            self._busy.release()
        return True

    def _loop(self, stop_event: threading.Event, executor: ThreadPoolExecutor) -> None:
        next_run = time.monotonic()
        if not self.run_immediately:
            next_run += self.interval

        while not stop_event.wait(max(0.0, next_run - time.monotonic())):
            if self.busy:
                self.skipped_ticks += 1
                logger.debug(f"Skipping tick of {self.name}: previous run still in progress")
            else:
                try:
                    executor.submit(self.tick)
                except RuntimeError:
                    # executor shut down by stop()
                    break
            next_run += self.interval
            # coalesce missed ticks after a stall
            now = time.monotonic()
            if next_run < now:
                next_run = now + self.interval
