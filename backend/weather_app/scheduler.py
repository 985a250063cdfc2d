from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def next_tick(now: datetime, interval: timedelta) -> datetime:
    """
    First interval boundary strictly after `now`, counted from the Unix epoch.
    With a one-hour interval that is the top of the next hour, regardless of how
    long the previous run took.
    """
    if interval <= timedelta(0):
        raise ValueError("interval must be positive")
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    elapsed = now - _EPOCH
    truncated = _EPOCH + (elapsed // interval) * interval
    return truncated + interval


class Scheduler:
    """
    Single periodic timer aligned to epoch boundaries.

    Cancellation is cooperative: `stop()` is observed while waiting for the next
    tick, never in the middle of a running task. Runs are not mutually excluded;
    a task slower than one interval delays the following tick.
    """

    def __init__(
        self,
        interval: timedelta,
        task: Callable[[datetime], None],
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.interval = interval
        self.task = task
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def run(self) -> None:
        while not self._stop.is_set():
            now = self._clock()
            tick = next_tick(now, self.interval)
            delay = max(0.0, (tick - now).total_seconds())
            logger.info("Waiting until %s (every %s)", tick.isoformat(), self.interval)

            if self._stop.wait(delay):
                logger.info("Scheduler cancelled before next execution.")
                return

            logger.info("Running scheduled task for tick %s", tick.isoformat())
            try:
                self.task(tick)
            except Exception:  # pylint: disable=broad-except
                logger.exception("Scheduled task failed for tick %s", tick.isoformat())

    def start(self) -> threading.Thread:
        if self._thread is not None and self._thread.is_alive():
            return self._thread
        self._stop.clear()
        self._thread = threading.Thread(target=self.run, name="weather-scheduler", daemon=True)
        self._thread.start()
        return self._thread

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
