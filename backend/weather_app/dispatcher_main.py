"""
Weather update dispatcher process.

    python -m weather_app.dispatcher_main

Ticks on epoch-aligned interval boundaries (hourly by default). Each tick enqueues
the hourly run, and the tick at DAILY_UPDATE_HOUR:00 UTC also enqueues the daily run.
SIGINT/SIGTERM stop the scheduler between ticks.
"""
from __future__ import annotations

import logging
import signal
import sys
from datetime import timedelta

from weather_app.core.config import settings
from weather_app.core.database import check_db_connection
from weather_app.scheduler import Scheduler
from weather_app.tasks.weather_updates import dispatch_tick

logger = logging.getLogger(__name__)


def main() -> int:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="[%(asctime)s] %(levelname)s in %(name)s: %(message)s",
    )
    logger.info("Starting weather update dispatcher...")

    try:
        check_db_connection()
    except Exception:  # pylint: disable=broad-except
        logger.exception("Database initialization failed")
        return 1

    scheduler = Scheduler(timedelta(seconds=settings.DISPATCH_INTERVAL_SECONDS), dispatch_tick)

    def _handle_signal(signum, frame):  # noqa: ARG001
        logger.info("Stopping scheduler (signal %s)...", signum)
        scheduler.stop(timeout=0)

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    thread = scheduler.start()
    logger.info("Scheduler started. Press Ctrl+C to stop...")

    # Join in slices so the main thread keeps receiving signals.
    while thread.is_alive():
        thread.join(timeout=1.0)

    logger.info("Scheduler stopped cleanly.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
