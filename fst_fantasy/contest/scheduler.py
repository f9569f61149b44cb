"""Background scheduler that keeps the catalog warm and rolls gameweeks over."""

from __future__ import annotations

import threading

from fst_fantasy.logging_config import get_logger

logger = get_logger(__name__)

_scheduler_thread: threading.Thread | None = None
_stop_event = threading.Event()


def start_scheduler(manager, interval_seconds: int = 300) -> bool:
    """Start the background tick loop.

    Calls ``ContestManager.tick()`` every *interval_seconds* (default 5 min).
    The thread is a daemon so it dies with the process. Returns False when
    a loop is already running.
    """
    global _scheduler_thread
    if _scheduler_thread and _scheduler_thread.is_alive():
        return False

    _stop_event.clear()

    def _loop() -> None:
        while not _stop_event.is_set():
            try:
                manager.tick()
            except Exception:
                logger.exception("Scheduler tick failed")
            _stop_event.wait(interval_seconds)

    _scheduler_thread = threading.Thread(
        target=_loop, daemon=True, name="gw-scheduler",
    )
    _scheduler_thread.start()
    logger.info("Scheduler started: interval=%ds", interval_seconds)
    return True


def stop_scheduler(timeout: float | None = None) -> None:
    """Stop the background tick loop."""
    _stop_event.set()
    if _scheduler_thread is not None and timeout is not None:
        _scheduler_thread.join(timeout)
    logger.info("Scheduler stop requested")
