"""
Periodic re-analysis in a background thread
"""

import threading
from datetime import timedelta
from typing import Callable, Optional, Union

from ..analysis.analyzer import DatabaseAnalyzer
from ..config.settings import parse_interval
from ..database.errors import AlreadyRunning, NotRunning
from ..database.models import DatabaseReport
from ..utils.log import get_logger


class Scheduler:
    """Run the analysis pipeline every ``interval`` and hand reports to a callback.

    The scheduler is either idle or running. ``stop`` waits for the worker
    thread to exit, so no callback fires after it returns. A failed tick is
    logged and the schedule continues.
    """

    def __init__(self, analyzer: DatabaseAnalyzer):
        self.analyzer = analyzer
        self.logger = get_logger(__name__)
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None

    def start(self, interval: Union[str, int, float, timedelta],
              callback: Callable[[DatabaseReport], None]):
        seconds = parse_interval(interval)

        with self._lock:
            if self._thread is not None:
                raise AlreadyRunning("scheduler is already running")

            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run_loop,
                args=(seconds, callback, self._stop_event),
                name="dbinsight-scheduler",
                daemon=True
            )
            self._thread.start()
            self.logger.info(f"Scheduled analysis every {seconds:g}s")

    def stop(self):
        with self._lock:
            if self._thread is None:
                raise NotRunning("scheduler is not running")

            thread = self._thread
            self._stop_event.set()
            self._thread = None

        # a callback may stop the scheduler from the worker thread itself
        if thread is not threading.current_thread():
            thread.join()
        self.logger.info("Scheduled analysis stopped")

    def _run_loop(self, interval: float, callback: Callable[[DatabaseReport], None],
                  stop_event: threading.Event):
        while not stop_event.wait(interval):
            try:
                report = self.analyzer.analyze_database()
            except Exception:
                self.logger.exception("Scheduled analysis failed")
                continue

            if stop_event.is_set():
                break

            try:
                callback(report)
            except Exception:
                self.logger.exception("Scheduled analysis callback failed")
