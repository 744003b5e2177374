from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from storm_reporter.common.logging import get_logger


class ReportScheduler:
    def __init__(
        self,
        task: Callable[[], None],
        interval_sec: float,
        *,
        name: str = "storm-reporter",
        initial_delay_sec: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if interval_sec <= 0:
            raise ValueError("interval_sec must be > 0")
        self.task = task
        self.interval_sec = interval_sec
        self.initial_delay_sec = interval_sec if initial_delay_sec is None else initial_delay_sec
        self.name = name
        self.ticks = 0
        self._logger = logger or get_logger("scheduler")
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError(f"Scheduler {self.name} already started")
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()

    def stop(self, timeout_sec: Optional[float] = None) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout_sec)

    def _run(self) -> None:
        self._logger.info("scheduler_start", extra={"interval_sec": self.interval_sec})
        next_run = time.monotonic() + self.initial_delay_sec
        while not self._stop_event.wait(max(0.0, next_run - time.monotonic())):
            try:
                self.task()
            except Exception:
                self._logger.exception("scheduled_task_failed", extra={"scheduler": self.name})
            self.ticks += 1
            next_run += self.interval_sec
            now = time.monotonic()
            if next_run < now:
                # skip missed slots rather than running back to back
                next_run = now
        self._logger.info("scheduler_stop", extra={"ticks": self.ticks})
