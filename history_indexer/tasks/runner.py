# history_indexer/tasks/runner.py

import threading
import time
from typing import Callable, Dict, List, Optional

from ..core.config import IndexerConfig
from ..core.logging import LoggingMixin
from .importer import LiquidityHistoryImporter
from .validator import LiquidityHistoryValidator


class ScheduledJob:
    def __init__(self, name: str, func: Callable[[], object], interval: int):
        self.name = name
        self.func = func
        self.interval = interval
        self.next_run = 0.0
        self.lock = threading.Lock()


class TaskRunner(LoggingMixin):
    """
    Runs the importer and validator periodically.

    Each job is single-flight: a tick that finds the previous run of the same
    job still active is skipped. Job failures are logged and the schedule
    continues.
    """

    def __init__(
        self,
        importer: LiquidityHistoryImporter,
        validator: LiquidityHistoryValidator,
        config: IndexerConfig,
    ):
        self.jobs: Dict[str, ScheduledJob] = {
            'import': ScheduledJob('import', importer.import_history, config.scheduler.import_interval),
            'validate': ScheduledJob('validate', validator.validate, config.scheduler.validate_interval),
        }
        self._stop = threading.Event()
        self._threads: List[threading.Thread] = []

    def run_job(self, name: str) -> bool:
        """Run a job now unless it is already running. Returns whether it ran."""
        job = self.jobs[name]
        if not job.lock.acquire(blocking=False):
            self.log_warning("Skipped job, previous run still in progress", job=name)
            return False

        started = time.monotonic()
        try:
            job.func()
            self.log_info("Job finished", job=name, duration=round(time.monotonic() - started, 3))
        except Exception as e:
            self.log_error("Job failed", job=name, error=str(e), exception_type=type(e).__name__)
        finally:
            job.lock.release()
        return True

    def tick(self, now: Optional[float] = None) -> List[str]:
        """Start every due job in its own thread and return their names"""
        now = time.monotonic() if now is None else now
        started = []

        for job in self.jobs.values():
            if now < job.next_run:
                continue
            job.next_run = now + job.interval

            thread = threading.Thread(target=self.run_job, args=(job.name,), name=f"job-{job.name}", daemon=True)
            thread.start()
            self._threads.append(thread)
            started.append(job.name)

        self._threads = [t for t in self._threads if t.is_alive()]
        return started

    def run_forever(self, poll_interval: float = 1.0) -> None:
        self.log_info("Task runner started",
                      import_interval=self.jobs['import'].interval,
                      validate_interval=self.jobs['validate'].interval)
        try:
            while not self._stop.is_set():
                self.tick()
                self._stop.wait(poll_interval)
        finally:
            for thread in self._threads:
                thread.join()
            self.log_info("Task runner stopped")

    def stop(self) -> None:
        self._stop.set()
