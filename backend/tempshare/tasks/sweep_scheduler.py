"""
Sweep Scheduler

Runs the registry sweeps in-process on an APScheduler background scheduler.
"""

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from apscheduler.schedulers.background import BackgroundScheduler

logger = logging.getLogger(__name__)


class _ScheduledSweep:
    """Bookkeeping for one periodic task."""

    def __init__(self, name: str, func: Callable[[], Any], interval: timedelta):
        self.name = name
        self.func = func
        self.interval = interval
        self.run_lock = threading.Lock()
        self.runs = 0
        self.failures = 0
        self.next_run_at: Optional[datetime] = None
        self.last_finished_at: Optional[datetime] = None
        self.last_error: Optional[str] = None

    def status(self) -> Dict[str, Any]:
        return {
            "interval_seconds": self.interval.total_seconds(),
            "running": self.run_lock.locked(),
            "runs": self.runs,
            "failures": self.failures,
            "next_run_at": self.next_run_at.isoformat() if self.next_run_at else None,
            "last_finished_at": (
                self.last_finished_at.isoformat() if self.last_finished_at else None
            ),
            "last_error": self.last_error,
        }


class SweepScheduler:
    """
    Fixed-delay scheduler for sweep tasks.

    Every run is a one-shot APScheduler job; when it finishes, the next run
    is scheduled one interval later, so the delay is measured from the end
    of one run to the start of the next. A per-task run lock keeps a task
    from overlapping itself when run_now() is called concurrently.
    A failing run is logged and the schedule carries on.
    """

    def __init__(self):
        self._tasks: Dict[str, _ScheduledSweep] = {}
        self._scheduler: Optional[BackgroundScheduler] = None
        self._lock = threading.Lock()

    def add_task(self, name: str, func: Callable[[], Any], interval: timedelta) -> None:
        """
        Register a periodic task.

        Args:
            name: Unique task name
            func: Callable run on every tick
            interval: Delay between the end of a run and the next start

        Raises:
            ValueError: If the name is taken, the interval is not positive or
                the scheduler is already running
        """
        if interval.total_seconds() <= 0:
            raise ValueError(f"Interval for {name} must be positive")

        with self._lock:
            if self._scheduler is not None:
                raise ValueError("Cannot add tasks to a running scheduler")
            if name in self._tasks:
                raise ValueError(f"Task already registered: {name}")
            self._tasks[name] = _ScheduledSweep(name, func, interval)

    def start(self) -> None:
        """Start the background scheduler. Calling start twice is a no-op."""
        with self._lock:
            if self._scheduler is not None:
                return

            self._scheduler = BackgroundScheduler(daemon=True, timezone=timezone.utc)
            self._scheduler.start()
            for task in self._tasks.values():
                self._schedule_next(self._scheduler, task)

        logger.info(f"Sweep scheduler started with tasks: {', '.join(self._tasks)}")

    def stop(self, wait: bool = True) -> None:
        """Shut the scheduler down, waiting for in-flight sweeps by default."""
        with self._lock:
            scheduler = self._scheduler
            self._scheduler = None

        if scheduler is None:
            return

        scheduler.shutdown(wait=wait)
        for task in self._tasks.values():
            task.next_run_at = None
        logger.info("Sweep scheduler stopped")

    def is_running(self) -> bool:
        with self._lock:
            return self._scheduler is not None and self._scheduler.running

    def run_now(self, name: str) -> Any:
        """
        Run a task immediately on the calling thread.

        Returns:
            The task's result, or None if the task is already running or failed

        Raises:
            KeyError: If no task has that name
        """
        return self._run(self._tasks[name])

    def status(self) -> Dict[str, Any]:
        return {
            "running": self.is_running(),
            "tasks": {name: task.status() for name, task in self._tasks.items()},
        }

    def _schedule_next(self, scheduler: BackgroundScheduler, task: _ScheduledSweep) -> None:
        run_date = datetime.now(timezone.utc) + task.interval
        # Fresh job id per run; the fired job is removed by APScheduler under its own id
        scheduler.add_job(
            self._fire,
            trigger="date",
            run_date=run_date,
            args=[scheduler, task],
            name=f"sweep-{task.name}",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=None,
        )
        task.next_run_at = run_date

    def _fire(self, scheduler: BackgroundScheduler, task: _ScheduledSweep) -> None:
        try:
            self._run(task)
        finally:
            with self._lock:
                if self._scheduler is scheduler and scheduler.running:
                    self._schedule_next(scheduler, task)

    def _run(self, task: _ScheduledSweep) -> Any:
        if not task.run_lock.acquire(blocking=False):
            logger.info(f"Sweep {task.name} still running, skipping this run")
            return None

        try:
            result = task.func()
            task.last_error = None
            return result
        except Exception as e:
            task.failures += 1
            task.last_error = str(e)
            logger.error(f"Sweep {task.name} failed: {e}", exc_info=True)
            return None
        finally:
            task.runs += 1
            task.last_finished_at = datetime.now(timezone.utc)
            task.run_lock.release()
