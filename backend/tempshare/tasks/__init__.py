"""
Background Tasks

In-process sweep scheduler and the shared sweep runner. The Celery task
module (cleanup_task) is loaded by the worker through celery_app's imports.
"""

from .sweep_scheduler import SweepScheduler
from .sweeps import SWEEP_EXPIRED, SWEEP_IDLE, run_sweep

__all__ = ["SWEEP_EXPIRED", "SWEEP_IDLE", "SweepScheduler", "run_sweep"]
