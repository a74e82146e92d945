"""
Cleanup Tasks

Celery beat tasks for the registry sweeps, used when SWEEP_RUNNER=celery.
Thin wrappers that delegate to the EvictionService in the container.
"""

import logging

from celery_app import celery_app

from .sweeps import SWEEP_EXPIRED, SWEEP_IDLE, run_sweep

logger = logging.getLogger(__name__)


def _run_from_container(sweep: str) -> dict:
    # Services are only ever taken from the container, never built here
    from celery_app import flask_app
    from tempshare.domain.file_storage import EvictionService
    from tempshare.infrastructure.redis_repository import RedisRepository

    container = flask_app.container
    eviction_service = container.resolve(EvictionService)
    lock_repository = (
        container.resolve(RedisRepository)
        if container.is_registered(RedisRepository)
        else None
    )
    return run_sweep(eviction_service, sweep, lock_repository)


@celery_app.task(bind=True, name="tasks.sweep_expired_files")
def sweep_expired_files(self):
    """
    Remove every entry past its hard expiry and delete its blob.

    Returns:
        dict: SweepResult counters, or a skipped marker when another worker
        holds the run lock
    """
    logger.info("Starting expired-files sweep task")
    return _run_from_container(SWEEP_EXPIRED)


@celery_app.task(bind=True, name="tasks.sweep_idle_files")
def sweep_idle_files(self):
    """Remove every entry not downloaded within the idle threshold."""
    logger.info("Starting idle-files sweep task")
    return _run_from_container(SWEEP_IDLE)
