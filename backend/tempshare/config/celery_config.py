"""
Celery Configuration

Configures Celery with Flask integration, Redis broker, and the beat schedule
for the registry sweeps. Only used when SWEEP_RUNNER=celery.
"""

import os
from typing import Optional

from celery import Celery
from kombu import Queue

from tempshare.config.registry_config import RegistryConfig


class CeleryConfig:
    """Celery configuration settings."""

    # Broker settings
    broker_url = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    result_backend = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/0")

    # Task settings
    task_serializer = "json"
    accept_content = ["json"]
    result_serializer = "json"
    timezone = "UTC"
    enable_utc = True

    # Worker settings
    worker_prefetch_multiplier = 1
    task_acks_late = True

    # Task routing
    task_routes = {
        "tasks.sweep_expired_files": {"queue": "cleanup_queue"},
        "tasks.sweep_idle_files": {"queue": "cleanup_queue"},
    }

    # Queue definitions
    task_default_queue = "default"
    task_queues = (
        Queue("default", routing_key="default"),
        Queue("cleanup_queue", routing_key="cleanup"),
    )

    # Result backend settings
    result_expires = 3600  # 1 hour


def build_beat_schedule(registry_config: RegistryConfig) -> dict:
    """
    Beat entries for the two sweeps.

    Beat ticks at a fixed rate; the tasks hold a Redis run lock, so a tick
    that arrives while the previous run is still going is skipped.
    """
    return {
        "sweep-expired-files": {
            "task": "tasks.sweep_expired_files",
            "schedule": registry_config.expiry_sweep_interval.total_seconds(),
        },
        "sweep-idle-files": {
            "task": "tasks.sweep_idle_files",
            "schedule": registry_config.idle_sweep_interval.total_seconds(),
        },
    }


def make_celery(app, registry_config: Optional[RegistryConfig] = None) -> Celery:
    """
    Create Celery instance with Flask app context.

    Args:
        app: Flask application instance
        registry_config: Source of the sweep intervals

    Returns:
        Configured Celery instance
    """
    registry_config = registry_config or RegistryConfig()

    celery = Celery(
        app.import_name,
        backend=CeleryConfig.result_backend,
        broker=CeleryConfig.broker_url,
    )

    celery.config_from_object(CeleryConfig)
    celery.conf.beat_schedule = build_beat_schedule(registry_config)

    # Ensure tasks run within Flask app context
    class ContextTask(celery.Task):
        """Make celery tasks work with Flask app context."""

        def __call__(self, *args, **kwargs):
            with app.app_context():
                return self.run(*args, **kwargs)

    celery.Task = ContextTask
    return celery
