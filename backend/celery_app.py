"""
Celery Application Instance

Creates the Celery app instance for use by workers and beat scheduler.
Uses the app factory to ensure all services are properly initialized.

Only meaningful with REGISTRY_BACKEND=redis: workers and the web process
must share the registry to sweep it.
"""

from app_factory import create_app

# Create Flask app with all services initialized (including dependency container)
flask_app = create_app()

if flask_app.celery is None:
    raise RuntimeError(
        "Celery is not configured; check CELERY_BROKER_URL and CELERY_RESULT_BACKEND"
    )

# Get Celery instance from Flask app
celery_app = flask_app.celery

# Task modules are imported by name when the worker starts, once celery_app
# exists (tasks -> cleanup_task -> celery_app).
celery_app.conf.imports = ("tempshare.tasks.cleanup_task",)
