"""Configuration for the registry, Redis and Celery."""
