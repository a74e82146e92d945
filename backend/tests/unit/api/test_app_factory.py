"""
Tests for application wiring in app_factory.
"""

from datetime import timedelta

import pytest

from app_factory import AppConfig, create_app
from tempshare.application import EventPublisher, FileService
from tempshare.config.registry_config import RegistryConfig
from tempshare.domain.file_storage import (
    EvictionService,
    FileManager,
    FileRegistry,
    LinkIssuer,
    StatsReporter,
    TokenRepository,
)
from tempshare.infrastructure.in_memory_file_registry import InMemoryFileRegistry
from tempshare.tasks import SweepScheduler


@pytest.fixture
def registry_config(monkeypatch, tmp_path) -> RegistryConfig:
    monkeypatch.setenv("STORAGE_DIR", str(tmp_path))
    monkeypatch.setenv("REGISTRY_BACKEND", "memory")
    monkeypatch.setenv("SWEEP_RUNNER", "thread")
    return RegistryConfig(expiry_sweep_interval=timedelta(seconds=60))


@pytest.fixture
def app(registry_config):
    app = create_app(AppConfig(), registry_config)
    yield app
    app.container.resolve(SweepScheduler).stop()


def test_container_holds_every_service(app):
    for service_type in (
        FileRegistry,
        TokenRepository,
        FileManager,
        LinkIssuer,
        StatsReporter,
        EvictionService,
        FileService,
        EventPublisher,
        SweepScheduler,
    ):
        assert app.container.is_registered(service_type)

    assert isinstance(app.container.resolve(FileRegistry), InMemoryFileRegistry)


def test_scheduler_started_and_reported(app):
    assert app.container.resolve(SweepScheduler).is_running()

    body = app.test_client().get("/health").get_json()

    assert body["scheduler"] == "running"
    assert body["status"] == "ok"


def test_sweeps_can_be_disabled(registry_config):
    registry_config.sweeps_enabled = False

    app = create_app(AppConfig(), registry_config)

    assert not app.container.resolve(SweepScheduler).is_running()


def test_scheduler_tasks_run_sweeps(app):
    result = app.container.resolve(SweepScheduler).run_now("expired")

    assert result["sweep"] == "expired"
    assert result["removed"] == 0


def test_celery_is_attached(app):
    assert app.celery is not None
    assert "sweep-expired-files" in app.celery.conf.beat_schedule


def test_health_reports_registry_settings(app):
    body = app.test_client().get("/health").get_json()

    assert body["config"]["expiry_sweep_interval_seconds"] == 60
    assert body["config"]["backend"] == "memory"
    assert body["config"]["sweep_runner"] == "thread"


def test_health_degraded_when_scheduler_stopped(app):
    app.container.resolve(SweepScheduler).stop()

    response = app.test_client().get("/health")

    assert response.status_code == 503
    assert response.get_json()["scheduler"] == "stopped"
