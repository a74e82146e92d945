"""
Unit tests for registry, Redis and Celery configuration.
"""

from datetime import timedelta
from unittest.mock import Mock

import pytest

from tempshare.config.celery_config import build_beat_schedule, make_celery
from tempshare.config.redis_config import RedisConfig
from tempshare.config.registry_config import RegistryConfig, parse_duration


class TestParseDuration:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("90", timedelta(seconds=90)),
            ("60s", timedelta(seconds=60)),
            ("10m", timedelta(minutes=10)),
            ("1.5h", timedelta(minutes=90)),
            ("30d", timedelta(days=30)),
            (" 2M ", timedelta(minutes=2)),
        ],
    )
    def test_valid_durations(self, raw, expected):
        assert parse_duration(raw) == expected

    @pytest.mark.parametrize("raw", ["", "abc", "10x", "-5m", "0", "0s", None])
    def test_invalid_durations(self, raw):
        with pytest.raises(ValueError):
            parse_duration(raw)


class TestRegistryConfig:
    def test_defaults(self, monkeypatch):
        for name in (
            "FILE_TTL",
            "IDLE_EVICTION_THRESHOLD",
            "EXPIRY_SWEEP_INTERVAL",
            "IDLE_SWEEP_INTERVAL",
            "HANDLE_MODE",
            "ACCEPT_RAW_IDS",
            "REGISTRY_BACKEND",
            "SWEEP_RUNNER",
            "SWEEPS_ENABLED",
        ):
            monkeypatch.delenv(name, raising=False)

        config = RegistryConfig()

        assert config.file_ttl == timedelta(minutes=10)
        assert config.idle_threshold == timedelta(days=30)
        assert config.expiry_sweep_interval == timedelta(seconds=60)
        assert config.idle_sweep_interval == timedelta(days=30)
        assert config.handle_mode == "id"
        assert config.accept_raw_ids is False
        assert config.backend == "memory"
        assert config.sweep_runner == "thread"
        assert config.sweeps_enabled is True

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("FILE_TTL", "1h")
        monkeypatch.setenv("HANDLE_MODE", "TOKEN")
        monkeypatch.setenv("ACCEPT_RAW_IDS", "yes")
        monkeypatch.setenv("REGISTRY_BACKEND", "redis")

        config = RegistryConfig()

        assert config.file_ttl == timedelta(hours=1)
        assert config.handle_mode == "token"
        assert config.accept_raw_ids is True
        assert config.backend == "redis"

    def test_arguments_override_environment(self, monkeypatch):
        monkeypatch.setenv("FILE_TTL", "1h")

        config = RegistryConfig(file_ttl=timedelta(seconds=5))

        assert config.file_ttl == timedelta(seconds=5)

    @pytest.mark.parametrize(
        "name,value",
        [("HANDLE_MODE", "both"), ("REGISTRY_BACKEND", "sqlite"), ("FILE_TTL", "soon")],
    )
    def test_invalid_values_fail_fast(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)

        with pytest.raises(ValueError):
            RegistryConfig()

    def test_to_dict(self, monkeypatch):
        monkeypatch.delenv("FILE_TTL", raising=False)
        assert RegistryConfig().to_dict()["file_ttl_seconds"] == 600


class TestRedisConfig:
    def test_url_overrides_host(self, monkeypatch):
        monkeypatch.setenv("REDIS_URL", "redis://:secret@cache:6380/2")

        config = RedisConfig()

        assert config.host == "cache"
        assert config.port == 6380
        assert config.db == 2
        assert config.password == "secret"


class TestCeleryConfig:
    def test_beat_schedule_uses_sweep_intervals(self):
        config = RegistryConfig(
            expiry_sweep_interval=timedelta(seconds=15),
            idle_sweep_interval=timedelta(hours=6),
        )

        schedule = build_beat_schedule(config)

        assert schedule["sweep-expired-files"]["task"] == "tasks.sweep_expired_files"
        assert schedule["sweep-expired-files"]["schedule"] == 15
        assert schedule["sweep-idle-files"]["schedule"] == 6 * 3600

    def test_make_celery_routes_sweeps_to_cleanup_queue(self):
        app = Mock()
        app.import_name = "tempshare_test"

        celery = make_celery(app, RegistryConfig())

        assert celery.conf.task_routes["tasks.sweep_idle_files"] == {"queue": "cleanup_queue"}
        assert "sweep-idle-files" in celery.conf.beat_schedule
