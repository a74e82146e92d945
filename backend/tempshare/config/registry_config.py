"""
Registry Configuration

Lifetime, eviction and scheduling settings for the file registry, read from
the environment.
"""

import os
import re
from datetime import timedelta
from typing import Optional

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([smhd]?)\s*$", re.IGNORECASE)
_UNIT_SECONDS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}

HANDLE_MODES = ("id", "token")
REGISTRY_BACKENDS = ("memory", "redis")
SWEEP_RUNNERS = ("thread", "celery")


def parse_duration(value: str) -> timedelta:
    """
    Parse a duration such as '90', '60s', '10m', '1.5h' or '30d'.

    Plain numbers are seconds.

    Raises:
        ValueError: If the value is malformed or not positive
    """
    match = _DURATION_RE.match(value or "")
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")

    amount, unit = match.groups()
    seconds = float(amount) * _UNIT_SECONDS[unit.lower()]
    if seconds <= 0:
        raise ValueError(f"Duration must be positive: {value!r}")
    return timedelta(seconds=seconds)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


def _env_choice(name: str, default: str, choices: tuple) -> str:
    value = os.getenv(name, default).lower()
    if value not in choices:
        raise ValueError(f"{name} must be one of {', '.join(choices)}, got {value!r}")
    return value


class RegistryConfig:
    """Registry configuration settings."""

    def __init__(
        self,
        file_ttl: Optional[timedelta] = None,
        idle_threshold: Optional[timedelta] = None,
        expiry_sweep_interval: Optional[timedelta] = None,
        idle_sweep_interval: Optional[timedelta] = None,
    ):
        # Lifetimes
        self.file_ttl = file_ttl or parse_duration(os.getenv("FILE_TTL", "10m"))
        self.idle_threshold = idle_threshold or parse_duration(
            os.getenv("IDLE_EVICTION_THRESHOLD", "30d")
        )

        # Sweep cadence (fixed delay between the end of one run and the next)
        self.expiry_sweep_interval = expiry_sweep_interval or parse_duration(
            os.getenv("EXPIRY_SWEEP_INTERVAL", "60s")
        )
        self.idle_sweep_interval = idle_sweep_interval or parse_duration(
            os.getenv("IDLE_SWEEP_INTERVAL", "30d")
        )
        self.sweeps_enabled = _env_bool("SWEEPS_ENABLED", "true")
        self.sweep_runner = _env_choice("SWEEP_RUNNER", "thread", SWEEP_RUNNERS)

        # Handles
        self.handle_mode = _env_choice("HANDLE_MODE", "id", HANDLE_MODES)
        self.accept_raw_ids = _env_bool("ACCEPT_RAW_IDS", "false")

        # Backends
        self.backend = _env_choice("REGISTRY_BACKEND", "memory", REGISTRY_BACKENDS)
        self.stripes = int(os.getenv("REGISTRY_STRIPES", 16))
        self.storage_dir = os.getenv("STORAGE_DIR", "/tmp/tempshare")

    def to_dict(self) -> dict:
        return {
            "file_ttl_seconds": int(self.file_ttl.total_seconds()),
            "idle_threshold_seconds": int(self.idle_threshold.total_seconds()),
            "expiry_sweep_interval_seconds": self.expiry_sweep_interval.total_seconds(),
            "idle_sweep_interval_seconds": self.idle_sweep_interval.total_seconds(),
            "handle_mode": self.handle_mode,
            "backend": self.backend,
            "sweep_runner": self.sweep_runner,
        }
