"""
Sweep Jobs

Shared entry point for running a registry sweep from a worker, optionally
under a Redis run lock.
"""

import logging
from typing import Any, Dict, Optional

from redis.exceptions import LockError

from tempshare.domain.file_storage import EvictionService
from tempshare.infrastructure.redis_repository import RedisRepository

logger = logging.getLogger(__name__)

SWEEP_EXPIRED = "expired"
SWEEP_IDLE = "idle"


def run_sweep(
    eviction_service: EvictionService,
    sweep: str,
    lock_repository: Optional[RedisRepository] = None,
    lock_timeout: int = 300,
) -> Dict[str, Any]:
    """
    Run one sweep and report its outcome.

    With a lock repository, the sweep runs under a Redis lock named after
    it. If another worker holds that lock the run is skipped.

    Args:
        eviction_service: Service performing the sweep
        sweep: SWEEP_EXPIRED or SWEEP_IDLE
        lock_repository: Redis repository providing the distributed lock
        lock_timeout: Seconds after which a stale lock is released by Redis

    Returns:
        SweepResult.to_dict(), or {"sweep": ..., "skipped": True}

    Raises:
        ValueError: If the sweep name is unknown
    """
    if sweep == SWEEP_EXPIRED:
        run = eviction_service.sweep_expired
    elif sweep == SWEEP_IDLE:
        run = eviction_service.sweep_idle
    else:
        raise ValueError(f"Unknown sweep: {sweep}")

    if lock_repository is None:
        return run().to_dict()

    try:
        with lock_repository.distributed_lock(
            f"sweep:{sweep}", timeout=lock_timeout, blocking_timeout=0
        ):
            return run().to_dict()
    except LockError:
        logger.info(f"Sweep {sweep} already running on another worker, skipped")
        return {"sweep": sweep, "skipped": True}
