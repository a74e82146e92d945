"""
Redis Repository Base Class

Provides atomic primitives and distributed locking for the Redis-backed
registry and token map.
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional, Sequence

import redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import LockError

logger = logging.getLogger(__name__)


class RedisRepository:
    """Base Redis repository with atomic operations and distributed locking."""

    def __init__(self, redis_client: redis.Redis, key_prefix: str = ""):
        self.redis = redis_client
        self.key_prefix = key_prefix

    def _make_key(self, key: str) -> str:
        """Create a prefixed key for Redis storage."""
        return f"{self.key_prefix}:{key}" if self.key_prefix else key

    def _strip_prefix(self, key: Any) -> str:
        if isinstance(key, bytes):
            key = key.decode("utf-8")
        if self.key_prefix:
            return key[len(self.key_prefix) + 1 :]
        return key

    def set_if_absent(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        """
        Atomically set a string value unless the key exists (SET NX).

        Args:
            key: Redis key
            value: Value to store
            ttl: Optional time to live in seconds

        Returns:
            True if the value was stored, False if the key already existed
        """
        return bool(self.redis.set(self._make_key(key), value, nx=True, ex=ttl))

    def get_and_delete(self, key: str) -> Optional[str]:
        """
        Atomically read and remove a string value (GETDEL).

        Returns:
            The value, or None if the key didn't exist
        """
        value = self.redis.getdel(self._make_key(key))
        if value is None:
            return None
        return value.decode("utf-8") if isinstance(value, bytes) else value

    def hash_get_all(self, key: str) -> Optional[dict]:
        """
        Read a whole hash with str keys and values.

        Returns:
            The hash, or None if the key doesn't exist
        """
        data = self.redis.hgetall(self._make_key(key))
        if not data:
            return None
        return {
            (k.decode("utf-8") if isinstance(k, bytes) else k): (
                v.decode("utf-8") if isinstance(v, bytes) else v
            )
            for k, v in data.items()
        }

    def run_script(self, script: str, keys: Sequence[str], args: Sequence[Any]) -> Any:
        """
        Run a Lua script atomically against prefixed keys.

        Args:
            script: Lua source
            keys: Unprefixed key names (KEYS)
            args: Script arguments (ARGV)

        Returns:
            Raw script result
        """
        redis_keys = [self._make_key(key) for key in keys]
        return self.redis.eval(script, len(redis_keys), *redis_keys, *args)

    def scan_keys(self, pattern: str) -> Iterator[str]:
        """
        Incrementally iterate keys matching a pattern (SCAN, not KEYS).

        Yields:
            Matching keys without the repository prefix
        """
        for key in self.redis.scan_iter(match=self._make_key(pattern), count=500):
            yield self._strip_prefix(key)

    def count_keys(self, pattern: str) -> int:
        return sum(1 for _ in self.scan_keys(pattern))

    def ping(self) -> bool:
        try:
            return bool(self.redis.ping())
        except RedisConnectionError:
            return False

    @contextmanager
    def distributed_lock(
        self, lock_name: str, timeout: int = 10, blocking_timeout: float = 5
    ):
        """
        Distributed lock context manager using Redis.

        Args:
            lock_name: Name of the lock
            timeout: Lock timeout in seconds
            blocking_timeout: How long to wait for lock acquisition

        Yields:
            Lock object if acquired successfully

        Raises:
            LockError: If lock cannot be acquired
        """
        lock_key = self._make_key(f"lock:{lock_name}")
        lock = self.redis.lock(lock_key, timeout=timeout, blocking_timeout=blocking_timeout)

        if not lock.acquire(blocking=True, blocking_timeout=blocking_timeout):
            raise LockError(f"Could not acquire lock: {lock_name}")

        try:
            yield lock
        finally:
            try:
                lock.release()
            except LockError:
                # Lock may have expired, which is fine
                pass


class RedisConnectionManager:
    """Manages Redis connection with connection pooling."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: Optional[str] = None,
        max_connections: int = 20,
        decode_responses: bool = False,
    ):
        self.connection_pool = redis.ConnectionPool(
            host=host,
            port=port,
            db=db,
            password=password,
            max_connections=max_connections,
            decode_responses=decode_responses,
            retry_on_timeout=True,
            socket_keepalive=True,
        )
        self._client = None

    @property
    def client(self) -> redis.Redis:
        """Get Redis client instance with connection pooling."""
        if self._client is None:
            self._client = redis.Redis(connection_pool=self.connection_pool)
        return self._client
