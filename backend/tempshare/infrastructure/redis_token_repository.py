"""
Redis Token Repository Implementation

Concrete Redis-based implementation of TokenRepository.
"""

from typing import Optional

from tempshare.domain.file_storage.repositories import TokenRepository

from .redis_repository import RedisRepository


class RedisTokenRepository(TokenRepository):
    """
    Stores each token as a plain string key holding the target entry id.

    Binding uses SET NX and consumption uses GETDEL, both single commands,
    so a token can be spent only once across every process sharing Redis.
    """

    def __init__(self, redis_repository: RedisRepository):
        """
        Initialize with Redis repository.

        Args:
            redis_repository: RedisRepository instance from infrastructure layer
        """
        self.redis_repo = redis_repository
        self.token_prefix = "download_token"

    def _token_key(self, token: str) -> str:
        return f"{self.token_prefix}:{token}"

    def put_if_absent(self, token: str, target_id: str) -> bool:
        return self.redis_repo.set_if_absent(self._token_key(token), target_id)

    def pop(self, token: str) -> Optional[str]:
        return self.redis_repo.get_and_delete(self._token_key(token))

    def count(self) -> int:
        return self.redis_repo.count_keys(f"{self.token_prefix}:*")
