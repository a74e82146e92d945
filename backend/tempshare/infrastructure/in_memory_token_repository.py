"""
In-Memory Token Repository

Process-local implementation of TokenRepository.
"""

import threading
from typing import Dict, Optional

from tempshare.domain.file_storage.repositories import TokenRepository


class InMemoryTokenRepository(TokenRepository):
    """
    Lock-striped token -> entry id map.

    pop() removes under the stripe lock, so of several concurrent callers
    with the same token only the first one gets the target id back.
    """

    def __init__(self, stripes: int = 16):
        if stripes < 1:
            raise ValueError(f"stripes must be at least 1, got {stripes}")

        self._locks = [threading.Lock() for _ in range(stripes)]
        self._maps: list[Dict[str, str]] = [{} for _ in range(stripes)]

    def _index(self, token: str) -> int:
        return hash(token) % len(self._locks)

    def put_if_absent(self, token: str, target_id: str) -> bool:
        i = self._index(token)
        with self._locks[i]:
            if token in self._maps[i]:
                return False
            self._maps[i][token] = target_id
            return True

    def pop(self, token: str) -> Optional[str]:
        i = self._index(token)
        with self._locks[i]:
            return self._maps[i].pop(token, None)

    def count(self) -> int:
        total = 0
        for lock, tokens in zip(self._locks, self._maps):
            with lock:
                total += len(tokens)
        return total
