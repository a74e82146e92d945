"""
Link Issuer

Issues one-time download tokens and resolves them exactly once.
"""

import logging
from typing import Optional

from .repositories import TokenRepository
from .value_objects import DownloadToken

logger = logging.getLogger(__name__)


class LinkIssuer:
    """
    Domain service for single-use download links.

    Tokens are bound to an entry id without checking that the entry exists:
    issuing a link never races with eviction of its target. The binding is
    validated when the token is resolved, at which point the token is
    already spent, even if the target turns out to be gone.
    """

    def __init__(self, token_repository: TokenRepository, max_attempts: int = 5):
        """
        Initialize LinkIssuer.

        Args:
            token_repository: Storage for the token -> entry id map
            max_attempts: Token generation attempts before giving up on
                collisions
        """
        self.token_repo = token_repository
        self.max_attempts = max_attempts

    def issue(self, target_id: str) -> str:
        """
        Create a fresh token bound to target_id.

        Args:
            target_id: Registry entry id the token resolves to

        Returns:
            The token string

        Raises:
            RuntimeError: If no unused token could be generated
        """
        for _ in range(self.max_attempts):
            token = DownloadToken.generate().value
            if self.token_repo.put_if_absent(token, target_id):
                return token
            logger.warning("Download token collision, regenerating")

        raise RuntimeError(
            f"Could not generate a unique download token after {self.max_attempts} attempts"
        )

    def resolve_and_consume(self, token: str) -> Optional[str]:
        """
        Spend a token.

        Args:
            token: Token returned by issue()

        Returns:
            The bound entry id, or None if the token is unknown or was
            already used
        """
        if not token:
            return None
        return self.token_repo.pop(token)

    def outstanding(self) -> int:
        """Number of tokens issued and not yet consumed."""
        return self.token_repo.count()
