"""
File Storage Value Objects

Immutable value objects for type safety and validation.
"""

import secrets
import uuid
from dataclasses import dataclass
from urllib.parse import quote, unquote


class InvalidDownloadTokenError(ValueError):
    """Raised when a download token is invalid."""

    pass


def generate_entry_id() -> str:
    """Generate a fresh random registry entry id."""
    return str(uuid.uuid4())


@dataclass(frozen=True)
class DownloadToken:
    """
    Value object representing a validated one-time download token.

    Tokens must be at least 32 characters long and URL-safe.
    """

    value: str

    def __post_init__(self):
        if not self._is_valid():
            raise InvalidDownloadTokenError(
                f"Invalid download token: must be at least 32 URL-safe characters, "
                f"got {len(self.value) if isinstance(self.value, str) else self.value!r}"
            )

    def _is_valid(self) -> bool:
        if not self.value or not isinstance(self.value, str):
            return False

        if len(self.value) < 32:
            return False

        return all(c.isalnum() or c in "-_" for c in self.value)

    @classmethod
    def generate(cls) -> "DownloadToken":
        """
        Generate a new cryptographically secure download token.

        Uses secrets.token_urlsafe(32), which yields about 43 characters.
        """
        return cls(secrets.token_urlsafe(32))

    @classmethod
    def looks_valid(cls, value: str) -> bool:
        """Check a raw string against the token format without raising."""
        try:
            cls(value)
        except InvalidDownloadTokenError:
            return False
        return True

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class StorageKey:
    """
    Blob store key for an uploaded file.

    The key is "<entry id>/<percent-encoded original name>". Percent encoding
    keeps the key free of path separators while staying reversible, so the
    original filename can always be recovered from the key alone.
    """

    entry_id: str
    original_name: str

    @property
    def value(self) -> str:
        encoded = quote(self.original_name, safe="")
        # "." and ".." would be read as path segments by the blob store
        if not encoded.strip("."):
            encoded = encoded.replace(".", "%2E")
        return f"{self.entry_id}/{encoded}"

    @classmethod
    def parse(cls, key: str) -> "StorageKey":
        """
        Rebuild a StorageKey from its string form.

        Raises:
            ValueError: If the key does not contain an id and a name part
        """
        entry_id, sep, encoded_name = key.partition("/")
        if not sep or not entry_id or not encoded_name:
            raise ValueError(f"Malformed storage key: {key!r}")
        return cls(entry_id=entry_id, original_name=unquote(encoded_name))

    def __str__(self) -> str:
        return self.value
