"""Custom exception hierarchy for the album vault."""

from __future__ import annotations

from typing import Optional, Sequence


class AlbumVaultError(Exception):
    """Base class for all custom errors raised by album_vault."""


class ConfigError(AlbumVaultError):
    """Base exception for configuration issues."""


class ConfigFileError(ConfigError):
    """Raised when the JSON config file is invalid."""


class RemoteStoreError(AlbumVaultError):
    """Raised when a single request against the document store fails."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        # Network-level failures carry no status and are always worth another attempt.
        if self.status_code is None:
            return True
        if self.status_code in (408, 429):
            return True
        return self.status_code >= 500


class DocumentNotFoundError(RemoteStoreError):
    """Raised when the library document does not exist in the store yet."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=404)

    @property
    def retryable(self) -> bool:
        return False


class DocumentFormatError(RemoteStoreError):
    """Raised when the stored document does not describe a valid library."""

    @property
    def retryable(self) -> bool:
        return False


class LoadFailure(AlbumVaultError):
    """Raised when the library could not be loaded after exhausting retries."""


class PersistFailure(AlbumVaultError):
    """Raised when the library could not be written after exhausting retries."""


class StalePathError(AlbumVaultError):
    """Raised when a path references an album that no longer exists."""

    def __init__(self, missing_id: str, valid_prefix: Sequence[str]) -> None:
        super().__init__(f"Album '{missing_id}' is not reachable from the current path")
        self.missing_id = missing_id
        self.valid_prefix = tuple(valid_prefix)


__all__ = [
    "AlbumVaultError",
    "ConfigError",
    "ConfigFileError",
    "DocumentFormatError",
    "DocumentNotFoundError",
    "LoadFailure",
    "PersistFailure",
    "RemoteStoreError",
    "StalePathError",
]
