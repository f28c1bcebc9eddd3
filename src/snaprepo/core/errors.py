"""Error types raised by the resolution pipeline.

Every error carries the context (provider, URL, path) needed to diagnose
a failure without re-running in verbose mode.
"""

from __future__ import annotations

from pathlib import Path


class SnapRepoError(Exception):
    """Base class for all snap-repo errors."""


class ConfigError(SnapRepoError):
    """Raised when a configuration file cannot be read or parsed."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class UnsupportedProviderError(SnapRepoError, ValueError):
    """Raised when no provider is registered under the requested name."""

    def __init__(self, provider: str) -> None:
        super().__init__(f"Unsupported provider: {provider}")
        self.provider = provider


class ProviderResolutionError(SnapRepoError):
    """Raised when a provider fails or returns nothing."""

    def __init__(self, message: str, *, provider: str | None = None) -> None:
        super().__init__(message)
        self.provider = provider


class InvalidTemplateInfoError(ProviderResolutionError):
    """Raised when resolved template info lacks ``name`` or ``tar``."""

    def __init__(
        self, message: str, *, origin: str = "", provider: str | None = None,
    ) -> None:
        super().__init__(message, provider=provider)
        self.origin = origin


class DownloadError(SnapRepoError):
    """Raised on HTTP status >= 400 or a transport failure."""

    def __init__(self, message: str, *, url: str, status: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class TarballMissingError(SnapRepoError, FileNotFoundError):
    """Raised when no tarball is available for extraction."""

    def __init__(self, path: Path, *, offline: bool) -> None:
        super().__init__(f"Tarball not found: {path} (offline: {offline})")
        self.path = path
        self.offline = offline


class DestinationConflictError(SnapRepoError, FileExistsError):
    """Raised when the destination exists and ``force`` is not set."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Destination {path} already exists.")
        self.path = path


class ExtractionError(SnapRepoError):
    """Raised when the archive cannot be read or written out."""

    def __init__(self, message: str, *, path: Path) -> None:
        super().__init__(message)
        self.path = path
