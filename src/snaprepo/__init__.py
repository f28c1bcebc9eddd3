"""snap-repo — download and extract project templates from git hosts, URLs and registries."""

from __future__ import annotations

import httpx

from snaprepo.core.errors import (
    ConfigError,
    DestinationConflictError,
    DownloadError,
    ExtractionError,
    InvalidTemplateInfoError,
    ProviderResolutionError,
    SnapRepoError,
    TarballMissingError,
    UnsupportedProviderError,
)
from snaprepo.core.models import (
    DownloadOptions,
    DownloadStatus,
    DownloadTemplateResult,
    Settings,
    SourceDescriptor,
    TemplateInfo,
)
from snaprepo.core.uri import parse_git_uri

__version__ = "0.1.0"


def download_template(
    raw: str,
    options: DownloadOptions | None = None,
    *,
    settings: Settings | None = None,
    client: httpx.Client | None = None,
) -> DownloadTemplateResult:
    """Library entry point; see ``snaprepo.services.template.download_template``.

    Reads env/config settings once when the caller does not pass ``settings``.
    """
    from snaprepo.core.env import load_settings
    from snaprepo.services import template

    if settings is None:
        settings = load_settings()
    return template.download_template(raw, options, settings=settings, client=client)


__all__ = [
    "ConfigError",
    "DestinationConflictError",
    "DownloadError",
    "DownloadOptions",
    "DownloadStatus",
    "DownloadTemplateResult",
    "ExtractionError",
    "InvalidTemplateInfoError",
    "ProviderResolutionError",
    "Settings",
    "SnapRepoError",
    "SourceDescriptor",
    "TarballMissingError",
    "TemplateInfo",
    "UnsupportedProviderError",
    "download_template",
    "parse_git_uri",
]
