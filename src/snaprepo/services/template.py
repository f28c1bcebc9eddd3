"""Template service — resolve, download, and extract in one call."""

from __future__ import annotations

import logging
import re
import shutil
import time
from collections.abc import Mapping
from dataclasses import replace
from pathlib import Path
from typing import Any

import httpx

from snaprepo.core import paths
from snaprepo.core.errors import (
    DestinationConflictError,
    DownloadError,
    ExtractionError,
    InvalidTemplateInfoError,
    ProviderResolutionError,
    TarballMissingError,
)
from snaprepo.core.models import (
    DownloadOptions,
    DownloadStatus,
    DownloadTemplateResult,
    Settings,
    TemplateInfo,
)
from snaprepo.core.net import bearer_headers, new_client, normalize_headers
from snaprepo.providers import ProviderTable, build_table, split_source
from snaprepo.services import download, extract

logger = logging.getLogger(__name__)

_UNSAFE_NAME_RE = re.compile(r"[^0-9A-Za-z-]")


def download_template(
    raw: str,
    options: DownloadOptions | None = None,
    *,
    settings: Settings | None = None,
    client: httpx.Client | None = None,
) -> DownloadTemplateResult:
    """Resolve *raw*, fetch its tarball through the cache, and extract it.

    Raises a SnapRepoError subclass for every failure; a half-created
    destination is left in place.
    """
    settings = settings or Settings()
    options = merge_options(options or DownloadOptions(), settings)

    if client is not None:
        return _run(raw, options, settings, client)
    with new_client(settings.timeout) as owned:
        return _run(raw, options, settings, owned)


def merge_options(options: DownloadOptions, settings: Settings) -> DownloadOptions:
    """Fill registry/auth from settings where the caller left them unset."""
    return replace(
        options,
        registry=settings.registry if options.registry is None else options.registry,
        auth=options.auth or settings.auth,
    )


def sanitize_name(name: str) -> str:
    """Replace everything outside ``[A-Za-z0-9-]`` with ``-``."""
    return _UNSAFE_NAME_RE.sub("-", name)


def _run(
    raw: str, options: DownloadOptions, settings: Settings, client: httpx.Client,
) -> DownloadTemplateResult:
    table = build_table(
        client,
        settings,
        overrides=options.providers,
        registry=options.registry,
        auth=options.auth,
    )
    default = options.provider or ("registry" if table.has_registry else "github")
    provider_name, source = split_source(raw, default)

    template = _resolve(table, provider_name, source, options.auth)
    name = sanitize_name(template.name or "template")
    template = replace(
        template,
        name=name,
        default_dir=sanitize_name(template.default_dir or name),
    )

    cache_root = settings.cache_dir or paths.cache_directory()
    tar_path = _cache_entry(cache_root, provider_name, template)
    status = _fetch_tarball(client, template, tar_path, options)

    cwd = Path(options.cwd or ".").resolve()
    dest = (cwd / (options.dir or template.default_dir)).resolve()
    _prepare_destination(
        dest, force=options.force, force_clean=options.force_clean, silent=options.silent,
    )

    start = time.monotonic()
    count = extract.extract_tarball(tar_path, dest, subdir=template.subdir)
    logger.debug(
        "Extracted %d entries to %s in %.0fms", count, dest, (time.monotonic() - start) * 1000,
    )

    result = DownloadTemplateResult(template=template, dir=dest, source=source, status=status)
    if options.hook is not None:
        options.hook(result)
    return result


def _resolve(
    table: ProviderTable, provider_name: str, source: str, auth: str | None,
) -> TemplateInfo:
    provider = table.lookup(provider_name)
    logger.debug("Resolving %r with provider %s", source, provider_name)

    start = time.monotonic()
    try:
        resolved = provider(source, auth=auth)
        if resolved is not None and not isinstance(resolved, TemplateInfo):
            resolved = _coerce(resolved, provider_name)
    except InvalidTemplateInfoError as exc:
        raise InvalidTemplateInfoError(
            f"Failed to download template from {provider_name}: {exc}",
            origin=exc.origin,
            provider=provider_name,
        ) from exc
    except Exception as exc:
        raise ProviderResolutionError(
            f"Failed to download template from {provider_name}: {exc}",
            provider=provider_name,
        ) from exc

    if resolved is None:
        raise ProviderResolutionError(
            f"Failed to resolve template from {provider_name}", provider=provider_name,
        )
    logger.debug(
        "Resolved template info for %s in %.0fms", provider_name, (time.monotonic() - start) * 1000,
    )
    return resolved


def _coerce(resolved: Any, provider_name: str) -> TemplateInfo:
    if isinstance(resolved, Mapping):
        return TemplateInfo.from_dict(resolved, origin=provider_name)
    raise TypeError(f"provider returned {type(resolved).__name__}, expected TemplateInfo")


def _fetch_tarball(
    client: httpx.Client, template: TemplateInfo, tar_path: Path, options: DownloadOptions,
) -> DownloadStatus:
    """Apply the offline policy and return how the tarball was obtained."""
    offline = options.offline or (options.prefer_offline and tar_path.exists())
    status = DownloadStatus.OFFLINE

    if not offline:
        # Provider headers are layered over the caller's bearer token.
        headers = {**bearer_headers(options.auth), **normalize_headers(template.headers)}
        start = time.monotonic()
        try:
            status = download.download(client, template.tar, tar_path, headers=headers)
        except DownloadError as exc:
            if not tar_path.exists():
                raise
            logger.log(
                _notice_level(options.silent),
                "Download error, using cached version of %s: %s", template.tar, exc,
            )
            offline = True
            status = DownloadStatus.CACHE_FALLBACK
        else:
            logger.debug(
                "%s %s to %s in %.0fms",
                "Fetched" if status is DownloadStatus.FETCHED else "Reused cached",
                template.tar, tar_path, (time.monotonic() - start) * 1000,
            )

    if not tar_path.exists():
        raise TarballMissingError(tar_path, offline=offline)
    return status


def _cache_entry(cache_root: Path, provider_name: str, template: TemplateInfo) -> Path:
    """Return the cached tarball path, refusing versions that escape their entry."""
    tar_path = paths.tarball_path(cache_root, provider_name, template.name, template.version)
    inside = tar_path.resolve().is_relative_to(cache_root.resolve())
    if not (inside and extract.is_safe_path(template.version)):
        raise ProviderResolutionError(
            f"Refusing cache path outside {cache_root} for {provider_name} "
            f"(version {template.version!r})",
            provider=provider_name,
        )
    return tar_path


def _notice_level(silent: bool) -> int:
    return logging.DEBUG if silent else logging.WARNING


def _prepare_destination(dest: Path, *, force: bool, force_clean: bool, silent: bool = False) -> None:
    if force_clean and dest.exists():
        logger.log(_notice_level(silent), "Removing existing destination %s", dest)
        if dest.is_dir() and not dest.is_symlink():
            shutil.rmtree(dest)
        else:
            dest.unlink()
    if dest.exists() and (not force or not dest.is_dir()):
        raise DestinationConflictError(dest)
    try:
        dest.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ExtractionError(f"Cannot create destination {dest}: {exc}", path=dest) from exc


__all__ = [
    "download_template",
    "merge_options",
    "sanitize_name",
]
