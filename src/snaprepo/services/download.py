"""Cache-aware tarball downloader.

Each cached tarball has a sidecar ``{tarball}.json`` holding the ETag of
the response that produced it. Concurrent writers to the same cache entry
are not coordinated.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path

import httpx

from snaprepo.core import paths
from snaprepo.core.errors import DownloadError, SnapRepoError
from snaprepo.core.models import DownloadStatus
from snaprepo.core.net import normalize_headers, send

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


def download(
    client: httpx.Client,
    url: str,
    dest: Path,
    *,
    headers: Mapping[str, str | None] | None = None,
) -> DownloadStatus:
    """Fetch *url* into *dest* unless the cached copy is still current.

    Returns ``CACHE_HIT`` when the HEAD ETag matches the sidecar and *dest*
    exists (no body is fetched), otherwise ``FETCHED``.

    Raises DownloadError on status >= 400, a transport failure of the GET,
    or a failed cache write (the partial file is removed).
    """
    sidecar = paths.sidecar_path(dest)
    cached_etag = _read_etag(sidecar) if dest.exists() else None

    head_etag = None
    try:
        head = send(client, "HEAD", url, headers=headers)
    except SnapRepoError as exc:
        logger.debug("HEAD %s failed, assuming no ETag: %s", url, exc)
    else:
        if head.status_code < 400:
            head_etag = head.headers.get("etag")

    if head_etag and head_etag == cached_etag:
        logger.debug("Cache hit for %s (etag %s)", url, head_etag)
        return DownloadStatus.CACHE_HIT

    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise DownloadError(f"Cannot create cache directory {dest.parent}: {exc}", url=url) from exc
    etag = _stream_to(client, url, dest, headers) or head_etag
    try:
        _write_etag(sidecar, etag)
    except OSError as exc:
        raise DownloadError(f"Failed to write {sidecar}: {exc}", url=url) from exc
    return DownloadStatus.FETCHED


def _stream_to(
    client: httpx.Client, url: str, dest: Path, headers: Mapping[str, str | None] | None,
) -> str | None:
    """Stream the GET body to a partial file, then move it over *dest*."""
    partial = paths.partial_path(dest)
    try:
        with client.stream("GET", url, headers=normalize_headers(headers)) as resp:
            if resp.status_code >= 400:
                raise DownloadError(
                    f"Failed to download {url}: {resp.status_code} {resp.reason_phrase}",
                    url=url,
                    status=resp.status_code,
                )
            with open(partial, "wb") as fh:
                for chunk in resp.iter_bytes(_CHUNK_SIZE):
                    fh.write(chunk)
            etag = resp.headers.get("etag")
        os.replace(partial, dest)
    except httpx.HTTPError as exc:
        partial.unlink(missing_ok=True)
        raise DownloadError(f"Failed to download {url}: {exc}", url=url) from exc
    except OSError as exc:
        partial.unlink(missing_ok=True)
        raise DownloadError(f"Failed to write {partial}: {exc}", url=url) from exc
    except DownloadError:
        partial.unlink(missing_ok=True)
        raise
    return etag


def _read_etag(sidecar: Path) -> str | None:
    try:
        data = json.loads(sidecar.read_text())
    except (OSError, ValueError):
        return None
    if not isinstance(data, dict):
        return None
    etag = data.get("etag")
    return etag if isinstance(etag, str) else None


def _write_etag(sidecar: Path, etag: str | None) -> None:
    info = {"etag": etag} if etag else {}
    sidecar.write_text(json.dumps(info))
