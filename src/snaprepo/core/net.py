"""Thin httpx helpers shared by providers and the downloader."""

from __future__ import annotations

from collections.abc import Mapping

import httpx

from snaprepo.core.errors import DownloadError
from snaprepo.core.models import DEFAULT_TIMEOUT


def new_client(timeout: float = DEFAULT_TIMEOUT) -> httpx.Client:
    return httpx.Client(follow_redirects=True, timeout=timeout)


def normalize_headers(headers: Mapping[str, str | None] | None = None) -> dict[str, str]:
    """Lower-case header names and drop entries without a value."""
    normalized: dict[str, str] = {}
    for key, value in (headers or {}).items():
        if not value:
            continue
        normalized[key.lower()] = value
    return normalized


def bearer_headers(auth: str | None) -> dict[str, str]:
    return {"authorization": f"Bearer {auth}"} if auth else {}


def send(
    client: httpx.Client,
    method: str,
    url: str,
    *,
    headers: Mapping[str, str | None] | None = None,
    validate_status: bool = False,
) -> httpx.Response:
    """Issue one request, turning transport and (optionally) status failures into DownloadError."""
    try:
        resp = client.request(method, url, headers=normalize_headers(headers))
    except httpx.HTTPError as exc:
        raise DownloadError(f"Failed to download {url}: {exc}", url=url) from exc

    if validate_status and resp.status_code >= 400:
        raise DownloadError(
            f"Failed to fetch {url}: {resp.status_code} {resp.reason_phrase}",
            url=url,
            status=resp.status_code,
        )
    return resp
