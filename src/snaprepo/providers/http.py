"""HTTP(S) provider: direct tarball URLs and JSON template documents."""

from __future__ import annotations

import hashlib
import logging
import re
from collections.abc import Callable
from urllib.parse import unquote, urlparse

import httpx

from snaprepo.core.errors import InvalidTemplateInfoError, SnapRepoError
from snaprepo.core.models import TemplateInfo
from snaprepo.core.net import bearer_headers, send

logger = logging.getLogger(__name__)

_FILENAME_RE = re.compile(r"(?<![\w*])filename=\"?([^\";]+)\"?", re.IGNORECASE)
# RFC 5987 form: filename*=UTF-8''starter.tar.gz
_FILENAME_EXT_RE = re.compile(r"filename\*=[\w-]*'[^']*'([^;\s]+)", re.IGNORECASE)


def fetch_template_json(client: httpx.Client, url: str, auth: str | None = None) -> TemplateInfo:
    """GET *url* and parse it as a TemplateInfo document.

    Raises InvalidTemplateInfoError when the body is not JSON or lacks
    ``name``/``tar``; DownloadError on transport or status failures.
    """
    resp = send(client, "GET", url, headers=bearer_headers(auth), validate_status=True)
    try:
        payload = resp.json()
    except ValueError as exc:
        raise InvalidTemplateInfoError(
            f"Invalid template info from {url}. Response is not valid JSON.",
            origin=url,
        ) from exc
    return TemplateInfo.from_dict(payload, origin=url)


def make_http_provider(client: httpx.Client) -> Callable[..., TemplateInfo]:
    """Return the ``http``/``https`` provider bound to *client*."""

    def http(source: str, auth: str | None = None) -> TemplateInfo:
        if source.endswith(".json"):
            return fetch_template_json(client, source, auth)

        name = _stem(urlparse(source).path.rsplit("/", 1)[-1])
        try:
            head = send(client, "HEAD", source, headers=bearer_headers(auth), validate_status=True)
        except SnapRepoError as exc:
            logger.debug("Failed to fetch HEAD for %s: %s", source, exc)
        else:
            content_type = head.headers.get("content-type", "")
            if "application/json" in content_type:
                return fetch_template_json(client, source, auth)
            filename = _disposition_filename(head.headers.get("content-disposition", ""))
            if filename:
                name = _stem(filename)

        name = name or "template"
        digest = hashlib.sha256(source.encode("utf-8")).hexdigest()[:8]
        return TemplateInfo(
            name=f"{name}-{digest}",
            version="",
            subdir="",
            tar=source,
            default_dir=name,
            headers={"Authorization": f"Bearer {auth}" if auth else None},
        )

    return http


def _disposition_filename(value: str) -> str | None:
    """Pick the filename out of a content-disposition header, preferring ``filename*``."""
    match = _FILENAME_EXT_RE.search(value)
    if match:
        return unquote(match.group(1))
    match = _FILENAME_RE.search(value)
    return match.group(1) if match else None


def _stem(filename: str) -> str:
    return filename.strip().split(".")[0]
