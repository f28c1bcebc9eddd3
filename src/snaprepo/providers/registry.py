"""Registry provider: resolves short names via ``{endpoint}/{name}.json``."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

import httpx

from snaprepo.core.models import DEFAULT_REGISTRY, TemplateInfo
from snaprepo.providers.http import fetch_template_json

logger = logging.getLogger(__name__)


def registry_provider(
    client: httpx.Client,
    endpoint: str | None = None,
    *,
    auth: str | None = None,
) -> Callable[..., TemplateInfo]:
    """Create a provider bound to one registry endpoint and one auth token."""
    base = (endpoint or DEFAULT_REGISTRY).rstrip("/")
    bound_auth = auth

    def registry(source: str, auth: str | None = None) -> TemplateInfo:
        start = time.monotonic()
        url = f"{base}/{source}.json"
        info = fetch_template_json(client, url, bound_auth or auth)
        logger.debug(
            "Fetched %s template info from %s in %.0fms",
            source, url, (time.monotonic() - start) * 1000,
        )
        return info

    return registry
