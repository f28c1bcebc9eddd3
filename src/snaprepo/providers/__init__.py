"""Provider dispatch — turn a template identifier into a provider call.

Dispatch is based on the ``provider:`` prefix:
  gh:user/repo/sub#ref      → github
  gitlab:group/repo         → gitlab
  bitbucket:team/repo       → bitbucket
  sourcehut:user/repo       → sourcehut
  https://host/t.tar.gz     → http (the full URL is passed through)
  themes:name               → registry (unknown prefixes fall back to it)
  name                      → registry, or github when the registry is off
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from functools import partial
from types import MappingProxyType
from typing import Any, Literal, Protocol

import httpx

from snaprepo.core.errors import UnsupportedProviderError
from snaprepo.core.models import Settings, TemplateInfo
from snaprepo.providers import git
from snaprepo.providers.http import make_http_provider
from snaprepo.providers.registry import registry_provider

_PROVIDER_RE = re.compile(r"^([\w.-]+):")

_PASSTHROUGH = {"http", "https"}


class TemplateProvider(Protocol):
    """Resolve a provider-local source into template info.

    Returning None means "could not resolve". Plain mappings using the
    registry JSON keys are accepted and validated like registry documents.
    """

    def __call__(
        self, source: str, auth: str | None = None,
    ) -> TemplateInfo | Mapping[str, Any] | None: ...


def split_source(raw: str, default: str) -> tuple[str, str]:
    """Split *raw* into (provider, provider-local source).

    ``http``/``https`` keep the scheme in the source since the colon belongs
    to the URL.
    """
    m = _PROVIDER_RE.match(raw)
    if not m:
        return default, raw
    provider = m.group(1)
    if provider in _PASSTHROUGH:
        return provider, raw
    return provider, raw[m.end():]


def builtin_providers(client: httpx.Client, settings: Settings) -> Mapping[str, TemplateProvider]:
    """Build the read-only table of built-in providers for *settings*."""
    http = make_http_provider(client)
    github = partial(git.github, host=settings.github_url)
    return MappingProxyType(
        {
            "http": http,
            "https": http,
            "github": github,
            "gh": github,
            "gitlab": partial(git.gitlab, host=settings.gitlab_url),
            "bitbucket": partial(git.bitbucket, host=settings.bitbucket_url),
            "sourcehut": partial(git.sourcehut, host=settings.sourcehut_url),
        }
    )


class ProviderTable:
    """Immutable provider lookup: overrides → built-ins → registry."""

    def __init__(
        self,
        builtins: Mapping[str, TemplateProvider],
        overrides: Mapping[str, TemplateProvider] | None = None,
        registry: TemplateProvider | None = None,
    ) -> None:
        self._builtins = MappingProxyType(dict(builtins))
        self._overrides = MappingProxyType(dict(overrides or {}))
        self._registry = registry

    @property
    def has_registry(self) -> bool:
        return self._registry is not None

    def lookup(self, name: str) -> TemplateProvider:
        """Return the provider for *name*. First match wins."""
        provider = self._overrides.get(name) or self._builtins.get(name) or self._registry
        if provider is None:
            raise UnsupportedProviderError(name)
        return provider


def build_table(
    client: httpx.Client,
    settings: Settings,
    *,
    overrides: Mapping[str, Callable[..., Any]] | None = None,
    registry: str | None | Literal[False] = None,
    auth: str | None = None,
) -> ProviderTable:
    """Assemble the lookup table for one orchestration call.

    ``registry=False`` disables the registry; ``None`` uses the default endpoint.
    """
    registry_fn = None
    if registry is not False:
        registry_fn = registry_provider(client, registry or None, auth=auth)
    return ProviderTable(builtin_providers(client, settings), overrides, registry_fn)


__all__ = [
    "ProviderTable",
    "TemplateProvider",
    "build_table",
    "builtin_providers",
    "registry_provider",
    "split_source",
]
