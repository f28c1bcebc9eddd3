"""Git hosting providers: github, gitlab, bitbucket, sourcehut.

Each one parses ``owner/repo[/subdir][#ref]`` and synthesizes the tarball
endpoint for that host. No network access happens here.
"""

from __future__ import annotations

from snaprepo.core.errors import ProviderResolutionError
from snaprepo.core.models import (
    DEFAULT_BITBUCKET_URL,
    DEFAULT_GITHUB_URL,
    DEFAULT_GITLAB_URL,
    DEFAULT_SOURCEHUT_URL,
    SourceDescriptor,
    TemplateInfo,
)
from snaprepo.core.uri import parse_git_uri


def github(source: str, auth: str | None = None, *, host: str = DEFAULT_GITHUB_URL) -> TemplateInfo:
    """Resolve against the GitHub REST API (``host`` is the API base URL)."""
    parsed = _parse(source, "github")
    web = host.replace("api.github.com", "github.com")
    return TemplateInfo(
        name=_name(parsed),
        version=parsed.ref,
        subdir=parsed.subdir,
        headers={
            "Authorization": _bearer(auth),
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        },
        url=f"{web}/{parsed.repo}/tree/{parsed.ref}{parsed.subdir}",
        tar=f"{host}/repos/{parsed.repo}/tarball/{parsed.ref}",
    )


def gitlab(source: str, auth: str | None = None, *, host: str = DEFAULT_GITLAB_URL) -> TemplateInfo:
    parsed = _parse(source, "gitlab")
    return TemplateInfo(
        name=_name(parsed),
        version=parsed.ref,
        subdir=parsed.subdir,
        headers={
            "authorization": _bearer(auth),
            "sec-fetch-mode": "same-origin",
        },
        url=f"{host}/{parsed.repo}/tree/{parsed.ref}{parsed.subdir}",
        tar=f"{host}/{parsed.repo}/-/archive/{parsed.ref}.tar.gz",
    )


def bitbucket(source: str, auth: str | None = None, *, host: str = DEFAULT_BITBUCKET_URL) -> TemplateInfo:
    parsed = _parse(source, "bitbucket")
    return TemplateInfo(
        name=_name(parsed),
        version=parsed.ref,
        subdir=parsed.subdir,
        headers={"authorization": _bearer(auth)},
        url=f"{host}/{parsed.repo}/src/{parsed.ref}{parsed.subdir}",
        tar=f"{host}/{parsed.repo}/get/{parsed.ref}.tar.gz",
    )


def sourcehut(source: str, auth: str | None = None, *, host: str = DEFAULT_SOURCEHUT_URL) -> TemplateInfo:
    parsed = _parse(source, "sourcehut")
    return TemplateInfo(
        name=_name(parsed),
        version=parsed.ref,
        subdir=parsed.subdir,
        headers={"authorization": _bearer(auth)},
        url=f"{host}/~{parsed.repo}/tree/{parsed.ref}/item{parsed.subdir}",
        tar=f"{host}/~{parsed.repo}/archive/{parsed.ref}.tar.gz",
    )


# ── Private helpers ─────────────────────────────────────────────────


def _parse(source: str, provider: str) -> SourceDescriptor:
    parsed = parse_git_uri(source)
    if not parsed.repo:
        raise ProviderResolutionError(
            f"Cannot parse {provider} reference '{source}'. Expected owner/repo[/subdir][#ref].",
            provider=provider,
        )
    return parsed


def _name(parsed: SourceDescriptor) -> str:
    return parsed.repo.replace("/", "-")


def _bearer(auth: str | None) -> str | None:
    return f"Bearer {auth}" if auth else None
