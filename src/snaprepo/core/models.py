"""Data shapes for template resolution, download options and results.

Registry documents use camelCase keys; the in-memory types use snake_case:

    {"name": "...", "tar": "https://...", "defaultDir": "...", "headers": {...}}
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

from snaprepo.core.errors import InvalidTemplateInfoError

# Keys owned by the result object; providers may not set them.
RESERVED_KEYS = frozenset({"dir", "source"})

_CORE_KEYS = {
    "name": "name",
    "tar": "tar",
    "version": "version",
    "subdir": "subdir",
    "url": "url",
    "defaultDir": "default_dir",
    "headers": "headers",
}


# ── Parsing ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SourceDescriptor:
    """Output of the URI parser: ``owner/name[/subdir][#ref]``."""

    repo: str | None
    subdir: str = "/"
    ref: str = "main"


# ── Template info ───────────────────────────────────────────────────


@dataclass(frozen=True)
class TemplateInfo:
    """Normalized provider output.

    Provider-specific fields that are not part of the core contract are kept
    in ``extra`` and passed through untouched.
    """

    name: str
    tar: str
    version: str = ""
    subdir: str = ""
    url: str = ""
    default_dir: str = ""
    headers: dict[str, str | None] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any, *, origin: str = "") -> TemplateInfo:
        """Build from a registry-style mapping, rejecting incomplete documents."""
        if not isinstance(data, Mapping):
            raise InvalidTemplateInfoError(
                f"Invalid template info from {origin}. Expected a JSON object.",
                origin=origin,
            )
        if not data.get("tar") or not data.get("name"):
            raise InvalidTemplateInfoError(
                f"Invalid template info from {origin}. name or tar fields are missing!",
                origin=origin,
            )

        core: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in data.items():
            if key in _CORE_KEYS:
                core[_CORE_KEYS[key]] = value
            elif key not in RESERVED_KEYS:
                extra[key] = value

        headers = core.pop("headers", None) or {}
        if not isinstance(headers, Mapping):
            raise InvalidTemplateInfoError(
                f"Invalid template info from {origin}. headers must be an object.",
                origin=origin,
            )
        return cls(
            name=str(core["name"]),
            tar=str(core["tar"]),
            version=str(core.get("version") or ""),
            subdir=str(core.get("subdir") or ""),
            url=str(core.get("url") or ""),
            default_dir=str(core.get("default_dir") or ""),
            headers={str(k): (None if v is None else str(v)) for k, v in headers.items()},
            extra=extra,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize back to the registry JSON shape."""
        payload: dict[str, Any] = dict(self.extra)
        payload.update(
            {
                "name": self.name,
                "tar": self.tar,
                "version": self.version,
                "subdir": self.subdir,
                "url": self.url,
                "defaultDir": self.default_dir,
                "headers": dict(self.headers),
            }
        )
        return payload


# ── Configuration ───────────────────────────────────────────────────

DEFAULT_REGISTRY = "https://raw.githubusercontent.com/snap-repo/main/templates"
DEFAULT_GITHUB_URL = "https://api.github.com"
DEFAULT_GITLAB_URL = "https://gitlab.com"
DEFAULT_BITBUCKET_URL = "https://bitbucket.org"
DEFAULT_SOURCEHUT_URL = "https://git.sr.ht"
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class Settings:
    """Boundary configuration, resolved once from env/config and threaded inward.

    ``registry`` is ``None`` for "use the default registry" and ``False``
    when the registry is disabled.
    """

    registry: str | None | Literal[False] = None
    auth: str | None = None
    github_url: str = DEFAULT_GITHUB_URL
    gitlab_url: str = DEFAULT_GITLAB_URL
    bitbucket_url: str = DEFAULT_BITBUCKET_URL
    sourcehut_url: str = DEFAULT_SOURCEHUT_URL
    cache_dir: Path | None = None
    timeout: float = DEFAULT_TIMEOUT
    debug: bool = False


@dataclass(frozen=True)
class DownloadOptions:
    """Per-call options for ``download_template``.

    ``registry`` and ``auth`` left as ``None`` fall back to ``Settings``.
    """

    provider: str | None = None
    force: bool = False
    force_clean: bool = False
    offline: bool = False
    prefer_offline: bool = False
    providers: Mapping[str, Callable[..., Any]] = field(default_factory=dict)
    dir: str | Path | None = None
    registry: str | None | Literal[False] = None
    cwd: str | Path | None = None
    auth: str | None = None
    silent: bool = False
    hook: Callable[[DownloadTemplateResult], None] | None = None


# ── Results ─────────────────────────────────────────────────────────


class DownloadStatus(enum.Enum):
    """How the tarball used for extraction was obtained."""

    FETCHED = "fetched"
    CACHE_HIT = "cache_hit"
    CACHE_FALLBACK = "cache_fallback"
    OFFLINE = "offline"


@dataclass(frozen=True)
class DownloadTemplateResult:
    """Resolved template plus where it was extracted."""

    template: TemplateInfo
    dir: Path
    source: str
    status: DownloadStatus

    @property
    def name(self) -> str:
        return self.template.name

    @property
    def url(self) -> str:
        return self.template.url

    def to_dict(self) -> dict[str, Any]:
        payload = self.template.to_dict()
        payload.update({"dir": str(self.dir), "source": self.source, "status": self.status.value})
        return payload
