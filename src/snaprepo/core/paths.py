"""Cache layout: ``{cache_root}/{provider}/{name}/{version-or-name}.tar.gz``."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

CACHE_DIR_NAME = "snap-repo"
TARBALL_SUFFIX = ".tar.gz"
SIDECAR_SUFFIX = ".json"
PARTIAL_SUFFIX = ".part"


def cache_directory(environ: Mapping[str, str] | None = None) -> Path:
    """Return ``$XDG_CACHE_HOME/snap-repo`` or ``~/.cache/snap-repo``."""
    env = os.environ if environ is None else environ
    xdg = env.get("XDG_CACHE_HOME", "").strip()
    if xdg:
        return Path(xdg).expanduser() / CACHE_DIR_NAME
    return Path.home() / ".cache" / CACHE_DIR_NAME


def tarball_path(cache_root: Path, provider: str, name: str, version: str = "") -> Path:
    return cache_root / provider / name / f"{version or name}{TARBALL_SUFFIX}"


def sidecar_path(tarball: Path) -> Path:
    return tarball.with_name(tarball.name + SIDECAR_SUFFIX)


def partial_path(tarball: Path) -> Path:
    return tarball.with_name(tarball.name + PARTIAL_SUFFIX)
