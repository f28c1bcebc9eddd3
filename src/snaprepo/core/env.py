"""Runtime environment boundary.

The process environment is read here and nowhere else; everything below
the CLI / library entry point receives a ``Settings`` value instead.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import replace
from pathlib import Path

from snaprepo.core import paths
from snaprepo.core.errors import ConfigError
from snaprepo.core.models import Settings

_USER_ENV_LOADED = False

_DISABLED_VALUES = {"false", "none", "0", "off", "no"}
_TRUTHY_VALUES = {"1", "true", "yes", "on"}

_HOST_VARS = {
    "github_url": "SNAP_REPO_GITHUB_URL",
    "gitlab_url": "SNAP_REPO_GITLAB_URL",
    "bitbucket_url": "SNAP_REPO_BITBUCKET_URL",
    "sourcehut_url": "SNAP_REPO_SOURCEHUT_URL",
}


def load_user_env() -> None:
    """Load user-level snap-repo env files without overriding existing vars."""
    global _USER_ENV_LOADED
    if _USER_ENV_LOADED:
        return

    for env_file in _candidate_env_files():
        _load_env_file(env_file)

    _USER_ENV_LOADED = True


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Resolve Settings from the config file, then the environment on top."""
    from snaprepo.repo import config

    env = os.environ if environ is None else environ
    settings = config.load(config.config_path(env))
    return settings_from_env(env, base=settings)


def settings_from_env(
    environ: Mapping[str, str], *, base: Settings | None = None,
) -> Settings:
    """Layer ``SNAP_REPO_*`` variables over *base*."""
    settings = base or Settings()
    changes: dict = {}

    registry = environ.get("SNAP_REPO_REGISTRY", "").strip()
    if registry:
        changes["registry"] = False if registry.lower() in _DISABLED_VALUES else registry

    auth = environ.get("SNAP_REPO_AUTH", "").strip()
    if auth:
        changes["auth"] = auth

    for attr, var in _HOST_VARS.items():
        value = environ.get(var, "").strip()
        if value:
            changes[attr] = value.rstrip("/")

    cache_dir = environ.get("SNAP_REPO_CACHE_DIR", "").strip()
    if cache_dir:
        changes["cache_dir"] = Path(cache_dir).expanduser()
    elif settings.cache_dir is None:
        changes["cache_dir"] = paths.cache_directory(environ)

    timeout = environ.get("SNAP_REPO_TIMEOUT", "").strip()
    if timeout:
        try:
            changes["timeout"] = float(timeout)
        except ValueError as exc:
            raise ConfigError(f"SNAP_REPO_TIMEOUT must be a number, got {timeout!r}") from exc

    debug = environ.get("SNAP_REPO_DEBUG", "") or environ.get("DEBUG", "")
    if debug.strip().lower() in _TRUTHY_VALUES:
        changes["debug"] = True

    return replace(settings, **changes)


def _candidate_env_files() -> list[Path]:
    files: list[Path] = []
    env_override = os.environ.get("SNAP_REPO_ENV_FILE", "").strip()
    if env_override:
        files.append(Path(env_override).expanduser())

    files.append(Path.home() / ".config" / "snap-repo" / ".env")
    return files


def _load_env_file(path: Path) -> None:
    """Export the entries of a dotenv file; variables already set are kept."""
    if not path.is_file():
        return

    for raw_line in path.read_text().splitlines():
        entry = _parse_env_line(raw_line)
        if entry is not None:
            os.environ.setdefault(*entry)


def _parse_env_line(raw_line: str) -> tuple[str, str] | None:
    """Parse ``[export ]KEY=value``; comments, blanks and bare words yield None."""
    line = raw_line.strip()
    if line.startswith("#"):
        return None
    line = line.removeprefix("export ").lstrip()
    key, sep, value = line.partition("=")
    key = key.strip()
    if not sep or not key:
        return None

    value = value.strip()
    if len(value) >= 2 and value[0] in "\"'" and value[-1] == value[0]:
        value = value[1:-1]
    return key, value
