"""Read the optional user config file (``~/.config/snap-repo/config.toml``).

    registry = "https://example.com/templates"   # or false
    auth = "token"
    cache_dir = "~/.cache/snap-repo"
    timeout = 30

    [hosts]
    github = "https://github.example.com/api/v3"
    gitlab = "https://gitlab.example.com"
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

import tomlkit
from tomlkit.exceptions import TOMLKitError

from snaprepo.core.errors import ConfigError
from snaprepo.core.models import Settings

CONFIG_FILENAME = "config.toml"

_HOST_KEYS = {
    "github": "github_url",
    "gitlab": "gitlab_url",
    "bitbucket": "bitbucket_url",
    "sourcehut": "sourcehut_url",
}


def config_path(environ: Mapping[str, str] | None = None) -> Path:
    env = os.environ if environ is None else environ
    override = env.get("SNAP_REPO_CONFIG", "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "snap-repo" / CONFIG_FILENAME


def load(path: Path) -> Settings:
    """Deserialize config.toml into Settings. A missing file yields defaults."""
    if not path.exists():
        return Settings()
    try:
        raw = tomlkit.loads(path.read_text()).unwrap()
    except (OSError, TOMLKitError) as exc:
        raise ConfigError(f"Could not read config file {path}: {exc}", path=path) from exc

    changes: dict = {}

    registry = raw.get("registry")
    if registry is False:
        changes["registry"] = False
    elif isinstance(registry, str) and registry.strip():
        changes["registry"] = registry.strip()
    elif registry is not None:
        raise ConfigError(f"{path}: 'registry' must be a URL or false", path=path)

    if raw.get("auth"):
        changes["auth"] = str(raw["auth"])

    if raw.get("cache_dir"):
        changes["cache_dir"] = Path(str(raw["cache_dir"])).expanduser()

    if "timeout" in raw:
        timeout = raw["timeout"]
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
            raise ConfigError(f"{path}: 'timeout' must be a number", path=path)
        changes["timeout"] = float(timeout)

    hosts = raw.get("hosts", {})
    if not isinstance(hosts, dict):
        raise ConfigError(f"{path}: [hosts] must be a table", path=path)
    for key, attr in _HOST_KEYS.items():
        value = hosts.get(key)
        if value:
            changes[attr] = str(value).rstrip("/")

    return Settings(**changes)
