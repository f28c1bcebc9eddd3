import os
from pathlib import Path

import pytest

from snaprepo.core import env
from snaprepo.core.env import load_settings, settings_from_env
from snaprepo.core.errors import ConfigError
from snaprepo.core.models import DEFAULT_GITHUB_URL, Settings
from snaprepo.repo import config


# ── Environment ─────────────────────────────────────────────────────


def test_defaults_without_env(tmp_path):
    settings = settings_from_env({"HOME": str(tmp_path)})
    assert settings.registry is None
    assert settings.github_url == DEFAULT_GITHUB_URL
    assert settings.timeout == 30.0
    assert settings.debug is False
    assert settings.cache_dir is not None


@pytest.mark.parametrize("value", ["false", "FALSE", "none", "0", "off"])
def test_registry_can_be_disabled(value):
    settings = settings_from_env({"SNAP_REPO_REGISTRY": value, "SNAP_REPO_CACHE_DIR": "/c"})
    assert settings.registry is False


def test_env_values_are_read():
    settings = settings_from_env({
        "SNAP_REPO_REGISTRY": "https://reg.example",
        "SNAP_REPO_AUTH": "tok",
        "SNAP_REPO_GITLAB_URL": "https://gitlab.internal/",
        "SNAP_REPO_CACHE_DIR": "/tmp/c",
        "SNAP_REPO_TIMEOUT": "5",
        "DEBUG": "1",
    })
    assert settings.registry == "https://reg.example"
    assert settings.auth == "tok"
    assert settings.gitlab_url == "https://gitlab.internal"
    assert settings.cache_dir == Path("/tmp/c")
    assert settings.timeout == 5.0
    assert settings.debug is True


def test_cache_dir_follows_xdg():
    settings = settings_from_env({"XDG_CACHE_HOME": "/xdg"})
    assert settings.cache_dir == Path("/xdg") / "snap-repo"


def test_bad_timeout():
    with pytest.raises(ConfigError, match="SNAP_REPO_TIMEOUT"):
        settings_from_env({"SNAP_REPO_TIMEOUT": "soon"})


def test_env_overrides_config_file(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('registry = "https://file.example"\nauth = "file-token"\n')
    settings = load_settings({
        "SNAP_REPO_CONFIG": str(path),
        "SNAP_REPO_AUTH": "env-token",
        "SNAP_REPO_CACHE_DIR": str(tmp_path / "c"),
    })
    assert settings.registry == "https://file.example"
    assert settings.auth == "env-token"


# ── Config file ─────────────────────────────────────────────────────


def test_missing_config_gives_defaults(tmp_path):
    assert config.load(tmp_path / "nope.toml") == Settings()


def test_config_file_parsing(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(
        "registry = false\n"
        "timeout = 12\n"
        'cache_dir = "/var/cache/snap"\n'
        "\n[hosts]\n"
        'github = "https://ghe.example/api/v3/"\n'
    )
    settings = config.load(path)
    assert settings.registry is False
    assert settings.timeout == 12.0
    assert settings.cache_dir == Path("/var/cache/snap")
    assert settings.github_url == "https://ghe.example/api/v3"


@pytest.mark.parametrize(
    "body, message",
    [
        ("registry = 3\n", "registry"),
        ("timeout = true\n", "timeout"),
        ("hosts = 'x'\n", "hosts"),
        ("not toml [\n", "Could not read"),
    ],
)
def test_config_errors(tmp_path, body, message):
    path = tmp_path / "config.toml"
    path.write_text(body)
    with pytest.raises(ConfigError, match=message) as exc_info:
        config.load(path)
    assert exc_info.value.path == path


def test_config_path_override(tmp_path):
    assert config.config_path({"SNAP_REPO_CONFIG": str(tmp_path / "x.toml")}) == tmp_path / "x.toml"


# ── User env file ───────────────────────────────────────────────────


def test_env_file_does_not_override(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "# comment\n"
        "export SNAP_REPO_AUTH='from-file'\n"
        "SNAP_REPO_TIMEOUT=9\n"
        "garbage\n"
    )
    monkeypatch.setenv("SNAP_REPO_TIMEOUT", "3")
    monkeypatch.delenv("SNAP_REPO_AUTH", raising=False)
    monkeypatch.setenv("SNAP_REPO_ENV_FILE", str(env_file))
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setattr(env, "_USER_ENV_LOADED", False)

    env.load_user_env()

    assert os.environ["SNAP_REPO_AUTH"] == "from-file"
    assert os.environ["SNAP_REPO_TIMEOUT"] == "3"
    os.environ.pop("SNAP_REPO_AUTH", None)


@pytest.mark.parametrize(
    "line, expected",
    [
        ("KEY=value", ("KEY", "value")),
        ("  export KEY = 'quoted value' ", ("KEY", "quoted value")),
        ('KEY="a=b"', ("KEY", "a=b")),
        ("KEY=", ("KEY", "")),
        ("# KEY=value", None),
        ("", None),
        ("bare", None),
        ("=value", None),
    ],
)
def test_parse_env_line(line, expected):
    assert env._parse_env_line(line) == expected
