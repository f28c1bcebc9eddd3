import io
import tarfile
from pathlib import Path

import httpx
import pytest
from click.testing import CliRunner

from snaprepo.core.models import Settings


class FakeServer:
    """Route table served through httpx.MockTransport; records every request."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def add(self, method, url, status=200, *, content=b"", headers=None, json=None, error=None):
        self.routes[(method, url)] = (status, content, headers or {}, json, error)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append((request.method, str(request.url), dict(request.headers)))
        route = self.routes.get((request.method, str(request.url)))
        if route is None:
            return httpx.Response(404)
        status, content, headers, payload, error = route
        if error is not None:
            raise error
        if payload is not None:
            return httpx.Response(status, json=payload, headers=headers)
        return httpx.Response(status, content=content, headers=headers)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self), follow_redirects=True)

    def count(self, method, url=None) -> int:
        return sum(1 for m, u, _ in self.calls if m == method and (url is None or u == url))


def build_tarball(files: dict[str, bytes], root: str | None = "repo-main") -> bytes:
    """Build a .tar.gz whose entries live under *root* (as hosting providers do)."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        if root:
            top = tarfile.TarInfo(root)
            top.type = tarfile.DIRTYPE
            top.mode = 0o755
            tar.addfile(top)
        for name, data in files.items():
            info = tarfile.TarInfo(f"{root}/{name}" if root else name)
            info.size = len(data)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


@pytest.fixture
def runner():
    """Click CLI runner fixture."""
    return CliRunner()


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def settings(cache_dir: Path) -> Settings:
    """Settings with an isolated cache and the registry disabled."""
    return Settings(cache_dir=cache_dir, registry=False)


@pytest.fixture
def isolated_env(monkeypatch, tmp_path: Path):
    """Strip snap-repo variables and point config/cache at tmp_path."""
    for var in (
        "SNAP_REPO_REGISTRY", "SNAP_REPO_AUTH", "SNAP_REPO_GITHUB_URL",
        "SNAP_REPO_GITLAB_URL", "SNAP_REPO_BITBUCKET_URL", "SNAP_REPO_SOURCEHUT_URL",
        "SNAP_REPO_TIMEOUT", "SNAP_REPO_DEBUG", "SNAP_REPO_ENV_FILE", "DEBUG",
        "XDG_CACHE_HOME",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("SNAP_REPO_CONFIG", str(tmp_path / "missing.toml"))
    monkeypatch.setenv("SNAP_REPO_CACHE_DIR", str(tmp_path / "cache"))
    return tmp_path
