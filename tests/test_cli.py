from pathlib import Path
from unittest.mock import patch

from snaprepo.cli import cli
from snaprepo.core.errors import DestinationConflictError
from snaprepo.core.models import DownloadStatus, DownloadTemplateResult, TemplateInfo


def _result(dest: Path, name="openjs-example") -> DownloadTemplateResult:
    return DownloadTemplateResult(
        template=TemplateInfo(name=name, tar="https://example.com/t.tgz"),
        dir=dest,
        source="openjs/example",
        status=DownloadStatus.FETCHED,
    )


def test_missing_template_shows_help(runner, isolated_env):
    result = runner.invoke(cli, [])
    assert result.exit_code == 1
    assert "TEMPLATE can be" in result.output


def test_success_summary(runner, isolated_env):
    dest = isolated_env / "openjs-example"
    with patch("snaprepo.services.template.download_template", return_value=_result(dest)) as mock:
        result = runner.invoke(cli, ["gh:openjs/example", "--cwd", str(isolated_env)])

    assert result.exit_code == 0, result.output
    assert "Successfully cloned `openjs-example` to `openjs-example`" in result.output
    raw, options = mock.call_args.args
    assert raw == "gh:openjs/example"
    assert options.cwd == str(isolated_env.resolve())
    assert options.registry is None
    assert mock.call_args.kwargs["settings"].cache_dir == isolated_env / "cache"


def test_extract_into_cwd_prints_dot(runner, isolated_env):
    with patch("snaprepo.services.template.download_template", return_value=_result(isolated_env)):
        result = runner.invoke(cli, ["gh:openjs/example", ".", "--cwd", str(isolated_env)])
    assert "to `./`" in result.output


def test_silent_suppresses_summary(runner, isolated_env):
    with patch("snaprepo.services.template.download_template", return_value=_result(isolated_env / "x")):
        result = runner.invoke(cli, ["gh:openjs/example", "--silent"])
    assert result.exit_code == 0
    assert result.output == ""


def test_flags_are_forwarded(runner, isolated_env):
    with patch("snaprepo.services.template.download_template", return_value=_result(isolated_env / "x")) as mock:
        runner.invoke(
            cli,
            ["gh:openjs/example", "out", "--force", "--offline", "--no-registry", "--auth", "tok"],
        )
    options = mock.call_args.args[1]
    assert options.dir == "out"
    assert options.force is True
    assert options.offline is True
    assert options.registry is False
    assert options.auth == "tok"


def test_registry_env_disable(runner, isolated_env, monkeypatch):
    monkeypatch.setenv("SNAP_REPO_REGISTRY", "false")
    with patch("snaprepo.services.template.download_template", return_value=_result(isolated_env / "x")) as mock:
        runner.invoke(cli, ["name"])
    assert mock.call_args.kwargs["settings"].registry is False


def test_failure_exits_nonzero(runner, isolated_env):
    error = DestinationConflictError(isolated_env / "out")
    with patch("snaprepo.services.template.download_template", side_effect=error):
        result = runner.invoke(cli, ["gh:openjs/example", "out"])
    assert result.exit_code == 1
    assert "already exists" in result.output


def test_bad_config_is_reported(runner, isolated_env, monkeypatch):
    config = isolated_env / "config.toml"
    config.write_text("timeout = 'soon'\n")
    monkeypatch.setenv("SNAP_REPO_CONFIG", str(config))
    result = runner.invoke(cli, ["gh:openjs/example"])
    assert result.exit_code == 1
    assert "timeout" in result.output


def test_shell_opens_in_destination(runner, isolated_env):
    dest = isolated_env / "openjs-example"
    with (
        patch("snaprepo.services.template.download_template", return_value=_result(dest)),
        patch("snaprepo.services.shell.start_shell", return_value=0) as shell,
    ):
        result = runner.invoke(cli, ["gh:openjs/example", "--shell", "--cwd", str(isolated_env)])
    assert result.exit_code == 0, result.output
    assert "Opening shell in openjs-example" in result.output
    shell.assert_called_once_with(dest)


def test_end_to_end_with_fake_server(runner, isolated_env, server, monkeypatch):
    from conftest import build_tarball

    tar = "https://api.github.com/repos/openjs/example/tarball/main"
    server.add("GET", tar, content=build_tarball({"README.md": b"hi"}))
    monkeypatch.setattr("snaprepo.services.template.new_client", lambda timeout: server.client())

    result = runner.invoke(cli, ["gh:openjs/example", "--cwd", str(isolated_env), "--no-registry"])

    assert result.exit_code == 0, result.output
    assert (isolated_env / "openjs-example" / "README.md").read_text() == "hi"
    assert (isolated_env / "cache" / "gh" / "openjs-example" / "main.tar.gz").exists()


# ── Shell helper ────────────────────────────────────────────────────


def test_current_shell_prefers_env(monkeypatch):
    from snaprepo.services.shell import current_shell

    monkeypatch.setenv("SHELL", "/usr/bin/zsh")
    assert current_shell() == "/usr/bin/zsh"


def test_current_shell_fallback(monkeypatch):
    from snaprepo.services import shell

    monkeypatch.delenv("SHELL", raising=False)
    monkeypatch.setattr(shell.sys, "platform", "linux")
    assert shell.current_shell() == "/bin/bash"
    monkeypatch.setattr(shell.sys, "platform", "win32")
    assert shell.current_shell() == "cmd.exe"


def test_start_shell_runs_in_directory(tmp_path, monkeypatch):
    from snaprepo.services import shell

    monkeypatch.setenv("SHELL", "/bin/sh")
    with patch("snaprepo.services.shell.subprocess.run") as run:
        run.return_value.returncode = 3
        assert shell.start_shell(tmp_path) == 3
    run.assert_called_once_with(["/bin/sh"], cwd=str(tmp_path.resolve()))


def test_force_onto_file_exits_with_message(runner, isolated_env, server, monkeypatch):
    from conftest import build_tarball

    tar = "https://api.github.com/repos/openjs/example/tarball/main"
    server.add("GET", tar, content=build_tarball({"README.md": b"hi"}))
    monkeypatch.setattr("snaprepo.services.template.new_client", lambda timeout: server.client())
    (isolated_env / "taken").write_text("file")

    result = runner.invoke(
        cli, ["gh:openjs/example", "taken", "--force", "--cwd", str(isolated_env), "--no-registry"],
    )

    assert result.exit_code == 1
    assert "already exists" in result.output
    assert result.exception is None or isinstance(result.exception, SystemExit)
