"""CLI entry point — ``snap-repo <template> [dir]``."""

from __future__ import annotations

import os
from dataclasses import replace
from pathlib import Path

import click

from snaprepo import __version__
from snaprepo.cli.ui import configure_logging, spinner
from snaprepo.core.env import load_settings, load_user_env
from snaprepo.core.errors import SnapRepoError
from snaprepo.core.models import DownloadOptions

TEMPLATE_HELP = """\b
TEMPLATE can be:
  gh:user/repo[/subdir][#ref]       GitHub (also github:)
  gitlab:group/repo[/subdir][#ref]  GitLab
  bitbucket:team/repo[#ref]         Bitbucket
  sourcehut:user/repo[#ref]         SourceHut
  https://host/path/t.tar.gz        Direct tarball or JSON template info
  name                              Registry lookup
"""


@click.command(epilog=TEMPLATE_HELP)
@click.argument("template", required=False)
@click.argument("dest", metavar="[DIR]", required=False)
@click.option("--force", is_flag=True, help="Clone to existing directory even if it exists.")
@click.option("--force-clean", is_flag=True, help="Remove any existing directory before cloning.")
@click.option("--offline", is_flag=True, help="Use cached version instead of downloading.")
@click.option("--prefer-offline", is_flag=True, help="Prefer cached version if available.")
@click.option("--shell", is_flag=True, help="Open a new shell in the cloned directory.")
@click.option("--registry", default=None, help="Registry URL for short template names.")
@click.option("--no-registry", is_flag=True, help="Disable the registry provider.")
@click.option("--auth", default=None, help="Custom Authorization token.")
@click.option(
    "--cwd", default=None,
    type=click.Path(file_okay=False, resolve_path=True),
    help="Set the current working directory.",
)
@click.option("--silent", is_flag=True, help="Suppress the success summary.")
@click.option("--verbose", is_flag=True, help="Show verbose debugging info.")
@click.version_option(__version__, prog_name="snap-repo")
@click.pass_context
def cli(
    ctx: click.Context,
    template: str | None,
    dest: str | None,
    force: bool,
    force_clean: bool,
    offline: bool,
    prefer_offline: bool,
    shell: bool,
    registry: str | None,
    no_registry: bool,
    auth: str | None,
    cwd: str | None,
    silent: bool,
    verbose: bool,
) -> None:
    """Download a template and extract it into DIR."""
    from snaprepo.services import template as template_service

    if not template:
        click.echo(ctx.get_help())
        ctx.exit(1)

    load_user_env()
    try:
        settings = load_settings()
    except SnapRepoError as exc:
        raise click.ClickException(str(exc)) from exc
    if verbose:
        settings = replace(settings, debug=True)
    configure_logging(settings.debug)

    options = DownloadOptions(
        dir=dest,
        force=force,
        force_clean=force_clean,
        offline=offline,
        prefer_offline=prefer_offline,
        registry=False if no_registry else registry,
        auth=auth,
        cwd=cwd,
        silent=silent,
    )

    try:
        with spinner(f"Downloading {template}…", enabled=not (silent or settings.debug)):
            result = template_service.download_template(template, options, settings=settings)
    except SnapRepoError as exc:
        raise click.ClickException(str(exc)) from exc

    base = Path(cwd) if cwd else Path.cwd()
    target = os.path.relpath(result.dir, base)
    target = "./" if target == "." else target
    if not silent:
        origin = result.name or result.url
        click.echo(f"✨ Successfully cloned `{origin}` to `{target}`")

    if shell:
        from snaprepo.services.shell import start_shell

        if not silent:
            click.echo(f"(experimental) Opening shell in {target}…")
        start_shell(result.dir)


def main() -> None:
    cli()
