"""Command line interface for nextver."""

from __future__ import annotations

from typing import Annotated, Any

import typer
from pydantic import ValidationError
from rich.console import Console

from nextver import __version__
from nextver.cli.commands.bump import run_bump, run_classify
from nextver.cli.commands.next import run_next
from nextver.config.models import CommitsConfig, NoVersionBumpBehavior
from nextver.core.version import NO_PRE_RELEASE, BumpType
from nextver.logging import configure_logging

app = typer.Typer(
    name="nextver",
    no_args_is_help=True,
    help="Compute the next semantic version from conventional commits.",
)

console = Console()
err_console = Console(stderr=True)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"nextver {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
    quiet: Annotated[
        bool, typer.Option("--quiet", "-q", help="Only log warnings and errors.")
    ] = False,
    json_log: Annotated[bool, typer.Option("--json-log", help="Log as JSON lines.")] = False,
    version: Annotated[
        bool,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show version."),
    ] = False,
) -> None:
    """Compute the next semantic version from conventional commits."""
    configure_logging(verbose=verbose, quiet=quiet, json_log=json_log)


def _set(target: dict[str, Any], section: str | None, field: str, value: Any) -> None:
    """Record a CLI override unless the flag was not given."""
    if value is None:
        return
    bucket = target.setdefault(section, {}) if section else target
    bucket[field] = value


@app.command("next")
def next_command(
    path: Annotated[str | None, typer.Argument(help="Project directory.")] = None,
    owner: Annotated[str | None, typer.Option(help="Repository owner.")] = None,
    repo: Annotated[str | None, typer.Option(help="Repository name.")] = None,
    branch: Annotated[str | None, typer.Option(help="Branch to compare against the tag.")] = None,
    token: Annotated[str | None, typer.Option(help="GitHub token.", show_default=False)] = None,
    api_url: Annotated[str | None, typer.Option(help="GitHub API base URL.")] = None,
    from_tag: Annotated[
        str | None, typer.Option(help="Use this tag instead of the latest.")
    ] = None,
    prefix: Annotated[str | None, typer.Option(help="Tag prefix, e.g. 'mypkg-'.")] = None,
    pre_release_stage: Annotated[
        str | None, typer.Option(help="Pre-release stage, or 'none'.")
    ] = None,
    minimum_change: Annotated[
        BumpType | None, typer.Option(help="Least severe bump that changes the core version.")
    ] = None,
    major: Annotated[str | None, typer.Option(help="Comma separated major types.")] = None,
    minor: Annotated[str | None, typer.Option(help="Comma separated minor types.")] = None,
    patch: Annotated[str | None, typer.Option(help="Comma separated patch types.")] = None,
    patch_all: Annotated[
        bool | None, typer.Option("--patch-all/--no-patch-all", help="Treat every commit as patch.")
    ] = None,
    skip_invalid_tags: Annotated[
        bool | None,
        typer.Option("--skip-invalid-tags/--no-skip-invalid-tags", help="Skip non-semver tags."),
    ] = None,
    no_bump_behavior: Annotated[
        NoVersionBumpBehavior | None, typer.Option(help="What to do when nothing bumps.")
    ] = None,
    additional_commit: Annotated[
        list[str] | None, typer.Option(help="Extra commit message; repeatable.")
    ] = None,
    squash_merge_message: Annotated[
        str | None, typer.Option(help="Classify only this message.")
    ] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print outputs as JSON.")] = False,
) -> None:
    """Compute the next version from the commits since the latest tag."""
    overrides: dict[str, Any] = {}
    _set(overrides, "github", "owner", owner)
    _set(overrides, "github", "repo", repo)
    _set(overrides, "github", "branch", branch)
    _set(overrides, "github", "token", token)
    _set(overrides, "github", "api_url", api_url)
    _set(overrides, "version", "from_tag", from_tag)
    _set(overrides, "version", "tag_prefix", prefix)
    _set(overrides, "version", "pre_release_stage", pre_release_stage)
    _set(overrides, "version", "minimum_change", minimum_change)
    _set(overrides, "version", "skip_invalid_tags", skip_invalid_tags)
    _set(overrides, "commits", "types_major", major)
    _set(overrides, "commits", "types_minor", minor)
    _set(overrides, "commits", "types_patch", patch)
    _set(overrides, "commits", "patch_all", patch_all)
    _set(overrides, None, "no_version_bump_behavior", no_bump_behavior)
    _set(overrides, None, "additional_commits", additional_commit or None)
    _set(overrides, None, "squash_merge_commit_message", squash_merge_message)

    run_next(path, overrides, as_json, console, err_console)


@app.command("bump")
def bump_command(
    version: Annotated[str, typer.Argument(help="Current version, e.g. 1.2.3 or v1.2.3.")],
    bump: Annotated[BumpType, typer.Argument(help="Bump to apply.")],
    pre_release_stage: Annotated[
        str, typer.Option(help="Pre-release stage, or 'none'.")
    ] = NO_PRE_RELEASE,
    minimum_change: Annotated[
        BumpType, typer.Option(help="Least severe bump that changes the core version.")
    ] = BumpType.NONE,
    prefix: Annotated[str, typer.Option(help="Tag prefix for JSON outputs.")] = "",
    as_json: Annotated[bool, typer.Option("--json", help="Print all outputs as JSON.")] = False,
) -> None:
    """Compute the next version for a given version and bump."""
    run_bump(
        version, bump, pre_release_stage, minimum_change, prefix, as_json, console, err_console
    )


@app.command("classify")
def classify_command(
    messages: Annotated[list[str], typer.Argument(help="Commit messages to classify.")],
    major: Annotated[str | None, typer.Option(help="Comma separated major types.")] = None,
    minor: Annotated[str | None, typer.Option(help="Comma separated minor types.")] = None,
    patch: Annotated[str | None, typer.Option(help="Comma separated patch types.")] = None,
    patch_all: Annotated[bool, typer.Option(help="Treat every commit as patch.")] = False,
) -> None:
    """Show the bump each commit message calls for."""
    values: dict[str, Any] = {"patch_all": patch_all}
    _set(values, None, "types_major", major)
    _set(values, None, "types_minor", minor)
    _set(values, None, "types_patch", patch)
    try:
        config = CommitsConfig.model_validate(values)
    except ValidationError as e:
        err_console.print(f"[red]Invalid configuration:[/] {e}")
        raise SystemExit(1) from e

    run_classify(messages, config, console)


def main() -> None:
    """Entry point for the ``nextver`` script."""
    app()
