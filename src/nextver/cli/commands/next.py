"""Implementation of the 'next' command.

The next command resolves the reference tag on GitHub, classifies the
commits since that tag and computes the next version.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table

from nextver.config import NoVersionBumpBehavior, load_config
from nextver.core.commits import calculate_bump, classify_commits, filter_skip_release_commits
from nextver.core.version import BumpType, clean_version, next_version
from nextver.exceptions import (
    ConfigValidationError,
    NextverError,
    NoCommitsFoundError,
    NoVersionBumpError,
)
from nextver.logging import get_logger
from nextver.outputs import format_outputs, write_github_outputs
from nextver.vcs import Commit, GitHubClient

if TYPE_CHECKING:
    from rich.console import Console

    from nextver.config import NextverConfig
    from nextver.vcs import Tag

logger = get_logger(__name__)

ClientFactory = Callable[..., GitHubClient]


def run_next(
    path: str | None,
    overrides: dict[str, Any],
    as_json: bool,
    console: Console,
    err_console: Console,
    client_factory: ClientFactory = GitHubClient,
) -> dict[str, str] | None:
    """Run the next command.

    Args:
        path: Optional path to the project directory
        overrides: Config values from CLI flags, shaped like NextverConfig
        as_json: Print outputs as JSON instead of a table
        console: Console for standard output
        err_console: Console for error output
        client_factory: Builds the GitHub client

    Returns:
        The emitted outputs, or None when no version was produced
    """
    project_path = Path(path) if path else Path.cwd()
    # Keep stdout clean for machine-readable output
    status = err_console if as_json else console

    # Load configuration
    try:
        config = load_config(project_path, overrides=overrides)
    except NextverError as e:
        err_console.print(f"[red]Error loading config:[/] {e}")
        raise SystemExit(1) from e

    prefix = config.version.tag_prefix

    try:
        tag, commits = _fetch_range(config, client_factory)
    except NextverError as e:
        err_console.print(f"[red]Error:[/] {e}")
        raise SystemExit(1) from e

    status.print(f"Latest tag is [cyan]{tag.ref}[/]")
    write_github_outputs({"current": tag.ref})

    # Assemble the batch to classify
    batch = list(commits) + [Commit(sha="unknown", message=m) for m in config.additional_commits]
    squash_message = config.squash_merge_commit_message

    if not batch and not squash_message:
        e = NoCommitsFoundError("Couldn't find any commits between HEAD and latest tag.")
        err_console.print(f"[red]Error:[/] {e}")
        raise SystemExit(1) from e

    status.print(f"Found [cyan]{len(batch)}[/] commits between HEAD and latest tag.")

    if squash_message:
        to_classify = [Commit(sha="unknown", message=squash_message)]
    else:
        to_classify = filter_skip_release_commits(batch, config.commits.skip_release_patterns)

    bumps = classify_commits(to_classify, config.commits)
    bump = calculate_bump(bumps, patch_all=config.commits.patch_all)

    if bump is None or bump is BumpType.NONE:
        return _handle_no_bump(config, tag, as_json, console, err_console)

    status.print(f"Bump type is [green]{bump.value}[/]")
    status.print(f"Pre-release stage is [cyan]{config.version.pre_release_stage}[/]")

    try:
        computed = next_version(
            tag.name,
            bump,
            config.version.pre_release_stage,
            config.version.minimum_change,
        )
    except NextverError as e:
        err_console.print(f"[red]Error:[/] {e}")
        raise SystemExit(1) from e

    status.print(f"Current version is [cyan]{tag.ref}[/]")
    status.print(f"Next version is [green]{prefix}v{computed}[/]")

    outputs = format_outputs(None, computed, prefix, bump)
    write_github_outputs(outputs)
    _print_outputs({"current": tag.ref, **outputs}, as_json, console)
    return {"current": tag.ref, **outputs}


def _fetch_range(
    config: NextverConfig,
    client_factory: ClientFactory,
) -> tuple[Tag, list[Commit]]:
    """Resolve the reference tag and list the commits since it."""
    gh_config = config.github
    if not gh_config.owner or not gh_config.repo:
        raise ConfigValidationError(
            "Repository not set: pass --owner and --repo or set GITHUB_REPOSITORY."
        )

    with client_factory(
        gh_config.owner,
        gh_config.repo,
        token=gh_config.token,
        api_url=gh_config.api_url,
    ) as gh:
        if config.version.from_tag:
            tag = gh.get_tag(config.version.from_tag, config.version.tag_prefix)
        else:
            tag = gh.get_latest_tag(
                config.version.tag_prefix,
                skip_invalid_tags=config.version.skip_invalid_tags,
            )
        commits = gh.compare_commits(tag.ref, gh_config.branch)

    return tag, commits


def _handle_no_bump(
    config: NextverConfig,
    tag: Tag,
    as_json: bool,
    console: Console,
    err_console: Console,
) -> dict[str, str] | None:
    """Apply the configured no-bump behavior."""
    behavior = config.no_version_bump_behavior
    message = "No commit resulted in a version bump since last release!"

    status = err_console if as_json else console

    if behavior is NoVersionBumpBehavior.CURRENT:
        logger.info("no_version_bump", behavior=behavior.value, next=tag.ref)
        status.print(f"[yellow]{message}[/] Using current version as next version.")
        try:
            current = str(clean_version(tag.name))
        except NextverError as e:
            err_console.print(f"[red]Error:[/] {e}")
            raise SystemExit(1) from e
        outputs = format_outputs(None, current, config.version.tag_prefix)
        write_github_outputs(outputs)
        _print_outputs({"current": tag.ref, **outputs}, as_json, console)
        return {"current": tag.ref, **outputs}

    if behavior is NoVersionBumpBehavior.SILENT:
        logger.info("no_version_bump", behavior=behavior.value)
        return None

    if behavior is NoVersionBumpBehavior.WARN:
        logger.warning("no_version_bump", behavior=behavior.value)
        status.print(f"[yellow]Warning:[/] {message}")
        return None

    e = NoVersionBumpError(message)
    err_console.print(f"[red]Error:[/] {e}")
    raise SystemExit(1) from e


def _print_outputs(outputs: dict[str, str], as_json: bool, console: Console) -> None:
    if as_json:
        console.print_json(data=outputs)
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Output")
    table.add_column("Value", style="green")
    for name, value in outputs.items():
        table.add_row(name, value)
    console.print(Panel(table, title="[green]Next Version[/]", border_style="green"))
