"""Implementation of the offline 'bump' and 'classify' commands.

Neither command talks to GitHub: 'bump' runs the version calculator on
a given version, 'classify' runs the commit classifier on given messages.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.table import Table

from nextver.config.models import CommitsConfig
from nextver.core.commits import calculate_bump, classify_commits
from nextver.core.version import NO_PRE_RELEASE, BumpType, next_version
from nextver.exceptions import NextverError
from nextver.outputs import format_outputs

if TYPE_CHECKING:
    from rich.console import Console


def run_bump(
    version: str,
    bump: BumpType,
    pre_release_stage: str,
    minimum_change: BumpType,
    prefix: str,
    as_json: bool,
    console: Console,
    err_console: Console,
) -> str:
    """Run the bump command.

    Args:
        version: Current version, optionally ``v`` prefixed
        bump: Bump to apply
        pre_release_stage: Stage name, or ``"none"``
        minimum_change: Minimum change floor
        prefix: Tag prefix used for JSON outputs
        as_json: Print all outputs as JSON
        console: Console for standard output
        err_console: Console for error output

    Returns:
        The next version
    """
    try:
        result = next_version(version, bump, pre_release_stage or NO_PRE_RELEASE, minimum_change)
    except NextverError as e:
        err_console.print(f"[red]Error:[/] {e}")
        raise SystemExit(1) from e

    if as_json:
        console.print_json(data=format_outputs(None, result, prefix, bump))
    else:
        console.print(result, highlight=False)
    return result


def run_classify(
    messages: list[str],
    config: CommitsConfig,
    console: Console,
) -> BumpType | None:
    """Run the classify command.

    Prints the bump for each message and the aggregated bump.

    Returns:
        The aggregated bump, or None if no message produced one
    """
    bumps = classify_commits(messages, config)

    table = Table(show_header=True, header_style="bold")
    table.add_column("Commit")
    table.add_column("Bump")
    for message, bump in zip(messages, bumps, strict=True):
        header = message.strip().splitlines()[0] if message.strip() else ""
        label = bump.value if bump is not None else "[yellow]invalid[/]"
        table.add_row(header, label)
    console.print(table)

    result = calculate_bump(bumps, patch_all=config.patch_all)
    if result is None or result is BumpType.NONE:
        console.print("[yellow]No version bump[/]")
    else:
        console.print(f"Bump type is [green]{result.value}[/]")
    return result
