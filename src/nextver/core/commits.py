"""Conventional commit parsing and bump classification.

Commit messages are parsed with a best-effort Conventional Commits 1.0
grammar::

    type(scope)!: subject

    optional body

    BREAKING CHANGE: description
    Refs: #123

Messages that do not match raise :class:`MalformedCommitError`. When
classifying a batch, malformed commits are logged and skipped instead of
aborting the run.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from nextver.core.version import BumpType, max_bump
from nextver.exceptions import MalformedCommitError
from nextver.logging import get_logger

if TYPE_CHECKING:
    from nextver.config.models import CommitsConfig
    from nextver.vcs.github import Commit

logger = get_logger(__name__)

BREAKING_CHANGE = "BREAKING CHANGE"

_HEADER_RE = re.compile(
    r"^(?P<type>[\w-]+)"
    r"(?:\((?P<scope>[^()\r\n]*)\))?"
    r"(?P<breaking>!)?"
    r":[ \t]*(?P<subject>\S.*)$"
)

_FOOTER_RE = re.compile(r"^(?P<token>BREAKING[ -]CHANGE|[\w-]+)(?:: | #)(?P<value>.*)$")

_PARAGRAPH_SPLIT_RE = re.compile(r"\n[ \t]*\n")


@dataclass(frozen=True)
class CommitNote:
    """A note attached to a commit, such as a breaking change."""

    title: str
    text: str


@dataclass(frozen=True)
class ConventionalCommit:
    """Structured form of a conventional commit message."""

    type: str
    subject: str
    scope: str | None = None
    body: str = ""
    notes: tuple[CommitNote, ...] = ()

    @property
    def is_breaking(self) -> bool:
        return any(note.title == BREAKING_CHANGE for note in self.notes)


def _parse_footers(lines: list[str]) -> list[tuple[str, str]] | None:
    """Parse a trailing paragraph as footers.

    Returns ``None`` if the paragraph does not start with a footer token.
    Lines that are not tokens continue the previous footer's value.
    """
    footers: list[tuple[str, str]] = []
    for line in lines:
        match = _FOOTER_RE.match(line)
        if match:
            footers.append((match.group("token"), match.group("value")))
        elif footers:
            token, value = footers[-1]
            footers[-1] = (token, f"{value}\n{line}")
        else:
            return None
    return footers


def parse_commit(message: str) -> ConventionalCommit:
    """Parse a raw commit message.

    Args:
        message: Full commit message (header, body and footers)

    Returns:
        The parsed commit

    Raises:
        MalformedCommitError: If the message is empty or its header does
            not follow the conventional commit grammar
    """
    if not message or not message.strip():
        raise MalformedCommitError("Commit message is empty", commit_message=message)

    lines = message.strip().replace("\r\n", "\n").split("\n")
    header = lines[0].strip()
    match = _HEADER_RE.match(header)
    if not match:
        raise MalformedCommitError(
            f"Commit header '{header}' does not follow the conventional commit format",
            commit_message=message,
        )

    subject = match.group("subject").strip()
    notes: list[CommitNote] = []
    if match.group("breaking"):
        notes.append(CommitNote(title=BREAKING_CHANGE, text=subject))

    # The last paragraph may be a footer block
    rest = "\n".join(lines[1:]).strip()
    paragraphs = [
        [line.rstrip() for line in chunk.split("\n")]
        for chunk in _PARAGRAPH_SPLIT_RE.split(rest)
        if chunk.strip()
    ]

    footers: list[tuple[str, str]] = []
    if paragraphs:
        parsed_footers = _parse_footers(paragraphs[-1])
        if parsed_footers is not None:
            footers = parsed_footers
            paragraphs.pop()

    for token, value in footers:
        if token in ("BREAKING CHANGE", "BREAKING-CHANGE"):
            notes.append(CommitNote(title=BREAKING_CHANGE, text=value.strip()))

    body = "\n\n".join("\n".join(p) for p in paragraphs)

    return ConventionalCommit(
        type=match.group("type"),
        subject=subject,
        scope=match.group("scope") or None,
        body=body,
        notes=tuple(notes),
    )


def classify_commit(config: CommitsConfig, message: str, sha: str = "unknown") -> BumpType:
    """Determine the bump a single commit calls for.

    Checks run in order and the first match wins: breaking change note,
    major types, minor types, patch types (or ``patch_all``).

    Args:
        config: Commit type to bump mapping
        message: Raw commit message
        sha: Commit SHA, used for logging only

    Returns:
        The bump for this commit, :attr:`BumpType.NONE` if it has none

    Raises:
        MalformedCommitError: If the message cannot be parsed
    """
    commit = parse_commit(message)
    logger.debug("commit_parsed", sha=sha, commit=commit)

    if commit.is_breaking:
        logger.info("commit_classified", sha=sha, type=commit.type, bump="major", reason="breaking")
        return BumpType.MAJOR

    if commit.type in config.types_major:
        bump = BumpType.MAJOR
    elif commit.type in config.types_minor:
        bump = BumpType.MINOR
    elif config.patch_all or commit.type in config.types_patch:
        bump = BumpType.PATCH
    else:
        bump = BumpType.NONE

    logger.info("commit_classified", sha=sha, type=commit.type, bump=bump.value)
    return bump


def classify_commits(
    commits: Iterable[Commit | str],
    config: CommitsConfig,
) -> list[BumpType | None]:
    """Classify a batch of commits.

    Malformed commits are logged as warnings and contribute ``None``.

    Args:
        commits: Commit objects or raw messages
        config: Commit type to bump mapping

    Returns:
        One entry per input commit, in order
    """
    bumps: list[BumpType | None] = []
    for commit in commits:
        if isinstance(commit, str):
            message, sha = commit, "unknown"
        else:
            message, sha = commit.message, commit.sha
        try:
            bumps.append(classify_commit(config, message, sha))
        except MalformedCommitError as e:
            logger.warning(
                "commit_skipped",
                sha=sha,
                message=message,
                reason="does not follow conventional commit format",
            )
            logger.debug("commit_parse_error", sha=sha, error=str(e))
            bumps.append(None)
    return bumps


def calculate_bump(
    bumps: Iterable[BumpType | None],
    *,
    patch_all: bool = False,
) -> BumpType | None:
    """Reduce per-commit bumps to the single most severe one.

    Args:
        bumps: Per-commit bumps; ``None`` marks a skipped commit
        patch_all: Treat the batch as at least a patch release

    Returns:
        The most severe bump, or ``None`` if nothing contributed one
    """
    result: BumpType | None = BumpType.PATCH if patch_all else None
    for bump in bumps:
        result = max_bump(result, bump)
    return result


def filter_skip_release_commits(
    commits: list[Commit],
    patterns: list[str],
) -> list[Commit]:
    """Drop commits whose message contains a skip marker.

    Matching is case-insensitive and covers the whole message.
    """
    if not patterns:
        return list(commits)

    lowered = [p.lower() for p in patterns]
    kept = []
    for commit in commits:
        text = commit.message.lower()
        if any(p in text for p in lowered):
            logger.info("commit_skip_marker", sha=commit.sha)
            continue
        kept.append(commit)
    return kept
