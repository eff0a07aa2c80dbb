"""Exception hierarchy for nextver.

All errors raised by nextver derive from :class:`NextverError` so the
CLI can catch a single type and turn it into a clean error message.

Hierarchy::

    NextverError
    ├── ConfigError
    │   ├── ConfigNotFoundError
    │   └── ConfigValidationError
    ├── CommitError
    │   └── MalformedCommitError
    ├── VersionError
    │   └── InvalidVersionError
    ├── GitHubError
    │   ├── GitHubAPIError
    │   └── TagNotFoundError
    ├── NoCommitsFoundError
    └── NoVersionBumpError
"""

from __future__ import annotations


class NextverError(Exception):
    """Base exception for all nextver errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# Configuration


class ConfigError(NextverError):
    """Configuration could not be loaded or is invalid."""


class ConfigNotFoundError(ConfigError):
    """A configuration file was expected but not found."""


class ConfigValidationError(ConfigError):
    """Configuration values failed validation."""


# Commits


class CommitError(NextverError):
    """Base class for commit related errors."""


class MalformedCommitError(CommitError):
    """Commit message does not follow the conventional commit grammar.

    Callers classifying a batch of commits are expected to catch this
    per commit and skip the offending message.
    """

    def __init__(self, message: str, *, commit_message: str = "") -> None:
        self.commit_message = commit_message
        super().__init__(message)


# Versions


class VersionError(NextverError):
    """Base class for version related errors."""


class InvalidVersionError(VersionError):
    """A version string is not valid semantic version text."""

    def __init__(self, message: str, *, version: str = "") -> None:
        self.version = version
        super().__init__(message)


# GitHub


class GitHubError(NextverError):
    """Base class for GitHub related errors."""


class GitHubAPIError(GitHubError):
    """The GitHub API returned an error response."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class TagNotFoundError(GitHubError):
    """No usable tag could be found in the repository."""


# Run outcomes


class NoCommitsFoundError(NextverError):
    """No commits exist between the reference tag and the branch."""


class NoVersionBumpError(NextverError):
    """No commit in the range resulted in a version bump."""
