"""Configuration models for nextver.

All settings live in pydantic models so they are validated once at load
time. The same models back ``[tool.nextver]`` in ``pyproject.toml``,
GitHub Actions inputs and CLI flags.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from nextver.core.version import NO_PRE_RELEASE, BumpType, check_pre_release_stage
from nextver.exceptions import InvalidVersionError


class NoVersionBumpBehavior(str, Enum):
    """What to do when no commit results in a version bump."""

    ERROR = "error"
    WARN = "warn"
    SILENT = "silent"
    CURRENT = "current"


class CommitsConfig(BaseModel):
    """Mapping of conventional commit types to bump severities.

    A type listed in more than one bucket resolves by check order:
    major, then minor, then patch.
    """

    model_config = ConfigDict(extra="forbid")

    types_major: list[str] = Field(default_factory=list)
    types_minor: list[str] = Field(default_factory=lambda: ["feat", "feature"])
    types_patch: list[str] = Field(
        default_factory=lambda: ["fix", "bugfix", "perf", "refactor", "test", "tests"]
    )
    patch_all: bool = False
    # Opt-in, e.g. ["[skip release]"]; empty means every commit is classified
    skip_release_patterns: list[str] = Field(default_factory=list)

    @field_validator("types_major", "types_minor", "types_patch", mode="before")
    @classmethod
    def _split_types(cls, value: object) -> object:
        """Accept comma separated strings as well as lists."""
        if isinstance(value, str):
            return split_list(value, ",")
        if isinstance(value, list):
            return [str(v).strip() for v in value if str(v).strip()]
        return value


class VersionConfig(BaseModel):
    """How the next version is derived from the bump."""

    model_config = ConfigDict(extra="forbid")

    tag_prefix: str = ""
    pre_release_stage: str = NO_PRE_RELEASE
    minimum_change: BumpType = BumpType.NONE
    from_tag: str | None = None
    skip_invalid_tags: bool = False

    @field_validator("pre_release_stage", mode="before")
    @classmethod
    def _default_stage(cls, value: object) -> object:
        if value is None or (isinstance(value, str) and not value.strip()):
            return NO_PRE_RELEASE
        return value.strip() if isinstance(value, str) else value

    @field_validator("pre_release_stage")
    @classmethod
    def _check_stage(cls, value: str) -> str:
        try:
            return check_pre_release_stage(value)
        except InvalidVersionError as e:
            raise ValueError(e.message) from e

    @field_validator("minimum_change", mode="before")
    @classmethod
    def _default_minimum_change(cls, value: object) -> object:
        if value is None or (isinstance(value, str) and not value.strip()):
            return BumpType.NONE
        return value.strip().lower() if isinstance(value, str) else value


class GitHubConfig(BaseModel):
    """GitHub repository and API settings."""

    model_config = ConfigDict(extra="forbid")

    owner: str | None = None
    repo: str | None = None
    branch: str = "main"
    api_url: str = "https://api.github.com"
    token: str | None = Field(default=None, repr=False)


class NextverConfig(BaseModel):
    """Root configuration."""

    model_config = ConfigDict(extra="forbid")

    commits: CommitsConfig = Field(default_factory=CommitsConfig)
    version: VersionConfig = Field(default_factory=VersionConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    no_version_bump_behavior: NoVersionBumpBehavior = NoVersionBumpBehavior.ERROR
    additional_commits: list[str] = Field(default_factory=list)
    squash_merge_commit_message: str | None = None

    @field_validator("additional_commits", mode="before")
    @classmethod
    def _split_commits(cls, value: object) -> object:
        """Accept a newline separated string as well as a list."""
        if isinstance(value, str):
            return split_list(value, "\n")
        return value


def split_list(value: str, separator: str) -> list[str]:
    """Split ``value`` on ``separator``, trimming items and dropping empties."""
    return [item.strip() for item in value.split(separator) if item.strip()]
