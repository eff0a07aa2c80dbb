"""Core business logic for nextver.

This module contains the version-bump decision engine:
- Conventional commit parsing and per-commit classification
- Aggregation of per-commit bumps into a single bump
- Semantic version arithmetic with pre-release stages
"""

from __future__ import annotations

from nextver.core.commits import (
    CommitNote,
    ConventionalCommit,
    calculate_bump,
    classify_commit,
    classify_commits,
    filter_skip_release_commits,
    parse_commit,
)
from nextver.core.version import (
    NO_PRE_RELEASE,
    BumpType,
    bump_version,
    check_pre_release_stage,
    clean_version,
    is_valid_version,
    max_bump,
    next_version,
)

__all__ = [
    "NO_PRE_RELEASE",
    "BumpType",
    "CommitNote",
    "ConventionalCommit",
    "bump_version",
    "check_pre_release_stage",
    "calculate_bump",
    "classify_commit",
    "classify_commits",
    "clean_version",
    "filter_skip_release_commits",
    "is_valid_version",
    "max_bump",
    "next_version",
    "parse_commit",
]
