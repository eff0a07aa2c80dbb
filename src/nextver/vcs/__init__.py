"""Version control access for nextver."""

from __future__ import annotations

from nextver.vcs.github import Commit, GitHubClient, Tag

__all__ = ["Commit", "GitHubClient", "Tag"]
