"""Shared fixtures for the nextver test suite."""

from __future__ import annotations

import json
import os
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

import httpx
import pytest

from nextver.config.models import CommitsConfig
from nextver.vcs.github import Commit, GitHubClient

_ENV_VARS = (
    "GITHUB_OUTPUT",
    "GITHUB_ENV",
    "GITHUB_REPOSITORY",
    "GITHUB_API_URL",
    "GITHUB_TOKEN",
    "GH_TOKEN",
    "RUNNER_DEBUG",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove GitHub Actions variables that would leak into tests."""

    for name in list(os.environ):
        if name.startswith("INPUT_"):
            monkeypatch.delenv(name, raising=False)
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def commits_config() -> CommitsConfig:
    """Config with feat as minor and fix as patch."""
    return CommitsConfig(types_major=[], types_minor=["feat"], types_patch=["fix"])


@pytest.fixture
def feat_commit() -> Commit:
    return Commit("feat123", "feat: add user authentication", "Test", datetime.now())


@pytest.fixture
def fix_commit() -> Commit:
    return Commit("fix456", "fix(core): handle empty input", "Test", datetime.now())


@pytest.fixture
def breaking_commit() -> Commit:
    return Commit(
        "break789",
        "feat(api): new endpoint layout\n\nBREAKING CHANGE: /v1 routes removed",
        "Test",
        datetime.now(),
    )


@pytest.fixture
def sample_commits(
    feat_commit: Commit, fix_commit: Commit, breaking_commit: Commit
) -> list[Commit]:
    return [
        feat_commit,
        fix_commit,
        Commit("docs001", "docs: update readme", "Test", datetime.now()),
        Commit("chore01", "chore: bump deps", "Test", datetime.now()),
        breaking_commit,
        Commit("bad0001", "Merge branch 'main' into feature", "Test", datetime.now()),
    ]


@pytest.fixture
def temp_project(tmp_path: Path) -> Path:
    """Project directory with a pyproject.toml holding nextver settings."""
    (tmp_path / "pyproject.toml").write_text(
        """\
[project]
name = "test-project"
version = "1.0.0"

[tool.nextver]
no_version_bump_behavior = "warn"

[tool.nextver.commits]
types_minor = ["feat", "feature"]
types_patch = ["fix"]

[tool.nextver.version]
tag_prefix = "pkg-"
pre_release_stage = "beta"
"""
    )
    return tmp_path


Handler = Callable[[httpx.Request], httpx.Response]


def make_github_api(
    tags: list[tuple[str, str]] | None = None,
    commits: list[dict[str, Any]] | None = None,
    single_tag: tuple[str, str] | None = None,
    page_size: int = 100,
) -> tuple[Handler, list[httpx.Request]]:
    """Build a fake GitHub API handler.

    Args:
        tags: (name, sha) pairs returned by the latest-tags query, newest first
        commits: Compare API commit items
        single_tag: (name, sha) returned by the single-tag query
        page_size: Page size the fake applies to compare results

    Returns:
        The handler and the list it records requests into
    """
    seen: list[httpx.Request] = []
    all_commits = commits or []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path.endswith("/graphql"):
            body = json.loads(request.content)
            if "lastTags" in body["query"]:
                nodes = [{"name": n, "target": {"oid": s}} for n, s in tags or []]
                data = {"repository": {"refs": {"nodes": nodes}}}
                return httpx.Response(200, json={"data": data})
            ref = None
            if single_tag is not None:
                ref = {"name": single_tag[0], "target": {"oid": single_tag[1]}}
            return httpx.Response(200, json={"data": {"repository": {"ref": ref}}})

        if "/compare/" in request.url.path:
            page = int(request.url.params.get("page", "1"))
            start = (page - 1) * page_size
            return httpx.Response(
                200,
                json={
                    "total_commits": len(all_commits),
                    "commits": all_commits[start : start + page_size],
                },
            )
        return httpx.Response(404, json={"message": "Not Found"})

    return handler, seen


def api_commit(sha: str, message: str) -> dict[str, Any]:
    """A compare API commit item."""
    return {
        "sha": sha,
        "commit": {
            "message": message,
            "author": {"name": "Test", "date": "2024-05-01T12:00:00Z"},
        },
    }


@pytest.fixture
def client_factory() -> Callable[[Handler], Callable[..., GitHubClient]]:
    """Return a function turning a handler into a GitHubClient factory."""

    def build(handler: Handler) -> Callable[..., GitHubClient]:
        def factory(owner: str, repo: str, **kwargs: Any) -> GitHubClient:
            kwargs["token"] = kwargs.get("token") or "fake-token"
            return GitHubClient(owner, repo, transport=httpx.MockTransport(handler), **kwargs)

        return factory

    return build


@pytest.fixture
def github_api() -> Callable[..., tuple[Handler, list[httpx.Request]]]:
    """Return the fake GitHub API builder."""
    return make_github_api


@pytest.fixture
def make_api_commit() -> Callable[[str, str], dict[str, Any]]:
    """Return the compare API commit item builder."""
    return api_commit
