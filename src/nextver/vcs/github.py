"""GitHub API access.

Resolves the reference tag and lists the commits between that tag and a
branch. Tags come from the GraphQL API (ordered by commit date), commits
from the REST compare endpoint.

Usage::

    with GitHubClient("octo", "widgets", token=token) as gh:
        tag = gh.get_latest_tag(prefix="widgets-")
        commits = gh.compare_commits(tag.ref, "main")
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import httpx

from nextver.core.version import clean_version, is_valid_version
from nextver.exceptions import ConfigValidationError, GitHubAPIError, TagNotFoundError
from nextver.logging import get_logger

logger = get_logger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT = 30.0
PAGE_SIZE = 100
TAG_QUERY_LIMIT = 10

_API_VERSION = "2022-11-28"

_LATEST_TAGS_QUERY = """
query lastTags($owner: String!, $repo: String!, $limit: Int!) {
  repository(owner: $owner, name: $repo) {
    refs(first: $limit, refPrefix: "refs/tags/", orderBy: {field: TAG_COMMIT_DATE, direction: DESC}) {
      nodes {
        name
        target {
          oid
        }
      }
    }
  }
}
"""

_SINGLE_TAG_QUERY = """
query singleTag($owner: String!, $repo: String!, $tag: String!) {
  repository(owner: $owner, name: $repo) {
    ref(qualifiedName: $tag) {
      name
      target {
        oid
      }
    }
  }
}
"""


@dataclass(frozen=True)
class Commit:
    """A commit in the compared range."""

    sha: str
    message: str
    author_name: str = ""
    date: datetime | None = None

    @property
    def short_sha(self) -> str:
        return self.sha[:7]


@dataclass(frozen=True)
class Tag:
    """A git tag with its prefix removed from ``name``."""

    name: str
    sha: str
    prefix: str = ""

    @property
    def ref(self) -> str:
        """The full tag name as it exists in the repository."""
        return f"{self.prefix}{self.name}"


def graphql_url(api_url: str) -> str:
    """Derive the GraphQL endpoint from a REST API base URL.

    GitHub Enterprise Server serves REST under ``/api/v3`` and GraphQL
    under ``/api/graphql``.
    """
    base = api_url.rstrip("/")
    if base.endswith("/api/v3"):
        return f"{base[: -len('/v3')]}/graphql"
    return f"{base}/graphql"


def _strip_prefix(name: str, prefix: str) -> str | None:
    """Remove ``prefix`` from a tag name; ``None`` if it lacks the prefix."""
    if not prefix:
        return name
    if name.startswith(prefix):
        return name[len(prefix) :]
    return None


def _parse_date(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


class GitHubClient:
    """Synchronous GitHub API client.

    Args:
        owner: Repository owner
        repo: Repository name
        token: API token; falls back to ``GITHUB_TOKEN`` then ``GH_TOKEN``
        api_url: REST API base URL, override for GitHub Enterprise
        timeout: Request timeout in seconds
        transport: Custom httpx transport, mainly for tests

    Raises:
        ConfigValidationError: If no token can be resolved
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        *,
        token: str | None = None,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        resolved_token = (
            token or os.environ.get("GITHUB_TOKEN", "") or os.environ.get("GH_TOKEN", "")
        )
        if not resolved_token:
            raise ConfigValidationError(
                "GitHub token required: pass --token or set GITHUB_TOKEN or GH_TOKEN."
            )

        self.owner = owner
        self.repo = repo
        self._base_url = api_url.rstrip("/")
        self._graphql_url = graphql_url(self._base_url)
        self._client = httpx.Client(
            headers={
                "Authorization": f"Bearer {resolved_token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": _API_VERSION,
            },
            timeout=timeout,
            transport=transport,
        )

    def __repr__(self) -> str:
        return f"GitHubClient(owner={self.owner!r}, repo={self.repo!r})"

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise GitHubAPIError(f"Request to {url} failed: {e}") from e

        if response.status_code >= 400:
            try:
                detail = response.json().get("message", response.text)
            except (ValueError, AttributeError):
                detail = response.text
            raise GitHubAPIError(
                f"GitHub API returned {response.status_code} for {url}: {detail}",
                status_code=response.status_code,
            )
        return response.json()

    def _graphql(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        payload = self._request(
            "POST", self._graphql_url, json={"query": query, "variables": variables}
        )
        if payload.get("errors"):
            messages = "; ".join(err.get("message", str(err)) for err in payload["errors"])
            raise GitHubAPIError(f"GraphQL query failed: {messages}")
        return payload.get("data") or {}

    def get_latest_tag(self, prefix: str = "", skip_invalid_tags: bool = False) -> Tag:
        """Return the most recent tag by commit date.

        Args:
            prefix: Tag prefix; tags without it are ignored
            skip_invalid_tags: Walk past tags that are not valid semver
                instead of failing on the newest one

        Returns:
            The resolved tag, with ``prefix`` removed from its name

        Raises:
            TagNotFoundError: If the repository has no matching tags
            InvalidVersionError: If the newest tag is not valid semver
                and ``skip_invalid_tags`` is off
        """
        data = self._graphql(
            _LATEST_TAGS_QUERY,
            {"owner": self.owner, "repo": self.repo, "limit": TAG_QUERY_LIMIT},
        )
        nodes = ((data.get("repository") or {}).get("refs") or {}).get("nodes") or []
        if not nodes:
            raise TagNotFoundError("No tags found!")

        tags = []
        for node in nodes:
            name = _strip_prefix(node["name"], prefix)
            if name is not None:
                tags.append(Tag(name=name, sha=node["target"]["oid"], prefix=prefix))
        if not tags:
            raise TagNotFoundError(f"No tags found with prefix '{prefix}'!")

        if not skip_invalid_tags:
            latest = tags[0]
            # Raises InvalidVersionError for a non-semver tag
            clean_version(latest.name)
            logger.info("tag_resolved", tag=latest.ref, sha=latest.sha)
            return latest

        for tag in tags:
            if is_valid_version(tag.name):
                logger.info("tag_resolved", tag=tag.ref, sha=tag.sha)
                return tag
            logger.debug("tag_skipped_invalid", tag=tag.ref)
        raise TagNotFoundError("No valid tags found!")

    def get_tag(self, tag: str, prefix: str = "") -> Tag:
        """Look up a specific tag.

        Args:
            tag: Tag name without prefix, e.g. ``"v1.2.3"``
            prefix: Tag prefix

        Raises:
            TagNotFoundError: If the tag does not exist
            InvalidVersionError: If the tag is not valid semver
        """
        data = self._graphql(
            _SINGLE_TAG_QUERY,
            {"owner": self.owner, "repo": self.repo, "tag": f"refs/tags/{prefix}{tag}"},
        )
        node = (data.get("repository") or {}).get("ref")
        if not node:
            raise TagNotFoundError(f"Tag '{prefix}{tag}' not found!")

        name = _strip_prefix(node["name"], prefix) or node["name"]
        clean_version(name)
        resolved = Tag(name=name, sha=node["target"]["oid"], prefix=prefix)
        logger.info("tag_resolved", tag=resolved.ref, sha=resolved.sha)
        return resolved

    def compare_commits(self, base: str, head: str) -> list[Commit]:
        """List commits reachable from ``head`` but not from ``base``.

        Follows pagination until ``total_commits`` have been collected.
        """
        url = f"{self._base_url}/repos/{self.owner}/{self.repo}/compare/{base}...{head}"
        commits: list[Commit] = []
        page = 0

        while True:
            page += 1
            data = self._request("GET", url, params={"page": page, "per_page": PAGE_SIZE})
            total = data.get("total_commits", 0)
            items = data.get("commits") or []
            for item in items:
                details = item.get("commit") or {}
                author = details.get("author") or {}
                commits.append(
                    Commit(
                        sha=item.get("sha", "unknown"),
                        message=details.get("message", ""),
                        author_name=author.get("name", ""),
                        date=_parse_date(author.get("date")),
                    )
                )
            logger.debug("compare_page_fetched", page=page, count=len(items), total=total)
            if not items or (page - 1) * PAGE_SIZE + len(items) >= total:
                break

        return commits
