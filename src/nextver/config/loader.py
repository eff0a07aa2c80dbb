"""Configuration loading.

Settings are layered, lowest precedence first:

1. Model defaults
2. ``[tool.nextver]`` in ``pyproject.toml`` (optional)
3. GitHub Actions inputs (``INPUT_*`` environment variables)
4. Explicit overrides, usually CLI flags
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from nextver.config.models import NextverConfig
from nextver.exceptions import ConfigNotFoundError, ConfigValidationError
from nextver.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = get_logger(__name__)

TOOL_SECTION = "nextver"

# GitHub Actions input name -> (section, field)
ACTION_INPUTS: dict[str, tuple[str | None, str]] = {
    "MAJORLIST": ("commits", "types_major"),
    "MINORLIST": ("commits", "types_minor"),
    "PATCHLIST": ("commits", "types_patch"),
    "PATCHALL": ("commits", "patch_all"),
    "PRERELEASESTAGE": ("version", "pre_release_stage"),
    "MINIMUMCHANGE": ("version", "minimum_change"),
    "PREFIX": ("version", "tag_prefix"),
    "FROMTAG": ("version", "from_tag"),
    "SKIPINVALIDTAGS": ("version", "skip_invalid_tags"),
    "BRANCH": ("github", "branch"),
    "TOKEN": ("github", "token"),
    "NOVERSIONBUMPBEHAVIOR": (None, "no_version_bump_behavior"),
    "ADDITIONALCOMMITS": (None, "additional_commits"),
    "SQUASHMERGECOMMITMESSAGE": (None, "squash_merge_commit_message"),
}

_BOOLEAN_INPUTS = {"PATCHALL", "SKIPINVALIDTAGS"}
_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}


def find_pyproject_toml(start: Path | None = None) -> Path:
    """Find pyproject.toml by walking up from ``start``.

    Args:
        start: Directory to start from, defaults to the working directory

    Returns:
        Path to the nearest pyproject.toml

    Raises:
        ConfigNotFoundError: If no pyproject.toml exists up to the root
    """
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / "pyproject.toml"
        if candidate.is_file():
            return candidate
    raise ConfigNotFoundError(f"No pyproject.toml found in {current} or any parent directory")


def load_pyproject_toml(path: Path) -> dict[str, Any]:
    """Read and parse a pyproject.toml file.

    Raises:
        ConfigNotFoundError: If the file does not exist
        ConfigValidationError: If the file is not valid TOML
    """
    if not path.is_file():
        raise ConfigNotFoundError(f"Config file not found: {path}")
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigValidationError(f"Invalid TOML in {path}: {e}") from e


def extract_nextver_config(pyproject: dict[str, Any]) -> dict[str, Any]:
    """Return the ``[tool.nextver]`` table, or an empty dict."""
    return dict(pyproject.get("tool", {}).get(TOOL_SECTION, {}))


def parse_bool(value: str, name: str = "value") -> bool:
    """Parse a boolean input the way GitHub Actions inputs are written.

    Raises:
        ConfigValidationError: If the text is not a recognised boolean
    """
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigValidationError(f"Input '{name}' must be a boolean (true/false), got '{value}'")


def load_action_inputs(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Collect settings from GitHub Actions inputs.

    Empty inputs are ignored so they never clobber lower layers.

    Args:
        environ: Environment mapping, defaults to ``os.environ``

    Returns:
        Nested dict shaped like :class:`NextverConfig`
    """
    env = os.environ if environ is None else environ
    data: dict[str, Any] = {}

    for name, (section, field) in ACTION_INPUTS.items():
        raw = env.get(f"INPUT_{name}", "")
        if not raw.strip():
            continue
        value: Any = parse_bool(raw, name) if name in _BOOLEAN_INPUTS else raw
        if name not in ("ADDITIONALCOMMITS", "SQUASHMERGECOMMITMESSAGE") and isinstance(value, str):
            value = value.strip()
        target = data.setdefault(section, {}) if section else data
        target[field] = value

    repository = env.get("GITHUB_REPOSITORY", "")
    if "/" in repository:
        owner, repo = repository.split("/", 1)
        data.setdefault("github", {}).update({"owner": owner, "repo": repo})

    api_url = env.get("GITHUB_API_URL", "")
    if api_url:
        data.setdefault("github", {})["api_url"] = api_url

    return data


def _merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(
    path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> NextverConfig:
    """Load configuration from all sources.

    A missing pyproject.toml is not an error; the tool commonly runs in
    repositories that are not Python projects.

    Args:
        path: Project directory to search for pyproject.toml
        environ: Environment mapping for action inputs
        overrides: Highest-precedence values, shaped like NextverConfig

    Returns:
        Validated configuration

    Raises:
        ConfigValidationError: If any layer holds invalid values
    """
    data: dict[str, Any] = {}

    try:
        pyproject_path = find_pyproject_toml(path)
    except ConfigNotFoundError:
        logger.debug("pyproject_not_found", path=str(path or Path.cwd()))
    else:
        data = extract_nextver_config(load_pyproject_toml(pyproject_path))
        if data:
            logger.debug("config_loaded", source=str(pyproject_path))

    data = _merge(data, load_action_inputs(environ))
    if overrides:
        data = _merge(data, overrides)

    try:
        return NextverConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid configuration: {e}") from e
