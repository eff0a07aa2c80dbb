"""Configuration management for nextver."""

from __future__ import annotations

from nextver.config.loader import load_action_inputs, load_config
from nextver.config.models import (
    CommitsConfig,
    GitHubConfig,
    NextverConfig,
    NoVersionBumpBehavior,
    VersionConfig,
)

__all__ = [
    "CommitsConfig",
    "GitHubConfig",
    "NextverConfig",
    "NoVersionBumpBehavior",
    "VersionConfig",
    "load_action_inputs",
    "load_config",
]
