"""Formatting and emission of the computed version.

Outputs follow the names used by the GitHub Action this tool replaces:

==================  ==========================
``current``         ``<prefix><current tag>``
``next``            ``<prefix>v<next>``
``nextStrict``      ``<prefix><next>``
``nextMajor``       ``<prefix>v<next major>``
``nextMajorStrict`` ``<prefix><next major>``
``versionType``     ``major``/``minor``/``patch``
==================  ==========================

When running inside GitHub Actions the values are appended to the files
named by ``$GITHUB_OUTPUT`` (step outputs) and ``$GITHUB_ENV``
(environment for later steps).
"""

from __future__ import annotations

import os
import uuid
from pathlib import Path
from typing import TYPE_CHECKING

from nextver.core.version import clean_version
from nextver.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping

    from nextver.core.version import BumpType

logger = get_logger(__name__)

# Outputs that are also exported as environment variables
ENV_EXPORTS = ("current", "next", "nextStrict")


def format_outputs(
    current: str | None,
    next_version: str,
    prefix: str = "",
    bump: BumpType | None = None,
) -> dict[str, str]:
    """Build the output values for a computed version.

    Args:
        current: Current tag name without prefix, if known
        next_version: Next version without ``v`` or prefix
        prefix: Tag prefix
        bump: Bump that produced the version, if any

    Returns:
        Output name to value, in emission order
    """
    major = clean_version(next_version).major
    outputs: dict[str, str] = {}
    if current is not None:
        outputs["current"] = f"{prefix}{current}"
    outputs["next"] = f"{prefix}v{next_version}"
    outputs["nextStrict"] = f"{prefix}{next_version}"
    outputs["nextMajor"] = f"{prefix}v{major}"
    outputs["nextMajorStrict"] = f"{prefix}{major}"
    if bump is not None:
        outputs["versionType"] = bump.value
    return outputs


def _append(path: Path, name: str, value: str) -> None:
    with path.open("a", encoding="utf-8") as f:
        if "\n" in value:
            delimiter = f"ghadelimiter_{uuid.uuid4()}"
            f.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")
        else:
            f.write(f"{name}={value}\n")


def write_github_outputs(
    outputs: Mapping[str, str],
    environ: Mapping[str, str] | None = None,
) -> bool:
    """Write outputs to the GitHub Actions command files.

    Args:
        outputs: Output name to value
        environ: Environment mapping, defaults to ``os.environ``

    Returns:
        True if at least one command file was written
    """
    env = os.environ if environ is None else environ
    written = False

    output_file = env.get("GITHUB_OUTPUT")
    if output_file:
        for name, value in outputs.items():
            _append(Path(output_file), name, value)
        written = True

    env_file = env.get("GITHUB_ENV")
    if env_file:
        for name in ENV_EXPORTS:
            if name in outputs:
                _append(Path(env_file), name, outputs[name])
        written = True

    if written:
        logger.debug("github_outputs_written", outputs=sorted(outputs))
    return written
