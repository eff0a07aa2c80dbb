"""Semantic version arithmetic.

This module holds the bump severity ordering and the version calculator:
given the current version, the aggregated bump, a pre-release stage and
a minimum-change floor, it computes the next version string.

Versions are parsed strictly with :mod:`semver`. Every transformation
returns a new value; nothing is mutated in place.

Outcome paths of :func:`next_version`::

    floor met?  stage    result
    ----------  -------  --------------------------------------------
    yes         none     stable bump           1.2.3 + minor -> 1.3.0
    yes         <stage>  pre-release bump      1.2.3 + minor -> 1.3.0-rc.0
    no          none     strip pre-release     1.3.0-rc.2    -> 1.3.0
    no          <stage>  next pre-release      1.3.0-rc.2    -> 1.3.0-rc.3
"""

from __future__ import annotations

import re
from enum import Enum

import semver

from nextver.exceptions import InvalidVersionError

# Pre-release stage value that disables pre-release behavior.
NO_PRE_RELEASE = "none"

_PREFIX_RE = re.compile(r"^[=vV]+")
_STAGE_RE = re.compile(r"^[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*$")


class BumpType(str, Enum):
    """Version bump severity, ordered from most to least severe."""

    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    NONE = "none"

    @property
    def rank(self) -> int:
        """Ordinal position; lower means more severe."""
        return _RANKS[self]

    def is_more_severe_than(self, other: BumpType) -> bool:
        return self.rank < other.rank

    def __str__(self) -> str:
        return self.value


_RANKS: dict[BumpType, int] = {
    BumpType.MAJOR: 0,
    BumpType.MINOR: 1,
    BumpType.PATCH: 2,
    BumpType.NONE: 3,
}


def max_bump(a: BumpType | None, b: BumpType | None) -> BumpType | None:
    """Return the more severe of two bumps.

    ``None`` (no bump at all) ranks below :attr:`BumpType.NONE`, so it
    never wins against a real value.

    >>> max_bump(BumpType.MINOR, BumpType.PATCH)
    <BumpType.MINOR: 'minor'>
    >>> max_bump(None, BumpType.NONE)
    <BumpType.NONE: 'none'>
    """
    if a is None:
        return b
    if b is None:
        return a
    return a if a.rank <= b.rank else b


def clean_version(version: str) -> semver.Version:
    """Parse a version string into canonical form.

    Leading whitespace and ``v``/``=`` prefix characters are removed.
    Build metadata is dropped.

    Args:
        version: Version text, e.g. ``"v1.2.3"`` or ``"1.2.3-rc.1"``

    Returns:
        Parsed version without build metadata

    Raises:
        InvalidVersionError: If the text is not a valid semantic version
    """
    text = _PREFIX_RE.sub("", version.strip())
    try:
        parsed = semver.Version.parse(text)
    except (TypeError, ValueError) as e:
        raise InvalidVersionError(
            f"'{version}' is not a valid semantic version",
            version=version,
        ) from e
    return parsed.replace(build=None)


def is_valid_version(version: str) -> bool:
    """Check whether ``version`` parses as a semantic version."""
    try:
        clean_version(version)
    except InvalidVersionError:
        return False
    return True


def check_pre_release_stage(stage: str) -> str:
    """Validate a pre-release stage name.

    Returns:
        The stage unchanged

    Raises:
        InvalidVersionError: If the stage is not ``"none"`` and not made of
            dot-separated alphanumeric or hyphen identifiers
    """
    if stage != NO_PRE_RELEASE and not _STAGE_RE.fullmatch(stage):
        raise InvalidVersionError(
            f"'{stage}' is not a valid pre-release identifier",
            version=stage,
        )
    return stage


def bump_version(
    version: semver.Version,
    bump: BumpType,
    pre_release_stage: str = NO_PRE_RELEASE,
) -> semver.Version:
    """Increment the core version by ``bump``.

    Without a pre-release stage, a pre-release that already is the
    target of the bump is promoted instead of incremented again
    (``2.0.0-rc.1`` + major is ``2.0.0``). With a stage, the core is
    always incremented and the result is the first build of that stage
    (``1.2.3`` + minor with ``"alpha"`` is ``1.3.0-alpha.0``).

    Args:
        version: Current version
        bump: Bump to apply; must not be :attr:`BumpType.NONE`
        pre_release_stage: Stage name, or ``"none"`` for a stable result

    Returns:
        The bumped version

    Raises:
        ValueError: If ``bump`` is :attr:`BumpType.NONE`
        InvalidVersionError: If ``pre_release_stage`` is not a valid identifier
    """
    if bump is BumpType.NONE:
        raise ValueError("Cannot bump a version by 'none'")
    check_pre_release_stage(pre_release_stage)

    major, minor, patch = version.major, version.minor, version.patch

    if pre_release_stage != NO_PRE_RELEASE:
        if bump is BumpType.MAJOR:
            core = (major + 1, 0, 0)
        elif bump is BumpType.MINOR:
            core = (major, minor + 1, 0)
        else:
            core = (major, minor, patch + 1)
        return semver.Version(*core, prerelease=f"{pre_release_stage}.0")

    is_pre = version.prerelease is not None
    if bump is BumpType.MAJOR:
        if minor != 0 or patch != 0 or not is_pre:
            major += 1
        return semver.Version(major, 0, 0)
    if bump is BumpType.MINOR:
        if patch != 0 or not is_pre:
            minor += 1
        return semver.Version(major, minor, 0)
    if not is_pre:
        patch += 1
    return semver.Version(major, minor, patch)


def _next_prerelease(prerelease: str | None, stage: str) -> str:
    """Advance a pre-release tag within ``stage``.

    A different stage, or one without a numeric counter, restarts at 0.
    """
    if not prerelease:
        return f"{stage}.0"

    parts = prerelease.split(".")
    if parts[0] != stage or len(parts) < 2 or not parts[1].isdigit():
        return f"{stage}.0"

    # Increment the right-most numeric identifier
    for i in range(len(parts) - 1, 0, -1):
        if parts[i].isdigit():
            parts[i] = str(int(parts[i]) + 1)
            break
    return ".".join(parts)


def next_version(
    current: str,
    bump: BumpType,
    pre_release_stage: str = NO_PRE_RELEASE,
    minimum_change: BumpType | str = BumpType.NONE,
) -> str:
    """Compute the next version.

    If ``bump`` is strictly more severe than ``minimum_change`` the core
    version is bumped. Otherwise the core stays the same: without a
    pre-release stage any pre-release suffix is stripped, with a stage
    only the pre-release build counter advances.

    Args:
        current: Current version, e.g. from the latest tag
        bump: Aggregated bump for the commit range
        pre_release_stage: Stage name, or ``"none"``
        minimum_change: Least severe bump that still changes the core

    Returns:
        The next version, without any ``v`` prefix

    Raises:
        InvalidVersionError: If ``current`` is not a valid version or
            ``pre_release_stage`` is not a valid identifier
    """
    check_pre_release_stage(pre_release_stage)
    version = clean_version(current)
    floor = BumpType(minimum_change)

    if bump.is_more_severe_than(floor):
        return str(bump_version(version, bump, pre_release_stage))

    if pre_release_stage == NO_PRE_RELEASE:
        return str(version.finalize_version())

    return str(version.replace(prerelease=_next_prerelease(version.prerelease, pre_release_stage)))
