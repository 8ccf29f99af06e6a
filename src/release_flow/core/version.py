"""Semantic version parsing, bumping and next-version resolution.

Bumping follows the npm ``semver.inc`` rules, so a pre-release of the
target version is promoted instead of skipped:

    >>> str(Version.parse("2.0.0-1").bump(BumpType.MAJOR))
    '2.0.0'
    >>> str(Version.parse("1.2.3").bump(BumpType.PRERELEASE))
    '1.2.4-0'
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from release_flow.exceptions import RecommendationError, ReleaseFlowError, VersionParseError

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

_SEMVER_RE = re.compile(
    r"""
    ^v?
    (?P<major>0|[1-9]\d*)\.
    (?P<minor>0|[1-9]\d*)\.
    (?P<patch>0|[1-9]\d*)
    (?:-(?P<prerelease>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?
    (?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?
    $
    """,
    re.VERBOSE,
)


class BumpType(StrEnum):
    """Kind of version increment."""

    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    PRERELEASE = "prerelease"


PreRelease = tuple[str | int, ...]


def _parse_prerelease(text: str | None) -> PreRelease:
    if not text:
        return ()
    return tuple(int(part) if part.isdigit() else part for part in text.split("."))


@dataclass(frozen=True, slots=True)
class Version:
    """A semantic version (MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD])."""

    major: int
    minor: int
    patch: int
    prerelease: PreRelease = field(default=())
    build: str | None = None

    @classmethod
    def parse(cls, text: str) -> Version:
        """Parse a version string. A leading ``v`` is accepted.

        Raises:
            VersionParseError: If ``text`` is not a semantic version
        """
        match = _SEMVER_RE.match(text.strip())
        if match is None:
            raise VersionParseError(f"Invalid semantic version: {text!r}")
        return cls(
            major=int(match["major"]),
            minor=int(match["minor"]),
            patch=int(match["patch"]),
            prerelease=_parse_prerelease(match["prerelease"]),
            build=match["build"],
        )

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    def bump(self, bump_type: BumpType, identifier: str | None = None) -> Version:
        """Return the next version for ``bump_type``. Build metadata is dropped."""
        if bump_type is BumpType.MAJOR:
            if self.is_prerelease and self.minor == 0 and self.patch == 0:
                return Version(self.major, 0, 0)
            return Version(self.major + 1, 0, 0)

        if bump_type is BumpType.MINOR:
            if self.is_prerelease and self.patch == 0:
                return Version(self.major, self.minor, 0)
            return Version(self.major, self.minor + 1, 0)

        if bump_type is BumpType.PATCH:
            if self.is_prerelease:
                return Version(self.major, self.minor, self.patch)
            return Version(self.major, self.minor, self.patch + 1)

        if bump_type is BumpType.PRERELEASE:
            if not self.is_prerelease:
                base = Version(self.major, self.minor, self.patch + 1)
                start: PreRelease = (identifier, 0) if identifier else (0,)
                return base.with_prerelease(start)
            return self.with_prerelease(_next_prerelease(self.prerelease, identifier))

        raise ValueError(f"Unknown bump type: {bump_type!r}")

    def with_prerelease(self, prerelease: PreRelease) -> Version:
        return Version(self.major, self.minor, self.patch, tuple(prerelease))

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(str(part) for part in self.prerelease)
        if self.build:
            text += f"+{self.build}"
        return text


def _next_prerelease(current: PreRelease, identifier: str | None) -> PreRelease:
    parts = list(current)
    # Increment the right-most numeric identifier, or append a 0.
    for i in range(len(parts) - 1, -1, -1):
        if isinstance(parts[i], int):
            parts[i] += 1
            break
    else:
        parts.append(0)

    if identifier:
        continues = len(current) > 1 and current[0] == identifier and isinstance(current[1], int)
        if not continues:
            return (identifier, 0)
    return tuple(parts)


@dataclass(frozen=True, slots=True)
class VersionIntent:
    """What the operator asked for on the command line."""

    bump: BumpType | None = None
    version: str | None = None
    prerelease_id: str | None = None


def resolve_next_version(
    current: str,
    intent: VersionIntent,
    recommend: Callable[[], BumpType],
) -> str:
    """Decide the next version string.

    Priority, first match wins:

    1. a forced bump kind (``--major`` and friends)
    2. an explicit version (``--version``), used literally
    3. the bump kind returned by ``recommend``

    Raises:
        VersionParseError: If ``current`` cannot be bumped
        RecommendationError: If the recommendation fails
    """
    if intent.bump is not None:
        logger.debug("Forcing %s version bump", intent.bump)
        return str(Version.parse(current).bump(intent.bump, intent.prerelease_id))

    if intent.version:
        logger.debug("Forcing version %s", intent.version)
        return intent.version

    try:
        bump_type = recommend()
    except RecommendationError:
        raise
    except ReleaseFlowError as e:
        raise RecommendationError(f"Could not recommend a version bump: {e}") from e
    logger.debug("Recommended %s version bump", bump_type)
    return str(Version.parse(current).bump(bump_type, intent.prerelease_id))
