"""Conventional commit classification and bump recommendation.

Two views of a commit live here:

- ``classify_commits`` matches subjects against the commit type
  registry and strips the ``type:`` / ``type(scope):`` prefix. This is
  what ends up in the changelog.
- ``ParsedCommit`` is a full conventional-commit parse (scope, ``!``,
  ``BREAKING CHANGE`` footer) used by ``recommend_bump``.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from functools import cached_property
from importlib import resources
from typing import TYPE_CHECKING

from release_flow.core.version import BumpType
from release_flow.exceptions import ConfigValidationError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence
    from datetime import datetime
    from pathlib import Path

    from release_flow.vcs.git import Commit

logger = logging.getLogger(__name__)

RELEASE_COMMIT_PREFIX = "chore(release): "
BREAKING_PATTERN = r"BREAKING[ -]CHANGE:"

_CONVENTIONAL_RE = re.compile(
    r"^(?P<type>[A-Za-z]+)(?:\((?P<scope>[^)]*)\))?(?P<breaking>!)?: (?P<description>.+)$"
)


# =============================================================================
# Commit type registry
# =============================================================================


@dataclass(frozen=True, slots=True)
class CommitType:
    """One entry of the commit type registry."""

    key: str
    title: str = ""
    description: str = ""


def load_commit_types(path: Path | None = None) -> dict[str, CommitType]:
    """Load the commit type registry.

    The registry is a JSON document ``{"types": {key: {title, description}}}``.
    Key order is kept: it decides which key wins when several match.

    Args:
        path: Custom registry file. The bundled registry is used when None.

    Raises:
        ConfigValidationError: If the registry cannot be read or is malformed
    """
    try:
        if path is None:
            text = resources.files("release_flow").joinpath("data/commit_types.json").read_text()
        else:
            text = path.read_text()
        raw = json.loads(text)
    except (OSError, json.JSONDecodeError) as e:
        source = path or "package"
        raise ConfigValidationError(f"Cannot load commit types from {source}: {e}") from e

    types = raw.get("types") if isinstance(raw, dict) else None
    if not isinstance(types, dict):
        raise ConfigValidationError("Commit type registry must contain a 'types' object")

    return {
        key: CommitType(
            key=key,
            title=meta.get("title", ""),
            description=meta.get("description", ""),
        )
        for key, meta in types.items()
    }


# =============================================================================
# Classification
# =============================================================================


@dataclass(frozen=True, slots=True)
class ClassifiedCommit:
    """A commit whose subject had its type prefix stripped."""

    sha: str
    short_sha: str
    subject: str
    author_name: str
    date: datetime
    type: CommitType | None = None


class CommitClassifier:
    """Prioritized prefix matcher over a commit type registry."""

    def __init__(self, types: Mapping[str, CommitType]) -> None:
        self.types = dict(types)

    @cached_property
    def _patterns(self) -> tuple[re.Pattern[str], ...]:
        if not self.types:
            return ()
        keys = "|".join(re.escape(key) for key in self.types)
        return (
            re.compile(rf"^({keys}): (.*)"),
            re.compile(rf"^({keys})\([^)]*\): (.*)"),
        )

    def classify(self, subject: str) -> tuple[str, CommitType | None]:
        """Return ``(stripped_subject, type)``, or ``(subject, None)`` if unmatched."""
        for pattern in self._patterns:
            match = pattern.match(subject)
            if match:
                return match.group(2), self.types[match.group(1)]
        return subject, None


def filter_release_commits(
    commits: Iterable[Commit],
    prefix: str = RELEASE_COMMIT_PREFIX,
) -> list[Commit]:
    """Drop the commits created by previous releases."""
    return [c for c in commits if not c.subject.startswith(prefix)]


def classify_commits(
    commits: Sequence[Commit],
    types: Mapping[str, CommitType],
    release_prefix: str = RELEASE_COMMIT_PREFIX,
) -> list[ClassifiedCommit]:
    """Filter out release commits and classify the rest, keeping order."""
    classifier = CommitClassifier(types)
    classified = []
    for commit in filter_release_commits(commits, release_prefix):
        subject, commit_type = classifier.classify(commit.subject)
        classified.append(
            ClassifiedCommit(
                sha=commit.sha,
                short_sha=commit.short_sha,
                subject=subject,
                author_name=commit.author_name,
                date=commit.date,
                type=commit_type,
            )
        )

    skipped = len(commits) - len(classified)
    if skipped:
        logger.debug("Skipped %d release commit(s)", skipped)
    return classified


# =============================================================================
# Bump recommendation
# =============================================================================


@dataclass(frozen=True, slots=True)
class ParsedCommit:
    """A commit parsed as a Conventional Commits message."""

    commit: Commit
    commit_type: str | None
    scope: str | None
    description: str
    is_breaking: bool

    @classmethod
    def from_commit(cls, commit: Commit, breaking_pattern: str = BREAKING_PATTERN) -> ParsedCommit:
        match = _CONVENTIONAL_RE.match(commit.subject)
        in_body = bool(commit.body and re.search(breaking_pattern, commit.body))
        if match is None:
            return cls(
                commit=commit,
                commit_type=None,
                scope=None,
                description=commit.subject,
                is_breaking=in_body,
            )
        return cls(
            commit=commit,
            commit_type=match["type"].lower(),
            scope=match["scope"] or None,
            description=match["description"],
            is_breaking=bool(match["breaking"]) or in_body,
        )


def recommend_bump(commits: Iterable[Commit]) -> BumpType:
    """Recommend a bump kind using the Angular preset rules.

    A breaking change gives MAJOR, a ``feat`` gives MINOR and anything
    else (including no commits at all) gives PATCH.
    """
    parsed = [ParsedCommit.from_commit(c) for c in commits]
    breaking = sum(pc.is_breaking for pc in parsed)
    features = sum(pc.commit_type == "feat" for pc in parsed)

    if breaking:
        bump = BumpType.MAJOR
    elif features:
        bump = BumpType.MINOR
    else:
        bump = BumpType.PATCH

    logger.debug(
        "%d commit(s): %d breaking change(s), %d feature(s) -> %s",
        len(parsed),
        breaking,
        features,
        bump,
    )
    return bump
