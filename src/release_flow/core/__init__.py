"""Core business logic for release-flow.

This module contains the fundamental building blocks:
- Semantic version parsing and bumping
- Conventional commit classification and bump recommendation
- Structured changelog and CHANGELOG.md generation
- Release orchestration
"""

from __future__ import annotations

from release_flow.core.changelog import (
    ChangelogCommit,
    ReleaseEntry,
    add_release,
    get_release_cursor,
    load_changelog,
    render_changelog,
    trim_new_commits,
)
from release_flow.core.commits import (
    ClassifiedCommit,
    CommitType,
    ParsedCommit,
    classify_commits,
    load_commit_types,
    recommend_bump,
)
from release_flow.core.version import BumpType, Version, VersionIntent, resolve_next_version

__all__ = [
    # Version
    "BumpType",
    # Changelog
    "ChangelogCommit",
    # Commits
    "ClassifiedCommit",
    "CommitType",
    "ParsedCommit",
    "ReleaseEntry",
    "Version",
    "VersionIntent",
    "add_release",
    "classify_commits",
    "get_release_cursor",
    "load_changelog",
    "load_commit_types",
    "recommend_bump",
    "render_changelog",
    "resolve_next_version",
    "trim_new_commits",
]
