"""Structured changelog (changelog.json) and CHANGELOG.md generation.

changelog.json maps each released version to the commits it shipped
and the time it was released:

    {
      "1.2.0": {
        "commits": [{"hash": "...", "abbrevHash": "...", "subject": "..."}],
        "ts": 1614945600000
      }
    }

Commits are stored newest first. The first commit of the current
version is the cursor that tells the next run where already-released
history starts.
"""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime
from typing import TYPE_CHECKING, Protocol, TypeVar

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from release_flow.exceptions import ChangelogError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence
    from pathlib import Path

    from release_flow.core.commits import ClassifiedCommit

logger = logging.getLogger(__name__)


class ChangelogCommit(BaseModel):
    """A commit as recorded in changelog.json."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    hash: str
    abbrev_hash: str = Field(alias="abbrevHash")
    subject: str

    @classmethod
    def from_classified(cls, commit: ClassifiedCommit) -> ChangelogCommit:
        return cls(hash=commit.sha, abbrev_hash=commit.short_sha, subject=commit.subject)


class ReleaseEntry(BaseModel):
    """One released version."""

    model_config = ConfigDict(frozen=True)

    commits: list[ChangelogCommit] = Field(default_factory=list)
    ts: int = Field(description="Release time in milliseconds since the epoch")


ChangelogStore = dict[str, ReleaseEntry]

_store_adapter: TypeAdapter[ChangelogStore] = TypeAdapter(ChangelogStore)


# =============================================================================
# Reading
# =============================================================================


def load_changelog(path: Path) -> ChangelogStore:
    """Load changelog.json. A missing file is an empty changelog.

    Raises:
        ChangelogError: If the file cannot be read, is not valid JSON or has the
            wrong shape
    """
    if not path.exists():
        logger.debug("No structured changelog at %s", path)
        return {}
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ChangelogError(f"Cannot read changelog file {path}: {e}") from e
    try:
        return _store_adapter.validate_json(data)
    except ValidationError as e:
        raise ChangelogError(f"Invalid changelog file {path}:\n{e}") from e


class _HasSha(Protocol):
    @property
    def sha(self) -> str: ...


T = TypeVar("T", bound=_HasSha)


def get_release_cursor(store: Mapping[str, ReleaseEntry], version: str) -> ChangelogCommit | None:
    """Return the most recent commit recorded for ``version``, if any."""
    entry = store.get(version)
    if entry is None or not entry.commits:
        return None
    return entry.commits[0]


def trim_new_commits(
    commits: Sequence[T],
    cursor: ChangelogCommit | None,
) -> list[T]:
    """Keep only the commits newer than ``cursor``.

    ``commits`` is newest first. Everything from the cursor onwards was
    already released. If the cursor is not in ``commits`` the whole list
    is treated as new.
    """
    if cursor is None:
        return list(commits)
    for index, commit in enumerate(commits):
        if commit.sha == cursor.hash:
            return list(commits[:index])
    logger.debug("Release cursor %s not found in history; keeping all commits", cursor.hash)
    return list(commits)


# =============================================================================
# Writing
# =============================================================================


def add_release(
    store: Mapping[str, ReleaseEntry],
    version: str,
    commits: Iterable[ClassifiedCommit],
    ts: int | None = None,
) -> ChangelogStore:
    """Return a copy of ``store`` with a new entry for ``version``."""
    entry = ReleaseEntry(
        commits=[ChangelogCommit.from_classified(c) for c in commits],
        ts=ts if ts is not None else int(time.time() * 1000),
    )
    updated = dict(store)
    updated[version] = entry
    return updated


def save_changelog(path: Path, store: Mapping[str, ReleaseEntry]) -> None:
    data = _store_adapter.dump_python(dict(store), mode="json", by_alias=True)
    path.write_text(json.dumps(data, indent=2) + "\n")


def format_date(ts: int) -> str:
    """Format an epoch-milliseconds timestamp as local ``YYYY-MM-DD``."""
    return datetime.fromtimestamp(ts / 1000).strftime("%Y-%m-%d")


def ordered_releases(store: Mapping[str, ReleaseEntry]) -> list[tuple[str, ReleaseEntry]]:
    """Releases newest first.

    Sorted by timestamp; releases with equal timestamps keep reverse
    insertion order.
    """
    return sorted(reversed(list(store.items())), key=lambda item: item[1].ts, reverse=True)


def render_changelog(store: Mapping[str, ReleaseEntry], homepage: str) -> str:
    """Render the full CHANGELOG.md document."""
    base_url = homepage.rstrip("/")
    lines = ["# Changelog"]
    for version, entry in ordered_releases(store):
        lines.append("")
        lines.append(f"## v{version} ({format_date(entry.ts)})")
        lines.append("")
        for commit in entry.commits:
            lines.append(
                f"* [{commit.abbrev_hash}]({base_url}/commit/{commit.hash}) - {commit.subject}"
            )
    return "\n".join(lines) + "\n"


def write_changelog_markdown(path: Path, content: str) -> None:
    path.write_text(content)
