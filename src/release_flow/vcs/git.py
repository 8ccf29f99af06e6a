"""Git repository access.

Reads history through ``git log`` with a delimiter-separated format
and performs the release side effects (add, commit, tag, push). All
process execution goes through a CommandRunner.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from release_flow.exceptions import CommandError, GitError
from release_flow.process import SubprocessRunner

if TYPE_CHECKING:
    from collections.abc import Sequence

    from release_flow.process import CommandResult, CommandRunner

logger = logging.getLogger(__name__)

_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
# sha, short sha, subject, author name, author email, author date, body
_LOG_FORMAT = _FIELD_SEP.join(["%H", "%h", "%s", "%an", "%ae", "%aI", "%b"]) + _RECORD_SEP


@dataclass(frozen=True, slots=True)
class Commit:
    """A single commit as returned by ``git log``."""

    sha: str
    short_sha: str
    subject: str
    author_name: str
    author_email: str
    date: datetime
    body: str = ""


class GitRepository:
    """A git working tree at ``path``."""

    def __init__(self, path: Path | str, runner: CommandRunner | None = None) -> None:
        self.path = Path(path)
        self.runner: CommandRunner = runner or SubprocessRunner()

    def _git(self, *args: str) -> CommandResult:
        return self.runner.run("git", args, cwd=self.path)

    def _query(self, *args: str) -> str:
        """Run a read-only git command, wrapping failures in GitError."""
        try:
            result = self._git(*args)
        except CommandError as e:
            raise GitError(f"git {args[0]} failed", stderr=e.stderr) from e
        if not result.ok:
            raise GitError(f"git {args[0]} failed", stderr=result.stderr)
        return result.stdout

    # History

    def get_commits(self, max_count: int = 100, revision: str | None = None) -> list[Commit]:
        """Return up to ``max_count`` commits, newest first.

        Raises:
            GitError: If git log fails (not a repository, no commits, ...)
        """
        args = ["log", f"-n{max_count}", f"--format={_LOG_FORMAT}"]
        if revision:
            args.append(revision)
        output = self._query(*args)
        commits = parse_log(output)
        logger.debug("Read %d commits from %s", len(commits), self.path)
        return commits

    def get_latest_tag(self, pattern: str | None = None) -> str | None:
        """Return the most recent tag reachable from HEAD, or None."""
        args = ["describe", "--tags", "--abbrev=0"]
        if pattern:
            args.extend(["--match", pattern])
        result = self._git(*args)
        if not result.ok:
            return None
        tag = result.stdout.strip()
        return tag or None

    def get_commits_since_tag(self, tag: str | None, max_count: int = 1000) -> list[Commit]:
        """Return commits after ``tag`` (all commits when ``tag`` is None)."""
        revision = f"{tag}..HEAD" if tag else None
        return self.get_commits(max_count=max_count, revision=revision)

    # Release side effects

    def add(self, paths: Sequence[Path | str]) -> None:
        self._git("add", *(str(p) for p in paths)).check()

    def commit(self, message: str) -> None:
        self._git("commit", "-m", message).check()

    def create_tag(self, name: str, message: str) -> None:
        self._git("tag", "-a", name, "-m", message).check()

    def push(self, remote: str | None = None) -> None:
        args = ["push"] if remote is None else ["push", remote]
        self._git(*args).check()

    def push_tags(self, remote: str | None = None) -> None:
        args = ["push", "--tags"] if remote is None else ["push", remote, "--tags"]
        self._git(*args).check()


def parse_log(output: str) -> list[Commit]:
    """Parse ``git log`` output produced with the release-flow format."""
    commits = []
    for record in output.split(_RECORD_SEP):
        record = record.strip("\n")
        if not record:
            continue
        fields = record.split(_FIELD_SEP)
        if len(fields) != 7:
            raise GitError(f"Unexpected git log record: {record!r}")
        sha, short_sha, subject, author_name, author_email, date, body = fields
        commits.append(
            Commit(
                sha=sha,
                short_sha=short_sha,
                subject=subject,
                author_name=author_name,
                author_email=author_email,
                date=datetime.fromisoformat(date),
                body=body.strip(),
            )
        )
    return commits
