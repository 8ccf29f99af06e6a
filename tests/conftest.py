"""Shared fixtures for release-flow tests."""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

import pytest
from rich.console import Console

from release_flow.process import CommandResult
from release_flow.vcs.git import Commit

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path


PYPROJECT = """\
[project]
name = "test-project"
version = "1.0.0"
description = "A test project"

[project.urls]
Homepage = "https://example.com/repo"

[tool.release-flow]
tag_prefix = "v"
"""


def make_commit(sha: str, subject: str, body: str = "") -> Commit:
    return Commit(
        sha=sha,
        short_sha=sha[:7],
        subject=subject,
        author_name="Test",
        author_email="test@test.com",
        date=datetime(2024, 1, 1, 12, 0, 0),
        body=body,
    )


def format_log(commits: Sequence[Commit]) -> str:
    """Render commits the way ``git log --format=...`` prints them."""
    records = []
    for c in commits:
        fields = [
            c.sha,
            c.short_sha,
            c.subject,
            c.author_name,
            c.author_email,
            c.date.isoformat(),
            c.body,
        ]
        records.append("\x1f".join(fields) + "\x1e")
    return "\n".join(records) + "\n"


@dataclass
class FakeRunner:
    """CommandRunner that records invocations instead of running them.

    ``log`` is what ``git log`` returns, ``tag`` what ``git describe``
    returns (None means no tag), ``since_tag_log`` and
    ``since_tag_error`` answer ``git log <tag>..HEAD``, and ``fail`` maps a
    ``"command subcommand"`` key to the exit code it should fail with.
    """

    log: list[Commit] = field(default_factory=list)
    since_tag_log: list[Commit] | None = None
    since_tag_error: str | None = None
    tag: str | None = None
    fail: dict[str, int] = field(default_factory=dict)
    calls: list[tuple[str, list[str]]] = field(default_factory=list)

    def run(self, command: str, args: Sequence[str], *, cwd: Path | None = None) -> CommandResult:
        args = list(args)
        self.calls.append((command, args))
        display = " ".join([command, *args])

        key = f"{command} {args[0]}" if args else command
        if key in self.fail:
            return CommandResult(display, self.fail[key], stderr=f"{key} failed")

        if command == "git" and args[0] == "log":
            commits = self.log
            if any(".." in a for a in args):
                if self.since_tag_error is not None:
                    return CommandResult(display, 128, stderr=self.since_tag_error)
                if self.since_tag_log is not None:
                    commits = self.since_tag_log
            return CommandResult(display, 0, stdout=format_log(commits))
        if command == "git" and args[0] == "describe":
            if self.tag is None:
                return CommandResult(display, 128, stderr="fatal: No names found")
            return CommandResult(display, 0, stdout=f"{self.tag}\n")
        return CommandResult(display, 0)

    def commands(self) -> list[str]:
        """Invocations as ``"command arg arg"`` strings, read-only git queries excluded."""
        return [
            " ".join([cmd, *args])
            for cmd, args in self.calls
            if not (cmd == "git" and args and args[0] in ("log", "describe"))
        ]


@pytest.fixture
def temp_project(tmp_path: Path) -> Path:
    """A project directory with a pyproject.toml at version 1.0.0."""
    (tmp_path / "pyproject.toml").write_text(PYPROJECT)
    return tmp_path


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def quiet_console() -> Console:
    return Console(file=io.StringIO(), force_terminal=False, width=120)


@pytest.fixture
def feat_commit() -> Commit:
    return make_commit("feat1234567890", "feat: add user authentication")


@pytest.fixture
def fix_commit() -> Commit:
    return make_commit("fix1234567890", "fix(core): handle null response")


@pytest.fixture
def breaking_commit() -> Commit:
    return make_commit(
        "break1234567890",
        "feat(api): redesign endpoints",
        body="BREAKING CHANGE: the v1 endpoints are removed",
    )


@pytest.fixture
def sample_commits() -> list[Commit]:
    """Newest first, as git log returns them."""
    return [
        make_commit("d4", "docs: update readme"),
        make_commit("c3", "chore(release): 1.0.0"),
        make_commit("b2", "fix(parser): handle empty input"),
        make_commit("a1", "feat: add user authentication"),
        make_commit("z0", "Initial commit"),
    ]


@pytest.fixture
def commit_factory():
    """Build a Commit from a sha, a subject and an optional body."""
    return make_commit
