"""Tests for git access and command execution."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING
from unittest.mock import MagicMock, patch

import pytest

from release_flow.exceptions import CommandError, GitError
from release_flow.process import CommandResult, SubprocessRunner
from release_flow.vcs.git import GitRepository, parse_log

if TYPE_CHECKING:
    from pathlib import Path


class TestParseLog:
    """Tests for parse_log()."""

    def test_parse_records(self):
        """Records split on the separators into Commit fields."""
        output = (
            "a" * 40 + "\x1faaaaaaa\x1ffeat: add x\x1fAda\x1fada@example.com"
            "\x1f2024-03-01T10:00:00+01:00\x1f\x1e\n"
            + "b" * 40 + "\x1fbbbbbbb\x1ffix: y\x1fBob\x1fbob@example.com"
            "\x1f2024-02-01T09:00:00+00:00\x1fLonger body\n\nBREAKING CHANGE: z\n\x1e\n"
        )

        commits = parse_log(output)

        assert [c.short_sha for c in commits] == ["aaaaaaa", "bbbbbbb"]
        assert commits[0].subject == "feat: add x"
        assert commits[0].date == datetime(2024, 3, 1, 10, tzinfo=timezone(timedelta(hours=1)))
        assert commits[0].body == ""
        assert commits[1].body == "Longer body\n\nBREAKING CHANGE: z"

    def test_empty_output(self):
        """No output means no commits."""
        assert parse_log("") == []

    def test_malformed_record(self):
        """A record with missing fields raises GitError."""
        with pytest.raises(GitError):
            parse_log("abc\x1fonly two\x1e")


class TestGitRepository:
    """Tests for GitRepository."""

    def test_get_commits(self, fake_runner, commit_factory, tmp_path: Path):
        """git log is called with the commit limit and parsed."""
        fake_runner.log = [commit_factory("b2", "fix: y"), commit_factory("a1", "feat: x")]
        repo = GitRepository(tmp_path, fake_runner)

        commits = repo.get_commits(max_count=50)

        assert [c.sha for c in commits] == ["b2", "a1"]
        command, args = fake_runner.calls[0]
        assert command == "git"
        assert args[:2] == ["log", "-n50"]

    def test_get_commits_failure_raises_git_error(self, fake_runner, tmp_path: Path):
        """A failing git log raises GitError."""
        fake_runner.fail["git log"] = 128
        repo = GitRepository(tmp_path, fake_runner)

        with pytest.raises(GitError, match="git log failed"):
            repo.get_commits()

    def test_get_commits_missing_git(self, tmp_path: Path):
        """A missing git binary surfaces as GitError."""
        runner = MagicMock()
        runner.run.side_effect = CommandError("git", 127, "git: command not found on PATH")
        repo = GitRepository(tmp_path, runner)

        with pytest.raises(GitError, match="command not found"):
            repo.get_commits()

    def test_latest_tag(self, fake_runner, tmp_path: Path):
        """git describe is matched against the tag pattern."""
        fake_runner.tag = "v1.2.0"
        repo = GitRepository(tmp_path, fake_runner)

        assert repo.get_latest_tag("v*") == "v1.2.0"
        assert fake_runner.calls[0] == (
            "git",
            ["describe", "--tags", "--abbrev=0", "--match", "v*"],
        )

    def test_no_tag(self, fake_runner, tmp_path: Path):
        """A repository without tags has no latest tag."""
        assert GitRepository(tmp_path, fake_runner).get_latest_tag() is None

    def test_commits_since_tag(self, fake_runner, tmp_path: Path):
        """Commits since a tag use a tag..HEAD range."""
        repo = GitRepository(tmp_path, fake_runner)

        repo.get_commits_since_tag("v1.2.0")

        assert fake_runner.calls[0][1][-1] == "v1.2.0..HEAD"

    def test_side_effects(self, fake_runner, tmp_path: Path):
        """add, commit, tag and push run the expected git commands."""
        repo = GitRepository(tmp_path, fake_runner)

        repo.add(["pyproject.toml", "CHANGELOG.md"])
        repo.commit("chore(release): 1.1.0")
        repo.create_tag("v1.1.0", "Version 1.1.0")
        repo.push()
        repo.push_tags("origin")

        assert fake_runner.commands() == [
            "git add pyproject.toml CHANGELOG.md",
            "git commit -m chore(release): 1.1.0",
            "git tag -a v1.1.0 -m Version 1.1.0",
            "git push",
            "git push origin --tags",
        ]

    def test_failed_push_raises(self, fake_runner, tmp_path: Path):
        """A rejected push raises CommandError."""
        fake_runner.fail["git push"] = 1

        with pytest.raises(CommandError, match="git push"):
            GitRepository(tmp_path, fake_runner).push()


class TestSubprocessRunner:
    """Tests for SubprocessRunner and CommandResult."""

    def test_run(self, tmp_path: Path):
        """The resolved binary runs in the given directory with output captured."""
        runner = SubprocessRunner()

        with (
            patch("shutil.which", return_value="/usr/bin/git"),
            patch("subprocess.run") as mock_run,
        ):
            mock_run.return_value = MagicMock(returncode=0, stdout="out", stderr="")
            result = runner.run("git", ["status"], cwd=tmp_path)

        assert result == CommandResult("git status", 0, "out", "")
        mock_run.assert_called_once()
        assert mock_run.call_args[0][0] == ["/usr/bin/git", "status"]
        assert mock_run.call_args[1]["cwd"] == tmp_path

    def test_binary_resolved_once(self):
        """Binary lookups are cached."""
        runner = SubprocessRunner()

        with patch("shutil.which", return_value="/usr/bin/git") as mock_which:
            runner.which("git")
            runner.which("git")

        mock_which.assert_called_once_with("git")

    def test_missing_binary(self):
        """A binary not on PATH raises CommandError."""
        with (
            patch("shutil.which", return_value=None),
            pytest.raises(CommandError, match="not found"),
        ):
            SubprocessRunner().run("npm", ["publish"])

    def test_check(self):
        """check() passes on success and raises with stderr on failure."""
        assert CommandResult("git push", 0).check().ok

        with pytest.raises(CommandError) as exc_info:
            CommandResult("git push", 1, stderr="rejected").check()
        assert exc_info.value.returncode == 1
        assert "rejected" in str(exc_info.value)
