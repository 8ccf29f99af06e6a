"""Release orchestration.

A release is a strictly sequential state machine::

    IDLE -> COMMITS_FETCHED -> NO_NEW_COMMITS
                            -> COMMITS_PENDING -> VERSION_RECOMMENDED
                                -> DRY_RUN | CONFIRM_DECLINED
                                -> CONFIRMED -> PERSISTED -> COMMITTED
                                   -> TAGGED -> PUSHED -> PUBLISHED

Nothing is written before CONFIRMED. After that, a failing command
aborts the run and leaves the completed steps in place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

from release_flow.config.loader import find_pyproject_toml, get_project_homepage, load_config
from release_flow.core.changelog import (
    add_release,
    get_release_cursor,
    load_changelog,
    render_changelog,
    save_changelog,
    trim_new_commits,
    write_changelog_markdown,
)
from release_flow.core.commits import classify_commits, load_commit_types, recommend_bump
from release_flow.core.version import (
    BumpType,
    Version,
    VersionIntent,
    resolve_next_version,
)
from release_flow.exceptions import VersionParseError
from release_flow.project.publish import publish_package
from release_flow.project.pyproject import get_pyproject_version, update_pyproject_version

if TYPE_CHECKING:
    from collections.abc import Callable

    from rich.console import Console

    from release_flow.config.models import ReleaseFlowConfig
    from release_flow.core.changelog import ChangelogStore
    from release_flow.core.commits import ClassifiedCommit
    from release_flow.process import CommandRunner
    from release_flow.vcs.git import GitRepository

logger = logging.getLogger(__name__)


class ReleaseState(StrEnum):
    IDLE = "idle"
    COMMITS_FETCHED = "commits-fetched"
    NO_NEW_COMMITS = "no-new-commits"
    COMMITS_PENDING = "commits-pending"
    VERSION_RECOMMENDED = "version-recommended"
    DRY_RUN = "dry-run"
    CONFIRM_DECLINED = "confirm-declined"
    CONFIRMED = "confirmed"
    PERSISTED = "persisted"
    COMMITTED = "committed"
    TAGGED = "tagged"
    PUSHED = "pushed"
    PUBLISHED = "published"


@dataclass(frozen=True, slots=True)
class ReleaseContext:
    """Everything a release run needs, resolved once at startup."""

    project_path: Path
    pyproject_path: Path
    config: ReleaseFlowConfig
    intent: VersionIntent = field(default_factory=VersionIntent)
    assume_yes: bool = False
    dry_run: bool = False

    @classmethod
    def load(
        cls,
        project_path: Path,
        intent: VersionIntent,
        *,
        assume_yes: bool = False,
        dry_run: bool = False,
    ) -> ReleaseContext:
        project_path = project_path.resolve()
        return cls(
            project_path=project_path,
            pyproject_path=find_pyproject_toml(project_path),
            config=load_config(project_path),
            intent=intent,
            assume_yes=assume_yes,
            dry_run=dry_run,
        )

    def resolve(self, path: Path) -> Path:
        return path if path.is_absolute() else self.project_path / path

    @property
    def changelog_json_path(self) -> Path:
        return self.resolve(self.config.changelog.json_path)

    @property
    def changelog_path(self) -> Path:
        return self.resolve(self.config.changelog.path)

    @property
    def commit_types_path(self) -> Path | None:
        types_file = self.config.commits.types_file
        return self.resolve(types_file) if types_file else None


@dataclass
class ReleaseResult:
    state: ReleaseState
    current_version: str | None = None
    next_version: str | None = None
    new_commits: list[ClassifiedCommit] = field(default_factory=list)


class ReleasePipeline:
    """Run one release from commit retrieval to publishing."""

    def __init__(
        self,
        context: ReleaseContext,
        repo: GitRepository,
        runner: CommandRunner,
        confirm: Callable[[str], bool],
        console: Console,
    ) -> None:
        self.context = context
        self.repo = repo
        self.runner = runner
        self.confirm = confirm
        self.console = console
        self.state = ReleaseState.IDLE

    def _advance(self, state: ReleaseState) -> None:
        logger.debug("Release state %s -> %s", self.state, state)
        self.state = state

    def _done(self, message: str) -> None:
        self.console.print(f"  [green]✓[/] {message}")

    def run(self) -> ReleaseResult:
        ctx = self.context
        config = ctx.config

        current_version = get_pyproject_version(ctx.pyproject_path)
        store = load_changelog(ctx.changelog_json_path)
        commit_types = load_commit_types(ctx.commit_types_path)

        commits = self.repo.get_commits(max_count=config.commits.max_count)
        classified = classify_commits(commits, commit_types, config.release_commit_prefix)
        self._advance(ReleaseState.COMMITS_FETCHED)

        cursor = get_release_cursor(store, current_version)
        new_commits = trim_new_commits(classified, cursor)
        result = ReleaseResult(self.state, current_version, new_commits=new_commits)

        if not new_commits:
            self._advance(ReleaseState.NO_NEW_COMMITS)
            self.console.print(
                "[yellow bold]✗ No new commits found! No need for a new version.[/]"
            )
            result.state = self.state
            return result

        self._advance(ReleaseState.COMMITS_PENDING)
        plural = "s" if len(new_commits) != 1 else ""
        self.console.print(f"  [dim]{len(new_commits)} new commit{plural} found[/]")

        homepage = config.homepage or get_project_homepage(ctx.project_path)
        self._note_forced_version()
        next_version = resolve_next_version(current_version, ctx.intent, self._recommend)
        result.next_version = next_version
        self._advance(ReleaseState.VERSION_RECOMMENDED)
        self.console.print(
            f"  [dim]Recommended version:[/] [cyan]{current_version}[/] → "
            f"[bold green]{next_version}[/]"
        )

        if ctx.dry_run:
            self._advance(ReleaseState.DRY_RUN)
            self.console.print("\n[dim]Dry run, nothing was changed.[/]")
            result.state = self.state
            return result

        if not ctx.assume_yes and not self.confirm("Do you want to continue?"):
            self._advance(ReleaseState.CONFIRM_DECLINED)
            result.state = self.state
            return result
        self._advance(ReleaseState.CONFIRMED)

        self._persist(next_version, new_commits, store, homepage)
        self._commit_and_tag(next_version)
        self._push()
        if config.publish.enabled:
            self._publish(next_version)

        result.state = self.state
        return result

    def _note_forced_version(self) -> None:
        intent = self.context.intent
        if intent.bump is not None:
            self.console.print(
                f"  [dim]Arg --{intent.bump} will force {intent.bump} version bump[/]"
            )
        elif intent.version:
            self.console.print(
                f"  [dim]Arg --version {intent.version} will force version {intent.version}[/]"
            )

    def _recommend(self) -> BumpType:
        tag = self.repo.get_latest_tag(f"{self.context.config.tag_prefix}*")
        logger.debug("Recommending bump from commits since %s", tag or "the first commit")
        return recommend_bump(self.repo.get_commits_since_tag(tag))

    def _persist(
        self,
        next_version: str,
        new_commits: list[ClassifiedCommit],
        store: ChangelogStore,
        homepage: str,
    ) -> None:
        ctx = self.context

        update_pyproject_version(ctx.pyproject_path, next_version)
        self._done(f"Updated {ctx.pyproject_path.name} to version {next_version}")

        store = add_release(store, next_version, new_commits)
        save_changelog(ctx.changelog_json_path, store)
        self._done(f"Added new version and commits to {ctx.changelog_json_path.name}")

        write_changelog_markdown(ctx.changelog_path, render_changelog(store, homepage))
        self._done(f"Updated {ctx.changelog_path.name}")
        self._advance(ReleaseState.PERSISTED)

    def _commit_and_tag(self, next_version: str) -> None:
        ctx = self.context

        self.repo.add([ctx.pyproject_path, ctx.changelog_json_path, ctx.changelog_path])
        self.repo.commit(f"{ctx.config.release_commit_prefix}{next_version}")
        self._done("Committed manifest and changelogs")
        self._advance(ReleaseState.COMMITTED)

        tag = f"{ctx.config.tag_prefix}{next_version}"
        self.repo.create_tag(tag, f"Version {next_version}")
        self._done(f"Added tag {tag}")
        self._advance(ReleaseState.TAGGED)

    def _push(self) -> None:
        remote = self.context.config.git_remote
        self.repo.push(remote)
        self.repo.push_tags(remote)
        self._done("Pushed to git")
        self._advance(ReleaseState.PUSHED)

    def _publish(self, next_version: str) -> None:
        ctx = self.context
        channel = publish_package(
            self.runner,
            ctx.project_path,
            ctx.config.publish,
            prerelease=is_prerelease_release(ctx.intent, next_version),
        )
        self._done(f"Published with {ctx.config.publish.tool} ({channel})")
        self._advance(ReleaseState.PUBLISHED)


def is_prerelease_release(intent: VersionIntent, next_version: str) -> bool:
    """A release is a pre-release when forced with --prerelease or when the
    resolved version carries a pre-release part."""
    if intent.bump is BumpType.PRERELEASE:
        return True
    try:
        return Version.parse(next_version).is_prerelease
    except VersionParseError:
        return False
