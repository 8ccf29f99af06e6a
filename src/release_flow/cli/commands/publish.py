"""Implementation of the 'publish' command.

The publish command runs a complete release: version bump, changelogs,
release commit, tag, push and package upload.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm

from release_flow.core.release import ReleaseContext, ReleasePipeline, ReleaseState
from release_flow.exceptions import CommandError, ReleaseFlowError
from release_flow.process import SubprocessRunner
from release_flow.vcs import GitRepository

if TYPE_CHECKING:
    from rich.console import Console

    from release_flow.core.version import VersionIntent


def run_publish(
    path: str | None,
    intent: VersionIntent,
    assume_yes: bool,
    dry_run: bool,
    console: Console,
    err_console: Console,
) -> ReleaseState:
    """Run the publish command.

    Args:
        path: Optional path to project directory
        intent: Forced bump kind or version from the command line
        assume_yes: Skip the confirmation prompt
        dry_run: Stop after showing the recommended version
        console: Console for standard output
        err_console: Console for error output

    Returns:
        The state the release finished in
    """
    project_path = Path(path) if path else Path.cwd()

    try:
        context = ReleaseContext.load(
            project_path,
            intent,
            assume_yes=assume_yes,
            dry_run=dry_run,
        )
    except ReleaseFlowError as e:
        err_console.print(f"[red]Error loading config:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    runner = SubprocessRunner()
    pipeline = ReleasePipeline(
        context=context,
        repo=GitRepository(context.project_path, runner),
        runner=runner,
        confirm=lambda question: Confirm.ask(question, console=console, default=False),
        console=console,
    )

    console.print()
    console.print("[bold]Publish new version:[/]")
    console.print()

    try:
        result = pipeline.run()
    except CommandError as e:
        err_console.print(
            f"\n[red]Release step failed[/] (state: {pipeline.state}):\n{escape(str(e))}"
        )
        err_console.print(
            "[yellow]Completed steps were not rolled back; finish the release manually.[/]"
        )
        raise SystemExit(1) from e
    except ReleaseFlowError as e:
        err_console.print(f"[red]Error:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    if result.state in (ReleaseState.PUBLISHED, ReleaseState.PUSHED):
        console.print()
        console.print(
            Panel(
                f"[green]Released version {result.next_version}![/]\n\n"
                f"  • {len(result.new_commits)} commit(s) in the changelog\n"
                f"  • Tagged [cyan]{context.config.tag_prefix}{result.next_version}[/]",
                title="[green]Release Complete[/]",
                border_style="green",
            )
        )
    return result.state
