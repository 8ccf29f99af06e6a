"""Command-line interface for release-flow."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from typer.core import TyperGroup

from release_flow import __version__
from release_flow.cli.commands.publish import run_publish
from release_flow.core.version import BumpType, VersionIntent

if TYPE_CHECKING:
    import click

console = Console()
err_console = Console(stderr=True)


class ReleaseGroup(TyperGroup):
    """Command group that accepts options before the subcommand name.

    ``release-flow --major publish`` is treated like
    ``release-flow publish --major``. Anything that is not a known
    command prints a message and exits cleanly.
    """

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        for index, arg in enumerate(args):
            if arg in self.commands:
                args = [arg, *args[:index], *args[index + 1 :]]
                break
        else:
            if args and args[0] not in ctx.help_option_names:
                console.print(f'[red bold]Unknown command "{args[0]}"[/]')
                ctx.exit(0)
        return super().parse_args(ctx, args)


app = typer.Typer(
    name="release-flow",
    cls=ReleaseGroup,
    help="Conventional-commit release automation.",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def callback() -> None:
    """Bump the version, write the changelogs, tag, push and publish."""


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def bump_from_flags(major: bool, minor: bool, patch: bool, prerelease: bool) -> BumpType | None:
    """Forced bump kind; the first flag set in major, minor, patch, prerelease order wins."""
    for enabled, bump_type in (
        (major, BumpType.MAJOR),
        (minor, BumpType.MINOR),
        (patch, BumpType.PATCH),
        (prerelease, BumpType.PRERELEASE),
    ):
        if enabled:
            return bump_type
    return None


@app.command()
def publish(
    major: Annotated[bool, typer.Option("--major", help="Force a major version bump")] = False,
    minor: Annotated[bool, typer.Option("--minor", help="Force a minor version bump")] = False,
    patch: Annotated[bool, typer.Option("--patch", help="Force a patch version bump")] = False,
    prerelease: Annotated[
        bool,
        typer.Option(
            "--prerelease",
            "--pre",
            help="Force a pre-release bump and publish outside the default channel",
        ),
    ] = False,
    version: Annotated[
        str | None,
        typer.Option("--version", "-v", help="Release this exact version"),
    ] = None,
    preid: Annotated[
        str | None,
        typer.Option("--preid", help="Pre-release identifier, e.g. alpha, beta, rc"),
    ] = None,
    path: Annotated[
        str | None,
        typer.Option("--path", help="Project directory (defaults to the current directory)"),
    ] = None,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation")] = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show the recommended version and stop"),
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", help="Enable debug logging")] = False,
) -> None:
    """Release a new version from the commits since the last release."""
    configure_logging(verbose)
    logging.getLogger(__name__).debug("release-flow %s", __version__)

    intent = VersionIntent(
        bump=bump_from_flags(major, minor, patch, prerelease),
        version=version,
        prerelease_id=preid,
    )
    run_publish(
        path=path,
        intent=intent,
        assume_yes=yes,
        dry_run=dry_run,
        console=console,
        err_console=err_console,
    )


def main() -> None:
    app()
