"""Package registry publishing.

Pre-releases never go to the default channel: uv and twine upload to
the configured pre-release index, npm publishes under a non-default
dist-tag.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

from release_flow.exceptions import ProjectError

if TYPE_CHECKING:
    from pathlib import Path

    from release_flow.config.models import PublishConfig
    from release_flow.process import CommandRunner

logger = logging.getLogger(__name__)


def build_publish_commands(
    config: PublishConfig,
    *,
    prerelease: bool,
) -> list[tuple[str, list[str]]]:
    """Return the ``(command, args)`` pairs that build and publish the package.

    For twine the distribution files are appended at run time, after the
    build step produced them.
    """
    if config.tool == "uv":
        publish = ["publish"]
        if prerelease:
            publish.extend(["--index", config.prerelease_index])
        return [("uv", ["build"]), ("uv", publish)]

    if config.tool == "twine":
        upload = ["upload"]
        if prerelease:
            upload.extend(["--repository", config.prerelease_index])
        return [(sys.executable, ["-m", "build"]), ("twine", upload)]

    if config.tool == "npm":
        args = ["publish"]
        if prerelease:
            args.append(f"--tag={config.prerelease_tag}")
        return [("npm", args)]

    raise ProjectError(f"Unsupported publish tool: {config.tool}")


def publish_package(
    runner: CommandRunner,
    project_path: Path,
    config: PublishConfig,
    *,
    prerelease: bool,
) -> str:
    """Build and publish the package. Returns a description of the channel used.

    Raises:
        CommandError: If a build or publish command fails
    """
    commands = build_publish_commands(config, prerelease=prerelease)
    for command, args in commands:
        if command == "twine":
            args = [*args, *sorted(str(p) for p in (project_path / "dist").glob("*"))]
        logger.debug("Publishing step: %s %s", command, " ".join(args))
        runner.run(command, args, cwd=project_path).check()

    if not prerelease:
        return "default channel"
    if config.tool == "npm":
        return f"--tag={config.prerelease_tag}"
    return f"index {config.prerelease_index}"
