"""Exception hierarchy for release-flow.

All errors raised on purpose derive from ReleaseFlowError so the CLI
can report them uniformly. Anything else is a bug and is allowed to
propagate with its traceback.
"""

from __future__ import annotations


class ReleaseFlowError(Exception):
    """Base class for all release-flow errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# Configuration


class ConfigError(ReleaseFlowError):
    """Configuration could not be loaded."""


class ConfigNotFoundError(ConfigError):
    """pyproject.toml (or another required file) was not found."""


class ConfigValidationError(ConfigError):
    """Configuration values failed validation."""


# Project manifest


class ProjectError(ReleaseFlowError):
    """The project manifest could not be read or updated."""


class VersionNotFoundError(ProjectError):
    """No version field was found in the manifest."""


class VersionParseError(ReleaseFlowError):
    """A version string is not valid semantic versioning."""


# Git and external commands


class GitError(ReleaseFlowError):
    """A git query failed."""

    def __init__(self, message: str, stderr: str | None = None) -> None:
        self.stderr = stderr
        if stderr:
            message = f"{message}: {stderr.strip()}"
        super().__init__(message)


class CommandError(ReleaseFlowError):
    """An external command exited with a non-zero status."""

    def __init__(
        self,
        command: str,
        returncode: int,
        stderr: str | None = None,
    ) -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        message = f"Command '{command}' failed with exit code {returncode}"
        if stderr:
            message = f"{message}\n{stderr.strip()}"
        super().__init__(message)


class RecommendationError(ReleaseFlowError):
    """The version bump recommendation could not be computed."""


# Changelog


class ChangelogError(ReleaseFlowError):
    """The structured changelog could not be read or written."""
