"""Pydantic models for the ``[tool.release-flow]`` configuration table."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CommitsConfig(BaseModel):
    """How commits are read and classified."""

    model_config = ConfigDict(extra="forbid")

    types_file: Path | None = Field(
        default=None,
        description="JSON registry of commit types; the bundled one is used when unset",
    )
    max_count: int = Field(default=100, ge=1, description="Number of commits read from git log")


class ChangelogConfig(BaseModel):
    """Where the structured and rendered changelogs live."""

    model_config = ConfigDict(extra="forbid")

    json_path: Path = Path("changelog.json")
    path: Path = Path("CHANGELOG.md")


class PublishConfig(BaseModel):
    """Package registry step."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    tool: Literal["uv", "twine", "npm"] = "uv"
    prerelease_index: str = Field(
        default="testpypi",
        description="Index (uv) or repository (twine) used for pre-releases",
    )
    prerelease_tag: str = Field(
        default="dev",
        description="Distribution tag used for npm pre-releases",
    )


class ReleaseFlowConfig(BaseModel):
    """Root configuration model."""

    model_config = ConfigDict(extra="forbid")

    tag_prefix: str = "v"
    homepage: str | None = Field(
        default=None,
        description="Repository URL used for commit links; read from [project.urls] when unset",
    )
    release_commit_prefix: str = "chore(release): "
    git_remote: str | None = None

    commits: CommitsConfig = Field(default_factory=CommitsConfig)
    changelog: ChangelogConfig = Field(default_factory=ChangelogConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)

    @field_validator("release_commit_prefix")
    @classmethod
    def _prefix_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("release_commit_prefix cannot be empty")
        return value

