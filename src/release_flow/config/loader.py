"""Load release-flow configuration from pyproject.toml."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from release_flow.config.models import ReleaseFlowConfig
from release_flow.exceptions import ConfigNotFoundError, ConfigValidationError

logger = logging.getLogger(__name__)

TOOL_KEY = "release-flow"
HOMEPAGE_KEYS = ("Homepage", "homepage", "Repository", "repository", "Source", "source")


def find_pyproject_toml(start: Path | None = None) -> Path:
    """Walk up from ``start`` until a pyproject.toml is found.

    Raises:
        ConfigNotFoundError: If no pyproject.toml exists in any parent
    """
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / "pyproject.toml"
        if candidate.is_file():
            return candidate
    raise ConfigNotFoundError(f"No pyproject.toml found in {current} or any parent directory")


def load_pyproject_toml(path: Path) -> dict[str, Any]:
    """Parse a pyproject.toml file.

    Raises:
        ConfigNotFoundError: If the file does not exist
        ConfigValidationError: If the file is not valid TOML
    """
    if not path.is_file():
        raise ConfigNotFoundError(f"File not found: {path}")
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigValidationError(f"Invalid TOML in {path}: {e}") from e


def extract_release_flow_config(pyproject: dict[str, Any]) -> dict[str, Any]:
    """Return the ``[tool.release-flow]`` table, or an empty dict."""
    return pyproject.get("tool", {}).get(TOOL_KEY, {})


def load_config(project_path: Path | None = None) -> ReleaseFlowConfig:
    """Load and validate configuration for the project at ``project_path``."""
    pyproject_path = find_pyproject_toml(project_path)
    data = extract_release_flow_config(load_pyproject_toml(pyproject_path))
    logger.debug("Loaded [tool.%s] from %s: %s", TOOL_KEY, pyproject_path, data)
    try:
        return ReleaseFlowConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid [tool.{TOOL_KEY}] configuration:\n{e}") from e


def get_project_homepage(project_path: Path | None = None) -> str:
    """Read the repository URL from ``[project.urls]``.

    The first of Homepage, Repository or Source that is present wins.
    Poetry's ``homepage``/``repository`` keys are used as a fallback.
    """
    pyproject_path = find_pyproject_toml(project_path)
    data = load_pyproject_toml(pyproject_path)

    urls = data.get("project", {}).get("urls", {})
    poetry = data.get("tool", {}).get("poetry", {})
    for key in HOMEPAGE_KEYS:
        value = urls.get(key) or poetry.get(key)
        if value:
            return str(value)

    raise ConfigValidationError(
        f"No homepage URL in {pyproject_path}. "
        f"Set [project.urls].Homepage or [tool.{TOOL_KEY}].homepage."
    )
