"""Reading and rewriting the project version in pyproject.toml.

The manifest is read with tomllib but written with a targeted regex
replacement, so formatting, comments and every other field are left
exactly as they were.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from release_flow.config.loader import find_pyproject_toml, load_pyproject_toml
from release_flow.exceptions import VersionNotFoundError

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

# [project] first (PEP 621), then [tool.poetry]
_SECTIONS = (r"project", r"tool\.poetry")
_VERSION_LINE = re.compile(r'^(version\s*=\s*)(["\'])[^"\']*\2', re.MULTILINE)


def resolve_pyproject_path(path: Path | None) -> Path:
    """Accept either a pyproject.toml file or a directory to search from."""
    if path is None:
        return find_pyproject_toml()
    if path.is_dir():
        return find_pyproject_toml(path)
    return path


def get_pyproject_version(path: Path | None = None) -> str:
    """Return the current release version of the project.

    Raises:
        VersionNotFoundError: If neither [project] nor [tool.poetry] has a version
    """
    pyproject_path = resolve_pyproject_path(path)
    data = load_pyproject_toml(pyproject_path)

    version = data.get("project", {}).get("version")
    if version is None:
        version = data.get("tool", {}).get("poetry", {}).get("version")
    if not isinstance(version, str):
        raise VersionNotFoundError(
            f"{pyproject_path} has no [project].version or [tool.poetry].version"
        )
    return version


def update_pyproject_version(path: Path | None, new_version: str) -> Path:
    """Write ``new_version`` into the manifest and return the file written.

    Only the ``version = "..."`` line of the first matching section is
    touched. The quote style of that line is kept.

    Args:
        path: The manifest itself, or a directory to search upwards from
        new_version: Version string, written as given

    Raises:
        VersionNotFoundError: If no section carries a version line
    """
    pyproject_path = resolve_pyproject_path(path)
    content = pyproject_path.read_text()

    for section in _SECTIONS:
        # The whole section, up to the next table header or EOF
        section_re = re.compile(rf"^\[{section}\][^\n]*\n.*?(?=^\[|\Z)", re.MULTILINE | re.DOTALL)
        match = section_re.search(content)
        if match is None:
            continue

        body, count = _VERSION_LINE.subn(
            lambda m: f"{m.group(1)}{m.group(2)}{new_version}{m.group(2)}",
            match.group(0),
            count=1,
        )
        if count:
            pyproject_path.write_text(content[: match.start()] + body + content[match.end() :])
            logger.debug("Set version %s in [%s] of %s", new_version, section, pyproject_path)
            return pyproject_path

    raise VersionNotFoundError(
        f"No version line to rewrite in the [project] or [tool.poetry] table of {pyproject_path}"
    )
