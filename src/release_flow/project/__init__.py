"""Project manifest and package publishing."""

from __future__ import annotations

from release_flow.project.publish import publish_package
from release_flow.project.pyproject import get_pyproject_version, update_pyproject_version

__all__ = ["get_pyproject_version", "publish_package", "update_pyproject_version"]
