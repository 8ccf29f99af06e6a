"""Configuration management for release-flow."""

from __future__ import annotations

from release_flow.config.loader import load_config
from release_flow.config.models import (
    ChangelogConfig,
    CommitsConfig,
    PublishConfig,
    ReleaseFlowConfig,
)

__all__ = [
    "ChangelogConfig",
    "CommitsConfig",
    "PublishConfig",
    "ReleaseFlowConfig",
    "load_config",
]
