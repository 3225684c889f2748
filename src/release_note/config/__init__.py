"""Configuration management for release-note."""

from __future__ import annotations

from release_note.config.loader import load_config
from release_note.config.models import (
    ChangelogConfig,
    HistoryConfig,
    ReleaseNoteConfig,
)

__all__ = [
    "ChangelogConfig",
    "HistoryConfig",
    "ReleaseNoteConfig",
    "load_config",
]
