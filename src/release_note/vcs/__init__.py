"""Version control access."""

from __future__ import annotations

from release_note.vcs.base import RawCommit, TagRef, VcsBackend
from release_note.vcs.git import GitRepository

__all__ = [
    "GitRepository",
    "RawCommit",
    "TagRef",
    "VcsBackend",
]
