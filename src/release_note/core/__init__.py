"""Core business logic for release-note.

This module contains the fundamental building blocks:
- Semantic version tag parsing
- Commit message parsing (trailers, linked issues, body)
- Conventional commit classification
- Release range resolution and history traversal
- Markdown release note rendering
"""

from __future__ import annotations

from release_note.core.changelog import render_changelog, write_changelog
from release_note.core.commits import (
    CategorizedCommits,
    Commit,
    CommitCategory,
    Contributor,
    categorize_commits,
    classify_commit,
)
from release_note.core.history import (
    ResolvedRange,
    Tag,
    history,
    load_tags,
    resolve_range,
    walk_history,
)
from release_note.core.message import (
    CoAuthoredBy,
    LinkedIssue,
    OtherTrailer,
    ReviewedBy,
    SignedOffBy,
    Trailer,
    parse_message,
)
from release_note.core.template import resolve_template
from release_note.core.version import Version, is_semver_tag, parse_version

__all__ = [
    # Changelog
    "render_changelog",
    "write_changelog",
    "resolve_template",
    # Commits
    "CategorizedCommits",
    "Commit",
    "CommitCategory",
    "Contributor",
    "categorize_commits",
    "classify_commit",
    # History
    "ResolvedRange",
    "Tag",
    "history",
    "load_tags",
    "resolve_range",
    "walk_history",
    # Message
    "CoAuthoredBy",
    "LinkedIssue",
    "OtherTrailer",
    "ReviewedBy",
    "SignedOffBy",
    "Trailer",
    "parse_message",
    # Version
    "Version",
    "is_semver_tag",
    "parse_version",
]
