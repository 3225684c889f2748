"""Exception hierarchy for release-note.

Errors raised while resolving references or walking history are fatal and
propagate to the caller. Parsing and classification never raise.
"""

from __future__ import annotations


class ReleaseNoteError(Exception):
    """Base class for all release-note errors."""


# =============================================================================
# Configuration
# =============================================================================


class ConfigError(ReleaseNoteError):
    """Configuration could not be loaded."""


class ConfigNotFoundError(ConfigError):
    """No pyproject.toml could be found."""


class ConfigValidationError(ConfigError):
    """The [tool.release-note] table is malformed."""


# =============================================================================
# Git
# =============================================================================


class GitError(ReleaseNoteError):
    """A git command failed.

    Args:
        message: Human readable description
        stderr: Captured stderr of the failing git command, if any
    """

    def __init__(self, message: str, stderr: str | None = None) -> None:
        super().__init__(message)
        self.stderr = stderr

    def __str__(self) -> str:
        message = super().__str__()
        if self.stderr and self.stderr.strip():
            return f"{message}: {self.stderr.strip()}"
        return message


class RepositoryNotFoundError(GitError):
    """The path is not inside a git work tree."""


class ReferenceNotFoundError(GitError):
    """A revision could not be resolved to a commit."""

    def __init__(self, reference: str, stderr: str | None = None) -> None:
        super().__init__(f"failed to resolve reference '{reference}'", stderr=stderr)
        self.reference = reference


class HistoryTraversalError(GitError):
    """Walking the commit graph failed part way through."""


# =============================================================================
# Changelog
# =============================================================================


class ChangelogError(ReleaseNoteError):
    """The release note could not be rendered."""
