"""The version control capability consumed by history resolution.

History resolution depends only on :class:`VcsBackend`, so tests can
substitute a backend that replays a scripted commit graph.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True)
class RawCommit:
    """A commit as read from the repository, before message parsing."""

    sha: str
    message: str
    author_name: str
    author_email: str
    timestamp: int
    parents: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_root(self) -> bool:
        return not self.parents


@dataclass(frozen=True)
class TagRef:
    """A tag peeled to its target commit."""

    name: str
    commit_id: str
    timestamp: int


class VcsBackend(Protocol):
    """Read-only access to a repository's commit graph."""

    def head(self) -> str:
        """Commit id of HEAD.

        Raises:
            ReferenceNotFoundError: If HEAD does not point at a commit
        """
        ...

    def resolve_reference(self, reference: str) -> str:
        """Resolve a hash, tag, branch or relative reference to a commit id.

        Raises:
            ReferenceNotFoundError: If the reference cannot be resolved
        """
        ...

    def list_tags(self) -> list[TagRef]:
        """All tags that peel to a commit, in listing order."""
        ...

    def walk(self, from_id: str, exclude: str | None = None) -> Iterator[RawCommit]:
        """Commits reachable from ``from_id`` and not from ``exclude``.

        Yields in topological order with a commit-time tie-break, newest first.

        Raises:
            HistoryTraversalError: If the walk fails
        """
        ...

    def touches_path(self, commit: RawCommit, path: str) -> bool:
        """Whether a commit changes anything under ``path``.

        A root commit touches ``path`` if it exists in its tree; any other
        commit is compared against its first parent.
        """
        ...
