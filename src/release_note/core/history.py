"""Release range resolution and history traversal.

Given optional ``from``/``to`` references, work out which commits belong to
a release and walk them newest first:

- Release tags are tags whose final path segment is a semantic version,
  ordered by the author time of the commit they point at, newest first.
- A ``from`` reference such as ``search/v1.2.0`` scopes all tag lookups to
  the ``search`` namespace, so components of a monorepo are versioned
  independently.
- Without an explicit ``to``, the previous release is used as the exclusive
  lower bound of the range, or the full history when there is none.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

from release_note.core.commits import Commit
from release_note.core.version import is_semver_tag
from release_note.logging_config import get_logger
from release_note.vcs.base import VcsBackend

logger = get_logger(__name__)

_TAG_REF_PREFIX = "refs/tags/"


@dataclass(frozen=True)
class Tag:
    """A release tag and the commit it points at."""

    name: str
    commit_id: str
    timestamp: int

    @property
    def label(self) -> str:
        return f"{self.name} ({self.commit_id[:7]})"


@dataclass(frozen=True)
class ResolvedRange:
    """A concrete commit range: ``from_id`` inclusive, ``to_id`` exclusive."""

    from_id: str
    to_id: str | None
    prefix: str | None = None
    tags: list[Tag] = field(default_factory=list)
    from_label: str = ""
    to_label: str | None = None

    def __str__(self) -> str:
        if self.to_label:
            return f"{self.from_label} to {self.to_label}"
        return self.from_label


# =============================================================================
# Tag catalog
# =============================================================================


def tag_matches_prefix(name: str, prefix: str | None) -> bool:
    """Check a tag name against a monorepo namespace.

    Without a prefix only un-namespaced tags (no ``/``) match.
    """
    if prefix is None:
        return "/" not in name

    head, separator, suffix = name.rpartition("/")
    return bool(separator) and head == prefix and bool(suffix)


def load_tags(backend: VcsBackend, prefix: str | None = None) -> list[Tag]:
    """Load release tags within a namespace, newest first.

    Ties keep the order in which the backend listed the tags.
    """
    tags = [
        Tag(name=ref.name, commit_id=ref.commit_id, timestamp=ref.timestamp)
        for ref in backend.list_tags()
        if tag_matches_prefix(ref.name, prefix) and is_semver_tag(ref.name)
    ]
    tags.sort(key=lambda tag: tag.timestamp, reverse=True)

    logger.debug(
        "found %d release tag%s in namespace %s",
        len(tags),
        "" if len(tags) == 1 else "s",
        prefix or "<global>",
    )
    return tags


def infer_prefix(reference: str) -> str | None:
    """Infer the tag namespace of a reference like ``component/sub/v1.0.0``.

    Returns None when the reference carries no namespace, including fully
    qualified ``refs/tags/v1.0.0`` style references.
    """
    name = reference.removeprefix(_TAG_REF_PREFIX)
    head, separator, suffix = name.rpartition("/")
    if separator and head and is_semver_tag(suffix):
        return head
    return None


# =============================================================================
# Range resolution
# =============================================================================


def resolve_range(
    backend: VcsBackend,
    from_ref: str | None = None,
    to_ref: str | None = None,
) -> ResolvedRange:
    """Resolve user supplied references into a concrete commit range.

    Args:
        backend: Repository to resolve against
        from_ref: Inclusive start of the range. Defaults to HEAD.
        to_ref: Exclusive end of the range. Inferred from release tags when omitted.

    Returns:
        The resolved range along with the release tags used to infer it

    Raises:
        ReferenceNotFoundError: If ``from_ref`` or ``to_ref`` cannot be resolved
    """
    prefix = infer_prefix(from_ref) if from_ref else None
    if prefix:
        logger.debug("inferred tag namespace %s from %s", prefix, from_ref)

    tags = load_tags(backend, prefix)
    # When a commit carries several tags the oldest position wins
    tag_index = {tag.commit_id: position for position, tag in enumerate(tags)}

    if from_ref is None:
        from_id = backend.head()
        from_label = f"HEAD ({from_id[:7]})"
    else:
        from_id = backend.resolve_reference(from_ref)
        from_label = _label(from_id, tags)

    to_tag: Tag | None = None
    to_id: str | None = None
    if to_ref is not None:
        to_id = backend.resolve_reference(to_ref)
    elif from_id in tag_index:
        position = tag_index[from_id]
        if position + 1 < len(tags):
            to_tag = tags[position + 1]
    elif tags:
        head_id = from_id if from_ref is None else backend.head()
        if from_id == head_id:
            to_tag = tags[0]
        else:
            to_tag = find_closest_tag(backend, from_id, tags, tag_index)

    if to_tag is not None:
        to_id = to_tag.commit_id
    elif to_id is None and tags:
        logger.debug("no earlier release found, including full history")

    resolved = ResolvedRange(
        from_id=from_id,
        to_id=to_id,
        prefix=prefix,
        tags=tags,
        from_label=from_label,
        to_label=_label(to_id, tags) if to_id else None,
    )
    logger.info("scanning from %s", resolved)
    return resolved


def find_closest_tag(
    backend: VcsBackend,
    from_id: str,
    tags: list[Tag],
    tag_index: dict[str, int],
) -> Tag | None:
    """Walk ancestry from ``from_id`` to the first commit carrying a release tag."""
    for raw in backend.walk(from_id):
        if raw.sha in tag_index:
            return tags[tag_index[raw.sha]]
    return None


def _label(commit_id: str, tags: list[Tag]) -> str:
    for tag in tags:
        if tag.commit_id == commit_id:
            return tag.label
    return commit_id[:7]


# =============================================================================
# History walking
# =============================================================================


def walk_history(
    backend: VcsBackend,
    resolved: ResolvedRange,
    path: str | Sequence[str] | None = None,
) -> Iterator[Commit]:
    """Yield parsed commits in the range, newest first.

    Args:
        backend: Repository to walk
        resolved: Range to walk
        path: Only keep commits that change something under this directory.
            With several directories, a commit must change something under
            each of them.

    Raises:
        HistoryTraversalError: If the walk fails part way through
    """
    paths = [p for p in ([path] if isinstance(path, str) else path or ()) if p]
    for raw in backend.walk(resolved.from_id, resolved.to_id):
        skipped = next((p for p in paths if not backend.touches_path(raw, p)), None)
        if skipped is not None:
            logger.debug("skipping %s: no changes under %s", raw.sha[:7], skipped)
            continue
        yield Commit.from_raw(raw)


def history(
    backend: VcsBackend,
    from_ref: str | None = None,
    to_ref: str | None = None,
    path: str | Sequence[str] | None = None,
) -> Iterator[Commit]:
    """Resolve a range eagerly, then walk it lazily.

    Resolution errors are raised immediately rather than on first iteration.
    """
    resolved = resolve_range(backend, from_ref, to_ref)
    return walk_history(backend, resolved, path)
