"""Commit records and conventional commit classification.

Each commit discovered in the history is parsed into a :class:`Commit` and
assigned exactly one :class:`CommitCategory`:

1. ``breaking`` when a ``BREAKING CHANGE`` trailer is present or the header
   carries the ``!`` marker (``feat!: ...``, ``fix(api)!: ...``)
2. ``dependencies`` when the header scope is ``deps``, whatever the type
3. the category mapped from the header type (``feat`` -> ``feature``, ...)
4. ``other`` for everything else, including non-conventional headers
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from release_note.core.message import (
    CoAuthoredBy,
    LinkedIssue,
    OtherTrailer,
    Trailer,
    parse_message,
)
from release_note.logging_config import get_logger

if TYPE_CHECKING:
    from release_note.vcs.base import RawCommit

logger = get_logger(__name__)

CONVENTIONAL_HEADER_PATTERN = re.compile(
    r"^(?P<type>[a-z]+)(?:\((?P<scope>[a-z0-9-]+)\))?(?P<breaking>!)?:\s+.+",
    re.IGNORECASE,
)


class CommitCategory(StrEnum):
    """The closed set of categories a commit can fall into."""

    BREAKING = "breaking"
    FEATURE = "feature"
    FIX = "fix"
    DEPENDENCIES = "dependencies"
    DOCUMENTATION = "documentation"
    CI = "ci"
    TEST = "test"
    PERFORMANCE = "performance"
    CHORE = "chore"
    REFACTOR = "refactor"
    OTHER = "other"


TYPE_CATEGORIES: dict[str, CommitCategory] = {
    "feat": CommitCategory.FEATURE,
    "fix": CommitCategory.FIX,
    "docs": CommitCategory.DOCUMENTATION,
    "ci": CommitCategory.CI,
    "test": CommitCategory.TEST,
    "perf": CommitCategory.PERFORMANCE,
    "chore": CommitCategory.CHORE,
    "refactor": CommitCategory.REFACTOR,
}

DEPENDENCY_SCOPE = "deps"


@dataclass(frozen=True)
class Contributor:
    """A resolved platform user. Populated outside the core, never read by it."""

    username: str
    avatar_url: str = ""
    is_bot: bool = False


@dataclass
class Commit:
    """A commit in output form."""

    id: str
    first_line: str
    body: str | None = None
    trailers: list[Trailer] = field(default_factory=list)
    linked_issues: list[LinkedIssue] = field(default_factory=list)
    author_name: str = ""
    author_email: str = ""
    timestamp: int = 0
    contributors: list[Contributor] = field(default_factory=list)

    @classmethod
    def from_raw(cls, raw: RawCommit) -> Commit:
        """Parse a raw commit record read from the repository."""
        parsed = parse_message(raw.message)
        return cls(
            id=raw.sha,
            first_line=parsed.first_line,
            body=parsed.body,
            trailers=parsed.trailers,
            linked_issues=parsed.linked_issues,
            author_name=raw.author_name,
            author_email=raw.author_email,
            timestamp=raw.timestamp,
        )

    @property
    def short_id(self) -> str:
        return self.id[:7]


@dataclass(frozen=True)
class ConventionalHeader:
    """The parts of a ``type(scope)!: description`` header."""

    commit_type: str
    scope: str | None
    breaking: bool


def parse_conventional_header(first_line: str) -> ConventionalHeader | None:
    """Match a first line against the conventional commit header.

    Type and scope are lower-cased. Returns None for non-conventional lines.
    """
    match = CONVENTIONAL_HEADER_PATTERN.match(first_line)
    if match is None:
        return None

    scope = match.group("scope")
    return ConventionalHeader(
        commit_type=match.group("type").lower(),
        scope=scope.lower() if scope else None,
        breaking=match.group("breaking") is not None,
    )


def has_breaking_trailer(trailers: Iterable[Trailer]) -> bool:
    """Check for a ``BREAKING CHANGE`` trailer."""
    return any(
        isinstance(trailer, OtherTrailer) and trailer.is_breaking_change for trailer in trailers
    )


def classify(first_line: str, trailers: Iterable[Trailer] = ()) -> CommitCategory:
    """Assign a category from a first line and its trailers."""
    if has_breaking_trailer(trailers):
        return CommitCategory.BREAKING

    header = parse_conventional_header(first_line)
    if header is None:
        return CommitCategory.OTHER

    if header.breaking:
        return CommitCategory.BREAKING

    if header.scope == DEPENDENCY_SCOPE:
        return CommitCategory.DEPENDENCIES

    return TYPE_CATEGORIES.get(header.commit_type, CommitCategory.OTHER)


def classify_commit(commit: Commit) -> CommitCategory:
    """Assign a category to a commit. Body and linked issues are not consulted."""
    return classify(commit.first_line, commit.trailers)


class CategorizedCommits:
    """Commits partitioned by category.

    A category is only present once a commit has been added to it. Commits
    keep the order in which they were added.
    """

    def __init__(self) -> None:
        self.by_category: dict[CommitCategory, list[Commit]] = {}

    def add(self, commit: Commit) -> CommitCategory:
        category = classify_commit(commit)
        self.by_category.setdefault(category, []).append(commit)
        return category

    def get(self, category: CommitCategory) -> list[Commit]:
        return self.by_category.get(category, [])

    def categories(self) -> list[CommitCategory]:
        """Present categories in declaration order."""
        return [category for category in CommitCategory if category in self.by_category]

    def commits(self) -> Iterator[Commit]:
        for category in self.categories():
            yield from self.by_category[category]

    def __contains__(self, category: object) -> bool:
        return category in self.by_category

    def __len__(self) -> int:
        return sum(len(commits) for commits in self.by_category.values())

    def __bool__(self) -> bool:
        return bool(self.by_category)


def categorize_commits(commits: Iterable[Commit]) -> CategorizedCommits:
    """Classify commits into categories, preserving discovery order.

    Args:
        commits: Commits in traversal order (newest first)

    Returns:
        Category-partitioned commits
    """
    categorized = CategorizedCommits()
    for commit in commits:
        categorized.add(commit)

    logger.info("categorized %d commit%s", len(categorized), "" if len(categorized) == 1 else "s")
    for category in categorized.categories():
        count = len(categorized.get(category))
        logger.info("  * %s: %d commit%s", category, count, "" if count == 1 else "s")

    return categorized


def co_author_emails(commit: Commit) -> list[str]:
    """Email addresses of ``Co-authored-by`` trailers, in order, without duplicates."""
    emails: list[str] = []
    for trailer in commit.trailers:
        if isinstance(trailer, CoAuthoredBy) and trailer.email and trailer.email not in emails:
            emails.append(trailer.email)
    return emails


def strip_conventional_prefix(first_line: str) -> str:
    """Remove a ``type(scope)!:`` prefix from a first line, if present."""
    if parse_conventional_header(first_line) is None:
        return first_line
    return first_line.split(":", 1)[1].strip()
