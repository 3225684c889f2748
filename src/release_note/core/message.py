"""Structural parsing of raw commit messages.

A commit message is split into:

- the first line (the subject)
- linked issue references such as ``Fixes acme/widgets#42`` or ``closes #7``
- a trailer block at the end of the message (``Signed-off-by: ...``)
- the free text body that remains

Parsing is total: any input string produces a best-effort result and never
raises.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import ClassVar

_LINKED_ISSUE_PATTERN = re.compile(
    r"^(?:closes|closed|fixes|fixed|fix|resolves|resolved|resolve)(?:: | )"
    r"(?:(?P<owner>[\w.-]+)/(?P<repo>[\w.-]+))?#(?P<number>\d+)$",
    re.IGNORECASE,
)

# ``BREAKING CHANGE`` is the only trailer token allowed to contain a space
_TRAILER_PATTERN = re.compile(
    r"^(?P<key>(?i:BREAKING[ -]CHANGES?)|[A-Za-z][\w-]*):\s+(?P<value>\S.*)$"
)

_ANGLE_EMAIL_PATTERN = re.compile(r"^(?P<name>.*?)\s*<(?P<email>[^<>\s]+)>$")
_PAREN_EMAIL_PATTERN = re.compile(r"^(?P<name>.*?)\s*\((?P<email>[^()\s]+@[^()\s]+)\)$")
_BARE_EMAIL_PATTERN = re.compile(r"^[^@\s<>()]+@[^@\s<>()]+$")

_EXCESS_BLANK_LINES = re.compile(r"\n{3,}")

# Only LF and CRLF end a line; other Unicode line separators are message text
_LINE_BREAK = re.compile(r"\r?\n")


# =============================================================================
# Trailers
# =============================================================================


@dataclass(frozen=True)
class Trailer:
    """A ``Key: value`` line from the trailer block of a commit message."""

    @classmethod
    def from_key_value(cls, key: str, value: str) -> Trailer:
        """Build the most specific trailer type for a raw key/value pair.

        Well-known keys are matched case-insensitively. Their value is split
        into a name and an optional email address.
        """
        person_type = _PERSON_TRAILERS.get(key.strip().lower())
        if person_type is None:
            return OtherTrailer(key=key.strip(), value=value.strip())

        name, email = _split_identity(value.strip())
        return person_type(name=name, email=email)


@dataclass(frozen=True)
class PersonTrailer(Trailer):
    """A trailer that names a person, optionally with an email address."""

    KEY: ClassVar[str] = ""

    name: str
    email: str | None = None

    @property
    def key(self) -> str:
        return self.KEY

    @property
    def value(self) -> str:
        if self.email and self.email != self.name:
            return f"{self.name} <{self.email}>"
        return self.name


@dataclass(frozen=True)
class CoAuthoredBy(PersonTrailer):
    KEY: ClassVar[str] = "Co-authored-by"


@dataclass(frozen=True)
class ReviewedBy(PersonTrailer):
    KEY: ClassVar[str] = "Reviewed-by"


@dataclass(frozen=True)
class SignedOffBy(PersonTrailer):
    KEY: ClassVar[str] = "Signed-off-by"


@dataclass(frozen=True)
class OtherTrailer(Trailer):
    """Any trailer without a dedicated type. The key keeps its original case."""

    key: str
    value: str

    @property
    def is_breaking_change(self) -> bool:
        """Whether this is a ``BREAKING CHANGE`` / ``BREAKING-CHANGES`` footer."""
        return self.key.upper().replace("-", " ") in ("BREAKING CHANGE", "BREAKING CHANGES")


_PERSON_TRAILERS: dict[str, type[PersonTrailer]] = {
    "co-authored-by": CoAuthoredBy,
    "reviewed-by": ReviewedBy,
    "signed-off-by": SignedOffBy,
}


def _split_identity(value: str) -> tuple[str, str | None]:
    """Split ``Name <email>`` / ``Name (email)`` / ``email`` into name and email."""
    for pattern in (_ANGLE_EMAIL_PATTERN, _PAREN_EMAIL_PATTERN):
        match = pattern.match(value)
        if match:
            email = match.group("email")
            return match.group("name") or email, email

    if _BARE_EMAIL_PATTERN.match(value):
        return value, value

    return value, None


# =============================================================================
# Linked issues
# =============================================================================


@dataclass(frozen=True)
class LinkedIssue:
    """An issue closed by a commit, e.g. ``Fixes acme/widgets#42``.

    ``owner`` and ``repo`` are ``None`` for same-repository references (``#7``).
    """

    number: int
    owner: str | None = None
    repo: str | None = None

    @property
    def sort_key(self) -> tuple[str, str, int]:
        return (self.owner or "", self.repo or "", self.number)

    def __str__(self) -> str:
        if self.owner and self.repo:
            return f"{self.owner}/{self.repo}#{self.number}"
        return f"#{self.number}"


# =============================================================================
# Parsing
# =============================================================================


@dataclass
class ParsedMessage:
    """The structural parts of a commit message."""

    first_line: str
    body: str | None = None
    trailers: list[Trailer] = field(default_factory=list)
    linked_issues: list[LinkedIssue] = field(default_factory=list)


def parse_message(message: str) -> ParsedMessage:
    """Parse a raw commit message.

    Args:
        message: The full commit message as stored by git

    Returns:
        First line, normalized body (``None`` when empty), trailers in order of
        appearance, and linked issues deduplicated and sorted
    """
    if not message:
        return ParsedMessage(first_line="")

    lines = _LINE_BREAK.split(message)

    first_line = lines[0]
    remaining = lines[1:]

    # Forward pass: closing keywords may appear anywhere below the subject
    linked_issues: list[LinkedIssue] = []
    claimed: set[int] = set()
    for index, line in enumerate(remaining):
        match = _LINKED_ISSUE_PATTERN.match(line.strip())
        if match:
            linked_issues.append(
                LinkedIssue(
                    number=int(match.group("number")),
                    owner=match.group("owner"),
                    repo=match.group("repo"),
                )
            )
            claimed.add(index)

    # Backward pass: find the trailer block at the end of the message
    boundary = len(remaining)
    trailer_matches: list[re.Match[str]] = []
    for index in range(len(remaining) - 1, -1, -1):
        line = remaining[index].strip()
        if not line or index in claimed:
            continue

        match = _TRAILER_PATTERN.match(line)
        if match is None:
            break

        trailer_matches.append(match)
        boundary = index

    trailer_matches.reverse()
    trailers = [
        Trailer.from_key_value(match.group("key"), match.group("value"))
        for match in trailer_matches
    ]

    body_lines = [
        line if line.strip() else ""
        for index, line in enumerate(remaining[:boundary])
        if index not in claimed
    ]
    body = _EXCESS_BLANK_LINES.sub("\n\n", "\n".join(body_lines).strip("\n"))

    return ParsedMessage(
        first_line=first_line,
        body=body or None,
        trailers=trailers,
        linked_issues=sorted(set(linked_issues), key=lambda issue: issue.sort_key),
    )
