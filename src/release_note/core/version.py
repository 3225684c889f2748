"""Semantic version parsing for release tags.

Tags such as ``v1.2.3``, ``1.2.3-rc.1`` or ``search/v0.3.0`` identify
releases. Only the final path segment is treated as the version, with an
optional leading ``v`` stripped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# SemVer 2.0.0 grammar (https://semver.org/#is-there-a-suggested-regular-expression-regex-to-check-a-semver-string)
_SEMVER_PATTERN = re.compile(
    r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+(?P<build>[0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)


@dataclass(frozen=True)
class Version:
    """A semantic version."""

    major: int
    minor: int
    patch: int
    prerelease: str | None = None
    build: str | None = None

    @classmethod
    def parse(cls, text: str) -> Version:
        """Parse a semantic version, accepting a single leading ``v``.

        Raises:
            ValueError: If the text is not a valid semantic version
        """
        candidate = text[1:] if text.startswith("v") else text
        match = _SEMVER_PATTERN.match(candidate)
        if match is None:
            raise ValueError(f"Invalid semantic version: {text!r}")

        return cls(
            major=int(match.group("major")),
            minor=int(match.group("minor")),
            patch=int(match.group("patch")),
            prerelease=match.group("prerelease"),
            build=match.group("build"),
        )

    def __str__(self) -> str:
        version = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            version += f"-{self.prerelease}"
        if self.build:
            version += f"+{self.build}"
        return version


def parse_version(text: str) -> Version:
    """Parse a version string. See :meth:`Version.parse`."""
    return Version.parse(text)


def is_semver_tag(name: str) -> bool:
    """Check whether the last path segment of a tag name is a semantic version."""
    version_part = name.rsplit("/", 1)[-1]
    try:
        Version.parse(version_part)
    except ValueError:
        return False
    return True
