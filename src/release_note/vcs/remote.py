"""Hosting platform detection from the origin remote.

Only used to build links in the rendered release note. Nothing here talks to
the network.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from release_note.logging_config import get_logger

if TYPE_CHECKING:
    from release_note.core.message import LinkedIssue

logger = get_logger(__name__)

_HTTP_URL_PATTERN = re.compile(r"^https?://(?:[^@/]+@)?(?P<host>[^/:]+)(?::\d+)?/(?P<path>.+)$")
_SSH_URL_PATTERN = re.compile(r"^ssh://(?:[^@/]+@)?(?P<host>[^/:]+)(?::\d+)?/(?P<path>.+)$")
_SCP_URL_PATTERN = re.compile(r"^(?:[^@/]+@)?(?P<host>[^/:]+):(?P<path>[^/].*)$")


class PlatformKind(StrEnum):
    GITHUB = "github"
    GITLAB = "gitlab"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Platform:
    """Where the project is hosted, e.g. ``https://github.com/acme/widgets``."""

    kind: PlatformKind
    host: str = ""
    project_path: str = ""

    @classmethod
    def unknown(cls) -> Platform:
        return cls(kind=PlatformKind.UNKNOWN)

    @classmethod
    def from_origin_url(cls, origin_url: str | None) -> Platform:
        """Detect the platform from an HTTPS, SSH or scp-style origin URL."""
        if not origin_url:
            logger.debug("no origin remote, links will be omitted")
            return cls.unknown()

        parsed = parse_git_url(origin_url)
        if parsed is None:
            logger.warning("unrecognized origin URL %s, links will be omitted", origin_url)
            return cls.unknown()

        host, project_path = parsed
        if "github" in host:
            if project_path.count("/") != 1:
                logger.warning("malformed GitHub project path %s", project_path)
                return cls.unknown()
            return cls(kind=PlatformKind.GITHUB, host=host, project_path=project_path)
        if "gitlab" in host:
            return cls(kind=PlatformKind.GITLAB, host=host, project_path=project_path)

        logger.warning("unrecognized platform %s, links will be omitted", host)
        return cls.unknown()

    @property
    def url(self) -> str | None:
        if self.kind is PlatformKind.UNKNOWN:
            return None
        return f"https://{self.host}/{self.project_path}"

    def commit_url(self, sha: str) -> str | None:
        if self.kind is PlatformKind.GITHUB:
            return f"{self.url}/commit/{sha}"
        if self.kind is PlatformKind.GITLAB:
            return f"{self.url}/-/commit/{sha}"
        return None

    def issue_url(self, issue: LinkedIssue) -> str | None:
        if self.kind is PlatformKind.UNKNOWN:
            return None

        project_url = self.url
        if issue.owner and issue.repo:
            project_url = f"https://{self.host}/{issue.owner}/{issue.repo}"

        if self.kind is PlatformKind.GITLAB:
            return f"{project_url}/-/issues/{issue.number}"
        return f"{project_url}/issues/{issue.number}"


def parse_git_url(url: str) -> tuple[str, str] | None:
    """Split a git remote URL into host and project path (``owner/repo``)."""
    url = url.strip()
    for pattern in (_HTTP_URL_PATTERN, _SSH_URL_PATTERN, _SCP_URL_PATTERN):
        match = pattern.match(url)
        if match:
            path = match.group("path").strip("/").removesuffix(".git")
            if "/" not in path:
                return None
            return match.group("host"), path
    return None
