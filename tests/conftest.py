"""Shared fixtures for release-note tests."""

from __future__ import annotations

import hashlib
import os
import subprocess
from collections.abc import Iterator
from pathlib import Path

import pytest

from release_note.core.commits import Commit
from release_note.exceptions import ReferenceNotFoundError
from release_note.vcs.base import RawCommit, TagRef

BASE_TIMESTAMP = 1564567890
AUTHOR_NAME = "William Shakespeare"
AUTHOR_EMAIL = "will@globe-theatre.com"


# =============================================================================
# Scripted repository
# =============================================================================


class FakeRepository:
    """An in-memory commit graph implementing the VcsBackend protocol.

    Commits are appended on top of HEAD unless explicit parents are given.
    Each commit records the files it changes so path filtering can be tested.
    """

    def __init__(self) -> None:
        self.commits: dict[str, RawCommit] = {}
        self.files: dict[str, set[str]] = {}
        self.tags: list[TagRef] = []
        self.branches: dict[str, str] = {}
        self.head_id: str | None = None
        self.yielded = 0

    def commit(
        self,
        message: str,
        *,
        parents: list[str] | None = None,
        files: tuple[str, ...] = (),
        timestamp: int | None = None,
    ) -> str:
        index = len(self.commits)
        sha = hashlib.sha1(f"{index}:{message}".encode()).hexdigest()
        if parents is None:
            parents = [self.head_id] if self.head_id else []

        self.commits[sha] = RawCommit(
            sha=sha,
            message=message,
            author_name=AUTHOR_NAME,
            author_email=AUTHOR_EMAIL,
            timestamp=timestamp if timestamp is not None else BASE_TIMESTAMP + index,
            parents=tuple(parents),
        )
        self.files[sha] = set(files)
        self.head_id = sha
        return sha

    def tag(self, name: str, sha: str) -> None:
        self.tags.append(TagRef(name=name, commit_id=sha, timestamp=self.commits[sha].timestamp))

    def head(self) -> str:
        if self.head_id is None:
            raise ReferenceNotFoundError("HEAD")
        return self.head_id

    def resolve_reference(self, reference: str) -> str:
        if reference == "HEAD":
            return self.head()
        if reference in self.commits:
            return reference
        if reference in self.branches:
            return self.branches[reference]
        for tag in self.tags:
            if reference in (tag.name, f"refs/tags/{tag.name}"):
                return tag.commit_id
        raise ReferenceNotFoundError(reference)

    def list_tags(self) -> list[TagRef]:
        return list(self.tags)

    def walk(self, from_id: str, exclude: str | None = None) -> Iterator[RawCommit]:
        hidden = self._ancestors(exclude) if exclude else set()
        visible = self._ancestors(from_id) - hidden

        pending_children = dict.fromkeys(visible, 0)
        for sha in visible:
            for parent in self.commits[sha].parents:
                if parent in visible:
                    pending_children[parent] += 1

        ready = [sha for sha in visible if pending_children[sha] == 0]
        while ready:
            ready.sort(key=lambda sha: self.commits[sha].timestamp)
            sha = ready.pop()
            self.yielded += 1
            yield self.commits[sha]
            for parent in self.commits[sha].parents:
                if parent in visible:
                    pending_children[parent] -= 1
                    if pending_children[parent] == 0:
                        ready.append(parent)

    def touches_path(self, commit: RawCommit, path: str) -> bool:
        prefix = path.rstrip("/") + "/"
        return any(name.startswith(prefix) for name in self.files[commit.sha])

    def _ancestors(self, sha: str) -> set[str]:
        seen: set[str] = set()
        stack = [sha]
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            stack.extend(self.commits[current].parents)
        return seen


@pytest.fixture
def fake_repo() -> FakeRepository:
    """An empty scripted repository."""
    return FakeRepository()


# =============================================================================
# Real git repositories
# =============================================================================


class GitTestRepo:
    """Builds a throwaway git repository with deterministic dates."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.commits: list[str] = []
        self._counter = 0
        self.path.mkdir(parents=True, exist_ok=True)
        self.git("init", "-q")
        self.git("symbolic-ref", "HEAD", "refs/heads/main")

    def git(self, *args: str, timestamp: int | None = None, stdin: str | None = None) -> str:
        date = f"{timestamp if timestamp is not None else BASE_TIMESTAMP} +0000"
        env = {
            **os.environ,
            "GIT_CONFIG_NOSYSTEM": "1",
            "GIT_CONFIG_GLOBAL": os.devnull,
            "GIT_AUTHOR_NAME": AUTHOR_NAME,
            "GIT_AUTHOR_EMAIL": AUTHOR_EMAIL,
            "GIT_COMMITTER_NAME": AUTHOR_NAME,
            "GIT_COMMITTER_EMAIL": AUTHOR_EMAIL,
            "GIT_AUTHOR_DATE": date,
            "GIT_COMMITTER_DATE": date,
        }
        result = subprocess.run(
            ["git", "-c", "commit.gpgsign=false", "-c", "tag.gpgsign=false", *args],
            cwd=self.path,
            env=env,
            input=stdin,
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.strip()

    def commit(
        self,
        message: str,
        path: str | None = None,
        timestamp: int | None = None,
    ) -> str:
        """Commit a new file (under ``path`` if given) with a verbatim message."""
        self._counter += 1
        name = f"file{self._counter}.txt"
        file_path = self.path / path / name if path else self.path / name
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text("test content\n")

        if timestamp is None:
            timestamp = BASE_TIMESTAMP + len(self.commits)

        self.git("add", str(file_path.relative_to(self.path)))
        self.git("commit", "-q", "--cleanup=verbatim", "-F", "-", timestamp=timestamp, stdin=message)
        sha = self.git("rev-parse", "HEAD")
        self.commits.append(sha)
        return sha

    def tag(self, name: str, sha: str, annotated: bool = True) -> None:
        if annotated:
            self.git("tag", "-a", name, sha, "-m", f"Tag {name}")
        else:
            self.git("tag", name, sha)

    @classmethod
    def from_log(cls, path: Path, log: str) -> GitTestRepo:
        """Build a linear history from ``git log --oneline --decorate`` style text.

        Lines are newest first; ``(tag: v1.0.0)`` prefixes create tags.
        """
        repo = cls(path)
        for line in reversed(log.strip().splitlines()):
            line = line.strip()
            if not line:
                continue

            tags: list[str] = []
            while line.startswith("(tag:"):
                end = line.index(")")
                tags.extend(name.strip() for name in line[5:end].split(","))
                line = line[end + 1 :].strip()

            sha = repo.commit(line)
            for name in tags:
                repo.tag(name, sha)
        return repo


@pytest.fixture
def git_repo(tmp_path: Path) -> GitTestRepo:
    """An empty git repository."""
    return GitTestRepo(tmp_path / "repo")


@pytest.fixture
def repo_from_log(tmp_path: Path):
    """Factory building a repository from decorated one-line log text."""

    def build(log: str) -> GitTestRepo:
        return GitTestRepo.from_log(tmp_path / "repo", log)

    return build


@pytest.fixture
def temp_git_repo_with_pyproject(tmp_path: Path) -> Path:
    """A git repository with a pyproject.toml carrying release-note config."""
    repo = GitTestRepo(tmp_path / "project")
    (repo.path / "pyproject.toml").write_text(
        """\
[project]
name = "test-project"
version = "1.0.0"

[tool.release-note.history]
path = "src"

[tool.release-note.changelog]
sections = ["breaking", "feature", "fix"]
include_body = false
"""
    )
    repo.git("add", "pyproject.toml")
    repo.git("commit", "-q", "-m", "chore: initial commit")
    return repo.path


# =============================================================================
# Commits
# =============================================================================


def build_commit(first_line: str, **kwargs) -> Commit:
    sha = hashlib.sha1(first_line.encode()).hexdigest()
    return Commit(
        id=kwargs.pop("id", sha),
        first_line=first_line,
        author_name=AUTHOR_NAME,
        author_email=AUTHOR_EMAIL,
        timestamp=BASE_TIMESTAMP,
        **kwargs,
    )


@pytest.fixture
def make_commit():
    """Factory for commits with a given first line."""
    return build_commit


@pytest.fixture
def feat_commit() -> Commit:
    return build_commit("feat: add user authentication", id="feat123" + "0" * 33)


@pytest.fixture
def fix_commit() -> Commit:
    return build_commit("fix(core): resolve memory leak", id="fix4567" + "0" * 33)


@pytest.fixture
def breaking_commit() -> Commit:
    return build_commit("feat!: redesign API", id="break89" + "0" * 33)


@pytest.fixture
def sample_commits(feat_commit: Commit, fix_commit: Commit, breaking_commit: Commit) -> list[Commit]:
    return [
        feat_commit,
        fix_commit,
        build_commit("docs: update README"),
        breaking_commit,
        build_commit("chore: update dependencies"),
        build_commit("chore(deps): bump pydantic"),
        build_commit("Merge branch 'main'"),
    ]
