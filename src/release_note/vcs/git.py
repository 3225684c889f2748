"""Git repository access via the git executable.

All commands are read-only. ``git log`` output is streamed so history can be
consumed one commit at a time and abandoned early.
"""

from __future__ import annotations

import io
import subprocess
import tempfile
from collections.abc import Iterator
from pathlib import Path
from typing import IO, cast

from release_note.exceptions import (
    GitError,
    HistoryTraversalError,
    ReferenceNotFoundError,
    RepositoryNotFoundError,
)
from release_note.logging_config import get_logger
from release_note.vcs.base import RawCommit, TagRef

logger = get_logger(__name__)

# With -z every record ends in NUL, which git never stores in a commit message
_RECORD_TERMINATOR = "\0"

# One field per line; the raw message comes last and may span many lines
_LOG_FORMAT = "%H%n%P%n%at%n%an%n%ae%n%B"

_TAG_FORMAT = (
    "%(refname:strip=2)%00%(objecttype)%00%(objectname)%00%(authordate:unix)"
    "%00%(*objecttype)%00%(*objectname)%00%(*authordate:unix)"
)

_CHUNK_SIZE = 64 * 1024


class GitRepository:
    """A git work tree, optionally scoped to one of its subdirectories.

    Args:
        path: Any directory inside the work tree. When it is a subdirectory,
            the directory becomes the repository's implied path scope.

    Raises:
        RepositoryNotFoundError: If ``path`` is not inside a git work tree
    """

    def __init__(self, path: Path | str | None = None) -> None:
        start = Path(path) if path is not None else Path.cwd()

        try:
            result = subprocess.run(
                ["git", "-C", str(start), "rev-parse", "--show-toplevel", "--show-prefix"],
                capture_output=True,
                text=True,
                check=True,
            )
        except FileNotFoundError as e:
            raise GitError("git executable not found") from e
        except subprocess.CalledProcessError as e:
            raise RepositoryNotFoundError(
                f"failed to open git repository at {start}", stderr=e.stderr
            ) from e

        lines = result.stdout.split("\n")
        self.path = Path(lines[0])
        prefix = lines[1].strip("/") if len(lines) > 1 else ""
        self.scope: str | None = prefix or None

        logger.debug("opened repository at %s (scope: %s)", self.path, self.scope or "<root>")

    def _run(self, *args: str, check: bool = True) -> subprocess.CompletedProcess[str]:
        """Run a git command at the repository root."""
        cmd = ["git", "--literal-pathspecs", *args]
        logger.debug("running %s", " ".join(cmd))
        try:
            return subprocess.run(
                cmd,
                cwd=self.path,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                check=check,
            )
        except FileNotFoundError as e:
            raise GitError("git executable not found") from e
        except subprocess.CalledProcessError as e:
            raise GitError(
                f"git {args[0]} failed with exit code {e.returncode}", stderr=e.stderr
            ) from e

    def head(self) -> str:
        return self.resolve_reference("HEAD")

    def resolve_reference(self, reference: str) -> str:
        if not reference or reference.startswith("-"):
            raise ReferenceNotFoundError(reference)

        result = self._run(
            "rev-parse", "--verify", "--quiet", f"{reference}^{{commit}}", check=False
        )
        if result.returncode != 0:
            raise ReferenceNotFoundError(reference, stderr=result.stderr)
        return result.stdout.strip()

    def list_tags(self) -> list[TagRef]:
        result = self._run("for-each-ref", f"--format={_TAG_FORMAT}", "refs/tags")

        tags: list[TagRef] = []
        for line in result.stdout.split("\n"):
            fields = line.split("\0")
            if len(fields) != 7:
                continue

            name, object_type, object_id, date, peeled_type, peeled_id, peeled_date = fields
            if object_type == "commit":
                commit_id, timestamp = object_id, date
            elif object_type == "tag" and peeled_type == "commit":
                commit_id, timestamp = peeled_id, peeled_date
            else:
                logger.debug("skipping tag %s: does not point at a commit", name)
                continue

            try:
                tags.append(TagRef(name=name, commit_id=commit_id, timestamp=int(timestamp)))
            except ValueError:
                logger.debug("skipping tag %s: unreadable commit time %r", name, timestamp)

        return tags

    def walk(self, from_id: str, exclude: str | None = None) -> Iterator[RawCommit]:
        args = [
            "git",
            "-c",
            "log.showSignature=false",
            "log",
            "-z",
            "--date-order",
            "--no-color",
            "--encoding=UTF-8",
            f"--format={_LOG_FORMAT}",
            from_id,
        ]
        if exclude:
            args.append(f"^{exclude}")
        args.append("--")

        logger.debug("running %s", " ".join(args))
        with tempfile.TemporaryFile() as stderr_file:
            try:
                proc = subprocess.Popen(
                    args,
                    cwd=self.path,
                    stdout=subprocess.PIPE,
                    stderr=stderr_file,
                )
            except FileNotFoundError as e:
                raise GitError("git executable not found") from e

            # stdout=PIPE always provides a stream. newline="" keeps \r in messages.
            stdout = io.TextIOWrapper(
                cast(IO[bytes], proc.stdout), encoding="utf-8", errors="replace", newline=""
            )
            try:
                yield from _read_records(stdout)

                if proc.wait() != 0:
                    stderr_file.seek(0)
                    stderr = stderr_file.read().decode("utf-8", errors="replace")
                    raise HistoryTraversalError(
                        f"failed to walk history from {from_id[:7]}", stderr=stderr
                    )
            finally:
                # The caller may stop iterating early
                if proc.poll() is None:
                    proc.kill()
                stdout.close()
                proc.wait()

    def touches_path(self, commit: RawCommit, path: str) -> bool:
        path = path.strip("/")
        if not path:
            return True

        if commit.is_root:
            result = self._run("cat-file", "-e", f"{commit.sha}:{path}", check=False)
            return result.returncode == 0

        result = self._run(
            "diff-tree", "--quiet", "-r", "--no-commit-id", commit.parents[0], commit.sha,
            "--", path,
            check=False,
        )
        if result.returncode not in (0, 1):
            raise HistoryTraversalError(
                f"failed to diff {commit.sha[:7]} against its parent", stderr=result.stderr
            )
        return result.returncode == 1

    def origin_url(self) -> str | None:
        """URL of the ``origin`` remote, if configured."""
        result = self._run("remote", "get-url", "origin", check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None


def _read_records(stream: IO[str]) -> Iterator[RawCommit]:
    pending: list[str] = []
    while chunk := stream.read(_CHUNK_SIZE):
        *complete, rest = chunk.split(_RECORD_TERMINATOR)
        for part in complete:
            pending.append(part)
            record = "".join(pending)
            pending.clear()
            if record:
                yield _parse_record(record)
        if rest:
            pending.append(rest)

    record = "".join(pending)
    if record:
        yield _parse_record(record)


def _parse_record(record: str) -> RawCommit:
    try:
        sha, parents, timestamp, author_name, author_email, message = record.split("\n", 5)
        return RawCommit(
            sha=sha,
            message=message.rstrip("\n"),
            author_name=author_name,
            author_email=author_email,
            timestamp=int(timestamp),
            parents=tuple(parents.split()),
        )
    except ValueError as e:
        raise HistoryTraversalError(f"malformed git log record: {record[:60]!r}") from e
