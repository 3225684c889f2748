"""Implementation of the default 'generate' command.

Resolves the release range, classifies its commits and prints (or writes)
the release note.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from release_note.config import load_config
from release_note.core.changelog import render_changelog, write_changelog
from release_note.core.commits import categorize_commits
from release_note.core.history import ResolvedRange, resolve_range, walk_history
from release_note.core.template import resolve_template
from release_note.exceptions import ChangelogError, ConfigError, GitError
from release_note.logging_config import get_logger
from release_note.vcs import GitRepository
from release_note.vcs.remote import Platform

if TYPE_CHECKING:
    from rich.console import Console

logger = get_logger(__name__)


def run_generate(
    from_ref: str | None,
    to_ref: str | None,
    path: str | None,
    output: Path | None,
    console: Console,
    err_console: Console,
) -> None:
    """Run the generate command.

    Args:
        from_ref: Inclusive start of the range (defaults to HEAD)
        to_ref: Exclusive end of the range (defaults to the previous release)
        path: Directory inside the repository; a subdirectory scopes the history
        output: Changelog file to prepend the note to, instead of printing it
        console: Console for standard output
        err_console: Console for error output
    """
    project_path = Path(path) if path else Path.cwd()

    try:
        config = load_config(project_path)
    except ConfigError as e:
        err_console.print(f"[red]Error loading config:[/] {e}")
        raise SystemExit(1) from e

    try:
        repo = GitRepository(project_path)
    except GitError as e:
        err_console.print(f"[red]Error:[/] {e}")
        raise SystemExit(1) from e

    # A configured path narrows the subdirectory scope further, never widens it
    scopes = [scope for scope in (repo.scope, config.history.path) if scope]
    if scopes:
        logger.info("limiting history to %s", " and ".join(scopes))

    try:
        resolved = resolve_range(repo, from_ref, to_ref)
        categorized = categorize_commits(walk_history(repo, resolved, scopes))
    except GitError as e:
        err_console.print(f"[red]Error reading history:[/] {e}")
        raise SystemExit(1) from e

    if not categorized:
        err_console.print("[yellow]No commits found in range. Nothing to do.[/]")
        return

    try:
        template = resolve_template(project_path, repo.path)
        note = render_changelog(
            categorized,
            config.changelog,
            git_ref=_release_name(resolved, from_ref),
            platform=Platform.from_origin_url(repo.origin_url()),
            template=template,
        )
    except ChangelogError as e:
        err_console.print(f"[red]Error rendering release note:[/] {e}")
        raise SystemExit(1) from e

    if not note:
        err_console.print("[yellow]No commits in the configured sections. Nothing to do.[/]")
        return

    if output is None:
        console.print(note, markup=False, emoji=False, highlight=False, soft_wrap=True)
        return

    try:
        write_changelog(output, note)
    except ChangelogError as e:
        err_console.print(f"[red]Error writing changelog:[/] {e}")
        raise SystemExit(1) from e

    err_console.print(f"  [green]✓[/] Updated {output}")


def _release_name(resolved: ResolvedRange, from_ref: str | None) -> str:
    """Heading for the note: the tag at ``from`` if there is one."""
    for tag in resolved.tags:
        if tag.commit_id == resolved.from_id:
            return tag.name
    return from_ref or "HEAD"
