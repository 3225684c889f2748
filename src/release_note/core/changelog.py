"""Markdown release note rendering.

Turns categorized commits into a release note:

    ## v1.2.0 - March 04, 2026

    [**`1`**](#new-features) new feature • [**`2`**](#bug-fixes) bug fixes

    ## New Features
    - [`1a2b3c4`](https://github.com/acme/widgets/commit/1a2b3c4...) add search (closes #7)

      Body text, unwrapped to one line per paragraph.

The layout comes from a Jinja2 template (see :mod:`release_note.core.template`).
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from release_note.core.commits import (
    CategorizedCommits,
    Commit,
    CommitCategory,
    parse_conventional_header,
    strip_conventional_prefix,
)
from release_note.core.template import (
    DEFAULT_TEMPLATE,
    Section,
    compile_template,
    render_template,
)
from release_note.exceptions import ChangelogError
from release_note.vcs.remote import Platform

if TYPE_CHECKING:
    from pathlib import Path

    from jinja2 import Template

    from release_note.config.models import ChangelogConfig

SECTION_TITLES: dict[CommitCategory, str] = {
    CommitCategory.BREAKING: "Breaking Changes",
    CommitCategory.FEATURE: "New Features",
    CommitCategory.FIX: "Bug Fixes",
    CommitCategory.DEPENDENCIES: "Dependency Updates",
    CommitCategory.DOCUMENTATION: "Documentation",
    CommitCategory.CI: "Continuous Integration",
    CommitCategory.TEST: "Tests",
    CommitCategory.PERFORMANCE: "Performance Improvements",
    CommitCategory.CHORE: "Chores",
    CommitCategory.REFACTOR: "Refactoring",
    CommitCategory.OTHER: "Other Changes",
}

# (singular, plural) labels for the summary line
SUMMARY_LABELS: dict[CommitCategory, tuple[str, str]] = {
    CommitCategory.BREAKING: ("breaking change", "breaking changes"),
    CommitCategory.FEATURE: ("new feature", "new features"),
    CommitCategory.FIX: ("bug fix", "bug fixes"),
}


def render_changelog(
    categorized: CategorizedCommits,
    config: ChangelogConfig | None = None,
    *,
    git_ref: str = "HEAD",
    release_date: datetime | None = None,
    platform: Platform | None = None,
    template: Template | None = None,
) -> str:
    """Render categorized commits as a Markdown release note.

    Args:
        categorized: Commits partitioned by category
        config: Rendering options
        git_ref: Name of the release shown in the heading
        release_date: Date shown in the heading. Defaults to today (UTC).
        platform: Hosting platform used to link commits and issues
        template: Compiled release note template. Defaults to the built-in one.

    Returns:
        The release note, or an empty string if no configured section has commits

    Raises:
        ChangelogError: If the template fails to render
    """
    if config is None:
        from release_note.config.models import ChangelogConfig

        config = ChangelogConfig()
    platform = platform or Platform.unknown()

    sections = [
        Section(
            category=category,
            title=SECTION_TITLES[category],
            commits=_section_commits(categorized, category, config),
        )
        for category in config.sections
    ]
    sections = [section for section in sections if section.commits]
    if not sections:
        return ""

    context = {
        "git_ref": git_ref,
        "release_date": release_date or datetime.now(UTC),
        "summary": _summary_line(sections),
        "sections": sections,
        "include_body": config.include_body,
        "footer": config.footer,
        "platform": platform,
        "commit_entry": lambda commit: format_commit_entry(commit, platform, config),
        "commit_url": platform.commit_url,
        "issue_url": platform.issue_url,
    }
    return render_template(template or compile_template(DEFAULT_TEMPLATE), context)


def format_commit_entry(
    commit: Commit,
    platform: Platform,
    config: ChangelogConfig,
) -> str:
    """Format a single list entry: short hash, description, closed issues."""
    url = platform.commit_url(commit.id)
    sha = f"[`{commit.short_id}`]({url})" if url else f"`{commit.short_id}`"
    entry = f"- {sha} {strip_conventional_prefix(commit.first_line)}"

    if config.include_linked_issues and commit.linked_issues:
        references = []
        for issue in commit.linked_issues:
            issue_url = platform.issue_url(issue)
            references.append(f"[{issue}]({issue_url})" if issue_url else str(issue))
        entry += f" (closes {', '.join(references)})"

    return entry


def write_changelog(path: Path, content: str) -> None:
    """Prepend a release note to a changelog file, creating it if needed.

    Raises:
        ChangelogError: If the file cannot be read or written
    """
    try:
        if path.exists():
            existing = path.read_text(encoding="utf-8")
            content = f"{content}\n\n{existing}" if existing.strip() else content
        path.write_text(content.rstrip("\n") + "\n", encoding="utf-8")
    except OSError as e:
        raise ChangelogError(f"Failed to write changelog to {path}: {e}") from e


def _section_commits(
    categorized: CategorizedCommits,
    category: CommitCategory,
    config: ChangelogConfig,
) -> list[Commit]:
    commits = categorized.get(category)
    if category is CommitCategory.DEPENDENCIES and config.skip_chore_dependencies:
        commits = [commit for commit in commits if not _is_chore(commit)]
    return commits


def _is_chore(commit: Commit) -> bool:
    header = parse_conventional_header(commit.first_line)
    return header is not None and header.commit_type == "chore"


def _summary_line(sections: list[Section]) -> str:
    stats = []
    for section in sections:
        labels = SUMMARY_LABELS.get(section.category)
        if labels is None:
            continue
        count = len(section.commits)
        label = labels[0] if count == 1 else labels[1]
        stats.append(f"[**`{count}`**](#{section.anchor}) {label}")
    return " • ".join(stats)
